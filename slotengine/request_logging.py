"""
Request-scoped logging.

Each request gets its own adapter with its own minimum level, so turning on
debug output for one request never touches the process-wide logger levels.
"""

import logging
import sys
from typing import Any, Mapping, MutableMapping, Optional, Tuple


class RequestLogger(logging.LoggerAdapter):
    """
    Logger adapter carrying request context and a per-request verbosity.

    Records at or above `min_level` are emitted even when the underlying
    logger is configured less verbosely. They keep their own level, so handler
    levels still apply.
    """

    def __init__(
        self,
        logger: logging.Logger,
        context: Optional[Mapping[str, Any]] = None,
        min_level: int = logging.INFO,
    ):
        super().__init__(logger, dict(context or {}))
        self.min_level = min_level

    @classmethod
    def for_request(
        cls,
        name: str,
        debug: bool = False,
        default_level: int = logging.INFO,
        **context: Any,
    ) -> "RequestLogger":
        return cls(
            logging.getLogger(name),
            context=context,
            min_level=logging.DEBUG if debug else default_level,
        )

    def isEnabledFor(self, level: int) -> bool:
        return level >= self.min_level

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return
        msg, kwargs = self.process(msg, kwargs)
        if self.logger.isEnabledFor(level):
            self.logger.log(level, msg, *args, **kwargs)
            return

        # The logger's own level would drop the record, so hand it to the
        # handlers directly with its real level
        exc_info = kwargs.get("exc_info")
        if isinstance(exc_info, BaseException):
            exc_info = (type(exc_info), exc_info, exc_info.__traceback__)
        elif exc_info and not isinstance(exc_info, tuple):
            exc_info = sys.exc_info()

        fn, lno, func, sinfo = self.logger.findCaller(
            kwargs.get("stack_info", False),
            stacklevel=kwargs.get("stacklevel", 1) + 1,
        )
        record = self.logger.makeRecord(
            self.logger.name,
            level,
            fn,
            lno,
            msg,
            args,
            exc_info or None,
            func,
            kwargs.get("extra"),
            sinfo,
        )
        self.logger.handle(record)

    def process(
        self,
        msg: Any,
        kwargs: MutableMapping[str, Any],
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        context = " ".join(
            f"{key}={value}" for key, value in self.extra.items() if value is not None
        )
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("request", dict(self.extra))
        kwargs["extra"] = extra
        return (f"[{context}] {msg}" if context else msg), kwargs
