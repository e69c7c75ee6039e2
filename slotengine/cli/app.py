"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.booking_client import BookingClient
from ..adapters.json_store import JsonScheduleStore
from ..config import AppConfig, get_default_config_path
from ..domain.aggregator import event_usernames
from ..domain.exceptions import SlotEngineError
from ..services.booking import BookingService
from ..services.schedule import ScheduleService

app = typer.Typer(
    name="slotengine",
    help="Compute bookable meeting slots for event types",
    add_completion=False
)

console = Console()


def _load_config(config_file: Optional[Path]) -> tuple:
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)
    return config, config_path


def _setup_logging(config: AppConfig) -> None:
    logging.basicConfig(
        level=config.get_log_level(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=False)],
    )


def _build_store(config: AppConfig, config_path: Path) -> JsonScheduleStore:
    return JsonScheduleStore.from_file(config.resolve_data_file(config_path))


@app.command()
def slots(
    start: Annotated[str, typer.Option("--start", help="Start of the window (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="End of the window (ISO 8601)")],
    event_type_id: Annotated[Optional[int], typer.Option("--event-type-id", "-e", help="Event type ID")] = None,
    users: Annotated[Optional[List[str]], typer.Option("--user", "-u", help="Username for a dynamic group booking (repeatable)")] = None,
    slug: Annotated[str, typer.Option("--slug", help="Event type slug; the meeting length for dynamic groups")] = "",
    tz: Annotated[Optional[str], typer.Option("--tz", help="Invitee time zone. Etc/GMT forces UTC.")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Meeting duration in minutes")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw JSON response.")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Debug output for this request.")] = False,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./slotengine.yaml")] = None,
):
    """
    Show the bookable slots of an event type or a group of users.

    Examples:

        slotengine slots -e 1 --start 2024-01-01T00:00:00Z --end 2024-01-08T00:00:00Z

        slotengine slots -u alice -u bob --slug 30 --start 2024-01-01 --end 2024-01-02 --tz Europe/Berlin
    """
    try:
        config, config_path = _load_config(config_file)
        _setup_logging(config)
        store = _build_store(config, config_path)

        service = ScheduleService(
            event_types=store,
            availability=store,
            users_source=config.users_source,
            dynamic_event_length=config.dynamic_event_length,
            log_level=config.get_log_level(),
        )

        request = {
            "startTime": start,
            "endTime": end,
            "eventTypeId": event_type_id,
            "eventTypeSlug": slug,
            "timeZone": tz or config.timezone,
            "usernameList": users,
            "duration": duration,
            "debug": debug or config.debug,
        }
        result = asyncio.run(service.get_schedule(request))

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except SlotEngineError as e:
        console.print(f"[bold red]Error ({e.status_code}):[/bold red] {e.message}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(result))
        return

    days = result["slots"]
    if not days:
        console.print(
            "[yellow]⚠ No available slots found.[/yellow]\n"
            "Try a longer window or a shorter duration."
        )
        return

    table = Table(
        title="Available slots",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Time (UTC)")
    table.add_column("Users", style="dim")
    table.add_column("Seats taken", justify="right")

    total = 0
    for day, day_slots in days.items():
        for slot in day_slots:
            table.add_row(
                day,
                slot["time"],
                ", ".join(slot["users"]),
                str(slot.get("attendees", "")),
            )
            total += 1

    console.print()
    console.print(table)
    console.print(f"\n[bold green]✓ {total} slot(s) on {len(days)} day(s)[/bold green]\n")


@app.command()
def book(
    event_type_id: Annotated[int, typer.Option("--event-type-id", "-e", help="Event type ID")],
    name: Annotated[str, typer.Option("--name", help="Attendee name")],
    email: Annotated[str, typer.Option("--email", help="Attendee email")],
    start: Annotated[str, typer.Option("--start", help="Slot start (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="Slot end (ISO 8601)")],
    notes: Annotated[Optional[str], typer.Option("--notes", help="Additional notes")] = None,
    tz: Annotated[str, typer.Option("--tz", help="Attendee time zone")] = "UTC",
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
):
    """
    Book a slot through the booking API.
    """
    try:
        config, config_path = _load_config(config_file)
        _setup_logging(config)
        store = _build_store(config, config_path)

        client = BookingClient(
            base_url=config.booking.base_url,
            timeout=config.booking.timeout_seconds,
        )
        service = BookingService(event_types=store, booking_client=client)

        booking = asyncio.run(
            service.book(
                {
                    "eventTypeId": event_type_id,
                    "name": name,
                    "email": email,
                    "start": start,
                    "end": end,
                    "notes": notes,
                    "timezone": tz,
                }
            )
        )

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except SlotEngineError as e:
        console.print(f"[bold red]Error ({e.status_code}):[/bold red] {e.message}")
        raise typer.Exit(1)

    console.print("[green]✓ Booking created[/green]")
    console.print_json(json.dumps(booking))


@app.command()
def list_event_types(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    )
):
    """
    List all event types in the data file.
    """
    try:
        config, config_path = _load_config(config_file)
        store = _build_store(config, config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    event_types = store.list_event_types()
    if not event_types:
        console.print("[yellow]No event types defined in the data file.[/yellow]")
        return

    table = Table(
        title="Event types",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("ID", style="bold yellow")
    table.add_column("Slug")
    table.add_column("Length", justify="right")
    table.add_column("Scheduling")
    table.add_column("Hosts", style="dim")

    for event_type in event_types:
        table.add_row(
            str(event_type.id),
            event_type.slug,
            f"{event_type.constraints.length} min",
            event_type.scheduling_type.value if event_type.scheduling_type else "-",
            ", ".join(event_usernames(event_type)),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotengine[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
