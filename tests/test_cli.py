"""
Tests for the command line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from slotengine import __version__
from slotengine.adapters.booking_client import BookingClient
from slotengine.cli.app import app

runner = CliRunner()

DATA = {
    "users": [
        {
            "id": 1,
            "username": "alice",
            "timeZone": "UTC",
            "workingHours": [{"days": [0, 1, 2, 3, 4], "startTime": "09:00", "endTime": "17:00"}],
        }
    ],
    "eventTypes": [
        {"id": 1, "slug": "hour", "length": 60, "minimumBookingNotice": 0, "users": [1]}
    ],
}


@pytest.fixture
def config_path(tmp_path):
    (tmp_path / "data.json").write_text(json.dumps(DATA), encoding="utf-8")
    path = tmp_path / "slotengine.yaml"
    path.write_text("data_file: data.json\nlog_level: WARNING\n", encoding="utf-8")
    return path


def test_slots_as_json(config_path):
    result = runner.invoke(
        app,
        [
            "slots",
            "-e", "1",
            "--start", "2030-01-07T00:00:00Z",
            "--end", "2030-01-08T00:00:00Z",
            "--json",
            "-c", str(config_path),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "2030-01-07T09:00:00.000Z" in result.output
    assert "2030-01-07T16:00:00.000Z" in result.output


def test_slots_unknown_event_type(config_path):
    result = runner.invoke(
        app,
        [
            "slots",
            "-e", "99",
            "--start", "2030-01-07T00:00:00Z",
            "--end", "2030-01-08T00:00:00Z",
            "-c", str(config_path),
        ],
    )

    assert result.exit_code == 1
    assert "404" in result.output


def test_missing_data_file(tmp_path):
    config = tmp_path / "slotengine.yaml"
    config.write_text("data_file: nowhere.json\n", encoding="utf-8")

    result = runner.invoke(app, ["list-event-types", "-c", str(config)])

    assert result.exit_code == 1
    assert "Data file not found" in result.output


def test_list_event_types(config_path):
    result = runner.invoke(app, ["list-event-types", "-c", str(config_path)])

    assert result.exit_code == 0
    assert "hour" in result.output
    assert "alice" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


class FakeResponse:
    def raise_for_status(self):
        pass

    def json(self):
        return {"uid": "booked-1"}


class FakeSession:
    def __init__(self):
        self.calls = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "json": json})
        return FakeResponse()


def test_book_relays_to_booking_api(config_path, monkeypatch):
    session = FakeSession()
    monkeypatch.setattr(
        "slotengine.cli.app.BookingClient",
        lambda **kwargs: BookingClient(session=session, **kwargs),
    )

    result = runner.invoke(
        app,
        [
            "book",
            "-e", "1",
            "--name", "Ada Lovelace",
            "--email", "ada@example.com",
            "--start", "2030-01-07T09:00:00Z",
            "--end", "2030-01-07T10:00:00Z",
            "--tz", "Europe/London",
            "-c", str(config_path),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "booked-1" in result.output
    assert session.calls[0]["url"] == "http://localhost:3000/api/book/event"
    assert session.calls[0]["json"]["eventTypeSlug"] == "hour"
    assert session.calls[0]["json"]["timeZone"] == "Europe/London"


def test_book_unknown_event_type(config_path, monkeypatch):
    session = FakeSession()
    monkeypatch.setattr(
        "slotengine.cli.app.BookingClient",
        lambda **kwargs: BookingClient(session=session, **kwargs),
    )

    result = runner.invoke(
        app,
        [
            "book",
            "-e", "99",
            "--name", "Ada Lovelace",
            "--email", "ada@example.com",
            "--start", "2030-01-07T09:00:00Z",
            "--end", "2030-01-07T10:00:00Z",
            "-c", str(config_path),
        ],
    )

    assert result.exit_code == 1
    assert "404" in result.output
    assert session.calls == []
