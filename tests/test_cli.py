"""Tests for the studio calendar CLI."""
import json
from unittest.mock import MagicMock

import pytest

import cli


@pytest.fixture(autouse=True)
def studio_env(monkeypatch):
    monkeypatch.setattr(cli, "load_settings", lambda: cli.Settings(time_zone="UTC"))


def test_range_command(capsys):
    assert cli.main(["range", "--mode", "week", "--anchor", "2024-03-01"]) == 0
    out = capsys.readouterr().out
    assert "2024-02-25 -> 2024-03-03" in out
    assert "Feb 25 - Mar 2" in out


def test_shift_command(capsys):
    assert cli.main(["shift", "--mode", "month", "--anchor", "2024-01-31", "--direction", "-1"]) == 0
    assert capsys.readouterr().out.strip() == "2023-12-01"


def test_view_command_reads_events_file(tmp_path, capsys, make_event):
    events_file = tmp_path / "events.json"
    events_file.write_text(json.dumps([make_event("2024-03-05T09:00:00Z", title="Flow")]), encoding="utf-8")

    assert cli.main(["view", "--mode", "day", "--anchor", "2024-03-05", "--events", str(events_file)]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["isDay"] is True
    assert payload["day"]["events"][0]["title"] == "Flow"


def test_export_without_backend_fails(capsys):
    assert cli.main(["export", "--anchor", "2024-03-05"]) == 1
    assert "not configured" in capsys.readouterr().err


def test_export_ics_from_file(tmp_path, capsys, make_event):
    events_file = tmp_path / "events.json"
    events_file.write_text(
        json.dumps({"events": [make_event("2024-03-05T09:00:00Z", "2024-03-05T10:00:00Z")]}),
        encoding="utf-8",
    )
    assert cli.main(["export", "--format", "ics", "--events", str(events_file)]) == 0
    assert "BEGIN:VEVENT" in capsys.readouterr().out


def test_config_error_exits_nonzero(monkeypatch, capsys):
    def _raise():
        raise cli.ConfigError("bad zone")

    monkeypatch.setattr(cli, "load_settings", _raise)
    assert cli.main(["range"]) == 1
    assert "bad zone" in capsys.readouterr().err


def test_view_from_backend_fetches_current_week_for_stats(monkeypatch, capsys):
    backend = MagicMock()
    backend.list_instances.return_value = []
    monkeypatch.setattr(cli, "load_client_from_settings", lambda settings: backend)

    assert cli.main(["view", "--mode", "day", "--anchor", "2020-01-01"]) == 0
    assert json.loads(capsys.readouterr().out)["stats"]["sessionCount"] == 0
    spans = [call[0][0] for call in backend.list_instances.call_args_list]
    assert spans[0].to_api_dict() == {"from": "2020-01-01", "to": "2020-01-02"}
    assert (spans[1].end - spans[1].start).days == 7
