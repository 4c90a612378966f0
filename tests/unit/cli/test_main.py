"""Unit tests for CLI command wiring."""

from __future__ import annotations

import json

from cli.main import main
from core.types import LoadSummary
from ingest.loader_sdk import RecordLoaderClient


def _summary(**overrides: object) -> LoadSummary:
    values: dict[str, object] = {
        "work_units": 1,
        "committed": 2,
        "skipped": 0,
        "failed_units": 0,
        "bytes_loaded": 10,
        "halted": False,
    }
    values.update(overrides)
    return LoadSummary(**values)  # type: ignore[arg-type]


def test_cli_load_passes_options_and_flags(monkeypatch, capsys) -> None:
    """Load command should forward inputs, start id, and config flags."""
    captured: dict[str, object] = {}

    def _fake_load(self, options, monitor=None):
        captured["inputs"] = options.inputs
        captured["start_id"] = options.start_id
        captured["threads"] = self.config.thread_count
        captured["skip_existing"] = self.config.skip_existing
        return _summary()

    monkeypatch.setattr(RecordLoaderClient, "load", _fake_load)

    exit_code = main(
        ["load", "in.jsonl", "--threads", "4", "--start-id", "P", "--skip-existing"]
    )
    output = capsys.readouterr().out

    assert exit_code == 0 and captured == {
        "inputs": ("in.jsonl",),
        "start_id": "P",
        "threads": 4,
        "skip_existing": True,
    } and "committed=2" in output.splitlines()


def test_cli_load_returns_nonzero_when_halted(monkeypatch, capsys) -> None:
    """Halted jobs should fail the command."""
    monkeypatch.setattr(
        RecordLoaderClient,
        "load",
        lambda self, options, monitor=None: _summary(halted=True, halt_reason="boom"),
    )

    exit_code = main(["load", "in.jsonl"])
    output = capsys.readouterr().out

    assert exit_code == 1 and "halted=boom" in output


def test_cli_load_returns_nonzero_for_failed_units(monkeypatch, capsys) -> None:
    """Record-fatal unit failures should fail the command."""
    monkeypatch.setattr(
        RecordLoaderClient,
        "load",
        lambda self, options, monitor=None: _summary(failed_units=1),
    )

    exit_code = main(["load", "in.jsonl"])
    _ = capsys.readouterr()

    assert exit_code == 1


def test_cli_rejects_invalid_thread_count(capsys) -> None:
    """Invalid config values should exit with a config error."""
    exit_code = main(["load", "in.jsonl", "--threads", "0"])
    error_output = capsys.readouterr().err

    assert exit_code == 2 and "config_error=" in error_output


def test_cli_rejects_unknown_encoding(capsys) -> None:
    """Unknown input encodings fail as config errors before loading."""
    exit_code = main(["load", "in.jsonl", "--encoding", "no-such-codec"])
    error_output = capsys.readouterr().err

    assert exit_code == 2 and "no-such-codec" in error_output


def test_cli_check_config_prints_resolved_settings(tmp_path, capsys) -> None:
    """check-config should print JSON merged from the config file."""
    config_path = tmp_path / "loader.yaml"
    config_path.write_text("uri_prefix: docs\nstart_id: P\n", encoding="utf-8")

    exit_code = main(["--config-file", str(config_path), "check-config"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0 and payload["uri_prefix"] == "docs/" and payload["start_id"] == "P"


def test_cli_load_reports_missing_input(tmp_path, capsys) -> None:
    """Missing inputs should fail the load with an error line."""
    exit_code = main(
        ["load", str(tmp_path / "missing"), "--connection-uri", f"file://{tmp_path / 'out'}"]
    )
    output = capsys.readouterr().out

    assert exit_code == 1 and output.startswith("load_error=")
