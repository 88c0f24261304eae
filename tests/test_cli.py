"""Tests for the flowtrail command line."""

import json
import logging
from collections.abc import Generator
from pathlib import Path

import pytest

from flowtrail.cli import main
from flowtrail.cli.commands import EXIT_CONFIG, EXIT_FAILED, EXIT_OK


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    for var in (
        "FLOWTRAIL_RECORDER_ENABLED",
        "FLOWTRAIL_RECORDER_HOST",
        "FLOWTRAIL_RECORDER_PORT",
        "FLOWTRAIL_RECORDER_TIMEOUT",
        "FLOWTRAIL_RECORDER_RETRIES",
        "FLOWTRAIL_RECORDER_RETRY_DELAY",
        "FLOWTRAIL_RECORDER_FAILURE_POLICY",
        "FLOWTRAIL_RECORDER_TYPE",
        "FLOWTRAIL_RECORDER_PATH",
    ):
        monkeypatch.delenv(var, raising=False)
    yield
    logging.getLogger("flowtrail").setLevel(logging.NOTSET)


@pytest.fixture
def snapshot_file(tmp_path: Path) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(
        json.dumps(
            {
                "id": 4,
                "flowID": "flow-cli",
                "state": 2,
                "status": 500,
                "snapshotData": {"id": "flow-cli", "attrs": {"approved": True}},
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def step_file(tmp_path: Path) -> Path:
    path = tmp_path / "step.json"
    path.write_text(
        json.dumps(
            {
                "id": 5,
                "flowID": "flow-cli",
                "state": 2,
                "status": 100,
                "stepData": {"changes": [{"kind": "attr", "target": "approved", "value": True}]},
            }
        ),
        encoding="utf-8",
    )
    return path


class TestSend:
    """Tests for the snapshot and step commands."""

    def test_snapshot(self, collector: str, collector_requests, snapshot_file: Path) -> None:
        assert main(["snapshot", str(snapshot_file), "--host", collector]) == EXIT_OK

        assert len(collector_requests) == 1
        assert collector_requests[0]["path"] == "/instances/snapshot"
        assert collector_requests[0]["json"] == json.loads(snapshot_file.read_text(encoding="utf-8"))

    def test_step(self, collector: str, collector_requests, step_file: Path) -> None:
        assert main(["--json-logs", "step", str(step_file), "--host", collector]) == EXIT_OK

        assert collector_requests[0]["path"] == "/instances/steps"
        assert collector_requests[0]["json"] == json.loads(step_file.read_text(encoding="utf-8"))

    def test_host_from_environment(
        self, monkeypatch: pytest.MonkeyPatch, collector: str, collector_requests, step_file: Path
    ) -> None:
        monkeypatch.setenv("FLOWTRAIL_RECORDER_HOST", collector)

        assert main(["step", str(step_file)]) == EXIT_OK
        assert len(collector_requests) == 1

    def test_rejected_record_fails(self, collector_statuses, collector: str, snapshot_file: Path) -> None:
        collector_statuses["/instances/snapshot"] = [500]

        assert main(["snapshot", str(snapshot_file), "--host", collector]) == EXIT_FAILED

    def test_retries_flag(self, collector_statuses, collector: str, collector_requests, snapshot_file: Path) -> None:
        collector_statuses["/instances/snapshot"] = [503]

        assert main(["-v", "snapshot", str(snapshot_file), "--host", collector, "--retries", "2"]) == EXIT_OK
        assert len(collector_requests) == 2

    def test_missing_host_is_a_config_error(self, snapshot_file: Path) -> None:
        assert main(["snapshot", str(snapshot_file)]) == EXIT_CONFIG

    def test_document_missing_data_key(self, collector: str, collector_requests, snapshot_file: Path) -> None:
        assert main(["step", str(snapshot_file), "--host", collector]) == EXIT_FAILED
        assert collector_requests == []

    def test_missing_document(self, collector: str, tmp_path: Path) -> None:
        assert main(["snapshot", str(tmp_path / "absent.json"), "--host", collector]) == EXIT_FAILED


class TestCheckConfig:
    """Tests for the check-config command."""

    def test_prints_resolved_collector(self, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(["check-config", "--host", "collector", "--port", "9090", "--timeout", "2.5"])

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "http://collector:9090" in out
        assert "2.5s" in out
        assert "Failure policy: log" in out

    def test_invalid_configuration(self, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(["check-config", "--host", "collector"])

        assert code == EXIT_CONFIG
        assert "port" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()
