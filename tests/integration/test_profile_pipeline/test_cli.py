"""
Integration tests for the danr command-line interface.
"""

import gzip
import json

import pytest

from danr.cli.main import main_cli


@pytest.fixture
def upload_file(temp_dir, java_session_payload):
    path = temp_dir / "upload.json.gz"
    path.write_bytes(gzip.compress(json.dumps(java_session_payload).encode("utf-8")))
    return path


def _run(capsys, *argv):
    main_cli(list(argv))
    return json.loads(capsys.readouterr().out)


@pytest.mark.integration
class TestCli:
    """Integration tests for the CLI subcommands."""

    def test_ingest_then_query(self, capsys, config_file, upload_file):
        """Test ingesting an upload and querying it in later invocations."""
        ingest = _run(
            capsys, "--config", str(config_file),
            "ingest", str(upload_file), "--device-id", "device-1", "--session-id", "session-java-1",
        )
        assert ingest["data"]["totalSamples"] == 3

        top = _run(capsys, "--config", str(config_file), "top-functions", "session-java-1", "--limit", "2")
        assert len(top["data"]) == 2

        summary = _run(capsys, "--config", str(config_file), "thread-summary", "session-java-1")
        assert summary["data"][0]["threadName"] == "main"

        sessions = _run(capsys, "--config", str(config_file), "sessions")
        assert sessions["data"]["total"] == 1

    def test_export_to_file(self, capsys, config_file, upload_file, temp_dir):
        """Test writing the Perfetto JSON to --output."""
        main_cli([
            "--config", str(config_file),
            "ingest", str(upload_file), "--device-id", "device-1", "--session-id", "session-java-1",
        ])
        capsys.readouterr()

        output = temp_dir / "out" / "trace.json"
        main_cli(["--config", str(config_file), "-o", str(output), "export", "session-java-1", "--minified"])

        document = json.loads(output.read_text(encoding="utf-8"))
        assert document["displayTimeUnit"] == "ms"

    def test_data_dir_override(self, capsys, config_file, upload_file, temp_dir):
        """Test that --data-dir replaces the configured directory."""
        other_dir = temp_dir / "elsewhere"
        main_cli([
            "--config", str(config_file), "--data-dir", str(other_dir),
            "ingest", str(upload_file), "--device-id", "device-1", "--session-id", "session-java-1",
        ])

        assert (other_dir / "session-java-1.samples.gz").exists()

    def test_unknown_session_exits_with_error(self, config_file):
        """Test the exit code of a failed operation."""
        with pytest.raises(SystemExit) as exc_info:
            main_cli(["--config", str(config_file), "flamegraph", "missing"])

        assert exc_info.value.code == 1

    def test_missing_upload_file(self, config_file, temp_dir):
        """Test ingesting a file that does not exist."""
        with pytest.raises(SystemExit) as exc_info:
            main_cli([
                "--config", str(config_file),
                "ingest", str(temp_dir / "nope.json"), "--device-id", "d", "--session-id", "s",
            ])

        assert exc_info.value.code == 1

    def test_anr_group(self, capsys, config_file, temp_dir, test_utils):
        """Test grouping ANR report files."""
        reports = temp_dir / "anrs.json"
        reports.write_text(json.dumps([
            test_utils.anr_report(["at A.b()", "at C.d()"]),
            test_utils.anr_report(["at A.b()", "at C.d()"]),
            test_utils.anr_report(["at X.y()"]),
            {"deviceInfo": {}},
        ]))

        result = _run(capsys, "--config", str(config_file), "anr-group", str(reports))

        assert sorted(g["count"] for g in result["data"]) == [1, 1]
        assert result["success"] is True
