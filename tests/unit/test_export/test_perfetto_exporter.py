"""
Unit tests for the Chrome Trace / Perfetto exporter.

Timestamps are microseconds relative to the session start; consecutive
appearances of a frame are merged into one complete event.
"""

import json

import pytest

from danr.export import PerfettoExporter, export_to_perfetto_json, export_to_perfetto_json_minified
from danr.models import ProfileSample, ProfileSession


def _session(samples, interval_ms=50, start_time=1_000, end_time=2_000):
    return ProfileSession(
        session_id="trace-1",
        device_id="device-1",
        start_time=start_time,
        end_time=end_time,
        sampling_interval_ms=interval_ms,
        total_samples=len(samples),
        samples=[ProfileSample.from_dict(s) for s in samples],
    )


def _events(document, ph, name=None):
    return [
        e for e in document["traceEvents"]
        if e["ph"] == ph and (name is None or e["name"] == name)
    ]


@pytest.mark.unit
class TestSpanMerging:
    """Test cases for merging sampled frames into spans."""

    def test_consecutive_samples_merge(self, test_utils):
        """Test three samples 50ms apart producing one 150ms span."""
        samples = [
            test_utils.sample(ts, [test_utils.thread(1, "main", ["com.example.A.run(A.java:1)"])])
            for ts in (1_000, 1_050, 1_100)
        ]
        document = PerfettoExporter().export(_session(samples))

        spans = _events(document, "X")
        assert len(spans) == 1
        span = spans[0]
        assert span["name"] == "com.example.A.run"
        assert span["ts"] == 0
        assert span["dur"] == (100_000 - 0) + 50_000
        assert span["cat"] == "cpu"
        assert span["pid"] == 1
        assert span["tid"] == 1
        assert span["args"] == {
            "depth": 0,
            "lastState": "RUNNABLE",
            "fullFrame": "com.example.A.run(A.java:1)",
            "estimated": True,
        }

    def test_gap_splits_span(self, test_utils):
        """Test that a gap over 2.5 intervals starts a new span."""
        samples = [
            test_utils.sample(ts, [test_utils.thread(1, "main", ["A.run()"])])
            for ts in (1_000, 1_200)
        ]
        document = PerfettoExporter().export(_session(samples))

        spans = _events(document, "X", "A.run")
        assert [(s["ts"], s["dur"]) for s in spans] == [(0, 50_000), (200_000, 50_000)]

    def test_gap_within_threshold_keeps_span(self, test_utils):
        """Test that a gap of exactly 2.5 intervals still continues the span."""
        samples = [
            test_utils.sample(ts, [test_utils.thread(1, "main", ["A.run()"])])
            for ts in (1_000, 1_125)
        ]
        document = PerfettoExporter().export(_session(samples))

        spans = _events(document, "X", "A.run")
        assert [(s["ts"], s["dur"]) for s in spans] == [(0, 175_000)]

    def test_gap_multiplier_is_configurable(self, test_utils):
        """Test a stricter gap multiplier."""
        samples = [
            test_utils.sample(ts, [test_utils.thread(1, "main", ["A.run()"])])
            for ts in (1_000, 1_125)
        ]
        document = PerfettoExporter(gap_multiplier=1.5).export(_session(samples))

        assert len(_events(document, "X", "A.run")) == 2

    def test_absent_frame_closes_span(self, test_utils):
        """Test that a frame missing from the next sample is closed there."""
        samples = [
            test_utils.sample(1_000, [test_utils.thread(1, "main", ["Leaf.work()", "Root.main()"])]),
            test_utils.sample(1_050, [test_utils.thread(1, "main", ["Root.main()"], state="BLOCKED")]),
        ]
        document = PerfettoExporter().export(_session(samples))

        leaf = _events(document, "X", "Leaf.work")
        root = _events(document, "X", "Root.main")
        assert [(s["ts"], s["dur"], s["args"]["depth"]) for s in leaf] == [(0, 50_000, 1)]
        assert [(s["ts"], s["dur"], s["args"]["depth"]) for s in root] == [(0, 100_000, 0)]
        assert root[0]["args"]["lastState"] == "BLOCKED"

    def test_same_frame_at_other_depth_is_separate(self, test_utils):
        """Test that the span key includes the depth."""
        samples = [
            test_utils.sample(1_000, [test_utils.thread(1, "main", ["X.f()"])]),
            test_utils.sample(1_050, [test_utils.thread(1, "main", ["X.f()", "Y.g()"])]),
        ]
        document = PerfettoExporter().export(_session(samples))

        depths = sorted(s["args"]["depth"] for s in _events(document, "X", "X.f"))
        assert depths == [0, 1]

    def test_threads_do_not_close_each_other(self, java_session):
        """Test that a missing thread keeps its spans open until the end."""
        document = PerfettoExporter().export(java_session)

        thread_run = _events(document, "X", "java.lang.Thread.run")
        assert [(s["tid"], s["ts"], s["dur"]) for s in thread_run] == [(7, 0, 100_000)]
        db_query = _events(document, "X", "com.example.Db.query")
        assert [(s["ts"], s["dur"]) for s in db_query] == [(0, 100_000)]
        looper = _events(document, "X", "android.os.Looper.loop")
        assert [(s["ts"], s["dur"]) for s in looper] == [(0, 150_000)]

    def test_fractional_interval(self, test_utils):
        """Test that whole microsecond values stay integers."""
        samples = [test_utils.sample(1_000, [test_utils.thread(1, "main", ["A.run()"])])]
        document = PerfettoExporter().export(_session(samples, interval_ms=50.0))

        assert _events(document, "X")[0]["dur"] == 50_000
        assert isinstance(_events(document, "X")[0]["dur"], int)


@pytest.mark.unit
class TestTraceEvents:
    """Test cases for metadata and counter events."""

    def test_metadata_events(self, java_session):
        """Test process, session and thread metadata."""
        document = PerfettoExporter().export(java_session)

        process = _events(document, "M", "process_name")
        assert len(process) == 1
        assert process[0]["args"] == {"name": "DANR Profiled App"}

        info = _events(document, "M", "session_info")[0]["args"]
        assert info["sessionId"] == "session-java-1"
        assert info["deviceId"] == "device-1"
        assert info["samplingIntervalMs"] == 50
        assert info["totalSamples"] == 3
        assert info["note"] == "Durations are estimated from sampling data"

        threads = {e["tid"]: e["args"]["name"] for e in _events(document, "M", "thread_name")}
        assert threads == {1: "main", 7: "worker"}

    def test_counter_events(self, java_session):
        """Test per-thread and system CPU counters."""
        document = PerfettoExporter().export(java_session)

        main_cpu = _events(document, "C", "CPU % (main)")
        assert [(e["ts"], e["args"]["value"]) for e in main_cpu] == [(0, 40.0), (50_000, 60.0)]
        assert all(e["cat"] == "cpu" and e["tid"] == 1 for e in main_cpu)

        system = _events(document, "C", "System CPU")
        assert [e["ts"] for e in system] == [0, 100_000]
        assert system[0]["tid"] == 0
        assert system[0]["cat"] == "system"
        assert system[0]["args"] == {"user": 20.0, "system": 5.0, "iowait": 1.0}

    def test_events_sorted_by_timestamp(self, java_session):
        """Test the global ordering."""
        events = PerfettoExporter().export(java_session)["traceEvents"]
        timestamps = [e["ts"] for e in events]

        assert timestamps == sorted(timestamps)
        assert events[0]["name"] == "process_name"

    def test_custom_process_identity(self, java_session):
        """Test overriding pid and process name."""
        document = PerfettoExporter(pid=42, process_name="My App").export(java_session)

        assert {e["pid"] for e in document["traceEvents"]} == {42}
        assert _events(document, "M", "process_name")[0]["args"]["name"] == "My App"

    def test_top_level_metadata(self, java_session):
        """Test the document metadata map."""
        document = PerfettoExporter().export(java_session)

        assert document["displayTimeUnit"] == "ms"
        metadata = document["metadata"]
        assert metadata["danr-session-id"] == "session-java-1"
        assert metadata["danr-device-id"] == "device-1"
        assert metadata["profile-start"] == "1970-01-01T00:00:01.000Z"
        assert metadata["profile-end"] == "1970-01-01T00:00:01.150Z"
        assert metadata["sampling-interval-ms"] == 50
        assert metadata["total-samples"] == 3
        assert metadata["has-root"] is False
        assert "sampled data" in metadata["note"]

    def test_unsorted_samples(self, test_utils):
        """Test that samples are processed in timestamp order."""
        samples = [
            test_utils.sample(ts, [test_utils.thread(1, "main", ["A.run()"])])
            for ts in (1_100, 1_000, 1_050)
        ]
        document = PerfettoExporter().export(_session(samples))

        assert [(s["ts"], s["dur"]) for s in _events(document, "X")] == [(0, 150_000)]


@pytest.mark.unit
class TestJsonOutput:
    """Test cases for JSON serialization."""

    def test_pretty_and_minified_are_equivalent(self, java_session):
        """Test that the variants differ only in whitespace."""
        pretty = export_to_perfetto_json(java_session)
        minified = export_to_perfetto_json_minified(java_session)

        assert "\n  " in pretty
        assert "\n" not in minified
        assert len(minified) < len(pretty)
        assert json.loads(pretty) == json.loads(minified)

    def test_custom_exporter(self, java_session):
        """Test passing a configured exporter."""
        text = export_to_perfetto_json(java_session, exporter=PerfettoExporter(pid=9))
        assert {e["pid"] for e in json.loads(text)["traceEvents"]} == {9}
