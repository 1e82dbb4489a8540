"""
Unit tests for top functions, thread summaries, native functions and timelines.
"""

import pytest

from danr.analysis import (
    create_timeline_summary,
    get_native_functions,
    get_thread_summary,
    get_top_functions,
    parse_native_functions,
    samples_to_frame_table,
)
from danr.models import ProfileSample


@pytest.fixture
def simpleperf_samples(simpleperf_samples_payload):
    return [ProfileSample.from_dict(s) for s in simpleperf_samples_payload]


@pytest.mark.unit
class TestTopFunctions:
    """Test cases for get_top_functions."""

    def test_counts_every_frame(self, java_session):
        """Test counts and ordering."""
        top = get_top_functions(java_session.samples)

        assert {t.name for t in top[:2]} == {"com.example.Repo.load", "android.os.Looper.loop"}
        assert [t.count for t in top] == [3, 3, 2, 2, 2]

    def test_percentages_sum_to_100(self, java_session):
        """Test that percentages cover all frames when nothing is cut."""
        top = get_top_functions(java_session.samples, limit=100)

        assert sum(t.percentage for t in top) == pytest.approx(100.0)
        assert top[0].percentage == pytest.approx(3 / 12 * 100)

    def test_limit(self, java_session):
        """Test truncation to the requested size."""
        assert len(get_top_functions(java_session.samples, limit=2)) == 2

    def test_empty(self):
        """Test that no frames means no functions."""
        assert get_top_functions([]) == []

    def test_frame_table_shape(self, java_session):
        """Test the flattened frame table."""
        table = samples_to_frame_table(java_session.samples)

        assert table.height == 12
        assert table.columns == [
            "sample_index", "timestamp", "thread_id", "thread_name", "depth", "frame", "function",
        ]


@pytest.mark.unit
class TestThreadSummary:
    """Test cases for get_thread_summary."""

    def test_cpu_average_and_states(self, java_session):
        """Test per-thread averages and state histograms."""
        summaries = get_thread_summary(java_session.samples)

        assert [s.thread_name for s in summaries] == ["main", "worker"]
        main, worker = summaries
        assert main.avg_cpu_usage == pytest.approx(50.0)
        assert [(s.state, s.count) for s in main.states] == [("RUNNABLE", 2), ("BLOCKED", 1)]
        assert worker.avg_cpu_usage == pytest.approx(0.0)
        assert [(s.state, s.count) for s in worker.states] == [("WAITING", 2)]

    def test_no_cpu_data(self, test_utils):
        """Test that a thread without CPU readings averages to None."""
        samples = [
            ProfileSample.from_dict(test_utils.sample(1, [test_utils.thread(3, "bg", ["f"])])),
        ]
        summary = get_thread_summary(samples)[0]

        assert summary.avg_cpu_usage is None
        assert summary.to_dict()["avgCpuUsage"] is None

    def test_empty(self):
        """Test that no samples means no threads."""
        assert get_thread_summary([]) == []


@pytest.mark.unit
class TestNativeFunctions:
    """Test cases for simpleperf native function parsing."""

    def test_parse_and_sort(self, simpleperf_samples):
        """Test parsing, fallback and ordering."""
        functions = get_native_functions(simpleperf_samples)

        assert [(f.name, f.dso, f.percentage) for f in functions] == [
            ("memcpy", "libc.so", 12.5),
            ("art::GC::Collect", "libart.so", 4.45),
            ("weird frame without percentage", "libfoo.so", 0.0),
        ]

    def test_limit_keeps_total(self, simpleperf_samples):
        """Test that the limit does not change the total count."""
        assert len(get_native_functions(simpleperf_samples, limit=1)) == 1
        assert len(parse_native_functions(simpleperf_samples)) == 3


@pytest.mark.unit
class TestTimelineSummary:
    """Test cases for create_timeline_summary."""

    def test_series(self, java_session):
        """Test every series of the timeline."""
        timeline = create_timeline_summary(java_session.samples)

        assert timeline.timestamps == [1_000, 1_050, 1_100]
        assert timeline.main_thread_cpu == [40.0, 60.0, None]
        assert timeline.system_cpu[0] == {"user": 20.0, "system": 5.0, "iowait": 1.0}
        assert timeline.system_cpu[1] == {"user": 0, "system": 0, "iowait": 0}
        assert timeline.thread_states == {
            "main": ["RUNNABLE", "RUNNABLE", "BLOCKED"],
            "worker": ["WAITING", "WAITING"],
        }
        assert timeline.to_dict()["mainThreadCpu"] == [40.0, 60.0, None]
