"""
Unit tests for the session metadata catalog.
"""

import pytest

from danr.models import ProfilerType, ProfileSession
from danr.storage import SessionCatalog


def _session(session_id, device_id="device-1", start_time=0, **kwargs):
    return ProfileSession(
        session_id=session_id,
        device_id=device_id,
        start_time=start_time,
        end_time=start_time + 1000,
        sampling_interval_ms=50,
        **kwargs,
    )


@pytest.mark.unit
class TestSessionCatalog:
    """Test cases for SessionCatalog."""

    def test_add_strips_samples(self, java_session):
        """Test that only metadata is kept."""
        catalog = SessionCatalog()
        catalog.add(java_session)

        stored = catalog.get(java_session.session_id)
        assert stored.samples == []
        assert stored.total_samples == java_session.total_samples

    def test_list_newest_first_with_device_filter(self):
        """Test ordering, filtering and paging."""
        catalog = SessionCatalog()
        catalog.add(_session("old", start_time=1))
        catalog.add(_session("new", start_time=3))
        catalog.add(_session("other", device_id="device-2", start_time=2))

        assert [s.session_id for s in catalog.list()] == ["new", "other", "old"]
        assert [s.session_id for s in catalog.list("device-1")] == ["new", "old"]
        assert [s.session_id for s in catalog.list(limit=1, skip=1)] == ["other"]
        assert catalog.count("device-1") == 2

    def test_remove(self):
        """Test removing known and unknown ids."""
        catalog = SessionCatalog()
        catalog.add(_session("a"))

        assert catalog.remove("a") is True
        assert catalog.remove("a") is False
        assert catalog.get("a") is None

    def test_index_persists(self, temp_dir):
        """Test reloading the catalog from its JSON index."""
        index_path = temp_dir / "index" / "sessions.json"
        catalog = SessionCatalog(index_path)
        catalog.add(_session("native-1", profiler_type=ProfilerType.SIMPLEPERF, has_root=True))

        reloaded = SessionCatalog(index_path)
        session = reloaded.get("native-1")
        assert session is not None
        assert session.profiler_type is ProfilerType.SIMPLEPERF
        assert session.has_root is True
        assert reloaded.session_ids() == ["native-1"]

    def test_clear(self, temp_dir):
        """Test clearing the catalog and its index."""
        index_path = temp_dir / "sessions.json"
        catalog = SessionCatalog(index_path)
        catalog.add(_session("a"))
        catalog.clear()

        assert SessionCatalog(index_path).count() == 0
