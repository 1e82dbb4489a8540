"""
Unit tests for the ANR query boundary.
"""

import pytest

from danr.grouping import ANRGroupingEngine, InMemoryANRRepository
from danr.models import AppConfig
from danr.service import ANRService


@pytest.fixture
def service():
    return ANRService(ANRGroupingEngine(InMemoryANRRepository()))


@pytest.mark.unit
class TestANRService:
    """Test cases for ANRService."""

    def test_submit_and_list_groups(self, service, test_utils):
        """Test a successful submission."""
        result = service.submit_anr(test_utils.anr_report(["at A.b()"]))

        assert result.success
        assert result.to_dict()["data"]["occurrenceCount"] == 1
        groups = service.list_groups().data
        assert len(groups) == 1
        assert groups[0]["count"] == 1

    def test_submit_invalid_report(self, service):
        """Test that validation errors become failed results."""
        result = service.submit_anr({})

        assert not result.success
        assert "Main thread data is required" in result.message

    def test_get_and_delete(self, service, test_utils):
        """Test lookup and deletion of a single ANR."""
        anr = service.submit_anr(test_utils.anr_report(["at A.b()"])).data

        assert service.get_anr(anr.anr_id).success
        assert service.delete_anr(anr.anr_id).message == "ANR deleted successfully"
        assert service.get_anr(anr.anr_id).message == "ANR not found"
        assert service.list_groups().data == []

    def test_delete_unknown(self, service):
        """Test deleting an unknown id."""
        result = service.delete_anr("nope")

        assert not result.success
        assert result.message == "ANR not found: nope"

    def test_list_anrs_paging(self, service, test_utils):
        """Test the listing envelope."""
        for i in range(3):
            service.submit_anr(test_utils.anr_report([f"at F.m{i}()"]))

        result = service.list_anrs(limit=2, skip=2)
        assert result.data["total"] == 3
        assert len(result.data["anrs"]) == 1
        assert result.data["page"] == 2
        assert result.data["pageSize"] == 2

    def test_list_anrs_invalid_sort(self, service):
        """Test that an invalid sort is a failed result."""
        assert not service.list_anrs(sort="bogus").success

    def test_group_members(self, service, test_utils):
        """Test resolving group members."""
        anr = service.submit_anr(test_utils.anr_report(["at A.b()"])).data

        members = service.get_group_members(anr.group_id)
        assert [m["id"] for m in members.data] == [anr.anr_id]
        assert not service.get_group_members("missing").success

    def test_delete_all_and_analytics(self, service, test_utils):
        """Test clearing and the analytics payload."""
        service.submit_anr(test_utils.anr_report(["at A.b()"]))
        assert service.analytics().data["totalANRs"] == 1

        assert service.delete_all_anrs().success
        assert service.analytics().data["totalANRs"] == 0

    def test_from_config(self):
        """Test grouping settings taken from configuration."""
        config = AppConfig()
        config.grouping.similarity_threshold = 30.0
        service = ANRService.from_config(config)

        assert service.engine.similarity_threshold == 30.0


@pytest.mark.unit
class TestMalformedReports:
    """Test that malformed ANR reports come back as failed results."""

    @pytest.mark.parametrize("report", [
        {"mainThread": {"stackTrace": ["at A.b()"]}, "deviceInfo": "pixel"},
        {"mainThread": {"stackTrace": ["at A.b()"]}, "appInfo": ["com.example"]},
        {"mainThread": {"stackTrace": ["at A.b()"]}, "timestamp": "not-a-date"},
        {"mainThread": {"stackTrace": [1, 2]}},
        {"mainThread": {"stackTrace": ["at A.b()"]}, "allThreads": "main"},
        {"mainThread": "main"},
        "not a report",
    ])
    def test_submit_fails_without_raising(self, service, report):
        """Test that every malformed report yields success=False."""
        result = service.submit_anr(report)

        assert result.success is False
        assert result.message
        assert service.analytics().data["totalANRs"] == 0

    def test_list_anrs_with_bad_filters(self, service, test_utils):
        """Test that invalid filters are failed results."""
        service.submit_anr(test_utils.anr_report(["at A.b()"]))

        assert service.list_anrs(device_model="(").success is False
        assert service.list_anrs(start_date="yesterday").success is False
