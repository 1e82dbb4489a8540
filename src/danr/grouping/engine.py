"""
ANR deduplication and clustering.

Every incoming ANR report goes through :meth:`ANRGroupingEngine.create_or_update_anr`:

1. The main thread trace is hashed.
2. If an ANR with that hash exists, its occurrence count is bumped and the
   call returns; grouping is not revisited.
3. Otherwise a new record is stored and assigned to a group: a group whose
   representative hash matches, else the first group (in insertion order)
   whose first member is at least ``similarity_threshold`` percent Jaccard
   similar, else a brand new group.

The first-match policy is deliberate and reproducible; no best-match search
is done across groups. Steps 1-3 run under a single lock so two concurrent
reports of a new pattern cannot create two groups.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..models.anr import ANRGroup, ANRRecord, AppInfo, DeviceInfo, ThreadInfo, parse_datetime
from ..validation import NotFoundError, ValidationError
from .repository import ANRRepository
from .similarity import (
    PATTERN_DEPTH,
    SIMILARITY_THRESHOLD,
    calculate_similarity,
    extract_stack_trace_pattern,
    generate_stack_trace_hash,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _check_report_sections(anr_data: Mapping[str, Any]) -> None:
    """Reject info blocks and thread lists that are not JSON objects."""
    for section in ("deviceInfo", "appInfo"):
        value = anr_data.get(section)
        if value is not None and not isinstance(value, Mapping):
            raise ValidationError(
                f"{section} must be an object, got {type(value).__name__}",
                field_name=section,
                value=value,
            )

    all_threads = anr_data.get("allThreads")
    if all_threads is None:
        return
    if not isinstance(all_threads, list) or not all(isinstance(t, Mapping) for t in all_threads):
        raise ValidationError(
            "allThreads must be a list of thread objects",
            field_name="allThreads",
            value=all_threads,
        )


class ANRGroupingEngine:
    """
    Assigns ANR occurrences to records and groups.

    Args:
        repository: Storage for records and groups
        similarity_threshold: Jaccard percentage needed to join a group
        pattern_depth: Frames used for a new group's label
        clock: Returns the current time; injectable for tests
    """

    def __init__(
        self,
        repository: ANRRepository,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        pattern_depth: int = PATTERN_DEPTH,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.repository = repository
        self.similarity_threshold = similarity_threshold
        self.pattern_depth = pattern_depth
        self._clock = clock
        self._lock = threading.Lock()

    def create_or_update_anr(self, anr_data: Mapping[str, Any]) -> ANRRecord:
        """
        Record one ANR occurrence.

        Args:
            anr_data: Report in wire format (``mainThread``, ``allThreads``,
                ``deviceInfo``, ``appInfo``, ``timestamp``, ``duration``)

        Returns:
            The new or updated ANR record

        Raises:
            ValidationError: If main thread data is missing or any part of the
                report has the wrong JSON type
        """
        if not isinstance(anr_data, Mapping):
            raise ValidationError("ANR report must be an object", field_name="body")
        main_thread_data = anr_data.get("mainThread")
        if not isinstance(main_thread_data, Mapping) or not main_thread_data:
            raise ValidationError("Main thread data is required", field_name="mainThread")
        stack_trace = main_thread_data.get("stackTrace")
        if not isinstance(stack_trace, list) or not all(isinstance(f, str) for f in stack_trace):
            raise ValidationError(
                "Main thread stack trace must be a list of frames",
                field_name="mainThread.stackTrace",
                value=stack_trace,
            )
        _check_report_sections(anr_data)
        timestamp = parse_datetime(anr_data.get("timestamp"), field_name="timestamp")

        stack_trace_hash = generate_stack_trace_hash(stack_trace)

        with self._lock:
            existing = self.repository.find_anr_by_hash(stack_trace_hash)
            if existing is not None:
                existing.occurrence_count += 1
                existing.last_occurrence = self._clock()
                self.repository.save_anr(existing)
                logger.debug(
                    f"ANR {existing.anr_id} seen again ({existing.occurrence_count} occurrences)"
                )
                return existing

            anr = self._build_record(anr_data, main_thread_data, stack_trace_hash, timestamp)
            self.repository.save_anr(anr)
            self._assign_to_group(anr)

        logger.info(f"Recorded new ANR {anr.anr_id} in group {anr.group_id}")
        return anr

    def _build_record(
        self,
        anr_data: Mapping[str, Any],
        main_thread_data: Mapping[str, Any],
        stack_trace_hash: str,
        timestamp: Optional[datetime],
    ) -> ANRRecord:
        now = self._clock()
        return ANRRecord(
            anr_id=uuid.uuid4().hex,
            timestamp=timestamp or now,
            duration=anr_data.get("duration", 0),
            main_thread=ThreadInfo.from_dict(main_thread_data),
            all_threads=[ThreadInfo.from_dict(t) for t in anr_data.get("allThreads") or []],
            device_info=DeviceInfo.from_dict(anr_data.get("deviceInfo")),
            app_info=AppInfo.from_dict(anr_data.get("appInfo")),
            stack_trace_hash=stack_trace_hash,
            occurrence_count=1,
            first_occurrence=now,
            last_occurrence=now,
        )

    def _attach(self, group: ANRGroup, anr: ANRRecord) -> None:
        group.anr_ids.append(anr.anr_id)
        group.count = len(group.anr_ids)
        group.last_seen = self._clock()
        self.repository.save_group(group)

        anr.group_id = group.group_id
        self.repository.save_anr(anr)

    def _assign_to_group(self, anr: ANRRecord) -> None:
        group = self.repository.find_group_by_hash(anr.stack_trace_hash)
        if group is not None:
            self._attach(group, anr)
            return

        # O(groups) scan, each comparing against the group's first member.
        for group in self.repository.list_groups():
            if not group.anr_ids:
                continue
            representative = self.repository.get_anr(group.anr_ids[0])
            if representative is None:
                continue

            similarity = calculate_similarity(
                anr.main_thread.stack_trace,
                representative.main_thread.stack_trace,
            )
            if similarity >= self.similarity_threshold:
                logger.debug(
                    f"ANR {anr.anr_id} joins group {group.group_id} ({similarity:.1f}% similar)"
                )
                self._attach(group, anr)
                return

        now = self._clock()
        new_group = ANRGroup(
            group_id=uuid.uuid4().hex,
            stack_trace_pattern=extract_stack_trace_pattern(
                anr.main_thread.stack_trace, self.pattern_depth
            ),
            stack_trace_hash=anr.stack_trace_hash,
            first_seen=now,
            last_seen=now,
            anr_ids=[anr.anr_id],
            count=1,
            similarity=100.0,
        )
        self.repository.save_group(new_group)

        anr.group_id = new_group.group_id
        self.repository.save_anr(anr)

    def delete_anr(self, anr_id: str) -> None:
        """
        Delete an ANR and detach it from its group.

        A group left without members is deleted.

        Raises:
            NotFoundError: If no ANR has this id
        """
        with self._lock:
            anr = self.repository.get_anr(anr_id)
            if anr is None:
                raise NotFoundError("ANR", anr_id)

            if anr.group_id:
                group = self.repository.get_group(anr.group_id)
                if group is not None:
                    group.anr_ids = [member for member in group.anr_ids if member != anr_id]
                    group.count = len(group.anr_ids)
                    if group.count == 0:
                        self.repository.delete_group(group.group_id)
                        logger.debug(f"Deleted empty group {group.group_id}")
                    else:
                        self.repository.save_group(group)

            self.repository.delete_anr(anr_id)

    def delete_all(self) -> None:
        """Delete every ANR and group."""
        with self._lock:
            self.repository.clear()

    def get_anr(self, anr_id: str) -> Optional[ANRRecord]:
        return self.repository.get_anr(anr_id)

    def get_groups(self) -> List[ANRGroup]:
        """Groups ordered by member count, largest first."""
        return sorted(self.repository.list_groups(), key=lambda g: g.count, reverse=True)

    def get_group_members(self, group_id: str) -> List[ANRRecord]:
        """
        Records belonging to a group, in the order they joined.

        Raises:
            NotFoundError: If no group has this id
        """
        group = self.repository.get_group(group_id)
        if group is None:
            raise NotFoundError("ANR group", group_id)
        members = (self.repository.get_anr(anr_id) for anr_id in group.anr_ids)
        return [member for member in members if member is not None]

    def stats(self) -> Dict[str, int]:
        anrs = self.repository.list_anrs()
        return {
            "distinct_anrs": len(anrs),
            "occurrences": sum(a.occurrence_count for a in anrs),
            "groups": len(self.repository.list_groups()),
        }
