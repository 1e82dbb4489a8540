"""
ANR report and ANR group data models.

An :class:`ANRRecord` is one distinct ANR (keyed by the hash of its main
thread stack trace) and counts how often it occurred. An :class:`ANRGroup`
clusters distinct ANRs whose main thread traces are similar.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..validation import ValidationError


def parse_datetime(value: Any, field_name: str = "timestamp") -> Optional[datetime]:
    """
    Accept datetimes, epoch milliseconds or ISO 8601 strings.

    Results without an offset are taken as UTC.

    Raises:
        ValidationError: If the value is not a recognizable timestamp
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(
                f"{field_name} is not an ISO 8601 timestamp: {value!r}",
                field_name=field_name,
                value=value,
            )
    else:
        raise ValidationError(
            f"{field_name} must be a timestamp, got {type(value).__name__}",
            field_name=field_name,
            value=value,
        )
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class ThreadInfo:
    """A thread as captured in an ANR report."""

    name: str
    id: int
    state: str
    stack_trace: List[str]
    is_main_thread: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThreadInfo":
        return cls(
            name=data.get("name", ""),
            id=data.get("id", 0),
            state=data.get("state", ""),
            stack_trace=list(data.get("stackTrace") or []),
            is_main_thread=bool(data.get("isMainThread", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "state": self.state,
            "stackTrace": list(self.stack_trace),
            "isMainThread": self.is_main_thread,
        }


@dataclass
class DeviceInfo:
    manufacturer: str = ""
    model: str = ""
    os_version: str = ""
    sdk_version: int = 0
    total_ram: int = 0
    available_ram: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DeviceInfo":
        data = data or {}
        return cls(
            manufacturer=data.get("manufacturer", ""),
            model=data.get("model", ""),
            os_version=data.get("osVersion", ""),
            sdk_version=data.get("sdkVersion", 0),
            total_ram=data.get("totalRam", 0),
            available_ram=data.get("availableRam", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "manufacturer": self.manufacturer,
            "model": self.model,
            "osVersion": self.os_version,
            "sdkVersion": self.sdk_version,
            "totalRam": self.total_ram,
            "availableRam": self.available_ram,
        }


@dataclass
class AppInfo:
    package_name: str = ""
    version_name: str = ""
    version_code: int = 0
    is_in_foreground: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AppInfo":
        data = data or {}
        return cls(
            package_name=data.get("packageName", ""),
            version_name=data.get("versionName", ""),
            version_code=data.get("versionCode", 0),
            is_in_foreground=bool(data.get("isInForeground", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packageName": self.package_name,
            "versionName": self.version_name,
            "versionCode": self.version_code,
            "isInForeground": self.is_in_foreground,
        }


@dataclass
class ANRRecord:
    """
    A distinct ANR.

    ``stack_trace_hash`` is a pure function of ``main_thread.stack_trace``;
    repeated submissions with the same hash only bump ``occurrence_count``.
    """

    anr_id: str
    timestamp: datetime
    main_thread: ThreadInfo
    stack_trace_hash: str
    first_occurrence: datetime
    last_occurrence: datetime
    duration: int = 0
    all_threads: List[ThreadInfo] = field(default_factory=list)
    device_info: DeviceInfo = field(default_factory=DeviceInfo)
    app_info: AppInfo = field(default_factory=AppInfo)
    occurrence_count: int = 1
    group_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.anr_id,
            "timestamp": format_datetime(self.timestamp),
            "duration": self.duration,
            "mainThread": self.main_thread.to_dict(),
            "allThreads": [t.to_dict() for t in self.all_threads],
            "deviceInfo": self.device_info.to_dict(),
            "appInfo": self.app_info.to_dict(),
            "stackTraceHash": self.stack_trace_hash,
            "groupId": self.group_id,
            "occurrenceCount": self.occurrence_count,
            "firstOccurrence": format_datetime(self.first_occurrence),
            "lastOccurrence": format_datetime(self.last_occurrence),
        }


@dataclass
class ANRGroup:
    """
    A cluster of similar ANRs.

    ``stack_trace_hash`` is the hash of the representative (first) ANR and
    ``count`` always equals ``len(anr_ids)``.
    """

    group_id: str
    stack_trace_pattern: str
    stack_trace_hash: str
    first_seen: datetime
    last_seen: datetime
    anr_ids: List[str] = field(default_factory=list)
    count: int = 0
    similarity: float = 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.group_id,
            "stackTracePattern": self.stack_trace_pattern,
            "stackTraceHash": self.stack_trace_hash,
            "count": self.count,
            "firstSeen": format_datetime(self.first_seen),
            "lastSeen": format_datetime(self.last_seen),
            "anrIds": list(self.anr_ids),
            "similarity": self.similarity,
        }


__all__ = [
    "ANRGroup",
    "ANRRecord",
    "AppInfo",
    "DeviceInfo",
    "ThreadInfo",
    "format_datetime",
    "parse_datetime",
]
