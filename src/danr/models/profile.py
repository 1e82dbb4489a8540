"""
Profiling data models.

These dataclasses mirror the JSON payload uploaded by the device SDK. Every
model converts to and from the camelCase wire representation with
``from_dict`` / ``to_dict``; optional keys that are absent on the wire stay
absent after a round trip.

For ``profilerType = "simpleperf"`` sessions the SDK reuses the thread
snapshot shape: ``threadName`` carries the shared object (DSO) name and
``stackFrames[0]`` is ``"<function> (<percentage>%)"``. The wire shape is kept
as is and :class:`NativeFunctionSample` provides the typed view.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# "functionName (4.45%)"
_NATIVE_FRAME_RE = re.compile(r"^(.+?)\s*\((\d+\.?\d*)%\)$")


class ProfilerType(str, Enum):
    """Profiler that produced a session."""

    JAVA = "java"
    SIMPLEPERF = "simpleperf"


@dataclass(frozen=True)
class ThreadCpuTime:
    """Per-thread CPU accounting captured alongside a snapshot."""

    user_time_jiffies: int
    kernel_time_jiffies: int
    cpu_usage_percent: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThreadCpuTime":
        return cls(
            user_time_jiffies=data.get("userTimeJiffies", 0),
            kernel_time_jiffies=data.get("kernelTimeJiffies", 0),
            cpu_usage_percent=data.get("cpuUsagePercent"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "userTimeJiffies": self.user_time_jiffies,
            "kernelTimeJiffies": self.kernel_time_jiffies,
        }
        if self.cpu_usage_percent is not None:
            result["cpuUsagePercent"] = self.cpu_usage_percent
        return result


@dataclass(frozen=True)
class SystemCpuInfo:
    """System-wide CPU split at the time of a sample."""

    user_percent: float
    system_percent: float
    iowait_percent: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SystemCpuInfo":
        return cls(
            user_percent=data.get("userPercent", 0),
            system_percent=data.get("systemPercent", 0),
            iowait_percent=data.get("iowaitPercent", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userPercent": self.user_percent,
            "systemPercent": self.system_percent,
            "iowaitPercent": self.iowait_percent,
        }


@dataclass(frozen=True)
class ThreadSnapshot:
    """
    State of one thread at one sampling instant.

    ``stack_frames`` is leaf-first: ``stack_frames[0]`` is the innermost frame.
    """

    thread_id: int
    thread_name: str
    state: str
    stack_frames: Tuple[str, ...] = ()
    is_main_thread: bool = False
    cpu_time: Optional[ThreadCpuTime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThreadSnapshot":
        cpu_time = data.get("cpuTime")
        return cls(
            thread_id=data.get("threadId", 0),
            thread_name=data.get("threadName", ""),
            state=data.get("state", ""),
            stack_frames=tuple(data.get("stackFrames") or ()),
            is_main_thread=bool(data.get("isMainThread", False)),
            cpu_time=ThreadCpuTime.from_dict(cpu_time) if cpu_time is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "threadId": self.thread_id,
            "threadName": self.thread_name,
            "state": self.state,
            "stackFrames": list(self.stack_frames),
            "isMainThread": self.is_main_thread,
        }
        if self.cpu_time is not None:
            result["cpuTime"] = self.cpu_time.to_dict()
        return result

    @property
    def cpu_usage_percent(self) -> Optional[float]:
        return self.cpu_time.cpu_usage_percent if self.cpu_time else None


@dataclass(frozen=True)
class NativeFunctionSample:
    """Typed view of a simpleperf entry carried in a ThreadSnapshot."""

    name: str
    dso: str
    percentage: float

    @classmethod
    def from_snapshot(cls, snapshot: ThreadSnapshot) -> Optional["NativeFunctionSample"]:
        """
        Parse ``"<function> (<pct>%)"`` from the first frame.

        Returns None when the snapshot carries no frames. A frame that does not
        match the expected shape is kept whole as the name with 0 percent.
        """
        if not snapshot.stack_frames:
            return None
        frame = snapshot.stack_frames[0]
        match = _NATIVE_FRAME_RE.match(frame)
        if match:
            return cls(
                name=match.group(1).strip(),
                dso=snapshot.thread_name,
                percentage=float(match.group(2)),
            )
        return cls(name=frame, dso=snapshot.thread_name, percentage=0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "dso": self.dso, "percentage": self.percentage}


@dataclass(frozen=True)
class ProfileSample:
    """All thread snapshots captured at one timestamp (epoch milliseconds)."""

    timestamp: int
    threads: Tuple[ThreadSnapshot, ...] = ()
    system_cpu: Optional[SystemCpuInfo] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProfileSample":
        system_cpu = data.get("systemCPU")
        return cls(
            timestamp=data.get("timestamp", 0),
            threads=tuple(ThreadSnapshot.from_dict(t) for t in data.get("threads") or ()),
            system_cpu=SystemCpuInfo.from_dict(system_cpu) if system_cpu is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "threads": [t.to_dict() for t in self.threads],
        }
        if self.system_cpu is not None:
            result["systemCPU"] = self.system_cpu.to_dict()
        return result


@dataclass
class ProfileSession:
    """
    Session metadata plus, when loaded, its samples.

    ``start_time`` and ``end_time`` are epoch milliseconds.
    """

    session_id: str
    device_id: str
    start_time: int
    end_time: int
    sampling_interval_ms: float
    total_samples: int = 0
    has_root: bool = False
    profiler_type: ProfilerType = ProfilerType.JAVA
    samples: List[ProfileSample] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProfileSession":
        samples = [ProfileSample.from_dict(s) for s in data.get("samples") or ()]
        return cls(
            session_id=data["sessionId"],
            device_id=data.get("deviceId", ""),
            start_time=data.get("startTime", 0),
            end_time=data.get("endTime", 0),
            sampling_interval_ms=data.get("samplingIntervalMs", 0),
            total_samples=data.get("totalSamples") or len(samples),
            has_root=bool(data.get("hasRoot", False)),
            profiler_type=ProfilerType(data.get("profilerType") or ProfilerType.JAVA.value),
            samples=samples,
        )

    def metadata_dict(self) -> Dict[str, Any]:
        """Session fields without the samples."""
        return {
            "sessionId": self.session_id,
            "deviceId": self.device_id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "samplingIntervalMs": self.sampling_interval_ms,
            "totalSamples": self.total_samples,
            "hasRoot": self.has_root,
            "profilerType": self.profiler_type.value,
        }

    def to_dict(self) -> Dict[str, Any]:
        result = self.metadata_dict()
        result["samples"] = [s.to_dict() for s in self.samples]
        return result
