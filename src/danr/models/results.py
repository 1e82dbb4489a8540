"""
Result data models returned by the analysis and export operations.

These structures are what the query boundary hands back to callers. Each one
serializes to the JSON shape the dashboard consumes via ``to_dict``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FlameGraphNode:
    """
    One node of a flame graph trie.

    ``value`` is the number of stack traces that pass through this node and
    ``children`` is kept sorted by value, descending.
    """

    name: str
    value: int = 0
    children: List["FlameGraphNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class ThreadFlameGraph:
    thread_name: str
    thread_id: int
    sample_count: int
    root: FlameGraphNode

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threadName": self.thread_name,
            "threadId": self.thread_id,
            "sampleCount": self.sample_count,
            "root": self.root.to_dict(),
        }


@dataclass
class FlameGraphData:
    session_id: str
    total_samples: int
    threads: List[ThreadFlameGraph] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "totalSamples": self.total_samples,
            "threads": [t.to_dict() for t in self.threads],
        }


@dataclass
class TopFunction:
    name: str
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count, "percentage": self.percentage}


@dataclass
class StateCount:
    state: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"state": self.state, "count": self.count}


@dataclass
class ThreadSummary:
    """Per-thread CPU average and state histogram."""

    thread_name: str
    thread_id: int
    # None when no sample carried a CPU usage value
    avg_cpu_usage: Optional[float]
    states: List[StateCount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threadName": self.thread_name,
            "threadId": self.thread_id,
            "avgCpuUsage": self.avg_cpu_usage,
            "states": [s.to_dict() for s in self.states],
        }


@dataclass
class NativeFunctionsResult:
    session_id: str
    profiler_type: str
    total_functions: int
    functions: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "profilerType": self.profiler_type,
            "totalFunctions": self.total_functions,
            "functions": [f.to_dict() for f in self.functions],
        }


@dataclass
class TimelineSummary:
    timestamps: List[int] = field(default_factory=list)
    main_thread_cpu: List[Optional[float]] = field(default_factory=list)
    system_cpu: List[Dict[str, float]] = field(default_factory=list)
    thread_states: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamps": list(self.timestamps),
            "mainThreadCpu": list(self.main_thread_cpu),
            "systemCpu": list(self.system_cpu),
            "threadStates": {k: list(v) for k, v in self.thread_states.items()},
        }


@dataclass
class OperationResult:
    """
    Outcome of a caller-facing operation.

    Domain failures (unknown ids, invalid input, missing trace data) are
    reported here with ``success=False`` instead of being raised.
    """

    success: bool
    data: Any = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "OperationResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, message: str) -> "OperationResult":
        return cls(success=False, message=message)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            result["data"] = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        if self.message is not None:
            key = "message" if self.success else "error"
            result[key] = self.message
        return result
