"""
Data models for the profiling and ANR grouping core.

Profile Models:
- Thread snapshots, samples and sessions as uploaded by the device SDK
- Typed view of simpleperf native function entries

ANR Models:
- Distinct ANR records and the groups that cluster them

Result Models:
- Flame graphs, top functions, thread summaries, timelines
- Structured operation results for the query boundary

Configuration Models:
- Storage, grouping, export and query settings
"""

from .anr import ANRGroup, ANRRecord, AppInfo, DeviceInfo, ThreadInfo
from .config import AppConfig, ExportConfig, GroupingConfig, QueryConfig, StorageConfig
from .profile import (
    NativeFunctionSample,
    ProfileSample,
    ProfileSession,
    ProfilerType,
    SystemCpuInfo,
    ThreadCpuTime,
    ThreadSnapshot,
)
from .results import (
    FlameGraphData,
    FlameGraphNode,
    NativeFunctionsResult,
    OperationResult,
    StateCount,
    ThreadFlameGraph,
    ThreadSummary,
    TimelineSummary,
    TopFunction,
)

__all__ = [
    # ANR
    "ANRGroup",
    "ANRRecord",
    "AppInfo",
    "DeviceInfo",
    "ThreadInfo",
    # Configuration
    "AppConfig",
    "ExportConfig",
    "GroupingConfig",
    "QueryConfig",
    "StorageConfig",
    # Profiles
    "NativeFunctionSample",
    "ProfileSample",
    "ProfileSession",
    "ProfilerType",
    "SystemCpuInfo",
    "ThreadCpuTime",
    "ThreadSnapshot",
    # Results
    "FlameGraphData",
    "FlameGraphNode",
    "NativeFunctionsResult",
    "OperationResult",
    "StateCount",
    "ThreadFlameGraph",
    "ThreadSummary",
    "TimelineSummary",
    "TopFunction",
]
