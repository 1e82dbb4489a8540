"""
Flat aggregations over profile samples.

Top functions and thread summaries are computed as Polars group-bys over the
tables from :mod:`danr.analysis.frames`. Native function listing and the
timeline summary are simple passes over the samples.
"""

import logging
from typing import Dict, List, Sequence

import polars as pl

from ..models.profile import NativeFunctionSample, ProfileSample
from ..models.results import StateCount, ThreadSummary, TimelineSummary, TopFunction
from .frames import samples_to_frame_table, samples_to_thread_table

logger = logging.getLogger(__name__)


def get_top_functions(samples: Sequence[ProfileSample], limit: int = 20) -> List[TopFunction]:
    """
    Functions ranked by how many stack frames name them.

    Every frame of every thread of every sample counts once, so a recursive
    function is counted for each of its frames. ``percentage`` is relative to
    the total number of frames.
    """
    frames = samples_to_frame_table(samples)
    total_frames = frames.height
    if total_frames == 0:
        return []

    counts = (
        frames.group_by("function", maintain_order=True)
        .agg(pl.len().alias("count"))
        .sort("count", descending=True, maintain_order=True)
        .head(limit)
    )

    return [
        TopFunction(name=name, count=count, percentage=count / total_frames * 100)
        for name, count in counts.iter_rows()
    ]


def get_thread_summary(samples: Sequence[ProfileSample]) -> List[ThreadSummary]:
    """
    Average CPU usage and state histogram per (thread id, thread name).

    Threads appear in order of first appearance. ``avg_cpu_usage`` averages
    only the snapshots that reported a value and is None if none did.
    """
    snapshots = samples_to_thread_table(samples)
    if snapshots.is_empty():
        return []

    keys = ["thread_id", "thread_name"]
    cpu = snapshots.group_by(keys, maintain_order=True).agg(
        pl.col("cpu_usage").mean().alias("avg_cpu_usage")
    )
    states = (
        snapshots.group_by(keys + ["state"], maintain_order=True)
        .agg(pl.len().alias("count"))
        .sort("count", descending=True, maintain_order=True)
    )

    states_by_thread: Dict[tuple, List[StateCount]] = {}
    for thread_id, thread_name, state, count in states.iter_rows():
        states_by_thread.setdefault((thread_id, thread_name), []).append(
            StateCount(state=state, count=count)
        )

    return [
        ThreadSummary(
            thread_name=thread_name,
            thread_id=thread_id,
            avg_cpu_usage=avg_cpu_usage,
            states=states_by_thread.get((thread_id, thread_name), []),
        )
        for thread_id, thread_name, avg_cpu_usage in cpu.iter_rows()
    ]


def get_native_functions(samples: Sequence[ProfileSample], limit: int = 100) -> List[NativeFunctionSample]:
    """
    Native functions of a simpleperf session, highest percentage first.

    Each snapshot's ``thread_name`` is the DSO and its first frame reads
    ``"<function> (<pct>%)"``. Frames that do not parse keep the raw line as
    the name with a percentage of 0.
    """
    functions = parse_native_functions(samples)
    functions.sort(key=lambda f: f.percentage, reverse=True)
    return functions[:limit]


def parse_native_functions(samples: Sequence[ProfileSample]) -> List[NativeFunctionSample]:
    """All native function entries in sample order."""
    functions = []
    for sample in samples:
        for thread in sample.threads:
            function = NativeFunctionSample.from_snapshot(thread)
            if function is not None:
                functions.append(function)
    return functions


def create_timeline_summary(samples: Sequence[ProfileSample]) -> TimelineSummary:
    """
    Per-sample series for a quick timeline chart.

    Main thread CPU is None where the main thread was not captured or had no
    usage value; missing system CPU readings are reported as zeros.
    """
    summary = TimelineSummary()
    for sample in samples:
        summary.timestamps.append(sample.timestamp)

        main_thread = next((t for t in sample.threads if t.is_main_thread), None)
        summary.main_thread_cpu.append(main_thread.cpu_usage_percent if main_thread else None)

        system_cpu = sample.system_cpu
        summary.system_cpu.append({
            "user": system_cpu.user_percent if system_cpu else 0,
            "system": system_cpu.system_percent if system_cpu else 0,
            "iowait": system_cpu.iowait_percent if system_cpu else 0,
        })

        for thread in sample.threads:
            summary.thread_states.setdefault(thread.thread_name, []).append(thread.state)

    return summary
