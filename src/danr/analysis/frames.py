"""
Flat Polars tables built from profile samples.

The nested sample structure (sample -> thread -> frames) is flattened once
so that the reducers can express their aggregations as group-bys.
"""

import re
from typing import Iterable, Optional

import polars as pl

from ..models.profile import ProfileSample

# Max length of a cleaned frame name before it is shortened to Class.method
MAX_FRAME_NAME_LENGTH = 60

_LOCATION_SUFFIX_RE = re.compile(r"\([^)]*\)$")

FRAME_TABLE_SCHEMA = {
    "sample_index": pl.Int64,
    "timestamp": pl.Int64,
    "thread_id": pl.Int64,
    "thread_name": pl.Utf8,
    "depth": pl.Int64,
    "frame": pl.Utf8,
    "function": pl.Utf8,
}

THREAD_TABLE_SCHEMA = {
    "sample_index": pl.Int64,
    "timestamp": pl.Int64,
    "thread_id": pl.Int64,
    "thread_name": pl.Utf8,
    "state": pl.Utf8,
    "is_main_thread": pl.Boolean,
    "cpu_usage": pl.Float64,
}


def strip_location(frame: str) -> str:
    """Drop a trailing ``(File.java:42)`` location suffix and trim."""
    return _LOCATION_SUFFIX_RE.sub("", frame).strip()


def clean_frame_name(frame: str) -> str:
    """
    Display name for a stack frame.

    ``"com.example.MyClass.myMethod(MyClass.java:42)"`` becomes
    ``"com.example.MyClass.myMethod"``; names longer than 60 characters are
    cut down to their last two dotted components (``"MyClass.myMethod"``).
    """
    without_location = strip_location(frame)
    if len(without_location) <= MAX_FRAME_NAME_LENGTH:
        return without_location

    parts = without_location.split(".")
    if len(parts) >= 2:
        return ".".join(parts[-2:])
    return without_location


def samples_to_frame_table(samples: Iterable[ProfileSample]) -> pl.DataFrame:
    """
    One row per stack frame of every thread of every sample.

    ``depth`` is the leaf-first position of the frame in its stack.
    """
    columns: dict = {name: [] for name in FRAME_TABLE_SCHEMA}
    for index, sample in enumerate(samples):
        for thread in sample.threads:
            for depth, frame in enumerate(thread.stack_frames):
                columns["sample_index"].append(index)
                columns["timestamp"].append(sample.timestamp)
                columns["thread_id"].append(thread.thread_id)
                columns["thread_name"].append(thread.thread_name)
                columns["depth"].append(depth)
                columns["frame"].append(frame)
                columns["function"].append(clean_frame_name(frame))
    return pl.DataFrame(columns, schema=FRAME_TABLE_SCHEMA)


def samples_to_thread_table(samples: Iterable[ProfileSample]) -> pl.DataFrame:
    """One row per thread snapshot; ``cpu_usage`` is null when not captured."""
    columns: dict = {name: [] for name in THREAD_TABLE_SCHEMA}
    for index, sample in enumerate(samples):
        for thread in sample.threads:
            usage: Optional[float] = thread.cpu_usage_percent
            columns["sample_index"].append(index)
            columns["timestamp"].append(sample.timestamp)
            columns["thread_id"].append(thread.thread_id)
            columns["thread_name"].append(thread.thread_name)
            columns["state"].append(thread.state)
            columns["is_main_thread"].append(thread.is_main_thread)
            columns["cpu_usage"].append(float(usage) if usage is not None else None)
    return pl.DataFrame(columns, schema=THREAD_TABLE_SCHEMA)

