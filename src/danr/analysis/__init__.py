"""
Read-only analyses over profile samples.

All functions here are pure: they take an in-memory sample sequence and
return result models, holding no shared state, so they may run concurrently
for independent sessions.
"""

from .flame_graph import aggregate_to_flame_graph, build_flame_graph_tree
from .frames import clean_frame_name, samples_to_frame_table, samples_to_thread_table, strip_location
from .reducers import (
    create_timeline_summary,
    get_native_functions,
    get_thread_summary,
    get_top_functions,
    parse_native_functions,
)

__all__ = [
    "aggregate_to_flame_graph",
    "build_flame_graph_tree",
    "clean_frame_name",
    "create_timeline_summary",
    "get_native_functions",
    "get_thread_summary",
    "get_top_functions",
    "parse_native_functions",
    "samples_to_frame_table",
    "samples_to_thread_table",
    "strip_location",
]
