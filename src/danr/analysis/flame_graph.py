"""
Flame graph aggregation.

The flame graph is built by:
1. Grouping thread snapshots across all samples by (thread id, thread name)
2. Reversing each non-empty stack so the outermost frame comes first
3. Folding the reversed stacks of a thread into a trie whose node values
   count the stacks passing through that node
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.profile import ProfileSample
from ..models.results import FlameGraphData, FlameGraphNode, ThreadFlameGraph
from .frames import clean_frame_name

logger = logging.getLogger(__name__)


class _TrieNode:
    __slots__ = ("name", "value", "children")

    def __init__(self, name: str):
        self.name = name
        self.value = 0
        self.children: Dict[str, "_TrieNode"] = {}

    def to_flame_node(self) -> FlameGraphNode:
        children = sorted(
            (child.to_flame_node() for child in self.children.values()),
            key=lambda node: node.value,
            reverse=True,
        )
        return FlameGraphNode(name=self.name, value=self.value, children=children)


def build_flame_graph_tree(stack_traces: Sequence[Sequence[str]]) -> FlameGraphNode:
    """
    Fold root-first stack traces into a flame graph tree.

    The synthetic ``root`` node's value is the number of traces; every other
    node's value is the number of traces whose path runs through it. Children
    are sorted by value, descending, at every level.
    """
    root = _TrieNode("root")
    root.value = len(stack_traces)

    for trace in stack_traces:
        current = root
        for frame in trace:
            frame_name = clean_frame_name(frame)
            child = current.children.get(frame_name)
            if child is None:
                child = _TrieNode(frame_name)
                current.children[frame_name] = child
            child.value += 1
            current = child

    return root.to_flame_node()


def aggregate_to_flame_graph(
    session_id: str,
    samples: Sequence[ProfileSample],
    thread_filter: Optional[str] = None,
) -> FlameGraphData:
    """
    Build one flame graph per thread.

    Args:
        session_id: Session the samples belong to
        samples: Samples in any order
        thread_filter: Case-insensitive substring; threads whose name does not
            contain it are left out entirely

    Returns:
        Flame graphs for every thread, the busiest (most non-empty stacks) first
    """
    needle = thread_filter.lower() if thread_filter else None
    threads: Dict[Tuple[int, str], List[List[str]]] = {}

    for sample in samples:
        for thread in sample.threads:
            if needle is not None and needle not in thread.thread_name.lower():
                continue

            traces = threads.setdefault((thread.thread_id, thread.thread_name), [])
            if thread.stack_frames:
                traces.append(list(reversed(thread.stack_frames)))

    thread_graphs = [
        ThreadFlameGraph(
            thread_name=thread_name,
            thread_id=thread_id,
            sample_count=len(traces),
            root=build_flame_graph_tree(traces),
        )
        for (thread_id, thread_name), traces in threads.items()
    ]
    thread_graphs.sort(key=lambda t: t.sample_count, reverse=True)

    logger.debug(
        f"Built flame graphs for {len(thread_graphs)} threads of session {session_id}"
    )
    return FlameGraphData(
        session_id=session_id,
        total_samples=len(samples),
        threads=thread_graphs,
    )
