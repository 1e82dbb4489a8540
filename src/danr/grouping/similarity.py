"""
Stack trace normalization, hashing and similarity scoring.

These helpers are pure functions. The grouping engine uses the SHA-256
content hash for exact deduplication and the Jaccard score to decide whether
a new ANR joins an existing group. The Levenshtein score is available for
callers that want an order-sensitive comparison.
"""

import hashlib
import re
from typing import Iterable, List, Sequence, Set

# Jaccard percentage at or above which two ANRs belong to the same group.
SIMILARITY_THRESHOLD = 70

# Number of leading frames used for a group's label.
PATTERN_DEPTH = 5

_AT_MARKER_RE = re.compile(r"at\s+([^(]+)")


def normalize_stack_trace(stack_trace: Iterable[str]) -> List[str]:
    """Trim each line and drop the ones left empty."""
    return [line.strip() for line in stack_trace if line.strip()]


def generate_stack_trace_hash(stack_trace: Iterable[str]) -> str:
    """
    Compute the content hash of a stack trace.

    Lines are trimmed, blank lines dropped, and the rest joined with newlines
    before hashing, so whitespace-only edits do not change the result.

    Args:
        stack_trace: Frames of the trace, innermost first

    Returns:
        Hex encoded SHA-256 digest
    """
    normalized = "\n".join(normalize_stack_trace(stack_trace))
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def _line_set(stack_trace: Iterable[str]) -> Set[str]:
    return {line.strip() for line in stack_trace}


def calculate_similarity(stack_trace1: Sequence[str], stack_trace2: Sequence[str]) -> float:
    """
    Jaccard similarity of two traces as a percentage.

    Each trace is treated as a set of trimmed lines, so frame order and
    repetitions are ignored. Two empty traces score 0.

    Returns:
        A value in [0, 100]
    """
    set1 = _line_set(stack_trace1)
    set2 = _line_set(stack_trace2)

    union = set1 | set2
    if not union:
        return 0.0

    return len(set1 & set2) / len(union) * 100


def levenshtein_distance(str1: str, str2: str) -> int:
    """Edit distance with unit cost for insertion, deletion and substitution."""
    if len(str1) < len(str2):
        str1, str2 = str2, str1

    previous = list(range(len(str2) + 1))
    for i, char1 in enumerate(str1, start=1):
        current = [i]
        for j, char2 in enumerate(str2, start=1):
            if char1 == char2:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], previous[j], current[j - 1]) + 1)
        previous = current

    return previous[-1]


def calculate_levenshtein_similarity(stack_trace1: Sequence[str], stack_trace2: Sequence[str]) -> float:
    """
    Edit-distance similarity of two traces as a percentage.

    Both traces are joined with newlines and compared character by character.
    Two empty traces score 100.
    """
    str1 = "\n".join(stack_trace1)
    str2 = "\n".join(stack_trace2)

    max_length = max(len(str1), len(str2))
    if max_length == 0:
        return 100.0

    distance = levenshtein_distance(str1, str2)
    return (max_length - distance) / max_length * 100


def extract_stack_trace_pattern(stack_trace: Sequence[str], depth: int = PATTERN_DEPTH) -> str:
    """
    Build a readable label from the first frames of a trace.

    ``"at com.example.Foo.bar(Foo.java:1)"`` contributes ``"com.example.Foo.bar"``;
    lines without an ``at`` marker are used as is after trimming.
    """
    parts = []
    for line in stack_trace[:depth]:
        match = _AT_MARKER_RE.search(line)
        parts.append(match.group(1).strip() if match else line.strip())
    return " -> ".join(parts)
