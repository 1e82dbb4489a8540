"""
Byte-level encoding of profile samples and raw traces.

Java sessions are stored as compact JSON compressed with gzip. Simpleperf
sessions carry an already-encoded Perfetto binary trace that arrives base64
encoded; it is decoded once and kept verbatim.
"""

import base64
import binascii
import gzip
import json
import logging
from typing import Any, Iterable, List, Mapping

from ..models.profile import ProfileSample
from ..validation import ValidationError

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def is_gzip(data: bytes) -> bool:
    """True when ``data`` starts with the gzip magic bytes 0x1F 0x8B."""
    return data[:2] == GZIP_MAGIC


def samples_to_json(samples: Iterable[ProfileSample]) -> str:
    return json.dumps([sample.to_dict() for sample in samples], separators=(",", ":"))


def _require_mapping(value: Any, field_name: str) -> None:
    if not isinstance(value, Mapping):
        raise ValidationError(
            f"{field_name} must be an object, got {type(value).__name__}",
            field_name=field_name,
            value=value,
        )


def _check_thread(thread: Any, field_name: str) -> None:
    _require_mapping(thread, field_name)
    frames = thread.get("stackFrames")
    if frames is not None and (
        not isinstance(frames, list) or not all(isinstance(f, str) for f in frames)
    ):
        raise ValidationError(
            f"{field_name}.stackFrames must be a list of strings",
            field_name=f"{field_name}.stackFrames",
            value=frames,
        )
    if thread.get("cpuTime") is not None:
        _require_mapping(thread["cpuTime"], f"{field_name}.cpuTime")


def _check_sample(sample: Any, field_name: str) -> None:
    _require_mapping(sample, field_name)
    threads = sample.get("threads")
    if threads is not None and not isinstance(threads, list):
        raise ValidationError(
            f"{field_name}.threads must be a list, got {type(threads).__name__}",
            field_name=f"{field_name}.threads",
            value=threads,
        )
    for j, thread in enumerate(threads or []):
        _check_thread(thread, f"{field_name}.threads[{j}]")
    if sample.get("systemCPU") is not None:
        _require_mapping(sample["systemCPU"], f"{field_name}.systemCPU")


def samples_from_json(payload: Any) -> List[ProfileSample]:
    """
    Build samples from a decoded JSON list.

    Raises:
        ValidationError: If a sample, thread or frame has the wrong JSON type
    """
    if not isinstance(payload, list):
        raise ValidationError(
            f"Samples payload must be a list, got {type(payload).__name__}",
            field_name="samples",
        )
    for i, item in enumerate(payload):
        _check_sample(item, f"samples[{i}]")
    return [ProfileSample.from_dict(item) for item in payload]


def encode_samples(samples: Iterable[ProfileSample], compress_level: int = 9) -> bytes:
    """Serialize samples to gzip-compressed JSON."""
    return gzip.compress(samples_to_json(samples).encode("utf-8"), compresslevel=compress_level)


def decode_samples(data: bytes) -> List[ProfileSample]:
    """
    Inverse of :func:`encode_samples`.

    Uncompressed JSON is accepted as well, detected by the missing gzip header.
    """
    raw = gzip.decompress(data) if is_gzip(data) else data
    return samples_from_json(json.loads(raw.decode("utf-8")))


def decode_trace_data(trace_data: str) -> bytes:
    """
    Decode a base64 encoded raw trace.

    Raises:
        ValidationError: If the payload is not a valid base64 string
    """
    if not isinstance(trace_data, str):
        raise ValidationError(
            f"traceData must be a base64 string, got {type(trace_data).__name__}",
            field_name="traceData",
        )
    try:
        return base64.b64decode(trace_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"traceData is not valid base64: {e}", field_name="traceData")


def encode_trace_data(trace_bytes: bytes) -> str:
    return base64.b64encode(trace_bytes).decode("ascii")
