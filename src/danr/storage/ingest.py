"""
Profile upload ingestion.

An upload body is a ProfileSession-shaped JSON document, optionally gzip
framed. Java sessions carry ``samples``; simpleperf sessions carry a base64
``traceData`` blob. Everything is validated before anything is written, so
a rejected upload never leaves partial data behind.
"""

import gzip
import json
import logging
from datetime import datetime
from typing import Any, Dict

from ..models.profile import ProfileSession, ProfilerType
from ..validation import (
    MissingTraceDataError,
    ValidationError,
    validate_enum_choice,
    validate_positive_float,
)
from .base import SampleStore
from .codec import decode_trace_data, is_gzip, samples_from_json

logger = logging.getLogger(__name__)


def to_epoch_ms(value: Any, field_name: str) -> int:
    """Accept epoch milliseconds or an ISO 8601 timestamp."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a timestamp", field_name=field_name, value=value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp() * 1000)
        except ValueError:
            pass
    raise ValidationError(f"{field_name} must be a timestamp, got {value!r}", field_name=field_name, value=value)


def parse_upload_body(data: bytes) -> Dict[str, Any]:
    """
    Decode an upload body into a JSON object.

    Gzip framing is detected from the leading magic bytes.

    Raises:
        ValidationError: If the body is not a JSON object
    """
    try:
        text = (gzip.decompress(data) if is_gzip(data) else data).decode("utf-8")
        payload = json.loads(text)
    except (OSError, EOFError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Upload body is not valid JSON: {e}", field_name="body")

    if not isinstance(payload, dict):
        raise ValidationError("Upload body must be a JSON object", field_name="body")
    return payload


def ingest_upload(
    data: bytes,
    device_id: str,
    session_id: str,
    store: SampleStore,
) -> ProfileSession:
    """
    Validate an upload and persist its samples or raw trace.

    Args:
        data: Raw request body
        device_id: Uploading device (X-Device-Id header)
        session_id: Session id announced by the device (X-Session-Id header);
            the id inside the body takes precedence
        store: Destination for samples / trace bytes

    Returns:
        Session metadata; ``samples`` is populated for java sessions

    Raises:
        ValidationError: On missing headers or a malformed body
        MissingTraceDataError: If a simpleperf upload has no trace data
    """
    if not device_id or not session_id:
        raise ValidationError("Missing X-Device-Id or X-Session-Id header", field_name="headers")

    payload = parse_upload_body(data)
    body_session_id = payload.get("sessionId") or session_id

    profiler_type = ProfilerType(validate_enum_choice(
        payload.get("profilerType") or ProfilerType.JAVA.value,
        valid_choices=[p.value for p in ProfilerType],
        field_name="profilerType",
    ))

    session = ProfileSession(
        session_id=body_session_id,
        device_id=device_id,
        start_time=to_epoch_ms(payload.get("startTime"), "startTime"),
        end_time=to_epoch_ms(payload.get("endTime"), "endTime"),
        sampling_interval_ms=validate_positive_float(
            payload.get("samplingIntervalMs", 0), min_value=0.0, field_name="samplingIntervalMs"
        ),
        has_root=bool(payload.get("hasRoot", False)),
        profiler_type=profiler_type,
    )

    if profiler_type is ProfilerType.SIMPLEPERF:
        trace_data = payload.get("traceData")
        if not trace_data:
            logger.error(f"Simpleperf session {body_session_id} has no traceData")
            raise MissingTraceDataError(body_session_id)
        trace_bytes = decode_trace_data(trace_data)
        store.save_raw_trace(body_session_id, trace_bytes)
        session.total_samples = 0
        logger.info(
            f"Saved simpleperf trace for session {body_session_id} ({len(trace_data)} base64 chars)"
        )
    else:
        samples = samples_from_json(payload.get("samples") or [])
        store.save_samples(body_session_id, samples)
        session.samples = samples
        session.total_samples = payload.get("totalSamples") or len(samples)
        logger.info(f"Saved {len(samples)} samples for session {body_session_id}")

    return session
