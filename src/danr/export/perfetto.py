"""
Chrome Trace Event export for the Perfetto UI.

Sampled stacks carry no real durations. Consecutive appearances of the same
frame at the same depth of the same thread are merged into one ``X``
(complete) event, and a gap longer than ``gap_multiplier`` sampling intervals
ends the span. Durations are therefore estimates, which the output says in
both the session metadata event and the top-level ``metadata`` map.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from ..analysis.frames import strip_location
from ..models.profile import ProfileSample, ProfileSession, ThreadSnapshot

logger = logging.getLogger(__name__)

DEFAULT_GAP_MULTIPLIER = 2.5
DEFAULT_PID = 1
DEFAULT_PROCESS_NAME = "DANR Profiled App"

SESSION_INFO_NOTE = "Durations are estimated from sampling data"
TRACE_METADATA_NOTE = (
    "This is sampled data - durations are estimated based on consecutive sample appearances"
)

# (tid, depth, frame name)
SpanKey = Tuple[int, int, str]


@dataclass
class ActiveSpan:
    """A frame span that is still being extended by new samples."""

    frame_name: str
    full_frame: str
    start_ts: Union[int, float]
    last_seen_ts: Union[int, float]
    depth: int
    state: str


def _micros(value: Union[int, float]) -> Union[int, float]:
    """Keep whole microsecond values integral in the JSON output."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _iso_timestamp(epoch_ms: int) -> str:
    """Epoch milliseconds as ``2024-01-01T00:00:00.000Z``."""
    moment = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PerfettoExporter:
    """
    Converts a profile session into a Chrome Trace Event document.

    The exporter is stateless between calls; every ``export`` builds its span
    table from scratch.
    """

    def __init__(
        self,
        gap_multiplier: float = DEFAULT_GAP_MULTIPLIER,
        pid: int = DEFAULT_PID,
        process_name: str = DEFAULT_PROCESS_NAME,
    ):
        self.gap_multiplier = gap_multiplier
        self.pid = pid
        self.process_name = process_name

    def export(self, session: ProfileSession) -> Dict[str, Any]:
        """
        Build the trace document for a session.

        Returns:
            ``{"traceEvents": [...], "displayTimeUnit": "ms", "metadata": {...}}``
            with events stably sorted by ``ts``
        """
        interval_us = _micros(session.sampling_interval_ms * 1000)
        gap_threshold_us = interval_us * self.gap_multiplier

        events: List[Dict[str, Any]] = [
            self._metadata_event("process_name", 0, {"name": self.process_name}),
            self._metadata_event("session_info", 0, {
                "sessionId": session.session_id,
                "deviceId": session.device_id,
                "samplingIntervalMs": session.sampling_interval_ms,
                "totalSamples": session.total_samples,
                "hasRoot": session.has_root,
                "note": SESSION_INFO_NOTE,
            }),
        ]

        thread_names: Dict[int, str] = {}
        active_spans: Dict[SpanKey, ActiveSpan] = {}

        for sample in sorted(session.samples, key=lambda s: s.timestamp):
            ts_us = _micros((sample.timestamp - session.start_time) * 1000)

            for thread in sample.threads:
                thread_names.setdefault(thread.thread_id, thread.thread_name)
                self._track_thread_spans(
                    events, active_spans, thread, ts_us, interval_us, gap_threshold_us
                )

                cpu_usage = thread.cpu_usage_percent
                if cpu_usage is not None:
                    events.append({
                        "name": f"CPU % ({thread.thread_name})",
                        "cat": "cpu",
                        "ph": "C",
                        "ts": ts_us,
                        "pid": self.pid,
                        "tid": thread.thread_id,
                        "args": {"value": cpu_usage},
                    })

            system_event = self._system_cpu_event(sample, ts_us)
            if system_event is not None:
                events.append(system_event)

        for (tid, _, _), span in active_spans.items():
            events.append(self._complete_event(span, tid, interval_us))

        for tid, name in thread_names.items():
            events.append(self._metadata_event("thread_name", tid, {"name": name}))

        # list.sort is stable, so events sharing a ts keep their emission order
        events.sort(key=lambda event: event["ts"])

        logger.debug(
            f"Exported session {session.session_id}: {len(session.samples)} samples, "
            f"{len(events)} trace events"
        )

        return {
            "traceEvents": events,
            "displayTimeUnit": "ms",
            "metadata": {
                "danr-session-id": session.session_id,
                "danr-device-id": session.device_id,
                "profile-start": _iso_timestamp(session.start_time),
                "profile-end": _iso_timestamp(session.end_time),
                "sampling-interval-ms": session.sampling_interval_ms,
                "total-samples": session.total_samples,
                "has-root": session.has_root,
                "note": TRACE_METADATA_NOTE,
            },
        }

    def _track_thread_spans(
        self,
        events: List[Dict[str, Any]],
        active_spans: Dict[SpanKey, ActiveSpan],
        thread: ThreadSnapshot,
        ts_us: Union[int, float],
        interval_us: Union[int, float],
        gap_threshold_us: float,
    ) -> None:
        tid = thread.thread_id
        current_keys = set()

        # Depth 0 is the outermost frame
        for depth, frame in enumerate(reversed(thread.stack_frames)):
            frame_name = strip_location(frame)
            key = (tid, depth, frame_name)
            current_keys.add(key)

            span = active_spans.get(key)
            if span is not None and ts_us - span.last_seen_ts <= gap_threshold_us:
                span.last_seen_ts = ts_us
                span.state = thread.state
                continue

            if span is not None:
                events.append(self._complete_event(span, tid, interval_us))
            active_spans[key] = ActiveSpan(
                frame_name=frame_name,
                full_frame=frame,
                start_ts=ts_us,
                last_seen_ts=ts_us,
                depth=depth,
                state=thread.state,
            )

        stale_keys = [key for key in active_spans if key[0] == tid and key not in current_keys]
        for key in stale_keys:
            events.append(self._complete_event(active_spans.pop(key), tid, interval_us))

    def _complete_event(
        self, span: ActiveSpan, tid: int, interval_us: Union[int, float]
    ) -> Dict[str, Any]:
        return {
            "name": span.frame_name,
            "cat": "cpu",
            "ph": "X",
            "ts": span.start_ts,
            "dur": _micros((span.last_seen_ts - span.start_ts) + interval_us),
            "pid": self.pid,
            "tid": tid,
            "args": {
                "depth": span.depth,
                "lastState": span.state,
                "fullFrame": span.full_frame,
                "estimated": True,
            },
        }

    def _metadata_event(self, name: str, tid: int, args: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "name": name,
            "cat": "__metadata",
            "ph": "M",
            "ts": 0,
            "pid": self.pid,
            "tid": tid,
            "args": args,
        }

    def _system_cpu_event(
        self, sample: ProfileSample, ts_us: Union[int, float]
    ) -> Optional[Dict[str, Any]]:
        if sample.system_cpu is None:
            return None
        return {
            "name": "System CPU",
            "cat": "system",
            "ph": "C",
            "ts": ts_us,
            "pid": self.pid,
            "tid": 0,
            "args": {
                "user": sample.system_cpu.user_percent,
                "system": sample.system_cpu.system_percent,
                "iowait": sample.system_cpu.iowait_percent,
            },
        }


def export_to_perfetto_json(
    session: ProfileSession,
    minified: bool = False,
    exporter: Optional[PerfettoExporter] = None,
) -> str:
    """
    Serialize a session as Chrome Trace Event JSON.

    Args:
        session: Session with its samples loaded
        minified: Emit compact JSON instead of two-space indentation
        exporter: Exporter to use; a default-configured one if omitted
    """
    document = (exporter or PerfettoExporter()).export(session)
    if minified:
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(document, indent=2, ensure_ascii=False)


def export_to_perfetto_json_minified(
    session: ProfileSession, exporter: Optional[PerfettoExporter] = None
) -> str:
    return export_to_perfetto_json(session, minified=True, exporter=exporter)
