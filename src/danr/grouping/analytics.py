"""
ANR listing and dashboard analytics.

Aggregations are computed with Polars over a flat table of ANR records,
one row per distinct ANR.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import polars as pl

from ..models.anr import ANRRecord, parse_datetime
from ..validation import ValidationError, validate_positive_integer
from .repository import ANRRepository

logger = logging.getLogger(__name__)

_SORT_FIELDS = {
    "timestamp": lambda a: a.timestamp,
    "duration": lambda a: a.duration,
    "occurrenceCount": lambda a: a.occurrence_count,
    "firstOccurrence": lambda a: a.first_occurrence,
    "lastOccurrence": lambda a: a.last_occurrence,
}


def list_anrs(
    repository: ANRRepository,
    device_model: Optional[str] = None,
    os_version: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    is_main_thread: Optional[bool] = None,
    sort: Optional[str] = None,
    limit: int = 50,
    skip: int = 0,
) -> Tuple[List[ANRRecord], int]:
    """
    Filter, sort and page ANR records.

    Args:
        device_model: Case-insensitive regular expression matched against the model
        os_version: Exact OS version
        start_date: Inclusive lower bound on the report timestamp (datetime,
            epoch milliseconds or ISO 8601; naive values are UTC)
        end_date: Inclusive upper bound, same forms as ``start_date``
        is_main_thread: Filter on the main thread flag of the reported thread
        sort: ``"<field>:<asc|desc>"``; defaults to newest first
        limit: Page size
        skip: Number of matching records to skip

    Returns:
        Tuple of (page of records, total number of matches)

    Raises:
        ValidationError: On an unknown sort field, a bad device model pattern,
            unparseable dates or invalid paging values
    """
    limit = validate_positive_integer(limit, min_value=1, field_name="limit")
    skip = validate_positive_integer(skip, min_value=0, field_name="skip")
    start_date = parse_datetime(start_date, field_name="startDate")
    end_date = parse_datetime(end_date, field_name="endDate")

    records = repository.list_anrs()
    if device_model:
        try:
            model_re = re.compile(device_model, re.IGNORECASE)
        except re.error as e:
            raise ValidationError(
                f"deviceModel is not a valid regular expression: {e}",
                field_name="deviceModel",
                value=device_model,
            )
        records = [a for a in records if model_re.search(a.device_info.model)]
    if os_version:
        records = [a for a in records if a.device_info.os_version == os_version]
    if start_date is not None:
        records = [a for a in records if a.timestamp >= start_date]
    if end_date is not None:
        records = [a for a in records if a.timestamp <= end_date]
    if is_main_thread is not None:
        records = [a for a in records if a.main_thread.is_main_thread == is_main_thread]

    field_name, _, order = (sort or "timestamp:desc").partition(":")
    key = _SORT_FIELDS.get(field_name)
    if key is None:
        raise ValidationError(
            f"sort field must be one of {sorted(_SORT_FIELDS)}, got '{field_name}'",
            field_name="sort",
            value=sort,
        )
    records = sorted(records, key=key, reverse=order != "asc")

    return records[skip:skip + limit], len(records)


def _anr_table(records: List[ANRRecord]) -> pl.DataFrame:
    return pl.DataFrame(
        {
            "model": [a.device_info.model for a in records],
            "os_version": [a.device_info.os_version for a in records],
            "thread_kind": [
                "Main Thread" if a.main_thread.is_main_thread else "Background Thread"
                for a in records
            ],
            "day": [a.timestamp.strftime("%Y-%m-%d") for a in records],
            "top_frame": [
                a.main_thread.stack_trace[0] if a.main_thread.stack_trace else None
                for a in records
            ],
        },
        schema={
            "model": pl.Utf8,
            "os_version": pl.Utf8,
            "thread_kind": pl.Utf8,
            "day": pl.Utf8,
            "top_frame": pl.Utf8,
        },
    )


def _count_by(
    df: pl.DataFrame, column: str, by_key: bool = False, limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    counts = df.group_by(column, maintain_order=True).agg(pl.len().alias("count"))
    if by_key:
        counts = counts.sort(column)
    else:
        counts = counts.sort("count", descending=True, maintain_order=True)
    if limit is not None:
        counts = counts.head(limit)
    return [{"_id": row[column], "count": row["count"]} for row in counts.iter_rows(named=True)]


def get_analytics(repository: ANRRepository) -> Dict[str, Any]:
    """
    Dashboard aggregates over all distinct ANRs.

    Returns:
        Dictionary with ``totalANRs``, ``anrsByDevice`` (top 10), ``anrsByOS``,
        ``anrsByThread``, ``anrsOverTime`` (per day, ascending) and
        ``topCrashLocations`` (first main thread frame, top 10)
    """
    records = repository.list_anrs()
    if not records:
        return {
            "totalANRs": 0,
            "anrsByDevice": [],
            "anrsByOS": [],
            "anrsByThread": [],
            "anrsOverTime": [],
            "topCrashLocations": [],
        }

    df = _anr_table(records)
    logger.debug(f"Computing analytics over {df.height} ANR records")

    return {
        "totalANRs": df.height,
        "anrsByDevice": _count_by(df, "model", limit=10),
        "anrsByOS": _count_by(df, "os_version"),
        "anrsByThread": _count_by(df, "thread_kind"),
        "anrsOverTime": _count_by(df, "day", by_key=True),
        "topCrashLocations": _count_by(df, "top_frame", limit=10),
    }
