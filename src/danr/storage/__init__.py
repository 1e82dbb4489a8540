"""
Storage module for profile session data.

This module provides:
- The byte codec for samples (gzip-compressed JSON) and raw traces (base64)
- A common SampleStore interface with file and in-memory backends
- A metadata catalog for uploaded sessions
- Upload ingestion with gzip auto-detection

Loading is total: a session without stored samples yields an empty list and
one without a raw trace yields None.
"""

from .base import SampleStore
from .catalog import SessionCatalog
from .codec import decode_samples, decode_trace_data, encode_samples, is_gzip
from .factory import create_storage, create_storage_from_config
from .file_storage import FileSampleStore
from .ingest import ingest_upload, parse_upload_body
from .memory_storage import MemorySampleStore

__all__ = [
    "FileSampleStore",
    "MemorySampleStore",
    "SampleStore",
    "SessionCatalog",
    "create_storage",
    "create_storage_from_config",
    "decode_samples",
    "decode_trace_data",
    "encode_samples",
    "ingest_upload",
    "is_gzip",
    "parse_upload_body",
]
