"""
Local disk sample store.

Each session maps to at most two files in the data directory:
``<session>.samples.gz`` (gzip-compressed JSON samples) and
``<session>.perfetto-trace`` (raw simpleperf trace bytes).
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

from ..models.profile import ProfileSample
from ..validation import ValidationError, handle_file_error
from .base import SampleStore
from .codec import decode_samples, encode_samples

logger = logging.getLogger(__name__)

_SAFE_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def validate_session_id(session_id: str) -> str:
    """
    Reject ids that could escape the data directory.

    Raises:
        ValidationError: If the id is empty or contains path characters
    """
    if not isinstance(session_id, str) or not _SAFE_SESSION_ID_RE.match(session_id) \
            or session_id in (".", ".."):
        raise ValidationError(
            f"Invalid session id: {session_id!r}",
            field_name="sessionId",
            value=session_id,
        )
    return session_id


class FileSampleStore(SampleStore):
    """
    Sample store writing gzip-compressed JSON files to a directory.
    """

    def __init__(self, data_dir: Path, compress_level: int = 9):
        """
        Args:
            data_dir: Directory for session files, created on first write
            compress_level: gzip compression level (1-9)
        """
        self.data_dir = Path(data_dir)
        self.compress_level = compress_level
        logger.debug(f"Initialized FileSampleStore in {self.data_dir} (level {compress_level})")

    def samples_path(self, session_id: str) -> Path:
        return self.data_dir / f"{validate_session_id(session_id)}.samples.gz"

    def trace_path(self, session_id: str) -> Path:
        return self.data_dir / f"{validate_session_id(session_id)}.perfetto-trace"

    def save_samples(self, session_id: str, samples: Sequence[ProfileSample]) -> str:
        file_path = self.samples_path(session_id)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            compressed = encode_samples(samples, self.compress_level)
            file_path.write_bytes(compressed)
            logger.info(
                f"Saved {len(samples)} samples to {file_path} ({len(compressed)} bytes)"
            )
            return str(file_path)
        except Exception as e:
            handle_file_error(error=e, context=f"saving samples to {file_path}", logger=logger)
            raise

    def load_samples(self, session_id: str) -> List[ProfileSample]:
        file_path = self.samples_path(session_id)
        if not file_path.exists():
            logger.warning(f"Samples file not found: {file_path}")
            return []
        try:
            samples = decode_samples(file_path.read_bytes())
            logger.debug(f"Loaded {len(samples)} samples from {file_path}")
            return samples
        except Exception as e:
            handle_file_error(error=e, context=f"loading samples from {file_path}", logger=logger)
            raise

    def save_raw_trace(self, session_id: str, trace_bytes: bytes) -> str:
        file_path = self.trace_path(session_id)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(trace_bytes)
            logger.info(f"Saved raw Perfetto trace to {file_path} ({len(trace_bytes)} bytes)")
            return str(file_path)
        except Exception as e:
            handle_file_error(error=e, context=f"saving raw trace to {file_path}", logger=logger)
            raise

    def load_raw_trace(self, session_id: str) -> Optional[bytes]:
        file_path = self.trace_path(session_id)
        if not file_path.exists():
            logger.warning(f"Trace file not found: {file_path}")
            return None
        return file_path.read_bytes()

    def trace_file_if_exists(self, session_id: str) -> Optional[Path]:
        file_path = self.trace_path(session_id)
        return file_path if file_path.exists() else None

    def delete_session(self, session_id: str) -> None:
        for file_path in (self.samples_path(session_id), self.trace_path(session_id)):
            if file_path.exists():
                file_path.unlink()
                logger.debug(f"Deleted {file_path}")

    def samples_exist(self, session_id: str) -> bool:
        return self.samples_path(session_id).exists()

    def get_file_size(self, session_id: str) -> int:
        total = 0
        for file_path in (self.samples_path(session_id), self.trace_path(session_id)):
            try:
                total += file_path.stat().st_size
            except FileNotFoundError:
                pass
        return total
