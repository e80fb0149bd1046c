"""Data types shared by the upload pipeline."""

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from asset_uploader.uploader.exceptions import FileReadError


@dataclass
class FileRecord:
    """
    One build artifact that may be uploaded.

    Attributes:
        name: Output-root-relative name with forward slashes, e.g. "assets/index.js"
        source_path: Absolute local path, or None for in-memory assets
        content: Raw bytes; read lazily from source_path when None
        retry_count: Upload attempts made so far, owned by the file's UploadTask
    """

    name: str
    source_path: Optional[Path] = None
    content: Optional[bytes] = field(default=None, repr=False)
    retry_count: int = 0

    def read_content(self) -> bytes:
        """
        Return the raw content, reading it from disk on first use.

        Raises:
            FileReadError: If there is no content and the file can't be read
        """
        if self.content is None:
            if self.source_path is None:
                raise FileReadError(f"No content or source path for {self.name}", self.name)
            try:
                self.content = Path(self.source_path).read_bytes()
            except OSError as e:
                raise FileReadError(f"Cannot read {self.source_path}: {e}", self.name) from e
        return self.content


def to_bytes(content: Union[bytes, bytearray, str]) -> bytes:
    """Coerce asset content to bytes (strings are UTF-8 encoded)."""
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


def build_remote_key(prefix: str, name: str) -> str:
    """
    Join the key prefix and a file name into a remote object key.

    Always uses forward slashes; empty segments, duplicate slashes and the
    leading slash are dropped so the key is the same on every host.

    Example:
        >>> build_remote_key("static/app", "assets/index.js")
        'static/app/assets/index.js'
        >>> build_remote_key("/", "/favicon.ico")
        'favicon.ico'
    """
    joined = posixpath.join(prefix.replace("\\", "/"), name.replace("\\", "/").lstrip("/"))
    segments = [segment for segment in joined.split("/") if segment not in ("", ".")]
    return "/".join(segments)


class OutcomeStatus(str, Enum):
    """How a file's pipeline succeeded."""

    UPLOADED = "uploaded"
    SKIPPED_EXISTING = "skipped_existing"


@dataclass
class UploadOutcome:
    """
    Successful result of one file's pipeline.

    Attributes:
        file: The record that was processed
        remote_key: Object key in the bucket
        status: Uploaded or skipped because the object already exists
        index: 1-based dispatch index in the batch
        attempts: Put attempts made (0 when skipped)
        response: Store response metadata (None when skipped)
    """

    file: FileRecord
    remote_key: str
    status: OutcomeStatus
    index: int = 0
    attempts: int = 0
    response: Optional[Dict[str, Any]] = None

    @property
    def uploaded(self) -> bool:
        return self.status is OutcomeStatus.UPLOADED


@dataclass
class BatchResult:
    """
    Per-file results of one batch, in dispatch order.

    Each entry is an ``UploadOutcome`` or the exception that ended that
    file's pipeline.
    """

    results: List[Union[UploadOutcome, BaseException]] = field(default_factory=list)

    @property
    def outcomes(self) -> List[UploadOutcome]:
        return [r for r in self.results if isinstance(r, UploadOutcome)]

    @property
    def errors(self) -> List[BaseException]:
        return [r for r in self.results if isinstance(r, BaseException)]

    @property
    def succeeded(self) -> int:
        return len(self.outcomes)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status is OutcomeStatus.SKIPPED_EXISTING)

    @property
    def first_error(self) -> Optional[BaseException]:
        errors = self.errors
        return errors[0] if errors else None

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class BatchRun:
    """
    What one orchestrator run reports back to the integration.

    Attributes:
        selected: Files that passed the include/exclude patterns
        result: Per-file results (None when nothing was selected)
        error: The batch error, if any file failed terminally
        suppressed: True when ``error`` was logged but not raised (ignoreError)
        removed: Names of originals removed after upload (removeMode)
    """

    selected: List[FileRecord] = field(default_factory=list)
    result: Optional[BatchResult] = None
    error: Optional[Exception] = None
    suppressed: bool = False
    removed: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None
