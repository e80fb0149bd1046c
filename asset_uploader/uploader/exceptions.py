"""
Exceptions raised by the upload pipeline.

Per-file errors (``EncodingError``, ``FileReadError``, ``UploadError``) end
that file's pipeline. The orchestrator wraps the first error of a batch
(these, or anything else a pipeline raised) in a ``BatchError``. ``RemoteStoreError`` is the typed form of any transport error
coming out of a store implementation.
"""

from typing import Optional


class AssetUploaderError(Exception):
    """Base class for all asset uploader errors."""


class RemoteStoreError(AssetUploaderError):
    """
    Transport error from the remote object store.

    Attributes:
        code: Store error code (e.g. "forbidden", "notFound", "503")
        name: Error class/name reported by the store SDK
        message: Human readable message
        status_code: HTTP status when the transport reports one
    """

    def __init__(
        self,
        code: str,
        name: str,
        message: str,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.name = name
        self.message = message
        self.status_code = status_code

    @property
    def is_permission_denied(self) -> bool:
        return self.status_code == 403

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    def __str__(self) -> str:
        return f"{self.code}-{self.name}: {self.message}"


class EncodingError(AssetUploaderError):
    """Content compression failed. Never retried."""

    code = "EncodingError"

    def __init__(self, message: str, file_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.name = type(self).__name__
        self.message = message
        self.file_name = file_name


class FileReadError(AssetUploaderError):
    """Local file content could not be read."""

    code = "FileReadError"

    def __init__(self, message: str, file_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.name = type(self).__name__
        self.message = message
        self.file_name = file_name


class UploadError(AssetUploaderError):
    """
    Put failed after the retry budget was spent.

    Carries the code, name and message of the last store error.
    """

    def __init__(
        self,
        code: str,
        name: str,
        message: str,
        remote_key: Optional[str] = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.name = name
        self.message = message
        self.remote_key = remote_key
        self.attempts = attempts

    @classmethod
    def from_store_error(
        cls, error: RemoteStoreError, remote_key: str, attempts: int
    ) -> "UploadError":
        return cls(
            code=error.code,
            name=error.name,
            message=error.message,
            remote_key=remote_key,
            attempts=attempts,
        )

    def __str__(self) -> str:
        return f"{self.code}-{self.name}: {self.message}"


class BatchError(AssetUploaderError):
    """
    First error of a batch, whatever ended that file's pipeline.

    Exposes the cause's code, name and message so adapters can report it
    without unwrapping.
    """

    def __init__(self, cause: BaseException, failed: int = 1, total: int = 1) -> None:
        self.cause = cause
        self.code = str(getattr(cause, "code", None) or type(cause).__name__)
        self.name = str(getattr(cause, "name", None) or type(cause).__name__)
        self.message = str(getattr(cause, "message", None) or cause)
        self.failed = failed
        self.total = total
        super().__init__(f"{self.code}-{self.name}: {self.message}")
