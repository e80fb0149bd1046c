"""
Single-file upload with a bounded immediate retry.

State per file: PENDING -> SUCCESS, or PENDING -> RETRYING -> ... -> SUCCESS
| EXHAUSTED. Content is read and encoded once before the first attempt;
every attempt bumps ``FileRecord.retry_count`` before calling the store.
"""

import asyncio
from typing import Optional

from asset_uploader.uploader.codec import encode_content_async
from asset_uploader.uploader.exceptions import (
    EncodingError,
    FileReadError,
    RemoteStoreError,
    UploadError,
)
from asset_uploader.uploader.models import FileRecord, OutcomeStatus, UploadOutcome
from asset_uploader.uploader.store import RemoteObjectStore
from asset_uploader.utils.config import UploadConfiguration
from asset_uploader.utils.logging import UploadLogger
from asset_uploader.utils.metrics import UploadMetrics, get_metrics
from asset_uploader.utils.retry import retry_async


class UploadTask:
    """
    Uploads one file, retrying failed puts back to back.

    A file gets ``config.retry_limit + 1`` attempts in total; with
    ``retry_limit=0`` the first failure is terminal.

    Args:
        store: Remote object store shared by the batch
        config: Run configuration
        upload_log: Progress logger for start/retry/success lines
        metrics: Metrics sink (global instance if None)
    """

    def __init__(
        self,
        store: RemoteObjectStore,
        config: UploadConfiguration,
        upload_log: Optional[UploadLogger] = None,
        metrics: Optional[UploadMetrics] = None,
    ) -> None:
        self.store = store
        self.config = config
        self.upload_log = upload_log or UploadLogger(enabled=config.logging_enabled)
        self.metrics = metrics or get_metrics()

    async def run(
        self, file: FileRecord, remote_key: str, index: int = 1, total: int = 1
    ) -> UploadOutcome:
        """
        Upload ``file`` to ``remote_key``.

        Args:
            file: Record to upload; its ``retry_count`` ends equal to the attempts made
            remote_key: Object key in the bucket
            index: 1-based dispatch index, for log lines
            total: Batch size, for log lines

        Returns:
            UploadOutcome with status UPLOADED and the store's response

        Raises:
            FileReadError: If the content can't be read
            EncodingError: If compression fails (no retry)
            UploadError: If every attempt failed
        """
        file.retry_count = 0

        try:
            raw = await asyncio.to_thread(file.read_content)
            body = await encode_content_async(raw, self.config.compress_before_upload)
        except (EncodingError, FileReadError) as e:
            e.file_name = file.name
            self.metrics.record_upload_failure()
            raise

        def on_attempt(attempt: int) -> None:
            file.retry_count += 1
            retry_note = ""
            if file.retry_count > 1:
                retry_note = f"Retry {file.retry_count - 1} times "
                self.metrics.record_retry()
            self.upload_log.log(
                f"🚀 Start upload {index}/{total}: {retry_note}{remote_key}",
                remote_key=remote_key,
                attempt=attempt,
                event="upload_start",
            )

        def on_failure(attempt: int, error: Exception) -> None:
            self.metrics.record_store_error("put", getattr(error, "name", type(error).__name__))
            self.upload_log.debug(
                f"Attempt {attempt}/{self.config.max_attempts} failed for {remote_key}: {error}"
            )

        try:
            with self.metrics.track_upload():
                response = await retry_async(
                    lambda: self.store.put(
                        self.config.bucket, self.config.region, remote_key, body
                    ),
                    max_attempts=self.config.max_attempts,
                    exceptions=(RemoteStoreError,),
                    on_attempt=on_attempt,
                    on_failure=on_failure,
                    name=f"put {remote_key}",
                )
        except RemoteStoreError as e:
            self.metrics.record_upload_failure()
            raise UploadError.from_store_error(e, remote_key, file.retry_count) from e

        self.metrics.record_upload_success(bytes_uploaded=len(body))
        self.upload_log.log(
            f"🎉 Uploaded successfully {index}/{total}: {remote_key}",
            remote_key=remote_key,
            attempts=file.retry_count,
            event="upload_success",
        )

        return UploadOutcome(
            file=file,
            remote_key=remote_key,
            status=OutcomeStatus.UPLOADED,
            index=index,
            attempts=file.retry_count,
            response=response,
        )
