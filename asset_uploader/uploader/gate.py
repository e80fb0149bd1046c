"""Existence check in front of the upload task."""

from typing import Optional

from asset_uploader.uploader.exceptions import RemoteStoreError
from asset_uploader.uploader.models import FileRecord, OutcomeStatus, UploadOutcome
from asset_uploader.uploader.store import RemoteObjectStore
from asset_uploader.uploader.task import UploadTask
from asset_uploader.utils.config import UploadConfiguration
from asset_uploader.utils.logging import UploadLogger
from asset_uploader.utils.metrics import UploadMetrics, get_metrics


class ExistenceGate:
    """
    Skips files whose object is already in the bucket.

    With the existence check disabled every file goes straight to the task.
    Otherwise a single existence check decides: found means skip, anything else (not
    found, permission denied, transport error) means upload. The check is
    never retried.
    """

    def __init__(
        self,
        store: RemoteObjectStore,
        task: UploadTask,
        config: UploadConfiguration,
        upload_log: Optional[UploadLogger] = None,
        metrics: Optional[UploadMetrics] = None,
    ) -> None:
        self.store = store
        self.task = task
        self.config = config
        self.upload_log = upload_log or UploadLogger(enabled=config.logging_enabled)
        self.metrics = metrics or get_metrics()

    async def resolve(
        self, file: FileRecord, remote_key: str, index: int = 1, total: int = 1
    ) -> UploadOutcome:
        if not self.config.existence_check_enabled:
            return await self.task.run(file, remote_key, index, total)

        try:
            exists = await self.store.head_exists(
                self.config.bucket, self.config.region, remote_key
            )
        except RemoteStoreError as e:
            self.metrics.record_store_error("head", e.name)
            if e.is_permission_denied:
                self.upload_log.warn(
                    f"🔐 No read permission for this object: {remote_key}",
                    remote_key=remote_key,
                    event="existence_check_forbidden",
                )
            else:
                self.upload_log.debug(f"Existence check failed for {remote_key}: {e}")
            exists = False
        except Exception as e:
            self.metrics.record_store_error("head", type(e).__name__)
            self.upload_log.debug(f"Existence check failed for {remote_key}: {e!r}")
            exists = False

        if exists:
            self.metrics.record_skipped()
            self.upload_log.log(
                f"✔ File already exists, no need for upload {index}/{total}: {remote_key}",
                remote_key=remote_key,
                event="upload_skipped",
            )
            return UploadOutcome(
                file=file,
                remote_key=remote_key,
                status=OutcomeStatus.SKIPPED_EXISTING,
                index=index,
            )

        return await self.task.run(file, remote_key, index, total)
