"""
Batch upload orchestrator.

Takes the build's file list, keeps the files the include/exclude patterns
admit, runs every file's existence-check/upload pipeline concurrently, and
then decides what the batch means for the build:

* all files settled without an error: log completion and, with
  removeMode, drop the originals (asset map entries or files on disk);
* any file failed, whatever the exception: log the first error, then suppress it
  (ignoreError), hand it to the caller's error list, or raise it.

The caller's callback runs exactly once either way.

Example usage:
    >>> orchestrator = BatchOrchestrator(build_configuration(options), store)
    >>> run = await orchestrator.emit(collect_output_files("dist"))
    >>> run.success
    True
"""

import asyncio
import uuid
from pathlib import Path
from typing import Callable, List, MutableMapping, Optional, Sequence

from asset_uploader.uploader.exceptions import BatchError
from asset_uploader.uploader.gate import ExistenceGate
from asset_uploader.uploader.models import BatchResult, BatchRun, FileRecord, build_remote_key
from asset_uploader.uploader.selector import select_files
from asset_uploader.uploader.store import RemoteObjectStore
from asset_uploader.uploader.task import UploadTask
from asset_uploader.utils.config import UploadConfiguration
from asset_uploader.utils.logging import UploadLogger, get_logger, set_correlation_id
from asset_uploader.utils.metrics import UploadMetrics, get_metrics

logger = get_logger(__name__)


class BatchOrchestrator:
    """
    Runs one upload batch against a remote object store.

    Args:
        config: Run configuration (shared read-only by every pipeline)
        store: Remote object store (shared by every pipeline)
        upload_log: Progress logger; built from ``config.logging_enabled`` if None
        metrics: Metrics sink (global instance if None)
    """

    def __init__(
        self,
        config: UploadConfiguration,
        store: RemoteObjectStore,
        upload_log: Optional[UploadLogger] = None,
        metrics: Optional[UploadMetrics] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.upload_log = upload_log or UploadLogger(logger, enabled=config.logging_enabled)
        self.metrics = metrics or get_metrics()

        self.task = UploadTask(store, config, self.upload_log, self.metrics)
        self.gate = ExistenceGate(store, self.task, config, self.upload_log, self.metrics)

        self.upload_log.debug(f"🎯 Final configuration: {config}")

    async def run(self, files: Sequence[FileRecord]) -> BatchResult:
        """
        Upload ``files`` concurrently and wait for every pipeline to settle.

        A failing file never cancels its siblings. Results keep dispatch
        order; each is an ``UploadOutcome`` or the exception that ended
        that file's pipeline.
        """
        total = len(files)
        pipelines = []
        for index, file in enumerate(files, start=1):
            file.retry_count = 0
            remote_key = build_remote_key(self.config.key_prefix, file.name)
            pipelines.append(self.gate.resolve(file, remote_key, index, total))

        results = await asyncio.gather(*pipelines, return_exceptions=True)
        return BatchResult(results=list(results))

    async def emit(
        self,
        files: Sequence[FileRecord],
        asset_map: Optional[MutableMapping[str, object]] = None,
        errors: Optional[List[Exception]] = None,
        callback: Optional[Callable[[], None]] = None,
    ) -> BatchRun:
        """
        Select, upload and finalize one build's output.

        Args:
            files: Every file the build produced
            asset_map: In-memory build output; with removeMode, uploaded entries
                are removed from it instead of deleting files on disk
            errors: Build error collection; a surfaced batch error is appended
                here instead of being raised
            callback: Invoked exactly once when the run ends

        Returns:
            BatchRun describing the batch

        Raises:
            BatchError: If a file failed terminally, ignoreError is off and no
                ``errors`` list was given
        """
        set_correlation_id(f"batch-{uuid.uuid4().hex[:12]}")
        try:
            return await self._emit(files, asset_map, errors)
        finally:
            if callback is not None:
                callback()

    async def _emit(
        self,
        files: Sequence[FileRecord],
        asset_map: Optional[MutableMapping[str, object]],
        errors: Optional[List[Exception]],
    ) -> BatchRun:
        selected = select_files(
            files, self.config.include_pattern, self.config.exclude_pattern
        )
        run = BatchRun(selected=selected)

        if not selected:
            self.upload_log.warn(
                "🤔 No files found for upload, please check your configuration!"
            )
            self.metrics.record_batch("empty")
            return run

        self.upload_log.log(f"🚀 Upload starts...... ({len(selected)} files)")
        run.result = await self.run(selected)

        first_error = run.result.first_error
        if first_error is None:
            self.upload_log.log(
                f"🎉 Upload completed: {run.result.succeeded - run.result.skipped} uploaded, "
                f"{run.result.skipped} already present"
            )
            self.metrics.record_batch("success")
            if self.config.remove_after_upload:
                run.removed = self._remove_originals(selected, asset_map)
            return run

        batch_error = BatchError(first_error, failed=run.result.failed, total=len(selected))
        run.error = batch_error
        self.upload_log.error(
            f"❌ Upload error ::: {batch_error.code}-{batch_error.name}: {batch_error.message} "
            f"({batch_error.failed}/{batch_error.total} files failed)",
            event="batch_failure",
        )

        if self.config.suppress_errors:
            run.suppressed = True
            self.metrics.record_batch("suppressed")
            return run

        self.metrics.record_batch("failure")
        if errors is not None:
            errors.append(batch_error)
            return run
        raise batch_error from first_error

    def _remove_originals(
        self,
        files: Sequence[FileRecord],
        asset_map: Optional[MutableMapping[str, object]],
    ) -> List[str]:
        """Best-effort removal of uploaded originals; failures are only logged."""
        removed: List[str] = []
        for file in files:
            if asset_map is not None:
                asset_map.pop(file.name, None)
                removed.append(file.name)
                continue

            if file.source_path is None:
                continue

            try:
                Path(file.source_path).unlink()
            except OSError as e:
                self.upload_log.warn(f"Could not remove {file.source_path}: {e}")
                continue
            removed.append(file.name)

        self.upload_log.debug(f"Removed {len(removed)} uploaded originals")
        return removed
