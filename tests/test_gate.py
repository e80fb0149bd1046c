"""Tests for the existence check in front of the upload task."""

import asyncio
import logging

from asset_uploader.uploader import (
    ExistenceGate,
    FileRecord,
    OutcomeStatus,
    RemoteStoreError,
    UploadTask,
)
from asset_uploader.utils.config import build_configuration
from asset_uploader.utils.logging import UploadLogger

KEY = "static/app/logo.png"


def make_gate(store, metrics, **options):
    config = build_configuration(options)
    upload_log = UploadLogger(enabled=False)
    task = UploadTask(store, config, upload_log, metrics)
    return ExistenceGate(store, task, config, upload_log, metrics)


def forbidden() -> RemoteStoreError:
    return RemoteStoreError("forbidden", "Forbidden", "no storage.objects.get access", 403)


class TestExistenceGate:
    """Test ExistenceGate.resolve."""

    def test_disabled_check_uploads_without_head_call(self, make_store, quiet_metrics):
        """Test existCheck=False never calls head_exists."""
        store = make_store(existing={KEY: b"old"})
        gate = make_gate(store, quiet_metrics, existCheck=False)

        outcome = asyncio.run(gate.resolve(FileRecord("logo.png", content=b"new"), KEY))

        assert outcome.status is OutcomeStatus.UPLOADED
        assert store.head_calls == []
        assert store.objects[KEY] == b"new"

    def test_existing_object_is_skipped(self, make_store, quiet_metrics):
        """Test an existing object skips the upload."""
        store = make_store(existing={KEY: b"old"})
        gate = make_gate(store, quiet_metrics)
        record = FileRecord("logo.png", content=b"new")

        outcome = asyncio.run(gate.resolve(record, KEY, 2, 5))

        assert outcome.status is OutcomeStatus.SKIPPED_EXISTING
        assert outcome.uploaded is False
        assert outcome.index == 2
        assert outcome.attempts == 0
        assert store.put_calls == []
        assert store.objects[KEY] == b"old"
        assert record.retry_count == 0

    def test_missing_object_is_uploaded(self, make_store, quiet_metrics):
        """Test a not-found result leads to one upload."""
        store = make_store()
        gate = make_gate(store, quiet_metrics)

        outcome = asyncio.run(gate.resolve(FileRecord("logo.png", content=b"png"), KEY))

        assert outcome.status is OutcomeStatus.UPLOADED
        assert store.head_calls == [KEY]
        assert store.put_calls == [KEY]

    def test_permission_denied_warns_and_uploads(self, make_store, quiet_metrics, caplog):
        """Test a 403 on the existence check logs a warning and still uploads."""
        caplog.set_level(logging.INFO)
        store = make_store(head_errors={KEY: forbidden()})
        gate = make_gate(store, quiet_metrics)

        outcome = asyncio.run(gate.resolve(FileRecord("logo.png", content=b"png"), KEY))

        assert outcome.status is OutcomeStatus.UPLOADED
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any("No read permission" in r.getMessage() for r in warnings)

    def test_other_existence_check_errors_upload_silently(self, make_store, quiet_metrics, caplog):
        """Test non-permission existence check errors upload without a warning."""
        caplog.set_level(logging.INFO)
        error = RemoteStoreError("500", "InternalServerError", "boom", 500)
        store = make_store(head_errors={KEY: error})
        gate = make_gate(store, quiet_metrics)

        outcome = asyncio.run(gate.resolve(FileRecord("logo.png", content=b"png"), KEY))

        assert outcome.status is OutcomeStatus.UPLOADED
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_existence_check_is_not_retried(self, make_store, quiet_metrics):
        """Test the existence check runs once even when the put is retried."""
        store = make_store(head_errors={KEY: forbidden()}, put_failures={KEY: 2})
        gate = make_gate(store, quiet_metrics, retry=3)

        asyncio.run(gate.resolve(FileRecord("logo.png", content=b"png"), KEY))

        assert store.head_calls == [KEY]
        assert len(store.put_calls) == 3

    def test_skip_is_logged(self, make_store, quiet_metrics, caplog):
        """Test skipped files log the already-exists line with index and key."""
        caplog.set_level(logging.INFO)
        store = make_store(existing={KEY: b"old"})
        gate = make_gate(store, quiet_metrics)

        asyncio.run(gate.resolve(FileRecord("logo.png", content=b"new"), KEY, 1, 3))

        assert any(
            f"File already exists, no need for upload 1/3: {KEY}" in r.getMessage()
            for r in caplog.records
        )

    def test_unexpected_existence_check_error_uploads(self, make_store, quiet_metrics, caplog):
        """Test an error outside RemoteStoreError still leads to an upload."""
        caplog.set_level(logging.INFO)
        store = make_store(head_errors={KEY: ValueError("malformed response")})
        gate = make_gate(store, quiet_metrics)

        outcome = asyncio.run(gate.resolve(FileRecord("logo.png", content=b"png"), KEY))

        assert outcome.status is OutcomeStatus.UPLOADED
        assert store.head_calls == [KEY]
        assert store.put_calls == [KEY]
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
