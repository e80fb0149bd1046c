"""Tests for pipeline data types and errors."""

import pytest

from asset_uploader.uploader import (
    BatchError,
    BatchResult,
    FileReadError,
    FileRecord,
    OutcomeStatus,
    RemoteStoreError,
    UploadError,
    UploadOutcome,
    build_remote_key,
)


@pytest.mark.parametrize(
    "prefix,name,expected",
    [
        ("static/app", "assets/index.js", "static/app/assets/index.js"),
        ("/", "favicon.ico", "favicon.ico"),
        ("/", "/favicon.ico", "favicon.ico"),
        ("static/", "assets/app.js", "static/assets/app.js"),
        ("/app", "assets/app.js", "app/assets/app.js"),
        ("static/app", "assets\\img\\logo.png", "static/app/assets/img/logo.png"),
        ("static//app", "./robots.txt", "static/app/robots.txt"),
    ],
)
def test_build_remote_key(prefix, name, expected):
    """Test keys use forward slashes without empty segments."""
    assert build_remote_key(prefix, name) == expected


class TestFileRecord:
    """Test FileRecord content access."""

    def test_reads_once_from_disk(self, tmp_path):
        """Test content is loaded on first use and cached."""
        path = tmp_path / "app.js"
        path.write_bytes(b"v1")
        record = FileRecord("app.js", source_path=path)

        assert record.read_content() == b"v1"
        path.write_bytes(b"v2")
        assert record.read_content() == b"v1"

    def test_missing_file(self, tmp_path):
        """Test an unreadable file raises FileReadError naming the file."""
        record = FileRecord("app.js", source_path=tmp_path / "app.js")

        with pytest.raises(FileReadError) as exc_info:
            record.read_content()

        assert exc_info.value.file_name == "app.js"

    def test_no_source(self):
        """Test a record with neither content nor path cannot be read."""
        with pytest.raises(FileReadError):
            FileRecord("ghost.js").read_content()


class TestBatchResult:
    """Test BatchResult aggregation."""

    def test_counts(self):
        """Test succeeded, skipped, failed and first_error."""
        uploaded = UploadOutcome(FileRecord("a.js"), "a.js", OutcomeStatus.UPLOADED, 1, 1)
        skipped = UploadOutcome(FileRecord("b.js"), "b.js", OutcomeStatus.SKIPPED_EXISTING, 2)
        first = UploadError("503", "ServiceUnavailable", "down", "c.js", 4)
        second = FileReadError("cannot read", "d.js")

        result = BatchResult([uploaded, first, skipped, second])

        assert result.succeeded == 2
        assert result.skipped == 1
        assert result.failed == 2
        assert result.first_error is first
        assert not result.ok

    def test_empty_is_ok(self):
        """Test an empty batch has no errors."""
        result = BatchResult()

        assert result.ok
        assert result.first_error is None


class TestErrors:
    """Test error payloads."""

    def test_upload_error_from_store_error(self):
        """Test the store error's code, name and message are carried over."""
        store_error = RemoteStoreError("forbidden", "Forbidden", "denied", 403)

        error = UploadError.from_store_error(store_error, "static/a.js", 4)

        assert (error.code, error.name, error.message) == ("forbidden", "Forbidden", "denied")
        assert error.remote_key == "static/a.js"
        assert error.attempts == 4
        assert str(error) == "forbidden-Forbidden: denied"

    def test_batch_error_exposes_cause(self):
        """Test BatchError mirrors its cause and counts."""
        cause = UploadError("503", "ServiceUnavailable", "down")

        error = BatchError(cause, failed=2, total=5)

        assert error.cause is cause
        assert (error.code, error.name, error.message) == ("503", "ServiceUnavailable", "down")
        assert str(error) == "503-ServiceUnavailable: down"
        assert (error.failed, error.total) == (2, 5)

    def test_file_read_error_code(self):
        """Test local errors carry their own code and name."""
        error = BatchError(FileReadError("cannot read", "a.js"))

        assert error.code == "FileReadError"
        assert error.name == "FileReadError"
