"""
Object storage uploader module.

Provides the batch upload pipeline for build output: file selection,
existence checks, per-file upload with bounded retry, and the orchestrator
that aggregates a batch and decides whether its failure stops the build.
"""

from .adapter import (
    collect_output_files,
    deploy_assets,
    deploy_build_output,
    records_from_assets,
)
from .codec import encode_content
from .exceptions import (
    AssetUploaderError,
    BatchError,
    EncodingError,
    FileReadError,
    RemoteStoreError,
    UploadError,
)
from .gate import ExistenceGate
from .models import (
    BatchResult,
    BatchRun,
    FileRecord,
    OutcomeStatus,
    UploadOutcome,
    build_remote_key,
)
from .orchestrator import BatchOrchestrator
from .selector import select_files
from .store import GcsObjectStore, RemoteObjectStore
from .task import UploadTask

__all__ = [
    "AssetUploaderError",
    "BatchError",
    "BatchOrchestrator",
    "BatchResult",
    "BatchRun",
    "EncodingError",
    "ExistenceGate",
    "FileReadError",
    "FileRecord",
    "GcsObjectStore",
    "OutcomeStatus",
    "RemoteObjectStore",
    "RemoteStoreError",
    "UploadError",
    "UploadOutcome",
    "UploadTask",
    "build_remote_key",
    "collect_output_files",
    "deploy_assets",
    "deploy_build_output",
    "encode_content",
    "records_from_assets",
    "select_files",
]
