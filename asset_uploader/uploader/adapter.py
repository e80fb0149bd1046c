"""
Build integration: turn a finished build into an upload batch.

Two entry points, one per kind of build output:

* ``deploy_build_output`` for bundlers that write to an output directory
  (called once the bundle is closed);
* ``deploy_assets`` for bundlers that keep their output in an in-memory
  asset map; with removeMode the uploaded entries are dropped from that map.

Example usage:
    >>> run = asyncio.run(deploy_build_output("dist", {
    ...     "cosOptions": {"Bucket": "site-assets"},
    ...     "cosBaseDir": "static",
    ...     "project": "storefront",
    ... }))
"""

from pathlib import Path
from typing import Any, Callable, List, Mapping, MutableMapping, Optional, Union

from asset_uploader.uploader.models import BatchRun, FileRecord, to_bytes
from asset_uploader.uploader.orchestrator import BatchOrchestrator
from asset_uploader.uploader.store import GcsObjectStore, RemoteObjectStore
from asset_uploader.utils.config import UploadOptions, build_configuration
from asset_uploader.utils.logging import UploadLogger, get_logger, log_function_call

logger = get_logger(__name__)

AssetContent = Union[bytes, bytearray, str]


@log_function_call
def collect_output_files(out_dir: Union[str, Path]) -> List[FileRecord]:
    """
    List every file under the build output directory.

    Recurses into subdirectories, includes dotfiles, skips directories.
    Names are relative to ``out_dir`` with forward slashes; content is read
    lazily at upload time.

    Args:
        out_dir: Build output directory

    Returns:
        FileRecords sorted by name

    Raises:
        FileNotFoundError: If ``out_dir`` is not a directory
    """
    root = Path(out_dir).resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Build output directory not found: {root}")

    records = [
        FileRecord(name=path.relative_to(root).as_posix(), source_path=path)
        for path in root.rglob("*")
        if path.is_file()
    ]
    records.sort(key=lambda record: record.name)
    logger.info(f"Found {len(records)} files in {root}")
    return records


def records_from_assets(assets: Mapping[str, AssetContent]) -> List[FileRecord]:
    """Build FileRecords from an in-memory asset map, keeping its keys as names."""
    return [
        FileRecord(name=name, content=to_bytes(content))
        for name, content in assets.items()
    ]


def _build_orchestrator(
    options: Optional[Mapping[str, Any]], store: Optional[RemoteObjectStore]
) -> BatchOrchestrator:
    """Build the run configuration and orchestrator, dumping both option layers."""
    defaults = UploadOptions()
    config = build_configuration(options, defaults=defaults)
    upload_log = UploadLogger(logger, enabled=config.logging_enabled)
    upload_log.debug(f"🧩 Default configuration: {defaults}")
    upload_log.debug(f"🔧 Project configuration: {dict(options or {})}")
    store = store or GcsObjectStore(config.store_options)
    return BatchOrchestrator(config, store, upload_log)


async def deploy_build_output(
    out_dir: Union[str, Path],
    options: Optional[Mapping[str, Any]] = None,
    store: Optional[RemoteObjectStore] = None,
    callback: Optional[Callable[[], None]] = None,
    errors: Optional[List[Exception]] = None,
) -> BatchRun:
    """
    Upload a build output directory.

    Args:
        out_dir: Build output directory
        options: Upload options (cosOptions, exclude, include, retry, ...)
        store: Object store (a GcsObjectStore from cosOptions if None)
        callback: Invoked once when the batch ends
        errors: Build error collection (surfaced errors are appended, not raised)

    Returns:
        BatchRun for the batch

    Raises:
        BatchError: On a terminal upload failure with ignoreError off and no ``errors``
    """
    orchestrator = _build_orchestrator(options, store)
    files = collect_output_files(out_dir)
    return await orchestrator.emit(files, errors=errors, callback=callback)


async def deploy_assets(
    assets: MutableMapping[str, AssetContent],
    options: Optional[Mapping[str, Any]] = None,
    store: Optional[RemoteObjectStore] = None,
    callback: Optional[Callable[[], None]] = None,
    errors: Optional[List[Exception]] = None,
) -> BatchRun:
    """
    Upload an in-memory asset map (asset name -> content).

    With removeMode, uploaded entries are removed from ``assets`` so the
    bundler does not write them to disk.

    Args:
        assets: Asset map owned by the bundler
        options: Upload options
        store: Object store (a GcsObjectStore from cosOptions if None)
        callback: Invoked once when the batch ends
        errors: Build error collection

    Returns:
        BatchRun for the batch
    """
    orchestrator = _build_orchestrator(options, store)
    return await orchestrator.emit(
        records_from_assets(assets), asset_map=assets, errors=errors, callback=callback
    )
