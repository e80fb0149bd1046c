"""
Upload configuration for the asset uploader.

Builds the immutable ``UploadConfiguration`` for one run from the defaults
and the user's option mapping (the camelCase keys accepted by the build
integration), and loads store credentials from the environment or a .env
file.

Merge rules are explicit and field by field: scalar options replace the
default outright, while the ``cosOptions`` sub-mapping (and its ``Headers``)
merges key by key into the defaults.
"""

import math
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Pattern, Union

from dotenv import load_dotenv

from asset_uploader.utils.logging import get_logger

logger = get_logger(__name__)

PatternLike = Union[str, Pattern[str]]

DEFAULT_EXCLUDE = r".*\.html$"
DEFAULT_INCLUDE = r".*"
DEFAULT_RETRY = 3

# Option key -> UploadOptions attribute
_SCALAR_OPTIONS = {
    "exclude": "exclude",
    "include": "include",
    "enableLog": "enable_log",
    "ignoreError": "ignore_error",
    "removeMode": "remove_mode",
    "cosBaseDir": "cos_base_dir",
    "project": "project",
    "retry": "retry",
    "existCheck": "exist_check",
    "gzip": "gzip",
}

# cosOptions key -> StoreOptions attribute
_STORE_OPTIONS = {
    "Bucket": "bucket",
    "Region": "region",
    "Project": "project",
    "Credentials": "credentials_path",
}

KNOWN_OPTIONS = frozenset(list(_SCALAR_OPTIONS) + ["cosOptions"])
KNOWN_STORE_OPTIONS = frozenset(list(_STORE_OPTIONS) + ["Headers"])


@dataclass(frozen=True)
class StoreOptions:
    """
    Credentials and target for the remote object store (``cosOptions``).

    Passed through opaquely to the store implementation; the upload core
    only reads ``bucket`` and ``region`` to address objects.

    Attributes:
        bucket: Target bucket name
        region: Bucket region/location, forwarded with every call
        project: Cloud project that owns the bucket (None uses the ambient default)
        credentials_path: Service account JSON file (None uses ambient credentials)
        headers: Upload headers (Content-Type, Content-Encoding, Cache-Control)
    """

    bucket: str = ""
    region: str = ""
    project: Optional[str] = None
    credentials_path: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "StoreOptions":
        """
        Load store options from environment variables.

        Attempts to load a .env file from the working directory first, then
        reads GCS_BUCKET, GCS_REGION, GOOGLE_CLOUD_PROJECT and
        GOOGLE_APPLICATION_CREDENTIALS. Missing values stay empty so that an
        options file can still supply them.

        Returns:
            StoreOptions instance with loaded values
        """
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        return cls(
            bucket=os.getenv("GCS_BUCKET", ""),
            region=os.getenv("GCS_REGION", ""),
            project=os.getenv("GOOGLE_CLOUD_PROJECT"),
            credentials_path=os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
        )

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "StoreOptions":
        """Return a copy with ``cosOptions``-style keys applied key by key."""
        if not overrides:
            return self

        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key == "Headers":
                if isinstance(value, Mapping):
                    changes["headers"] = {**self.headers, **value}
                else:
                    changes["headers"] = dict(value or {})
            elif key in _STORE_OPTIONS:
                changes[_STORE_OPTIONS[key]] = value
            else:
                logger.warning(f"Ignoring unknown cosOptions key: {key}")
        return replace(self, **changes)


@dataclass(frozen=True)
class UploadOptions:
    """
    Raw user-facing options, before normalization.

    Mirrors the option table of the build integration one to one; defaults
    are the plugin defaults.
    """

    cos_options: StoreOptions = field(default_factory=StoreOptions)
    exclude: PatternLike = DEFAULT_EXCLUDE
    include: PatternLike = DEFAULT_INCLUDE
    enable_log: bool = False
    ignore_error: bool = False
    remove_mode: bool = False
    cos_base_dir: str = ""
    project: str = ""
    retry: Any = DEFAULT_RETRY
    exist_check: bool = True
    gzip: bool = False


def merge_options(
    defaults: UploadOptions, overrides: Optional[Mapping[str, Any]]
) -> UploadOptions:
    """
    Merge a user option mapping into ``defaults``.

    Args:
        defaults: Base options
        overrides: User options keyed by the integration's camelCase names

    Returns:
        New UploadOptions; ``defaults`` is left untouched

    Example:
        >>> opts = merge_options(UploadOptions(), {"retry": 1, "cosOptions": {"Bucket": "b"}})
        >>> opts.retry, opts.cos_options.bucket
        (1, 'b')
    """
    if not overrides:
        return defaults

    changes: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key == "cosOptions":
            if isinstance(value, Mapping):
                changes["cos_options"] = defaults.cos_options.merged(value)
            elif isinstance(value, StoreOptions):
                changes["cos_options"] = value
            else:
                changes["cos_options"] = StoreOptions()
        elif key in _SCALAR_OPTIONS:
            changes[_SCALAR_OPTIONS[key]] = value
        else:
            logger.warning(f"Ignoring unknown option: {key}")
    return replace(defaults, **changes)


def normalize_retry_limit(value: Any) -> int:
    """
    Normalize a configured retry count to a non-negative integer.

    Negative and non-numeric values (booleans and numeric strings included),
    NaN and infinities become 0. Fractional values round up.

    Example:
        >>> normalize_retry_limit(-1), normalize_retry_limit("3"), normalize_retry_limit(2.5)
        (0, 0, 3)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        value = math.ceil(value)
    return max(int(value), 0)


def compile_pattern(pattern: Optional[PatternLike], default: str) -> Pattern[str]:
    """Compile a string pattern; compiled patterns pass through unchanged."""
    if pattern is None:
        pattern = default
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


def join_key_prefix(base_dir: str, project: str) -> str:
    """Join the base dir and project into the remote key prefix."""
    return f"{base_dir or ''}/{project or ''}"


@dataclass(frozen=True)
class UploadConfiguration:
    """
    Configuration for one orchestrator run. Immutable once built.

    Attributes:
        store_options: Credentials and target passed to the remote store
        base_dir: First key prefix segment (cosBaseDir)
        project: Second key prefix segment
        key_prefix: Base dir and project joined with '/'
        include_pattern: Files must match this to be uploaded
        exclude_pattern: Files matching this are never uploaded
        retry_limit: Extra attempts after the first, always >= 0
        existence_check_enabled: Check the store for the key before uploading
        remove_after_upload: Delete originals after a successful batch
        compress_before_upload: Gzip content before upload
        suppress_errors: Log terminal batch errors instead of raising them
        logging_enabled: Promote verbose lines to INFO
    """

    store_options: StoreOptions = field(default_factory=StoreOptions)
    base_dir: str = ""
    project: str = ""
    key_prefix: str = "/"
    include_pattern: Pattern[str] = field(default_factory=lambda: re.compile(DEFAULT_INCLUDE))
    exclude_pattern: Pattern[str] = field(default_factory=lambda: re.compile(DEFAULT_EXCLUDE))
    retry_limit: int = DEFAULT_RETRY
    existence_check_enabled: bool = True
    remove_after_upload: bool = False
    compress_before_upload: bool = False
    suppress_errors: bool = False
    logging_enabled: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "retry_limit", normalize_retry_limit(self.retry_limit))

    @property
    def bucket(self) -> str:
        return self.store_options.bucket

    @property
    def region(self) -> str:
        return self.store_options.region

    @property
    def max_attempts(self) -> int:
        """Total attempts allowed per file (first attempt plus retries)."""
        return self.retry_limit + 1

    @classmethod
    def from_options(cls, options: UploadOptions) -> "UploadConfiguration":
        """Normalize raw options into a run configuration."""
        return cls(
            store_options=options.cos_options,
            base_dir=options.cos_base_dir or "",
            project=options.project or "",
            key_prefix=join_key_prefix(options.cos_base_dir, options.project),
            include_pattern=compile_pattern(options.include, DEFAULT_INCLUDE),
            exclude_pattern=compile_pattern(options.exclude, DEFAULT_EXCLUDE),
            retry_limit=options.retry,
            existence_check_enabled=bool(options.exist_check),
            remove_after_upload=bool(options.remove_mode),
            compress_before_upload=bool(options.gzip),
            suppress_errors=bool(options.ignore_error),
            logging_enabled=bool(options.enable_log),
        )


def build_configuration(
    overrides: Optional[Mapping[str, Any]] = None,
    defaults: Optional[UploadOptions] = None,
) -> UploadConfiguration:
    """
    Build the run configuration from defaults merged with user options.

    Args:
        overrides: User option mapping (cosOptions, exclude, include, retry, ...)
        defaults: Base options (plugin defaults if None)

    Returns:
        UploadConfiguration with the retry limit normalized

    Raises:
        re.error: If include/exclude is not a valid regular expression

    Example:
        >>> config = build_configuration({"cosBaseDir": "static", "project": "app", "retry": -2})
        >>> config.key_prefix, config.retry_limit
        ('static/app', 0)
    """
    options = merge_options(defaults or UploadOptions(), overrides)
    return UploadConfiguration.from_options(options)
