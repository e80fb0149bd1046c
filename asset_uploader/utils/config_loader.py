"""
Options file loader and validator for the asset uploader.

Loads YAML options files for the deploy script and validates them against
the option table before they are merged into an ``UploadConfiguration``.

Example options file (deploy.yaml):
    ```yaml
    cosOptions:
      Bucket: my-site-assets
      Region: europe-west1
      Headers:
        Cache-Control: public, max-age=31536000
    cosBaseDir: static
    project: storefront
    exclude: '.*\\.(html|map)$'
    retry: 2
    existCheck: true
    gzip: false
    ```

Usage:
    >>> from asset_uploader.utils.config_loader import load_options, validate_options
    >>> options = load_options("deploy.yaml")
    >>> errors = validate_options(options)
    >>> if not errors:
    ...     print(f"Uploading under {options.get('cosBaseDir')}/{options.get('project')}")
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from asset_uploader.utils.config import KNOWN_OPTIONS, KNOWN_STORE_OPTIONS
from asset_uploader.utils.logging import get_logger

logger = get_logger(__name__)

BOOL_OPTIONS = ["enableLog", "ignoreError", "removeMode", "existCheck", "gzip"]
STRING_OPTIONS = ["cosBaseDir", "project"]
PATTERN_OPTIONS = ["include", "exclude"]
STRING_STORE_OPTIONS = ["Bucket", "Region", "Project", "Credentials"]


@dataclass
class ConfigError:
    """Validation error in an options file."""

    field: str
    message: str
    value: Optional[Any] = None

    def __str__(self) -> str:
        """Format error message."""
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value})"
        return f"{self.field}: {self.message}"


def load_options(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load upload options from a YAML file.

    Args:
        config_path: Path to YAML options file

    Returns:
        Dictionary of options keyed by their camelCase names

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the path is not a file, is empty, or isn't a mapping
        yaml.YAMLError: If YAML is malformed
    """
    path = Path(config_path)
    logger.info(f"Loading upload options from: {path}")

    if not path.exists():
        raise FileNotFoundError(f"Options file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Options path is not a file: {path}")

    try:
        with open(path, "r") as f:
            options = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise

    if options is None:
        raise ValueError("Options file is empty")

    if not isinstance(options, dict):
        raise ValueError(
            f"Options file must contain a mapping, got {type(options).__name__}"
        )

    logger.info(f"✓ Options loaded: {sorted(options)}")
    return options


def validate_options(options: Dict[str, Any]) -> List[ConfigError]:
    """
    Validate an option mapping against the option table.

    Args:
        options: Option mapping to validate

    Returns:
        List of validation errors (empty if valid)

    Example:
        >>> errors = validate_options({"retry": "three", "gzip": True})
        >>> [str(e) for e in errors]
        ['retry: Must be an integer (got: three)']
    """
    errors: List[ConfigError] = []

    for key in options:
        if key not in KNOWN_OPTIONS:
            errors.append(ConfigError(key, "Unknown option"))

    for key in BOOL_OPTIONS:
        if key in options and not isinstance(options[key], bool):
            errors.append(ConfigError(key, "Must be a boolean", options[key]))

    for key in STRING_OPTIONS:
        if key in options and not isinstance(options[key], str):
            errors.append(ConfigError(key, "Must be a string", options[key]))

    for key in PATTERN_OPTIONS:
        if key in options:
            errors.extend(_validate_pattern(key, options[key]))

    if "retry" in options:
        retry = options["retry"]
        if isinstance(retry, bool) or not isinstance(retry, int):
            errors.append(ConfigError("retry", "Must be an integer", retry))
        elif retry < 0:
            errors.append(ConfigError("retry", "Must be zero or greater", retry))

    if "cosOptions" in options:
        errors.extend(_validate_store_options(options["cosOptions"]))

    if errors:
        logger.warning(f"Options validation failed with {len(errors)} errors")
    else:
        logger.info("✓ Options validation passed")

    return errors


def _validate_pattern(key: str, pattern: Any) -> List[ConfigError]:
    """Validate an include/exclude regular expression."""
    if isinstance(pattern, re.Pattern):
        return []
    if not isinstance(pattern, str):
        return [ConfigError(key, "Must be a regular expression string", pattern)]
    try:
        re.compile(pattern)
    except re.error as e:
        return [ConfigError(key, f"Invalid regular expression: {e}", pattern)]
    return []


def _validate_store_options(store_options: Any) -> List[ConfigError]:
    """Validate the cosOptions sub-mapping."""
    errors: List[ConfigError] = []

    if not isinstance(store_options, dict):
        errors.append(
            ConfigError("cosOptions", "Must be a mapping", type(store_options).__name__)
        )
        return errors

    for key, value in store_options.items():
        prefix = f"cosOptions.{key}"
        if key not in KNOWN_STORE_OPTIONS:
            errors.append(ConfigError(prefix, "Unknown store option"))
        elif key in STRING_STORE_OPTIONS and not isinstance(value, str):
            errors.append(ConfigError(prefix, "Must be a string", value))
        elif key == "Headers" and not isinstance(value, dict):
            errors.append(ConfigError(prefix, "Must be a mapping", type(value).__name__))

    return errors
