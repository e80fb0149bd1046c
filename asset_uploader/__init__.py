"""
Asset Uploader

A post-build step that pushes a static-site bundler's output files to an
object-storage bucket, skipping objects that already exist, retrying failed
puts, and optionally removing the local copies once the batch succeeds.

This package provides modular components for each stage of the upload:
- uploader: file selection, existence checks, per-file upload and batch orchestration
- utils: Logging, metrics, retry and configuration helpers

See DESIGN.md for the component layout.
"""

__version__ = "0.1.0"

# Package-level imports
from asset_uploader.utils.logging import setup_logging

# Initialize default logging configuration
setup_logging()
