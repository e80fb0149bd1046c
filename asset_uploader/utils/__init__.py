"""
Utility modules for the asset uploader.

This package provides shared utilities used across the upload pipeline:
- logging: Structured logging, correlation IDs and the per-run upload logger
- config: Typed upload configuration and option merging
- config_loader: YAML options files and validation
- metrics: Prometheus counters for uploads
- retry: Immediate bounded retry loop
"""

from asset_uploader.utils.logging import get_logger, log_function_call

__all__ = ["get_logger", "log_function_call"]
