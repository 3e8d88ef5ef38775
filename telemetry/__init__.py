"""
Telemetry module for structured logging.

This module provides:
- JSONFormatter for structured JSON log output
- configure_logging to install it on the root logger
"""

from telemetry.service import JSONFormatter, configure_logging

__all__ = [
    "JSONFormatter",
    "configure_logging",
]
