"""
Structured logging for the session store.

This module renders log records as single-line JSON so store traces
(statements, outcomes, driver messages) can be shipped and queried
alongside the host application's logs.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional, Dict, TextIO


class JSONFormatter(logging.Formatter):
    """
    Log formatter that outputs records in JSON format.
    
    Each log entry contains:
    - timestamp: ISO 8601 formatted UTC timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: The log message
    - logger: Name of the logger that produced the entry
    
    Additional fields can be included via the 'extra_data' attribute
    on the log record, e.g. ``extra={"extra_data": {"session_id": sid}}``.
    """
    
    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        
        if record.module:
            log_data["module"] = record.module
        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno
        
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data.update(extra_data)
        
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        
        if record.stack_info:
            log_data["stack_trace"] = record.stack_info
        
        return json.dumps(log_data, default=str)


def configure_logging(
    settings: Optional[Any] = None,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Install JSON logging on the root logger.
    
    Existing root handlers are replaced to avoid duplicate output.
    
    Args:
        settings: Settings carrying a ``log_level`` attribute. INFO when omitted.
        stream: Output stream, stdout by default.
        
    Returns:
        The root logger.
    """
    log_level_str = "INFO"
    if settings is not None and getattr(settings, "log_level", None):
        log_level_str = settings.log_level
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)
    
    logging.getLogger("telemetry").debug("JSON logging configured", extra={
        "extra_data": {"log_level": log_level_str}
    })
    return root_logger
