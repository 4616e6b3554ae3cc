"""Structured logging module for tlexport.

Provides configurable logging with JSON format support and file rotation.
Includes export context support for background export workers.
"""

from tlexport.logging.config import configure_logging
from tlexport.logging.context import (
    ExportContextFilter,
    export_context,
    get_export_context,
)
from tlexport.logging.handlers import JSONFormatter

__all__ = [
    "ExportContextFilter",
    "JSONFormatter",
    "configure_logging",
    "export_context",
    "get_export_context",
]
