"""X-Ray tracing middleware and trace-aware log formatting for FastAPI."""

# Configuration
from fastapi_xray_middleware.config import MiddlewareSettings, get_settings

# Request logging context
from fastapi_xray_middleware.core.context import (
    TransactionContext,
    TransactionLogger,
    new_transaction_context,
)

# Logging
from fastapi_xray_middleware.core.formatter import (
    TRACE,
    LogFormat,
    configure_logging,
    resolve_log_level,
)

# Tracing
from fastapi_xray_middleware.core.header import build_response_header, client_ip, parse_trace_header
from fastapi_xray_middleware.core.naming import DynamicSegmentNamer, FixedSegmentNamer, SegmentNamer
from fastapi_xray_middleware.core.segment import TracedSegment, open_segment
from fastapi_xray_middleware.core.status import StatusFlags, classify_status

# Exceptions
from fastapi_xray_middleware.exceptions import SegmentMetadataError, XRayMiddlewareError

# ASGI middleware and outbound transports
from fastapi_xray_middleware.fastapi.middleware import XRayMiddleware
from fastapi_xray_middleware.fastapi.transport import AsyncLoggingTransport, LoggingTransport

__all__ = [
    # Primary API
    "XRayMiddleware",
    "LoggingTransport",
    "AsyncLoggingTransport",
    # Configuration
    "MiddlewareSettings",
    "get_settings",
    # Logging
    "TRACE",
    "LogFormat",
    "configure_logging",
    "resolve_log_level",
    "TransactionContext",
    "TransactionLogger",
    "new_transaction_context",
    # Core types
    "DynamicSegmentNamer",
    "FixedSegmentNamer",
    "SegmentNamer",
    "StatusFlags",
    "TracedSegment",
    "build_response_header",
    "classify_status",
    "client_ip",
    "open_segment",
    "parse_trace_header",
    # Exceptions
    "SegmentMetadataError",
    "XRayMiddlewareError",
]

__version__ = "0.1.0"
