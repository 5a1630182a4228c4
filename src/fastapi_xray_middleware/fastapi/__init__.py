"""FastAPI / Starlette and httpx adapters for X-Ray tracing."""

from fastapi_xray_middleware.fastapi.middleware import XRayMiddleware
from fastapi_xray_middleware.fastapi.transport import AsyncLoggingTransport, LoggingTransport

__all__ = ["AsyncLoggingTransport", "LoggingTransport", "XRayMiddleware"]
