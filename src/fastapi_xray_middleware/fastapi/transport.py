"""httpx transports that trace outbound calls on an existing segment.

Usage:
    with open_segment("billing-client", {}, xray_recorder, logger) as traced:
        client = httpx.Client(transport=LoggingTransport(traced, logger=logger))
        client.get("https://billing.internal/invoices")

Each call logs before and after forwarding the request, records request
and response metadata on the segment, and closes the segment whether
the call succeeded or not.
"""

import logging

import httpx

from fastapi_xray_middleware.core.context import new_transaction_context
from fastapi_xray_middleware.core.segment import TracedSegment


def _capture_request(segment: TracedSegment, request: httpx.Request) -> None:
    segment.capture_request(
        method=request.method,
        url=str(request.url),
        headers=request.headers,
        user_agent=request.headers.get("user-agent"),
    )


def _capture_response(segment: TracedSegment, response: httpx.Response) -> None:
    content_length = response.headers.get("content-length")
    segment.capture_response(
        response.status_code,
        int(content_length) if content_length and content_length.isdigit() else None,
    )


class LoggingTransport(httpx.BaseTransport):
    """Synchronous transport wrapper for ``httpx.Client``.

    Args:
        segment: Segment to annotate and close.
        transport: Transport that actually sends the request. Defaults to
            ``httpx.HTTPTransport()``.
        logger: Logger for before/after lines.
    """

    def __init__(
        self,
        segment: TracedSegment,
        transport: httpx.BaseTransport | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.segment = segment
        self.transport = transport or httpx.HTTPTransport()
        self.logger = logger or logging.getLogger(__name__)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        log = new_transaction_context(self.segment.trace_id, self.logger).log
        log.info("Sending request to %s", request.url)
        _capture_request(self.segment, request)
        try:
            response = self.transport.handle_request(request)
        except Exception as exc:
            log.error("Error: %s", exc)
            raise
        else:
            _capture_response(self.segment, response)
            log.info("Received response %s %s", response.status_code, response.reason_phrase)
            return response
        finally:
            self.segment.close()

    def close(self) -> None:
        self.transport.close()


class AsyncLoggingTransport(httpx.AsyncBaseTransport):
    """Asynchronous counterpart of ``LoggingTransport`` for ``httpx.AsyncClient``."""

    def __init__(
        self,
        segment: TracedSegment,
        transport: httpx.AsyncBaseTransport | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.segment = segment
        self.transport = transport or httpx.AsyncHTTPTransport()
        self.logger = logger or logging.getLogger(__name__)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        log = new_transaction_context(self.segment.trace_id, self.logger).log
        log.info("Sending request to %s", request.url)
        _capture_request(self.segment, request)
        try:
            response = await self.transport.handle_async_request(request)
        except Exception as exc:
            log.error("Error: %s", exc)
            raise
        else:
            _capture_response(self.segment, response)
            log.info("Received response %s %s", response.status_code, response.reason_phrase)
            return response
        finally:
            self.segment.close()

    async def aclose(self) -> None:
        await self.transport.aclose()
