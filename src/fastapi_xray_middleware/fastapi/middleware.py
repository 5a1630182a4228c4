"""ASGI middleware that traces each inbound HTTP request with X-Ray.

Usage:
    from fastapi import FastAPI
    from fastapi_xray_middleware import XRayMiddleware, configure_logging, get_settings

    settings = get_settings()
    logger = configure_logging(settings)

    app = FastAPI()
    app.add_middleware(XRayMiddleware, settings=settings, logger=logger)

Handlers reach the open segment and its logging context through
``request.state.xray_segment`` and ``request.state.transaction``.
"""

import logging
from dataclasses import dataclass, field

from aws_xray_sdk.core import xray_recorder
from aws_xray_sdk.core.recorder import AWSXRayRecorder
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from fastapi_xray_middleware.config import MiddlewareSettings, get_settings
from fastapi_xray_middleware.core.header import SAMPLED, parse_trace_header
from fastapi_xray_middleware.core.naming import FixedSegmentNamer, SegmentNamer
from fastapi_xray_middleware.core.segment import open_segment
from fastapi_xray_middleware.exceptions import SegmentMetadataError

RESPONSE_METADATA_KEY = "response"
SEGMENT_STATE_KEY = "xray_segment"
TRANSACTION_STATE_KEY = "transaction"


@dataclass
class ResponseCapture:
    """Copy of the status and body bytes sent to the client."""

    status: int | None = None
    body: bytearray = field(default_factory=bytearray)

    def write(self, chunk: bytes) -> None:
        self.body.extend(chunk)

    @property
    def size(self) -> int:
        return len(self.body)

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class XRayMiddleware:
    """Open, annotate and close one X-Ray segment per HTTP request.

    Args:
        app: The downstream ASGI application.
        settings: Trace header name and default segment name. Defaults to
            ``get_settings()``.
        recorder: Recorder providing the sampler and emitter. Defaults to the
            SDK's global ``xray_recorder``.
        namer: Segment naming strategy. Defaults to a fixed name taken from
            ``settings.segment_name``.
        logger: Logger used for every line this middleware writes.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        settings: MiddlewareSettings | None = None,
        recorder: AWSXRayRecorder | None = None,
        namer: SegmentNamer | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.app = app
        self.settings = settings or get_settings()
        self.recorder = recorder or xray_recorder
        self.namer = namer or FixedSegmentNamer(self.settings.segment_name)
        self.logger = logger or logging.getLogger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        header_name = self.settings.trace_header
        raw_header = request.headers.get(header_name, "")
        trace = parse_trace_header(raw_header)

        host = request.headers.get("host")
        name = self.namer.name(host)
        sampling_request = {"host": host, "method": request.method, "path": request.url.path}

        with open_segment(
            name, trace, self.recorder, self.logger, sampling_request=sampling_request
        ) as traced:
            log = traced.context.log
            log.info("%s: %s", header_name, raw_header)

            traced.capture_request(
                method=request.method,
                url=str(request.url),
                headers=request.headers,
                remote_addr=request.client.host if request.client else None,
                user_agent=request.headers.get("user-agent"),
            )
            response_header = traced.response_header(trace.get(SAMPLED))

            state = scope.setdefault("state", {})
            state[SEGMENT_STATE_KEY] = traced
            state[TRANSACTION_STATE_KEY] = traced.context

            capture = ResponseCapture()

            async def send_wrapper(message: Message) -> None:
                if message["type"] == "http.response.start":
                    capture.status = message["status"]
                    message.setdefault("headers", [])
                    MutableHeaders(scope=message)[header_name] = response_header
                elif message["type"] == "http.response.body":
                    capture.write(message.get("body", b""))
                await send(message)

            await self.app(scope, receive, send_wrapper)

            # a handler may have closed the segment through an outbound transport
            if traced.closed:
                log.debug("Segment %s closed by the handler, response not captured", traced.name)
                return

            if capture.status is not None:
                traced.capture_response(capture.status, capture.size)
            try:
                traced.attach_metadata(RESPONSE_METADATA_KEY, capture.text())
            except SegmentMetadataError:
                log.error("Error adding metadata to segment", exc_info=True)
