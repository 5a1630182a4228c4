"""Segment lifecycle and request/response capture.

Wraps an X-Ray ``Segment`` with the lock that guards its HTTP sub-records
and flags, and with a scoped opener that guarantees the segment is closed
on every exit path.
"""

import logging
import threading
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from aws_xray_sdk.core.models import http
from aws_xray_sdk.core.models.segment import Segment
from aws_xray_sdk.core.recorder import AWSXRayRecorder
from aws_xray_sdk.ext.util import calculate_sampling_decision

from fastapi_xray_middleware.core.context import TransactionContext, new_transaction_context
from fastapi_xray_middleware.core.header import (
    build_response_header,
    client_ip,
    has_x_forwarded_for,
    to_trace_header,
)
from fastapi_xray_middleware.core.status import StatusFlags, classify_status
from fastapi_xray_middleware.exceptions import SegmentMetadataError


class TracedSegment:
    """A segment owned by one request (or outbound call) until closed.

    All mutations of the segment go through this wrapper and are made
    while holding its lock. The lock is never held across a downstream
    call.
    """

    def __init__(self, segment: Segment, recorder: AWSXRayRecorder, logger: logging.Logger) -> None:
        self.segment = segment
        self.context: TransactionContext = new_transaction_context(segment.trace_id, logger)
        self._recorder = recorder
        self._lock = threading.Lock()
        self._closed = False

    @property
    def trace_id(self) -> str:
        return self.segment.trace_id

    @property
    def name(self) -> str:
        return self.segment.name

    @property
    def recorder(self) -> AWSXRayRecorder:
        return self._recorder

    @property
    def closed(self) -> bool:
        return self._closed

    def response_header(self, inbound_sampled: str | None) -> str:
        """Trace header value to return to the caller."""
        with self._lock:
            return build_response_header(self.segment.trace_id, inbound_sampled, self.segment.sampled)

    def capture_request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        remote_addr: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Record request metadata on the segment.

        Does nothing once the segment is closed.
        """
        with self._lock:
            if self._closed:
                self.context.log.debug("Segment %s already closed, request not captured", self.name)
                return
            self.segment.put_http_meta(http.METHOD, method)
            self.segment.put_http_meta(http.URL, url)
            self.segment.put_http_meta(http.X_FORWARDED_FOR, has_x_forwarded_for(headers))
            self.segment.put_http_meta(http.CLIENT_IP, client_ip(headers, remote_addr))
            self.segment.put_http_meta(http.USER_AGENT, user_agent)

    def capture_response(self, status: int, content_length: int | None = None) -> StatusFlags:
        """Record response metadata and status flags on the segment.

        The flags are returned even when the segment is already closed and
        nothing is recorded.
        """
        flags = classify_status(status)
        with self._lock:
            if self._closed:
                self.context.log.debug("Segment %s already closed, response not captured", self.name)
                return flags
            self.segment.put_http_meta(http.STATUS, status)
            self.segment.put_http_meta(http.CONTENT_LENGTH, content_length)
            if flags.error:
                self.segment.add_error_flag()
            if flags.throttle:
                self.segment.add_throttle_flag()
            if flags.fault:
                self.segment.add_fault_flag()
        return flags

    def record_fault(self) -> None:
        """Mark the segment as faulted after an unhandled error.

        A segment already closed (by an outbound transport, for instance)
        is left as it was sent.
        """
        with self._lock:
            if not self._closed:
                self.segment.add_fault_flag()

    def attach_metadata(self, key: str, value: Any) -> None:
        """Attach a value to the segment's default metadata namespace.

        Raises:
            SegmentMetadataError: If the segment rejects the value.
        """
        try:
            with self._lock:
                self.segment.put_metadata(key, value)
        except Exception as exc:
            raise SegmentMetadataError(
                f"Failed to add metadata '{key}' to segment '{self.segment.name}': {exc}"
            ) from exc

    def close(self) -> None:
        """Log the segment summary, close it and hand it to the emitter.

        Only the first call has any effect.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        end_time = time.time()

        log = self.context.log
        log.info("Trace ID: %s", self.segment.trace_id)
        log.info("Segment Name: %s", self.segment.name)
        log.debug("Start Time: %s", self.segment.start_time)
        log.debug("End Time: %s", end_time)
        log.debug("Metadata: %s", self.segment.metadata)

        with self._lock:
            self.segment.close(end_time)

        if self.segment.sampled:
            self._recorder.emitter.send_entity(self.segment)


@contextmanager
def open_segment(
    name: str,
    trace: Mapping[str, str],
    recorder: AWSXRayRecorder,
    logger: logging.Logger,
    *,
    sampling_request: Mapping[str, Any] | None = None,
) -> Iterator[TracedSegment]:
    """Start or continue a segment and close it when the block exits.

    Continues the trace named by ``trace["Root"]`` and ``trace["Parent"]``
    when present; otherwise the segment gets a fresh trace id and no
    parent. An exception escaping the block faults the segment and is
    re-raised once the segment is closed.

    Args:
        name: Segment name.
        trace: Parsed inbound trace header (see ``parse_trace_header``).
        recorder: Recorder supplying the sampler and the emitter.
        logger: Logger for the segment's transaction context.
        sampling_request: Extra attributes for sampling rules (host, method, path).

    Yields:
        The open ``TracedSegment``.
    """
    trace_header = to_trace_header(trace)
    decision = calculate_sampling_decision(
        trace_header=trace_header,
        recorder=recorder,
        sampling_req={"service": name, **(sampling_request or {})},
    )

    segment = Segment(
        name,
        traceid=trace_header.root,
        parent_id=trace_header.parent,
        sampled=bool(decision),
    )
    segment.save_origin_trace_header(trace_header)

    traced = TracedSegment(segment, recorder, logger)
    try:
        yield traced
    except Exception:
        traced.record_fault()
        traced.context.log.exception("Unhandled error in segment %s", name)
        raise
    finally:
        traced.close()
