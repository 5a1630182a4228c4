"""Shared pytest fixtures for fastapi-xray-middleware tests."""

import logging
import uuid
from collections.abc import Iterator
from typing import Any

import pytest
from aws_xray_sdk.core.recorder import AWSXRayRecorder

from fastapi_xray_middleware.config import MiddlewareSettings


class CapturingEmitter:
    """Emitter that keeps sent entities in memory instead of using UDP."""

    def __init__(self) -> None:
        self.entities: list[Any] = []

    def send_entity(self, entity: Any) -> None:
        self.entities.append(entity)

    def set_daemon_address(self, address: str | None) -> None:
        pass


class RecordingHandler(logging.Handler):
    """Collects log records for assertions."""

    def __init__(self) -> None:
        super().__init__(level=logging.NOTSET)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self, level: int | None = None) -> list[str]:
        return [r.getMessage() for r in self.records if level is None or r.levelno == level]


@pytest.fixture
def settings() -> MiddlewareSettings:
    """Settings with a recognizable app and segment name."""
    return MiddlewareSettings(
        app_name="orders-api",
        segment_name="orders",
        trace_header="X-Amzn-Trace-Id",
        log_level="DEBUG",
    )


@pytest.fixture
def emitter() -> CapturingEmitter:
    return CapturingEmitter()


@pytest.fixture
def recorder(emitter: CapturingEmitter) -> AWSXRayRecorder:
    """Recorder that samples everything and emits into memory."""
    rec = AWSXRayRecorder()
    rec.configure(sampling=False, emitter=emitter)
    return rec


@pytest.fixture
def log_records() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def logger(log_records: RecordingHandler) -> Iterator[logging.Logger]:
    """Isolated DEBUG logger wired to ``log_records``."""
    test_logger = logging.getLogger(f"fastapi_xray_middleware.tests.{uuid.uuid4().hex}")
    test_logger.setLevel(logging.DEBUG)
    test_logger.propagate = False
    test_logger.addHandler(log_records)
    yield test_logger
    test_logger.removeHandler(log_records)
