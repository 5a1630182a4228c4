"""Single-line log formatter with trace and timing annotations.

Renders every record as:

    <timestamp> <LEVEL> <file>:<line> <app-name> [TRACEID <id> ][[<email>[|<mitra>]] ]MSSG:<message>[ [<n> ms]]

Recognized ``extra`` fields are TRACEID, EMAILREQ, MITRAREQ and
STARTTIME (epoch milliseconds). Anything else on the record is ignored.
"""

import logging
import sys
import time
from typing import IO, Any

from babel.numbers import format_decimal

from fastapi_xray_middleware.config import MiddlewareSettings

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

TRACE_ID_FIELD = "TRACEID"
EMAIL_REQUEST_FIELD = "EMAILREQ"
MITRA_REQUEST_FIELD = "MITRAREQ"
START_TIME_FIELD = "STARTTIME"

_LEVELS_BY_NAME: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "TRACE": TRACE,
}


def resolve_log_level(name: str | None) -> int:
    """Map a verbosity name to a logging level.

    Only DEBUG and TRACE are recognized; anything else (including None)
    falls back to INFO.
    """
    return _LEVELS_BY_NAME.get(name or "", logging.INFO)


class LogFormat(logging.Formatter):
    """Formatter producing one enriched text line per record.

    The application name is read from ``settings`` on every call, so a
    settings object swapped at runtime is picked up immediately.
    """

    default_msec_format = "%s,%03d"

    def __init__(self, settings: MiddlewareSettings) -> None:
        super().__init__()
        self.settings = settings
        self.default_time_format = settings.timestamp_format

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            self.formatTime(record),
            record.levelname.upper(),
            f"{record.filename}:{record.lineno}",
            self.settings.app_name,
        ]
        line = " ".join(parts) + " "

        trace_id = _field(record, TRACE_ID_FIELD)
        if trace_id:
            line += f"TRACEID {trace_id} "

        email_req = _field(record, EMAIL_REQUEST_FIELD)
        if email_req:
            mitra_req = _field(record, MITRA_REQUEST_FIELD)
            line += f"[{email_req}|{mitra_req}] " if mitra_req else f"[{email_req}] "

        message = record.getMessage()
        if message:
            line += f"MSSG:{message}"

        elapsed = self._elapsed_ms(record)
        if elapsed is not None:
            line += f" [{format_decimal(elapsed, locale=self.settings.number_locale)} ms]"

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line += "\n" + record.exc_text

        return line + "\n"

    @staticmethod
    def _elapsed_ms(record: logging.LogRecord) -> int | None:
        start = getattr(record, START_TIME_FIELD, None)
        if isinstance(start, bool) or not isinstance(start, (int, float)):
            return None
        return int(time.time() * 1000) - int(start)


def _field(record: logging.LogRecord, name: str) -> str:
    value: Any = getattr(record, name, None)
    return "" if value is None else str(value)


def configure_logging(
    settings: MiddlewareSettings,
    logger: logging.Logger | None = None,
    *,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Install ``LogFormat`` on a logger and set its level from settings.

    The level is resolved once here; later changes to ``settings.log_level``
    have no effect on an already configured logger.

    Args:
        settings: Source of verbosity, app name and formatting options.
        logger: Logger to configure. Defaults to the root logger.
        stream: Stream for the handler. Defaults to stderr.

    Returns:
        The configured logger, to be passed to the middleware.
    """
    target = logger if logger is not None else logging.getLogger()

    # replace a handler installed by an earlier call
    for existing in list(target.handlers):
        if isinstance(existing.formatter, LogFormat):
            target.removeHandler(existing)
            existing.close()

    handler = logging.StreamHandler(stream or sys.stderr)
    # the formatter already terminates each line
    handler.terminator = ""
    handler.setFormatter(LogFormat(settings))

    target.addHandler(handler)
    target.setLevel(resolve_log_level(settings.log_level))
    target.info(settings.log_level)
    return target
