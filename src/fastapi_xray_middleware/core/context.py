"""Per-request logging context carrying a trace id and start time."""

import logging
import time
from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import Any

from fastapi_xray_middleware.core.formatter import START_TIME_FIELD, TRACE_ID_FIELD


class TransactionLogger(logging.LoggerAdapter):
    """Logger adapter that merges per-call ``extra`` over its own fields.

    The stock adapter replaces call-site extras with the adapter's; here
    both survive, with call-site values taking precedence.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


@dataclass(frozen=True)
class TransactionContext:
    """Logging context for one request or outbound call.

    Attributes:
        trace_id: Trace id attached to every line logged through ``log``.
        start_time: Creation time in epoch milliseconds.
        log: Adapter that stamps TRACEID and STARTTIME on each record.
    """

    trace_id: str
    start_time: int
    log: TransactionLogger


def new_transaction_context(trace_id: str, logger: logging.Logger) -> TransactionContext:
    """Create a transaction context bound to ``logger``."""
    start_time = int(time.time() * 1000)
    fields = {TRACE_ID_FIELD: trace_id, START_TIME_FIELD: start_time}
    return TransactionContext(
        trace_id=trace_id,
        start_time=start_time,
        log=TransactionLogger(logger, fields),
    )
