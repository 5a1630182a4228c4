"""HTTP status classification for segment flags."""

from dataclasses import dataclass

TOO_MANY_REQUESTS = 429


@dataclass(frozen=True)
class StatusFlags:
    """Error, throttle and fault flags derived from a status code."""

    error: bool = False
    throttle: bool = False
    fault: bool = False


def classify_status(status: int) -> StatusFlags:
    """Classify a response status code.

    Each check is independent: 429 falls inside the client-error range
    and so sets both ``error`` and ``throttle``.

    Examples:
        404 -> StatusFlags(error=True)
        429 -> StatusFlags(error=True, throttle=True)
        503 -> StatusFlags(fault=True)
    """
    return StatusFlags(
        error=400 <= status < 500,
        throttle=status == TOO_MANY_REQUESTS,
        fault=500 <= status < 600,
    )
