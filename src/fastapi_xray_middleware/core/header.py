"""Trace header parsing and propagation helpers.

The trace header is a semicolon-separated list of ``key=value`` pairs:

    Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8;Sampled=1

Recognized keys are Root, Parent and Sampled ("1", "0" or "?", where "?"
asks this service to make the sampling decision and send it back).
"""

from collections.abc import Mapping

from aws_xray_sdk.core.models.trace_header import TraceHeader

ROOT = "Root"
PARENT = "Parent"
SAMPLED = "Sampled"

SAMPLED_UNKNOWN = "?"

X_FORWARDED_FOR = "X-Forwarded-For"


def parse_trace_header(value: str | None) -> dict[str, str]:
    """Parse a trace header value into a dict.

    Keys and values are stripped of surrounding whitespace. Unrecognized
    keys are kept. Parts without a key are dropped.

    Args:
        value: Raw header value, possibly empty or None.

    Returns:
        Mapping of key to value; empty when the header is missing.

    Examples:
        "Root=abc;Parent=def;Sampled=1" -> {"Root": "abc", "Parent": "def", "Sampled": "1"}
        "" -> {}
    """
    parsed: dict[str, str] = {}
    if not value:
        return parsed

    for part in value.split(";"):
        key, _, val = part.partition("=")
        key = key.strip()
        if key:
            parsed[key] = val.strip()
    return parsed


def build_response_header(trace_id: str, inbound_sampled: str | None, sampled: bool) -> str:
    """Build the trace header sent back to the caller.

    Only the root is propagated, plus the sampling decision when the
    caller deferred it with ``Sampled=?``.

    Examples:
        ("abc", "?", True) -> "Root=abc;Sampled=1"
        ("abc", "1", True) -> "Root=abc"
    """
    header = f"{ROOT}={trace_id}"
    if inbound_sampled == SAMPLED_UNKNOWN:
        header += f";{SAMPLED}={int(sampled)}"
    return header


def to_trace_header(parsed: Mapping[str, str]) -> TraceHeader:
    """Convert a parsed header dict into an SDK ``TraceHeader``."""
    return TraceHeader(
        root=parsed.get(ROOT) or None,
        parent=parsed.get(PARENT) or None,
        sampled=parsed.get(SAMPLED) or None,
    )


def has_x_forwarded_for(headers: Mapping[str, str]) -> bool:
    """Check whether the request carries a non-empty X-Forwarded-For header."""
    return bool(headers.get(X_FORWARDED_FOR))


def client_ip(headers: Mapping[str, str], remote_addr: str | None) -> str | None:
    """Derive the client IP for a request.

    Uses the first comma-separated entry of X-Forwarded-For when present,
    otherwise the raw connection address.

    Examples:
        X-Forwarded-For "1.2.3.4, 5.6.7.6" -> "1.2.3.4"
        no header, remote_addr "10.0.0.1" -> "10.0.0.1"
    """
    forwarded_for = headers.get(X_FORWARDED_FOR)
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return remote_addr
