"""Segment naming strategies."""

from dataclasses import dataclass
from typing import Protocol

from aws_xray_sdk.core.utils.search_pattern import wildcard_match


class SegmentNamer(Protocol):
    """Derives a segment name from the request host."""

    def name(self, host: str | None) -> str: ...


@dataclass(frozen=True)
class FixedSegmentNamer:
    """Names every segment the same, regardless of host."""

    segment_name: str

    def name(self, host: str | None) -> str:
        return self.segment_name


@dataclass(frozen=True)
class DynamicSegmentNamer:
    """Uses the host as the segment name when it matches a wildcard pattern.

    Attributes:
        fallback: Name used when the host is missing or does not match.
        recognized_hosts: Wildcard pattern (``*`` and ``?``) of accepted hosts.
    """

    fallback: str
    recognized_hosts: str = "*"

    def name(self, host: str | None) -> str:
        if host and wildcard_match(self.recognized_hosts, host):
            return host
        return self.fallback
