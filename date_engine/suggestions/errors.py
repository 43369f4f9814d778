from __future__ import annotations


class DateEngineError(Exception):
    """Base error surfaced to callers; ``kind`` is the stable error name."""

    kind = "DateEngineError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(DateEngineError):
    kind = "InvalidInput"


class UpstreamUnavailable(DateEngineError):
    kind = "UpstreamUnavailable"


class UpstreamError(Exception):
    """A single upstream source failed or timed out."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class CalendarUnavailable(Exception):
    """Calendar or preference lookup failed."""


# Logged only, never raised to the caller.
PARTIAL_UPSTREAM_FAILURE = "PartialUpstreamFailure"
