"""Error taxonomy for upstream access and aggregation."""

from typing import List, Optional, Tuple


class UpstreamError(Exception):
    """Base class for failures talking to the fantasy platform or stats provider."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class TransportError(UpstreamError):
    """Network failure or timeout. Retried once before surfacing."""


class UpstreamStatusError(UpstreamError):
    """Upstream answered with a non-success status. Never retried."""

    def __init__(self, message: str, status_code: int, url: Optional[str] = None):
        super().__init__(message, url=url)
        self.status_code = status_code


class UpstreamFormatError(UpstreamError):
    """Upstream payload could not be parsed into the expected shape. Never retried."""


class StrategiesExhausted(UpstreamError):
    """Every named fallback strategy failed."""

    def __init__(self, subject: str, failures: List[Tuple[str, Exception]]):
        detail = "; ".join(f"{name}: {exc}" for name, exc in failures)
        super().__init__(f"All strategies failed for {subject} ({detail})")
        self.subject = subject
        self.failures = failures


class CalendarUnavailable(Exception):
    """The league calendar has no entry for the requested week."""

    def __init__(self, week_id: int):
        super().__init__(f"No calendar entry for week {week_id}")
        self.week_id = week_id
