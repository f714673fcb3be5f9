"""Typed failures that abort an investigation run."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every error that aborts a run."""


class ConfigurationError(PipelineError):
    def __init__(self, missing: list[str], message: str | None = None) -> None:
        self.missing = missing
        super().__init__(
            message
            or f"Missing required environment variables: {', '.join(missing)}. "
            "Copy .env.example to .env and fill in the values."
        )


class QuotaExceededError(PipelineError):
    """The daily analytics call budget is spent."""

    def __init__(self, used: int, allowed: int) -> None:
        self.used = used
        self.allowed = allowed
        super().__init__(
            f"Clarity API daily quota reached: {used}/{allowed} calls used. Try again tomorrow."
        )


class UpstreamError(PipelineError):
    """A non-success response from an external API."""

    def __init__(self, service: str, status: int, body: str = "") -> None:
        self.service = service
        self.status = status
        self.body = body[:500]
        super().__init__(f"{service} API error ({status}): {self.body}")


class UpstreamAuthError(UpstreamError):
    """Credentials were rejected; they must be fixed out-of-band."""


class UnauthorizedError(UpstreamAuthError):
    def __init__(self, service: str, body: str = "") -> None:
        super().__init__(service, 401, body)
        self.args = (f"{service} API: Unauthorized. Check your credentials.",)


class ForbiddenError(UpstreamAuthError):
    def __init__(self, service: str, body: str = "") -> None:
        super().__init__(service, 403, body)
        self.args = (f"{service} API: Forbidden. Token may not have sufficient permissions.",)


class AnalyticsRateLimitedError(UpstreamError):
    """HTTP 429 from the analytics API. Never retried."""

    def __init__(self, body: str = "") -> None:
        super().__init__("Clarity", 429, body)
        self.args = ("Clarity API: Rate limit exceeded (429).",)


class RetryExhaustedError(PipelineError):
    def __init__(self, label: str, attempts: int) -> None:
        self.label = label
        self.attempts = attempts
        super().__init__(f"[{label}] Failed after {attempts} attempts due to rate limiting.")


class ReportWriteError(PipelineError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not write report to {path}: {reason}")


class DatasetUnavailableError(PipelineError):
    def __init__(self, directory: str) -> None:
        super().__init__(
            f"No cached Clarity data found in {directory}. Run 'uxpilot fetch' first."
        )
