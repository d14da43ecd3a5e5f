"""Report engine error taxonomy."""

from __future__ import annotations


class ReportError(Exception):
    """Base class for every error surfaced by the report engine."""

    pass


class InvalidRange(ReportError):
    """Malformed, inverted, future-dated or out-of-bound report dates."""

    pass


class InvalidReportMode(ReportError):
    """Unknown report mode."""

    pass


class NoSectionSelected(ReportError):
    """Aggregate report requested with no user type enabled."""

    pass


class MissingTarget(ReportError):
    """Individual report requested without a username."""

    pass


class UserNotFound(ReportError):
    """Individual report target does not exist."""

    def __init__(self, username: str) -> None:
        super().__init__(f'User "{username}" not found. Please check the username and try again.')
        self.username = username


class AggregationFailure(ReportError):
    """A storage query failed while building the report."""

    def __init__(self, stage: str, cause: BaseException | None = None) -> None:
        message = f"Report aggregation failed in {stage}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.stage = stage
