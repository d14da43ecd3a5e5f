# Analytics Report Engine
# Builds aggregate and individual reports over listening, like and follow activity

from .config import ReportConfig
from .engine import ReportEngine, close_report_engine, get_report_engine
from .errors import (
    AggregationFailure,
    InvalidRange,
    InvalidReportMode,
    MissingTarget,
    NoSectionSelected,
    ReportError,
    UserNotFound,
)
from .models import DateRange, ReportMode, ReportRequest, SectionSelection
from .repository import PostgresReportRepository, ReportRepository
from .results import (
    AggregateResult,
    IndividualArtistResult,
    IndividualListenerResult,
    IndividualOtherResult,
    ReportResult,
    Section,
    SectionStatus,
    serialize,
)
from .validation import ReportQuery, validate_report_request

__all__ = [
    # Config
    "ReportConfig",
    # Engine
    "ReportEngine",
    "get_report_engine",
    "close_report_engine",
    "ReportQuery",
    "validate_report_request",
    # Repository
    "ReportRepository",
    "PostgresReportRepository",
    # Models
    "DateRange",
    "ReportMode",
    "ReportRequest",
    "SectionSelection",
    # Results
    "ReportResult",
    "AggregateResult",
    "IndividualListenerResult",
    "IndividualArtistResult",
    "IndividualOtherResult",
    "Section",
    "SectionStatus",
    "serialize",
    # Errors
    "ReportError",
    "InvalidRange",
    "InvalidReportMode",
    "MissingTarget",
    "NoSectionSelected",
    "UserNotFound",
    "AggregationFailure",
]
