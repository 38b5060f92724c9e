"""Pilot flight-duty and rest legality engine."""
from .errors import (
    DutyCheckError,
    DutyRejected,
    EventNotFoundError,
    InvalidZoneError,
    LNRViolation,
    OverlapWarning,
)
from .models import CandidateDuty, DutyEvent, Regulator, RestEvent, RestType, UserPreferences
from .planner import CommitResult, Planner
from .timeline import TimelineStore
from .validator import Accepted, NeedsUserChoice, Rejected, validate

__version__ = "0.1.0"
