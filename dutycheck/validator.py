"""
Duty validation: a pure decision over a candidate duty and the current timeline.

validate() returns one of three tagged results:
  - Accepted: the duty may be committed (violated=True when the user chose to
    proceed over a rest overlap)
  - Rejected: a hard stop with a human-readable reason
  - NeedsUserChoice: the duty overlaps rest; re-invoke with proceed_on_overlap

Nothing here mutates the timeline.
"""
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Tuple, Union
import datetime
import logging

from . import regulations
from .errors import (
    DutyRejected,
    FDPExceededError,
    InvalidIntervalError,
    InvalidZoneError,
    MissingFieldsError,
    OverlapWarning,
    WeeklyCapExceededError,
)
from .models import CandidateDuty, UserPreferences
from .timeline import TimelineStore
from .timezones import duration_hours, hour_in_zone, parse_local, resolve_zone

log = logging.getLogger("duty_engine")

WEEKLY_WINDOW = datetime.timedelta(days=7)

REQUIRED_FIELDS = (
    ("start_date", "Start Date"),
    ("start_time", "Start Time"),
    ("end_date", "End Date"),
    ("end_time", "End Time"),
)


@dataclass
class Accepted:
    status: ClassVar[str] = "accepted"

    start: datetime.datetime
    end: datetime.datetime
    acclimatization_zone: str
    acclimatized_start_hour: int
    max_fdp_hours: float
    weekly_hours: float
    violated: bool = False
    overlapping_rest_ids: List[str] = field(default_factory=list)

    @property
    def duration_hours(self) -> float:
        return duration_hours(self.start, self.end)


@dataclass
class Rejected:
    status: ClassVar[str] = "rejected"

    error: DutyRejected

    @property
    def reason(self) -> str:
        return self.error.message

    @property
    def code(self) -> str:
        return self.error.code


@dataclass
class NeedsUserChoice:
    status: ClassVar[str] = "needs_user_choice"

    warning: OverlapWarning
    pending: Accepted

    @property
    def reason(self) -> str:
        return self.warning.message


ValidationResult = Union[Accepted, Rejected, NeedsUserChoice]


def parse_interval(candidate: CandidateDuty, preferences: UserPreferences) -> Tuple[datetime.datetime, datetime.datetime]:
    """
    Parse the entered start/end in the reference zone.
    Raises MissingFieldsError / InvalidIntervalError; InvalidZoneError propagates.
    """
    missing = [label for attr, label in REQUIRED_FIELDS if not getattr(candidate, attr)]
    if missing:
        raise MissingFieldsError(missing)

    resolve_zone(preferences.reference_zone)
    try:
        start = parse_local(candidate.start_date, candidate.start_time, preferences.reference_zone)
        end = parse_local(candidate.end_date, candidate.end_time, preferences.reference_zone)
    except InvalidZoneError:
        raise
    except (ValueError, OverflowError):
        raise InvalidIntervalError("Invalid date/time format. Please check your inputs.") from None

    start = start.astimezone(datetime.timezone.utc)
    end = end.astimezone(datetime.timezone.utc)
    if start >= end:
        raise InvalidIntervalError()
    return start, end


def acclimatization_zone_for(candidate: CandidateDuty, preferences: UserPreferences) -> str:
    return candidate.acclimatization_zone or preferences.acclimatization_zone


def max_fdp_preview(candidate: CandidateDuty, preferences: UserPreferences) -> float:
    """Maximum FDP for the candidate's start; only the start fields are required."""
    missing = [label for attr, label in REQUIRED_FIELDS[:2] if not getattr(candidate, attr)]
    if missing:
        raise MissingFieldsError(missing)
    resolve_zone(preferences.reference_zone)
    try:
        start = parse_local(candidate.start_date, candidate.start_time, preferences.reference_zone)
    except InvalidZoneError:
        raise
    except (ValueError, OverflowError):
        raise InvalidIntervalError("Invalid date/time format. Please check your inputs.") from None
    hour = hour_in_zone(start, acclimatization_zone_for(candidate, preferences))
    return regulations.max_fdp_hours(preferences.regulator, hour, candidate.sectors, candidate.avg_sector_time)


def weekly_duty_total(
    store: TimelineStore,
    start: datetime.datetime,
    exclude_id: Optional[str] = None,
) -> datetime.timedelta:
    """Duty time fully inside [start - 7 days, start]."""
    window_start = start - WEEKLY_WINDOW
    total = datetime.timedelta(0)
    for d in store.duties():
        if d.id == exclude_id:
            continue
        if d.start >= window_start and d.end <= start:
            total += d.end - d.start
    return total


def validate(
    candidate: CandidateDuty,
    preferences: UserPreferences,
    store: TimelineStore,
    proceed_on_overlap: bool = False,
    editing_id: Optional[str] = None,
) -> ValidationResult:
    regulator = preferences.regulator
    try:
        start, end = parse_interval(candidate, preferences)

        zone = acclimatization_zone_for(candidate, preferences)
        start_hour = hour_in_zone(start, zone)

        max_fdp = regulations.max_fdp_hours(regulator, start_hour, candidate.sectors, candidate.avg_sector_time)
        duration = end - start
        if duration > datetime.timedelta(hours=max_fdp):
            raise FDPExceededError(regulations.regulator_label(regulator), max_fdp, duration_hours(start, end))

        cap = regulations.weekly_duty_cap_hours(regulator)
        weekly = weekly_duty_total(store, start, exclude_id=editing_id) + duration
        if weekly > datetime.timedelta(hours=cap):
            raise WeeklyCapExceededError(regulations.regulator_label(regulator), cap, weekly.total_seconds() / 3600.0)
    except DutyRejected as e:
        log.info("Duty rejected (%s): %s", e.code, e.message)
        return Rejected(error=e)

    conflicting = [
        r.id
        for r in store.overlapping(start, end, kind="rest")
        if editing_id is None or editing_id not in (r.duty_id, r.next_duty_id)
    ]
    accepted = Accepted(
        start=start,
        end=end,
        acclimatization_zone=zone,
        acclimatized_start_hour=start_hour,
        max_fdp_hours=max_fdp,
        weekly_hours=weekly.total_seconds() / 3600.0,
        violated=bool(conflicting),
        overlapping_rest_ids=conflicting,
    )
    if conflicting and not proceed_on_overlap:
        return NeedsUserChoice(warning=OverlapWarning(conflicting), pending=accepted)
    return accepted
