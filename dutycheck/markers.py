"""
Per-day display markers derived from the timeline. Read-only.

Duty markers, first match wins:
  E  - duty starts this day inside the regulator's early band
  L  - duty ends this day inside the late band
  N  - duty ends this day and straddles the night window
Rest events flagged as local night rest get an LNR marker. Violated events get
a violation indicator placed where they overlap the conflicting event.
"""
from dataclasses import dataclass, field
from typing import List, Optional
import datetime

from . import regulations
from .models import DutyEvent, Event, UserPreferences
from .rest import acclimatized_hours
from .timeline import TimelineStore, overlaps
from .timezones import day_bounds

EARLY = "E"
LATE = "L"
NIGHT = "N"
LOCAL_NIGHT_REST = "LNR"


@dataclass
class Marker:
    event_id: str
    kind: str


@dataclass
class ViolationIndicator:
    event_id: str
    conflicting_event_id: Optional[str]
    overlap_start: Optional[datetime.datetime]
    # position inside the day, 0..100
    offset_percent: float


@dataclass
class DayMarkers:
    day: datetime.date
    status: str
    markers: List[Marker] = field(default_factory=list)
    violations: List[ViolationIndicator] = field(default_factory=list)


def duty_marker(
    duty: DutyEvent,
    day_start: datetime.datetime,
    day_end: datetime.datetime,
    preferences: UserPreferences,
) -> Optional[str]:
    regulator = preferences.regulator
    start_hour, end_hour = acclimatized_hours(duty, preferences)
    starts_today = day_start <= duty.start < day_end
    ends_today = day_start < duty.end <= day_end

    if starts_today and regulations.is_early_start(regulator, start_hour):
        return EARLY
    if ends_today and regulations.is_late_finish(regulator, end_hour):
        return LATE
    if ends_today and regulations.is_night_duty(regulator, start_hour, end_hour):
        return NIGHT
    return None


def status_for(events: List[Event]) -> str:
    if any(e.kind == "duty" for e in events):
        return "duty"
    if any(e.kind == "rest" for e in events):
        return "rest"
    return "free"


def _violation_for(
    event: Event,
    day_events: List[Event],
    day_start: datetime.datetime,
    day_end: datetime.datetime,
) -> ViolationIndicator:
    other_kind = "rest" if event.kind == "duty" else "duty"
    conflicting = next(
        (
            e for e in day_events
            if e.kind == other_kind and e.id != event.id and overlaps(event.start, event.end, e.start, e.end)
        ),
        None,
    )
    if conflicting is None:
        return ViolationIndicator(event.id, None, None, 0.0)

    overlap_start = max(event.start, conflicting.start)
    span = (day_end - day_start).total_seconds()
    offset = (overlap_start - day_start).total_seconds() / span * 100.0
    return ViolationIndicator(event.id, conflicting.id, overlap_start, min(100.0, max(0.0, offset)))


def annotate_day(day: datetime.date, store: TimelineStore, preferences: UserPreferences) -> DayMarkers:
    day_start, day_end = day_bounds(day, preferences.reference_zone)
    day_events = store.within(day_start, day_end)

    result = DayMarkers(day=day, status=status_for(day_events))
    for event in day_events:
        if event.kind == "duty":
            kind = duty_marker(event, day_start, day_end, preferences)
            if kind:
                result.markers.append(Marker(event.id, kind))
        elif event.is_local_night_rest:
            result.markers.append(Marker(event.id, LOCAL_NIGHT_REST))

        if event.violated:
            result.violations.append(_violation_for(event, day_events, day_start, day_end))
    return result


def day_status(day: datetime.date, store: TimelineStore, preferences: UserPreferences) -> str:
    """"duty", "rest" or "free" for a calendar day in the reference zone."""
    day_start, day_end = day_bounds(day, preferences.reference_zone)
    return status_for(store.within(day_start, day_end))
