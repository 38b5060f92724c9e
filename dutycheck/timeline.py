"""
In-memory store of duty and rest intervals.

Intervals are half-open [start, end): two intervals that only share a boundary
do not overlap. Queries hand out copies so callers cannot mutate the store
behind its back; mutation goes through add / update / remove.
"""
from typing import Callable, Dict, Iterator, List, Optional
import datetime

from .errors import DuplicateEventError, EventNotFoundError
from .models import DutyEvent, Event, RestEvent


def overlaps(
    a_start: datetime.datetime,
    a_end: datetime.datetime,
    b_start: datetime.datetime,
    b_end: datetime.datetime,
) -> bool:
    return a_start < b_end and b_start < a_end


def overlap_duration(
    a_start: datetime.datetime,
    a_end: datetime.datetime,
    b_start: datetime.datetime,
    b_end: datetime.datetime,
) -> datetime.timedelta:
    start = max(a_start, b_start)
    end = min(a_end, b_end)
    if end <= start:
        return datetime.timedelta(0)
    return end - start


class TimelineStore:
    """Insertion-ordered collection of timeline events keyed by id."""

    def __init__(self, events: Optional[List[Event]] = None):
        self._events: Dict[str, Event] = {}
        for e in events or []:
            self.add(e)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.snapshot())

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._events

    def snapshot(self, kind: Optional[str] = None) -> List[Event]:
        return [e.model_copy() for e in self._events.values() if kind is None or e.kind == kind]

    def duties(self) -> List[DutyEvent]:
        return self.snapshot("duty")

    def rests(self) -> List[RestEvent]:
        return self.snapshot("rest")

    def get(self, event_id: str) -> Event:
        try:
            return self._events[event_id].model_copy()
        except KeyError:
            raise EventNotFoundError(event_id) from None

    def add(self, event: Event) -> Event:
        if event.id in self._events:
            raise DuplicateEventError(event.id)
        self._events[event.id] = event.model_copy()
        return event

    def remove(self, predicate: Callable[[Event], bool]) -> List[Event]:
        """Drop every event matching predicate; returns what was removed."""
        removed = [e for e in self._events.values() if predicate(e)]
        for e in removed:
            del self._events[e.id]
        return removed

    def update(self, event_id: str, mutator: Callable[[Event], None]) -> Event:
        """Apply mutator to the event and store the result; the id may not change."""
        try:
            event = self._events[event_id].model_copy()
        except KeyError:
            raise EventNotFoundError(event_id) from None
        mutator(event)
        if event.id != event_id:
            raise ValueError("event ids are immutable")
        if event.end <= event.start:
            raise ValueError("end must be after start")
        self._events[event_id] = event
        return event.model_copy()

    def restore(self, events: List[Event]) -> None:
        """Replace the whole content with `events` (a prior snapshot)."""
        self._events = {e.id: e.model_copy() for e in events}

    def overlapping(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        kind: Optional[str] = None,
    ) -> List[Event]:
        return [
            e.model_copy()
            for e in self._events.values()
            if (kind is None or e.kind == kind) and overlaps(e.start, e.end, start, end)
        ]

    def within(self, day_start: datetime.datetime, day_end: datetime.datetime) -> List[Event]:
        """Events touching the [day_start, day_end) window."""
        return self.overlapping(day_start, day_end)
