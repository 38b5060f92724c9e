"""
Planner: the single owner of a timeline.

A commit runs validation, the store update, rest and LNR synthesis and the
reminder plan as one unit. Rejections and errors leave the timeline exactly as
it was.
"""
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional
import datetime
import logging
import uuid

from . import markers, rest
from .errors import DutyCheckWarning, EventNotFoundError
from .models import CandidateDuty, DutyEvent, Event, RestEvent, UserPreferences
from .reminders import ReminderPlan, plan_release_reminders
from .timeline import TimelineStore
from .timezones import to_zone, wall_clock
from .validator import Accepted, Rejected, max_fdp_preview, validate

log = logging.getLogger("duty_engine")


@dataclass
class CommitResult:
    status: str
    reason: Optional[str] = None
    code: Optional[str] = None
    duty: Optional[DutyEvent] = None
    rest: Optional[RestEvent] = None
    local_night_rests: List[RestEvent] = field(default_factory=list)
    removed: List[Event] = field(default_factory=list)
    advisories: List[DutyCheckWarning] = field(default_factory=list)
    reminders: Optional[ReminderPlan] = None
    max_fdp_hours: Optional[float] = None

    @property
    def committed(self) -> bool:
        return self.status == "accepted"


def _not_committed(outcome) -> CommitResult:
    if isinstance(outcome, Rejected):
        return CommitResult(status=outcome.status, reason=outcome.reason, code=outcome.code)
    return CommitResult(
        status=outcome.status,
        reason=outcome.reason,
        code="overlaps_rest",
        advisories=[outcome.warning],
        max_fdp_hours=outcome.pending.max_fdp_hours,
    )


class Planner:
    def __init__(self, store: Optional[TimelineStore] = None):
        self.store = store if store is not None else TimelineStore()

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        checkpoint = self.store.snapshot()
        try:
            yield
        except Exception:
            self.store.restore(checkpoint)
            raise

    # ---------- Queries ----------
    def check_max_duty(self, candidate: CandidateDuty, preferences: UserPreferences) -> float:
        """Maximum FDP for the candidate's start ("Check Max Duty")."""
        return max_fdp_preview(candidate, preferences)

    def events_between(self, start: datetime.datetime, end: datetime.datetime) -> List[Event]:
        return self.store.within(start, end)

    def markers_for_day(self, day: datetime.date, preferences: UserPreferences) -> markers.DayMarkers:
        return markers.annotate_day(day, self.store, preferences)

    def edit_form(self, duty_id: str, preferences: UserPreferences) -> CandidateDuty:
        """Candidate pre-filled from a stored duty, in the reference zone."""
        duty = self._get_duty(duty_id)
        start = to_zone(duty.start, preferences.reference_zone)
        end = to_zone(duty.end, preferences.reference_zone)
        standard = rest.standard_rest_id(duty.id)
        linked = self.store.get(standard) if standard in self.store else None
        return CandidateDuty(
            start_date=start.strftime("%Y-%m-%d"),
            start_time=start.strftime("%H:%M"),
            end_date=end.strftime("%Y-%m-%d"),
            end_time=end.strftime("%H:%M"),
            sectors=preferences.sectors,
            avg_sector_time=preferences.avg_sector_time,
            acclimatization_zone=duty.acclimatization_zone or preferences.acclimatization_zone,
            rest_type=rest.rest_type_of(linked),
        )

    # ---------- Commits ----------
    def submit(
        self,
        candidate: CandidateDuty,
        preferences: UserPreferences,
        proceed_on_overlap: bool = False,
        now: Optional[datetime.datetime] = None,
    ) -> CommitResult:
        """Validate and commit a new duty with its standard rest and LNRs."""
        outcome = validate(candidate, preferences, self.store, proceed_on_overlap=proceed_on_overlap)
        if not isinstance(outcome, Accepted):
            return _not_committed(outcome)

        with self._transaction():
            duty = DutyEvent(
                id=uuid.uuid4().hex,
                start=outcome.start,
                end=outcome.end,
                acclimatization_zone=outcome.acclimatization_zone,
                violated=outcome.violated,
            )
            self.store.add(duty)
            removed = rest.drop_bridged_local_night_rest(self.store, duty)

            standard = rest.build_standard_rest(duty, preferences.regulator, candidate.rest_type)
            self.store.add(standard)

            lnrs, warnings = rest.regenerate_local_night_rests(duty.id, self.store, preferences)

        log.info(
            "Committed duty %s (%.2fh, max %.2fh, violated=%s)",
            duty.id, outcome.duration_hours, outcome.max_fdp_hours, duty.violated,
        )
        return CommitResult(
            status="accepted",
            duty=self.store.get(duty.id),
            rest=standard,
            local_night_rests=lnrs,
            removed=removed,
            advisories=list(warnings),
            reminders=plan_release_reminders(duty.end, candidate.rest_type, now=now),
            max_fdp_hours=outcome.max_fdp_hours,
        )

    def edit(
        self,
        duty_id: str,
        candidate: CandidateDuty,
        preferences: UserPreferences,
        proceed_on_overlap: bool = False,
        now: Optional[datetime.datetime] = None,
    ) -> CommitResult:
        """
        Revalidate a stored duty with new boundaries. Its standard rest is kept
        as is; its LNRs are rebuilt against the new boundaries, an LNR bridging
        the gap it moves into is dropped and its old neighbours are re-paired.
        """
        original = self._get_duty(duty_id)
        old_before = rest.previous_duty(self.store, original)
        old_after = rest.next_duty(self.store, original)
        outcome = validate(
            candidate, preferences, self.store,
            proceed_on_overlap=proceed_on_overlap, editing_id=duty_id,
        )
        if not isinstance(outcome, Accepted):
            return _not_committed(outcome)

        def _apply(duty):
            duty.start = outcome.start
            duty.end = outcome.end
            duty.acclimatization_zone = outcome.acclimatization_zone
            duty.violated = outcome.violated

        with self._transaction():
            duty = self.store.update(duty_id, _apply)
            removed = rest.drop_local_night_rests(self.store, duty_id)
            removed += rest.drop_bridged_local_night_rest(self.store, duty)
            lnrs, warnings = rest.regenerate_local_night_rests(duty_id, self.store, preferences)

            # the old neighbours face each other once the duty moves out from between them
            if old_before is not None and old_after is not None:
                following = rest.next_duty(self.store, old_before)
                if following is not None and following.id == old_after.id:
                    placed = rest.place_local_night_rest(old_before, old_after, self.store, preferences)
                    if placed is not None:
                        lnrs.append(placed[0])
                        if placed[1] is not None:
                            warnings.append(placed[1])

        log.info("Updated duty %s (%.2fh, violated=%s)", duty_id, outcome.duration_hours, duty.violated)
        return CommitResult(
            status="accepted",
            duty=duty,
            local_night_rests=lnrs,
            removed=removed,
            advisories=list(warnings),
            reminders=plan_release_reminders(duty.end, candidate.rest_type, now=now, is_edit=True),
            max_fdp_hours=outcome.max_fdp_hours,
        )

    # ---------- Deletes ----------
    def delete_duty(self, duty_id: str) -> List[Event]:
        """Remove a duty, its standard rest and every LNR linked to it."""
        self._get_duty(duty_id)
        removed = rest.cascade_delete(self.store, duty_id)
        log.info("Deleted duty %s (%d events removed)", duty_id, len(removed))
        return removed

    def delete_rest(self, rest_id: str) -> RestEvent:
        event = self.store.get(rest_id)
        if event.kind != "rest":
            raise EventNotFoundError(rest_id)
        self.store.remove(lambda e: e.id == rest_id)
        log.info("Deleted rest %s", rest_id)
        return event

    def clear_month(self, year: int, month: int, zone_name: str) -> List[Event]:
        """
        Remove every event starting in the given month (local to zone_name),
        along with rests linked to a removed duty.
        """
        first = datetime.date(year, month, 1)
        following = datetime.date(year + month // 12, month % 12 + 1, 1)
        month_start = wall_clock(first, 0, 0, zone_name)
        month_end = wall_clock(following, 0, 0, zone_name)

        doomed = {
            e.id for e in self.store
            if month_start <= e.start < month_end
        }
        duty_ids = {e.id for e in self.store.duties() if e.id in doomed}
        removed = self.store.remove(
            lambda e: e.id in doomed
            or (e.kind == "rest" and bool(duty_ids & {e.duty_id, e.next_duty_id}))
        )
        log.info("Cleared %04d-%02d: %d events removed", year, month, len(removed))
        return removed

    def _get_duty(self, duty_id: str) -> DutyEvent:
        event = self.store.get(duty_id)
        if event.kind != "duty":
            raise EventNotFoundError(duty_id)
        return event


