"""
Rest and Local Night Rest (LNR) generation.

Standard rest starts at a duty's end and lasts the rest-type minimum. An LNR
bridges an anchor night duty and a following early-start duty:

    LNR = [anchor.end, max(anchor.end + 12h, 07:30 on the neighbour's local day))

and is checked against:
  - duration >= 12h
  - >= 9h inside [22:30 anchor-day, 09:30 neighbour-day]
  - start no later than 00:30 anchor-day
  - the neighbour duty not starting before the LNR ends
  - no duty overlapping the LNR
Failures mark the LNR violated; they never block the duty commit.

Every rest links back to its duty through duty_id (and next_duty_id for an
LNR); cascades query those links.
"""
from typing import List, Optional, Tuple, Union
import datetime
import logging

from . import regulations
from .errors import LNRViolation
from .models import DutyEvent, Event, Regulator, RestEvent, RestType, UserPreferences
from .timeline import TimelineStore, overlap_duration
from .timezones import hour_in_zone, local_date, wall_clock

log = logging.getLogger("duty_engine")

LNR_TITLE = "Local Night Rest"
LNR_MIN_DURATION = datetime.timedelta(hours=12)
LNR_MIN_NIGHT_COVERAGE = datetime.timedelta(hours=9)
LNR_NIGHT_WINDOW_START = (22, 30)
LNR_NIGHT_WINDOW_END = (9, 30)
LNR_LATEST_START = (0, 30)
LNR_EARLIEST_END = (7, 30)


def standard_rest_id(duty_id: str) -> str:
    return f"{duty_id}-rest"


def local_night_rest_id(anchor_id: str, neighbor_id: str) -> str:
    return f"{anchor_id}-lnr-{neighbor_id}"


def build_standard_rest(
    duty: DutyEvent,
    regulator: Union[Regulator, str],
    rest_type: Union[RestType, str] = RestType.STANDARD,
) -> RestEvent:
    rest_type = RestType(rest_type)
    hours = regulations.min_rest_hours(regulator, rest_type)
    title = "Required Rest (10+travel)" if rest_type == RestType.TEN_PLUS_TRAVEL else "Required Rest"
    return RestEvent(
        id=standard_rest_id(duty.id),
        title=title,
        start=duty.end,
        end=duty.end + datetime.timedelta(hours=hours),
        duty_id=duty.id,
        rest_type=rest_type,
    )


def rest_type_of(rest: Optional[RestEvent]) -> RestType:
    """Rest type to pre-select when a duty is opened for editing."""
    if rest is None or rest.rest_type is None:
        return RestType.STANDARD
    return rest.rest_type


# ---------- Duty classification ----------
def acclimatized_hours(duty: DutyEvent, preferences: UserPreferences) -> Tuple[int, int]:
    zone = preferences.zone_for(duty)
    return hour_in_zone(duty.start, zone), hour_in_zone(duty.end, zone)


def is_night_duty_event(duty: DutyEvent, preferences: UserPreferences) -> bool:
    start_hour, end_hour = acclimatized_hours(duty, preferences)
    return regulations.is_night_duty(preferences.regulator, start_hour, end_hour)


def is_early_start_event(duty: DutyEvent, preferences: UserPreferences) -> bool:
    start_hour = hour_in_zone(duty.start, preferences.zone_for(duty))
    return regulations.is_early_start(preferences.regulator, start_hour)


# ---------- Neighbour search ----------
def previous_duty(store: TimelineStore, duty: DutyEvent) -> Optional[DutyEvent]:
    earlier = [d for d in store.duties() if d.id != duty.id and d.end <= duty.start]
    return max(earlier, key=lambda d: d.end) if earlier else None


def next_duty(store: TimelineStore, duty: DutyEvent) -> Optional[DutyEvent]:
    later = [d for d in store.duties() if d.id != duty.id and d.start >= duty.end]
    return min(later, key=lambda d: d.start) if later else None


# ---------- LNR ----------
def build_local_night_rest(
    anchor: DutyEvent,
    neighbor: DutyEvent,
    preferences: UserPreferences,
    store: TimelineStore,
) -> Optional[Tuple[RestEvent, Optional[LNRViolation]]]:
    """
    LNR between anchor and the following neighbor duty, or None when the pair
    is not eligible (anchor not a night duty, or neighbor not an early start).
    Local days are taken in the reference zone, from the anchor's end and the
    neighbor's start.
    """
    if not is_night_duty_event(anchor, preferences):
        return None
    if not is_early_start_event(neighbor, preferences):
        return None

    ref = preferences.reference_zone
    anchor_day = local_date(anchor.end, ref)
    neighbor_day = local_date(neighbor.start, ref)

    start = anchor.end
    end = max(start + LNR_MIN_DURATION, wall_clock(neighbor_day, *LNR_EARLIEST_END, ref))

    reasons: List[str] = []
    if end - start < LNR_MIN_DURATION:
        reasons.append("short_duration")
    night = overlap_duration(
        start,
        end,
        wall_clock(anchor_day, *LNR_NIGHT_WINDOW_START, ref),
        wall_clock(neighbor_day, *LNR_NIGHT_WINDOW_END, ref),
    )
    if night < LNR_MIN_NIGHT_COVERAGE:
        reasons.append("insufficient_night")
    if start > wall_clock(anchor_day, *LNR_LATEST_START, ref):
        reasons.append("late_start")
    if neighbor.start < end:
        reasons.append("early_duty")
    if store.overlapping(start, end, kind="duty"):
        reasons.append("overlaps_duty")

    rest_id = local_night_rest_id(anchor.id, neighbor.id)
    lnr = RestEvent(
        id=rest_id,
        title=LNR_TITLE,
        start=start,
        end=end,
        duty_id=anchor.id,
        next_duty_id=neighbor.id,
        is_local_night_rest=True,
        violated=bool(reasons),
    )
    warning = LNRViolation(rest_id, reasons) if reasons else None
    return lnr, warning


def place_local_night_rest(
    anchor: DutyEvent,
    neighbor: DutyEvent,
    store: TimelineStore,
    preferences: UserPreferences,
) -> Optional[Tuple[RestEvent, Optional[LNRViolation]]]:
    """Build the LNR for one pair and store it, replacing one with the same id."""
    built = build_local_night_rest(anchor, neighbor, preferences, store)
    if built is None:
        return None
    lnr, warning = built
    store.remove(lambda e: e.id == lnr.id)
    store.add(lnr)
    if warning is not None:
        log.warning("LNR %s violated: %s", lnr.id, ", ".join(warning.reasons))
    return lnr, warning


def regenerate_local_night_rests(
    duty_id: str,
    store: TimelineStore,
    preferences: UserPreferences,
) -> Tuple[List[RestEvent], List[LNRViolation]]:
    """
    Derive the LNRs on both sides of a committed duty: backward from the
    nearest earlier duty, forward to the nearest later one. An existing LNR for
    the same pair is replaced.
    """
    duty = store.get(duty_id)
    pairs = []
    before = previous_duty(store, duty)
    if before is not None:
        pairs.append((before, duty))
    after = next_duty(store, duty)
    if after is not None:
        pairs.append((duty, after))

    created: List[RestEvent] = []
    warnings: List[LNRViolation] = []
    for anchor, neighbor in pairs:
        placed = place_local_night_rest(anchor, neighbor, store, preferences)
        if placed is None:
            continue
        lnr, warning = placed
        created.append(lnr)
        if warning is not None:
            warnings.append(warning)
    return created, warnings


def _is_lnr_of(event: Event, duty_id: str) -> bool:
    return (
        event.kind == "rest"
        and event.is_local_night_rest
        and duty_id in (event.duty_id, event.next_duty_id)
    )


def drop_local_night_rests(store: TimelineStore, duty_id: str) -> List[Event]:
    """Remove every LNR anchored at either boundary of the duty."""
    return store.remove(lambda e: _is_lnr_of(e, duty_id))


def drop_bridged_local_night_rest(store: TimelineStore, duty: DutyEvent) -> List[Event]:
    """Remove an LNR spanning the gap a newly inserted duty now splits."""
    before = previous_duty(store, duty)
    after = next_duty(store, duty)
    if before is None or after is None:
        return []
    stale_id = local_night_rest_id(before.id, after.id)
    return store.remove(lambda e: e.id == stale_id)


def cascade_delete(store: TimelineStore, duty_id: str) -> List[Event]:
    """Remove a duty with its standard rest and every LNR linked to it."""
    return store.remove(
        lambda e: e.id == duty_id
        or (e.kind == "rest" and duty_id in (e.duty_id, e.next_duty_id))
    )
