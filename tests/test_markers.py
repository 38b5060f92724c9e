# tests/test_markers.py
import datetime

import pytest

from dutycheck.markers import EARLY, LATE, LOCAL_NIGHT_REST, NIGHT, annotate_day, day_status
from dutycheck.models import CandidateDuty
from dutycheck.rest import local_night_rest_id


def cand(start_date, start_time, end_date, end_time):
    return CandidateDuty(start_date=start_date, start_time=start_time, end_date=end_date, end_time=end_time)


@pytest.fixture
def night_then_early(planner, toronto):
    a = planner.submit(cand("2025-03-10", "14:00", "2025-03-10", "23:00"), toronto)
    b = planner.submit(cand("2025-03-11", "06:30", "2025-03-11", "12:00"), toronto, proceed_on_overlap=True)
    return a.duty, b.duty


def kinds(day_markers):
    return {(m.event_id, m.kind) for m in day_markers.markers}


def test_night_and_early_markers(planner, toronto, night_then_early):
    a, b = night_then_early
    lnr_id = local_night_rest_id(a.id, b.id)

    day10 = annotate_day(datetime.date(2025, 3, 10), planner.store, toronto)
    day11 = annotate_day(datetime.date(2025, 3, 11), planner.store, toronto)

    assert (a.id, NIGHT) in kinds(day10)
    assert (b.id, EARLY) in kinds(day11)
    assert (lnr_id, LOCAL_NIGHT_REST) in kinds(day10)
    assert (lnr_id, LOCAL_NIGHT_REST) in kinds(day11)
    assert day10.status == "duty"
    assert day11.status == "duty"


def test_violation_indicator_offset(planner, toronto, night_then_early):
    a, b = night_then_early
    day11 = annotate_day(datetime.date(2025, 3, 11), planner.store, toronto)

    indicator = next(v for v in day11.violations if v.event_id == b.id)
    assert indicator.conflicting_event_id == f"{a.id}-rest"
    assert indicator.overlap_start == b.start
    # 06:30 into a 24h day
    assert indicator.offset_percent == pytest.approx(27.083, abs=0.01)


def test_violated_lnr_indicator(planner, toronto, night_then_early):
    a, b = night_then_early
    lnr_id = local_night_rest_id(a.id, b.id)
    day11 = annotate_day(datetime.date(2025, 3, 11), planner.store, toronto)
    indicator = next(v for v in day11.violations if v.event_id == lnr_id)
    assert indicator.conflicting_event_id == b.id
    assert 0 <= indicator.offset_percent <= 100


def test_late_finish_marker_on_end_day(planner, toronto):
    duty = planner.submit(cand("2025-03-10", "16:00", "2025-03-11", "01:30"), toronto).duty

    start_day = annotate_day(datetime.date(2025, 3, 10), planner.store, toronto)
    end_day = annotate_day(datetime.date(2025, 3, 11), planner.store, toronto)

    assert duty.id not in {m.event_id for m in start_day.markers}
    assert (duty.id, LATE) in kinds(end_day)


def test_day_status(planner, toronto):
    planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    assert day_status(datetime.date(2025, 3, 10), planner.store, toronto) == "duty"
    # rest spills over midnight
    assert day_status(datetime.date(2025, 3, 11), planner.store, toronto) == "rest"
    assert day_status(datetime.date(2025, 3, 12), planner.store, toronto) == "free"


def test_day_without_events(planner, toronto):
    result = annotate_day(datetime.date(2025, 3, 10), planner.store, toronto)
    assert result.status == "free"
    assert result.markers == []
    assert result.violations == []
