# tests/test_planner.py
import datetime

import pytest

from dutycheck.errors import EventNotFoundError, InvalidZoneError
from dutycheck.models import CandidateDuty, RestType, UserPreferences
from dutycheck.rest import standard_rest_id
from dutycheck.timezones import parse_local

ZONE = "America/Toronto"


def cand(start_date, start_time, end_date, end_time, **kw):
    return CandidateDuty(
        start_date=start_date, start_time=start_time, end_date=end_date, end_time=end_time, **kw
    )


def local(date, time):
    return parse_local(date, time, ZONE)


def test_submit_creates_duty_and_standard_rest(planner, toronto):
    result = planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)

    assert result.committed
    assert result.max_fdp_hours == 13
    assert result.reminders is None
    assert result.duty.acclimatization_zone == ZONE
    assert result.rest.id == standard_rest_id(result.duty.id)
    assert result.rest.start == result.duty.end
    assert result.rest.end - result.rest.start == datetime.timedelta(hours=12)
    assert result.rest.title == "Required Rest"
    assert len(planner.store) == 2


def test_ten_plus_travel_rest(planner, toronto):
    result = planner.submit(
        cand("2025-03-10", "08:00", "2025-03-10", "16:00", rest_type="10+travel"),
        toronto,
        now=local("2025-03-10", "07:00"),
    )
    assert result.rest.end - result.rest.start == datetime.timedelta(hours=10)
    assert result.rest.title == "Required Rest (10+travel)"
    assert result.rest.rest_type == RestType.TEN_PLUS_TRAVEL
    assert result.reminders is not None
    assert [r.due for r in result.reminders.reminders] == [
        local("2025-03-10", "16:30"),
        local("2025-03-10", "17:00"),
    ]


def test_faa_rest_is_ten_hours(planner):
    prefs = UserPreferences(regulator="FAA", reference_zone=ZONE, acclimatization_zone=ZONE)
    result = planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), prefs)
    assert result.rest.end - result.rest.start == datetime.timedelta(hours=10)


def test_rejection_leaves_store_unchanged(planner, toronto):
    planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    before = [e.model_dump() for e in planner.store]

    result = planner.submit(cand("2025-03-12", "06:00", "2025-03-12", "19:00"), toronto)

    assert result.status == "rejected"
    assert result.code == "fdp_exceeded"
    assert result.duty is None
    assert [e.model_dump() for e in planner.store] == before


def test_needs_choice_leaves_store_unchanged(planner, toronto):
    planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    result = planner.submit(cand("2025-03-10", "20:00", "2025-03-10", "22:00"), toronto)
    assert result.status == "needs_user_choice"
    assert result.code == "overlaps_rest"
    assert len(planner.store) == 2


def test_invalid_zone_leaves_store_unchanged(planner, toronto):
    candidate = cand("2025-03-10", "08:00", "2025-03-10", "16:00", acclimatization_zone="Bad/Zone")
    with pytest.raises(InvalidZoneError):
        planner.submit(candidate, toronto)
    assert len(planner.store) == 0


def test_edit_updates_duty_only(planner, toronto):
    created = planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    rest_before = planner.store.get(created.rest.id)

    edited = planner.edit(created.duty.id, cand("2025-03-10", "09:00", "2025-03-10", "18:00"), toronto)

    assert edited.committed
    assert edited.rest is None
    assert edited.duty.start == local("2025-03-10", "09:00")
    assert planner.store.get(created.duty.id).end == local("2025-03-10", "18:00")
    assert planner.store.get(created.rest.id) == rest_before


def test_edit_rejected_keeps_original(planner, toronto):
    created = planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    result = planner.edit(created.duty.id, cand("2025-03-10", "08:00", "2025-03-10", "23:00"), toronto)
    assert result.status == "rejected"
    assert planner.store.get(created.duty.id).end == local("2025-03-10", "16:00")


def test_edit_unknown_duty(planner, toronto):
    with pytest.raises(EventNotFoundError):
        planner.edit("missing", cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)


def test_edit_reminder_wording(planner, toronto):
    created = planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    edited = planner.edit(
        created.duty.id,
        cand("2025-03-10", "08:00", "2025-03-10", "17:00", rest_type="10+travel"),
        toronto,
        now=local("2025-03-10", "18:00"),
    )
    assert edited.reminders.advisory.startswith("The release time has already passed.")


def test_delete_duty_errors(planner, toronto):
    created = planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    with pytest.raises(EventNotFoundError):
        planner.delete_duty("missing")
    with pytest.raises(EventNotFoundError):
        planner.delete_duty(created.rest.id)


def test_delete_rest(planner, toronto):
    created = planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    removed = planner.delete_rest(created.rest.id)
    assert removed.id == created.rest.id
    assert [e.id for e in planner.store] == [created.duty.id]
    with pytest.raises(EventNotFoundError):
        planner.delete_rest(created.duty.id)


def test_clear_month(planner, toronto):
    march = planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    late = planner.submit(cand("2025-03-31", "13:00", "2025-03-31", "22:00"), toronto)
    april = planner.submit(cand("2025-04-10", "08:00", "2025-04-10", "16:00"), toronto)

    removed = planner.clear_month(2025, 3, ZONE)

    removed_ids = {e.id for e in removed}
    assert {march.duty.id, march.rest.id, late.duty.id, late.rest.id} == removed_ids
    assert {e.id for e in planner.store} == {april.duty.id, april.rest.id}


def test_clear_december_rolls_year(planner, toronto):
    planner.submit(cand("2025-12-10", "08:00", "2025-12-10", "16:00"), toronto)
    jan = planner.submit(cand("2026-01-10", "08:00", "2026-01-10", "16:00"), toronto)
    planner.clear_month(2025, 12, ZONE)
    assert {e.id for e in planner.store} == {jan.duty.id, jan.rest.id}


def test_edit_form_prefill(planner, toronto):
    created = planner.submit(
        cand(
            "2025-03-10", "22:00", "2025-03-11", "06:00",
            rest_type="10+travel", acclimatization_zone="America/Vancouver",
        ),
        toronto,
        now=local("2025-03-10", "20:00"),
    )
    form = planner.edit_form(created.duty.id, toronto)
    assert form.start_date == "2025-03-10"
    assert form.start_time == "22:00"
    assert form.end_date == "2025-03-11"
    assert form.end_time == "06:00"
    assert form.rest_type == RestType.TEN_PLUS_TRAVEL
    assert form.acclimatization_zone == "America/Vancouver"


def test_edit_form_without_rest_defaults_to_standard(planner, toronto):
    created = planner.submit(
        cand("2025-03-10", "08:00", "2025-03-10", "16:00", rest_type="10+travel"),
        toronto,
        now=local("2025-03-10", "07:00"),
    )
    planner.delete_rest(created.rest.id)
    assert planner.edit_form(created.duty.id, toronto).rest_type == RestType.STANDARD


def test_events_between(planner, toronto):
    created = planner.submit(cand("2025-03-10", "08:00", "2025-03-10", "16:00"), toronto)
    events = planner.events_between(local("2025-03-11", "00:00"), local("2025-03-12", "00:00"))
    assert [e.id for e in events] == [created.rest.id]


def test_preferences_from_settings():
    prefs = UserPreferences.from_settings({
        "regulator": "FAA",
        "lastSectors": "3",
        "lastAvgSectorTime": "30-50",
        "referenceTZ": "America/Toronto",
        "timeFormat": "bogus",
        "theme": "dark",
    })
    assert prefs.regulator.value == "FAA"
    assert prefs.sectors == 3
    assert prefs.avg_sector_time.value == "30-50"
    assert prefs.reference_zone == "America/Toronto"
    assert prefs.time_format.value == "24h"
    assert prefs.theme == "dark"
    assert prefs.to_settings()["lastSectors"] == "3"
    assert prefs.to_settings()["regulator"] == "FAA"
