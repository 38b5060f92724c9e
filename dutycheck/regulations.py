"""
Pure lookups over the loaded regulator rule tables.

Every function takes plain values (regulator, acclimatized hours, sector
count) so that callers decide which zone an hour was read in.
"""
from typing import Union
import logging

from . import load_rules
from .load_rules import RuleSpec
from .models import AvgSectorTime, Regulator, RestType

log = logging.getLogger("duty_engine")

# Fail-safe FDP when a combination is missing from a table
FALLBACK_FDP_HOURS = 9.0
TEN_PLUS_TRAVEL_REST_HOURS = 10.0


def get_rules(regulator: Union[Regulator, str]) -> RuleSpec:
    reg = Regulator(regulator)
    rule = load_rules.RULES.get(reg)
    if rule is None:
        raise LookupError(f"No rules loaded for regulator {reg.value}")
    return rule


def regulator_label(regulator: Union[Regulator, str]) -> str:
    """Wording used in rejection messages ("CAR 705" for TC)."""
    return get_rules(regulator).label


def max_fdp_hours(
    regulator: Union[Regulator, str],
    start_hour: int,
    sectors: int,
    avg_sector_time: Union[AvgSectorTime, str],
) -> float:
    """
    Maximum FDP in hours for an acclimatized start hour, sector count and
    average sector time. Unmapped combinations return FALLBACK_FDP_HOURS.
    """
    logic = get_rules(regulator).logic
    if logic.type == "flat":
        return float(logic.max_fdp_hours)

    table = logic.fdp_table
    avg = AvgSectorTime(avg_sector_time).value
    slot = table.slot_for_hour(int(start_hour) % 24)
    group = table.group_for(max(1, int(sectors)), avg)
    value = table.hours.get(avg, {}).get(group or "", {}).get(slot or "")
    if value is None:
        log.debug("No FDP entry for %s/%s/%s, using fallback", avg, group, slot)
        return float(table.fallback_hours or FALLBACK_FDP_HOURS)
    return float(value)


def min_rest_hours(regulator: Union[Regulator, str], rest_type: Union[RestType, str] = RestType.STANDARD) -> float:
    if RestType(rest_type) == RestType.TEN_PLUS_TRAVEL:
        return TEN_PLUS_TRAVEL_REST_HOURS
    return float(get_rules(regulator).logic.min_rest_hours)


def weekly_duty_cap_hours(regulator: Union[Regulator, str]) -> float:
    return float(get_rules(regulator).logic.weekly_duty_cap_hours)


def night_period(regulator: Union[Regulator, str]):
    """(night start hour, night end hour) used for N marking and LNR eligibility."""
    p = get_rules(regulator).logic.night_period
    return p.start_hour, p.end_hour


def is_night_duty(regulator: Union[Regulator, str], start_hour: int, end_hour: int) -> bool:
    t = get_rules(regulator).logic.night_duty_test
    starts_at_night = start_hour < t.start_before_hour or (
        t.start_from_hour is not None and start_hour >= t.start_from_hour
    )
    return starts_at_night and end_hour > t.end_after_hour


def is_early_start(regulator: Union[Regulator, str], start_hour: int) -> bool:
    return get_rules(regulator).logic.early_start.contains(start_hour)


def is_late_finish(regulator: Union[Regulator, str], end_hour: int) -> bool:
    return get_rules(regulator).logic.late_finish.contains(end_hour)
