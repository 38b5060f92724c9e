# dutycheck/load_rules.py
"""
Rule loader for the per-regulator JSON rule files.

Provides:
 - RULES: validated rule objects (RuleSpec) keyed by Regulator
 - INVALID_REPORTS: read/parse/validation errors, one dict per problem
 - load_rules_from_folder(): (re)load a folder and refresh both
"""
from pathlib import Path
import json
import logging
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .models import Regulator

log = logging.getLogger("rule_loader")
log.setLevel(logging.INFO)

RULES_DIR = Path(__file__).parent / "rules"


# ---------------------------------------------------------
# Rule schema
# ---------------------------------------------------------
class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TimeSlot(_Frozen):
    slot: str
    first_hour: int = Field(ge=0, le=23)
    last_hour: int = Field(ge=0, le=23)


class SectorGroup(_Frozen):
    group: str
    # None means "and above"
    max_sectors: Optional[int] = None


class FdpTable(_Frozen):
    fallback_hours: float = 9.0
    time_slots: List[TimeSlot]
    sector_groups: Dict[str, List[SectorGroup]]
    hours: Dict[str, Dict[str, Dict[str, float]]]

    def slot_for_hour(self, hour: int) -> Optional[str]:
        for s in self.time_slots:
            if s.first_hour <= hour <= s.last_hour:
                return s.slot
        return None

    def group_for(self, sectors: int, avg_sector_time: str) -> Optional[str]:
        groups = self.sector_groups.get(avg_sector_time) or []
        for g in groups:
            if g.max_sectors is None or sectors <= g.max_sectors:
                return g.group
        return None


class NightPeriod(_Frozen):
    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=0, le=23)


class NightDutyTest(_Frozen):
    """
    A duty is a night duty when its acclimatized start is >= start_from_hour
    (if set) or < start_before_hour, and its acclimatized end is > end_after_hour.
    """
    start_from_hour: Optional[int] = None
    start_before_hour: int
    end_after_hour: int


class HourBand(_Frozen):
    from_hour: int = Field(ge=0, le=23)
    before_hour: int = Field(ge=1, le=24)

    def contains(self, hour: int) -> bool:
        return self.from_hour <= hour < self.before_hour


class RegulatorLogic(_Frozen):
    type: Literal["fdp_table", "flat"]
    fdp_table: Optional[FdpTable] = None
    max_fdp_hours: Optional[float] = None
    min_rest_hours: float
    weekly_duty_cap_hours: float = 60.0
    night_period: NightPeriod
    night_duty: Optional[NightDutyTest] = None
    early_start: HourBand
    late_finish: HourBand

    @model_validator(mode="after")
    def _limits_present(self):
        if self.type == "fdp_table" and self.fdp_table is None:
            raise ValueError("fdp_table logic requires an fdp_table")
        if self.type == "flat" and self.max_fdp_hours is None:
            raise ValueError("flat logic requires max_fdp_hours")
        return self

    @property
    def night_duty_test(self) -> NightDutyTest:
        if self.night_duty is not None:
            return self.night_duty
        return NightDutyTest(
            start_before_hour=self.night_period.end_hour,
            end_after_hour=self.night_period.start_hour,
        )


class RuleSpec(_Frozen):
    id: Regulator
    title: str
    logic: RegulatorLogic
    reference: Optional[str] = None
    enabled: bool = True
    version: Optional[str] = None
    notes: Optional[Dict[str, Any]] = None

    @field_validator("title")
    @classmethod
    def _title_not_empty(cls, v):
        if not v or v.strip() == "":
            raise ValueError("title must be non-empty string")
        return v

    @property
    def label(self) -> str:
        return self.reference or self.id.value


# ---------------------------------------------------------
# Main Loader
# ---------------------------------------------------------
def read_rules_folder(folder: Path) -> Tuple[Dict[Regulator, RuleSpec], List[Dict[str, Any]]]:
    """
    Reads and validates all rule JSON files from folder without publishing them.
    Returns (valid rules keyed by regulator, invalid reports).
    """
    valid: Dict[Regulator, RuleSpec] = {}
    invalid: List[Dict[str, Any]] = []
    folder = Path(folder)

    if not folder.exists() or not folder.is_dir():
        log.warning(f"Rules folder does not exist: {folder}")
        invalid.append({"stage": "load", "error": f"rules folder not found: {folder}"})
        return valid, invalid

    # Load *.json files deterministically
    for f in sorted(folder.glob("*.json")):
        fname = f.name
        try:
            text = f.read_text(encoding="utf-8")
        except OSError as e:
            invalid.append({"file": fname, "error": f"read_error: {e}"})
            log.error(f"Failed to read {fname}: {e}")
            continue

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            invalid.append({"file": fname, "error": f"json_parse_error: {e}"})
            log.error(f"JSON parse error in {fname}: {e}")
            continue

        try:
            rule = RuleSpec.model_validate(parsed)
        except ValidationError as e:
            invalid.append({"file": fname, "error": f"validation_error: {e}"})
            log.error(f"Invalid rule file {fname}: {e.error_count()} error(s)")
            continue

        if not rule.enabled:
            log.info(f"Skipping disabled rule {rule.id.value} from {fname}")
            continue
        if rule.id in valid:
            invalid.append({"file": fname, "error": f"duplicate rule id: {rule.id.value}"})
            log.error(f"Duplicate rule id {rule.id.value} in {fname}")
            continue

        valid[rule.id] = rule
        log.info(f"Loaded rule {rule.id.value} from {fname}")

    missing = [r.value for r in Regulator if r not in valid]
    if missing:
        invalid.append({"stage": "postprocess", "error": f"no rules for: {', '.join(missing)}"})
        log.warning(f"No rules loaded for {missing}")

    log.info(f"Rule loader summary: {len(valid)} valid rules, {len(invalid)} invalid")
    return valid, invalid


def load_rules_from_folder(folder: Path = RULES_DIR) -> Tuple[Dict[Regulator, RuleSpec], List[Dict[str, Any]]]:
    """
    Loads all rule JSON files from folder and publishes them as RULES /
    INVALID_REPORTS. Readers must go through the module attribute
    (load_rules.RULES) to see a reload.
    """
    global RULES, INVALID_REPORTS
    valid, invalid = read_rules_folder(folder)
    RULES, INVALID_REPORTS = valid, invalid
    return valid, invalid


# ---------------------------------------------------------
# Eager load on import
# ---------------------------------------------------------
RULES: Dict[Regulator, RuleSpec] = {}
INVALID_REPORTS: List[Dict[str, Any]] = []

try:
    load_rules_from_folder(RULES_DIR)
except Exception as e:
    log.exception(f"Failed to eager-load rules: {e}")

__all__ = [
    "read_rules_folder",
    "load_rules_from_folder",
    "RULES",
    "INVALID_REPORTS",
    "RULES_DIR",
    "RuleSpec",
    "RegulatorLogic",
    "FdpTable",
]
