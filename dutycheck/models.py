"""
Timeline records, candidate input and user preferences.
"""
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional, Union
import datetime
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

log = logging.getLogger("duty_engine")

DEFAULT_ZONE = "America/Vancouver"


class Regulator(str, Enum):
    TC = "TC"
    FAA = "FAA"
    EASA = "EASA"
    AUSTRALIA = "Australia"


class AvgSectorTime(str, Enum):
    UNDER_30 = "<30"
    FROM_30_TO_50 = "30-50"
    OVER_50 = ">=50"


class RestType(str, Enum):
    STANDARD = "12h"
    TEN_PLUS_TRAVEL = "10+travel"


class TimeFormat(str, Enum):
    H24 = "24h"
    H12 = "12h"


# ---------- Timeline events ----------
class _Interval(BaseModel):
    id: str
    title: str
    start: datetime.datetime
    end: datetime.datetime
    violated: bool = False

    @field_validator("start", "end")
    @classmethod
    def _as_utc(cls, v: datetime.datetime) -> datetime.datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=datetime.timezone.utc)
        return v.astimezone(datetime.timezone.utc)

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class DutyEvent(_Interval):
    kind: Literal["duty"] = "duty"
    title: str = "Duty Period"
    acclimatization_zone: Optional[str] = None


class RestEvent(_Interval):
    kind: Literal["rest"] = "rest"
    title: str = "Required Rest"
    duty_id: str
    next_duty_id: Optional[str] = None
    rest_type: Optional[RestType] = None
    is_local_night_rest: bool = False


Event = Union[DutyEvent, RestEvent]


# ---------- Presentation input ----------
class CandidateDuty(BaseModel):
    """Duty form as submitted by the presentation layer (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start_date: Optional[str] = None
    start_time: Optional[str] = None
    end_date: Optional[str] = None
    end_time: Optional[str] = None
    sectors: int = Field(1, ge=1)
    avg_sector_time: AvgSectorTime = AvgSectorTime.UNDER_30
    acclimatization_zone: Optional[str] = None
    rest_type: RestType = RestType.STANDARD


# key-value settings written by the presentation layer
SETTINGS_KEYS = {
    "sectors": "lastSectors",
    "avg_sector_time": "lastAvgSectorTime",
    "acclimatization_zone": "lastAcclTZ",
    "reference_zone": "referenceTZ",
    "regulator": "regulator",
    "time_format": "timeFormat",
    "theme": "theme",
}


class UserPreferences(BaseModel):
    """
    Explicit settings passed into the validator and generator at call time.

    acclimatization_zone is the global default used when a duty has none;
    reference_zone is where entered times and local calendar days live.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    regulator: Regulator = Regulator.TC
    acclimatization_zone: str = DEFAULT_ZONE
    reference_zone: str = DEFAULT_ZONE
    sectors: int = Field(1, ge=1)
    avg_sector_time: AvgSectorTime = AvgSectorTime.UNDER_30
    time_format: TimeFormat = TimeFormat.H24
    theme: Literal["light", "dark"] = "light"

    def zone_for(self, duty: DutyEvent) -> str:
        return duty.acclimatization_zone or self.acclimatization_zone

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "UserPreferences":
        """
        Build preferences from flat stored settings. Missing or malformed values
        fall back to defaults one key at a time.
        """
        prefs = cls()
        for field_name, key in SETTINGS_KEYS.items():
            raw = settings.get(key)
            if raw in (None, ""):
                continue
            try:
                prefs = cls.model_validate({**prefs.model_dump(), field_name: raw})
            except ValidationError:
                log.warning("Ignoring invalid setting %s=%r", key, raw)
        return prefs

    def to_settings(self) -> Dict[str, str]:
        data = self.model_dump(mode="json")
        return {key: str(data[field_name]) for field_name, key in SETTINGS_KEYS.items()}
