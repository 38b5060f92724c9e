"""
Exceptions and soft warnings raised or returned by the duty engine.

Hard errors derive from DutyCheckError. Regulatory and input rejections derive
from DutyRejected and never leave a partial write behind. Soft conditions
(overlap with a rest period, local night rest failures) are UserWarning
subclasses that are returned as data instead of raised.
"""
from typing import List, Optional, Sequence


class DutyCheckError(Exception):
    """Base class for engine errors."""

    default_message = "Duty check failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidZoneError(DutyCheckError, ValueError):
    default_message = "Unknown time zone"

    def __init__(self, zone_name: Optional[str] = None):
        self.zone_name = zone_name
        super().__init__(f"Unknown time zone: {zone_name!r}")


class EventNotFoundError(DutyCheckError, KeyError):
    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event '{event_id}' not found")

    def __str__(self):
        return self.message


class DuplicateEventError(DutyCheckError):
    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event '{event_id}' already exists")


# ---------- Rejections ----------
class DutyRejected(DutyCheckError):
    """A candidate duty was refused. The form stays open."""

    code = "rejected"


class MissingFieldsError(DutyRejected):
    code = "missing_fields"

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(
            "Please fill in all required fields: Start Date, Start Time, End Date, and End Time"
        )


class InvalidIntervalError(DutyRejected):
    code = "invalid_interval"
    default_message = "End time must be after start time."


class FDPExceededError(DutyRejected):
    code = "fdp_exceeded"

    def __init__(self, label: str, max_fdp_hours: float, duration_hours: float):
        self.max_fdp_hours = max_fdp_hours
        self.duration_hours = duration_hours
        super().__init__(f"FDP exceeds table limit for {label}")


class WeeklyCapExceededError(DutyRejected):
    code = "weekly_cap_exceeded"

    def __init__(self, label: str, cap_hours: float, total_hours: float):
        self.cap_hours = cap_hours
        self.total_hours = total_hours
        cap = int(cap_hours) if float(cap_hours).is_integer() else cap_hours
        super().__init__(f"Total hours of work in 7 days would exceed {cap} hours for {label}")


# ---------- Soft warnings (returned, not raised) ----------
class DutyCheckWarning(UserWarning):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class OverlapWarning(DutyCheckWarning):
    """The candidate duty overlaps one or more rest periods."""

    def __init__(self, rest_ids: List[str]):
        self.rest_ids = list(rest_ids)
        super().__init__(
            "Duty period overlaps with a rest period. Edit the duty, or proceed to add it "
            "anyway and mark it as violated."
        )


class LNRViolation(DutyCheckWarning):
    """A generated local night rest fails one or more regulatory checks."""

    def __init__(self, rest_id: str, reasons: List[str]):
        self.rest_id = rest_id
        self.reasons = list(reasons)
        if reasons == ["overlaps_duty"]:
            message = "Local night rest violation."
        else:
            message = "Local night rest does not meet regulatory requirements."
        super().__init__(message)
