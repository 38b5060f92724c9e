"""
Release-time reminders for "10+travel" rest.

The engine only says what to schedule. Delivery belongs to the caller, and a
reminder may fire after the duty it refers to has been edited or deleted.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union
import datetime

from .models import RestType
from .timezones import ensure_aware

FIRST_REMINDER_DELAY = datetime.timedelta(minutes=30)
FOLLOW_UP_DELAY = datetime.timedelta(minutes=30)
PAST_DUE_THRESHOLD = datetime.timedelta(hours=15)

FIRST_REMINDER = (
    "Reminder: Confirm the new release time with your company "
    "(at the hotel room, key in hand or established rest location)."
)
FOLLOW_UP_REMINDER = "Follow-up: Please update the release time on the app to reflect the actual time at the rest location."

_PROMPT = {
    False: "Would you like a notification 30 minutes after the original release time to remember to "
           "confirm the new release time with your company?",
    True: "Would you like a notification 30 minutes after the release time to remember to "
          "confirm the new release time with your company?",
}

# (is_edit, more than PAST_DUE_THRESHOLD elapsed) -> advisory
_PAST_DUE = {
    (False, True): "More than 15 hours have passed since the original release time. "
                   "Please update the release time to reflect the actual time at the rest location.",
    (False, False): "The original release time has already passed. "
                    "Please modify the end time of the duty to reflect the actual release time at the hotel.",
    (True, True): "More than 15 hours have passed since the release time. "
                  "Please update the release time to reflect the actual time at the rest location.",
    (True, False): "The release time has already passed. "
                   "Please modify the end time of the duty to reflect the actual release time.",
}


@dataclass
class ScheduledReminder:
    due: datetime.datetime
    message: str


@dataclass
class ReminderPlan:
    prompt: Optional[str] = None
    reminders: List[ScheduledReminder] = field(default_factory=list)
    advisory: Optional[str] = None


def plan_release_reminders(
    release: datetime.datetime,
    rest_type: Union[RestType, str],
    now: Optional[datetime.datetime] = None,
    is_edit: bool = False,
) -> Optional[ReminderPlan]:
    """
    Two-stage reminder plan for a 10+travel release, or a past-due advisory
    when the release is already behind `now`. None for other rest types.
    """
    if RestType(rest_type) != RestType.TEN_PLUS_TRAVEL:
        return None
    now = ensure_aware(now or datetime.datetime.now(datetime.timezone.utc))
    release = ensure_aware(release)

    if now > release:
        long_overdue = (now - release) > PAST_DUE_THRESHOLD
        return ReminderPlan(advisory=_PAST_DUE[(is_edit, long_overdue)])

    first = release + FIRST_REMINDER_DELAY
    return ReminderPlan(
        prompt=_PROMPT[is_edit],
        reminders=[
            ScheduledReminder(due=first, message=FIRST_REMINDER),
            ScheduledReminder(due=first + FOLLOW_UP_DELAY, message=FOLLOW_UP_REMINDER),
        ],
    )
