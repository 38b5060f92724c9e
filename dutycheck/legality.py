# dutycheck/legality.py
"""
Duty legality endpoints.

Exposes the planner over JSON:
- POST   /max-fdp                 -> maximum FDP for a candidate start
- POST   /duties                  -> validate + commit a new duty
- PUT    /duties/{id}             -> validate + commit an edit
- DELETE /duties/{id}             -> cascade delete
- GET    /duties/{id}/edit-form   -> candidate pre-filled from a stored duty
- DELETE /rests/{id}              -> delete a single rest period
- GET    /events                  -> events touching [start, end)
- DELETE /events                  -> clear every event in a month
- POST   /markers                 -> per-day markers / status
- GET    /timezones               -> searchable IANA zone list

Rejections come back as 200 with status "rejected" and a reason; the timeline
is untouched in that case.
"""
from typing import Any, Dict, List, Optional
import datetime
import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from .markers import DayMarkers
from .models import DEFAULT_ZONE, CandidateDuty, Event, UserPreferences
from .planner import CommitResult, Planner
from .timezones import hours_to_hhmm, list_time_zones

log = logging.getLogger("uvicorn.error")
router = APIRouter()


# ---------- Request / Response Models ----------
class DutyRequest(BaseModel):
    candidate: CandidateDuty
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    proceed_on_overlap: bool = False


class MaxFdpRequest(BaseModel):
    candidate: CandidateDuty
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class MarkerRequest(BaseModel):
    days: List[datetime.date]
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class ReminderOut(BaseModel):
    due: datetime.datetime
    message: str


class ReminderPlanOut(BaseModel):
    prompt: Optional[str] = None
    reminders: List[ReminderOut] = []
    advisory: Optional[str] = None


class CommitOut(BaseModel):
    status: str
    reason: Optional[str] = None
    code: Optional[str] = None
    duty: Optional[Dict[str, Any]] = None
    rest: Optional[Dict[str, Any]] = None
    local_night_rests: List[Dict[str, Any]] = []
    removed_ids: List[str] = []
    advisories: List[Dict[str, Any]] = []
    reminders: Optional[ReminderPlanOut] = None
    max_fdp_hours: Optional[float] = None
    max_fdp_hhmm: Optional[str] = None


# ---------- Helpers ----------
def get_planner(request: Request) -> Planner:
    planner = getattr(request.app.state, "planner", None)
    if planner is None:
        planner = Planner()
        request.app.state.planner = planner
    return planner


def _event_out(event: Optional[Event]) -> Optional[Dict[str, Any]]:
    if event is None:
        return None
    return event.model_dump(mode="json")


def _advisory_out(warning) -> Dict[str, Any]:
    out: Dict[str, Any] = {"type": type(warning).__name__, "message": warning.message}
    if hasattr(warning, "rest_ids"):
        out["rest_ids"] = warning.rest_ids
    if hasattr(warning, "reasons"):
        out["rest_id"] = warning.rest_id
        out["reasons"] = warning.reasons
    return out


def _commit_out(result: CommitResult) -> CommitOut:
    plan = None
    if result.reminders is not None:
        plan = ReminderPlanOut(
            prompt=result.reminders.prompt,
            reminders=[ReminderOut(due=r.due, message=r.message) for r in result.reminders.reminders],
            advisory=result.reminders.advisory,
        )
    return CommitOut(
        status=result.status,
        reason=result.reason,
        code=result.code,
        duty=_event_out(result.duty),
        rest=_event_out(result.rest),
        local_night_rests=[_event_out(r) for r in result.local_night_rests],
        removed_ids=[e.id for e in result.removed],
        advisories=[_advisory_out(w) for w in result.advisories],
        reminders=plan,
        max_fdp_hours=result.max_fdp_hours,
        max_fdp_hhmm=hours_to_hhmm(result.max_fdp_hours),
    )


# ---------- Duties ----------
@router.post("/max-fdp")
async def max_fdp(req: MaxFdpRequest, planner: Planner = Depends(get_planner)):
    hours = planner.check_max_duty(req.candidate, req.preferences)
    return {
        "regulator": req.preferences.regulator.value,
        "max_fdp_hours": hours,
        "max_fdp_hhmm": hours_to_hhmm(hours),
    }


@router.post("/duties", response_model=CommitOut)
async def create_duty(req: DutyRequest, planner: Planner = Depends(get_planner)):
    result = planner.submit(req.candidate, req.preferences, proceed_on_overlap=req.proceed_on_overlap)
    return _commit_out(result)


@router.put("/duties/{duty_id}", response_model=CommitOut)
async def edit_duty(duty_id: str, req: DutyRequest, planner: Planner = Depends(get_planner)):
    result = planner.edit(duty_id, req.candidate, req.preferences, proceed_on_overlap=req.proceed_on_overlap)
    return _commit_out(result)


@router.delete("/duties/{duty_id}")
async def delete_duty(duty_id: str, planner: Planner = Depends(get_planner)):
    removed = planner.delete_duty(duty_id)
    return {"removed_ids": [e.id for e in removed]}


@router.get("/duties/{duty_id}/edit-form")
async def edit_form(
    duty_id: str,
    reference_zone: str = Query(DEFAULT_ZONE, alias="referenceZone"),
    planner: Planner = Depends(get_planner),
):
    preferences = UserPreferences(reference_zone=reference_zone)
    candidate = planner.edit_form(duty_id, preferences)
    return candidate.model_dump(mode="json", by_alias=True)


@router.delete("/rests/{rest_id}")
async def delete_rest(rest_id: str, planner: Planner = Depends(get_planner)):
    removed = planner.delete_rest(rest_id)
    return {"removed_ids": [removed.id]}


# ---------- Timeline ----------
@router.get("/events")
async def list_events(
    start: Optional[datetime.datetime] = None,
    end: Optional[datetime.datetime] = None,
    planner: Planner = Depends(get_planner),
):
    if start is None or end is None:
        events = list(planner.store)
    else:
        events = planner.events_between(start, end)
    return [_event_out(e) for e in events]


@router.delete("/events")
async def clear_month(
    year: int = Query(..., ge=1),
    month: int = Query(..., ge=1, le=12),
    zone: str = Query(DEFAULT_ZONE),
    planner: Planner = Depends(get_planner),
):
    removed = planner.clear_month(year, month, zone)
    return {"removed_ids": [e.id for e in removed]}


@router.post("/markers")
async def day_markers(req: MarkerRequest, planner: Planner = Depends(get_planner)):
    out = []
    for day in req.days:
        annotated: DayMarkers = planner.markers_for_day(day, req.preferences)
        out.append({
            "day": annotated.day.isoformat(),
            "status": annotated.status,
            "markers": [{"event_id": m.event_id, "kind": m.kind} for m in annotated.markers],
            "violations": [
                {
                    "event_id": v.event_id,
                    "conflicting_event_id": v.conflicting_event_id,
                    "overlap_start": v.overlap_start.isoformat() if v.overlap_start else None,
                    "offset_percent": round(v.offset_percent, 2),
                }
                for v in annotated.violations
            ],
        })
    return out


@router.get("/timezones")
async def timezones(search: str = ""):
    return list_time_zones(search)
