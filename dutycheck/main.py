# dutycheck/main.py
"""
Duty legality engine - FastAPI main file.

Loads regulator rules from dutycheck/rules, exposes:
- GET  /                   -> "Duty Engine Ready!" + rules count
- GET  /rules              -> list rule summaries
- GET  /rules/{regulator}  -> full rule detail
- POST /rules/reload       -> reload rules from disk
plus the duty endpoints from legality.py.
"""
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import load_rules
from .errors import EventNotFoundError, InvalidZoneError
from .legality import router as legality_router
from .models import Regulator
from .planner import Planner

log = logging.getLogger("uvicorn.error")


# ---------- RESPONSE MODELS ----------
class RuleSummary(BaseModel):
    id: str
    title: Optional[str] = None
    reference: Optional[str] = None
    enabled: Optional[bool] = None
    version: Optional[str] = None


class RuleDetail(RuleSummary):
    logic: Optional[Dict[str, Any]] = None
    notes: Optional[Dict[str, Any]] = None


def _reload() -> Dict[str, Any]:
    try:
        loaded, invalid = load_rules.load_rules_from_folder(load_rules.RULES_DIR)
    except Exception as e:
        log.exception("load_rules_from_folder failed: %s", e)
        loaded, invalid = {}, [{"file": "loader_exception", "error": str(e)}]
    log.info("Rule loader: %d valid, %d invalid", len(loaded), len(invalid))
    return {"loaded": len(loaded), "invalid": invalid}


# ---------- LIFESPAN STARTUP ----------
@asynccontextmanager
async def _lifespan(app: FastAPI):
    _reload()
    if getattr(app.state, "planner", None) is None:
        app.state.planner = Planner()
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Duty Legality Engine", lifespan=_lifespan)
    app.include_router(legality_router)

    @app.exception_handler(InvalidZoneError)
    async def _invalid_zone(request: Request, exc: InvalidZoneError):
        return JSONResponse(status_code=422, content={"detail": exc.message})

    @app.exception_handler(EventNotFoundError)
    async def _not_found(request: Request, exc: EventNotFoundError):
        return JSONResponse(status_code=404, content={"detail": exc.message})

    # ---------- ROOT ----------
    @app.get("/")
    def root():
        return {
            "message": "Duty Engine Ready!",
            "rules_loaded": len(load_rules.RULES),
        }

    # ---------- LIST RULES ----------
    @app.get("/rules", response_model=List[RuleSummary])
    def get_rules():
        return [
            RuleSummary(
                id=r.id.value,
                title=r.title,
                reference=r.reference,
                enabled=r.enabled,
                version=r.version,
            )
            for r in sorted(load_rules.RULES.values(), key=lambda r: r.id.value)
        ]

    # ---------- GET RULE DETAIL ----------
    @app.get("/rules/{regulator}", response_model=RuleDetail)
    def get_rule_detail(regulator: str):
        try:
            rule = load_rules.RULES.get(Regulator(regulator))
        except ValueError:
            rule = None
        if rule is None:
            raise HTTPException(status_code=404, detail=f"Rule '{regulator}' not found")
        return RuleDetail(
            id=rule.id.value,
            title=rule.title,
            reference=rule.reference,
            enabled=rule.enabled,
            version=rule.version,
            logic=rule.logic.model_dump(mode="json"),
            notes=rule.notes,
        )

    # ---------- RELOAD RULES ----------
    @app.post("/rules/reload")
    def reload_rules():
        return _reload()

    return app


app = create_app()
