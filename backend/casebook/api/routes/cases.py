from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from casebook.api.deps import load_case
from casebook.db.session import get_session
from casebook.models.case import Case
from casebook.services import listing, scope, store
from casebook.services.catalog import phase_title
from casebook.services.findings import finding_state

router = APIRouter(prefix="/cases", tags=["cases"])


class CaseCreate(BaseModel):
    case_id: str
    analyst_name: str


class ScopeRequest(BaseModel):
    profiles: list[str]
    custom_keywords: Optional[str] = None


class StatusRequest(BaseModel):
    status: Literal["Open", "Closed"]


def _progress(case: Case) -> dict:
    completed, total, percent = scope.progress(case)
    return {"completed": completed, "total": total, "percent": percent}


@router.post("", status_code=201)
def create_case(body: CaseCreate, session: Session = Depends(get_session)):
    case_id = body.case_id.strip()
    analyst_name = body.analyst_name.strip()
    if not case_id or not analyst_name:
        raise HTTPException(status_code=422, detail="case_id and analyst_name are required")
    case = store.create_case(session, case_id, analyst_name)
    return {"case": case.model_dump()}


@router.get("")
def list_cases(
    session: Session = Depends(get_session),
    case_id: Optional[list[str]] = Query(default=None),
    analyst_name: Optional[list[str]] = Query(default=None),
    status: Optional[list[str]] = Query(default=None),
    scope_label: Optional[list[str]] = Query(default=None, alias="scope"),
    sort: str = Query(default=listing.DEFAULT_SORT[0]),
    direction: Literal["asc", "desc"] = Query(default=listing.DEFAULT_SORT[1]),
):
    filters = {
        "case_id": case_id or [],
        "analyst_name": analyst_name or [],
        "status": status or [],
        "scope": scope_label or [],
    }
    try:
        cases = listing.project(store.list_cases(session), filters=filters, sort=(sort, direction))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"cases": [c.model_dump() for c in cases]}


@router.get("/{case_uuid}")
def get_case(case: Case = Depends(load_case)):
    return {"case": case.model_dump(), "progress": _progress(case)}


@router.put("/{case_uuid}/scope")
def set_scope(body: ScopeRequest, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    case = scope.apply_scope(session, case, body.profiles, body.custom_keywords or None)
    return {"case": case.model_dump()}


@router.put("/{case_uuid}/status")
def set_status(body: StatusRequest, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    case = store.set_status(session, case, body.status)
    return {"case": case.model_dump()}


@router.get("/{case_uuid}/steps")
def steps(case: Case = Depends(load_case)):
    findings = case.findings or {}
    phases = []
    for phase in case.included_phases or []:
        phases.append({
            "phase": phase,
            "title": phase_title(phase),
            "next_phase": scope.next_phase(case, phase),
            "steps": [
                {
                    **step.model_dump(),
                    "finding": findings.get(step.id, ""),
                    "state": finding_state(findings.get(step.id)),
                }
                for step in scope.filter_steps(case, phase)
            ],
        })
    return {"phases": phases, "progress": _progress(case)}
