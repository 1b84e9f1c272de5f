from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from casebook.api.deps import load_case
from casebook.db.session import get_session
from casebook.models.analyst import COLOR_PALETTE, DEFAULT_IOC_COLOR, DEFAULT_TIMELINE_COLOR
from casebook.models.case import Case
from casebook.services import notebook

router = APIRouter(prefix="/cases", tags=["notebook"])


class TextRequest(BaseModel):
    text: str


class ColorTagged(BaseModel):
    color: str

    @field_validator("color")
    @classmethod
    def _known_color(cls, v: str) -> str:
        if v not in COLOR_PALETTE.values():
            raise ValueError(f"color must be one of {sorted(COLOR_PALETTE.values())}")
        return v


class IOCRequest(ColorTagged):
    text: str
    color: str = DEFAULT_IOC_COLOR


class TimelineRequest(ColorTagged):
    date: str
    time: str
    description: str
    color: str = DEFAULT_TIMELINE_COLOR


def _notebook_body(case: Case) -> dict:
    return {"analyst_data": case.notebook().model_dump()}


@router.get("/{case_uuid}/notebook")
def get_notebook(case: Case = Depends(load_case)):
    return _notebook_body(case)


@router.put("/{case_uuid}/notebook/notes")
def set_notes(body: TextRequest, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _notebook_body(notebook.set_notes(session, case, body.text))


# --- tasks ---

@router.post("/{case_uuid}/notebook/tasks")
def add_task(body: TextRequest, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _notebook_body(notebook.add_task(session, case, body.text))


@router.post("/{case_uuid}/notebook/tasks/{task_id}/toggle")
def toggle_task(task_id: str, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _notebook_body(notebook.toggle_task(session, case, task_id))


@router.delete("/{case_uuid}/notebook/tasks/{task_id}")
def remove_task(task_id: str, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _notebook_body(notebook.remove_task(session, case, task_id))


# --- iocs ---

def _save_ioc(session: Session, case: Case, body: IOCRequest, ioc_id: Optional[str] = None) -> dict:
    case = notebook.add_or_update_ioc(session, case, body.text, body.color, editing_id=ioc_id)
    return _notebook_body(case)


@router.post("/{case_uuid}/notebook/iocs")
def add_ioc(body: IOCRequest, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _save_ioc(session, case, body)


@router.put("/{case_uuid}/notebook/iocs/{ioc_id}")
def update_ioc(
    ioc_id: str,
    body: IOCRequest,
    case: Case = Depends(load_case),
    session: Session = Depends(get_session),
):
    return _save_ioc(session, case, body, ioc_id)


@router.delete("/{case_uuid}/notebook/iocs/{ioc_id}")
def remove_ioc(ioc_id: str, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _notebook_body(notebook.remove_ioc(session, case, ioc_id))


# --- timeline ---

def _save_event(session: Session, case: Case, body: TimelineRequest, event_id: Optional[str] = None) -> dict:
    case = notebook.add_or_update_timeline_event(
        session, case, body.date, body.time, body.description, body.color, editing_id=event_id
    )
    return _notebook_body(case)


@router.post("/{case_uuid}/notebook/timeline")
def add_timeline_event(body: TimelineRequest, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _save_event(session, case, body)


@router.put("/{case_uuid}/notebook/timeline/{event_id}")
def update_timeline_event(
    event_id: str,
    body: TimelineRequest,
    case: Case = Depends(load_case),
    session: Session = Depends(get_session),
):
    return _save_event(session, case, body, event_id)


@router.delete("/{case_uuid}/notebook/timeline/{event_id}")
def remove_timeline_event(event_id: str, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _notebook_body(notebook.remove_timeline_event(session, case, event_id))
