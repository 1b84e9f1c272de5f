from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, ValidationError
from sqlmodel import Session

from casebook.api.deps import load_case
from casebook.core.errors import UnknownStepError
from casebook.db.session import get_session
from casebook.models.case import Case
from casebook.models.step_data import validate_step_payload
from casebook.services import findings
from casebook.services.catalog import get_step

router = APIRouter(prefix="/cases", tags=["findings"])


class FindingRequest(BaseModel):
    text: str


class PackerRequest(BaseModel):
    is_packed: bool
    packer_name: str = ""


class FileHashRequest(BaseModel):
    file_name: str
    hash: str


def _case_body(case: Case) -> dict:
    return {"case": case.model_dump()}


@router.put("/{case_uuid}/findings/{step_id}")
def set_finding(
    step_id: str,
    body: FindingRequest,
    case: Case = Depends(load_case),
    session: Session = Depends(get_session),
):
    return _case_body(findings.set_finding(session, case, step_id, body.text))


@router.put("/{case_uuid}/step-data/{step_id}")
def set_step_data(
    step_id: str,
    payload: dict[str, Any] = Body(...),
    case: Case = Depends(load_case),
    session: Session = Depends(get_session),
):
    if get_step(step_id) is None:
        raise UnknownStepError(step_id)
    try:
        stored = validate_step_payload(step_id, payload)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    return _case_body(findings.set_step_data(session, case, step_id, stored))


@router.put("/{case_uuid}/packer")
def set_packer(body: PackerRequest, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _case_body(findings.set_packer_check(session, case, body.is_packed, body.packer_name))


@router.post("/{case_uuid}/files")
def add_file(body: FileHashRequest, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _case_body(findings.add_file_hash(session, case, body.file_name, body.hash))


@router.put("/{case_uuid}/files/{entry_id}")
def update_file(
    entry_id: str,
    body: FileHashRequest,
    case: Case = Depends(load_case),
    session: Session = Depends(get_session),
):
    return _case_body(findings.update_file_hash(session, case, entry_id, body.file_name, body.hash))


@router.delete("/{case_uuid}/files/{entry_id}")
def remove_file(entry_id: str, case: Case = Depends(load_case), session: Session = Depends(get_session)):
    return _case_body(findings.remove_file_hash(session, case, entry_id))
