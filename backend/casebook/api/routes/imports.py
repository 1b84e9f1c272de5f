from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from casebook.api.deps import require_admin_key
from casebook.db.session import get_session
from casebook.services.legacy import import_legacy_cases

router = APIRouter(prefix="/import", tags=["import"])


@router.post("/legacy", dependencies=[Depends(require_admin_key)])
def import_legacy(payload: Any = Body(...), session: Session = Depends(get_session)):
    return {"imported": import_legacy_cases(session, payload)}
