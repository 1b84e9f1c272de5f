import uuid
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from casebook.core.config import settings
from casebook.db.session import get_session
from casebook.models.case import Case
from casebook.services import store
from casebook.services.analysis import default_summarizer
from casebook.services.summarizer import Summarizer


def load_case(case_uuid: uuid.UUID, session: Session = Depends(get_session)) -> Case:
    case = store.get_case(session, case_uuid)
    if not case:
        raise HTTPException(status_code=404, detail="Case not found")
    return case


def require_admin_key(x_admin_key: Optional[str] = Header(default=None)) -> None:
    if not x_admin_key or x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=401, detail="Invalid admin key")


def get_summarizer() -> Summarizer:
    return default_summarizer()
