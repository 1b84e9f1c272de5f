import logging
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from casebook.core.errors import PersistenceError
from casebook.metrics.prometheus import cases_created_total
from casebook.models.case import Case

logger = logging.getLogger(__name__)


def _commit(session: Session, what: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to %s: %s", what, e)
        raise PersistenceError(f"Failed to {what}") from e


def create_case(session: Session, case_id: str, analyst_name: str) -> Case:
    case = Case(case_id=case_id, analyst_name=analyst_name)
    session.add(case)
    _commit(session, "create case")
    session.refresh(case)
    cases_created_total.inc()
    logger.info("Created case %s (%s)", case.case_id, case.id)
    return case


def get_case(session: Session, id: uuid.UUID) -> Optional[Case]:
    return session.exec(select(Case).where(Case.id == id)).first()


def list_cases(session: Session) -> list[Case]:
    return list(session.exec(select(Case)).all())


def save_case(session: Session, case: Case) -> Case:
    """Write the whole record back. Last write wins."""
    session.add(case)
    _commit(session, f"save case {case.id}")
    session.refresh(case)
    return case


def save_cases(session: Session, cases: list[Case]) -> int:
    for case in cases:
        session.merge(case)
    _commit(session, f"save {len(cases)} cases")
    return len(cases)


def set_status(session: Session, case: Case, status: str) -> Case:
    case.status = status
    return save_case(session, case)
