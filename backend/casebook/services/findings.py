"""Per-step findings and structured step data."""

import logging
from typing import Any

from sqlmodel import Session

from casebook.core.errors import UnknownStepError
from casebook.metrics.prometheus import case_mutations_total
from casebook.models.case import Case
from casebook.models.step_data import (
    GENERAL_INSPECTION_STEP,
    PACKER_STEP,
    FileHashEntry,
    PackerCheck,
    file_list_of,
)
from casebook.services import store
from casebook.services.catalog import STEP_IDS

logger = logging.getLogger(__name__)


def _require_step(step_id: str) -> None:
    if step_id not in STEP_IDS:
        raise UnknownStepError(step_id)


def _persist(session: Session, case: Case, operation: str) -> Case:
    case_mutations_total.labels(operation=operation).inc()
    return store.save_case(session, case)


def set_finding(session: Session, case: Case, step_id: str, text: str) -> Case:
    _require_step(step_id)
    case.findings = {**(case.findings or {}), step_id: text}
    return _persist(session, case, "set_finding")


def set_step_data(session: Session, case: Case, step_id: str, payload: Any) -> Case:
    """Replace the payload for ``step_id`` wholesale; no merging, no schema."""
    _require_step(step_id)
    case.step_data = {**(case.step_data or {}), step_id: payload}
    return _persist(session, case, "set_step_data")


def finding_state(text: str | None) -> str:
    value = (text or "").strip().lower()
    if not value:
        return "empty"
    if value == "clean":
        return "clean"
    if value == "skip":
        return "skipped"
    return "recorded"


def packer_summary(check: PackerCheck) -> str:
    if check.is_packed:
        return f"Packed: Yes\nPacker Name: {check.packer_name}"
    return "Packed: No"


def set_packer_check(session: Session, case: Case, is_packed: bool, packer_name: str = "") -> Case:
    check = PackerCheck(is_packed=is_packed, packer_name=packer_name)
    case.step_data = {**(case.step_data or {}), PACKER_STEP: check.model_dump(by_alias=True)}
    # the finding text mirrors the structured record so reports stay readable
    case.findings = {**(case.findings or {}), PACKER_STEP: packer_summary(check)}
    return _persist(session, case, "set_packer_check")


def _write_file_list(session: Session, case: Case, entries: list[FileHashEntry], operation: str) -> Case:
    payload = {**((case.step_data or {}).get(GENERAL_INSPECTION_STEP) or {})}
    payload["fileList"] = [e.model_dump(by_alias=True) for e in entries]
    case.step_data = {**(case.step_data or {}), GENERAL_INSPECTION_STEP: payload}
    return _persist(session, case, operation)


def add_file_hash(session: Session, case: Case, file_name: str, hash: str) -> Case:
    if not file_name or not hash:
        return case
    entries = file_list_of(case.step_data)
    entries.append(FileHashEntry(file_name=file_name, hash=hash))
    return _write_file_list(session, case, entries, "add_file_hash")


def update_file_hash(session: Session, case: Case, entry_id: str, file_name: str, hash: str) -> Case:
    if not file_name or not hash:
        return case
    entries = file_list_of(case.step_data)
    if not any(e.id == entry_id for e in entries):
        return case
    entries = [
        e.model_copy(update={"file_name": file_name, "hash": hash}) if e.id == entry_id else e
        for e in entries
    ]
    return _write_file_list(session, case, entries, "update_file_hash")


def remove_file_hash(session: Session, case: Case, entry_id: str) -> Case:
    entries = file_list_of(case.step_data)
    kept = [e for e in entries if e.id != entry_id]
    if len(kept) == len(entries):
        return case
    return _write_file_list(session, case, kept, "remove_file_hash")
