"""Import of case records exported from the old browser-local store.

The old store kept one flat camelCase object per case, with ``createdAt`` in
epoch milliseconds and, in early versions, a single ``suspiciousStaff``
string instead of an IOC list.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from sqlmodel import Session

from casebook.metrics.prometheus import legacy_cases_imported_total
from casebook.models.analyst import DEFAULT_IOC_COLOR, AnalystData, IOCItem, TaskItem, TimelineEntry
from casebook.models.case import CASE_STATUSES, Case
from casebook.services import store

logger = logging.getLogger(__name__)


def _uuid_or_new(value: Any) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return uuid.uuid4()


def _created_at(value: Any) -> datetime:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return datetime.now(timezone.utc)


def _valid_items(model, raw: Any, field: str) -> list:
    if not isinstance(raw, list):
        return []
    items = []
    for entry in raw:
        try:
            items.append(model.model_validate(entry))
        except ValidationError:
            logger.warning("Dropping malformed legacy %s entry: %r", field, entry)
    return items


def _analyst_data(raw: Any) -> AnalystData:
    raw = dict(raw) if isinstance(raw, dict) else {}
    staff = raw.pop("suspiciousStaff", None)
    notes = raw.get("notes")
    data = AnalystData(
        notes=notes if isinstance(notes, str) else "",
        tasks=_valid_items(TaskItem, raw.get("tasks"), "task"),
        iocs=_valid_items(IOCItem, raw.get("iocs"), "ioc"),
        timeline=_valid_items(TimelineEntry, raw.get("timeline"), "timeline"),
    )
    if isinstance(staff, str) and staff.strip() and not data.iocs:
        data.iocs = [IOCItem(text=staff, color=DEFAULT_IOC_COLOR)]
    return data


def normalize_legacy_case(obj: dict[str, Any]) -> Case:
    return Case(
        id=_uuid_or_new(obj.get("id")),
        case_id=str(obj.get("caseId") or ""),
        analyst_name=str(obj.get("analystName") or ""),
        status=obj.get("status") if obj.get("status") in CASE_STATUSES else "Open",
        scope=obj.get("scope") or "",
        custom_keywords=obj.get("customKeywords") or None,
        included_phases=list(obj.get("includedPhases") or []),
        findings=dict(obj.get("findings") or {}),
        step_data=dict(obj.get("stepData") or {}),
        analyst_data=_analyst_data(obj.get("analystData")).model_dump(),
        ai_report=obj.get("aiReport") or None,
        created_at=_created_at(obj.get("createdAt")),
    )


def import_legacy_cases(session: Session, items: Any) -> int:
    """Upsert a batch of legacy objects; anything but a non-empty list imports nothing."""
    if not isinstance(items, list) or not items:
        return 0
    cases = [normalize_legacy_case(o) for o in items if isinstance(o, dict)]
    if not cases:
        return 0
    count = store.save_cases(session, cases)
    legacy_cases_imported_total.inc(count)
    logger.info("Imported %d legacy cases", count)
    return count
