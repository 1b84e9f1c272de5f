"""Analyst notes, task list, IOC list and manual timeline of a case.

Every mutation reads the embedded AnalystData, builds a new copy and writes
the whole case back once. Blank input and unknown ids leave the case
untouched and skip the write.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Session

from casebook.metrics.prometheus import case_mutations_total
from casebook.models.analyst import (
    DEFAULT_IOC_COLOR,
    DEFAULT_TIMELINE_COLOR,
    AnalystData,
    IOCItem,
    TaskItem,
    TimelineEntry,
)
from casebook.models.case import Case
from casebook.services import store


def _write(session: Session, case: Case, data: AnalystData, operation: str) -> Case:
    case.analyst_data = data.model_dump()
    case_mutations_total.labels(operation=operation).inc()
    return store.save_case(session, case)


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def set_notes(session: Session, case: Case, text: str) -> Case:
    data = case.notebook()
    data.notes = text
    return _write(session, case, data, "set_notes")


# --- tasks ---

def add_task(session: Session, case: Case, text: str) -> Case:
    if _blank(text):
        return case
    data = case.notebook()
    data.tasks = [*data.tasks, TaskItem(text=text)]
    return _write(session, case, data, "add_task")


def toggle_task(session: Session, case: Case, task_id: str) -> Case:
    data = case.notebook()
    if not any(t.id == task_id for t in data.tasks):
        return case
    data.tasks = [
        t.model_copy(update={"completed": not t.completed}) if t.id == task_id else t
        for t in data.tasks
    ]
    return _write(session, case, data, "toggle_task")


def remove_task(session: Session, case: Case, task_id: str) -> Case:
    data = case.notebook()
    kept = [t for t in data.tasks if t.id != task_id]
    if len(kept) == len(data.tasks):
        return case
    data.tasks = kept
    return _write(session, case, data, "remove_task")


# --- indicators of compromise ---

def add_or_update_ioc(
    session: Session,
    case: Case,
    text: str,
    color: str = DEFAULT_IOC_COLOR,
    editing_id: Optional[str] = None,
) -> Case:
    if _blank(text):
        return case
    data = case.notebook()
    if editing_id and any(i.id == editing_id for i in data.iocs):
        data.iocs = [
            i.model_copy(update={"text": text, "color": color}) if i.id == editing_id else i
            for i in data.iocs
        ]
        return _write(session, case, data, "update_ioc")
    data.iocs = [*data.iocs, IOCItem(text=text, color=color)]
    return _write(session, case, data, "add_ioc")


def remove_ioc(session: Session, case: Case, ioc_id: str) -> Case:
    data = case.notebook()
    kept = [i for i in data.iocs if i.id != ioc_id]
    if len(kept) == len(data.iocs):
        return case
    data.iocs = kept
    return _write(session, case, data, "remove_ioc")


# --- timeline ---

def event_instant(date: str, time: str) -> Optional[datetime]:
    """Naive local timestamp for a (date, time) pair, None when unparseable."""
    try:
        return datetime.fromisoformat(f"{date.strip()}T{time.strip()}")
    except ValueError:
        return None


def _timeline_key(event: TimelineEntry) -> tuple[int, datetime]:
    instant = event_instant(event.date, event.time)
    if instant is None:
        return (1, datetime.min)
    return (0, instant)


def sort_timeline(events: list[TimelineEntry]) -> list[TimelineEntry]:
    # stable: equal instants keep insertion order, unparseable entries go last
    return sorted(events, key=_timeline_key)


def add_or_update_timeline_event(
    session: Session,
    case: Case,
    date: str,
    time: str,
    description: str,
    color: str = DEFAULT_TIMELINE_COLOR,
    editing_id: Optional[str] = None,
) -> Case:
    if _blank(date) or _blank(time) or _blank(description):
        return case
    data = case.notebook()
    if editing_id and any(e.id == editing_id for e in data.timeline):
        update = {"date": date, "time": time, "description": description, "color": color}
        events = [e.model_copy(update=update) if e.id == editing_id else e for e in data.timeline]
        operation = "update_timeline_event"
    else:
        entry = TimelineEntry(date=date, time=time, description=description, color=color or DEFAULT_TIMELINE_COLOR)
        events = [*data.timeline, entry]
        operation = "add_timeline_event"
    data.timeline = sort_timeline(events)
    return _write(session, case, data, operation)


def remove_timeline_event(session: Session, case: Case, event_id: str) -> Case:
    data = case.notebook()
    kept = [e for e in data.timeline if e.id != event_id]
    if len(kept) == len(data.timeline):
        return case
    data.timeline = kept
    return _write(session, case, data, "remove_timeline_event")
