"""Case exports: one canonical text, several encodings."""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Session

from casebook.metrics.prometheus import exports_total
from casebook.models.analyst import AnalystData
from casebook.models.case import Case
from casebook.models.step_data import file_list_of
from casebook.services import analysis
from casebook.services.reporting import (
    build_report_text,
    ioc_lines,
    iso_ts,
    markdown_to_word_html,
    task_lines,
    text_to_pdf,
)
from casebook.services.summarizer import Summarizer

logger = logging.getLogger(__name__)

FORMATS = ("json", "csv", "txt", "doc", "pdf")
SOURCES = ("standard", "ai")
SECTIONS = {
    "notes": "General Notes",
    "tasks": "Task List",
    "iocs": "Indicators of Compromise",
    "timeline": "Timeline",
}
SECTION_FORMATS = ("txt", "csv", "pdf")

MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "txt": "text/plain",
    "doc": "application/msword",
    "pdf": "application/pdf",
}

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass(frozen=True)
class Export:
    filename: str
    media_type: str
    content: bytes


def _filename(stem: str, fmt: str) -> str:
    return f"{_UNSAFE_FILENAME_RE.sub('_', stem)}.{fmt}"


# --- csv ---

def _plain(value: str) -> str:
    return (value or "").replace(",", " ")


def _quoted(value: str) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def case_to_csv(case: Case) -> str:
    data = case.notebook()
    rows = ["Category,Item,Value/Status"]
    rows.append(f"Case Info,ID,{_plain(case.case_id)}")
    rows.append(f"Case Info,Analyst,{_plain(case.analyst_name)}")
    rows.append(f"Case Info,Status,{_plain(case.status)}")

    for t in data.tasks:
        rows.append(f"Task,{_plain(t.text)},{'Done' if t.completed else 'Pending'}")
    for i in data.iocs:
        rows.append(f"IOC,{_plain(i.text)},Detected")
    for e in data.timeline:
        rows.append(f"Timeline,{_plain(e.date)} {_plain(e.time)},{_plain(e.description)}")

    for step_id, value in (case.findings or {}).items():
        if value and value.strip():
            rows.append(f"Finding,{step_id},{_quoted(value)}")

    for f in file_list_of(case.step_data):
        rows.append(f"Static Analysis,{_plain(f.file_name)},{_plain(f.hash)}")

    return "\n".join(rows) + "\n"


def case_to_json(case: Case, ai_text: Optional[str] = None) -> str:
    data = case.model_dump(mode="json")
    if ai_text is not None:
        data["ai_analysis"] = ai_text
    return json.dumps(data, indent=2, ensure_ascii=False)


def render_export(case: Case, fmt: str, ai_text: Optional[str] = None) -> Export:
    """Encode a case in ``fmt``. With ``ai_text`` the AI report replaces the canonical text."""
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")

    stem = f"CASE_{case.case_id}_REPORT" + ("_AI" if ai_text is not None else "")
    content = ai_text if ai_text is not None else build_report_text(case)

    if fmt == "json":
        body = case_to_json(case, ai_text).encode("utf-8")
    elif fmt == "csv":
        body = case_to_csv(case).encode("utf-8")
    elif fmt == "txt":
        body = content.encode("utf-8")
    elif fmt == "doc":
        body = markdown_to_word_html(content, title=stem).encode("utf-8")
    else:
        body = text_to_pdf(content, title=stem)

    return Export(filename=_filename(stem, fmt), media_type=MEDIA_TYPES[fmt], content=body)


async def export_case(
    session: Session,
    case: Case,
    fmt: str,
    source: str = "standard",
    summarizer: Optional[Summarizer] = None,
) -> Export:
    """Render an export; the AI source awaits the summarizer first.

    A case without a cached AI report is analyzed before the final report is
    composed, and the structured report is cached only once both calls have
    succeeded. A summarizer failure propagates and nothing is written.
    """
    if source not in SOURCES:
        raise ValueError(f"Unsupported export source: {source}")
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")

    ai_text = None
    if source == "ai":
        summarizer = summarizer or analysis.default_summarizer()
        report = None if case.ai_report else await analysis.analyze(case, summarizer)
        ai_text = await analysis.compose_report(case, summarizer)
        if report is not None:
            case = analysis.cache_report(session, case, report)

    export = render_export(case, fmt, ai_text=ai_text)
    exports_total.labels(format=fmt, source=source).inc()
    logger.info("Exported case %s as %s (%s)", case.case_id, fmt, source)
    return export


# --- analyst page sections ---

def _section_text(data: AnalystData, section: str) -> str:
    if section == "notes":
        return data.notes or "No notes recorded."
    if section == "tasks":
        return "\n".join(line[2:] for line in task_lines(data)) or "No tasks recorded."
    if section == "iocs":
        return "\n".join(ioc_lines(data)) or "No IOCs recorded."
    return "\n".join(f"[{e.date} {e.time}] {e.description}" for e in data.timeline) or "No events recorded."


def _section_csv(data: AnalystData, section: str) -> str:
    if section == "notes":
        return f"Category,Content\nNotes,{_quoted(data.notes)}"
    if section == "tasks":
        rows = [f"{'Done' if t.completed else 'Pending'},{_quoted(t.text)}" for t in data.tasks]
        return "\n".join(["Status,Task", *rows])
    if section == "iocs":
        rows = [f"{_quoted(i.text)},{i.color}" for i in data.iocs]
        return "\n".join(["IOC,Color", *rows])
    rows = [f"{e.date},{e.time},{_quoted(e.description)}" for e in data.timeline]
    return "\n".join(["Date,Time,Description", *rows])


def render_section_export(
    data: AnalystData,
    section: str,
    fmt: str,
    exported_at: Optional[datetime] = None,
) -> Export:
    if section not in SECTIONS:
        raise ValueError(f"Unsupported analyst section: {section}")
    if fmt not in SECTION_FORMATS:
        raise ValueError(f"Unsupported section export format: {fmt}")

    title = SECTIONS[section]
    stem = f"Analyst_{title.replace(' ', '_')}"
    stamp = iso_ts(exported_at or datetime.now(timezone.utc))

    if fmt == "csv":
        body = _section_csv(data, section).encode("utf-8")
    else:
        text = f"{title.upper()}\nExported: {stamp}\n\n{_section_text(data, section)}"
        body = text.encode("utf-8") if fmt == "txt" else text_to_pdf(text, title=title)

    return Export(filename=_filename(stem, fmt), media_type=MEDIA_TYPES[fmt], content=body)
