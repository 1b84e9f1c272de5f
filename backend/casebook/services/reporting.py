import html
import io
import re
import textwrap
from datetime import date, datetime, timezone
from typing import Optional

from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from casebook.models.analyst import AnalystData
from casebook.models.case import Case
from casebook.models.step_data import GENERAL_INSPECTION_STEP, file_list_of
from casebook.services.catalog import phase_title
from casebook.services.scope import filter_steps

NO_STEPS_IN_SCOPE = "_No steps in scope for this phase._"

PDF_FONT = "Courier"
PDF_FONT_SIZE = 10
PDF_MARGIN = 54
PDF_LINE_HEIGHT = 12
PDF_WRAP_COLUMNS = 84


def iso_ts(dt: datetime | None) -> str:
    if not dt:
        return ""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def task_lines(data: AnalystData) -> list[str]:
    return [f"- [{'X' if t.completed else ' '}] {t.text}" for t in data.tasks]


def ioc_lines(data: AnalystData) -> list[str]:
    return [f"- {i.text}" for i in data.iocs]


def timeline_lines(data: AnalystData) -> list[str]:
    return [f"{e.date} {e.time} - {e.description}" for e in data.timeline]


def _or_na(lines: list[str]) -> str:
    return "\n".join(lines) if lines else "N/A"


def quote_block(text: str) -> str:
    return "> " + text.replace("\n", "\n> ")


def build_report_text(case: Case, generated_on: Optional[date] = None) -> str:
    """Canonical Markdown-like report for a case, shared by every export format."""
    generated_on = generated_on or date.today()
    data = case.notebook()

    md = []
    md.append("# Forensic Investigation Report")
    md.append(f"**Case ID:** {case.case_id}")
    md.append(f"**Analyst:** {case.analyst_name}")
    md.append(f"**Date:** {generated_on.isoformat()}")
    md.append(f"**Scope:** {case.scope}")
    md.append(f"**Status:** {case.status}")
    md.append("")

    md.append("## Analyst Overview")
    md.append("### Notes")
    md.append(data.notes or "N/A")
    md.append("")
    md.append("### Tasks")
    md.append(_or_na(task_lines(data)))
    md.append("")
    md.append("### Indicators of Compromise (IOCs)")
    md.append(_or_na(ioc_lines(data)))
    md.append("")
    md.append("### Timeline (Manual)")
    md.append(_or_na(timeline_lines(data)))
    md.append("")

    findings = case.findings or {}
    files = file_list_of(case.step_data)

    for phase in case.included_phases or []:
        md.append(f"## {phase_title(phase)}")
        md.append("")
        written = 0
        for step in filter_steps(case, phase):
            finding = findings.get(step.id) or ""
            extra = files if step.id == GENERAL_INSPECTION_STEP else []
            if not finding.strip() and not extra:
                continue
            written += 1
            md.append(f"### {step.title}")
            md.append(f"*Tool used: {step.tool or 'N/A'}*")
            if finding.strip():
                md.append(quote_block(finding))
            if extra:
                md.append("")
                md.append("**Additional Files/Hashes:**")
                for f in extra:
                    md.append(f"- {f.file_name}: {f.hash}")
            md.append("")

        if not written:
            md.append(NO_STEPS_IN_SCOPE)
            md.append("")

    return "\n".join(md).strip() + "\n"


# --- word processor rendering ---

_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")

_WORD_SHELL = (
    "<html xmlns:o='urn:schemas-microsoft-com:office:office' "
    "xmlns:w='urn:schemas-microsoft-com:office:word' "
    "xmlns='http://www.w3.org/TR/REC-html40'>\n"
    "<head><meta charset='utf-8'><title>{title}</title></head>\n"
    "<body>\n{body}\n</body>\n</html>\n"
)


def _inline(text: str) -> str:
    return _BOLD_RE.sub(r"<b>\1</b>", html.escape(text, quote=False))


def markdown_to_word_html(markdown: str, title: str = "Export") -> str:
    out: list[str] = []
    for line in markdown.splitlines():
        for prefix, tag in (("### ", "h3"), ("## ", "h2"), ("# ", "h1")):
            if line.startswith(prefix):
                out.append(f"<{tag}>{_inline(line[len(prefix):])}</{tag}>")
                break
        else:
            out.append(f"{_inline(line)}<br/>")
    return _WORD_SHELL.format(title=html.escape(title), body="\n".join(out))


# --- pdf rendering ---

def wrap_lines(text: str, width: int = PDF_WRAP_COLUMNS) -> list[str]:
    lines: list[str] = []
    for raw in text.replace("\t", "  ").splitlines():
        if raw.strip() == "":
            lines.append("")
            continue
        wrapped = textwrap.wrap(raw, width=width, replace_whitespace=False, drop_whitespace=False)
        lines.extend(wrapped or [""])
    return lines


def text_to_pdf(text: str, title: Optional[str] = None) -> bytes:
    # fixed-width layout: one wrapped line at a time, new page at the bottom margin
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=LETTER)
    _, height = LETTER
    if title:
        c.setTitle(title)

    left = PDF_MARGIN
    top = height - PDF_MARGIN
    y = top

    c.setFont(PDF_FONT, PDF_FONT_SIZE)

    for line in wrap_lines(text):
        if y <= PDF_MARGIN:
            c.showPage()
            c.setFont(PDF_FONT, PDF_FONT_SIZE)
            y = top
        c.drawString(left, y, line[:2000])
        y -= PDF_LINE_HEIGHT

    c.save()
    return buf.getvalue()
