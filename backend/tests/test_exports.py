import asyncio
import json
from datetime import datetime, timezone

import pytest

from casebook.core.errors import SummarizerError
from casebook.models.case import Case
from casebook.services import exports, findings, notebook, scope, store


@pytest.fixture()
def case(session):
    case = store.create_case(session, "INC-1", "J. Doe")
    case = scope.apply_scope(session, case, ["Memory Forensics"])
    case = notebook.add_task(session, case, "Check logs")
    case = notebook.toggle_task(session, case, case.notebook().tasks[0].id)
    case = notebook.add_or_update_ioc(session, case, "evil.example")
    case = notebook.add_or_update_timeline_event(session, case, "2024-01-01", "10:00", "Beacon, first seen")
    case = findings.set_finding(session, case, "volatility_analysis", 'Process "svch0st" injected')
    return case


def test_csv_rows(case):
    out = exports.render_export(case, "csv")
    assert out.filename == "CASE_INC-1_REPORT.csv"
    assert out.media_type == "text/csv"

    lines = out.content.decode("utf-8").splitlines()
    assert lines[0] == "Category,Item,Value/Status"
    assert "Case Info,ID,INC-1" in lines
    assert "Task,Check logs,Done" in lines
    assert "IOC,evil.example,Detected" in lines
    assert "Timeline,2024-01-01 10:00,Beacon  first seen" in lines
    assert 'Finding,volatility_analysis,"Process ""svch0st"" injected"' in lines


def test_json_round_trip(case):
    out = exports.render_export(case, "json")
    restored = Case.model_validate(json.loads(out.content))
    assert restored.model_dump() == case.model_dump()


def test_txt_doc_pdf(case):
    txt = exports.render_export(case, "txt")
    assert txt.content.decode("utf-8").startswith("# Forensic Investigation Report")

    doc = exports.render_export(case, "doc")
    assert doc.filename == "CASE_INC-1_REPORT.doc"
    assert doc.media_type == "application/msword"
    assert b"<h2>Phase 2: Memory Analysis</h2>" in doc.content

    pdf = exports.render_export(case, "pdf")
    assert pdf.content.startswith(b"%PDF")


def test_unknown_format_rejected(case):
    with pytest.raises(ValueError):
        exports.render_export(case, "xlsx")


def test_ai_export_uses_summarizer_text(session, case, summarizer):
    summarizer.text = "# AI Report\n**Verdict:** compromised"
    out = asyncio.run(exports.export_case(session, case, "txt", source="ai", summarizer=summarizer))
    assert out.filename == "CASE_INC-1_REPORT_AI.txt"
    assert out.content == b"# AI Report\n**Verdict:** compromised"

    out = asyncio.run(exports.export_case(session, case, "json", source="ai", summarizer=summarizer))
    assert json.loads(out.content)["ai_analysis"].startswith("# AI Report")


def test_ai_export_caches_structured_report(session, case, summarizer):
    asyncio.run(exports.export_case(session, case, "txt", source="ai", summarizer=summarizer))
    assert summarizer.calls == ["analyze", "compose_final_report"]

    stored = store.get_case(session, case.id)
    assert stored.ai_report is not None
    assert stored.ai_report["threat_level"] == "High"

    # a cached report is reused rather than recomputed
    asyncio.run(exports.export_case(session, stored, "pdf", source="ai", summarizer=summarizer))
    assert summarizer.calls == ["analyze", "compose_final_report", "compose_final_report"]


def test_ai_export_failure_aborts(session, case, summarizer, monkeypatch):
    summarizer.error = "quota"
    with pytest.raises(SummarizerError):
        asyncio.run(exports.export_case(session, case, "pdf", source="ai", summarizer=summarizer))
    assert case.ai_report is None

    # the analysis call succeeds but the final report fails: still nothing cached
    summarizer.error = None

    async def broken_compose(c):
        raise SummarizerError("timed out")

    monkeypatch.setattr(summarizer, "compose_final_report", broken_compose)
    with pytest.raises(SummarizerError):
        asyncio.run(exports.export_case(session, case, "txt", source="ai", summarizer=summarizer))
    assert store.get_case(session, case.id).ai_report is None


def test_section_exports(case):
    stamp = datetime(2024, 2, 3, 4, 5, 6, tzinfo=timezone.utc)
    data = case.notebook()

    txt = exports.render_section_export(data, "tasks", "txt", exported_at=stamp)
    assert txt.filename == "Analyst_Task_List.txt"
    assert txt.content.decode("utf-8") == "TASK LIST\nExported: 2024-02-03T04:05:06Z\n\n[X] Check logs"

    csv = exports.render_section_export(data, "timeline", "csv")
    assert csv.content.decode("utf-8") == 'Date,Time,Description\n2024-01-01,10:00,"Beacon, first seen"'

    pdf = exports.render_section_export(data, "iocs", "pdf")
    assert pdf.content.startswith(b"%PDF")

    with pytest.raises(ValueError):
        exports.render_section_export(data, "tasks", "doc")
