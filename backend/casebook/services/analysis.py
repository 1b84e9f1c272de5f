"""AI analysis of a case: run the summarizer, cache the structured report."""

import logging
import time
from typing import Any, Literal, Optional

from pydantic import BaseModel
from sqlmodel import Session

from casebook.core.errors import SummarizerError
from casebook.metrics.prometheus import ai_request_latency_seconds, ai_requests_total, case_mutations_total
from casebook.models.ai_report import AIReport
from casebook.models.case import Case
from casebook.services import store
from casebook.services.summarizer import GeminiSummarizer, Summarizer

logger = logging.getLogger(__name__)


class AnalysisStatus(BaseModel):
    task_id: str
    state: Literal["pending", "success", "failure"]
    report: Optional[AIReport] = None
    error: Optional[str] = None


def default_summarizer() -> Summarizer:
    return GeminiSummarizer.from_settings()


async def _call(operation: str, coro):
    start = time.perf_counter()
    try:
        result = await coro
    except SummarizerError as e:
        ai_requests_total.labels(operation=operation, outcome="failure").inc()
        logger.warning("Summarizer %s failed: %s", operation, e)
        raise
    finally:
        ai_request_latency_seconds.labels(operation=operation).observe(time.perf_counter() - start)
    ai_requests_total.labels(operation=operation, outcome="success").inc()
    return result


async def analyze(case: Case, summarizer: Optional[Summarizer] = None) -> AIReport:
    summarizer = summarizer or default_summarizer()
    return await _call("analyze", summarizer.analyze(case))


async def compose_report(case: Case, summarizer: Optional[Summarizer] = None) -> str:
    summarizer = summarizer or default_summarizer()
    return await _call("compose_final_report", summarizer.compose_final_report(case))


def cache_report(session: Session, case: Case, report: AIReport) -> Case:
    case.ai_report = report.model_dump()
    case_mutations_total.labels(operation="cache_ai_report").inc()
    return store.save_case(session, case)


async def analyze_and_cache(
    session: Session,
    case: Case,
    summarizer: Optional[Summarizer] = None,
) -> AIReport:
    """Analyze a case and cache the report on it. On failure the cache is untouched."""
    report = await analyze(case, summarizer)
    cache_report(session, case, report)
    logger.info("Cached AI report for case %s (threat level %s)", case.case_id, report.threat_level or "n/a")
    return report


def status_from_task(task_id: str, state: str, result: Any) -> AnalysisStatus:
    """Map a Celery task state and result onto the three analysis outcomes."""
    if state == "SUCCESS":
        if isinstance(result, dict) and result.get("ok"):
            return AnalysisStatus(task_id=task_id, state="success", report=AIReport.model_validate(result["report"]))
        error = result.get("error") if isinstance(result, dict) else None
        return AnalysisStatus(task_id=task_id, state="failure", error=error or "analysis failed")
    if state in ("FAILURE", "REVOKED"):
        return AnalysisStatus(task_id=task_id, state="failure", error=str(result) if result else state.lower())
    return AnalysisStatus(task_id=task_id, state="pending")
