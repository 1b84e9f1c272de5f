import asyncio

from celery import Celery
from fastapi import APIRouter, Depends
from sqlmodel import Session

from casebook.api.deps import get_summarizer, load_case
from casebook.core.config import settings
from casebook.db.session import get_session
from casebook.models.case import Case
from casebook.services.analysis import analyze_and_cache, status_from_task
from casebook.services.summarizer import Summarizer

router = APIRouter(prefix="/cases", tags=["analysis"])

celery_app = Celery(
    "casebook_api",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)


@router.get("/{case_uuid}/analysis")
def cached_analysis(case: Case = Depends(load_case)):
    return {"case_id": str(case.id), "report": case.ai_report}


@router.post("/{case_uuid}/analysis", status_code=202)
def enqueue_analysis(case: Case = Depends(load_case)):
    res = celery_app.send_task("analyze_case", args=[str(case.id)])
    return {"queued": True, "task_id": res.id}


@router.get("/{case_uuid}/analysis/{task_id}")
def analysis_status(task_id: str, case: Case = Depends(load_case)):
    res = celery_app.AsyncResult(task_id)
    return status_from_task(task_id, res.state, res.result).model_dump()


@router.post("/{case_uuid}/analysis/run")
def run_analysis(
    case: Case = Depends(load_case),
    session: Session = Depends(get_session),
    summarizer: Summarizer = Depends(get_summarizer),
):
    report = asyncio.run(analyze_and_cache(session, case, summarizer))
    return {"case_id": str(case.id), "report": report.model_dump()}
