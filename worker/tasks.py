import asyncio
import logging
import uuid

from celery import Celery
from prometheus_client import CollectorRegistry, Counter, push_to_gateway
from sqlmodel import Session, SQLModel, create_engine

from casebook.core.errors import CasebookError
from casebook.services import store
from casebook.services.analysis import analyze_and_cache
from casebook.services.summarizer import GeminiSummarizer, Summarizer
from worker_config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "casebook_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

engine = create_engine(settings.database_url, pool_pre_ping=True)

worker_registry = CollectorRegistry()
analysis_runs_total = Counter(
    "analysis_runs_total",
    "Total AI analysis runs by worker",
    ["outcome"],
    registry=worker_registry,
)


def _push_metrics():
    try:
        push_to_gateway(settings.pushgateway_url, job="casebook-worker", registry=worker_registry)
    except OSError as e:
        logger.debug("Pushgateway unavailable: %s", e)


def _ensure_tables():
    SQLModel.metadata.create_all(engine)


def _summarizer() -> Summarizer:
    return GeminiSummarizer(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.ai_timeout_seconds,
    )


def _fail(error: str) -> dict:
    analysis_runs_total.labels(outcome="failure").inc()
    _push_metrics()
    return {"ok": False, "error": error}


@celery_app.task(name="analyze_case")
def analyze_case(case_uuid: str):
    _ensure_tables()

    try:
        cid = uuid.UUID(case_uuid)
    except ValueError:
        return _fail("invalid case id")

    with Session(engine) as session:
        case = store.get_case(session, cid)
        if not case:
            return _fail("case not found")

        try:
            report = asyncio.run(analyze_and_cache(session, case, _summarizer()))
        except CasebookError as e:
            logger.warning("Analysis of case %s failed: %s", case_uuid, e)
            return _fail(str(e))

    analysis_runs_total.labels(outcome="success").inc()
    _push_metrics()
    return {"ok": True, "case_id": case_uuid, "report": report.model_dump()}
