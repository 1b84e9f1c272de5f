import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import casebook.api.routes.analysis as analysis_routes
from casebook.api.deps import get_summarizer
from casebook.core.errors import SummarizerError
from casebook.db import session as session_mod
from casebook.db.session import get_session
from casebook.main import app
from casebook.models.ai_report import AIReport


class FakeSummarizer:
    def __init__(self, report: AIReport | None = None, text: str = "# AI Report\nAll clear.", error: str | None = None):
        self.report = report or AIReport(
            summary="Commodity loader executed from a phishing attachment.",
            threat_level="High",
            key_indicators=["185.220.101.4"],
            gap_analysis=["Memory Acquisition"],
            recommendations=["Isolate host"],
        )
        self.text = text
        self.error = error
        self.calls: list[str] = []

    async def analyze(self, case):
        self.calls.append("analyze")
        if self.error:
            raise SummarizerError(self.error)
        return self.report

    async def compose_final_report(self, case):
        self.calls.append("compose_final_report")
        if self.error:
            raise SummarizerError(self.error)
        return self.text


class DummyResult:
    def __init__(self, state: str = "PENDING", result=None, id: str | None = None):
        self.id = id or str(uuid.uuid4())
        self.state = state
        self.result = result


class DummyCelery:
    def __init__(self):
        self.sent: list[tuple] = []
        self.results: dict[str, DummyResult] = {}

    def send_task(self, name, args=None, kwargs=None):
        self.sent.append((name, args or []))
        return DummyResult()

    def AsyncResult(self, task_id):
        return self.results.get(task_id, DummyResult(id=task_id))

    def finish(self, task_id, state, result):
        self.results[task_id] = DummyResult(state, result, id=task_id)


@pytest.fixture()
def engine():
    # SQLite in-memory shared across sessions
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture()
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture()
def summarizer():
    return FakeSummarizer()


@pytest.fixture()
def dummy_celery():
    return DummyCelery()


@pytest.fixture()
def client(engine, monkeypatch, summarizer, dummy_celery):
    def override_get_session():
        with Session(engine) as s:
            yield s

    # Override dependencies and engine reference
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_summarizer] = lambda: summarizer
    monkeypatch.setattr(session_mod, "engine", engine, raising=False)

    # Celery is never reached during tests
    monkeypatch.setattr(analysis_routes, "celery_app", dummy_celery)

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def make_case(client):
    def _make(case_id: str = "INC-1", analyst_name: str = "J. Doe") -> dict:
        r = client.post("/cases", json={"case_id": case_id, "analyst_name": analyst_name})
        assert r.status_code == 201
        return r.json()["case"]

    return _make
