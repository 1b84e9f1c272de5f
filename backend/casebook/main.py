import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

from casebook.api.routes.analysis import router as analysis_router
from casebook.api.routes.cases import router as cases_router
from casebook.api.routes.catalog import router as catalog_router
from casebook.api.routes.exports import router as exports_router
from casebook.api.routes.findings import router as findings_router
from casebook.api.routes.imports import router as imports_router
from casebook.api.routes.metrics import router as metrics_router
from casebook.api.routes.notebook import router as notebook_router
from casebook.api.routes.stats import router as stats_router
from casebook.core.config import settings
from casebook.core.errors import PersistenceError, SummarizerError, UnknownStepError
from casebook.db import session as session_mod
from casebook.metrics.prometheus import api_request_latency_seconds

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Casebook API",
    version="1.0.0",
    description="Guided DFIR case management: scoped checklists, findings, analyst notebook and exports",
)

# UI runs on localhost:3001. Allow local dev + docker dev.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3001",
        "http://127.0.0.1:3001",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


@app.on_event("startup")
def on_startup():
    SQLModel.metadata.create_all(session_mod.engine)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.perf_counter()
    status = "500"
    try:
        response: Response = await call_next(request)
        status = str(response.status_code)
        return response
    finally:
        dt = time.perf_counter() - start
        api_request_latency_seconds.labels(route=request.url.path, method=request.method, status=status).observe(dt)


@app.exception_handler(UnknownStepError)
async def unknown_step_handler(request: Request, exc: UnknownStepError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(SummarizerError)
async def summarizer_error_handler(request: Request, exc: SummarizerError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(catalog_router)
app.include_router(cases_router)
app.include_router(findings_router)
app.include_router(notebook_router)
app.include_router(exports_router)
app.include_router(analysis_router)
app.include_router(imports_router)
app.include_router(stats_router)
app.include_router(metrics_router)
