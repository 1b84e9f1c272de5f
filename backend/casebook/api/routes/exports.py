import asyncio
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from casebook.api.deps import get_summarizer, load_case
from casebook.db.session import get_session
from casebook.models.case import Case
from casebook.services.exports import Export, export_case, render_section_export
from casebook.services.summarizer import Summarizer

router = APIRouter(prefix="/cases", tags=["exports"])


def _download(export: Export) -> Response:
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/{case_uuid}/export")
def export(
    format: Literal["json", "csv", "txt", "doc", "pdf"] = Query(default="txt"),
    source: Literal["standard", "ai"] = Query(default="standard"),
    case: Case = Depends(load_case),
    session: Session = Depends(get_session),
    summarizer: Summarizer = Depends(get_summarizer),
):
    return _download(asyncio.run(export_case(session, case, format, source=source, summarizer=summarizer)))


@router.get("/{case_uuid}/notebook/{section}/export")
def export_section(
    section: Literal["notes", "tasks", "iocs", "timeline"],
    format: Literal["txt", "csv", "pdf"] = Query(default="txt"),
    case: Case = Depends(load_case),
):
    return _download(render_section_export(case.notebook(), section, format))
