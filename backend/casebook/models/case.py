import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from casebook.models.analyst import AnalystData

CASE_STATUSES = ("Open", "Closed")

# JSONB on postgres, plain JSON elsewhere (sqlite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def _empty_analyst_data() -> dict[str, Any]:
    return AnalystData().model_dump()


class Case(SQLModel, table=True):
    __tablename__ = "cases"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    case_id: str = Field(index=True)  # analyst label, e.g. INC-2024-001
    analyst_name: str = Field(index=True)
    status: str = Field(default="Open", index=True)  # Open/Closed

    scope: str = ""
    custom_keywords: Optional[str] = None
    included_phases: list[str] = Field(default_factory=list, sa_column=Column(JSONDocument, nullable=False))

    findings: dict[str, str] = Field(default_factory=dict, sa_column=Column(JSONDocument, nullable=False))
    step_data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSONDocument, nullable=False))
    analyst_data: dict[str, Any] = Field(
        default_factory=_empty_analyst_data, sa_column=Column(JSONDocument, nullable=False)
    )
    ai_report: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSONDocument, nullable=True))

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    def notebook(self) -> AnalystData:
        return AnalystData.model_validate(self.analyst_data or {})
