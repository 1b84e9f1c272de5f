"""Structured payloads attached to individual forensic steps.

Each step kind owns its own payload shape. Steps with a registered model are
validated against it; every other step accepts a free-form JSON object.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from casebook.models.analyst import new_id

GENERAL_INSPECTION_STEP = "ma_general"
PACKER_STEP = "ma_packers"


class FileHashEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    file_name: str = Field(alias="fileName")
    hash: str


class FileHashList(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_list: list[FileHashEntry] = Field(default_factory=list, alias="fileList")


class PackerCheck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_packed: bool = Field(default=False, alias="isPacked")
    packer_name: str = Field(default="", alias="packerName")


STEP_PAYLOAD_MODELS: dict[str, type[BaseModel]] = {
    GENERAL_INSPECTION_STEP: FileHashList,
    PACKER_STEP: PackerCheck,
}


def validate_step_payload(step_id: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Validate ``payload`` for ``step_id`` and return its stored (camelCase) form.

    Raises ``pydantic.ValidationError`` when a registered shape does not match.
    """
    model = STEP_PAYLOAD_MODELS.get(step_id)
    if model is None:
        return dict(payload)
    return model.model_validate(payload).model_dump(by_alias=True)


def file_list_of(step_data: dict[str, Any]) -> list[FileHashEntry]:
    payload = (step_data or {}).get(GENERAL_INSPECTION_STEP) or {}
    raw = payload.get("fileList") if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        return []
    return [FileHashEntry.model_validate(f) for f in raw if isinstance(f, dict)]
