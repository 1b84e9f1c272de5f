import uuid

from sqlmodel import Field, SQLModel

COLOR_PALETTE = {
    "Cyan": "bg-cyan-500",
    "Blue": "bg-blue-500",
    "Purple": "bg-purple-500",
    "Red": "bg-red-500",
    "Orange": "bg-orange-500",
    "Emerald": "bg-emerald-500",
}

DEFAULT_IOC_COLOR = "bg-red-500"
DEFAULT_TIMELINE_COLOR = "bg-cyan-500"


def new_id() -> str:
    return str(uuid.uuid4())


class TaskItem(SQLModel):
    id: str = Field(default_factory=new_id)
    text: str
    completed: bool = False


class IOCItem(SQLModel):
    id: str = Field(default_factory=new_id)
    text: str
    color: str = DEFAULT_IOC_COLOR


class TimelineEntry(SQLModel):
    id: str = Field(default_factory=new_id)
    date: str  # YYYY-MM-DD
    time: str  # HH:MM[:SS]
    description: str
    color: str = DEFAULT_TIMELINE_COLOR


class AnalystData(SQLModel):
    notes: str = ""
    tasks: list[TaskItem] = Field(default_factory=list)
    iocs: list[IOCItem] = Field(default_factory=list)
    timeline: list[TimelineEntry] = Field(default_factory=list)
