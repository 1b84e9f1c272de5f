from casebook.models.ai_report import AIReport
from casebook.models.analyst import AnalystData, IOCItem, TaskItem, TimelineEntry
from casebook.models.case import Case
from casebook.models.step_data import FileHashEntry, FileHashList, PackerCheck

__all__ = [
    "AIReport",
    "AnalystData",
    "Case",
    "FileHashEntry",
    "FileHashList",
    "IOCItem",
    "PackerCheck",
    "TaskItem",
    "TimelineEntry",
]
