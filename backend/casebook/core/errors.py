class CasebookError(Exception):
    """Base class for failures surfaced to callers."""


class PersistenceError(CasebookError):
    """The store rejected a write (database unavailable, constraint, ...)."""


class SummarizerError(CasebookError):
    """The external summarization service failed or returned unusable content."""


class UnknownStepError(CasebookError, LookupError):
    def __init__(self, step_id: str):
        super().__init__(f"Unknown forensic step: {step_id}")
        self.step_id = step_id
