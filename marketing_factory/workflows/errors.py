from typing import Optional


class WorkflowFailure(Exception):
    """A downstream step failed; rendered as 500 ``{error, details}``."""

    def __init__(self, error: str, details: Optional[str] = None, status_code: int = 500) -> None:
        super().__init__(error)
        self.error = error
        self.details = details
        self.status_code = status_code
