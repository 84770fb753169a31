"""Exception hierarchy for the resume worker."""
from typing import Any, List, Optional


class WorkerError(Exception):
    """Base class for all worker errors."""


class NonRetryableError(WorkerError):
    """Client-side failure that will not heal by retrying."""


class JobNotFoundError(NonRetryableError):
    """The job referenced by a delivery has no persisted record."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class PayloadValidationError(NonRetryableError):
    """Assembled render payload violates the render service schema."""

    def __init__(self, errors: Optional[List[Any]] = None):
        self.errors = errors or []
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in self.errors
            if isinstance(err, dict)
        )
        super().__init__(f"Invalid resume payload: {details}" if details else "Invalid resume payload")


class DataAccessError(WorkerError):
    """Database transport or query failure."""

    def __init__(self, database: str, message: str):
        self.database = database
        super().__init__(f"[{database}] {message}")


class RenderError(WorkerError):
    """The render service reported a failure for this resume."""

    def __init__(self, error: str):
        self.error = error
        super().__init__(f"Renderer error: {error}")


class RenderTimeoutError(WorkerError):
    """The render service did not finish within the wait window."""

    def __init__(self, waited_seconds: float):
        self.waited_seconds = waited_seconds
        super().__init__("Resume generation timeout")
