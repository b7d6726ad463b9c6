"""Exception taxonomy for the job intake engine.

Only I/O failures are exceptions. Insufficient extraction and unparseable
model output are data conditions and never raise.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.core.schemas import ExtractionDiagnosis


class JobIntakeError(Exception):
    """Base class for all job intake errors."""


class FetchFailureKind(str, Enum):
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


class FetchFailure(JobIntakeError):
    """HTTP fetch failed after retries were exhausted (or was not retryable)."""

    def __init__(
        self, kind: FetchFailureKind, message: str, status: int | None = None,
    ) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.message = message
        self.status = status

    @property
    def retryable(self) -> bool:
        if self.kind is FetchFailureKind.HTTP_ERROR:
            return self.status is not None and self.status >= 500
        return True


class RenderFailureCause(str, Enum):
    ENVIRONMENT = "environment"
    TARGET_SITE = "target_site"


class RenderFailure(JobIntakeError):
    """Headless render failed. Never retried automatically.

    ``cause`` separates a broken local environment (no browser binary) from a
    target site that would not load.
    """

    def __init__(self, cause: RenderFailureCause, message: str) -> None:
        super().__init__(f"{cause.value}: {message}")
        self.cause = cause
        self.message = message


class ExtractionExhausted(JobIntakeError):
    """Every extraction strategy was tried and none produced enough text."""

    def __init__(self, url: str, diagnosis: "ExtractionDiagnosis | None") -> None:
        action = diagnosis.recommended_action if diagnosis else "manual entry required"
        super().__init__(f"Could not extract content from {url}: {action}")
        self.url = url
        self.diagnosis = diagnosis
