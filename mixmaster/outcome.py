"""Pipeline outcomes: every expected failure is a Rejection value."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


class FailureKind(str, Enum):
    """Enumerable ways a request can fail."""
    CONFIGURATION_MISSING = "configuration-missing"
    MALFORMED_REQUEST = "malformed-request"
    VALIDATION_ERROR = "validation-error"
    UNKNOWN_PROJECT = "unknown-project"
    UNKNOWN_TARGET = "unknown-target"
    UNKNOWN_TASK = "unknown-task"
    AMBIGUOUS_TARGET = "ambiguous-target"
    WRITE_FAILURE = "write-failure"
    NOT_FOUND = "not-found"
    METHOD_NOT_ALLOWED = "method-not-allowed"


# kind -> (status code, whether the message may be shown to the caller)
STATUS_BY_KIND = {
    FailureKind.CONFIGURATION_MISSING: (500, False),
    FailureKind.MALFORMED_REQUEST: (400, False),
    FailureKind.VALIDATION_ERROR: (422, True),
    FailureKind.UNKNOWN_PROJECT: (422, True),
    FailureKind.UNKNOWN_TARGET: (422, True),
    FailureKind.UNKNOWN_TASK: (422, True),
    FailureKind.AMBIGUOUS_TARGET: (422, True),
    FailureKind.WRITE_FAILURE: (500, False),
    FailureKind.NOT_FOUND: (404, False),
    FailureKind.METHOD_NOT_ALLOWED: (405, False),
}


class Rejection(BaseModel):
    """A failed pipeline stage."""
    kind: FailureKind
    message: str = ""
    field: str = ""
    candidates: List[str] = []

    class Config:
        frozen = True

    @property
    def status(self) -> int:
        return STATUS_BY_KIND[self.kind][0]

    @property
    def public_message(self) -> str:
        """Text safe to send back over the connection."""
        return self.message if STATUS_BY_KIND[self.kind][1] else ""


def malformed() -> Rejection:
    return Rejection(kind=FailureKind.MALFORMED_REQUEST)


def missing_field(field: str) -> Rejection:
    return Rejection(
        kind=FailureKind.VALIDATION_ERROR,
        message=f"Missing {field}",
        field=field,
    )


def ambiguous(candidates: List[str]) -> Rejection:
    return Rejection(
        kind=FailureKind.AMBIGUOUS_TARGET,
        message="Ambiguous target: " + ", ".join(candidates),
        candidates=candidates,
    )


class Accepted(BaseModel):
    """A successful pipeline run."""
    status: int = 204
    body: str = ""
    job_file: Optional[str] = None
