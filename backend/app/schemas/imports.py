"""Pydantic schemas for CSV bulk import results."""
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class ImportKind(str, Enum):
    ATTENDEES = "attendees"
    MEETINGS = "meetings"


# ─── Row outcomes ───

class FieldError(BaseModel):
    column: str | None = None
    message: str


class AcceptedRow(BaseModel):
    kind: Literal["accepted"] = "accepted"
    row: int
    record: dict[str, str]


class RejectedRow(BaseModel):
    kind: Literal["rejected"] = "rejected"
    row: int
    line: int | None = None
    errors: list[FieldError]


ValidatedRow = AcceptedRow | RejectedRow


# ─── Run result ───

class ImportResult(BaseModel):
    kind: ImportKind
    success: int = 0
    errors: int = 0
    total: int = 0
    rejected: list[RejectedRow] = []
    accepted: list[AcceptedRow] = []
    warnings: list[str] = []
    complete: bool = True

    def add(self, outcome: ValidatedRow) -> None:
        """Fold one validated row into the running counts."""
        self.total += 1
        if isinstance(outcome, AcceptedRow):
            self.success += 1
            self.accepted.append(outcome)
        else:
            self.errors += 1
            self.rejected.append(outcome)

    def counts(self) -> dict[str, int]:
        return {"success": self.success, "errors": self.errors, "total": self.total}


# ─── Submission to the scheduling API ───

class SubmissionOutcome(BaseModel):
    row: int
    success: bool
    message: str = ""
    remote_id: str | None = None


class SubmissionSummary(BaseModel):
    created: int = 0
    failed: int = 0
    outcomes: list[SubmissionOutcome] = []


class ImportResponse(ImportResult):
    submission: SubmissionSummary | None = None


# ─── Background jobs ───

class ImportJobState(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ImportJobCreated(BaseModel):
    job_id: str
    kind: ImportKind
    state: ImportJobState


class ImportJobStatus(BaseModel):
    job_id: str
    kind: ImportKind
    filename: str | None = None
    state: ImportJobState
    progress: float = Field(0.0, ge=0.0, le=1.0)
    rows_processed: int = 0
    result: ImportResult | None = None
    error: dict[str, Any] | None = None
