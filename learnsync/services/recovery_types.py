"""Result types returned by the recovery coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Why a recovery operation failed."""

    NOT_AUTHENTICATED = "not_authenticated"
    NO_RECOVERY_DATA_FOUND = "no_recovery_data_found"
    COLLECTION_LOAD_FAILED = "collection_load_failed"
    BACKUP_IN_PROGRESS = "backup_in_progress"
    UNEXPECTED_FAILURE = "unexpected_failure"


class IssueKind(str, Enum):
    """Known kinds of integrity issue."""

    COLLECTION_LOAD_FAILED = "collection_load_failed"
    EFFICIENCY_CORRUPT = "efficiency_corrupt"


@dataclass(frozen=True)
class CollectionLoadFailed:
    """A single collection that could not be loaded during a batch."""

    collection: str
    cause: str


@dataclass(frozen=True)
class IntegrityIssue:
    kind: IssueKind
    detail: str

    def __str__(self) -> str:
        return self.detail


@dataclass
class IntegrityReport:
    """Per-collection counts plus any issues found. Never persisted."""

    counts: dict[str, int] = field(default_factory=dict)
    issues: list[IntegrityIssue] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return [str(issue) for issue in self.issues]

    def has(self, kind: IssueKind) -> bool:
        return any(issue.kind == kind for issue in self.issues)

    def to_dict(self) -> dict:
        return {
            **self.counts,
            "issues": [{"kind": i.kind.value, "detail": i.detail} for i in self.issues],
        }


@dataclass
class OperationResult:
    """Common shape of every coordinator result."""

    success: bool
    message: str = ""
    error_kind: Optional[ErrorKind] = None


@dataclass
class RefreshResult(OperationResult):
    counts: dict[str, int] = field(default_factory=dict)
    failures: list[CollectionLoadFailed] = field(default_factory=list)


@dataclass
class RecoveryResult(OperationResult):
    recovered: int = 0
    source: Optional[str] = None  # "remote" or "backup"


@dataclass
class BackupResult(OperationResult):
    items: int = 0
    timestamp: Optional[str] = None


@dataclass
class RepairResult(OperationResult):
    repaired: bool = False
    previous_value: Optional[float] = None


@dataclass
class IntegrityResult(OperationResult):
    report: Optional[IntegrityReport] = None
