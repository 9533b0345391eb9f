"""Per-request trace records.

A RequestTrace describes how one logical request unfolded: every HTTP
attempt, the recoveries it triggered and the final outcome. Traces are built
by the executor and handed to the ``on_request_complete`` callback.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from .protocol import ResponseKind


class RequestOutcome(Enum):
    """Final outcome of a logical request."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class AttemptRecord:
    """A single HTTP attempt within a logical request."""

    kind: ResponseKind
    status: int | None = None
    at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass
class RequestTrace:
    """How one logical request was executed.

    Attributes:
        method: HTTP method of the request.
        path: Vehicle path of the request.
        request_id: Unique id, also used as the log correlation key.
        attempts: HTTP attempts in order (wake commands are not included).
        refreshes: Credential refreshes performed for this request.
        wake_cycles: Wake cycles run for this request.
        outcome: Final outcome.
        error: Class name of the terminal error, if any.
    """

    method: str
    path: str
    request_id: str = field(default_factory=lambda: uuid4().hex[:12])
    attempts: list[AttemptRecord] = field(default_factory=lambda: [])
    refreshes: int = 0
    wake_cycles: int = 0
    outcome: RequestOutcome = RequestOutcome.PENDING
    error: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    finished_at: datetime | None = None

    def record_attempt(self, kind: ResponseKind, status: int | None) -> None:
        self.attempts.append(AttemptRecord(kind=kind, status=status))

    def finish(self, outcome: RequestOutcome, error: BaseException | None = None) -> None:
        self.outcome = outcome
        self.error = type(error).__name__ if error is not None else None
        self.finished_at = datetime.now(tz=UTC)

    @property
    def duration_ms(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds() * 1000

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        result = dataclasses.asdict(self)
        result["outcome"] = self.outcome.value
        result["attempts"] = [
            {
                "kind": attempt.kind.value,
                "status": attempt.status,
                "at": attempt.at.isoformat(),
            }
            for attempt in self.attempts
        ]
        result["started_at"] = self.started_at.isoformat()
        result["finished_at"] = (
            self.finished_at.isoformat() if self.finished_at else None
        )
        result["duration_ms"] = self.duration_ms
        return result
