# tasks/pulse_engine/records.py
"""
Typed records exchanged by the pulse engine.

Everything the engine consumes or produces is a frozen dataclass so that a
task snapshot handed to the Aggregator or Prioritizer can never be mutated
in place. Loose documents (dicts coming from the store, fixtures, JSON
payloads) are converted with ``TaskRecord.from_mapping`` at the boundary.
"""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

# Score used whenever no trustworthy stress score is available. Chosen so a
# single missing score does not bias aggregate risk in either direction.
NEUTRAL_STRESS_SCORE = 50

MIN_STRESS_SCORE = 0
MAX_STRESS_SCORE = 100

# Labels attached to results so the presentation layer can tell apart
# oracle-sourced answers from heuristic ones.
SOURCE_PRIMARY = "primary"
SOURCE_SECONDARY = "secondary"
SOURCE_LOCAL = "local"


class TaskKind(str, enum.Enum):
    INSTITUTIONAL = "INSTITUTIONAL"
    PERSONAL = "PERSONAL"


class RiskTier(str, enum.Enum):
    OPTIMAL = "OPTIMAL"
    MODERATE = "MODERATE"
    CRITICAL = "CRITICAL"


class Granularity(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


def clamp_stress(value: Any) -> int:
    """Coerce ``value`` to an int in [0, 100]; non-numeric input is neutral."""
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return NEUTRAL_STRESS_SCORE
    return max(MIN_STRESS_SCORE, min(MAX_STRESS_SCORE, score))


def parse_due_date(value: Any) -> Optional[datetime.date]:
    """
    Accepts a date, a datetime or an ISO 'YYYY-MM-DD' string.
    Anything else (including malformed strings) is treated as "no due date".
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class TaskRecord:
    """Read-only snapshot of a task as seen by the engine."""

    id: str
    title: str
    description: str
    kind: TaskKind
    owner_id: str
    stress_score: int
    class_id: Optional[str] = None
    due_date: Optional[datetime.date] = None
    include_in_pulse: bool = True
    is_private: bool = False
    is_completed: bool = False

    def __post_init__(self) -> None:
        if not MIN_STRESS_SCORE <= self.stress_score <= MAX_STRESS_SCORE:
            raise ValueError(
                f"stress_score must be within [0, 100], got {self.stress_score}"
            )
        if self.kind is TaskKind.INSTITUTIONAL and not self.class_id:
            raise ValueError(f"Institutional task {self.id} has no class reference")

    @property
    def is_institutional(self) -> bool:
        return self.kind is TaskKind.INSTITUTIONAL

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TaskRecord":
        """
        Build a record from a loosely-typed document.

        Missing optional fields get explicit defaults; a missing ``id`` is
        rejected. Institutional tasks are always counted in the pulse.
        """
        raw_id = data.get("id")
        if raw_id is None or str(raw_id) == "":
            raise ValueError("Task document has no id")

        raw_kind = str(data.get("kind") or TaskKind.PERSONAL.value).upper()
        try:
            kind = TaskKind(raw_kind)
        except ValueError:
            raise ValueError(f"Unknown task kind: {raw_kind!r}")

        class_id = data.get("class_id")
        include = bool(data.get("include_in_pulse", True))
        if kind is TaskKind.INSTITUTIONAL:
            include = True

        return cls(
            id=str(raw_id),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            kind=kind,
            owner_id=str(data.get("owner_id") or ""),
            stress_score=clamp_stress(data.get("stress_score", NEUTRAL_STRESS_SCORE)),
            class_id=str(class_id) if class_id not in (None, "") else None,
            due_date=parse_due_date(data.get("due_date")),
            include_in_pulse=include,
            is_private=bool(data.get("is_private", False)),
            is_completed=bool(data.get("is_completed", False)),
        )


@dataclass(frozen=True)
class WindowPolicy:
    """Relevance window for aggregation, in whole days around today."""

    past_days: int = 7
    future_days: int = 30

    def contains(self, due_date: Optional[datetime.date], today: datetime.date) -> bool:
        # Undated tasks are always relevant.
        if due_date is None:
            return True
        start = today - datetime.timedelta(days=self.past_days)
        end = today + datetime.timedelta(days=self.future_days)
        return start <= due_date <= end


@dataclass(frozen=True)
class TimeBucket:
    label: str
    start: datetime.date
    load: int
    raw_load: int

    def as_dict(self) -> dict:
        return {
            "label": self.label,
            "start": self.start.isoformat(),
            "load": self.load,
            "raw_load": self.raw_load,
        }


@dataclass(frozen=True)
class AggregateStats:
    score: int
    risk_tier: RiskTier
    active_task_count: int
    total_load: int
    readiness: int
    time_buckets: Tuple[TimeBucket, ...] = ()

    def as_dict(self) -> dict:
        return {
            "score": self.score,
            "risk_tier": self.risk_tier.value,
            "active_task_count": self.active_task_count,
            "total_load": self.total_load,
            "readiness": self.readiness,
            "time_buckets": [bucket.as_dict() for bucket in self.time_buckets],
        }


@dataclass(frozen=True)
class PrioritizedTask:
    task_id: str
    sequence: int
    category: str
    reason: str

    def as_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "sequence": self.sequence,
            "category": self.category,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class PrioritizationResult:
    execution_order: Tuple[PrioritizedTask, ...]
    daily_strategy: str
    source: str = SOURCE_LOCAL

    @property
    def is_heuristic(self) -> bool:
        return self.source == SOURCE_LOCAL

    def as_dict(self) -> dict:
        return {
            "execution_order": [item.as_dict() for item in self.execution_order],
            "daily_strategy": self.daily_strategy,
            "source": self.source,
            "is_heuristic": self.is_heuristic,
        }


@dataclass(frozen=True)
class StressAssessment:
    score: int
    justification: str
    estimated_hours: float
    source: str = SOURCE_LOCAL

    def as_dict(self) -> dict:
        return {
            "score": self.score,
            "justification": self.justification,
            "estimated_hours": self.estimated_hours,
            "source": self.source,
        }


@dataclass(frozen=True)
class TierFailure:
    tier: str
    error_code: str
    message: str


@dataclass
class OracleResult:
    data: dict
    source: str
    failures: List[TierFailure] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.source != SOURCE_PRIMARY
