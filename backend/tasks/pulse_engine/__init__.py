# tasks/pulse_engine/__init__.py
"""
Pulse Engine Package
====================

Task prioritization and stress aggregation for the AcadPulse workload
tracker. Everything here works on read-only ``TaskRecord`` snapshots; the
ORM never leaks into the math.

Modules:
--------
- records: Typed task/result records and shared constants
- urgency: Deterministic deadline urgency and priority score
- aggregator: Pulse score, risk tier, time buckets, readiness
- prioritizer: Execution order (oracle first, local formula as last tier)
- stress_scorer: Per-task 0-100 stress score with neutral fallback
- orchestrator: PRIMARY -> SECONDARY -> LOCAL degrade chain
- oracle: OpenAI-backed reasoning oracle client
- cache: Django-cache memo of oracle stress assessments
- insight: One-line wellness insight
- celery_tasks: Asynchronous stress scoring at creation time

Architecture:
-------------
Calls that need the reasoning oracle go through a FallbackOrchestrator,
which tries each remote tier once, in order, and finally runs a local
handler that cannot fail. Every result is labelled with the tier that
produced it:

- "primary":   higher-capability model answered
- "secondary": faster model answered after the primary failed
- "local":     deterministic heuristic (both remote tiers failed)

Usage:
------
    from tasks.pulse_engine import Prioritizer, build_default_orchestrator

    prioritizer = Prioritizer(build_default_orchestrator())
    result = prioritizer.prioritize(task_records)
"""

from .aggregator import (
    aggregate,
    assess_cohort_date_load,
    assess_date_load,
    cohort_aggregate,
    cohort_mean_load,
    cohort_mean_score,
    cohort_member_stats,
    overdue,
)
from .cache import StressScoreCache
from .celery_tasks import score_assignment_stress, score_pending_tasks, score_task_stress
from .insight import wellness_insight
from .oracle import OracleClient, OracleRequest, OracleUnavailableError
from .orchestrator import FallbackOrchestrator, OracleTier, build_default_orchestrator
from .prioritizer import Prioritizer, rank_locally
from .records import (
    SOURCE_LOCAL,
    SOURCE_PRIMARY,
    SOURCE_SECONDARY,
    AggregateStats,
    Granularity,
    PrioritizationResult,
    PrioritizedTask,
    RiskTier,
    StressAssessment,
    TaskKind,
    TaskRecord,
    TimeBucket,
    WindowPolicy,
)
from .stress_scorer import StressScorer
from .urgency import compute_priority_score, compute_urgency, days_until_due

__all__ = [
    # Core classes
    "FallbackOrchestrator",
    "OracleTier",
    "OracleClient",
    "OracleRequest",
    "OracleUnavailableError",
    "Prioritizer",
    "StressScorer",
    "StressScoreCache",
    # Records
    "AggregateStats",
    "Granularity",
    "PrioritizationResult",
    "PrioritizedTask",
    "RiskTier",
    "StressAssessment",
    "TaskKind",
    "TaskRecord",
    "TimeBucket",
    "WindowPolicy",
    # Functions
    "aggregate",
    "assess_cohort_date_load",
    "assess_date_load",
    "build_default_orchestrator",
    "cohort_aggregate",
    "cohort_mean_load",
    "cohort_mean_score",
    "cohort_member_stats",
    "compute_priority_score",
    "compute_urgency",
    "days_until_due",
    "overdue",
    "rank_locally",
    "wellness_insight",
    "score_task_stress",
    "score_assignment_stress",
    "score_pending_tasks",
    # Constants
    "SOURCE_PRIMARY",
    "SOURCE_SECONDARY",
    "SOURCE_LOCAL",
]
