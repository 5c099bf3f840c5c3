# tasks/pulse_engine/aggregator.py
"""
Stress aggregation: turns a task snapshot into the "pulse" of a student or a
cohort (normalized score, risk tier, bucketed load, readiness).

All functions here are pure. They never raise on odd input and never mutate
the task sequence they are given.
"""

import dataclasses
import datetime
import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .records import (
    AggregateStats,
    Granularity,
    RiskTier,
    TaskKind,
    TaskRecord,
    TimeBucket,
    WindowPolicy,
)

logger = logging.getLogger(__name__)

# Roughly five units of raw stress per displayed percentage point: five tasks
# scored 100 saturate the display.
LOAD_PER_POINT = 5
MAX_DISPLAY_SCORE = 100

# Risk tier thresholds apply to the RAW total load, not the display score.
MODERATE_LOAD_THRESHOLD = 150
CRITICAL_LOAD_THRESHOLD = 300

BUCKET_DISPLAY_CAP = 100
DAILY_BUCKETS = 7
WEEKLY_BUCKETS = 4

READINESS_STRESS_FACTOR = 0.8

# Per-day advisory thresholds used before adding a class assignment.
DATE_LOAD_CRITICAL = 100
DATE_LOAD_HIGH = 60
ADVISORY_CLEAR = "CLEAR"
ADVISORY_HIGH = "HIGH"
ADVISORY_CRITICAL = "CRITICAL"

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _today(now: Optional[datetime.datetime]) -> datetime.date:
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    return now.date()


def is_cohort_visible(task: TaskRecord) -> bool:
    """Private tasks stay out of cohort views unless the student opted them in."""
    return not task.is_private or task.include_in_pulse


def is_active(
    task: TaskRecord,
    today: datetime.date,
    window_policy: WindowPolicy,
    cohort: bool = False,
) -> bool:
    """Whether ``task`` counts toward the current load."""
    if not (task.include_in_pulse or task.kind is TaskKind.INSTITUTIONAL):
        return False
    if task.is_completed:
        return False
    if cohort and not is_cohort_visible(task):
        return False
    return window_policy.contains(task.due_date, today)


def normalize_load(total_load: int) -> int:
    return min(_round_half_up(total_load / LOAD_PER_POINT), MAX_DISPLAY_SCORE)


def classify_risk(total_load: int) -> RiskTier:
    if total_load > CRITICAL_LOAD_THRESHOLD:
        return RiskTier.CRITICAL
    if total_load > MODERATE_LOAD_THRESHOLD:
        return RiskTier.MODERATE
    return RiskTier.OPTIMAL


def compute_readiness(active: Sequence[TaskRecord]) -> int:
    if not active:
        return 100
    avg_stress = sum(t.stress_score for t in active) / len(active)
    return max(0, _round_half_up(100 - avg_stress * READINESS_STRESS_FACTOR))


def bucket_load(
    tasks: Iterable[TaskRecord],
    today: datetime.date,
    granularity: Granularity = Granularity.DAILY,
) -> Tuple[TimeBucket, ...]:
    """
    Sum stress per calendar day (next 7 days) or per week (next 4 weeks),
    both starting today. The display cap only touches ``load``.
    """
    if granularity is Granularity.WEEKLY:
        span, count = 7, WEEKLY_BUCKETS
    else:
        span, count = 1, DAILY_BUCKETS

    raw = [0] * count
    for task in tasks:
        if task.due_date is None:
            continue
        offset = (task.due_date - today).days
        if offset < 0:
            continue
        index = offset // span
        if index < count:
            raw[index] += task.stress_score

    buckets = []
    for i, raw_load in enumerate(raw):
        start = today + datetime.timedelta(days=i * span)
        if granularity is Granularity.WEEKLY:
            label = f"Week {i + 1}"
        else:
            label = WEEKDAY_LABELS[start.weekday()]
        buckets.append(
            TimeBucket(
                label=label,
                start=start,
                load=min(raw_load, BUCKET_DISPLAY_CAP),
                raw_load=raw_load,
            )
        )
    return tuple(buckets)


def aggregate(
    tasks: Iterable[TaskRecord],
    window_policy: Optional[WindowPolicy] = None,
    *,
    now: Optional[datetime.datetime] = None,
    granularity: Granularity = Granularity.DAILY,
    cohort: bool = False,
) -> AggregateStats:
    """
    Compute the pulse of a task set.

    score     = min(round(total_load / 5), 100)
    risk_tier = from raw total_load: > 300 CRITICAL, > 150 MODERATE
    """
    policy = window_policy or WindowPolicy()
    today = _today(now)

    active = [t for t in tasks if is_active(t, today, policy, cohort=cohort)]
    total_load = sum(t.stress_score for t in active)

    stats = AggregateStats(
        score=normalize_load(total_load),
        risk_tier=classify_risk(total_load),
        active_task_count=len(active),
        total_load=total_load,
        readiness=compute_readiness(active),
        time_buckets=bucket_load(active, today, granularity),
    )
    logger.debug(
        f"Aggregator: {stats.active_task_count} active tasks, "
        f"load={total_load}, tier={stats.risk_tier.value}"
    )
    return stats


def cohort_member_stats(
    tasks_by_student: Mapping[str, Sequence[TaskRecord]],
    window_policy: Optional[WindowPolicy] = None,
    *,
    now: Optional[datetime.datetime] = None,
) -> Dict[str, AggregateStats]:
    """Per-student pulse restricted to what the cohort is allowed to see."""
    return {
        student_id: aggregate(
            student_tasks,
            window_policy,
            now=now,
            granularity=Granularity.WEEKLY,
            cohort=True,
        )
        for student_id, student_tasks in tasks_by_student.items()
    }


def cohort_mean_score(member_stats: Mapping[str, AggregateStats]) -> int:
    if not member_stats:
        return 0
    total = sum(stats.score for stats in member_stats.values())
    return _round_half_up(total / len(member_stats))


def cohort_mean_load(member_stats: Mapping[str, AggregateStats]) -> int:
    if not member_stats:
        return 0
    total = sum(stats.total_load for stats in member_stats.values())
    return _round_half_up(total / len(member_stats))


def cohort_aggregate(
    tasks_by_student: Mapping[str, Sequence[TaskRecord]],
    window_policy: Optional[WindowPolicy] = None,
    *,
    now: Optional[datetime.datetime] = None,
) -> Tuple[AggregateStats, Dict[str, AggregateStats]]:
    """
    Class pulse plus the per-student rows it is derived from.

    Score, risk tier and readiness describe the average student: mean member
    score, tier of the mean raw load, mean readiness. ``total_load``,
    ``active_task_count`` and the weekly buckets are the summed class load.
    """
    members = cohort_member_stats(tasks_by_student, window_policy, now=now)
    combined = aggregate(
        [task for tasks in tasks_by_student.values() for task in tasks],
        window_policy,
        now=now,
        granularity=Granularity.WEEKLY,
        cohort=True,
    )
    if not members:
        return combined, members

    readiness = _round_half_up(
        sum(stats.readiness for stats in members.values()) / len(members)
    )
    stats = dataclasses.replace(
        combined,
        score=cohort_mean_score(members),
        risk_tier=classify_risk(cohort_mean_load(members)),
        readiness=readiness,
    )
    return stats, members


def _advisory(load: int) -> str:
    if load > DATE_LOAD_CRITICAL:
        return ADVISORY_CRITICAL
    if load > DATE_LOAD_HIGH:
        return ADVISORY_HIGH
    return ADVISORY_CLEAR


def assess_date_load(tasks: Iterable[TaskRecord], on_date: datetime.date) -> dict:
    """
    Existing load on a single date, with an advisory for whoever is about to
    schedule more work on it. Completed tasks do not count.
    """
    load = sum(
        t.stress_score
        for t in tasks
        if t.due_date == on_date and not t.is_completed
    )
    return {"date": on_date.isoformat(), "load": load, "advisory": _advisory(load)}


def overdue(
    tasks: Iterable[TaskRecord],
    now: Optional[datetime.datetime] = None,
) -> List[TaskRecord]:
    """Incomplete tasks whose due date is before today, earliest first."""
    today = _today(now)
    late = [
        t for t in tasks
        if not t.is_completed and t.due_date is not None and t.due_date < today
    ]
    return sorted(late, key=lambda t: t.due_date)


def assess_cohort_date_load(
    tasks_by_student: Mapping[str, Sequence[TaskRecord]],
    on_date: datetime.date,
) -> dict:
    """
    Date advisory for a whole class: the busiest student's cohort-visible
    load on ``on_date`` decides the advisory.
    """
    per_student = {
        student_id: assess_date_load(
            [t for t in student_tasks if is_cohort_visible(t)], on_date
        )
        for student_id, student_tasks in tasks_by_student.items()
    }
    peak = max((a["load"] for a in per_student.values()), default=0)
    result = {"date": on_date.isoformat(), "load": peak, "advisory": _advisory(peak)}
    result["students_at_risk"] = sorted(
        student_id
        for student_id, assessment in per_student.items()
        if assessment["advisory"] != ADVISORY_CLEAR
    )
    return result
