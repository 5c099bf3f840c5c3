# tasks/services.py
"""
Glue between the ORM and the pulse engine.

The engine only ever sees ``TaskRecord`` snapshots; this module builds them
from querysets, wires engine components from Django settings, and performs
the single-field write-back of stress assessments.
"""

import datetime
import logging
from typing import Dict, Iterable, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Task
from .pulse_engine.cache import StressScoreCache
from .pulse_engine.orchestrator import FallbackOrchestrator, build_default_orchestrator
from .pulse_engine.prioritizer import Prioritizer
from .pulse_engine.records import StressAssessment, TaskKind, TaskRecord, WindowPolicy
from .pulse_engine.stress_scorer import StressScorer

logger = logging.getLogger(__name__)


def to_task_record(task: Task) -> TaskRecord:
    return TaskRecord(
        id=str(task.pk),
        title=task.title,
        description=task.description,
        kind=TaskKind(task.kind),
        owner_id=str(task.owner_id),
        stress_score=task.stress_score,
        class_id=str(task.classroom_id) if task.classroom_id else None,
        due_date=task.due_date,
        include_in_pulse=task.include_in_pulse or task.is_institutional,
        is_private=task.is_private,
        is_completed=task.is_completed,
    )


def to_task_records(tasks: Iterable[Task]) -> Tuple[TaskRecord, ...]:
    return tuple(to_task_record(task) for task in tasks)


def student_task_records(student_id, *, include_completed: bool = True) -> Tuple[TaskRecord, ...]:
    """Snapshot of every task owned by ``student_id``."""
    queryset = Task.objects.filter(owner_id=student_id)
    if not include_completed:
        queryset = queryset.filter(is_completed=False)
    return to_task_records(queryset)


def cohort_task_records(classroom) -> Dict[str, Tuple[TaskRecord, ...]]:
    """All tasks of every enrolled student, grouped by student id."""
    student_ids = list(classroom.students.values_list('id', flat=True))
    grouped: Dict[str, list] = {str(sid): [] for sid in student_ids}
    for task in Task.objects.filter(owner_id__in=student_ids):
        grouped[str(task.owner_id)].append(to_task_record(task))
    return {sid: tuple(records) for sid, records in grouped.items()}


def local_now(user) -> datetime.datetime:
    """
    Current time in the user's own timezone. "Today" for buckets, the
    relevance window and the overdue cutoff is the user's calendar day.
    """
    now = timezone.now()
    try:
        return now.astimezone(ZoneInfo(user.timezone or "UTC"))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {user.timezone!r} for user {user.pk}; using UTC")
        return now


def window_policy_from_settings() -> WindowPolicy:
    return WindowPolicy(
        past_days=int(getattr(settings, 'PULSE_WINDOW_PAST_DAYS', 7)),
        future_days=int(getattr(settings, 'PULSE_WINDOW_FUTURE_DAYS', 30)),
    )


def build_stress_scorer(orchestrator: Optional[FallbackOrchestrator] = None) -> StressScorer:
    return StressScorer(orchestrator or build_default_orchestrator(), cache=StressScoreCache())


def build_prioritizer(orchestrator: Optional[FallbackOrchestrator] = None) -> Prioritizer:
    return Prioritizer(orchestrator or build_default_orchestrator())


def apply_stress_assessment(task_ids: Iterable[int], assessment: StressAssessment) -> int:
    """
    Write a stress assessment to tasks that have not been scored yet.
    Already-scored tasks are left untouched, so the score stays immutable
    and re-delivered jobs are harmless. Returns the number of rows updated.
    """
    with transaction.atomic():
        updated = Task.objects.filter(pk__in=list(task_ids), is_scored=False).update(
            stress_score=assessment.score,
            stress_justification=assessment.justification,
            estimated_hours=assessment.estimated_hours,
            is_scored=True,
        )
    logger.info(
        f"Stress score {assessment.score} ({assessment.source}) persisted on {updated} task(s)"
    )
    return updated
