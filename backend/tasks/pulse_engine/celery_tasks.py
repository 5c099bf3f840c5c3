# tasks/pulse_engine/celery_tasks.py

import datetime
import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from celery import group, shared_task
from django.conf import settings
from django.utils import timezone

# Configure logging for background worker monitoring
logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,  # Max backoff of 10 minutes
    max_retries=3,
    time_limit=60,          # Two remote tiers with their own timeouts fit well inside
    soft_time_limit=50
)
def score_task_stress(self, task_id: int) -> Optional[Dict[str, Any]]:
    """
    Worker: score one task and write the result back once.
    Input = task_id only; the worker fetches everything else.
    """
    from ..models import Task
    from ..services import apply_stress_assessment, build_stress_scorer

    logger.info(f"Stress scoring started for Task {task_id}")
    try:
        task = Task.objects.filter(id=task_id).first()
        if not task:
            logger.warning(f"Task {task_id} not found. Exiting worker.")
            return None
        if task.is_scored:
            logger.info(f"Task {task_id} already scored. Skipping.")
            return None

        assessment = build_stress_scorer().score(task.title, task.description)
        apply_stress_assessment([task.id], assessment)
        return assessment.as_dict()

    except Exception as exc:
        logger.exception(f"Stress scoring failed for Task {task_id}: {exc}")
        # Re-raise for Celery retry policy
        raise


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,
    max_retries=3,
    time_limit=60,
    soft_time_limit=50
)
def score_assignment_stress(self, task_ids: List[int]) -> Optional[Dict[str, Any]]:
    """
    Worker: score a class assignment once and copy the score to every
    fanned-out student record.
    """
    from ..models import Task
    from ..services import apply_stress_assessment, build_stress_scorer

    logger.info(f"Assignment scoring started for {len(task_ids)} task record(s)")
    try:
        template = Task.objects.filter(id__in=task_ids, is_scored=False).first()
        if not template:
            logger.info("No unscored records left for this assignment. Skipping.")
            return None

        assessment = build_stress_scorer().score(template.title, template.description)
        apply_stress_assessment(task_ids, assessment)
        return assessment.as_dict()

    except Exception as exc:
        logger.exception(f"Assignment scoring failed for tasks {task_ids}: {exc}")
        raise


@shared_task
def score_pending_tasks() -> int:
    """
    Sweep for tasks whose scoring job never ran (worker down, broker lost)
    and score them concurrently. Rows younger than one sweep interval are
    skipped since their own job may still be queued. Fanned-out assignment
    records are regrouped so each assignment is scored once.
    Returns the number of jobs dispatched.
    """
    from ..models import Task

    grace = int(getattr(settings, 'PULSE_PENDING_SWEEP_SECONDS', 900))
    stale = Task.objects.filter(
        is_scored=False,
        created_at__lt=timezone.now() - datetime.timedelta(seconds=grace),
    )

    jobs = [
        score_task_stress.s(task_id)
        for task_id in stale.filter(kind=Task.Kind.PERSONAL).values_list('id', flat=True)
    ]

    assignments: Dict[tuple, List[int]] = defaultdict(list)
    institutional = stale.filter(kind=Task.Kind.INSTITUTIONAL).values_list(
        'id', 'classroom_id', 'title', 'description', 'due_date'
    )
    for task_id, *assignment_key in institutional:
        assignments[tuple(assignment_key)].append(task_id)
    jobs.extend(score_assignment_stress.s(task_ids) for task_ids in assignments.values())

    if jobs:
        group(jobs).apply_async()
        logger.info(f"Dispatched {len(jobs)} stress scoring job(s) for pending tasks")
    return len(jobs)
