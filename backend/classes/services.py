# classes/services.py

import logging
from typing import List, Optional

from django.db import transaction

from tasks.models import Task
from tasks.pulse_engine.celery_tasks import score_assignment_stress

from .models import Classroom

logger = logging.getLogger(__name__)


def create_classroom(teacher, name: str) -> Classroom:
    with transaction.atomic():
        classroom = Classroom.objects.create(name=name)
        classroom.teachers.add(teacher)
    logger.info(f"Class '{name}' created with code {classroom.code} by user {teacher.pk}")
    return classroom


def join_classroom(student, code: str) -> Optional[Classroom]:
    """Enrol ``student`` in the class with ``code``; None if no class matches."""
    classroom = Classroom.objects.filter(code=code.strip().upper()).first()
    if classroom is None:
        return None
    classroom.students.add(student)
    return classroom


def assign_to_classroom(classroom: Classroom, title: str, description: str, due_date) -> List[Task]:
    """
    Fan an assignment out to one task record per enrolled student, then
    score it once in the background and copy the score to every record.
    """
    with transaction.atomic():
        tasks = [
            Task.objects.create(
                owner=student,
                classroom=classroom,
                kind=Task.Kind.INSTITUTIONAL,
                title=title,
                description=description,
                due_date=due_date,
                include_in_pulse=True,
                is_private=False,
            )
            for student in classroom.students.all()
        ]

        task_ids = [task.id for task in tasks]
        if task_ids:
            transaction.on_commit(lambda: score_assignment_stress.delay(task_ids))

    logger.info(f"Assignment '{title}' fanned out to {len(tasks)} student(s) in class {classroom.pk}")
    return tasks
