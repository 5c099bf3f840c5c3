# tasks/pulse_engine/prioritizer.py
"""
Execution-order recommendation for a student's task set.

The oracle is asked first for a composite urgency-weighted ranking. When both
remote tiers fail, the local formula in ``rank_locally`` produces the order:

    priority = stress * 0.6 + urgency(days until due)

sorted descending, ties kept in input order, sequence = rank + 1.
"""

import datetime
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from .oracle import OracleRequest
from .orchestrator import FallbackOrchestrator
from .records import PrioritizationResult, PrioritizedTask, TaskRecord
from .urgency import SATURATION_DAYS, compute_priority_score, days_until_due

logger = logging.getLogger(__name__)

CATEGORY_IMMEDIATE = "Immediate Action"
CATEGORY_PLANNED = "Planned"
IMMEDIATE_SLOTS = 3

FALLBACK_STRATEGY = (
    "Maintain a steady cognitive rhythm: clear the most pressing deadlines "
    "first, then work through planned tasks in order."
)
EMPTY_STRATEGY = "Reset and recharge for future cycles."

SYSTEM_INSTRUCTION = (
    "You are a productivity architect helping students manage cognitive energy, "
    "not just time. Rank tasks by a composite of urgency (time to deadline) and "
    "weight (stress score). Identify the hardest important task to do first, "
    "quick wins, and cascading risks that would destroy the schedule if delayed. "
    "Use a professional but encouraging tone."
)

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "executionOrder": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "taskId": {"type": "string"},
                    "sequence": {"type": "integer"},
                    "category": {"type": "string"},
                    "reason": {"type": "string"},
                },
                "required": ["taskId", "sequence", "category", "reason"],
            },
        },
        "dailyStrategy": {
            "type": "string",
            "description": "A 1-sentence overarching theme for the student's day.",
        },
    },
    "required": ["executionOrder", "dailyStrategy"],
}


def make_order_parser(task_ids: Sequence[str]):
    """
    Parser for oracle rankings of exactly ``task_ids``. The answer must name
    every task once and use each sequence number 1..N once.
    """
    expected = set(task_ids)

    def parse(data: Dict[str, Any]) -> Dict[str, Any]:
        order = data.get("executionOrder")
        strategy = data.get("dailyStrategy")
        if not isinstance(order, list):
            raise ValueError("executionOrder is not a list")
        if not isinstance(strategy, str) or not strategy.strip():
            raise ValueError("dailyStrategy is missing")

        items = []
        for entry in order:
            if not isinstance(entry, dict):
                raise ValueError("executionOrder entry is not an object")
            sequence = entry.get("sequence")
            if isinstance(sequence, bool) or not isinstance(sequence, int):
                raise ValueError(f"sequence is not an integer: {sequence!r}")
            items.append({
                "taskId": str(entry.get("taskId")),
                "sequence": sequence,
                "category": str(entry.get("category") or CATEGORY_PLANNED),
                "reason": str(entry.get("reason") or ""),
            })

        ids = [item["taskId"] for item in items]
        if len(ids) != len(expected) or set(ids) != expected:
            raise ValueError("executionOrder does not cover the task set exactly once")
        sequences = sorted(item["sequence"] for item in items)
        if sequences != list(range(1, len(items) + 1)):
            raise ValueError("sequences are not a dense 1..N permutation")

        items.sort(key=lambda item: item["sequence"])
        return {"executionOrder": items, "dailyStrategy": strategy.strip()}

    return parse


def _describe_deadline(days: Optional[float]) -> str:
    if days is None:
        return "no due date"
    if days <= SATURATION_DAYS:
        return "deadline within 36 hours"
    return f"due in {days:.1f} days"


def rank_locally(
    tasks: Sequence[TaskRecord],
    now: Optional[datetime.datetime] = None,
) -> Dict[str, Any]:
    """Deterministic ranking in the oracle's response shape."""
    scored = [
        (compute_priority_score(task.stress_score, task.due_date, now), task)
        for task in tasks
    ]
    # sorted() is stable: equal scores keep their input order.
    ranked = sorted(scored, key=lambda pair: -pair[0])

    order = []
    for rank, (priority, task) in enumerate(ranked):
        days = days_until_due(task.due_date, now)
        order.append({
            "taskId": task.id,
            "sequence": rank + 1,
            "category": CATEGORY_IMMEDIATE if rank < IMMEDIATE_SLOTS else CATEGORY_PLANNED,
            "reason": (
                f"Stress {task.stress_score}, {_describe_deadline(days)}; "
                f"priority {priority:.1f}."
            ),
        })
    return {"executionOrder": order, "dailyStrategy": FALLBACK_STRATEGY}


class Prioritizer:
    def __init__(self, orchestrator: FallbackOrchestrator):
        self.orchestrator = orchestrator

    def prioritize(
        self,
        tasks: Sequence[TaskRecord],
        *,
        now: Optional[datetime.datetime] = None,
    ) -> PrioritizationResult:
        snapshot = tuple(tasks)
        if not snapshot:
            return PrioritizationResult(execution_order=(), daily_strategy=EMPTY_STRATEGY)

        request = OracleRequest(
            prompt=self._build_prompt(snapshot, now),
            system_instruction=SYSTEM_INSTRUCTION,
            response_schema=RESPONSE_SCHEMA,
        )
        result = self.orchestrator.call_with_degradation(
            request,
            lambda: rank_locally(snapshot, now),
            parser=make_order_parser([task.id for task in snapshot]),
        )
        logger.info(f"Prioritizer: ranked {len(snapshot)} tasks (source={result.source})")

        return PrioritizationResult(
            execution_order=tuple(
                PrioritizedTask(
                    task_id=item["taskId"],
                    sequence=item["sequence"],
                    category=item["category"],
                    reason=item["reason"],
                )
                for item in result.data["executionOrder"]
            ),
            daily_strategy=result.data["dailyStrategy"],
            source=result.source,
        )

    def _build_prompt(
        self,
        tasks: Sequence[TaskRecord],
        now: Optional[datetime.datetime],
    ) -> str:
        workload: List[Dict[str, Any]] = []
        for task in tasks:
            days = days_until_due(task.due_date, now)
            workload.append({
                "taskId": task.id,
                "title": task.title,
                "description": task.description,
                "kind": task.kind.value,
                "stressScore": task.stress_score,
                "dueDate": task.due_date.isoformat() if task.due_date else None,
                "daysUntilDue": round(days, 2) if days is not None else None,
            })
        return (
            f"Current student workload data: {json.dumps(workload)}\n\n"
            f"Return an executionOrder containing each of the {len(workload)} "
            f"tasks exactly once with sequence numbers 1 to {len(workload)} "
            "(1 = do first), a category and a short reason for each, and a "
            "dailyStrategy sentence."
        )
