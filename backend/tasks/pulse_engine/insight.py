# tasks/pulse_engine/insight.py

import logging
from typing import Any, Dict

from .oracle import OracleRequest
from .orchestrator import FallbackOrchestrator
from .records import SOURCE_LOCAL, AggregateStats

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a warm, empathetic academic mentor. Avoid corporate speak. "
    "Be human and brief."
)

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"insight": {"type": "string", "description": "One or two sentences."}},
    "required": ["insight"],
}

FALLBACK_INSIGHT = "Your mental health is the engine of your success."
EMPTY_INSIGHT = "No tasks detected. Your academic pulse is in deep rest state."


def parse_insight(data: Dict[str, Any]) -> Dict[str, Any]:
    insight = data.get("insight")
    if not isinstance(insight, str) or not insight.strip():
        raise ValueError("insight is missing")
    return {"insight": insight.strip()}


def wellness_insight(orchestrator: FallbackOrchestrator, stats: AggregateStats) -> Dict[str, str]:
    """Short supportive note for a student's current pulse."""
    if stats.active_task_count == 0:
        return {"insight": EMPTY_INSIGHT, "source": SOURCE_LOCAL}

    request = OracleRequest(
        prompt=(
            f"Student stats: stress {stats.score}%, risk {stats.risk_tier.value}, "
            f"active tasks {stats.active_task_count}, readiness {stats.readiness}%.\n"
            "Provide a brief, non-cliche academic wellness insight."
        ),
        system_instruction=SYSTEM_INSTRUCTION,
        response_schema=RESPONSE_SCHEMA,
    )
    result = orchestrator.call_with_degradation(
        request, lambda: {"insight": FALLBACK_INSIGHT}, parser=parse_insight
    )
    if result.source == SOURCE_LOCAL:
        logger.info("Insight: remote tiers unavailable, serving fallback note")
    return {"insight": result.data["insight"], "source": result.source}
