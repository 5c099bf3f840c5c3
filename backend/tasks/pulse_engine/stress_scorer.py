# tasks/pulse_engine/stress_scorer.py

import logging
from typing import Any, Dict, Optional

from .cache import StressScoreCache
from .oracle import OracleRequest
from .orchestrator import FallbackOrchestrator
from .records import NEUTRAL_STRESS_SCORE, StressAssessment, clamp_stress

logger = logging.getLogger(__name__)

FALLBACK_JUSTIFICATION = (
    "Automatic assessment unavailable; a neutral load estimate was applied."
)
FALLBACK_ESTIMATED_HOURS = 1.0

SYSTEM_INSTRUCTION = (
    "You are an educational strategist and psychologist. Quantify academic "
    "workload precisely. Return a numeric score from 0 to 100 where 100 is a "
    "high-stakes final exam level of effort."
)

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "score": {"type": "number", "description": "Stress impact score from 0 to 100."},
        "justification": {
            "type": "string",
            "description": "A 1-2 sentence explanation of the score based on cognitive demand.",
        },
        "estimatedHours": {"type": "number", "description": "Estimated hours of focused work."},
    },
    "required": ["score", "justification", "estimatedHours"],
}


def parse_assessment(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate an oracle answer; clamps values, rejects missing or non-numeric ones."""
    missing = [key for key in RESPONSE_SCHEMA["required"] if key not in data]
    if missing:
        raise ValueError(f"Missing keys in scoring response: {', '.join(missing)}")

    score, hours = data["score"], data["estimatedHours"]
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValueError(f"score is not numeric: {score!r}")
    if isinstance(hours, bool) or not isinstance(hours, (int, float)):
        raise ValueError(f"estimatedHours is not numeric: {hours!r}")
    if not isinstance(data["justification"], str):
        raise ValueError("justification is not a string")

    return {
        "score": clamp_stress(score),
        "justification": data["justification"].strip(),
        "estimatedHours": max(0.0, float(hours)),
    }


def fallback_assessment() -> Dict[str, Any]:
    return {
        "score": NEUTRAL_STRESS_SCORE,
        "justification": FALLBACK_JUSTIFICATION,
        "estimatedHours": FALLBACK_ESTIMATED_HOURS,
    }


class StressScorer:
    """Scores one task's cognitive load through the oracle degrade chain."""

    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        cache: Optional[StressScoreCache] = None,
    ):
        self.orchestrator = orchestrator
        self.cache = cache

    def score(self, title: str, description: str) -> StressAssessment:
        if self.cache is None:
            return self._score(title, description)
        return self.cache.get_or_set(
            title, description, lambda: self._score(title, description)
        )

    def _score(self, title: str, description: str) -> StressAssessment:
        request = OracleRequest(
            prompt=self._build_prompt(title, description),
            system_instruction=SYSTEM_INSTRUCTION,
            response_schema=RESPONSE_SCHEMA,
        )
        result = self.orchestrator.call_with_degradation(
            request, fallback_assessment, parser=parse_assessment
        )
        assessment = StressAssessment(
            score=result.data["score"],
            justification=result.data["justification"],
            estimated_hours=result.data["estimatedHours"],
            source=result.source,
        )
        logger.info(
            f"StressScorer: '{title}' scored {assessment.score} (source={assessment.source})"
        )
        return assessment

    def _build_prompt(self, title: str, description: str) -> str:
        return (
            "Evaluate the following assignment using Bloom's Taxonomy and "
            "Cognitive Load Theory.\n"
            f"Title: {title}\n"
            f"Description: {description}\n\n"
            "Consider:\n"
            "- Estimated hours of deep work required.\n"
            "- Complexity of research vs. execution.\n"
            "- Likely emotional tax on the student."
        )
