# tasks/pulse_engine/cache.py

import json
import hashlib
import logging
from typing import Callable, Optional

from django.core.cache import caches
from django.conf import settings

from .records import SOURCE_LOCAL, StressAssessment

# Configure logging for distributed systems monitoring
logger = logging.getLogger(__name__)


class StressScoreCache:
    """
    Memo of oracle stress assessments, keyed by the normalized task text.

    Uses Django's cache framework (Redis in production) so identical
    assignments fanned out to a cohort, or re-created by several students,
    are scored by the oracle once.

    - Deterministic SHA256 keys over title + description + version.
    - Local-tier (fallback) assessments are never cached, so a transient
      outage does not pin every future task at the neutral score.
    - Cache backend failures are logged and bypassed.
    """

    def __init__(
        self,
        ttl: int = 86400,
        version: str = "v1",
        cache_alias: str = "default",
    ):
        """
        Args:
            ttl: Time-to-live in seconds (default: 24 hours).
            version: Bumped when the scoring prompt or schema changes.
            cache_alias: The Django cache alias to utilize.
        """
        self.ttl = getattr(settings, "AI_CACHE_TTL", ttl)
        self.version = version
        self.cache_alias = cache_alias

    @property
    def _cache(self):
        return caches[self.cache_alias]

    def get_or_set(
        self,
        title: str,
        description: str,
        scoring_func: Callable[[], StressAssessment],
    ) -> StressAssessment:
        cache_key = self._generate_key(title, description)

        cached = self._read(cache_key)
        if cached is not None:
            logger.debug(f"Stress cache hit: {cache_key}")
            return cached

        logger.info(f"Stress cache miss: {cache_key}. Invoking scorer.")
        assessment = scoring_func()

        if assessment.source != SOURCE_LOCAL:
            try:
                self._cache.set(cache_key, assessment.as_dict(), timeout=self.ttl)
            except Exception as e:
                logger.error(f"Cache persistence failure: {str(e)}")

        return assessment

    def _read(self, cache_key: str) -> Optional[StressAssessment]:
        try:
            payload = self._cache.get(cache_key)
        except Exception as e:
            logger.error(f"Cache retrieval failure: {str(e)}")
            return None
        if payload is None:
            return None
        return StressAssessment(
            score=payload["score"],
            justification=payload["justification"],
            estimated_hours=payload["estimated_hours"],
            source=payload["source"],
        )

    def _generate_key(self, title: str, description: str) -> str:
        """Case and surrounding whitespace do not change the key."""
        payload = {
            "title": title.strip().lower(),
            "description": description.strip().lower(),
            "version": self.version,
        }
        serialized_payload = json.dumps(payload, sort_keys=True)
        hash_digest = hashlib.sha256(serialized_payload.encode()).hexdigest()

        return f"stress_score_{self.version}_{hash_digest}"
