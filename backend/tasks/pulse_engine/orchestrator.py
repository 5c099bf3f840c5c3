# tasks/pulse_engine/orchestrator.py

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from django.conf import settings

from .oracle import OracleClient, OracleRequest, OracleUnavailableError
from .records import (
    SOURCE_LOCAL,
    SOURCE_PRIMARY,
    SOURCE_SECONDARY,
    OracleResult,
    TierFailure,
)

# Configure logging for pipeline auditing
logger = logging.getLogger(__name__)

Parser = Callable[[Dict[str, Any]], Dict[str, Any]]


class OracleTier:
    """One remote rung of the degrade chain: a name and the client it calls."""

    def __init__(self, name: str, client: OracleClient):
        self.name = name
        self.client = client

    def attempt(self, request: OracleRequest) -> Dict[str, Any]:
        return self.client.generate(request)

    def __repr__(self) -> str:
        return f"OracleTier({self.name!r}, model={self.client.model!r})"


class FallbackOrchestrator:
    """
    Single top-to-bottom sweep over the oracle tiers, ending in a local
    handler that cannot fail:

        PRIMARY --error--> SECONDARY --error--> LOCAL

    No tier is retried. A tier "succeeds" only when its answer decodes and
    passes the caller's parser; anything else is recorded as a TierFailure
    and the sweep moves on. The result always carries the tier that produced
    it so callers can flag heuristic answers.
    """

    def __init__(self, tiers: Sequence[OracleTier]):
        self.tiers: List[OracleTier] = list(tiers)

    def call_with_degradation(
        self,
        request: OracleRequest,
        fallback_handler: Callable[[], Dict[str, Any]],
        parser: Optional[Parser] = None,
    ) -> OracleResult:
        """
        Args:
            request: Prompt, system instruction and response schema.
            fallback_handler: Pure local computation for the LOCAL state.
            parser: Validates/normalizes a decoded oracle answer. Raises
                ValueError (or TypeError/KeyError) on schema mismatch.
        """
        failures: List[TierFailure] = []

        for tier in self.tiers:
            try:
                raw = tier.attempt(request)
                data = parser(raw) if parser is not None else raw
            except OracleUnavailableError as e:
                failures.append(TierFailure(tier.name, e.error_code, e.message))
                logger.warning(f"Orchestrator: tier '{tier.name}' unavailable ({e.error_code})")
                continue
            except (ValueError, TypeError, KeyError) as e:
                failures.append(TierFailure(tier.name, "SCHEMA_MISMATCH", str(e)))
                logger.warning(f"Orchestrator: tier '{tier.name}' returned an invalid shape: {e}")
                continue
            except Exception as e:
                failures.append(TierFailure(tier.name, "UNEXPECTED_ERROR", str(e)))
                logger.exception(f"Orchestrator: tier '{tier.name}' failed unexpectedly: {e}")
                continue

            logger.info(f"Orchestrator: answered by tier '{tier.name}'")
            return OracleResult(data=data, source=tier.name, failures=failures)

        logger.info(
            f"Orchestrator: all remote tiers failed "
            f"({', '.join(f.tier for f in failures) or 'none configured'}); using local heuristic"
        )
        return OracleResult(data=fallback_handler(), source=SOURCE_LOCAL, failures=failures)

    def health_check(self) -> Dict[str, Any]:
        return {
            "orchestrator": "healthy",
            "tiers": {tier.name: tier.client.health_check() for tier in self.tiers},
        }


def build_default_orchestrator(api_key: Optional[str] = None) -> FallbackOrchestrator:
    """Builds the primary/secondary chain from Django settings."""
    timeout = float(getattr(settings, "PULSE_ORACLE_TIMEOUT", OracleClient.DEFAULT_TIMEOUT))
    primary = OracleClient(
        api_key=api_key,
        model=getattr(settings, "PULSE_PRIMARY_MODEL", OracleClient.DEFAULT_MODEL),
        timeout=timeout,
    )
    secondary = OracleClient(
        api_key=api_key,
        model=getattr(settings, "PULSE_SECONDARY_MODEL", "gpt-4o-mini"),
        timeout=timeout,
    )
    return FallbackOrchestrator(
        [OracleTier(SOURCE_PRIMARY, primary), OracleTier(SOURCE_SECONDARY, secondary)]
    )
