# tasks/tests/test_orchestration.py
"""
Oracle Orchestration Integration Tests
======================================

Integration tests for everything that talks to the reasoning oracle.

Test Philosophy:
----------------
- Mock the OpenAI API so tests are free and deterministic
- Every failure path must end in a valid, labelled result
- Stress scores are written once and never overwritten

Test Categories:
----------------
1. Oracle client: error-code mapping and JSON decoding
2. Degrade chain: PRIMARY -> SECONDARY -> LOCAL transitions
3. Stress scorer and its cache
4. Celery workers writing scores back to the database
"""

from __future__ import annotations

import datetime
import json
from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

from django.contrib.auth import get_user_model
from django.core.cache import caches
from django.test import TestCase, override_settings
from django.utils import timezone
from openai import APITimeoutError, AuthenticationError, RateLimitError

from classes.models import Classroom
from tasks.models import Task
from tasks.pulse_engine.cache import StressScoreCache
from tasks.pulse_engine.celery_tasks import (
    score_assignment_stress,
    score_pending_tasks,
    score_task_stress,
)
from tasks.pulse_engine.insight import EMPTY_INSIGHT, FALLBACK_INSIGHT, wellness_insight
from tasks.pulse_engine.oracle import OracleClient, OracleRequest, OracleUnavailableError
from tasks.pulse_engine.orchestrator import (
    FallbackOrchestrator,
    OracleTier,
    build_default_orchestrator,
)
from tasks.pulse_engine.prioritizer import Prioritizer, make_order_parser
from tasks.pulse_engine.records import (
    NEUTRAL_STRESS_SCORE,
    SOURCE_LOCAL,
    SOURCE_PRIMARY,
    SOURCE_SECONDARY,
    AggregateStats,
    RiskTier,
    StressAssessment,
    TaskKind,
    TaskRecord,
)
from tasks.pulse_engine.stress_scorer import (
    FALLBACK_JUSTIFICATION,
    StressScorer,
    parse_assessment,
)

User = get_user_model()

LOCMEM_CACHE = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "pulse-tests",
    }
}


# ===========================================================================
# HELPER FIXTURES
# ===========================================================================


def create_mock_openai_response(payload: Any) -> MagicMock:
    """Chat completion whose first choice carries ``payload`` (dict or raw str)."""
    mock_choice = MagicMock()
    mock_choice.message.content = payload if isinstance(payload, str) else json.dumps(payload)

    mock_response = MagicMock()
    mock_response.choices = [mock_choice]
    return mock_response


def make_tier(name: str, *, returns: Any = None, raises: Exception = None) -> OracleTier:
    client = MagicMock()
    client.model = f"{name}-model"
    if raises is not None:
        client.generate.side_effect = raises
    else:
        client.generate.return_value = returns
    return OracleTier(name, client)


def unavailable(code: str = "TIMEOUT") -> OracleUnavailableError:
    return OracleUnavailableError(code, "tier down")


def make_record(task_id: str, stress: int = 50) -> TaskRecord:
    return TaskRecord(
        id=task_id,
        title=f"Task {task_id}",
        description="",
        kind=TaskKind.PERSONAL,
        owner_id="1",
        stress_score=stress,
    )


def create_test_student(email: str = "student@example.com") -> Any:
    return User.objects.create_user(
        email=email,
        username=email.split("@")[0],
        password="testpass123",
        role=User.Role.STUDENT,
    )


def scorer_returning(score: int, source: str = SOURCE_PRIMARY) -> MagicMock:
    scorer = MagicMock()
    scorer.score.return_value = StressAssessment(
        score=score,
        justification="Heavy research component.",
        estimated_hours=6.0,
        source=source,
    )
    return scorer


SAMPLE_REQUEST = OracleRequest(prompt="data", system_instruction="role", response_schema={"type": "object"})


# ===========================================================================
# ORACLE CLIENT TESTS
# ===========================================================================


class TestOracleClient(TestCase):
    """OpenAI wrapper: configuration, error codes and decoding."""

    @override_settings(OPENAI_API_KEY=None)
    def test_missing_key_is_not_configured(self) -> None:
        """Deferred init: no exception until generate() is called."""
        client = OracleClient()

        self.assertFalse(client.is_configured)
        with self.assertRaises(OracleUnavailableError) as ctx:
            client.generate(SAMPLE_REQUEST)
        self.assertEqual(ctx.exception.error_code, "NOT_CONFIGURED")

    @patch("tasks.pulse_engine.oracle.OpenAI")
    def test_sdk_retries_are_disabled(self, mock_openai_class: MagicMock) -> None:
        OracleClient(api_key="test-key", model="gpt-4o-mini")

        mock_openai_class.assert_called_once_with(api_key="test-key", max_retries=0)

    @patch("tasks.pulse_engine.oracle.OpenAI")
    def test_successful_call_returns_decoded_object(self, mock_openai_class: MagicMock) -> None:
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.return_value = create_mock_openai_response({"score": 70})

        client = OracleClient(api_key="test-key", model="gpt-4o-mini", timeout=4.0)
        result = client.generate(SAMPLE_REQUEST)

        self.assertEqual(result, {"score": 70})
        call_kwargs = mock_client.chat.completions.create.call_args.kwargs
        self.assertEqual(call_kwargs["model"], "gpt-4o-mini")
        self.assertEqual(call_kwargs["timeout"], 4.0)
        self.assertEqual(call_kwargs["response_format"], {"type": "json_object"})
        self.assertIn("JSON schema", call_kwargs["messages"][0]["content"])
        self.assertEqual(call_kwargs["messages"][1], {"role": "user", "content": "data"})

    @patch("tasks.pulse_engine.oracle.OpenAI")
    def test_rate_limit_maps_to_error_code(self, mock_openai_class: MagicMock) -> None:
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_response = MagicMock()
        mock_response.status_code = 429
        mock_client.chat.completions.create.side_effect = RateLimitError(
            message="Rate limit exceeded",
            response=mock_response,
            body=None,
        )

        client = OracleClient(api_key="test-key")
        with self.assertRaises(OracleUnavailableError) as ctx:
            client.generate(SAMPLE_REQUEST)
        self.assertEqual(ctx.exception.error_code, "RATE_LIMIT")

    @patch("tasks.pulse_engine.oracle.OpenAI")
    def test_auth_failure_maps_to_error_code(self, mock_openai_class: MagicMock) -> None:
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_response = MagicMock()
        mock_response.status_code = 401
        mock_client.chat.completions.create.side_effect = AuthenticationError(
            message="Invalid key",
            response=mock_response,
            body=None,
        )

        client = OracleClient(api_key="bad-key")
        with self.assertRaises(OracleUnavailableError) as ctx:
            client.generate(SAMPLE_REQUEST)
        self.assertEqual(ctx.exception.error_code, "AUTH_ERROR")

    @patch("tasks.pulse_engine.oracle.OpenAI")
    def test_timeout_maps_to_error_code(self, mock_openai_class: MagicMock) -> None:
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.side_effect = APITimeoutError(request=MagicMock())

        client = OracleClient(api_key="test-key")
        with self.assertRaises(OracleUnavailableError) as ctx:
            client.generate(SAMPLE_REQUEST)
        self.assertEqual(ctx.exception.error_code, "TIMEOUT")

    @patch("tasks.pulse_engine.oracle.OpenAI")
    def test_malformed_json_maps_to_parse_error(self, mock_openai_class: MagicMock) -> None:
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.return_value = create_mock_openai_response("not json {")

        client = OracleClient(api_key="test-key")
        with self.assertRaises(OracleUnavailableError) as ctx:
            client.generate(SAMPLE_REQUEST)
        self.assertEqual(ctx.exception.error_code, "JSON_PARSE_ERROR")

    @patch("tasks.pulse_engine.oracle.OpenAI")
    def test_empty_and_non_object_responses(self, mock_openai_class: MagicMock) -> None:
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        client = OracleClient(api_key="test-key")

        mock_client.chat.completions.create.return_value = create_mock_openai_response("")
        with self.assertRaises(OracleUnavailableError) as ctx:
            client.generate(SAMPLE_REQUEST)
        self.assertEqual(ctx.exception.error_code, "EMPTY_RESPONSE")

        mock_client.chat.completions.create.return_value = create_mock_openai_response("[1, 2]")
        with self.assertRaises(OracleUnavailableError) as ctx:
            client.generate(SAMPLE_REQUEST)
        self.assertEqual(ctx.exception.error_code, "JSON_PARSE_ERROR")


# ===========================================================================
# DEGRADE CHAIN TESTS
# ===========================================================================


class TestFallbackOrchestrator(TestCase):
    """PRIMARY -> SECONDARY -> LOCAL, one attempt per tier."""

    def test_primary_success_skips_secondary(self) -> None:
        primary = make_tier(SOURCE_PRIMARY, returns={"value": 1})
        secondary = make_tier(SOURCE_SECONDARY, returns={"value": 2})
        fallback = MagicMock(return_value={"value": 3})

        result = FallbackOrchestrator([primary, secondary]).call_with_degradation(SAMPLE_REQUEST, fallback)

        self.assertEqual(result.source, SOURCE_PRIMARY)
        self.assertEqual(result.data, {"value": 1})
        self.assertFalse(result.degraded)
        secondary.client.generate.assert_not_called()
        fallback.assert_not_called()

    def test_primary_failure_moves_to_secondary(self) -> None:
        primary = make_tier(SOURCE_PRIMARY, raises=unavailable("RATE_LIMIT"))
        secondary = make_tier(SOURCE_SECONDARY, returns={"value": 2})

        result = FallbackOrchestrator([primary, secondary]).call_with_degradation(
            SAMPLE_REQUEST, lambda: {"value": 3}
        )

        self.assertEqual(result.source, SOURCE_SECONDARY)
        self.assertTrue(result.degraded)
        self.assertEqual([f.error_code for f in result.failures], ["RATE_LIMIT"])
        primary.client.generate.assert_called_once()

    def test_both_tiers_failing_runs_local_handler(self) -> None:
        primary = make_tier(SOURCE_PRIMARY, raises=unavailable("TIMEOUT"))
        secondary = make_tier(SOURCE_SECONDARY, raises=unavailable("CONNECTION_ERROR"))

        result = FallbackOrchestrator([primary, secondary]).call_with_degradation(
            SAMPLE_REQUEST, lambda: {"value": 3}
        )

        self.assertEqual(result.source, SOURCE_LOCAL)
        self.assertEqual(result.data, {"value": 3})
        self.assertEqual([f.tier for f in result.failures], [SOURCE_PRIMARY, SOURCE_SECONDARY])
        # Each tier is tried exactly once; no retries inside the sweep.
        primary.client.generate.assert_called_once()
        secondary.client.generate.assert_called_once()

    def test_parser_rejection_counts_as_tier_failure(self) -> None:
        primary = make_tier(SOURCE_PRIMARY, returns={"wrong": "shape"})
        secondary = make_tier(SOURCE_SECONDARY, returns={"score": 10, "justification": "ok", "estimatedHours": 1})

        result = FallbackOrchestrator([primary, secondary]).call_with_degradation(
            SAMPLE_REQUEST, lambda: {}, parser=parse_assessment
        )

        self.assertEqual(result.source, SOURCE_SECONDARY)
        self.assertEqual(result.failures[0].error_code, "SCHEMA_MISMATCH")

    def test_unexpected_exception_still_degrades(self) -> None:
        primary = make_tier(SOURCE_PRIMARY, raises=RuntimeError("boom"))

        result = FallbackOrchestrator([primary]).call_with_degradation(SAMPLE_REQUEST, lambda: {"ok": True})

        self.assertEqual(result.source, SOURCE_LOCAL)
        self.assertEqual(result.failures[0].error_code, "UNEXPECTED_ERROR")

    def test_no_tiers_goes_straight_to_local(self) -> None:
        result = FallbackOrchestrator([]).call_with_degradation(SAMPLE_REQUEST, lambda: {"ok": True})

        self.assertEqual(result.source, SOURCE_LOCAL)
        self.assertEqual(result.failures, [])

    @override_settings(
        OPENAI_API_KEY=None,
        PULSE_PRIMARY_MODEL="model-a",
        PULSE_SECONDARY_MODEL="model-b",
        PULSE_ORACLE_TIMEOUT=3,
    )
    def test_default_orchestrator_from_settings(self) -> None:
        orchestrator = build_default_orchestrator()

        health = orchestrator.health_check()
        self.assertEqual(health["tiers"][SOURCE_PRIMARY]["model"], "model-a")
        self.assertEqual(health["tiers"][SOURCE_SECONDARY]["model"], "model-b")
        self.assertEqual(health["tiers"][SOURCE_PRIMARY]["timeout"], 3.0)
        self.assertFalse(health["tiers"][SOURCE_PRIMARY]["is_configured"])

        # Unconfigured tiers fail fast into the local handler.
        result = orchestrator.call_with_degradation(SAMPLE_REQUEST, lambda: {"ok": True})
        self.assertEqual(result.source, SOURCE_LOCAL)
        self.assertEqual({f.error_code for f in result.failures}, {"NOT_CONFIGURED"})


# ===========================================================================
# STRESS SCORER TESTS
# ===========================================================================


class TestStressScorer(TestCase):

    def test_oracle_score_is_used(self) -> None:
        primary = make_tier(
            SOURCE_PRIMARY,
            returns={"score": 82, "justification": " Final exam prep. ", "estimatedHours": 12},
        )

        assessment = StressScorer(FallbackOrchestrator([primary])).score("Finals", "All chapters")

        self.assertEqual(assessment.score, 82)
        self.assertEqual(assessment.justification, "Final exam prep.")
        self.assertEqual(assessment.estimated_hours, 12.0)
        self.assertEqual(assessment.source, SOURCE_PRIMARY)
        prompt = primary.client.generate.call_args.args[0].prompt
        self.assertIn("Finals", prompt)
        self.assertIn("All chapters", prompt)

    def test_total_failure_gives_neutral_score(self) -> None:
        orchestrator = FallbackOrchestrator([
            make_tier(SOURCE_PRIMARY, raises=unavailable()),
            make_tier(SOURCE_SECONDARY, raises=unavailable()),
        ])

        assessment = StressScorer(orchestrator).score("Essay", "")

        self.assertEqual(assessment.score, NEUTRAL_STRESS_SCORE)
        self.assertEqual(assessment.justification, FALLBACK_JUSTIFICATION)
        self.assertEqual(assessment.source, SOURCE_LOCAL)

    def test_out_of_range_oracle_score_is_clamped(self) -> None:
        self.assertEqual(parse_assessment({"score": 180, "justification": "x", "estimatedHours": 1})["score"], 100)
        self.assertEqual(parse_assessment({"score": -4, "justification": "x", "estimatedHours": 1})["score"], 0)

    def test_non_numeric_score_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            parse_assessment({"score": "high", "justification": "x", "estimatedHours": 1})
        with self.assertRaises(ValueError):
            parse_assessment({"score": True, "justification": "x", "estimatedHours": 1})
        with self.assertRaises(ValueError):
            parse_assessment({"justification": "x", "estimatedHours": 1})


@override_settings(CACHES=LOCMEM_CACHE)
class TestStressScoreCache(TestCase):

    def setUp(self) -> None:
        caches["default"].clear()

    def test_identical_text_is_scored_once(self) -> None:
        primary = make_tier(SOURCE_PRIMARY, returns={"score": 64, "justification": "x", "estimatedHours": 3})
        scorer = StressScorer(FallbackOrchestrator([primary]), cache=StressScoreCache())

        first = scorer.score("Lab report", "Titration")
        second = scorer.score("  LAB REPORT ", "titration")

        self.assertEqual(first, second)
        primary.client.generate.assert_called_once()

    def test_local_results_are_not_cached(self) -> None:
        primary = make_tier(SOURCE_PRIMARY, raises=unavailable())
        scorer = StressScorer(FallbackOrchestrator([primary]), cache=StressScoreCache())

        scorer.score("Lab report", "Titration")
        scorer.score("Lab report", "Titration")

        self.assertEqual(primary.client.generate.call_count, 2)

    def test_version_changes_the_key(self) -> None:
        self.assertNotEqual(
            StressScoreCache(version="v1")._generate_key("a", "b"),
            StressScoreCache(version="v2")._generate_key("a", "b"),
        )


# ===========================================================================
# ORACLE-BACKED PRIORITIZATION AND INSIGHT
# ===========================================================================


class TestOraclePrioritization(TestCase):

    def _answer(self, order: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {"executionOrder": order, "dailyStrategy": "Deep work first."}

    def test_valid_oracle_order_is_used(self) -> None:
        tasks = [make_record("a"), make_record("b")]
        answer = self._answer([
            {"taskId": "b", "sequence": 1, "category": "Immediate Action", "reason": "Due soon"},
            {"taskId": "a", "sequence": 2, "category": "Planned", "reason": "Later"},
        ])
        orchestrator = FallbackOrchestrator([make_tier(SOURCE_PRIMARY, returns=answer)])

        result = Prioritizer(orchestrator).prioritize(tasks)

        self.assertEqual([p.task_id for p in result.execution_order], ["b", "a"])
        self.assertEqual(result.daily_strategy, "Deep work first.")
        self.assertFalse(result.is_heuristic)

    def test_oracle_order_with_gaps_falls_through(self) -> None:
        """A non-dense answer is a schema mismatch, not a crash."""
        tasks = [make_record("a", 10), make_record("b", 90)]
        bad = self._answer([
            {"taskId": "a", "sequence": 1, "category": "Planned", "reason": ""},
            {"taskId": "b", "sequence": 3, "category": "Planned", "reason": ""},
        ])
        orchestrator = FallbackOrchestrator([
            make_tier(SOURCE_PRIMARY, returns=bad),
            make_tier(SOURCE_SECONDARY, raises=unavailable()),
        ])

        result = Prioritizer(orchestrator).prioritize(tasks)

        self.assertEqual(result.source, SOURCE_LOCAL)
        self.assertEqual([p.task_id for p in result.execution_order], ["b", "a"])
        self.assertEqual([p.sequence for p in result.execution_order], [1, 2])

    def test_order_parser_rejects_unknown_or_missing_ids(self) -> None:
        parse = make_order_parser(["a", "b"])

        with self.assertRaises(ValueError):
            parse(self._answer([{"taskId": "a", "sequence": 1}, {"taskId": "z", "sequence": 2}]))
        with self.assertRaises(ValueError):
            parse(self._answer([{"taskId": "a", "sequence": 1}]))
        with self.assertRaises(ValueError):
            parse({"executionOrder": [{"taskId": "a", "sequence": 1}, {"taskId": "b", "sequence": 2}]})

    def test_order_parser_sorts_by_sequence(self) -> None:
        parse = make_order_parser(["a", "b"])

        parsed = parse(self._answer([{"taskId": "a", "sequence": 2}, {"taskId": "b", "sequence": 1}]))

        self.assertEqual([item["taskId"] for item in parsed["executionOrder"]], ["b", "a"])


class TestWellnessInsight(TestCase):

    def _stats(self, active: int) -> AggregateStats:
        return AggregateStats(
            score=40,
            risk_tier=RiskTier.MODERATE,
            active_task_count=active,
            total_load=200,
            readiness=60,
            time_buckets=(),
        )

    def test_no_active_tasks_skips_oracle(self) -> None:
        orchestrator = MagicMock()

        result = wellness_insight(orchestrator, self._stats(0))

        self.assertEqual(result, {"insight": EMPTY_INSIGHT, "source": SOURCE_LOCAL})
        orchestrator.call_with_degradation.assert_not_called()

    def test_fallback_insight_when_oracle_down(self) -> None:
        orchestrator = FallbackOrchestrator([make_tier(SOURCE_PRIMARY, raises=unavailable())])

        result = wellness_insight(orchestrator, self._stats(3))

        self.assertEqual(result, {"insight": FALLBACK_INSIGHT, "source": SOURCE_LOCAL})


# ===========================================================================
# CELERY TASK TESTS (Synchronous)
# ===========================================================================


@override_settings(CACHES=LOCMEM_CACHE)
class TestStressScoringExecution(TestCase):
    """Workers run in-process via .apply(); no broker needed."""

    def setUp(self) -> None:
        self.student = create_test_student()

    def _create_task(self, **kwargs) -> Task:
        defaults = {"owner": self.student, "title": "Research paper", "description": "10 pages"}
        defaults.update(kwargs)
        return Task.objects.create(**defaults)

    @patch("tasks.services.build_stress_scorer")
    def test_score_is_written_back_once(self, mock_build: MagicMock) -> None:
        mock_build.return_value = scorer_returning(77)
        task = self._create_task()

        result = score_task_stress.apply(args=[task.id]).get()

        self.assertEqual(result["score"], 77)
        task.refresh_from_db()
        self.assertTrue(task.is_scored)
        self.assertEqual(task.stress_score, 77)
        self.assertEqual(task.estimated_hours, 6.0)
        self.assertEqual(task.stress_justification, "Heavy research component.")

    @patch("tasks.services.build_stress_scorer")
    def test_already_scored_task_is_not_rescored(self, mock_build: MagicMock) -> None:
        task = self._create_task(stress_score=30, is_scored=True)

        result = score_task_stress.apply(args=[task.id]).get()

        self.assertIsNone(result)
        mock_build.assert_not_called()
        task.refresh_from_db()
        self.assertEqual(task.stress_score, 30)

    @patch("tasks.services.build_stress_scorer")
    def test_missing_task_returns_none(self, mock_build: MagicMock) -> None:
        result = score_task_stress.apply(args=[99999]).get()

        self.assertIsNone(result)
        mock_build.assert_not_called()

    @patch("tasks.services.build_stress_scorer")
    def test_local_fallback_score_is_persisted(self, mock_build: MagicMock) -> None:
        mock_build.return_value = scorer_returning(NEUTRAL_STRESS_SCORE, source=SOURCE_LOCAL)
        task = self._create_task()

        score_task_stress.apply(args=[task.id]).get()

        task.refresh_from_db()
        self.assertTrue(task.is_scored)
        self.assertEqual(task.stress_score, NEUTRAL_STRESS_SCORE)

    @patch("tasks.services.build_stress_scorer")
    def test_assignment_scored_once_and_copied(self, mock_build: MagicMock) -> None:
        scorer = scorer_returning(88)
        mock_build.return_value = scorer
        classroom = Classroom.objects.create(name="Chemistry")
        other = create_test_student("second@example.com")
        tasks = [
            Task.objects.create(
                owner=owner,
                classroom=classroom,
                kind=Task.Kind.INSTITUTIONAL,
                title="Midterm",
                description="Units 1-4",
            )
            for owner in (self.student, other)
        ]

        score_assignment_stress.apply(args=[[t.id for t in tasks]]).get()

        scorer.score.assert_called_once_with("Midterm", "Units 1-4")
        for task in tasks:
            task.refresh_from_db()
            self.assertEqual(task.stress_score, 88)
            self.assertTrue(task.is_scored)

    def _backdate(self, *tasks: Task) -> None:
        Task.objects.filter(pk__in=[t.pk for t in tasks]).update(
            created_at=timezone.now() - datetime.timedelta(hours=1)
        )

    @patch("tasks.pulse_engine.celery_tasks.group")
    def test_pending_sweep_dispatches_stale_unscored_only(self, mock_group: MagicMock) -> None:
        stale = [self._create_task(title="Pending one"), self._create_task(title="Pending two")]
        self._backdate(*stale)
        self._create_task(title="Just created")
        self._backdate(self._create_task(title="Done", is_scored=True))

        count = score_pending_tasks.apply().get()

        self.assertEqual(count, 2)
        jobs = mock_group.call_args.args[0]
        self.assertEqual(sorted(job.args[0] for job in jobs), sorted(t.id for t in stale))
        mock_group.return_value.apply_async.assert_called_once()

    @patch("tasks.pulse_engine.celery_tasks.group")
    def test_pending_sweep_scores_each_assignment_once(self, mock_group: MagicMock) -> None:
        classroom = Classroom.objects.create(name="History")
        other = create_test_student("second@example.com")
        fanned_out = [
            self._create_task(
                owner=owner,
                classroom=classroom,
                kind=Task.Kind.INSTITUTIONAL,
                title="Midterm",
                description="Units 1-4",
            )
            for owner in (self.student, other)
        ]
        personal = self._create_task(title="Reading log")
        self._backdate(personal, *fanned_out)

        count = score_pending_tasks.apply().get()

        self.assertEqual(count, 2)
        jobs = {job.task.rsplit(".", 1)[-1]: job for job in mock_group.call_args.args[0]}
        self.assertEqual(jobs["score_task_stress"].args, (personal.id,))
        self.assertEqual(
            sorted(jobs["score_assignment_stress"].args[0]), sorted(t.id for t in fanned_out)
        )

    @patch("tasks.pulse_engine.celery_tasks.group")
    def test_pending_sweep_skips_in_flight_rows(self, mock_group: MagicMock) -> None:
        self._create_task(title="Queued moments ago")

        self.assertEqual(score_pending_tasks.apply().get(), 0)
        mock_group.assert_not_called()

    @patch("tasks.pulse_engine.celery_tasks.group")
    def test_pending_sweep_with_nothing_to_do(self, mock_group: MagicMock) -> None:
        self.assertEqual(score_pending_tasks.apply().get(), 0)
        mock_group.assert_not_called()
