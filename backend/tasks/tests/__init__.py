# tasks/tests/__init__.py
"""
Task App Test Suite
===================

Modules:
--------
- test_engine: Unit tests for the pulse engine math (urgency, aggregation,
  local prioritization, record boundary)
- test_orchestration: Oracle client, degrade chain, stress scoring, cache
  and Celery workers with the OpenAI API mocked out
- test_api: HTTP endpoints for tasks, pulse, prioritization and insight

Running Tests:
--------------
    python manage.py test tasks
    python manage.py test tasks.tests.test_engine
    pytest backend/tasks
"""
