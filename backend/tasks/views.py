# tasks/views.py

import logging

from rest_framework import generics, permissions
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Task
from .pulse_engine import aggregator
from .pulse_engine.insight import wellness_insight
from .pulse_engine.orchestrator import build_default_orchestrator
from .pulse_engine.records import Granularity
from .serializers import TaskSerializer
from .services import (
    build_prioritizer,
    local_now,
    student_task_records,
    to_task_records,
    window_policy_from_settings,
)

logger = logging.getLogger(__name__)


class TaskOwnerPermission(permissions.BasePermission):
    """
    Custom permission to only allow owners of a Task to view, edit, or delete it.
    """
    def has_object_permission(self, request, view, obj):
        return obj.owner_id == request.user.id


class TaskListCreateView(generics.ListCreateAPIView):
    """
    GET: List every task of the authenticated student.
    POST: Create a personal task (scored in the background).
    """
    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Task.objects.filter(owner=self.request.user)

list_create_view = TaskListCreateView.as_view()


class TaskRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET, PATCH, DELETE for a specific task instance.
    PATCH accepts only include_in_pulse and is_completed.
    """
    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated, TaskOwnerPermission]
    http_method_names = ['get', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        return Task.objects.filter(owner=self.request.user)

retrieve_update_destroy_view = TaskRetrieveUpdateDestroyView.as_view()


class OverdueTaskListView(APIView):
    """Incomplete tasks past their due date, earliest first."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        tasks = {str(t.pk): t for t in Task.objects.filter(owner=request.user)}
        late = aggregator.overdue(to_task_records(tasks.values()), now=local_now(request.user))
        return Response(TaskSerializer([tasks[r.id] for r in late], many=True).data)

overdue_list_view = OverdueTaskListView.as_view()


def _granularity(request):
    raw = request.query_params.get('granularity', Granularity.DAILY.value)
    try:
        return Granularity(raw)
    except ValueError:
        raise ValidationError({"granularity": f"Expected one of: daily, weekly. Got {raw!r}."})


class PulseView(APIView):
    """Aggregate stress of the authenticated student."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        stats = aggregator.aggregate(
            student_task_records(request.user.id),
            window_policy_from_settings(),
            now=local_now(request.user),
            granularity=_granularity(request),
        )
        return Response(stats.as_dict())

pulse_view = PulseView.as_view()


class PrioritizationView(APIView):
    """Recommended execution order over the student's open tasks."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        records = student_task_records(request.user.id, include_completed=False)
        result = build_prioritizer().prioritize(records, now=local_now(request.user))
        return Response(result.as_dict())

prioritization_view = PrioritizationView.as_view()


class InsightView(APIView):
    """One-line wellness note derived from the student's pulse."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        stats = aggregator.aggregate(
            student_task_records(request.user.id),
            window_policy_from_settings(),
            now=local_now(request.user),
        )
        return Response(wellness_insight(build_default_orchestrator(), stats))

insight_view = InsightView.as_view()
