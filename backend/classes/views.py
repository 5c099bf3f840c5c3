# classes/views.py

import datetime

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from tasks.pulse_engine import aggregator
from tasks.services import cohort_task_records, local_now, window_policy_from_settings

from .models import Classroom
from .permissions import ClassroomTeacherPermission, IsStudent, IsTeacher
from .serializers import AssignmentSerializer, ClassroomSerializer, JoinClassroomSerializer
from .services import assign_to_classroom, create_classroom, join_classroom

User = get_user_model()


class ClassroomListCreateView(generics.ListCreateAPIView):
    """
    GET: Classes the user teaches (teachers) or has joined (students).
    POST: Create a class owned by the authenticated teacher.
    """
    serializer_class = ClassroomSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsTeacher()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        if user.is_teacher:
            return user.taught_classes.all()
        return user.enrolled_classes.all()

    def perform_create(self, serializer):
        serializer.instance = create_classroom(self.request.user, serializer.validated_data['name'])

list_create_view = ClassroomListCreateView.as_view()


class JoinClassroomView(APIView):
    """POST {code}: enrol the authenticated student."""
    permission_classes = [IsStudent]

    def post(self, request):
        serializer = JoinClassroomSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        classroom = join_classroom(request.user, serializer.validated_data['code'])
        if classroom is None:
            return Response({"detail": "No class matches this code."}, status=status.HTTP_404_NOT_FOUND)
        return Response(ClassroomSerializer(classroom).data)

join_view = JoinClassroomView.as_view()


class TeacherClassroomMixin:
    permission_classes = [IsTeacher, ClassroomTeacherPermission]

    def get_classroom(self, request, pk):
        classroom = get_object_or_404(Classroom, pk=pk)
        self.check_object_permissions(request, classroom)
        return classroom


class AssignmentCreateView(TeacherClassroomMixin, APIView):
    """
    POST {title, description, due_date}: assign work to every enrolled
    student. The response carries the load advisory for that date as it
    stood before the assignment.
    """

    def post(self, request, pk):
        classroom = self.get_classroom(request, pk)
        serializer = AssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        advisory = aggregator.assess_cohort_date_load(cohort_task_records(classroom), data['due_date'])
        tasks = assign_to_classroom(classroom, data['title'], data['description'], data['due_date'])
        return Response(
            {"assigned": len(tasks), "advisory": advisory},
            status=status.HTTP_201_CREATED,
        )

assignment_create_view = AssignmentCreateView.as_view()


class CohortPulseView(TeacherClassroomMixin, APIView):
    """Weekly cohort load plus one row per enrolled student."""

    def get(self, request, pk):
        classroom = self.get_classroom(request, pk)
        policy = window_policy_from_settings()
        by_student = cohort_task_records(classroom)

        cohort, members = aggregator.cohort_aggregate(
            by_student, policy, now=local_now(request.user)
        )
        emails = dict(
            User.objects.filter(pk__in=list(by_student)).values_list('pk', 'email')
        )

        return Response({
            "class_id": classroom.pk,
            "cohort": cohort.as_dict(),
            "mean_score": cohort.score,
            "mean_load": aggregator.cohort_mean_load(members),
            "members": [
                {
                    "student_id": student_id,
                    "email": emails.get(int(student_id)),
                    "score": stats.score,
                    "risk_tier": stats.risk_tier.value,
                    "active_task_count": stats.active_task_count,
                    "has_personal_tasks": any(
                        not task.is_institutional for task in by_student[student_id]
                    ),
                }
                for student_id, stats in members.items()
            ],
        })

cohort_pulse_view = CohortPulseView.as_view()


class DateLoadView(TeacherClassroomMixin, APIView):
    """GET ?date=YYYY-MM-DD: advisory before scheduling work on that date."""

    def get(self, request, pk):
        classroom = self.get_classroom(request, pk)
        raw = request.query_params.get('date', '')
        try:
            on_date = datetime.date.fromisoformat(raw)
        except ValueError:
            raise ValidationError({"date": "Expected a date in YYYY-MM-DD format."})
        return Response(aggregator.assess_cohort_date_load(cohort_task_records(classroom), on_date))

date_load_view = DateLoadView.as_view()
