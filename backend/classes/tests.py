# classes/tests.py
"""
Classes App Test Suite
======================

Tests for classrooms, join codes, assignment fan-out and the teacher-facing
cohort views.

Test Categories:
----------------
1. Classroom / Task Model Tests - Join codes and institutional invariants
2. Class API Tests - Create, join, permissions
3. Assignment Tests - Fan-out, background scoring, date advisory
4. Cohort Pulse Tests - Privacy and aggregate figures
"""

import datetime
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from tasks.models import Task

from .models import JOIN_CODE_LENGTH, Classroom

User = get_user_model()


def make_user(email, role):
    return User.objects.create_user(
        email=email,
        username=email.split('@')[0],
        password='testpass123',
        role=role,
    )


def in_days(days):
    return timezone.now().date() + datetime.timedelta(days=days)


# ===========================================================================
# MODEL TESTS
# ===========================================================================

class ClassroomModelTest(TestCase):

    def test_join_code_generated(self):
        classroom = Classroom.objects.create(name='Biology')

        self.assertEqual(len(classroom.code), JOIN_CODE_LENGTH)
        self.assertTrue(classroom.code.isalnum())
        self.assertEqual(classroom.code, classroom.code.upper())

    def test_join_codes_are_unique(self):
        codes = {Classroom.objects.create(name=f'Class {i}').code for i in range(20)}

        self.assertEqual(len(codes), 20)

    def test_code_survives_resave(self):
        classroom = Classroom.objects.create(name='Biology')
        code = classroom.code

        classroom.name = 'Advanced Biology'
        classroom.save()

        self.assertEqual(classroom.code, code)


class InstitutionalTaskModelTest(TestCase):
    """Institutional tasks always reference a class and always count."""

    def setUp(self):
        self.student = make_user('student@example.com', User.Role.STUDENT)
        self.classroom = Classroom.objects.create(name='History')

    def test_requires_classroom(self):
        with self.assertRaises(ValidationError):
            Task.objects.create(owner=self.student, kind=Task.Kind.INSTITUTIONAL, title='Essay')

    def test_cannot_be_private(self):
        with self.assertRaises(ValidationError):
            Task.objects.create(
                owner=self.student,
                classroom=self.classroom,
                kind=Task.Kind.INSTITUTIONAL,
                title='Essay',
                is_private=True,
            )

    def test_inclusion_forced_on(self):
        task = Task.objects.create(
            owner=self.student,
            classroom=self.classroom,
            kind=Task.Kind.INSTITUTIONAL,
            title='Essay',
            include_in_pulse=False,
        )

        self.assertTrue(task.include_in_pulse)


# ===========================================================================
# CLASS API TESTS
# ===========================================================================

class ClassroomApiTest(APITestCase):

    def setUp(self):
        self.teacher = make_user('teacher@example.com', User.Role.TEACHER)
        self.student = make_user('student@example.com', User.Role.STUDENT)

    def test_teacher_creates_class(self):
        self.client.force_authenticate(user=self.teacher)

        response = self.client.post(reverse('class-list-create'), {'name': 'Algebra'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['teacher_emails'], ['teacher@example.com'])
        self.assertEqual(len(response.data['code']), JOIN_CODE_LENGTH)
        self.assertTrue(self.teacher.taught_classes.filter(name='Algebra').exists())

    def test_student_cannot_create_class(self):
        self.client.force_authenticate(user=self.student)

        response = self.client.post(reverse('class-list-create'), {'name': 'Algebra'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_student_joins_with_code_case_insensitive(self):
        classroom = Classroom.objects.create(name='Algebra')
        self.client.force_authenticate(user=self.student)

        response = self.client.post(reverse('class-join'), {'code': classroom.code.lower()}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['student_count'], 1)
        self.assertTrue(classroom.students.filter(pk=self.student.pk).exists())

    def test_unknown_code_is_not_found(self):
        self.client.force_authenticate(user=self.student)

        response = self.client.post(reverse('class-join'), {'code': 'ZZZZZZ'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_teacher_cannot_join_as_student(self):
        classroom = Classroom.objects.create(name='Algebra')
        self.client.force_authenticate(user=self.teacher)

        response = self.client.post(reverse('class-join'), {'code': classroom.code}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_is_role_specific(self):
        taught = Classroom.objects.create(name='Taught')
        taught.teachers.add(self.teacher)
        joined = Classroom.objects.create(name='Joined')
        joined.students.add(self.student)

        self.client.force_authenticate(user=self.teacher)
        self.assertEqual([c['name'] for c in self.client.get(reverse('class-list-create')).data], ['Taught'])

        self.client.force_authenticate(user=self.student)
        self.assertEqual([c['name'] for c in self.client.get(reverse('class-list-create')).data], ['Joined'])


# ===========================================================================
# ASSIGNMENT TESTS
# ===========================================================================

class AssignmentApiTest(APITestCase):

    def setUp(self):
        self.teacher = make_user('teacher@example.com', User.Role.TEACHER)
        self.students = [
            make_user('ana@example.com', User.Role.STUDENT),
            make_user('ben@example.com', User.Role.STUDENT),
        ]
        self.classroom = Classroom.objects.create(name='Chemistry')
        self.classroom.teachers.add(self.teacher)
        self.classroom.students.add(*self.students)
        self.client.force_authenticate(user=self.teacher)
        self.url = reverse('class-assignments', args=[self.classroom.pk])

    @patch('classes.services.score_assignment_stress.delay')
    def test_assignment_fans_out_and_scores_once(self, mock_delay):
        payload = {'title': 'Lab 3', 'description': 'Kinetics', 'due_date': in_days(5).isoformat()}

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(self.url, payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['assigned'], 2)

        tasks = Task.objects.filter(classroom=self.classroom)
        self.assertEqual(tasks.count(), 2)
        self.assertEqual({t.owner_id for t in tasks}, {s.pk for s in self.students})
        for task in tasks:
            self.assertEqual(task.kind, Task.Kind.INSTITUTIONAL)
            self.assertTrue(task.include_in_pulse)
            self.assertFalse(task.is_scored)
        mock_delay.assert_called_once()
        self.assertEqual(sorted(mock_delay.call_args.args[0]), sorted(t.id for t in tasks))

    @patch('classes.services.score_assignment_stress.delay')
    def test_advisory_reflects_existing_load(self, mock_delay):
        due = in_days(6)
        Task.objects.create(owner=self.students[0], title='Quiz prep', stress_score=70, is_scored=True, due_date=due)
        payload = {'title': 'Lab 3', 'description': 'Kinetics', 'due_date': due.isoformat()}

        response = self.client.post(self.url, payload, format='json')

        self.assertEqual(response.data['advisory']['load'], 70)
        self.assertEqual(response.data['advisory']['advisory'], 'HIGH')
        self.assertEqual(response.data['advisory']['students_at_risk'], [str(self.students[0].pk)])

    @patch('classes.services.score_assignment_stress.delay')
    def test_empty_class_assigns_nothing(self, mock_delay):
        empty = Classroom.objects.create(name='Empty')
        empty.teachers.add(self.teacher)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                reverse('class-assignments', args=[empty.pk]),
                {'title': 'Lab', 'description': 'x', 'due_date': in_days(2).isoformat()},
                format='json',
            )

        self.assertEqual(response.data['assigned'], 0)
        mock_delay.assert_not_called()

    def test_other_teacher_is_forbidden(self):
        self.client.force_authenticate(user=make_user('other@example.com', User.Role.TEACHER))

        response = self.client.post(
            self.url, {'title': 'Lab', 'description': 'x', 'due_date': in_days(2).isoformat()}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_date_load_requires_valid_date(self):
        response = self.client.get(reverse('class-date-load', args=[self.classroom.pk]), {'date': 'soon'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_date_load_counts_cohort_visible_tasks_only(self):
        due = in_days(3)
        Task.objects.create(owner=self.students[0], title='Visible', stress_score=50, is_scored=True, due_date=due)
        Task.objects.create(
            owner=self.students[1], title='Hidden', stress_score=95, is_scored=True,
            due_date=due, is_private=True, include_in_pulse=False,
        )

        response = self.client.get(
            reverse('class-date-load', args=[self.classroom.pk]), {'date': due.isoformat()}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['load'], 50)
        self.assertEqual(response.data['advisory'], 'CLEAR')


# ===========================================================================
# COHORT PULSE TESTS
# ===========================================================================

class CohortPulseApiTest(APITestCase):

    def setUp(self):
        self.teacher = make_user('teacher@example.com', User.Role.TEACHER)
        self.ana = make_user('ana@example.com', User.Role.STUDENT)
        self.ben = make_user('ben@example.com', User.Role.STUDENT)
        self.classroom = Classroom.objects.create(name='Chemistry')
        self.classroom.teachers.add(self.teacher)
        self.classroom.students.add(self.ana, self.ben)
        self.url = reverse('class-pulse', args=[self.classroom.pk])

        for student in (self.ana, self.ben):
            Task.objects.create(
                owner=student, classroom=self.classroom, kind=Task.Kind.INSTITUTIONAL,
                title='Midterm', stress_score=80, is_scored=True, due_date=in_days(3),
            )
        Task.objects.create(
            owner=self.ana, title='Therapy homework', stress_score=90, is_scored=True,
            due_date=in_days(3), is_private=True, include_in_pulse=False,
        )

    def test_cohort_pulse_excludes_private_tasks(self):
        self.client.force_authenticate(user=self.teacher)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cohort']['total_load'], 160)
        self.assertEqual(response.data['cohort']['risk_tier'], 'OPTIMAL')
        self.assertEqual(len(response.data['cohort']['time_buckets']), 4)
        self.assertEqual(response.data['mean_score'], 16)
        self.assertEqual(response.data['mean_load'], 80)

        members = {m['email']: m for m in response.data['members']}
        self.assertEqual(members['ana@example.com']['score'], 16)
        self.assertTrue(members['ana@example.com']['has_personal_tasks'])
        self.assertFalse(members['ben@example.com']['has_personal_tasks'])

    def test_student_cannot_view_cohort(self):
        self.client.force_authenticate(user=self.ana)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cohort_tier_does_not_grow_with_class_size(self):
        for name in ('cy', 'dee'):
            student = make_user(f'{name}@example.com', User.Role.STUDENT)
            self.classroom.students.add(student)
            Task.objects.create(
                owner=student, classroom=self.classroom, kind=Task.Kind.INSTITUTIONAL,
                title='Midterm', stress_score=80, is_scored=True, due_date=in_days(3),
            )
        self.client.force_authenticate(user=self.teacher)

        response = self.client.get(self.url)

        members = response.data['members']
        self.assertEqual(len(members), 4)
        self.assertTrue(all(m['risk_tier'] == 'OPTIMAL' for m in members))
        self.assertEqual(response.data['cohort']['total_load'], 320)
        self.assertEqual(response.data['cohort']['score'], 16)
        self.assertEqual(response.data['cohort']['risk_tier'], 'OPTIMAL')
        self.assertEqual(sum(b['raw_load'] for b in response.data['cohort']['time_buckets']), 320)
