# users/tests.py
"""
Users App Test Suite
====================

Registration, role handling and JWT login with the email field.
"""

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

User = get_user_model()

STRONG_PASSWORD = 'Pulse-check-2041'


class CustomUserModelTest(TestCase):

    def test_email_is_normalized(self):
        user = User.objects.create_user(email='Ana@EXAMPLE.com', username='ana', password=STRONG_PASSWORD)

        self.assertEqual(user.email, 'Ana@example.com')
        self.assertEqual(user.role, User.Role.UNSET)

    def test_email_is_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', username='nobody', password=STRONG_PASSWORD)

    def test_role_helpers(self):
        teacher = User.objects.create_user(
            email='t@example.com', username='t', password=STRONG_PASSWORD, role=User.Role.TEACHER
        )

        self.assertTrue(teacher.is_teacher)
        self.assertFalse(teacher.is_student)

    def test_superuser_flags(self):
        admin = User.objects.create_superuser(email='admin@example.com', password=STRONG_PASSWORD, username='admin')

        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)
        self.assertEqual(admin.role, User.Role.TEACHER)

    def test_unknown_role_rejected(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='x@example.com', username='x', password=STRONG_PASSWORD, role='ADMIN')


class AuthApiTest(APITestCase):

    def _register(self, **overrides):
        payload = {
            'email': 'ana@example.com',
            'username': 'ana',
            'password': STRONG_PASSWORD,
            'password2': STRONG_PASSWORD,
            'role': 'STUDENT',
        }
        payload.update(overrides)
        return self.client.post(reverse('auth_register'), payload, format='json')

    def test_register_with_role(self):
        response = self._register()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn('password', response.data)
        self.assertEqual(User.objects.get(email='ana@example.com').role, User.Role.STUDENT)

    def test_role_defaults_to_student(self):
        payload = {
            'email': 'cal@example.com',
            'username': 'cal',
            'password': STRONG_PASSWORD,
            'password2': STRONG_PASSWORD,
        }
        response = self.client.post(reverse('auth_register'), payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(email='cal@example.com').role, User.Role.STUDENT)

    def test_unset_role_not_selectable(self):
        response = self._register(role='UNSET')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_timezone_rejected(self):
        response = self._register(timezone='Mars/Olympus_Mons')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('timezone', response.data)

    def test_timezone_is_stored(self):
        response = self._register(timezone='America/Los_Angeles')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(email='ana@example.com').timezone, 'America/Los_Angeles')

    def test_password_mismatch_rejected(self):
        response = self._register(password2='Something-else-77')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_duplicate_email_rejected(self):
        self._register()

        response = self._register(username='ana2')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_token_carries_role(self):
        self._register(role='TEACHER')

        response = self.client.post(
            reverse('token_obtain_pair'),
            {'email': 'ana@example.com', 'password': STRONG_PASSWORD},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        token = AccessToken(response.data['access'])
        self.assertEqual(token['role'], 'TEACHER')
        self.assertEqual(token['email'], 'ana@example.com')

    def test_user_detail_requires_auth(self):
        response = self.client.get(reverse('user_detail'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_user_detail(self):
        self._register()
        user = User.objects.get(email='ana@example.com')
        self.client.force_authenticate(user=user)

        response = self.client.get(reverse('user_detail'))

        self.assertEqual(response.data['email'], 'ana@example.com')
        self.assertEqual(response.data['role'], 'STUDENT')

    def test_user_detail_lists_enrolled_classes(self):
        from classes.models import Classroom

        self._register()
        user = User.objects.get(email='ana@example.com')
        classroom = Classroom.objects.create(name='Physics')
        classroom.students.add(user)
        self.client.force_authenticate(user=user)

        response = self.client.get(reverse('user_detail'))

        self.assertEqual(response.data['class_ids'], [classroom.pk])
