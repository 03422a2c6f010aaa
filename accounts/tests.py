"""
Tests for sign-up, login and role capabilities.
"""
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from accounts.models import Capability, Profile, Role


class ProfileCapabilityTestCase(TestCase):

    def setUp(self):
        User = get_user_model()
        self.admin = Profile.objects.create(
            user=User.objects.create_user(username='a@example.com'), name='Admin', role=Role.ADMIN
        )
        self.operator = Profile.objects.create(
            user=User.objects.create_user(username='p@example.com'), name='Counter', role=Role.POS
        )

    def test_admin_holds_every_capability(self):
        for capability in Capability:
            self.assertTrue(self.admin.has_capability(capability))
        self.assertEqual(self.admin.home_path, '/dashboard')

    def test_operator_sells_but_does_not_manage(self):
        self.assertTrue(self.operator.has_capability(Capability.PROCESS_SALES))
        self.assertTrue(self.operator.has_capability('view_inventory'))
        self.assertFalse(self.operator.has_capability(Capability.MANAGE_INVENTORY))
        self.assertFalse(self.operator.has_capability(Capability.VIEW_DASHBOARD))
        self.assertEqual(self.operator.home_path, '/pos')

    def test_role_survives_reload(self):
        reloaded = Profile.objects.get(pk=self.operator.pk)
        self.assertEqual(reloaded.capabilities, self.operator.capabilities)
        self.assertFalse(reloaded.has_capability(Capability.MANAGE_INVENTORY))


@override_settings(RATE_LIMIT_ENABLED=False)
class AuthApiTestCase(TestCase):
    """Test cases for the auth endpoints."""

    def setUp(self):
        self.client = APIClient()

    def signup(self, **overrides):
        data = {
            'email': 'Cashier@Example.com',
            'password': 'secret1',
            'password_confirm': 'secret1',
            'name': 'Front Counter',
            'role': 'pos',
        }
        data.update(overrides)
        return self.client.post('/api/auth/signup/', data, format='json')

    def test_signup_creates_user_and_profile(self):
        response = self.signup()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['email'], 'cashier@example.com')
        self.assertEqual(response.data['role'], 'pos')
        self.assertEqual(response.data['home_path'], '/pos')
        self.assertTrue(Profile.objects.filter(user__username='cashier@example.com').exists())

    def test_signup_password_mismatch(self):
        response = self.signup(password_confirm='secret2')

        self.assertEqual(response.status_code, 400)
        self.assertIn('Passwords do not match', str(response.data['detail']))
        self.assertEqual(get_user_model().objects.count(), 0)

    def test_signup_short_password(self):
        response = self.signup(password='abc', password_confirm='abc')

        self.assertEqual(response.status_code, 400)
        self.assertIn('at least 6 characters', str(response.data['detail']))

    def test_signup_duplicate_email(self):
        self.signup()
        response = self.signup(email='cashier@example.com')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['detail'], 'User already registered')
        self.assertEqual(Profile.objects.count(), 1)

    def test_login_redirects_by_role(self):
        self.signup(email='boss@example.com', role='admin')
        self.signup()

        admin = self.client.post(
            '/api/auth/login/', {'email': 'boss@example.com', 'password': 'secret1'}, format='json'
        )
        self.client.post('/api/auth/logout/')
        operator = self.client.post(
            '/api/auth/login/', {'email': 'cashier@example.com', 'password': 'secret1'}, format='json'
        )

        self.assertEqual(admin.data['redirect_to'], '/dashboard')
        self.assertEqual(operator.data['redirect_to'], '/pos')

    def test_login_bad_credentials(self):
        self.signup()

        response = self.client.post(
            '/api/auth/login/', {'email': 'cashier@example.com', 'password': 'wrong!'}, format='json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['detail'], 'Invalid login credentials')

    def test_login_without_profile_is_refused(self):
        get_user_model().objects.create_user(username='orphan@example.com', password='secret1')

        response = self.client.post(
            '/api/auth/login/', {'email': 'orphan@example.com', 'password': 'secret1'}, format='json'
        )

        self.assertEqual(response.status_code, 403)

    def test_me_reflects_session(self):
        self.assertIsNone(self.client.get('/api/auth/me/').data['user'])

        self.signup()
        self.client.post(
            '/api/auth/login/', {'email': 'cashier@example.com', 'password': 'secret1'}, format='json'
        )
        me = self.client.get('/api/auth/me/').data['user']
        self.assertEqual(me['name'], 'Front Counter')
        self.assertEqual(me['capabilities'], ['process_sales', 'view_inventory'])

        self.client.post('/api/auth/logout/')
        self.assertIsNone(self.client.get('/api/auth/me/').data['user'])
