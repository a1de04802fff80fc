"""
Test suite for the core module
Tests: login/refresh/logout with the refresh cookie, registration, user administration,
health check, sequential codes and database error mapping
"""
from io import StringIO

from django.conf import settings
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient
from trade3.catalog.models import Product, Price
from trade3.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from trade3.core.models import User, Sequence
from trade3.core.utils import get_next_code


class AuthTests(TestCase):
    """Token pair issue and rotation through the refreshToken cookie"""

    def setUp(self):
        self.user = TestDataFactory.create_user(email='cashier@test.com', password='secret123')
        self.client = APIClient()

    def login(self, email='cashier@test.com', password='secret123'):
        return self.client.post('/api/v1/auth/login/', {'email': email, 'password': password}, format='json')

    def test_login_returns_access_token_and_sets_cookie(self):
        response = self.login()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['email'], 'cashier@test.com')

        cookie = response.cookies[settings.AUTH_REFRESH_COOKIE]
        self.assertTrue(cookie['httponly'])
        self.assertEqual(int(cookie['max-age']), 7 * 24 * 60 * 60)

        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.refresh_token_hash)

    def test_login_with_wrong_password(self):
        response = self.login(password='wrong-password')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_soft_deleted_user(self):
        self.user.soft_delete()
        response = self.login()
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_rotates_cookie(self):
        login = self.login()
        old_refresh = login.cookies[settings.AUTH_REFRESH_COOKIE].value

        response = self.client.post('/api/v1/auth/refresh/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        new_refresh = response.cookies[settings.AUTH_REFRESH_COOKIE].value
        self.assertNotEqual(old_refresh, new_refresh)

        # The previous refresh token no longer matches the stored hash
        self.client.cookies.pop(settings.AUTH_REFRESH_COOKIE)
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': old_refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_without_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['code'], 'token_not_valid')
        self.assertIn('Bearer', response['WWW-Authenticate'])

    def test_refresh_with_garbage_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_revokes_refresh_token(self):
        login = self.login()
        refresh = login.cookies[settings.AUTH_REFRESH_COOKIE].value
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")

        response = self.client.post('/api/v1/auth/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertIsNone(self.user.refresh_token_hash)

        self.client.credentials()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_register_defaults_to_plain_user(self):
        data = {'email': 'new@test.com', 'password': 'newpass123'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], User.ROLE_USER)
        self.assertIn(settings.AUTH_REFRESH_COOKIE, response.cookies)

    def test_register_with_role(self):
        data = {'email': 'boss@test.com', 'password': 'bosspass123', 'role': User.ROLE_ADMIN}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], User.ROLE_ADMIN)
        self.assertEqual(User.objects.get(email='boss@test.com').role, User.ROLE_ADMIN)

    def test_register_with_unknown_role(self):
        data = {'email': 'odd@test.com', 'password': 'oddpass123', 'role': 'OWNER'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_duplicate_email(self):
        data = {'email': 'cashier@test.com', 'password': 'newpass123'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'cashier@test.com')
        self.assertFalse(response.data['is_admin'])


class UserAdminTests(TestCase):
    """User management is limited to the ADMIN role"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_plain_user_cannot_list_users(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_user(self):
        data = {'email': 'clerk@test.com', 'password': 'clerk123', 'first_name': 'Sam'}
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(User.objects.get(email='clerk@test.com').check_password('clerk123'))

    def test_update_password_drops_refresh_session(self):
        self.user.refresh_token_hash = 'stored-hash'
        self.user.save()
        response = self.client.patch(f'/api/v1/users/{self.user.id}/', {'password': 'changed123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertIsNone(self.user.refresh_token_hash)
        self.assertTrue(self.user.check_password('changed123'))

    def test_delete_is_soft(self):
        response = self.client.delete(f'/api/v1/users/{self.user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.deleted_at)
        self.assertFalse(self.user.is_active)

        response = self.client.get('/api/v1/users/')
        emails = [u['email'] for u in response.data]
        self.assertNotIn(self.user.email, emails)
        response = self.client.get(f'/api/v1/users/{self.user.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class HealthTests(TestCase):

    def test_health_is_public(self):
        for url in ('/health/', '/api/v1/health/'):
            response = APIClient().get(url)
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['status'], 'ok')
            self.assertIn('timestamp', response.data)


class CodeSequenceTests(TestCase):

    def test_product_codes_start_at_ten_thousand(self):
        self.assertEqual(get_next_code('product'), 'P-10000')
        self.assertEqual(get_next_code('product'), 'P-10001')

    def test_document_sequences_are_independent(self):
        self.assertEqual(get_next_code('sale'), 'S-1')
        self.assertEqual(get_next_code('sale'), 'S-2')
        self.assertEqual(get_next_code('transfer'), 'T-1')
        self.assertEqual(get_next_code('price_change'), 'PC-1')
        self.assertEqual(Sequence.objects.get(name='sale').last_value, 2)


class ErrorMappingTests(TestCase):
    """Database errors escaping the views become 404/409 responses"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_deleting_referenced_category_is_conflict(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/categories/{product.category_id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['status_code'], status.HTTP_409_CONFLICT)

    def test_malformed_identifier_is_not_found(self):
        response = self.client.get('/api/v1/purchases/', {'store': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Invalid identifier.')


class SeedDataCommandTests(TestCase):

    def test_seed_is_idempotent(self):
        call_command('seed_data', '--products-per-category', '2', '--seed', '1', stdout=StringIO())
        products = Product.objects.count()
        self.assertEqual(products, 18 * 2)
        self.assertEqual(Price.objects.filter(price_type__name='Retail').count(), products)

        call_command('seed_data', '--products-per-category', '2', stdout=StringIO())
        self.assertEqual(Product.objects.count(), products)
