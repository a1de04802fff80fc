"""
Test suite for stores and cashboxes
Tests: admin-only store changes, soft delete, cached store list, cashbox filtering
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from trade3.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from trade3.locations.cache import get_cached_store_list
from trade3.locations.models import Store


class StoreAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_store_requires_admin(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.post('/api/v1/stores/', {'name': 'Corner shop'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.post('/api/v1/stores/', {'name': 'Corner shop'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['cashboxes'], [])

    def test_duplicate_store_name(self):
        TestDataFactory.create_store(name='Main')
        response = self.client.post('/api/v1/stores/', {'name': 'Main'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_store_list_is_cached_and_invalidated(self):
        store = TestDataFactory.create_store(name='Alpha')
        response = self.client.get('/api/v1/stores/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['name'] for s in response.data], ['Alpha'])
        self.assertIsNotNone(get_cached_store_list('active'))

        TestDataFactory.create_cashbox(store=store, name='Till 1')
        self.assertIsNone(get_cached_store_list('active'))

        response = self.client.get('/api/v1/stores/')
        self.assertEqual(response.data[0]['cashboxes'][0]['name'], 'Till 1')

    def test_soft_delete_hides_store(self):
        store = TestDataFactory.create_store()
        response = self.client.delete(f'/api/v1/stores/{store.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        store.refresh_from_db()
        self.assertIsNotNone(store.deleted_at)
        self.assertFalse(store.is_usable)
        self.assertTrue(Store.objects.filter(pk=store.pk).exists())

        response = self.client.get(f'/api/v1/stores/{store.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get('/api/v1/stores/', {'include_inactive': 'true'})
        self.assertNotIn(store.id, [s['id'] for s in response.data])

    def test_inactive_store_listed_only_on_request(self):
        TestDataFactory.create_store(name='Closed', is_active=False)
        response = self.client.get('/api/v1/stores/')
        self.assertEqual(response.data, [])
        response = self.client.get('/api/v1/stores/', {'include_inactive': '1'})
        self.assertEqual(len(response.data), 1)


class CashboxAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_filter_by_store(self):
        other_store = TestDataFactory.create_store()
        TestDataFactory.create_cashbox(store=self.store, name='A')
        TestDataFactory.create_cashbox(store=other_store, name='B')
        response = self.client.get('/api/v1/cashboxes/', {'store': self.store.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['name'] for c in response.data], ['A'])

    def test_cannot_attach_to_deleted_store(self):
        self.store.soft_delete()
        response = self.client.post('/api/v1/cashboxes/', {'name': 'Till', 'store': self.store.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_and_delete(self):
        cashbox = TestDataFactory.create_cashbox(store=self.store, name='Old')
        response = self.client.patch(f'/api/v1/cashboxes/{cashbox.id}/', {'name': 'New'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'New')
        response = self.client.delete(f'/api/v1/cashboxes/{cashbox.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
