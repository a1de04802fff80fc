"""
Test suite for vendors and clients
"""
from django.test import TestCase
from rest_framework import status
from trade3.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from trade3.parties.models import Vendor


class VendorAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_vendor(self):
        data = {'name': 'Paper Mill', 'phone': '555-0101', 'email': 'sales@mill.test'}
        response = self.client.post('/api/v1/vendors/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_active'])
        self.assertTrue(Vendor.objects.filter(name='Paper Mill').exists())

    def test_search_and_active_filter(self):
        TestDataFactory.create_vendor(name='Paper Mill', email='sales@mill.test')
        TestDataFactory.create_vendor(name='Toy Factory', is_active=False)

        response = self.client.get('/api/v1/vendors/', {'search': 'MILL'})
        self.assertEqual([v['name'] for v in response.data], ['Paper Mill'])
        response = self.client.get('/api/v1/vendors/', {'is_active': 'false'})
        self.assertEqual([v['name'] for v in response.data], ['Toy Factory'])

    def test_vendor_with_purchases_cannot_be_deleted(self):
        vendor = TestDataFactory.create_vendor()
        store = TestDataFactory.create_store()
        product = TestDataFactory.create_product()
        TestDataFactory.create_purchase(store, [(product, '1', '1.00')], vendor=vendor)

        response = self.client.delete(f'/api/v1/vendors/{vendor.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)


class ClientAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_update_and_delete_client(self):
        client = TestDataFactory.create_client(name='Walk-in')
        response = self.client.patch(f'/api/v1/clients/{client.id}/', {'phone': '555-0199'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['phone'], '555-0199')

        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.get(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_missing_name(self):
        response = self.client.post('/api/v1/clients/', {'phone': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
