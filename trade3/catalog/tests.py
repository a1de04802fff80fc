"""
Test suite for the catalogue
Tests: product codes and barcodes, token search, category tree filter,
store stock annotation, price types and last purchase price
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from trade3.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from trade3.catalog.models import Product, Barcode


class CategoryAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_filter_by_parent(self):
        root = TestDataFactory.create_category(name='Toys')
        TestDataFactory.create_category(name='Puzzles', parent=root)
        response = self.client.get('/api/v1/categories/', {'parent': root.id})
        self.assertEqual([c['name'] for c in response.data], ['Puzzles'])
        response = self.client.get('/api/v1/categories/', {'parent': 'root'})
        self.assertEqual([c['name'] for c in response.data], ['Toys'])

    def test_category_cannot_become_its_own_descendant(self):
        root = TestDataFactory.create_category(name='Root')
        child = TestDataFactory.create_category(name='Child', parent=root)
        response = self.client.patch(f'/api/v1/categories/{root.id}/', {'parent': child.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProductAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.category = TestDataFactory.create_category(name='Pens')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_product_generates_code(self):
        data = {'name': 'Blue pen', 'category': self.category.id, 'barcodes': ['4600001', ' 4600001 ', '4600002']}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'P-10000')
        self.assertEqual(response.data['barcodes'], ['4600001', '4600002'])

    def test_duplicate_name_in_category(self):
        TestDataFactory.create_product(name='Blue pen', category=self.category)
        data = {'name': 'Blue pen', 'category': self.category.id}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_replaces_barcodes(self):
        product = TestDataFactory.create_product(category=self.category, barcodes=['111', '222'])
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'barcodes': ['222', '333']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(sorted(response.data['barcodes']), ['222', '333'])
        self.assertFalse(Barcode.objects.filter(value='111').exists())

        response = self.client.get(f'/api/v1/products/{product.id}/')
        self.assertEqual(sorted(response.data['barcodes']), ['222', '333'])

    def test_barcode_taken_by_another_product_is_conflict(self):
        TestDataFactory.create_product(barcodes=['999'])
        data = {'name': 'Red pen', 'category': self.category.id, 'barcodes': ['999']}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(Product.objects.filter(name='Red pen').exists())

    def test_search_requires_every_token(self):
        TestDataFactory.create_product(name='Blue gel pen', category=self.category)
        TestDataFactory.create_product(name='Blue marker', category=self.category)
        TestDataFactory.create_product(name='Red gel pen', category=self.category, article='RG-7')

        response = self.client.get('/api/v1/products/', {'query': 'pen blue'})
        self.assertEqual([p['name'] for p in response.data['results']], ['Blue gel pen'])
        response = self.client.get('/api/v1/products/', {'query': 'rg-7'})
        self.assertEqual(response.data['count'], 1)

    def test_search_by_barcode_token(self):
        product = TestDataFactory.create_product(category=self.category, barcodes=['4820000123'])
        response = self.client.get('/api/v1/products/', {'query': '0000123'})
        self.assertEqual([p['id'] for p in response.data['results']], [product.id])

    def test_category_filter_includes_descendants(self):
        child = TestDataFactory.create_category(name='Gel pens', parent=self.category)
        grandchild = TestDataFactory.create_category(name='Thin gel pens', parent=child)
        other = TestDataFactory.create_category(name='Paper')
        TestDataFactory.create_product(name='A', category=self.category)
        TestDataFactory.create_product(name='B', category=grandchild)
        TestDataFactory.create_product(name='C', category=other)

        response = self.client.get('/api/v1/products/', {'category': self.category.id})
        self.assertEqual([p['name'] for p in response.data['results']], ['A', 'B'])

    def test_store_filter_annotates_stock(self):
        store = TestDataFactory.create_store()
        stocked = TestDataFactory.create_product(name='Stocked', category=self.category)
        TestDataFactory.create_product(name='Empty', category=self.category)
        TestDataFactory.create_stock(store, stocked, '4', '10.00')

        response = self.client.get('/api/v1/products/', {'store': store.id})
        quantities = {p['name']: p['stock_quantity'] for p in response.data['results']}
        self.assertEqual(Decimal(quantities['Stocked']), Decimal('4'))
        self.assertIsNone(quantities['Empty'])

    def test_pagination(self):
        for index in range(5):
            TestDataFactory.create_product(name=f'Item {index}', category=self.category)
        response = self.client.get('/api/v1/products/', {'limit': 2, 'page': 2})
        self.assertEqual(response.data['count'], 5)
        self.assertEqual(response.data['total_pages'], 3)
        self.assertEqual([p['name'] for p in response.data['results']], ['Item 2', 'Item 3'])

    def test_delete_product_used_in_document_is_conflict(self):
        store = TestDataFactory.create_store()
        product = TestDataFactory.create_product(category=self.category)
        TestDataFactory.create_purchase(store, [(product, '1', '5.00')])
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)


class LastPurchasePriceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store()
        self.product = TestDataFactory.create_product()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_no_purchases(self):
        response = self.client.get(f'/api/v1/products/{self.product.id}/last-purchase-price/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['price'])

    def test_only_completed_purchases_count(self):
        TestDataFactory.create_stock(self.store, self.product, '1', '10.00')
        latest = TestDataFactory.create_stock(self.store, self.product, '1', '12.50')
        TestDataFactory.create_purchase(self.store, [(self.product, '1', '99.00')])

        response = self.client.get(f'/api/v1/products/{self.product.id}/last-purchase-price/')
        self.assertEqual(response.data['price'], '12.50')
        self.assertEqual(response.data['document']['code'], latest.code)

    def test_store_filter(self):
        other_store = TestDataFactory.create_store()
        TestDataFactory.create_stock(self.store, self.product, '1', '10.00')
        TestDataFactory.create_stock(other_store, self.product, '1', '20.00')
        response = self.client.get(
            f'/api/v1/products/{self.product.id}/last-purchase-price/', {'store': self.store.id}
        )
        self.assertEqual(response.data['price'], '10.00')


class PriceAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_price_list_filters(self):
        retail = TestDataFactory.create_price_type(name='Retail')
        wholesale = TestDataFactory.create_price_type(name='Wholesale')
        product = TestDataFactory.create_product()
        TestDataFactory.create_price(product, retail, Decimal('15.00'))
        TestDataFactory.create_price(product, wholesale, Decimal('12.00'))

        response = self.client.get('/api/v1/prices/', {'product': product.id, 'price_type': retail.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['value'], '15.00')

    def test_duplicate_price_type(self):
        TestDataFactory.create_price_type(name='Retail')
        response = self.client.post('/api/v1/price-types/', {'name': 'Retail'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
