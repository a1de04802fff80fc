"""
Test suite for price history
Tests: price-change documents write the price ledger, current prices follow the latest
ledger row, reverting restores the previous value
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from trade3.catalog.models import Price
from trade3.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from trade3.documents.models import STATUS_CANCELLED, STATUS_COMPLETED, STATUS_DRAFT
from trade3.documents.services import price_change_workflow
from trade3.pricing import services
from trade3.pricing.models import PriceLedger


class PriceLedgerServiceTests(TestCase):

    def setUp(self):
        self.product = TestDataFactory.create_product()
        self.retail = TestDataFactory.create_price_type(name='Retail')

    def change_price(self, value, status=STATUS_COMPLETED, date=None):
        data = {}
        if date is not None:
            data['date'] = date
        return price_change_workflow.create(
            data,
            items=[{'product': self.product, 'price_type': self.retail, 'new_value': Decimal(value)}],
            status=status,
        )

    def current_price(self):
        return Price.objects.get(product=self.product, price_type=self.retail).value

    def test_completed_document_sets_price(self):
        document = self.change_price('15.00')
        self.assertEqual(self.current_price(), Decimal('15.00'))

        entry = PriceLedger.objects.get(document_price_change=document)
        self.assertEqual(entry.value_before, Decimal('0'))
        self.assertEqual(entry.value, Decimal('15.00'))
        self.assertEqual(entry.batch_id, document.code)

    def test_draft_does_not_touch_prices(self):
        self.change_price('15.00', status=STATUS_DRAFT)
        self.assertFalse(Price.objects.filter(product=self.product).exists())
        self.assertFalse(PriceLedger.objects.exists())

    def test_old_value_captured_when_item_added(self):
        self.change_price('15.00')
        document = self.change_price('18.00', status=STATUS_DRAFT)
        self.assertEqual(document.items.get().old_value, Decimal('15.00'))

    def test_revert_restores_previous_price(self):
        self.change_price('15.00')
        second = self.change_price('18.00')
        self.assertEqual(self.current_price(), Decimal('18.00'))

        price_change_workflow.update_status(second, STATUS_CANCELLED)
        self.assertEqual(self.current_price(), Decimal('15.00'))
        self.assertEqual(PriceLedger.objects.filter(document_price_change=second).count(), 2)

    def test_backdated_change_does_not_override_newer_price(self):
        now = timezone.now()
        self.change_price('20.00', date=now - timedelta(days=1))
        self.change_price('12.00', date=now - timedelta(days=5))
        self.assertEqual(self.current_price(), Decimal('20.00'))

    def test_rebalance_without_history_removes_price(self):
        TestDataFactory.create_price(self.product, self.retail, Decimal('9.99'))
        self.assertIsNone(services.rebalance_product_price(self.product.id, self.retail.id))
        self.assertFalse(Price.objects.filter(product=self.product).exists())


class PriceLedgerAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product()
        self.retail = TestDataFactory.create_price_type(name='Retail')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_price_ledger_list(self):
        document = price_change_workflow.create(
            {}, items=[{'product': self.product, 'price_type': self.retail, 'new_value': Decimal('5.00')}],
            status=STATUS_COMPLETED,
        )
        response = self.client.get('/api/v1/price-ledger/', {'product': self.product.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['document_code'], document.code)
        self.assertEqual(response.data['results'][0]['value'], '5.00')
