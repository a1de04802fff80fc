"""
Comprehensive test suite for documents
Tests: purchase/sale/return/adjustment/transfer/price-change workflows through the API,
status transitions, draft-only edits, history, linked price changes and the scheduler
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from trade3.catalog.models import Price
from trade3.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from trade3.documents.models import (
    STATUS_DRAFT, STATUS_SCHEDULED, STATUS_COMPLETED, STATUS_CANCELLED,
    DocumentHistory, DocumentPurchase, DocumentSale, DocumentPriceChange, DocumentTransfer,
)
from trade3.documents.scheduler import complete_due_documents
from trade3.documents.services import sale_workflow
from trade3.inventory.models import Stock, StockLedger


def stock_of(store, product):
    stock = Stock.objects.filter(store=store, product=product).first()
    if stock is None:
        return Decimal('0'), Decimal('0')
    return stock.quantity, stock.average_purchase_price


class DocumentAPITestCase(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store()
        self.product = TestDataFactory.create_product(name='Notebook')
        self.product2 = TestDataFactory.create_product(name='Pencil')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def set_status(self, url, new_status):
        return self.client.post(f'{url}status/', {'status': new_status}, format='json')


class PurchaseAPITests(DocumentAPITestCase):

    def setUp(self):
        super().setUp()
        self.vendor = TestDataFactory.create_vendor()

    def create_purchase(self, items, **extra):
        data = {'store': self.store.id, 'vendor': self.vendor.id, 'items': items}
        data.update(extra)
        return self.client.post('/api/v1/purchases/', data, format='json')

    def test_create_draft_purchase(self):
        response = self.create_purchase([
            {'product': self.product.id, 'quantity': '10', 'price': '5.50'},
            {'product': self.product2.id, 'quantity': '2.5', 'price': '4.00'},
        ])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], STATUS_DRAFT)
        self.assertEqual(response.data['code'], 'P-1')
        self.assertEqual(response.data['total'], '65.00')
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['author'], self.user.id)
        self.assertFalse(Stock.objects.exists())

    def test_complete_purchase_moves_stock(self):
        response = self.create_purchase([{'product': self.product.id, 'quantity': '10', 'price': '5.50'}])
        url = f"/api/v1/purchases/{response.data['id']}/"

        response = self.set_status(url, STATUS_COMPLETED)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], STATUS_COMPLETED)
        self.assertEqual(stock_of(self.store, self.product), (Decimal('10'), Decimal('5.50')))

    def test_completed_on_create(self):
        response = self.create_purchase(
            [{'product': self.product.id, 'quantity': '3', 'price': '2.00'}], status=STATUS_COMPLETED,
        )
        self.assertEqual(response.data['status'], STATUS_COMPLETED)
        self.assertEqual(stock_of(self.store, self.product)[0], Decimal('3'))

    def test_future_date_is_scheduled(self):
        date = (timezone.now() + timedelta(days=2)).isoformat()
        response = self.create_purchase(
            [{'product': self.product.id, 'quantity': '3', 'price': '2.00'}], status=STATUS_COMPLETED, date=date,
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], STATUS_SCHEDULED)
        self.assertFalse(StockLedger.objects.exists())

    def test_only_drafts_can_be_edited(self):
        response = self.create_purchase(
            [{'product': self.product.id, 'quantity': '1', 'price': '1.00'}], status=STATUS_COMPLETED,
        )
        url = f"/api/v1/purchases/{response.data['id']}/"

        response = self.client.patch(url, {'notes': 'late change'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(
            f'{url}items/', {'items': [{'product': self.product2.id, 'quantity': '1', 'price': '1.00'}]},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancelled_document_is_final(self):
        response = self.create_purchase(
            [{'product': self.product.id, 'quantity': '4', 'price': '1.00'}], status=STATUS_COMPLETED,
        )
        url = f"/api/v1/purchases/{response.data['id']}/"

        response = self.set_status(url, STATUS_CANCELLED)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(stock_of(self.store, self.product)[0], Decimal('0'))

        response = self.set_status(url, STATUS_COMPLETED)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_same_status_is_noop(self):
        response = self.create_purchase([{'product': self.product.id, 'quantity': '1', 'price': '1.00'}])
        url = f"/api/v1/purchases/{response.data['id']}/"
        response = self.set_status(url, STATUS_DRAFT)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(
            DocumentHistory.objects.filter(action=DocumentHistory.ACTION_STATUS_CHANGED).exists()
        )

    def test_reverted_document_with_ledger_cannot_be_deleted(self):
        response = self.create_purchase(
            [{'product': self.product.id, 'quantity': '4', 'price': '1.00'}], status=STATUS_COMPLETED,
        )
        document_id = response.data['id']
        url = f'/api/v1/purchases/{document_id}/'
        response = self.set_status(url, STATUS_DRAFT)
        self.assertEqual(response.data['status'], STATUS_DRAFT)
        self.assertEqual(stock_of(self.store, self.product)[0], Decimal('0'))

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(DocumentPurchase.objects.filter(pk=document_id).exists())

    def test_delete_draft_keeps_history(self):
        response = self.create_purchase([{'product': self.product.id, 'quantity': '1', 'price': '1.00'}])
        document_id = response.data['id']
        response = self.client.delete(f'/api/v1/purchases/{document_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(DocumentPurchase.objects.filter(pk=document_id).exists())

        deleted = DocumentHistory.objects.get(action=DocumentHistory.ACTION_DELETED)
        self.assertIsNone(deleted.document_purchase_id)
        self.assertEqual(deleted.details['code'], 'P-1')

    def test_update_and_remove_items(self):
        response = self.create_purchase([
            {'product': self.product.id, 'quantity': '10', 'price': '5.50'},
            {'product': self.product2.id, 'quantity': '1', 'price': '3.00'},
        ])
        url = f"/api/v1/purchases/{response.data['id']}/"

        response = self.client.patch(f'{url}items/{self.product.id}/', {'quantity': '4'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '25.00')
        changed = DocumentHistory.objects.get(action=DocumentHistory.ACTION_ITEM_CHANGED)
        self.assertEqual(changed.details['changes']['quantity'], {'from': '10.000', 'to': '4.000'})

        response = self.client.delete(f'{url}items/', {'product_ids': [self.product2.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '22.00')
        self.assertEqual([item['product'] for item in response.data['items']], [self.product.id])

        response = self.client.delete(f'{url}items/', {'product_ids': [self.product2.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_product_is_conflict(self):
        response = self.create_purchase([{'product': self.product.id, 'quantity': '1', 'price': '1.00'}])
        url = f"/api/v1/purchases/{response.data['id']}/items/"
        response = self.client.post(
            url, {'items': [{'product': self.product.id, 'quantity': '2', 'price': '1.00'}]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_history(self):
        response = self.create_purchase(
            [{'product': self.product.id, 'quantity': '1', 'price': '1.00'}], status=STATUS_COMPLETED,
        )
        response = self.client.get(f"/api/v1/purchases/{response.data['id']}/history/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [entry['action'] for entry in response.data],
            [
                DocumentHistory.ACTION_CREATED,
                DocumentHistory.ACTION_ITEM_ADDED,
                DocumentHistory.ACTION_STATUS_CHANGED,
            ],
        )
        self.assertEqual(response.data[2]['details'], {'from': STATUS_DRAFT, 'to': STATUS_COMPLETED})
        self.assertEqual(response.data[0]['author_email'], self.user.email)

    def test_new_prices_create_linked_price_change(self):
        retail = TestDataFactory.create_price_type(name='Retail')
        TestDataFactory.create_price(self.product2, retail, Decimal('4.00'))

        response = self.create_purchase([
            {
                'product': self.product.id, 'quantity': '10', 'price': '5.50',
                'new_prices': [{'price_type': retail.id, 'value': '9.99'}],
            },
            {
                'product': self.product2.id, 'quantity': '1', 'price': '3.00',
                'new_prices': [{'price_type': retail.id, 'value': '4.00'}],
            },
        ])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNotNone(response.data['price_change'])
        self.assertEqual(response.data['price_change']['status'], STATUS_DRAFT)

        price_change = DocumentPriceChange.objects.get(document_purchase_id=response.data['id'])
        self.assertEqual(price_change.notes, 'Created automatically from purchase №P-1')
        item = price_change.items.get()
        self.assertEqual(item.product_id, self.product.id)
        self.assertEqual(item.old_value, Decimal('0'))
        self.assertEqual(item.new_value, Decimal('9.99'))
        # Prices only change once the price change itself is completed
        self.assertFalse(Price.objects.filter(product=self.product).exists())

        url = f"/api/v1/purchases/{response.data['id']}/items/"
        product3 = TestDataFactory.create_product()
        response = self.client.post(url, {'items': [{
            'product': product3.id, 'quantity': '1', 'price': '1.00',
            'new_prices': [{'price_type': retail.id, 'value': '2.00'}],
        }]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(DocumentPriceChange.objects.count(), 1)
        self.assertEqual(price_change.items.count(), 2)

    def test_list_filters(self):
        other_store = TestDataFactory.create_store()
        self.create_purchase([{'product': self.product.id, 'quantity': '1', 'price': '1.00'}])
        completed = self.create_purchase(
            [{'product': self.product.id, 'quantity': '1', 'price': '1.00'}], status=STATUS_COMPLETED,
        )

        response = self.client.get('/api/v1/purchases/', {'status': 'completed,scheduled'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['id'] for d in response.data['results']], [completed.data['id']])
        response = self.client.get('/api/v1/purchases/', {'store': other_store.id})
        self.assertEqual(response.data['count'], 0)
        response = self.client.get('/api/v1/purchases/', {'search': completed.data['code']})
        self.assertEqual(response.data['count'], 1)

    def test_deleted_store_is_not_found(self):
        self.store.soft_delete()
        response = self.create_purchase([{'product': self.product.id, 'quantity': '1', 'price': '1.00'}])
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(DocumentPurchase.objects.exists())

    def test_quantity_must_be_positive(self):
        response = self.create_purchase([{'product': self.product.id, 'quantity': '0', 'price': '1.00'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class SaleAPITests(DocumentAPITestCase):

    def setUp(self):
        super().setUp()
        self.cashbox = TestDataFactory.create_cashbox(store=self.store)
        self.retail = TestDataFactory.create_price_type(name='Retail')
        self.wholesale = TestDataFactory.create_price_type(name='Wholesale')
        TestDataFactory.create_price(self.product, self.retail, Decimal('12.00'))
        TestDataFactory.create_price(self.product, self.wholesale, Decimal('10.00'))
        TestDataFactory.create_stock(self.store, self.product, '10', '5.00')

    def create_sale(self, items, **extra):
        data = {'store': self.store.id, 'cashbox': self.cashbox.id, 'items': items}
        data.update(extra)
        return self.client.post('/api/v1/sales/', data, format='json')

    def test_price_defaults_to_document_price_type(self):
        response = self.create_sale([{'product': self.product.id, 'quantity': '2'}], price_type=self.wholesale.id)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['items'][0]['price'], '10.00')
        self.assertEqual(response.data['total'], '20.00')

    def test_price_defaults_to_first_price(self):
        response = self.create_sale([{'product': self.product.id, 'quantity': '1'}])
        self.assertEqual(response.data['items'][0]['price'], '12.00')

    def test_price_without_any_price_is_zero(self):
        TestDataFactory.create_stock(self.store, self.product2, '1', '1.00')
        response = self.create_sale([{'product': self.product2.id, 'quantity': '1'}])
        self.assertEqual(response.data['items'][0]['price'], '0.00')

    def test_complete_sale(self):
        response = self.create_sale(
            [{'product': self.product.id, 'quantity': '4', 'price': '12.00'}], status=STATUS_COMPLETED,
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], STATUS_COMPLETED)
        self.assertEqual(response.data['items'][0]['cost_price'], '5.00')
        self.assertEqual(stock_of(self.store, self.product), (Decimal('6'), Decimal('5.00')))

    def test_not_enough_stock(self):
        response = self.create_sale(
            [{'product': self.product.id, 'quantity': '11', 'price': '12.00'}], status=STATUS_COMPLETED,
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(DocumentSale.objects.exists())
        self.assertEqual(stock_of(self.store, self.product)[0], Decimal('10'))

    def test_cashbox_of_other_store(self):
        other_cashbox = TestDataFactory.create_cashbox()
        response = self.create_sale([{'product': self.product.id, 'quantity': '1'}], cashbox=other_cashbox.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel_sale_restores_stock(self):
        response = self.create_sale(
            [{'product': self.product.id, 'quantity': '4', 'price': '12.00'}], status=STATUS_COMPLETED,
        )
        response = self.set_status(f"/api/v1/sales/{response.data['id']}/", STATUS_CANCELLED)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(stock_of(self.store, self.product), (Decimal('10'), Decimal('5.00')))


class ReturnAPITests(DocumentAPITestCase):

    def test_return_adds_stock_at_store_wap(self):
        TestDataFactory.create_stock(self.store, self.product, '10', '5.00')
        data = {
            'store': self.store.id, 'status': STATUS_COMPLETED,
            'items': [{'product': self.product.id, 'quantity': '2', 'price': '12.00'}],
        }
        response = self.client.post('/api/v1/returns/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total'], '24.00')
        self.assertEqual(stock_of(self.store, self.product), (Decimal('12'), Decimal('5.00')))

    def test_return_uses_wap_of_other_store(self):
        other_store = TestDataFactory.create_store()
        TestDataFactory.create_stock(other_store, self.product, '1', '8.00')
        data = {
            'store': self.store.id, 'status': STATUS_COMPLETED,
            'items': [{'product': self.product.id, 'quantity': '2'}],
        }
        response = self.client.post('/api/v1/returns/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['items'][0]['price'], '0.00')
        self.assertEqual(stock_of(self.store, self.product), (Decimal('2'), Decimal('8.00')))

    def test_cancel_return_requires_stock(self):
        data = {
            'store': self.store.id, 'status': STATUS_COMPLETED,
            'items': [{'product': self.product.id, 'quantity': '2'}],
        }
        response = self.client.post('/api/v1/returns/', data, format='json')
        url = f"/api/v1/returns/{response.data['id']}/"
        sale_workflow.create(
            {'store': self.store},
            items=[{'product': self.product, 'quantity': Decimal('1'), 'price': Decimal('1.00')}],
            status=STATUS_COMPLETED,
        )
        response = self.set_status(url, STATUS_CANCELLED)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AdjustmentAPITests(DocumentAPITestCase):

    def setUp(self):
        super().setUp()
        TestDataFactory.create_stock(self.store, self.product, '10', '5.00')
        TestDataFactory.create_stock(self.store, self.product2, '1', '8.00')

    def test_adjustment_in_and_out(self):
        data = {
            'store': self.store.id,
            'items': [
                {'product': self.product.id, 'quantity': '-3'},
                {'product': self.product2.id, 'quantity': '2'},
            ],
        }
        response = self.client.post('/api/v1/adjustments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        items = {item['product']: item for item in response.data['items']}
        self.assertEqual(Decimal(items[self.product.id]['quantity_before']), Decimal('10'))
        self.assertEqual(Decimal(items[self.product.id]['quantity_after']), Decimal('7'))

        url = f"/api/v1/adjustments/{response.data['id']}/"
        response = self.set_status(url, STATUS_COMPLETED)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(stock_of(self.store, self.product), (Decimal('7'), Decimal('5.00')))
        self.assertEqual(stock_of(self.store, self.product2), (Decimal('3'), Decimal('8.00')))

        response = self.set_status(url, STATUS_CANCELLED)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(stock_of(self.store, self.product), (Decimal('10'), Decimal('5.00')))
        self.assertEqual(stock_of(self.store, self.product2), (Decimal('1'), Decimal('8.00')))

    def test_write_off_more_than_available(self):
        data = {'store': self.store.id, 'items': [{'product': self.product.id, 'quantity': '-11'}]}
        response = self.client.post('/api/v1/adjustments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_zero_quantity(self):
        data = {'store': self.store.id, 'items': [{'product': self.product.id, 'quantity': '0'}]}
        response = self.client.post('/api/v1/adjustments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class TransferAPITests(DocumentAPITestCase):

    def setUp(self):
        super().setUp()
        self.destination = TestDataFactory.create_store()
        TestDataFactory.create_stock(self.store, self.product, '10', '5.00')

    def create_transfer(self, quantity='4', **extra):
        data = {
            'store': self.store.id,
            'destination_store': self.destination.id,
            'items': [{'product': self.product.id, 'quantity': quantity}],
        }
        data.update(extra)
        return self.client.post('/api/v1/transfers/', data, format='json')

    def test_same_store(self):
        response = self.create_transfer(destination_store=self.store.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(DocumentTransfer.objects.exists())

    def test_transfer_moves_stock_at_source_wap(self):
        response = self.create_transfer(status=STATUS_COMPLETED)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(stock_of(self.store, self.product), (Decimal('6'), Decimal('5.00')))
        self.assertEqual(stock_of(self.destination, self.product), (Decimal('4'), Decimal('5.00')))
        types = set(StockLedger.objects.filter(document_transfer_id=response.data['id']).values_list('type', flat=True))
        self.assertEqual(types, {StockLedger.TYPE_TRANSFER_OUT, StockLedger.TYPE_TRANSFER_IN})

    def test_transfer_more_than_available(self):
        response = self.create_transfer(quantity='11', status=STATUS_COMPLETED)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_revert_transfer(self):
        response = self.create_transfer(status=STATUS_COMPLETED)
        url = f"/api/v1/transfers/{response.data['id']}/"
        response = self.set_status(url, STATUS_CANCELLED)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(stock_of(self.store, self.product), (Decimal('10'), Decimal('5.00')))
        self.assertEqual(stock_of(self.destination, self.product)[0], Decimal('0'))

    def test_revert_needs_goods_at_destination(self):
        response = self.create_transfer(status=STATUS_COMPLETED)
        sale_workflow.create(
            {'store': self.destination},
            items=[{'product': self.product, 'quantity': Decimal('2'), 'price': Decimal('9.00')}],
            status=STATUS_COMPLETED,
        )
        response = self.set_status(f"/api/v1/transfers/{response.data['id']}/", STATUS_CANCELLED)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_store_filter_matches_either_side(self):
        self.create_transfer()
        response = self.client.get('/api/v1/transfers/', {'store': self.destination.id})
        self.assertEqual(response.data['count'], 1)


class PriceChangeAPITests(DocumentAPITestCase):

    def setUp(self):
        super().setUp()
        self.retail = TestDataFactory.create_price_type(name='Retail')

    def test_complete_price_change(self):
        data = {
            'status': STATUS_COMPLETED,
            'items': [{'product': self.product.id, 'price_type': self.retail.id, 'new_value': '15.00'}],
        }
        response = self.client.post('/api/v1/price-changes/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'PC-1')
        self.assertEqual(Price.objects.get(product=self.product, price_type=self.retail).value, Decimal('15.00'))

    def test_update_replaces_items(self):
        data = {'items': [{'product': self.product.id, 'price_type': self.retail.id, 'new_value': '15.00'}]}
        response = self.client.post('/api/v1/price-changes/', data, format='json')
        url = f"/api/v1/price-changes/{response.data['id']}/"

        data = {
            'notes': 'Autumn prices',
            'items': [{'product': self.product2.id, 'price_type': self.retail.id, 'new_value': '3.00'}],
        }
        response = self.client.put(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['notes'], 'Autumn prices')
        self.assertEqual([item['product'] for item in response.data['items']], [self.product2.id])

    def test_update_item_value(self):
        data = {'items': [{'product': self.product.id, 'price_type': self.retail.id, 'new_value': '15.00'}]}
        response = self.client.post('/api/v1/price-changes/', data, format='json')
        url = f"/api/v1/price-changes/{response.data['id']}/items/{self.product.id}/"
        response = self.client.patch(url, {'new_value': '16.50'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'][0]['new_value'], '16.50')


class SchedulerTests(DocumentAPITestCase):

    def test_command_completes_due_documents(self):
        response = self.client.post('/api/v1/purchases/', {
            'store': self.store.id,
            'status': STATUS_COMPLETED,
            'date': (timezone.now() + timedelta(hours=1)).isoformat(),
            'items': [{'product': self.product.id, 'quantity': '5', 'price': '2.00'}],
        }, format='json')
        self.assertEqual(response.data['status'], STATUS_SCHEDULED)
        DocumentPurchase.objects.filter(pk=response.data['id']).update(date=timezone.now() - timedelta(minutes=1))

        out = StringIO()
        call_command('process_scheduled_documents', stdout=out)
        self.assertIn('Completed 1 purchase document(s)', out.getvalue())
        self.assertEqual(DocumentPurchase.objects.get(pk=response.data['id']).status, STATUS_COMPLETED)
        self.assertEqual(stock_of(self.store, self.product)[0], Decimal('5'))

    def test_failure_does_not_stop_batch(self):
        future = timezone.now() + timedelta(hours=1)
        failing = sale_workflow.create(
            {'store': self.store, 'date': future},
            items=[{'product': self.product, 'quantity': Decimal('1'), 'price': Decimal('1.00')}],
            status=STATUS_COMPLETED,
        )
        purchase = TestDataFactory.create_purchase(
            self.store, [(self.product2, '1', '1.00')], status=STATUS_COMPLETED, date=future,
        )
        DocumentSale.objects.filter(pk=failing.pk).update(date=timezone.now() - timedelta(minutes=1))
        DocumentPurchase.objects.filter(pk=purchase.pk).update(date=timezone.now() - timedelta(minutes=1))

        results = complete_due_documents()
        self.assertEqual(results['sale'], (0, 1))
        self.assertEqual(results['purchase'], (1, 0))
        self.assertEqual(DocumentSale.objects.get(pk=failing.pk).status, STATUS_SCHEDULED)

    def test_cleanup_stale_drafts(self):
        stale_sale = sale_workflow.create({'store': self.store})
        fresh_sale = sale_workflow.create({'store': self.store})
        old_purchase = TestDataFactory.create_purchase(self.store, [(self.product, '1', '1.00')])
        long_ago = timezone.now() - timedelta(hours=25)
        DocumentSale.objects.filter(pk=stale_sale.pk).update(created_at=long_ago)
        DocumentPurchase.objects.filter(pk=old_purchase.pk).update(created_at=long_ago)

        out = StringIO()
        call_command('process_scheduled_documents', '--cleanup-drafts', stdout=out)
        self.assertEqual(DocumentSale.objects.get(pk=stale_sale.pk).status, STATUS_CANCELLED)
        self.assertEqual(DocumentSale.objects.get(pk=fresh_sale.pk).status, STATUS_DRAFT)
        self.assertEqual(DocumentPurchase.objects.get(pk=old_purchase.pk).status, STATUS_DRAFT)
