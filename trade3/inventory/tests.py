"""
Comprehensive test suite for stock bookkeeping
Tests: WAP arithmetic, ledger entries, negative stock guard, duplicate movement guard,
reversals, backdated documents and ledger reprocessing
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from trade3.core.exceptions import BusinessRuleError
from trade3.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from trade3.documents.models import STATUS_CANCELLED, STATUS_COMPLETED, DocumentSaleItem
from trade3.documents.services import purchase_workflow, sale_workflow
from trade3.inventory import services
from trade3.inventory.models import Stock, StockLedger


def sell(store, product, quantity, date=None):
    data = {'store': store}
    if date is not None:
        data['date'] = date
    return sale_workflow.create(
        data,
        items=[{'product': product, 'quantity': Decimal(quantity), 'price': Decimal('50.00')}],
        status=STATUS_COMPLETED,
    )


class WapCalculationTests(TestCase):

    def test_weighted_average(self):
        wap = services.calculate_new_wap(Decimal('10'), Decimal('5'), Decimal('10'), Decimal('7'))
        self.assertEqual(wap, Decimal('6'))

    def test_first_receipt_takes_incoming_price(self):
        wap = services.calculate_new_wap(Decimal('0'), Decimal('0'), Decimal('3'), Decimal('12.50'))
        self.assertEqual(wap, Decimal('12.50'))

    def test_zero_total_keeps_current_wap(self):
        wap = services.calculate_new_wap(Decimal('10'), Decimal('5'), Decimal('-10'), Decimal('5'))
        self.assertEqual(wap, Decimal('5'))


class ApplyMovementsTests(TestCase):

    def setUp(self):
        self.store = TestDataFactory.create_store()
        self.product = TestDataFactory.create_product()

    def test_purchases_update_quantity_and_wap(self):
        TestDataFactory.create_stock(self.store, self.product, '10', '5.00')
        TestDataFactory.create_stock(self.store, self.product, '10', '7.00')

        stock = Stock.objects.get(store=self.store, product=self.product)
        self.assertEqual(stock.quantity, Decimal('20'))
        self.assertEqual(stock.average_purchase_price, Decimal('6.00'))

        last = StockLedger.objects.filter(product=self.product).order_by('-id').first()
        self.assertEqual(last.type, StockLedger.TYPE_PURCHASE)
        self.assertEqual(last.reason, StockLedger.REASON_INITIAL)
        self.assertEqual(last.quantity_before, Decimal('10'))
        self.assertEqual(last.quantity_after, Decimal('20'))
        self.assertEqual(last.transaction_amount, Decimal('70'))

    def test_sale_keeps_wap_and_records_cost(self):
        TestDataFactory.create_stock(self.store, self.product, '10', '5.00')
        sale = sell(self.store, self.product, '4')

        stock = Stock.objects.get(store=self.store, product=self.product)
        self.assertEqual(stock.quantity, Decimal('6'))
        self.assertEqual(stock.average_purchase_price, Decimal('5.00'))
        entry = StockLedger.objects.get(document_sale=sale)
        self.assertEqual(entry.quantity, Decimal('-4'))
        self.assertEqual(entry.transaction_amount, Decimal('-20'))
        self.assertEqual(sale.items.get().cost_price, Decimal('5.00'))

    def test_outgoing_movement_cannot_make_stock_negative(self):
        TestDataFactory.create_stock(self.store, self.product, '2', '5.00')
        sale = sale_workflow.create({'store': self.store})
        with self.assertRaises(BusinessRuleError):
            services.apply_movements(
                self.store, StockLedger.TYPE_SALE, timezone.now(), sale,
                [{'product_id': self.product.id, 'quantity': Decimal('3'), 'price': Decimal('5')}],
                services.DIRECTION_OUT,
            )

    def test_applied_movements_are_not_repeated(self):
        purchase = TestDataFactory.create_stock(self.store, self.product, '10', '5.00')
        purchase_workflow.complete(purchase, 'repeat')

        stock = Stock.objects.get(store=self.store, product=self.product)
        self.assertEqual(stock.quantity, Decimal('10'))
        self.assertEqual(StockLedger.objects.filter(document_purchase=purchase).count(), 1)

    def test_incoming_wap_falls_back_to_other_store(self):
        other_store = TestDataFactory.create_store()
        TestDataFactory.create_stock(other_store, self.product, '1', '8.00')
        wap_map = services.get_incoming_wap_map(self.store.id, [self.product.id])
        self.assertEqual(wap_map[self.product.id], Decimal('8.00'))


class RevertTests(TestCase):

    def setUp(self):
        self.store = TestDataFactory.create_store()
        self.product = TestDataFactory.create_product()

    def test_cancel_purchase_reverses_stock(self):
        TestDataFactory.create_stock(self.store, self.product, '5', '4.00')
        purchase = TestDataFactory.create_stock(self.store, self.product, '5', '8.00')
        purchase_workflow.update_status(purchase, STATUS_CANCELLED)

        stock = Stock.objects.get(store=self.store, product=self.product)
        self.assertEqual(stock.quantity, Decimal('5'))
        self.assertEqual(stock.average_purchase_price, Decimal('4.00'))

        reversal = StockLedger.objects.get(document_purchase=purchase, reason=StockLedger.REASON_REVERSAL)
        initial = StockLedger.objects.get(document_purchase=purchase, reason=StockLedger.REASON_INITIAL)
        self.assertEqual(reversal.parent_id, initial.id)
        self.assertEqual(reversal.quantity, Decimal('-5'))

    def test_cannot_cancel_purchase_of_sold_goods(self):
        purchase = TestDataFactory.create_stock(self.store, self.product, '5', '4.00')
        sell(self.store, self.product, '3')
        with self.assertRaises(BusinessRuleError):
            purchase_workflow.update_status(purchase, STATUS_CANCELLED)
        purchase.refresh_from_db()
        self.assertEqual(purchase.status, STATUS_COMPLETED)

    def test_cancel_sale_returns_goods_at_cost(self):
        TestDataFactory.create_stock(self.store, self.product, '10', '5.00')
        sale = sell(self.store, self.product, '4')
        sale_workflow.update_status(sale, STATUS_CANCELLED)

        stock = Stock.objects.get(store=self.store, product=self.product)
        self.assertEqual(stock.quantity, Decimal('10'))
        self.assertEqual(stock.average_purchase_price, Decimal('5.00'))


class ReprocessTests(TestCase):

    def setUp(self):
        self.store = TestDataFactory.create_store()
        self.product = TestDataFactory.create_product()
        self.base = timezone.now() - timedelta(days=10)

    def test_backdated_purchase_reprices_later_history(self):
        TestDataFactory.create_stock(self.store, self.product, '10', '10.00', date=self.base + timedelta(days=2))
        sale = sell(self.store, self.product, '5', date=self.base + timedelta(days=3))
        self.assertEqual(sale.items.get().cost_price, Decimal('10.00'))

        # Arrives before everything else: 10@4 then 10@10 gives WAP 7 before the sale
        TestDataFactory.create_stock(self.store, self.product, '10', '4.00', date=self.base + timedelta(days=1))

        stock = Stock.objects.get(store=self.store, product=self.product)
        self.assertEqual(stock.quantity, Decimal('15'))
        self.assertEqual(stock.average_purchase_price, Decimal('7.00'))
        self.assertEqual(DocumentSaleItem.objects.get(document=sale).cost_price, Decimal('7.00'))
        self.assertTrue(StockLedger.objects.filter(reason=StockLedger.REASON_CORRECTION).exists())

    def test_reprocess_repairs_drifted_stock_row(self):
        TestDataFactory.create_stock(self.store, self.product, '3', '2.00', date=self.base)
        Stock.objects.filter(store=self.store, product=self.product).update(
            quantity=Decimal('99'), average_purchase_price=Decimal('1.00')
        )
        quantity, wap = services.reprocess_product_history(
            self.store.id, self.product.id, self.base - timedelta(days=1), 'manual'
        )
        self.assertEqual(quantity, Decimal('3'))
        self.assertEqual(wap, Decimal('2.00'))
        stock = Stock.objects.get(store=self.store, product=self.product)
        self.assertEqual(stock.quantity, Decimal('3'))

    def test_orphaned_entry_is_reversed(self):
        purchase = TestDataFactory.create_stock(self.store, self.product, '3', '2.00', date=self.base)
        # Status flipped without going through the workflow
        type(purchase).objects.filter(pk=purchase.pk).update(status=STATUS_CANCELLED)

        quantity, _ = services.reprocess_product_history(self.store.id, self.product.id, self.base, 'manual')
        self.assertEqual(quantity, Decimal('0'))
        reversal = StockLedger.objects.get(document_purchase=purchase, reason=StockLedger.REASON_REVERSAL)
        self.assertEqual(reversal.causation_id, 'manual')


class InventoryAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.store = TestDataFactory.create_store()
        self.product = TestDataFactory.create_product()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_stock_list(self):
        TestDataFactory.create_stock(self.store, self.product, '5', '4.00')
        response = self.client.get('/api/v1/stock/', {'store': self.store.id, 'in_stock': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(Decimal(response.data['results'][0]['quantity']), Decimal('5'))

    def test_ledger_list_links_documents(self):
        purchase = TestDataFactory.create_stock(self.store, self.product, '5', '4.00')
        response = self.client.get('/api/v1/stock/ledger/', {'product': self.product.id, 'type': 'purchase'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        document = response.data['results'][0]['document']
        self.assertEqual(document['kind'], 'purchase')
        self.assertEqual(document['code'], purchase.code)

    def test_reprocess_requires_admin(self):
        data = {'store': self.store.id, 'product': self.product.id, 'date': timezone.now().isoformat()}
        response = self.client.post('/api/v1/stock/reprocess/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/stock/reprocess/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('causation_id', response.data)
