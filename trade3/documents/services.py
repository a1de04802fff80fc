"""
Document workflows.

Each document kind has a workflow object that knows how to build its items
and how completing or reverting it moves stock or prices. The shared
``DocumentWorkflow`` base handles codes, the draft guard, status transitions
and the document history.
"""
import logging
import uuid
from datetime import date as date_type, datetime
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from trade3.catalog.models import Price
from trade3.core.exceptions import BusinessRuleError
from trade3.core.utils import get_next_code, quantize_money, quantize_qty
from trade3.inventory import services as inventory
from trade3.inventory.models import StockLedger
from trade3.pricing import services as pricing
from .models import (
    DocumentHistory, STATUS_DRAFT, STATUS_SCHEDULED, STATUS_COMPLETED, STATUS_CANCELLED,
    DocumentPurchase, DocumentPurchaseItem,
    DocumentSale, DocumentSaleItem,
    DocumentReturn, DocumentReturnItem,
    DocumentAdjustment, DocumentAdjustmentItem,
    DocumentTransfer, DocumentTransferItem,
    DocumentPriceChange, DocumentPriceChangeItem,
)

logger = logging.getLogger('trade3.documents')

ZERO = Decimal('0')


def to_json(value):
    """Make a history detail value JSON serializable"""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date_type)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_json(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(val) for val in value]
    if hasattr(value, 'pk'):
        return value.pk
    return value


def ensure_draft(document):
    if document.status != STATUS_DRAFT:
        raise BusinessRuleError(
            f"Document {document.code} is {document.status}; only drafts can be changed"
        )


class DocumentWorkflow:
    """Behaviour shared by every document kind"""
    kind = None
    model = None
    item_model = None
    history_field = None
    header_fields = ()
    item_fields = ()

    def log(self, document, action, details=None, author=None):
        return DocumentHistory.objects.create(
            action=action,
            details=to_json(details or {}),
            author=author if author is not None and author.is_authenticated else None,
            **{self.history_field: document},
        )

    def get_queryset(self):
        return self.model.objects.all()

    def lock(self, pk):
        return self.model.objects.select_for_update().get(pk=pk)

    # Header

    def validate_header(self, data, document=None):
        """Hook for cross-field header rules"""

    def create(self, data, items=None, status=STATUS_DRAFT, author=None):
        """
        Create a draft, add the given items and move it to the requested status.

        A COMPLETED request for a future date ends up SCHEDULED.
        """
        self.validate_header(data)
        with transaction.atomic():
            document = self.model.objects.create(
                code=get_next_code(self.kind), author=author, status=STATUS_DRAFT, **data
            )
            self.log(document, DocumentHistory.ACTION_CREATED, {
                'code': document.code,
                'status': status or STATUS_DRAFT,
                'notes': document.notes,
            }, author)
            if items:
                self.add_items(document, items, author)
            if status and status != STATUS_DRAFT:
                document = self.update_status(document, status, author)
        logger.info(f"{self.model.__name__} {document.code} created")
        return document

    def update_header(self, document, data, author=None):
        with transaction.atomic():
            document = self.lock(document.pk)
            ensure_draft(document)
            self.validate_header(data, document)
            changes = {}
            for field, value in data.items():
                if field not in self.header_fields:
                    continue
                old_value = getattr(document, field)
                if old_value != value:
                    changes[field] = {'from': old_value, 'to': value}
                    setattr(document, field, value)
            if changes:
                document.save()
                self.log(document, DocumentHistory.ACTION_UPDATED, changes, author)
        return document

    def delete(self, document, author=None):
        """Drafts only; ledger rows still pointing at the document make this a conflict"""
        with transaction.atomic():
            document = self.lock(document.pk)
            ensure_draft(document)
            self.log(document, DocumentHistory.ACTION_DELETED, {'code': document.code}, author)
            code = document.code
            document.delete()
        logger.info(f"{self.model.__name__} {code} deleted")

    # Items

    def prepare_item(self, document, data):
        """Return the field values of a new item"""
        raise NotImplementedError

    def update_item_values(self, document, item, data):
        """Apply changed fields to an existing item"""
        for field in self.item_fields:
            if field in data:
                setattr(item, field, data[field])

    def after_items_changed(self, document, items_data, author=None):
        """Hook run after items were added, updated or removed"""
        self.refresh_totals(document)

    def refresh_totals(self, document):
        if not hasattr(document, 'total'):
            return
        total = sum((item.total for item in document.items.all()), ZERO)
        if document.total != total:
            document.total = total
            document.save(update_fields=['total', 'updated_at'])

    def item_snapshot(self, item):
        return {field: getattr(item, field) for field in self.item_fields}

    def add_items(self, document, items_data, author=None):
        with transaction.atomic():
            document = self.lock(document.pk)
            ensure_draft(document)
            for data in items_data:
                values = self.prepare_item(document, data)
                item = self.item_model.objects.create(document=document, **values)
                self.log(document, DocumentHistory.ACTION_ITEM_ADDED, {
                    'product_id': item.product_id, **self.item_snapshot(item),
                }, author)
            self.after_items_changed(document, items_data, author)
        return document

    def update_item(self, document, product_id, data, author=None):
        with transaction.atomic():
            document = self.lock(document.pk)
            ensure_draft(document)
            item = document.items.filter(product_id=product_id).first()
            if item is None:
                raise BusinessRuleError(f"Product {product_id} is not in document {document.code}")
            before = self.item_snapshot(item)
            self.update_item_values(document, item, data)
            item.save()
            after = self.item_snapshot(item)
            changes = {
                field: {'from': before[field], 'to': after[field]}
                for field in self.item_fields
                if before[field] != after[field]
            }
            if changes:
                self.log(document, DocumentHistory.ACTION_ITEM_CHANGED, {
                    'product_id': product_id, 'changes': changes,
                }, author)
            self.after_items_changed(document, [dict(data, product=item.product)], author)
        return document

    def remove_items(self, document, product_ids, author=None):
        with transaction.atomic():
            document = self.lock(document.pk)
            ensure_draft(document)
            items = {item.product_id: item for item in document.items.filter(product_id__in=product_ids)}
            for product_id in product_ids:
                item = items.get(product_id)
                if item is None:
                    raise BusinessRuleError(f"Product {product_id} is not in document {document.code}")
                self.log(document, DocumentHistory.ACTION_ITEM_REMOVED, {
                    'product_id': product_id, **self.item_snapshot(item),
                }, author)
                item.delete()
            self.after_items_changed(document, [], author)
        return document

    # Status

    def touched_pairs(self, document):
        """(store_id, product_id) pairs whose stock the document moves"""
        return [(document.store_id, item.product_id) for item in document.items.all()]

    def complete(self, document, causation_id):
        raise NotImplementedError

    def revert(self, document, causation_id):
        raise NotImplementedError

    def reprocess(self, document, causation_id):
        for store_id, product_id in sorted(set(self.touched_pairs(document))):
            inventory.reprocess_product_history(store_id, product_id, document.date, causation_id)

    def update_status(self, document, new_status, author=None):
        """
        Move a document to a new status.

        DRAFT/SCHEDULED -> COMPLETED applies the document, COMPLETED -> any
        other status reverts it. Affected stock history is reprocessed after
        the status change is committed.
        """
        causation_id = uuid.uuid4().hex
        with transaction.atomic():
            document = self.lock(document.pk)
            old_status = document.status
            target = new_status
            if target == STATUS_COMPLETED and document.date > timezone.now():
                target = STATUS_SCHEDULED

            if target == old_status:
                return document
            if old_status == STATUS_CANCELLED:
                raise BusinessRuleError(f"Document {document.code} is cancelled and cannot change status")

            moved = target == STATUS_COMPLETED or old_status == STATUS_COMPLETED
            if moved:
                inventory.lock_inventory(self.touched_pairs(document))
            if target == STATUS_COMPLETED:
                self.complete(document, causation_id)
            elif old_status == STATUS_COMPLETED:
                self.revert(document, causation_id)

            document.status = target
            document.save(update_fields=['status', 'updated_at'])
            self.log(document, DocumentHistory.ACTION_STATUS_CHANGED, {
                'from': old_status, 'to': target,
            }, author)

        logger.info(f"{self.model.__name__} {document.code}: {old_status} -> {target}")
        if moved:
            self.reprocess(document, causation_id)
        return document


def _movement_items(items, price_attr='price'):
    return [
        {'product_id': item.product_id, 'quantity': item.quantity, 'price': getattr(item, price_attr)}
        for item in items
    ]


class PurchaseWorkflow(DocumentWorkflow):
    kind = 'purchase'
    model = DocumentPurchase
    item_model = DocumentPurchaseItem
    history_field = 'document_purchase'
    header_fields = ('store', 'vendor', 'date', 'notes')
    item_fields = ('quantity', 'price', 'total')

    def prepare_item(self, document, data):
        quantity = quantize_qty(data['quantity'])
        price = quantize_money(data['price'])
        return {
            'product': data['product'],
            'quantity': quantity,
            'price': price,
            'total': quantize_money(quantity * price),
        }

    def update_item_values(self, document, item, data):
        if 'quantity' in data:
            item.quantity = quantize_qty(data['quantity'])
        if 'price' in data:
            item.price = quantize_money(data['price'])
        item.total = quantize_money(item.quantity * item.price)

    def after_items_changed(self, document, items_data, author=None):
        self.refresh_totals(document)
        self.sync_price_changes(document, items_data, author)

    def sync_price_changes(self, document, items_data, author=None):
        """
        Turn ``new_prices`` of purchase items into a linked draft price change.

        Prices equal to the current price are skipped. An existing linked
        document gets the new rows appended (or its rows updated).
        """
        changes = []
        for data in items_data:
            for new_price in data.get('new_prices') or []:
                product = data['product']
                price_type = new_price['price_type']
                current = Price.objects.filter(product=product, price_type=price_type).first()
                old_value = current.value if current else ZERO
                new_value = quantize_money(new_price['value'])
                if old_value != new_value:
                    changes.append((product, price_type, old_value, new_value))
        if not changes:
            return None

        price_change = DocumentPriceChange.objects.filter(document_purchase=document).first()
        if price_change is None:
            price_change = DocumentPriceChange.objects.create(
                code=get_next_code('price_change'),
                date=document.date,
                status=STATUS_DRAFT,
                notes=f"Created automatically from purchase №{document.code}",
                document_purchase=document,
                author=document.author,
            )
            price_change_workflow.log(price_change, DocumentHistory.ACTION_CREATED, {
                'code': price_change.code,
                'status': STATUS_DRAFT,
                'notes': price_change.notes,
                'source_type': 'purchase',
                'source_code': document.code,
            }, author)
            logger.info(f"Price change {price_change.code} created from purchase {document.code}")
        elif price_change.status != STATUS_DRAFT:
            raise BusinessRuleError(
                f"Linked price change {price_change.code} is {price_change.status} and cannot take new prices"
            )

        for product, price_type, old_value, new_value in changes:
            DocumentPriceChangeItem.objects.update_or_create(
                document=price_change,
                product=product,
                price_type=price_type,
                defaults={'old_value': old_value, 'new_value': new_value},
            )
        price_change_workflow.log(price_change, DocumentHistory.ACTION_ITEM_ADDED, {
            'count': len(changes),
            'product_ids': [product.pk for product, _, _, _ in changes],
        }, author)
        return price_change

    def complete(self, document, causation_id):
        inventory.apply_movements(
            document.store, StockLedger.TYPE_PURCHASE, document.date, document,
            _movement_items(document.items.all()), inventory.DIRECTION_IN,
            causation_id=causation_id,
        )

    def revert(self, document, causation_id):
        items = _movement_items(document.items.all())
        inventory.validate_revert(document.store, items)
        reversed_items = [dict(item, quantity=-item['quantity']) for item in items]
        inventory.apply_movements(
            document.store, StockLedger.TYPE_PURCHASE, document.date, document,
            reversed_items, inventory.DIRECTION_IN,
            reason=StockLedger.REASON_REVERSAL, causation_id=causation_id,
        )


class SaleWorkflow(DocumentWorkflow):
    kind = 'sale'
    model = DocumentSale
    item_model = DocumentSaleItem
    history_field = 'document_sale'
    header_fields = ('store', 'cashbox', 'client', 'price_type', 'date', 'notes')
    item_fields = ('quantity', 'price', 'total')

    def validate_header(self, data, document=None):
        store = data.get('store', document.store if document else None)
        cashbox = data.get('cashbox', document.cashbox if document else None)
        if cashbox is not None and store is not None and cashbox.store_id != store.pk:
            raise BusinessRuleError('Cashbox does not belong to the selected store')

    def default_price(self, document, product):
        """Price for the document price type, else the first price of the product, else 0"""
        prices = Price.objects.filter(product=product)
        if document.price_type_id:
            price = prices.filter(price_type_id=document.price_type_id).first()
            if price is not None:
                return price.value
        price = prices.order_by('price_type_id').first()
        return price.value if price is not None else ZERO

    def prepare_item(self, document, data):
        quantity = quantize_qty(data['quantity'])
        price = data.get('price')
        price = quantize_money(price) if price is not None else self.default_price(document, data['product'])
        wap = inventory.get_stock_map(document.store_id, [data['product'].pk]).get(data['product'].pk)
        return {
            'product': data['product'],
            'quantity': quantity,
            'price': price,
            'cost_price': wap.average_purchase_price if wap else ZERO,
            'total': quantize_money(quantity * price),
        }

    def update_item_values(self, document, item, data):
        if 'quantity' in data:
            item.quantity = quantize_qty(data['quantity'])
        if data.get('price') is not None:
            item.price = quantize_money(data['price'])
        item.total = quantize_money(item.quantity * item.price)

    def complete(self, document, causation_id):
        items = list(document.items.all())
        inventory.ensure_available(document.store, _movement_items(items))
        stock_map = inventory.get_stock_map(document.store_id, [item.product_id for item in items])
        for item in items:
            stock = stock_map.get(item.product_id)
            item.cost_price = stock.average_purchase_price if stock else ZERO
            item.save(update_fields=['cost_price'])
        inventory.apply_movements(
            document.store, StockLedger.TYPE_SALE, document.date, document,
            _movement_items(items, 'cost_price'), inventory.DIRECTION_OUT,
            causation_id=causation_id,
        )

    def revert(self, document, causation_id):
        inventory.apply_movements(
            document.store, StockLedger.TYPE_SALE, document.date, document,
            _movement_items(document.items.all(), 'cost_price'), inventory.DIRECTION_IN,
            reason=StockLedger.REASON_REVERSAL, causation_id=causation_id,
        )


class ReturnWorkflow(DocumentWorkflow):
    kind = 'return'
    model = DocumentReturn
    item_model = DocumentReturnItem
    history_field = 'document_return'
    header_fields = ('store', 'client', 'date', 'notes')
    item_fields = ('quantity', 'price', 'total')

    def prepare_item(self, document, data):
        quantity = quantize_qty(data['quantity'])
        price = quantize_money(data.get('price') or ZERO)
        return {
            'product': data['product'],
            'quantity': quantity,
            'price': price,
            'total': quantize_money(quantity * price),
        }

    def update_item_values(self, document, item, data):
        if 'quantity' in data:
            item.quantity = quantize_qty(data['quantity'])
        if 'price' in data:
            item.price = quantize_money(data['price'] or ZERO)
        item.total = quantize_money(item.quantity * item.price)

    def _costed_items(self, document):
        items = list(document.items.all())
        wap_map = inventory.get_incoming_wap_map(document.store_id, [item.product_id for item in items])
        return [
            {'product_id': item.product_id, 'quantity': item.quantity, 'price': wap_map[item.product_id]}
            for item in items
        ]

    def complete(self, document, causation_id):
        inventory.apply_movements(
            document.store, StockLedger.TYPE_RETURN, document.date, document,
            self._costed_items(document), inventory.DIRECTION_IN,
            causation_id=causation_id,
        )

    def revert(self, document, causation_id):
        items = self._costed_items(document)
        inventory.ensure_available(document.store, items)
        inventory.apply_movements(
            document.store, StockLedger.TYPE_RETURN, document.date, document,
            items, inventory.DIRECTION_OUT,
            reason=StockLedger.REASON_REVERSAL, causation_id=causation_id,
        )


class AdjustmentWorkflow(DocumentWorkflow):
    kind = 'adjustment'
    model = DocumentAdjustment
    item_model = DocumentAdjustmentItem
    history_field = 'document_adjustment'
    header_fields = ('store', 'date', 'notes')
    item_fields = ('quantity', 'quantity_before', 'quantity_after')

    def _current_quantity(self, document, product_id):
        stock = inventory.get_stock_map(document.store_id, [product_id]).get(product_id)
        return stock.quantity if stock else ZERO

    def _check_quantity(self, quantity, quantity_before, product_id):
        if quantity == 0:
            raise BusinessRuleError(f"Adjustment quantity for product {product_id} cannot be zero")
        if quantity_before + quantity < 0:
            raise BusinessRuleError(
                f"Not enough stock of product {product_id} to write off "
                f"(available: {quantity_before}, required: {-quantity})"
            )

    def prepare_item(self, document, data):
        product = data['product']
        quantity = quantize_qty(data['quantity'])
        quantity_before = self._current_quantity(document, product.pk)
        self._check_quantity(quantity, quantity_before, product.pk)
        return {
            'product': product,
            'quantity': quantity,
            'quantity_before': quantity_before,
            'quantity_after': quantity_before + quantity,
        }

    def update_item_values(self, document, item, data):
        if 'quantity' in data:
            item.quantity = quantize_qty(data['quantity'])
        item.quantity_before = self._current_quantity(document, item.product_id)
        self._check_quantity(item.quantity, item.quantity_before, item.product_id)
        item.quantity_after = item.quantity_before + item.quantity

    def _split(self, document):
        items = list(document.items.all())
        wap_map = inventory.get_incoming_wap_map(document.store_id, [item.product_id for item in items])
        incoming = [
            {'product_id': item.product_id, 'quantity': item.quantity, 'price': wap_map[item.product_id]}
            for item in items if item.quantity > 0
        ]
        outgoing = [
            {'product_id': item.product_id, 'quantity': -item.quantity, 'price': wap_map[item.product_id]}
            for item in items if item.quantity < 0
        ]
        return incoming, outgoing

    def complete(self, document, causation_id):
        incoming, outgoing = self._split(document)
        if outgoing:
            inventory.ensure_available(document.store, outgoing)
            inventory.apply_movements(
                document.store, StockLedger.TYPE_ADJUSTMENT, document.date, document,
                outgoing, inventory.DIRECTION_OUT, causation_id=causation_id,
            )
        if incoming:
            inventory.apply_movements(
                document.store, StockLedger.TYPE_ADJUSTMENT, document.date, document,
                incoming, inventory.DIRECTION_IN, causation_id=causation_id,
            )

    def revert(self, document, causation_id):
        incoming, outgoing = self._split(document)
        if incoming:
            inventory.ensure_available(document.store, incoming)
            inventory.apply_movements(
                document.store, StockLedger.TYPE_ADJUSTMENT, document.date, document,
                incoming, inventory.DIRECTION_OUT,
                reason=StockLedger.REASON_REVERSAL, causation_id=causation_id,
            )
        if outgoing:
            inventory.apply_movements(
                document.store, StockLedger.TYPE_ADJUSTMENT, document.date, document,
                outgoing, inventory.DIRECTION_IN,
                reason=StockLedger.REASON_REVERSAL, causation_id=causation_id,
            )


class TransferWorkflow(DocumentWorkflow):
    kind = 'transfer'
    model = DocumentTransfer
    item_model = DocumentTransferItem
    history_field = 'document_transfer'
    header_fields = ('store', 'destination_store', 'date', 'notes')
    item_fields = ('quantity',)

    def validate_header(self, data, document=None):
        source = data.get('store', document.store if document else None)
        destination = data.get('destination_store', document.destination_store if document else None)
        if source is not None and destination is not None and source.pk == destination.pk:
            raise BusinessRuleError('Source and destination stores must differ')

    def prepare_item(self, document, data):
        return {'product': data['product'], 'quantity': quantize_qty(data['quantity'])}

    def update_item_values(self, document, item, data):
        if 'quantity' in data:
            item.quantity = quantize_qty(data['quantity'])

    def touched_pairs(self, document):
        pairs = []
        for item in document.items.all():
            pairs.append((document.store_id, item.product_id))
            pairs.append((document.destination_store_id, item.product_id))
        return pairs

    def _costed_items(self, document):
        items = list(document.items.all())
        wap_map = inventory.get_incoming_wap_map(document.store_id, [item.product_id for item in items])
        return [
            {'product_id': item.product_id, 'quantity': item.quantity, 'price': wap_map[item.product_id]}
            for item in items
        ]

    def complete(self, document, causation_id):
        items = self._costed_items(document)
        inventory.ensure_available(document.store, items)
        inventory.apply_movements(
            document.store, StockLedger.TYPE_TRANSFER_OUT, document.date, document,
            items, inventory.DIRECTION_OUT, causation_id=causation_id,
        )
        inventory.apply_movements(
            document.destination_store, StockLedger.TYPE_TRANSFER_IN, document.date, document,
            items, inventory.DIRECTION_IN, causation_id=causation_id,
        )

    def revert(self, document, causation_id):
        # Priced at the WAP the goods arrived with
        items = []
        for item in document.items.all():
            entry = (
                StockLedger.objects.filter(
                    document_transfer=document, store_id=document.destination_store_id,
                    product_id=item.product_id, type=StockLedger.TYPE_TRANSFER_IN,
                    reason=StockLedger.REASON_INITIAL,
                )
                .order_by('-id')
                .first()
            )
            price = abs(entry.transaction_amount) / abs(entry.quantity) if entry and entry.quantity else ZERO
            items.append({'product_id': item.product_id, 'quantity': item.quantity, 'price': price})

        inventory.ensure_available(document.destination_store, items)
        inventory.apply_movements(
            document.destination_store, StockLedger.TYPE_TRANSFER_IN, document.date, document,
            items, inventory.DIRECTION_OUT,
            reason=StockLedger.REASON_REVERSAL, causation_id=causation_id,
        )
        inventory.apply_movements(
            document.store, StockLedger.TYPE_TRANSFER_OUT, document.date, document,
            items, inventory.DIRECTION_IN,
            reason=StockLedger.REASON_REVERSAL, causation_id=causation_id,
        )


class PriceChangeWorkflow(DocumentWorkflow):
    kind = 'price_change'
    model = DocumentPriceChange
    item_model = DocumentPriceChangeItem
    history_field = 'document_price_change'
    header_fields = ('date', 'notes', 'document_purchase')
    item_fields = ('old_value', 'new_value')

    def prepare_item(self, document, data):
        current = Price.objects.filter(product=data['product'], price_type=data['price_type']).first()
        return {
            'product': data['product'],
            'price_type': data['price_type'],
            'old_value': current.value if current else ZERO,
            'new_value': quantize_money(data['new_value']),
        }

    def update_item_values(self, document, item, data):
        if 'new_value' in data:
            item.new_value = quantize_money(data['new_value'])

    def replace_items(self, document, items_data, author=None):
        """Drop the current rows and add the given ones"""
        with transaction.atomic():
            document = self.lock(document.pk)
            ensure_draft(document)
            removed = document.items.count()
            document.items.all().delete()
            if removed:
                self.log(document, DocumentHistory.ACTION_ITEM_REMOVED, {'count': removed}, author)
            self.add_items(document, items_data, author)
        return document

    def touched_pairs(self, document):
        return []

    def reprocess(self, document, causation_id):
        """Prices have no replayable history"""

    def complete(self, document, causation_id):
        pricing.apply_price_changes(document, list(document.items.all()))

    def revert(self, document, causation_id):
        pricing.revert_price_changes(document, list(document.items.all()))


purchase_workflow = PurchaseWorkflow()
sale_workflow = SaleWorkflow()
return_workflow = ReturnWorkflow()
adjustment_workflow = AdjustmentWorkflow()
transfer_workflow = TransferWorkflow()
price_change_workflow = PriceChangeWorkflow()

WORKFLOWS = {
    'purchase': purchase_workflow,
    'sale': sale_workflow,
    'return': return_workflow,
    'adjustment': adjustment_workflow,
    'transfer': transfer_workflow,
    'price_change': price_change_workflow,
}


def get_workflow(kind):
    return WORKFLOWS[kind]
