"""
Stock movements and weighted average purchase price (WAP) bookkeeping.

Every change of a ``Stock`` row goes through ``apply_movements`` which also
appends a ``StockLedger`` entry. ``reprocess_product_history`` replays the
ledger for one product in one store and heals entries whose snapshot no
longer matches the replayed state.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from trade3.core.exceptions import BusinessRuleError
from trade3.core.utils import quantize_qty, quantize_money
from trade3.documents.models import DocumentSaleItem, DocumentPurchaseItem, STATUS_COMPLETED
from .models import Stock, StockLedger

logger = logging.getLogger('trade3.inventory')

DIRECTION_IN = 'IN'
DIRECTION_OUT = 'OUT'

MAX_REPROCESS_PASSES = 5

WAP_AFFECTING_TYPES = {
    StockLedger.TYPE_PURCHASE,
    StockLedger.TYPE_TRANSFER_IN,
    StockLedger.TYPE_ADJUSTMENT,
    StockLedger.TYPE_RETURN,
}

LEDGER_DOCUMENT_FIELD = {
    StockLedger.TYPE_PURCHASE: 'document_purchase',
    StockLedger.TYPE_SALE: 'document_sale',
    StockLedger.TYPE_RETURN: 'document_return',
    StockLedger.TYPE_ADJUSTMENT: 'document_adjustment',
    StockLedger.TYPE_TRANSFER_IN: 'document_transfer',
    StockLedger.TYPE_TRANSFER_OUT: 'document_transfer',
}

DOCUMENT_FIELDS = (
    'document_purchase',
    'document_sale',
    'document_return',
    'document_adjustment',
    'document_transfer',
)

ZERO = Decimal('0')


def calculate_new_wap(current_qty, current_wap, incoming_qty, incoming_price):
    """
    (current_qty * current_wap + incoming_qty * incoming_price) / total_qty

    The current WAP is kept when the resulting quantity is zero.
    """
    total_qty = current_qty + incoming_qty
    if total_qty == 0:
        return current_wap
    return (current_qty * current_wap + incoming_qty * incoming_price) / total_qty


def get_stock_map(store_id, product_ids):
    """{product_id: Stock} for the given store; missing rows are absent"""
    stocks = Stock.objects.filter(store_id=store_id, product_id__in=product_ids)
    return {stock.product_id: stock for stock in stocks}


def get_fallback_wap_map(product_ids):
    """
    {product_id: wap} taken from any store that has a positive WAP.

    Used to price incoming goods in a store that never had the product.
    """
    stocks = (
        Stock.objects.filter(product_id__in=product_ids, average_purchase_price__gt=0)
        .order_by('product_id', '-updated_at')
        .values_list('product_id', 'average_purchase_price')
    )
    result = {}
    for product_id, wap in stocks:
        result.setdefault(product_id, wap)
    return result


def get_incoming_wap_map(store_id, product_ids):
    """Store WAP per product, falling back to the WAP of another store"""
    stock_map = get_stock_map(store_id, product_ids)
    missing = [
        pid for pid in product_ids
        if pid not in stock_map or stock_map[pid].average_purchase_price <= 0
    ]
    fallback = get_fallback_wap_map(missing) if missing else {}
    result = {}
    for pid in product_ids:
        stock = stock_map.get(pid)
        if stock is not None and stock.average_purchase_price > 0:
            result[pid] = stock.average_purchase_price
        else:
            result[pid] = fallback.get(pid, ZERO)
    return result


def lock_inventory(pairs):
    """
    Lock the stock rows of the given (store_id, product_id) pairs.

    Rows are created when missing and locked in a stable order so two
    transactions touching the same products cannot deadlock. Must be called
    inside ``transaction.atomic()``.
    """
    locked = {}
    for store_id, product_id in sorted(set(pairs)):
        stock, _ = Stock.objects.select_for_update().get_or_create(store_id=store_id, product_id=product_id)
        locked[(store_id, product_id)] = stock
    return locked


def ensure_available(store, items):
    """Raise when the store holds less than ``item['quantity']`` of a product"""
    stock_map = get_stock_map(store.pk, [item['product_id'] for item in items])
    for item in items:
        stock = stock_map.get(item['product_id'])
        available = stock.quantity if stock else ZERO
        if available < item['quantity']:
            raise BusinessRuleError(
                f"Not enough stock of product {item['product_id']} in store {store.name} "
                f"(available: {available}, required: {item['quantity']})"
            )


def validate_revert(store, items):
    """
    Check that an incoming movement can be undone.

    The store must still hold the quantity that came in, and the remaining
    stock value must cover the value being taken out so the WAP cannot turn
    negative.
    """
    stock_map = get_stock_map(store.pk, [item['product_id'] for item in items])
    for item in items:
        stock = stock_map.get(item['product_id'])
        current_qty = stock.quantity if stock else ZERO
        current_wap = stock.average_purchase_price if stock else ZERO

        if current_qty < item['quantity']:
            raise BusinessRuleError(
                f"Not enough stock of product {item['product_id']} to cancel the operation "
                f"(available: {current_qty}, required: {item['quantity']})"
            )
        if current_qty * current_wap < item['quantity'] * item['price']:
            raise BusinessRuleError(
                f"Cannot cancel the operation for product {item['product_id']}: "
                f"the remaining stock value would become negative"
            )


def apply_movements(store, movement_type, date, document, items, direction,
                    reason=StockLedger.REASON_INITIAL, causation_id=None):
    """
    Apply stock movements for a document and record them in the ledger.

    Args:
        store: Store the goods move in or out of
        movement_type: StockLedger.TYPE_* value
        date: Business date of the movement (the document date)
        document: Document the movement belongs to
        items: list of dicts with ``product_id``, ``quantity`` and ``price``
        direction: DIRECTION_IN or DIRECTION_OUT
        reason: StockLedger.REASON_* value
        causation_id: Identifier of the operation that caused the movement;
            defaults to the document code
    """
    document_field = LEDGER_DOCUMENT_FIELD[movement_type]
    doc_filter = {document_field: document}

    if reason == StockLedger.REASON_INITIAL:
        # Skip items whose net effect for this document is already in the ledger,
        # while still allowing a reverted document to be completed again.
        net_quantities = dict(
            StockLedger.objects.filter(
                store=store,
                type=movement_type,
                product_id__in=[item['product_id'] for item in items],
                **doc_filter,
            )
            .values('product_id')
            .annotate(net=Sum('quantity'))
            .values_list('product_id', 'net')
        )
        pending = []
        for item in items:
            target = item['quantity'] if direction == DIRECTION_IN else -item['quantity']
            if net_quantities.get(item['product_id'], ZERO) != target:
                pending.append(item)
        if len(pending) != len(items):
            logger.info(
                f"Skipped {len(items) - len(pending)} already applied {movement_type} movements for {document.code}"
            )
        items = pending

    for item in items:
        stock, _ = Stock.objects.select_for_update().get_or_create(store=store, product_id=item['product_id'])
        old_qty = stock.quantity
        old_wap = stock.average_purchase_price

        quantity = quantize_qty(item['quantity'])
        price = quantize_money(item['price'])
        delta = quantity if direction == DIRECTION_IN else -quantity

        new_qty = old_qty + delta
        if new_qty < 0:
            raise BusinessRuleError(
                f"Not enough stock of product {item['product_id']} in store {store.name} "
                f"(available: {old_qty}, required: {abs(delta)})"
            )

        new_wap = old_wap
        if direction == DIRECTION_IN and movement_type in WAP_AFFECTING_TYPES and delta != 0:
            new_wap = quantize_money(calculate_new_wap(old_qty, old_wap, delta, price))

        stock.quantity = new_qty
        stock.average_purchase_price = new_wap
        stock.save(update_fields=['quantity', 'average_purchase_price', 'updated_at'])

        parent = None
        if reason == StockLedger.REASON_REVERSAL:
            parent = (
                StockLedger.objects.filter(
                    store=store,
                    product_id=item['product_id'],
                    reason=StockLedger.REASON_INITIAL,
                    **doc_filter,
                )
                .order_by('-id')
                .first()
            )

        StockLedger.objects.create(
            type=movement_type,
            reason=reason,
            store=store,
            product_id=item['product_id'],
            quantity=delta,
            quantity_before=old_qty,
            quantity_after=new_qty,
            average_purchase_price=new_wap,
            transaction_amount=delta * (price if direction == DIRECTION_IN else old_wap),
            date=date,
            batch_id=document.code,
            causation_id=causation_id or document.code,
            parent=parent,
            **doc_filter,
        )


def _order_movements(movements):
    """
    Sort ledger entries by date, keeping reversals and corrections right after
    the entry they fix.
    """
    by_id = {move.id: move for move in movements}

    def root_id(move):
        seen = set()
        while move.parent_id in by_id and move.id not in seen:
            seen.add(move.id)
            move = by_id[move.parent_id]
        return move.id

    return sorted(movements, key=lambda move: (move.date, root_id(move), move.id))


def _baseline(store_id, product_id, from_date):
    """Last ledger state recorded before ``from_date``"""
    last = (
        StockLedger.objects.filter(store_id=store_id, product_id=product_id, date__lt=from_date)
        .order_by('-date', '-id')
        .first()
    )
    if last is None:
        return ZERO, ZERO
    same_day = _order_movements(list(
        StockLedger.objects.filter(store_id=store_id, product_id=product_id, date=last.date)
    ))
    last = same_day[-1]
    return last.quantity_after, last.average_purchase_price


def _append_entry(move, reason, quantity, quantity_before, quantity_after, wap, amount, causation_id):
    return StockLedger.objects.create(
        type=move.type,
        reason=reason,
        store_id=move.store_id,
        product_id=move.product_id,
        quantity=quantity,
        quantity_before=quantity_before,
        quantity_after=quantity_after,
        average_purchase_price=wap,
        transaction_amount=amount,
        date=move.date,
        batch_id=move.batch_id,
        causation_id=causation_id,
        parent=move,
        document_purchase_id=move.document_purchase_id,
        document_sale_id=move.document_sale_id,
        document_return_id=move.document_return_id,
        document_adjustment_id=move.document_adjustment_id,
        document_transfer_id=move.document_transfer_id,
    )


def reprocess_product_history(store_id, product_id, from_date, causation_id):
    """
    Replay the ledger of one product in one store from ``from_date``.

    Each pass starts from the last snapshot before ``from_date`` and walks
    the entries in order. A pass stops at the first repair:

    * an INITIAL entry of a document that is no longer completed and was
      never reversed gets a REVERSAL;
    * an entry of a completed document whose recorded snapshot differs from
      the replayed one gets a REVERSAL and a CORRECTION.

    Sale item cost prices follow the replayed WAP. The stock row is written
    once a pass finishes without repairs.
    """
    with transaction.atomic():
        lock_inventory([(store_id, product_id)])

        passes = 0
        repairs_made = True
        current_qty, current_wap = ZERO, ZERO

        while repairs_made and passes < MAX_REPROCESS_PASSES:
            repairs_made = False
            passes += 1

            current_qty, current_wap = _baseline(store_id, product_id, from_date)
            movements = _order_movements(list(
                StockLedger.objects.filter(store_id=store_id, product_id=product_id, date__gte=from_date)
                .select_related(*DOCUMENT_FIELDS)
            ))
            reversed_ids = {move.parent_id for move in movements if move.parent_id}

            for move in movements:
                document = move.document
                is_valid = document is not None and document.status == STATUS_COMPLETED
                next_qty = quantize_qty(current_qty + move.quantity)
                new_wap = current_wap

                if not is_valid and move.reason == StockLedger.REASON_INITIAL and move.id not in reversed_ids:
                    _append_entry(
                        move, StockLedger.REASON_REVERSAL, -move.quantity,
                        next_qty, current_qty, current_wap, -move.transaction_amount, causation_id,
                    )
                    logger.info(f"Reversed orphaned ledger entry {move.id} ({move.batch_id})")
                    repairs_made = True
                    break

                if move.type in WAP_AFFECTING_TYPES and move.quantity != 0:
                    incoming_price = quantize_money(abs(move.transaction_amount) / abs(move.quantity))
                    new_wap = quantize_money(calculate_new_wap(current_qty, current_wap, move.quantity, incoming_price))

                if move.type == StockLedger.TYPE_SALE and is_valid:
                    DocumentSaleItem.objects.filter(
                        document_id=move.document_sale_id, product_id=product_id,
                    ).update(cost_price=current_wap)

                snapshot_changed = (
                    quantize_qty(move.quantity_after) != next_qty
                    or quantize_money(move.average_purchase_price) != new_wap
                )
                if (snapshot_changed and is_valid and move.id not in reversed_ids
                        and move.reason != StockLedger.REASON_REVERSAL):
                    _append_entry(
                        move, StockLedger.REASON_REVERSAL, -move.quantity,
                        move.quantity_after, move.quantity_before, move.average_purchase_price,
                        -move.transaction_amount, causation_id,
                    )
                    correction_price = current_wap
                    if move.type == StockLedger.TYPE_PURCHASE and move.document_purchase_id:
                        item = DocumentPurchaseItem.objects.filter(
                            document_id=move.document_purchase_id, product_id=product_id,
                        ).first()
                        if item is not None:
                            correction_price = item.price
                    _append_entry(
                        move, StockLedger.REASON_CORRECTION, move.quantity,
                        current_qty, next_qty, new_wap, move.quantity * correction_price, causation_id,
                    )
                    logger.info(f"Corrected ledger entry {move.id} ({move.batch_id})")
                    repairs_made = True
                    break

                current_qty = next_qty
                current_wap = new_wap

            if not repairs_made:
                Stock.objects.filter(store_id=store_id, product_id=product_id).update(
                    quantity=current_qty, average_purchase_price=current_wap, updated_at=timezone.now(),
                )

        if repairs_made:
            logger.warning(
                f"Reprocessing product {product_id} in store {store_id} stopped after "
                f"{MAX_REPROCESS_PASSES} passes with pending repairs"
            )
        return current_qty, current_wap
