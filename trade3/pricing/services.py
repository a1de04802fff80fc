"""Price movements: the price ledger is the source of truth for ``Price``"""
import logging

from trade3.catalog.models import Price
from .models import PriceLedger

logger = logging.getLogger('trade3.pricing')


def rebalance_product_price(product_id, price_type_id):
    """Set the current price from the latest ledger row, or drop it when there is none"""
    latest = (
        PriceLedger.objects.filter(product_id=product_id, price_type_id=price_type_id)
        .order_by('-date', '-id')
        .first()
    )
    if latest is None:
        Price.objects.filter(product_id=product_id, price_type_id=price_type_id).delete()
        return None
    price, _ = Price.objects.update_or_create(
        product_id=product_id,
        price_type_id=price_type_id,
        defaults={'value': latest.value},
    )
    return price


def _write_ledger(document, rows):
    PriceLedger.objects.bulk_create([
        PriceLedger(
            product_id=product_id,
            price_type_id=price_type_id,
            value_before=value_before,
            value=value,
            date=document.date,
            document_price_change=document,
            batch_id=document.code,
        )
        for product_id, price_type_id, value_before, value in rows
    ])
    for product_id, price_type_id in {(row[0], row[1]) for row in rows}:
        rebalance_product_price(product_id, price_type_id)


def apply_price_changes(document, items):
    """Record ``old_value -> new_value`` for every item of a completed price change"""
    _write_ledger(document, [
        (item.product_id, item.price_type_id, item.old_value, item.new_value)
        for item in items
    ])
    logger.info(f"Applied {len(items)} price changes from {document.code}")


def revert_price_changes(document, items):
    """Record the inverse movement ``new_value -> old_value`` for every item"""
    _write_ledger(document, [
        (item.product_id, item.price_type_id, item.new_value, item.old_value)
        for item in items
    ])
    logger.info(f"Reverted {len(items)} price changes from {document.code}")
