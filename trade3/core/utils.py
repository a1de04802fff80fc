"""Shared helpers: sequential codes, decimal rounding, request parsing"""
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime, parse_date

from .models import Sequence

logger = logging.getLogger('trade3.core')

# kind -> (prefix, first number)
CODE_SEQUENCES = {
    'product': ('P', 10000),
    'purchase': ('P', 1),
    'sale': ('S', 1),
    'return': ('R', 1),
    'adjustment': ('A', 1),
    'transfer': ('T', 1),
    'price_change': ('PC', 1),
}

QUANTITY_PLACES = Decimal('0.001')
MONEY_PLACES = Decimal('0.01')


def get_next_code(kind):
    """
    Return the next code for the given sequence kind, e.g. ``S-42``.

    The counter row is locked for the duration of the increment so two
    concurrent requests never receive the same number.
    """
    prefix, start = CODE_SEQUENCES[kind]
    with transaction.atomic():
        Sequence.objects.get_or_create(name=kind, defaults={'last_value': start - 1})
        sequence = Sequence.objects.select_for_update().get(name=kind)
        sequence.last_value += 1
        sequence.save(update_fields=['last_value', 'updated_at'])
    return f"{prefix}-{sequence.last_value}"


def quantize_qty(value):
    return Decimal(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def quantize_money(value):
    return Decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def parse_date_param(value, end_of_day=False):
    """Parse a query parameter holding a date or datetime into an aware datetime"""
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
        day = parse_date(value) if parsed is None else None
    except ValueError:
        return None
    if parsed is None:
        if day is None:
            return None
        parsed = datetime.combine(
            day,
            datetime.max.time() if end_of_day else datetime.min.time(),
        )
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def paginate_queryset(request, queryset, serializer_class, default_limit=20, context=None):
    """Page a queryset the way list endpoints return it"""
    from django.core.paginator import Paginator

    try:
        page = int(request.query_params.get('page', 1))
        limit = int(request.query_params.get('limit', default_limit))
    except (TypeError, ValueError):
        page, limit = 1, default_limit
    limit = max(1, min(limit, 500))

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }
