from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from trade3.core.utils import paginate_queryset, parse_date_param
from .models import PriceLedger
from .serializers import PriceLedgerSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def price_ledger_list(request):
    """Price history, newest first (?product, ?price_type, ?date_from, ?date_to)"""
    queryset = PriceLedger.objects.select_related('product', 'price_type', 'document_price_change')

    product_id = request.query_params.get('product')
    if product_id:
        queryset = queryset.filter(product_id=int(product_id))
    price_type_id = request.query_params.get('price_type')
    if price_type_id:
        queryset = queryset.filter(price_type_id=int(price_type_id))
    date_from = parse_date_param(request.query_params.get('date_from'))
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    date_to = parse_date_param(request.query_params.get('date_to'), end_of_day=True)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)

    return Response(paginate_queryset(request, queryset.order_by('-date', '-id'), PriceLedgerSerializer))
