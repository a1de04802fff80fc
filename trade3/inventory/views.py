import logging
import uuid

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from trade3.core.permissions import IsAdminRole
from trade3.core.utils import paginate_queryset, parse_date_param
from .models import Stock, StockLedger
from .serializers import StockSerializer, StockLedgerSerializer, ReprocessSerializer
from .services import reprocess_product_history

logger = logging.getLogger('trade3.inventory')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_list(request):
    """Stock levels (?store, ?product, ?in_stock=true)"""
    queryset = Stock.objects.select_related('product', 'store')
    store_id = request.query_params.get('store')
    if store_id:
        queryset = queryset.filter(store_id=int(store_id))
    product_id = request.query_params.get('product')
    if product_id:
        queryset = queryset.filter(product_id=int(product_id))
    if request.query_params.get('in_stock') in ('true', '1'):
        queryset = queryset.filter(quantity__gt=0)
    return Response(paginate_queryset(request, queryset.order_by('store__name', 'product__name'), StockSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_ledger_list(request):
    """Stock movements, newest first (?store, ?product, ?type, ?reason, ?date_from, ?date_to)"""
    queryset = StockLedger.objects.select_related(
        'product', 'store', 'document_purchase', 'document_sale', 'document_return',
        'document_adjustment', 'document_transfer',
    )
    store_id = request.query_params.get('store')
    if store_id:
        queryset = queryset.filter(store_id=int(store_id))
    product_id = request.query_params.get('product')
    if product_id:
        queryset = queryset.filter(product_id=int(product_id))
    movement_type = request.query_params.get('type')
    if movement_type:
        queryset = queryset.filter(type=movement_type.upper())
    reason = request.query_params.get('reason')
    if reason:
        queryset = queryset.filter(reason=reason.upper())
    date_from = parse_date_param(request.query_params.get('date_from'))
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    date_to = parse_date_param(request.query_params.get('date_to'), end_of_day=True)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)
    return Response(paginate_queryset(request, queryset.order_by('-date', '-id'), StockLedgerSerializer))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def stock_reprocess(request):
    """Replay the ledger of one product in one store from a date"""
    serializer = ReprocessSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    store = serializer.validated_data['store']
    product = serializer.validated_data['product']
    causation_id = uuid.uuid4().hex
    logger.info(
        f"Manual reprocess of product {product.id} in store {store.id} "
        f"from {serializer.validated_data['date']} by {request.user.email}"
    )
    quantity, wap = reprocess_product_history(store.id, product.id, serializer.validated_data['date'], causation_id)
    return Response({
        'store': store.id,
        'product': product.id,
        'quantity': str(quantity),
        'average_purchase_price': str(wap),
        'causation_id': causation_id,
    })
