import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from trade3.core.utils import paginate_queryset, parse_date_param
from . import serializers as doc_serializers
from .models import STATUS_CHOICES
from .services import get_workflow

logger = logging.getLogger('trade3.documents')

# kind -> serializers and select_related fields
DOCUMENT_KINDS = {
    'purchase': {
        'read': doc_serializers.PurchaseSerializer,
        'write': doc_serializers.PurchaseWriteSerializer,
        'item': doc_serializers.PurchaseItemSerializer,
        'item_input': doc_serializers.PurchaseItemInputSerializer,
        'item_update': doc_serializers.PurchaseItemUpdateSerializer,
        'related': ('store', 'vendor', 'author', 'price_change'),
    },
    'sale': {
        'read': doc_serializers.SaleSerializer,
        'write': doc_serializers.SaleWriteSerializer,
        'item': doc_serializers.SaleItemSerializer,
        'item_input': doc_serializers.SaleItemInputSerializer,
        'item_update': doc_serializers.SaleItemUpdateSerializer,
        'related': ('store', 'cashbox', 'client', 'price_type', 'author'),
    },
    'return': {
        'read': doc_serializers.ReturnSerializer,
        'write': doc_serializers.ReturnWriteSerializer,
        'item': doc_serializers.ReturnItemSerializer,
        'item_input': doc_serializers.ReturnItemInputSerializer,
        'item_update': doc_serializers.ReturnItemUpdateSerializer,
        'related': ('store', 'client', 'author'),
    },
    'adjustment': {
        'read': doc_serializers.AdjustmentSerializer,
        'write': doc_serializers.AdjustmentWriteSerializer,
        'item': doc_serializers.AdjustmentItemSerializer,
        'item_input': doc_serializers.AdjustmentItemInputSerializer,
        'item_update': doc_serializers.AdjustmentItemUpdateSerializer,
        'related': ('store', 'author'),
    },
    'transfer': {
        'read': doc_serializers.TransferSerializer,
        'write': doc_serializers.TransferWriteSerializer,
        'item': doc_serializers.TransferItemSerializer,
        'item_input': doc_serializers.TransferItemInputSerializer,
        'item_update': doc_serializers.TransferItemUpdateSerializer,
        'related': ('store', 'destination_store', 'author'),
    },
    'price_change': {
        'read': doc_serializers.PriceChangeSerializer,
        'write': doc_serializers.PriceChangeWriteSerializer,
        'item': doc_serializers.PriceChangeItemSerializer,
        'item_input': doc_serializers.PriceChangeItemInputSerializer,
        'item_update': doc_serializers.PriceChangeItemUpdateSerializer,
        'related': ('document_purchase', 'author'),
    },
}

VALID_STATUSES = {value for value, _ in STATUS_CHOICES}


def get_document_queryset(kind):
    workflow = get_workflow(kind)
    related = DOCUMENT_KINDS[kind]['related']
    queryset = workflow.get_queryset().select_related(*related)
    item_related = ['items__product']
    if kind == 'price_change':
        item_related.append('items__price_type')
    return queryset.prefetch_related(*item_related)


def document_response(kind, document, status_code=status.HTTP_200_OK):
    read_serializer = DOCUMENT_KINDS[kind]['read']
    document = get_document_queryset(kind).get(pk=document.pk)
    return Response(read_serializer(document).data, status=status_code)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def document_list_create(request, kind):
    """List documents of one kind (?status, ?store, ?date_from, ?date_to) or create one"""
    read_serializer = DOCUMENT_KINDS[kind]['read']
    write_serializer = DOCUMENT_KINDS[kind]['write']
    workflow = get_workflow(kind)

    if request.method == 'GET':
        queryset = get_document_queryset(kind)
        status_filter = request.query_params.get('status')
        if status_filter:
            statuses = [s for s in status_filter.upper().split(',') if s in VALID_STATUSES]
            queryset = queryset.filter(status__in=statuses)
        store_id = request.query_params.get('store')
        if store_id and kind != 'price_change':
            store_id = int(store_id)
            if kind == 'transfer':
                queryset = queryset.filter(Q(store_id=store_id) | Q(destination_store_id=store_id))
            else:
                queryset = queryset.filter(store_id=store_id)
        date_from = parse_date_param(request.query_params.get('date_from'))
        if date_from:
            queryset = queryset.filter(date__gte=date_from)
        date_to = parse_date_param(request.query_params.get('date_to'), end_of_day=True)
        if date_to:
            queryset = queryset.filter(date__lte=date_to)
        search = request.query_params.get('search', '').strip()
        if search:
            queryset = queryset.filter(Q(code__icontains=search) | Q(notes__icontains=search))
        return Response(paginate_queryset(request, queryset.order_by('-date', '-id'), read_serializer))

    serializer = write_serializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    target_status = data.pop('status', None)
    items = data.pop('items', None)
    document = workflow.create(data, items=items, status=target_status, author=request.user)
    return document_response(kind, document, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def document_detail(request, kind, pk):
    """Retrieve a document, edit a draft header or delete a draft"""
    workflow = get_workflow(kind)
    document = get_object_or_404(get_document_queryset(kind), pk=pk)

    if request.method == 'GET':
        return Response(DOCUMENT_KINDS[kind]['read'](document).data)

    elif request.method in ('PUT', 'PATCH'):
        write_serializer = DOCUMENT_KINDS[kind]['write']
        serializer = write_serializer(document, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data.pop('status', None)
        items = data.pop('items', None)
        document = workflow.update_header(document, data, author=request.user)
        if kind == 'price_change' and items is not None:
            document = workflow.replace_items(document, items, author=request.user)
        return document_response(kind, document)

    else:  # DELETE
        workflow.delete(document, author=request.user)
        logger.info(f"{document.code} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def document_items(request, kind, pk):
    """List, add ({items: [...]}) or remove ({product_ids: [...]}) document items"""
    workflow = get_workflow(kind)
    document = get_object_or_404(get_document_queryset(kind), pk=pk)

    if request.method == 'GET':
        item_serializer = DOCUMENT_KINDS[kind]['item']
        return Response(item_serializer(document.items.all(), many=True).data)

    elif request.method == 'POST':
        item_input_serializer = DOCUMENT_KINDS[kind]['item_input']
        items = request.data.get('items') if isinstance(request.data, dict) else request.data
        serializer = item_input_serializer(data=items, many=True)
        serializer.is_valid(raise_exception=True)
        document = workflow.add_items(document, serializer.validated_data, author=request.user)
        return document_response(kind, document, status.HTTP_201_CREATED)

    else:  # DELETE
        serializer = doc_serializers.RemoveItemsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document = workflow.remove_items(document, serializer.validated_data['product_ids'], author=request.user)
        return document_response(kind, document)


@api_view(['PATCH', 'PUT'])
@permission_classes([IsAuthenticated])
def document_item_detail(request, kind, pk, product_id):
    """Update the item of one product in a draft document"""
    workflow = get_workflow(kind)
    document = get_object_or_404(workflow.get_queryset(), pk=pk)
    item_update_serializer = DOCUMENT_KINDS[kind]['item_update']
    serializer = item_update_serializer(data=request.data, partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)
    document = workflow.update_item(document, product_id, dict(serializer.validated_data), author=request.user)
    return document_response(kind, document)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def document_status(request, kind, pk):
    """Move a document to another status"""
    workflow = get_workflow(kind)
    document = get_object_or_404(workflow.get_queryset(), pk=pk)
    serializer = doc_serializers.StatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    document = workflow.update_status(document, serializer.validated_data['status'], author=request.user)
    return document_response(kind, document)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def document_history(request, kind, pk):
    """Change log of a document, oldest first"""
    document = get_object_or_404(get_workflow(kind).get_queryset(), pk=pk)
    history = document.history.select_related('author').order_by('created_at', 'id')
    return Response(doc_serializers.DocumentHistorySerializer(history, many=True).data)
