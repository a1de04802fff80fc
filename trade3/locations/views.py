import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import transaction
from trade3.core.permissions import IsAdminRole
from .cache import get_cached_store_list, cache_store_list
from .models import Store, Cashbox
from .serializers import StoreSerializer, CashboxSerializer

logger = logging.getLogger('trade3.locations')


# Store views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def store_list_create(request):
    """List stores or create a new store (create requires admin)"""
    if request.method == 'GET':
        scope = 'all' if request.query_params.get('include_inactive') in ('1', 'true') else 'active'
        cached_data = get_cached_store_list(scope)
        if cached_data is not None:
            logger.debug(f"Cache hit for store list ({scope})")
            return Response(cached_data)

        stores = Store.objects.alive().prefetch_related('cashboxes')
        if scope == 'active':
            stores = stores.filter(is_active=True)
        data = StoreSerializer(stores, many=True).data
        cache_store_list(data, scope)
        return Response(data)

    if not IsAdminRole().has_permission(request, None):
        logger.warning(f"User {request.user.email} attempted to create store without admin privileges")
        return Response({'error': 'Only administrators can create stores'}, status=status.HTTP_403_FORBIDDEN)

    serializer = StoreSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            store = serializer.save()
        logger.info(f"Store '{store.name}' created by {request.user.email}")
        return Response(StoreSerializer(store).data, status=status.HTTP_201_CREATED)
    logger.warning(f"Store creation validation failed: {serializer.errors}")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def store_detail(request, pk):
    """Retrieve, update or soft-delete a store (update/delete requires admin)"""
    store = get_object_or_404(Store.objects.alive(), pk=pk)

    if request.method == 'GET':
        return Response(StoreSerializer(store).data)

    if not IsAdminRole().has_permission(request, None):
        logger.warning(f"User {request.user.email} attempted to modify store {pk} without admin privileges")
        return Response({'error': 'Only administrators can modify stores'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = StoreSerializer(store, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            with transaction.atomic():
                serializer.save()
            logger.info(f"Store {pk} updated by {request.user.email}")
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    store.soft_delete()
    logger.info(f"Store {pk} ({store.name}) deleted by {request.user.email}")
    return Response(status=status.HTTP_204_NO_CONTENT)


# Cashbox views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def cashbox_list_create(request):
    """List cashboxes (optionally of one store) or create a cashbox"""
    if request.method == 'GET':
        cashboxes = Cashbox.objects.filter(store__deleted_at__isnull=True).select_related('store')
        store_id = request.query_params.get('store')
        if store_id:
            cashboxes = cashboxes.filter(store_id=store_id)
        return Response(CashboxSerializer(cashboxes, many=True).data)

    serializer = CashboxSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            cashbox = serializer.save()
        logger.info(f"Cashbox '{cashbox.name}' created in store {cashbox.store_id}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def cashbox_detail(request, pk):
    """Retrieve, update or delete a cashbox"""
    cashbox = get_object_or_404(Cashbox.objects.select_related('store'), pk=pk)

    if request.method == 'GET':
        return Response(CashboxSerializer(cashbox).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CashboxSerializer(cashbox, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            with transaction.atomic():
                serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        with transaction.atomic():
            cashbox.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
