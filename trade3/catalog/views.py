import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import OuterRef, Subquery
from django.shortcuts import get_object_or_404
from trade3.core.utils import paginate_queryset
from trade3.inventory.models import Stock
from .filters import ProductFilter
from .models import Category, Product, PriceType, Price
from .serializers import CategorySerializer, ProductSerializer, PriceTypeSerializer, PriceSerializer

logger = logging.getLogger('trade3.catalog')


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List categories (optionally children of one parent) or create a category"""
    if request.method == 'GET':
        categories = Category.objects.select_related('parent')
        parent = request.query_params.get('parent')
        if parent == 'root':
            categories = categories.filter(parent__isnull=True)
        elif parent:
            categories = categories.filter(parent_id=parent)
        return Response(CategorySerializer(categories, many=True).data)

    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            with transaction.atomic():
                serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        # Categories that still hold products are protected (409)
        with transaction.atomic():
            category.delete()
        logger.info(f"Category {pk} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """Search products or create a new product"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('category').prefetch_related('barcodes', 'prices__price_type')
        store_id = request.query_params.get('store')
        if store_id:
            queryset = queryset.annotate(
                store_quantity=Subquery(
                    Stock.objects.filter(product=OuterRef('pk'), store_id=store_id).values('quantity')[:1]
                )
            )
        product_filter = ProductFilter(request.query_params, queryset=queryset)
        queryset = product_filter.qs.order_by('name', 'id')
        return Response(paginate_queryset(request, queryset, ProductSerializer))

    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            product = serializer.save()
        logger.info(f"Product {product.code} '{product.name}' created by {request.user.email}")
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(
        Product.objects.select_related('category').prefetch_related('barcodes', 'prices__price_type'), pk=pk
    )

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            with transaction.atomic():
                product = serializer.save()
            # Barcodes and prices were prefetched before the update
            product._prefetched_objects_cache = {}
            return Response(ProductSerializer(product).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        # Stock rows, prices and barcodes go with the product; documents protect it (409)
        with transaction.atomic():
            product.delete()
        logger.info(f"Product {product.code} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_last_purchase_price(request, pk):
    """Price paid in the most recent completed purchase of the product"""
    from trade3.documents.models import DocumentPurchaseItem, STATUS_COMPLETED

    product = get_object_or_404(Product, pk=pk)
    items = DocumentPurchaseItem.objects.filter(
        product=product, document__status=STATUS_COMPLETED
    ).select_related('document')
    store_id = request.query_params.get('store')
    if store_id:
        items = items.filter(document__store_id=store_id)
    item = items.order_by('-document__date', '-document__created_at', '-id').first()

    if item is None:
        return Response({'product': product.id, 'price': None, 'date': None, 'document': None})
    return Response({
        'product': product.id,
        'price': str(item.price),
        'date': item.document.date.isoformat(),
        'document': {'id': item.document.id, 'code': item.document.code},
    })


# Price type views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def price_type_list_create(request):
    """List all price types or create a new one"""
    if request.method == 'GET':
        return Response(PriceTypeSerializer(PriceType.objects.all(), many=True).data)

    serializer = PriceTypeSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def price_type_detail(request, pk):
    """Retrieve, update or delete a price type"""
    price_type = get_object_or_404(PriceType, pk=pk)

    if request.method == 'GET':
        return Response(PriceTypeSerializer(price_type).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PriceTypeSerializer(price_type, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            with transaction.atomic():
                serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        with transaction.atomic():
            price_type.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def price_list(request):
    """Current prices; they change only through price-change documents"""
    prices = Price.objects.select_related('product', 'price_type')
    product_id = request.query_params.get('product')
    price_type_id = request.query_params.get('price_type')
    if product_id:
        prices = prices.filter(product_id=product_id)
    if price_type_id:
        prices = prices.filter(price_type_id=price_type_id)
    return Response(PriceSerializer(prices, many=True).data)
