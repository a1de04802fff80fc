from decimal import Decimal

from rest_framework import serializers
from rest_framework.exceptions import NotFound

from trade3.catalog.models import Product, PriceType
from .models import (
    STATUS_CHOICES, DocumentHistory,
    DocumentPurchase, DocumentPurchaseItem,
    DocumentSale, DocumentSaleItem,
    DocumentReturn, DocumentReturnItem,
    DocumentAdjustment, DocumentAdjustmentItem,
    DocumentTransfer, DocumentTransferItem,
    DocumentPriceChange, DocumentPriceChangeItem,
)

MIN_QUANTITY = Decimal('0.001')


class DocumentHistorySerializer(serializers.ModelSerializer):
    author_email = serializers.CharField(source='author.email', read_only=True, default=None)

    class Meta:
        model = DocumentHistory
        fields = ['id', 'action', 'details', 'author', 'author_email', 'created_at']
        read_only_fields = fields


class StatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUS_CHOICES)


class RemoveItemsSerializer(serializers.Serializer):
    product_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


def validate_usable_store(value):
    """Deleted or deactivated stores cannot take new documents"""
    if value is not None and not value.is_usable:
        raise NotFound(f"Store {value.pk} not found or inactive.")
    return value


# Item input serializers

class NewPriceSerializer(serializers.Serializer):
    price_type = serializers.PrimaryKeyRelatedField(queryset=PriceType.objects.all())
    value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))


class PurchaseItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=MIN_QUANTITY)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    new_prices = NewPriceSerializer(many=True, required=False)


class PurchaseItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=MIN_QUANTITY, required=False)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False)
    new_prices = NewPriceSerializer(many=True, required=False)


class SaleItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=MIN_QUANTITY)
    price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True
    )


class SaleItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=MIN_QUANTITY, required=False)
    price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True
    )


class ReturnItemInputSerializer(SaleItemInputSerializer):
    pass


class ReturnItemUpdateSerializer(SaleItemUpdateSerializer):
    pass


class AdjustmentItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)

    def validate_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError('Quantity cannot be zero.')
        return value


class AdjustmentItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)

    def validate_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError('Quantity cannot be zero.')
        return value


class TransferItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=MIN_QUANTITY)


class TransferItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=MIN_QUANTITY)


class PriceChangeItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    price_type = serializers.PrimaryKeyRelatedField(queryset=PriceType.objects.all())
    new_value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))


class PriceChangeItemUpdateSerializer(serializers.Serializer):
    new_value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))


# Header write serializers: ``status`` and ``items`` are handed to the workflow

class DocumentWriteSerializer(serializers.ModelSerializer):
    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False, write_only=True)

    def validate_store(self, value):
        return validate_usable_store(value)


class PurchaseWriteSerializer(DocumentWriteSerializer):
    items = PurchaseItemInputSerializer(many=True, required=False, write_only=True)

    class Meta:
        model = DocumentPurchase
        fields = ['store', 'vendor', 'date', 'notes', 'status', 'items']


class SaleWriteSerializer(DocumentWriteSerializer):
    items = SaleItemInputSerializer(many=True, required=False, write_only=True)

    class Meta:
        model = DocumentSale
        fields = ['store', 'cashbox', 'client', 'price_type', 'date', 'notes', 'status', 'items']


class ReturnWriteSerializer(DocumentWriteSerializer):
    items = ReturnItemInputSerializer(many=True, required=False, write_only=True)

    class Meta:
        model = DocumentReturn
        fields = ['store', 'client', 'date', 'notes', 'status', 'items']


class AdjustmentWriteSerializer(DocumentWriteSerializer):
    items = AdjustmentItemInputSerializer(many=True, required=False, write_only=True)

    class Meta:
        model = DocumentAdjustment
        fields = ['store', 'date', 'notes', 'status', 'items']


class TransferWriteSerializer(DocumentWriteSerializer):
    items = TransferItemInputSerializer(many=True, required=False, write_only=True)

    class Meta:
        model = DocumentTransfer
        fields = ['store', 'destination_store', 'date', 'notes', 'status', 'items']

    def validate_destination_store(self, value):
        return validate_usable_store(value)


class PriceChangeWriteSerializer(DocumentWriteSerializer):
    items = PriceChangeItemInputSerializer(many=True, required=False, write_only=True)

    class Meta:
        model = DocumentPriceChange
        fields = ['date', 'notes', 'document_purchase', 'status', 'items']


# Read serializers

class ItemReadSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_code = serializers.CharField(source='product.code', read_only=True)


class PurchaseItemSerializer(ItemReadSerializer):
    class Meta:
        model = DocumentPurchaseItem
        fields = ['id', 'product', 'product_name', 'product_code', 'quantity', 'price', 'total']


class SaleItemSerializer(ItemReadSerializer):
    class Meta:
        model = DocumentSaleItem
        fields = ['id', 'product', 'product_name', 'product_code', 'quantity', 'price', 'cost_price', 'total']


class ReturnItemSerializer(ItemReadSerializer):
    class Meta:
        model = DocumentReturnItem
        fields = ['id', 'product', 'product_name', 'product_code', 'quantity', 'price', 'total']


class AdjustmentItemSerializer(ItemReadSerializer):
    class Meta:
        model = DocumentAdjustmentItem
        fields = [
            'id', 'product', 'product_name', 'product_code', 'quantity', 'quantity_before', 'quantity_after',
        ]


class TransferItemSerializer(ItemReadSerializer):
    class Meta:
        model = DocumentTransferItem
        fields = ['id', 'product', 'product_name', 'product_code', 'quantity']


class PriceChangeItemSerializer(ItemReadSerializer):
    price_type_name = serializers.CharField(source='price_type.name', read_only=True)

    class Meta:
        model = DocumentPriceChangeItem
        fields = [
            'id', 'product', 'product_name', 'product_code', 'price_type', 'price_type_name',
            'old_value', 'new_value',
        ]


DOCUMENT_FIELDS = ['id', 'code', 'date', 'status', 'notes', 'author', 'author_email', 'created_at', 'updated_at']


class DocumentReadSerializer(serializers.ModelSerializer):
    author_email = serializers.CharField(source='author.email', read_only=True, default=None)


class PurchaseSerializer(DocumentReadSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    vendor_name = serializers.CharField(source='vendor.name', read_only=True, default=None)
    items = PurchaseItemSerializer(many=True, read_only=True)
    price_change = serializers.SerializerMethodField()

    class Meta:
        model = DocumentPurchase
        fields = DOCUMENT_FIELDS + [
            'store', 'store_name', 'vendor', 'vendor_name', 'total', 'items', 'price_change',
        ]

    def get_price_change(self, obj):
        price_change = getattr(obj, 'price_change', None)
        if price_change is None:
            return None
        return {'id': price_change.id, 'code': price_change.code, 'status': price_change.status}


class SaleSerializer(DocumentReadSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    cashbox_name = serializers.CharField(source='cashbox.name', read_only=True, default=None)
    client_name = serializers.CharField(source='client.name', read_only=True, default=None)
    price_type_name = serializers.CharField(source='price_type.name', read_only=True, default=None)
    items = SaleItemSerializer(many=True, read_only=True)

    class Meta:
        model = DocumentSale
        fields = DOCUMENT_FIELDS + [
            'store', 'store_name', 'cashbox', 'cashbox_name', 'client', 'client_name',
            'price_type', 'price_type_name', 'total', 'items',
        ]


class ReturnSerializer(DocumentReadSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    client_name = serializers.CharField(source='client.name', read_only=True, default=None)
    items = ReturnItemSerializer(many=True, read_only=True)

    class Meta:
        model = DocumentReturn
        fields = DOCUMENT_FIELDS + ['store', 'store_name', 'client', 'client_name', 'total', 'items']


class AdjustmentSerializer(DocumentReadSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    items = AdjustmentItemSerializer(many=True, read_only=True)

    class Meta:
        model = DocumentAdjustment
        fields = DOCUMENT_FIELDS + ['store', 'store_name', 'items']


class TransferSerializer(DocumentReadSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    destination_store_name = serializers.CharField(source='destination_store.name', read_only=True)
    items = TransferItemSerializer(many=True, read_only=True)

    class Meta:
        model = DocumentTransfer
        fields = DOCUMENT_FIELDS + [
            'store', 'store_name', 'destination_store', 'destination_store_name', 'items',
        ]


class PriceChangeSerializer(DocumentReadSerializer):
    document_purchase_code = serializers.CharField(source='document_purchase.code', read_only=True, default=None)
    items = PriceChangeItemSerializer(many=True, read_only=True)

    class Meta:
        model = DocumentPriceChange
        fields = DOCUMENT_FIELDS + ['document_purchase', 'document_purchase_code', 'items']
