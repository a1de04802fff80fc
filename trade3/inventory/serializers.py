from rest_framework import serializers

from trade3.catalog.models import Product
from trade3.locations.models import Store
from .models import Stock, StockLedger


class StockSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_code = serializers.CharField(source='product.code', read_only=True)
    store_name = serializers.CharField(source='store.name', read_only=True)

    class Meta:
        model = Stock
        fields = [
            'id', 'product', 'product_name', 'product_code', 'store', 'store_name',
            'quantity', 'average_purchase_price', 'updated_at',
        ]
        read_only_fields = fields


class StockLedgerSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    store_name = serializers.CharField(source='store.name', read_only=True)
    document = serializers.SerializerMethodField()

    class Meta:
        model = StockLedger
        fields = [
            'id', 'type', 'reason', 'product', 'product_name', 'store', 'store_name',
            'quantity', 'quantity_before', 'quantity_after', 'average_purchase_price',
            'transaction_amount', 'date', 'batch_id', 'causation_id', 'parent',
            'document', 'created_at',
        ]
        read_only_fields = fields

    def get_document(self, obj):
        for kind, field in (
            ('purchase', 'document_purchase'),
            ('sale', 'document_sale'),
            ('return', 'document_return'),
            ('adjustment', 'document_adjustment'),
            ('transfer', 'document_transfer'),
        ):
            document = getattr(obj, field)
            if document is not None:
                return {'kind': kind, 'id': document.id, 'code': document.code, 'status': document.status}
        return None


class ReprocessSerializer(serializers.Serializer):
    store = serializers.PrimaryKeyRelatedField(queryset=Store.objects.all())
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    date = serializers.DateTimeField()
