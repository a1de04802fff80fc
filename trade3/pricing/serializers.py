from rest_framework import serializers
from .models import PriceLedger


class PriceLedgerSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    price_type_name = serializers.CharField(source='price_type.name', read_only=True)
    document_code = serializers.CharField(source='document_price_change.code', read_only=True, default=None)

    class Meta:
        model = PriceLedger
        fields = [
            'id', 'product', 'product_name', 'price_type', 'price_type_name',
            'value_before', 'value', 'date', 'document_price_change', 'document_code',
            'batch_id', 'created_at',
        ]
        read_only_fields = fields
