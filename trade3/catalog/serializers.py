from rest_framework import serializers
from trade3.core.utils import get_next_code
from .models import Category, Product, Barcode, PriceType, Price


class CategorySerializer(serializers.ModelSerializer):
    parent_name = serializers.CharField(source='parent.name', read_only=True)

    class Meta:
        model = Category
        fields = ['id', 'name', 'parent', 'parent_name', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_parent(self, value):
        if value is None or self.instance is None:
            return value
        if value.pk in self.instance.get_descendant_ids():
            raise serializers.ValidationError('A category cannot be nested inside itself.')
        return value


class PriceTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = PriceType
        fields = ['id', 'name', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class PriceSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    price_type_name = serializers.CharField(source='price_type.name', read_only=True)

    class Meta:
        model = Price
        fields = ['id', 'product', 'product_name', 'price_type', 'price_type_name', 'value', 'updated_at']
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    barcodes = serializers.ListField(
        child=serializers.CharField(max_length=100), required=False, write_only=True
    )
    prices = serializers.SerializerMethodField()
    stock_quantity = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'code', 'article', 'category', 'category_name', 'barcodes',
            'prices', 'stock_quantity', 'created_at', 'updated_at',
        ]
        read_only_fields = ['code', 'created_at', 'updated_at']

    def get_prices(self, obj):
        return [
            {'price_type': p.price_type_id, 'price_type_name': p.price_type.name, 'value': str(p.value)}
            for p in obj.prices.all()
        ]

    def get_stock_quantity(self, obj):
        # Only set when the list was requested for a specific store
        quantity = getattr(obj, 'store_quantity', None)
        return str(quantity) if quantity is not None else None

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['barcodes'] = [b.value for b in instance.barcodes.all()]
        return data

    def validate_barcodes(self, value):
        cleaned = []
        for barcode in value:
            barcode = barcode.strip()
            if barcode and barcode not in cleaned:
                cleaned.append(barcode)
        return cleaned

    def create(self, validated_data):
        barcodes = validated_data.pop('barcodes', [])
        product = Product.objects.create(code=get_next_code('product'), **validated_data)
        for value in barcodes:
            Barcode.objects.create(product=product, value=value)
        return product

    def update(self, instance, validated_data):
        barcodes = validated_data.pop('barcodes', None)
        instance = super().update(instance, validated_data)
        if barcodes is not None:
            instance.barcodes.exclude(value__in=barcodes).delete()
            existing = set(instance.barcodes.values_list('value', flat=True))
            for value in barcodes:
                if value not in existing:
                    Barcode.objects.create(product=instance, value=value)
        return instance
