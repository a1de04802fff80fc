from rest_framework import serializers
from .models import Store, Cashbox


class CashboxSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)

    class Meta:
        model = Cashbox
        fields = ['id', 'name', 'store', 'store_name', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_store(self, value):
        if not value.is_usable:
            raise serializers.ValidationError('Store is not active.')
        return value


class StoreSerializer(serializers.ModelSerializer):
    cashboxes = serializers.SerializerMethodField()

    class Meta:
        model = Store
        fields = ['id', 'name', 'address', 'phone', 'is_active', 'cashboxes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_cashboxes(self, obj):
        return [{'id': c.id, 'name': c.name} for c in obj.cashboxes.all()]
