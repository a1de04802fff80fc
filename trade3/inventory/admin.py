from django.contrib import admin
from .models import Stock, StockLedger


@admin.register(Stock)
class StockAdmin(admin.ModelAdmin):
    list_display = ['product', 'store', 'quantity', 'average_purchase_price', 'updated_at']
    list_filter = ['store']
    search_fields = ['product__name', 'product__code']
    readonly_fields = ['product', 'store', 'quantity', 'average_purchase_price', 'updated_at']

    def has_add_permission(self, request):
        return False


@admin.register(StockLedger)
class StockLedgerAdmin(admin.ModelAdmin):
    list_display = ['date', 'type', 'reason', 'product', 'store', 'quantity', 'quantity_after', 'average_purchase_price', 'batch_id']
    list_filter = ['type', 'reason', 'store']
    search_fields = ['product__name', 'batch_id', 'causation_id']
    ordering = ['-date', '-id']

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False
