from django.contrib import admin
from .models import PriceLedger


@admin.register(PriceLedger)
class PriceLedgerAdmin(admin.ModelAdmin):
    list_display = ['product', 'price_type', 'value_before', 'value', 'date', 'batch_id']
    list_filter = ['price_type', 'date']
    search_fields = ['product__name', 'product__code', 'batch_id']
    ordering = ['-date', '-id']
    readonly_fields = [f.name for f in PriceLedger._meta.fields]

    def has_add_permission(self, request):
        return False
