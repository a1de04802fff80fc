from django.contrib import admin
from .models import (
    DocumentHistory,
    DocumentPurchase, DocumentPurchaseItem,
    DocumentSale, DocumentSaleItem,
    DocumentReturn, DocumentReturnItem,
    DocumentAdjustment, DocumentAdjustmentItem,
    DocumentTransfer, DocumentTransferItem,
    DocumentPriceChange, DocumentPriceChangeItem,
)


class ReadOnlyItemInline(admin.TabularInline):
    """Items change through the API so stock stays in sync"""
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]


class PurchaseItemInline(ReadOnlyItemInline):
    model = DocumentPurchaseItem


class SaleItemInline(ReadOnlyItemInline):
    model = DocumentSaleItem


class ReturnItemInline(ReadOnlyItemInline):
    model = DocumentReturnItem


class AdjustmentItemInline(ReadOnlyItemInline):
    model = DocumentAdjustmentItem


class TransferItemInline(ReadOnlyItemInline):
    model = DocumentTransferItem


class PriceChangeItemInline(ReadOnlyItemInline):
    model = DocumentPriceChangeItem


class DocumentAdmin(admin.ModelAdmin):
    list_filter = ['status', 'date']
    search_fields = ['code', 'notes']
    ordering = ['-date', '-id']
    readonly_fields = ['code', 'status', 'author', 'created_at', 'updated_at']


@admin.register(DocumentPurchase)
class DocumentPurchaseAdmin(DocumentAdmin):
    list_display = ['code', 'date', 'store', 'vendor', 'status', 'total', 'author']
    inlines = [PurchaseItemInline]


@admin.register(DocumentSale)
class DocumentSaleAdmin(DocumentAdmin):
    list_display = ['code', 'date', 'store', 'cashbox', 'client', 'status', 'total', 'author']
    inlines = [SaleItemInline]


@admin.register(DocumentReturn)
class DocumentReturnAdmin(DocumentAdmin):
    list_display = ['code', 'date', 'store', 'client', 'status', 'total', 'author']
    inlines = [ReturnItemInline]


@admin.register(DocumentAdjustment)
class DocumentAdjustmentAdmin(DocumentAdmin):
    list_display = ['code', 'date', 'store', 'status', 'author']
    inlines = [AdjustmentItemInline]


@admin.register(DocumentTransfer)
class DocumentTransferAdmin(DocumentAdmin):
    list_display = ['code', 'date', 'store', 'destination_store', 'status', 'author']
    inlines = [TransferItemInline]


@admin.register(DocumentPriceChange)
class DocumentPriceChangeAdmin(DocumentAdmin):
    list_display = ['code', 'date', 'document_purchase', 'status', 'author']
    inlines = [PriceChangeItemInline]


@admin.register(DocumentHistory)
class DocumentHistoryAdmin(admin.ModelAdmin):
    list_display = ['action', 'author', 'created_at']
    list_filter = ['action', 'created_at']
    ordering = ['-created_at']

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False
