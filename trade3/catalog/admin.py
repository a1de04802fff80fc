from django.contrib import admin
from trade3.core.utils import get_next_code
from .models import Category, Product, Barcode, PriceType, Price


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'parent', 'created_at']
    search_fields = ['name']
    ordering = ['name']


class BarcodeInline(admin.TabularInline):
    model = Barcode
    extra = 0


class PriceInline(admin.TabularInline):
    model = Price
    extra = 0
    readonly_fields = ['price_type', 'value', 'updated_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'article', 'category', 'created_at']
    list_filter = ['category']
    search_fields = ['name', 'code', 'article', 'barcodes__value']
    ordering = ['name']
    readonly_fields = ['code', 'created_at', 'updated_at']
    inlines = [BarcodeInline, PriceInline]

    def save_model(self, request, obj, form, change):
        if not obj.code:
            obj.code = get_next_code('product')
        super().save_model(request, obj, form, change)


@admin.register(PriceType)
class PriceTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(Price)
class PriceAdmin(admin.ModelAdmin):
    list_display = ['product', 'price_type', 'value', 'updated_at']
    list_filter = ['price_type']
    search_fields = ['product__name', 'product__code']
    readonly_fields = ['product', 'price_type', 'value', 'updated_at']
