from django.contrib import admin
from .models import Store, Cashbox


class CashboxInline(admin.TabularInline):
    model = Cashbox
    extra = 0


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'is_active', 'deleted_at', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'address']
    ordering = ['name']
    inlines = [CashboxInline]


@admin.register(Cashbox)
class CashboxAdmin(admin.ModelAdmin):
    list_display = ['name', 'store', 'created_at']
    list_filter = ['store']
    search_fields = ['name', 'store__name']
    ordering = ['store', 'name']
