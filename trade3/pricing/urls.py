from django.urls import path
from .views import price_ledger_list

urlpatterns = [
    path('price-ledger/', price_ledger_list, name='price-ledger-list'),
]
