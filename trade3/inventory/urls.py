from django.urls import path
from .views import stock_list, stock_ledger_list, stock_reprocess

urlpatterns = [
    path('stock/', stock_list, name='stock-list'),
    path('stock/ledger/', stock_ledger_list, name='stock-ledger-list'),
    path('stock/reprocess/', stock_reprocess, name='stock-reprocess'),
]
