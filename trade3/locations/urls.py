from django.urls import path
from .views import (
    store_list_create, store_detail,
    cashbox_list_create, cashbox_detail
)

urlpatterns = [
    path('stores/', store_list_create, name='store-list-create'),
    path('stores/<int:pk>/', store_detail, name='store-detail'),
    path('cashboxes/', cashbox_list_create, name='cashbox-list-create'),
    path('cashboxes/<int:pk>/', cashbox_detail, name='cashbox-detail'),
]
