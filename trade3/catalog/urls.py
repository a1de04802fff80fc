from django.urls import path
from .views import (
    category_list_create, category_detail,
    product_list_create, product_detail, product_last_purchase_price,
    price_type_list_create, price_type_detail, price_list,
)

urlpatterns = [
    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),

    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/last-purchase-price/', product_last_purchase_price, name='product-last-purchase-price'),

    # Price endpoints
    path('price-types/', price_type_list_create, name='price-type-list-create'),
    path('price-types/<int:pk>/', price_type_detail, name='price-type-detail'),
    path('prices/', price_list, name='price-list'),
]
