from django.urls import path
from .views import (
    document_list_create, document_detail, document_items, document_item_detail,
    document_status, document_history,
)

# url segment -> document kind
DOCUMENT_ROUTES = [
    ('purchases', 'purchase'),
    ('sales', 'sale'),
    ('returns', 'return'),
    ('adjustments', 'adjustment'),
    ('transfers', 'transfer'),
    ('price-changes', 'price_change'),
]

urlpatterns = []
for segment, kind in DOCUMENT_ROUTES:
    kwargs = {'kind': kind}
    urlpatterns += [
        path(f'{segment}/', document_list_create, kwargs, name=f'{kind}-list-create'),
        path(f'{segment}/<int:pk>/', document_detail, kwargs, name=f'{kind}-detail'),
        path(f'{segment}/<int:pk>/items/', document_items, kwargs, name=f'{kind}-items'),
        path(f'{segment}/<int:pk>/items/<int:product_id>/', document_item_detail, kwargs, name=f'{kind}-item-detail'),
        path(f'{segment}/<int:pk>/status/', document_status, kwargs, name=f'{kind}-status'),
        path(f'{segment}/<int:pk>/history/', document_history, kwargs, name=f'{kind}-history'),
    ]
