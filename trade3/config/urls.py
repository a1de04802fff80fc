"""
URL configuration for the trade3 backend.

Every app contributes its routes under the ``api/v1/`` prefix.
"""
from django.contrib import admin
from django.urls import path, include

from trade3.core.views import health

admin.site.site_header = "Trade3 Admin Panel"
admin.site.site_title = "Trade3 Admin Portal"
admin.site.index_title = "Store, catalogue and stock administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('health/', health, name='root-health'),
    path('api/v1/', include('trade3.core.urls')),
    path('api/v1/', include('trade3.locations.urls')),
    path('api/v1/', include('trade3.catalog.urls')),
    path('api/v1/', include('trade3.parties.urls')),
    path('api/v1/', include('trade3.inventory.urls')),
    path('api/v1/', include('trade3.pricing.urls')),
    path('api/v1/', include('trade3.documents.urls')),
]
