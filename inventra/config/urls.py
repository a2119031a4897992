"""
URL configuration for the Inventra API.

Every app mounts its routes under ``api/v1/``.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Inventra Admin Panel"
admin.site.site_title = "Inventra Admin Portal"
admin.site.index_title = "Welcome to Inventra Inventory Management"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('inventra.core.urls')),
    path('api/v1/', include('inventra.catalog.urls')),
    path('api/v1/', include('inventra.parties.urls')),
    path('api/v1/', include('inventra.orders.urls')),
    path('api/v1/', include('inventra.analytics.urls')),
]
