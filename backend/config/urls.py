"""
URL configuration for the BioBox backend.

Every app exposes its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "BioBox Admin Panel"
admin.site.site_title = "BioBox Admin Portal"
admin.site.index_title = "BioBox - Gestão de Produção"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.customers.urls')),
    path('api/v1/', include('backend.catalog.urls')),
    path('api/v1/', include('backend.orders.urls')),
    path('api/v1/', include('backend.production.urls')),
    path('api/v1/', include('backend.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
