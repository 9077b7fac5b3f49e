"""
URL configuration for the PartTrack backend.

Every app mounts its API under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "PartTrack Admin Panel"
admin.site.site_title = "PartTrack Admin Portal"
admin.site.index_title = "Prefab Shop Inventory"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.catalog.urls')),
    path('api/v1/', include('backend.locations.urls')),
    path('api/v1/', include('backend.boms.urls')),
    path('api/v1/', include('backend.containers.urls')),
    path('api/v1/', include('backend.inventory.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
