from django.urls import path
from .views import bom_list, bom_detail, bom_import_preview, bom_import

urlpatterns = [
    path('boms/', bom_list, name='bom-list'),
    path('boms/import/preview/', bom_import_preview, name='bom-import-preview'),
    path('boms/import/', bom_import, name='bom-import'),
    path('boms/<int:pk>/', bom_detail, name='bom-detail'),
]
