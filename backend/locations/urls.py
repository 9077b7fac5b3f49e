from django.urls import path
from .views import (
    location_list_create, location_detail,
    location_import, location_eligible,
)

urlpatterns = [
    path('locations/', location_list_create, name='location-list-create'),
    path('locations/import/', location_import, name='location-import'),
    path('locations/eligible/', location_eligible, name='location-eligible'),
    path('locations/<int:pk>/', location_detail, name='location-detail'),
]
