from django.urls import path
from .views import inventory_items, location_inventory, dashboard_summary

urlpatterns = [
    path('inventory/items/', inventory_items, name='inventory-items'),
    path('inventory/locations/', location_inventory, name='inventory-locations'),
    path('dashboard/summary/', dashboard_summary, name='dashboard-summary'),
]
