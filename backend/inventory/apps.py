from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.inventory'
    store = None

    def ready(self):
        """Build the store the reconciliation workflows run against"""
        from .store import InventoryStore
        self.store = InventoryStore()
