from django.apps import AppConfig


class BomsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.boms'
    verbose_name = 'Bills of materials'
