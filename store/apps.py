from django.apps import AppConfig


class StoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'store'
    verbose_name = 'Marketplace store'

    def ready(self):
        from . import signals  # noqa: F401
