from django.apps import AppConfig


class StorefrontConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'storefront'
    verbose_name = 'Каталог'

    def ready(self):
        # Сигналы для инвалидации кеша витрины и избранных товаров
        from . import cache_signals  # noqa: F401
