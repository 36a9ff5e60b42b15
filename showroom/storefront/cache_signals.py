"""
Сигналы инфраструктуры кеша: инвалидация витрины и избранных товаров.
"""
import logging

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Category, Product, SubCategory
from .services.catalog_helpers import bump_catalog_version
from .services.gateway import documents_changed

logger = logging.getLogger(__name__)


@receiver(documents_changed)
def invalidate_on_documents_changed(sender, collection=None, ids=None, **kwargs):
    """
    Записи через шлюз (ранги, счетчики, удаления).
    """
    logger.debug("Catalog cache invalidated by %s change: %s", collection, ids)
    bump_catalog_version(cache)


@receiver([post_save, post_delete], sender=Category)
@receiver([post_save, post_delete], sender=SubCategory)
@receiver([post_save, post_delete], sender=Product)
def invalidate_on_model_change(sender, **kwargs):
    """
    Очищает кэш при изменении через ORM напрямую (админка, shell).
    """
    bump_catalog_version(cache)
