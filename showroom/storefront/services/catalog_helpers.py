"""
Utility helpers for catalog-related views: cached showcase categories and featured products.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.cache import BaseCache

logger = logging.getLogger(__name__)

CATALOG_VERSION_KEY = 'showroom:catalog:version'


def _timeout(timeout: Optional[int]) -> int:
    if timeout is not None:
        return timeout
    return getattr(settings, 'SHOWROOM_CACHE_TIMEOUT', 600)


def _service():
    from storefront.services.merchandising import get_service

    return get_service()


def catalog_version(cache_backend: BaseCache) -> str:
    version = cache_backend.get(CATALOG_VERSION_KEY)
    if version is None:
        version = bump_catalog_version(cache_backend)
    return version


def bump_catalog_version(cache_backend: BaseCache) -> str:
    """
    Invalidate every cached showcase/featured list at once.

    Cached lists are keyed by the version, so stale entries just expire.
    """
    version = uuid.uuid4().hex
    cache_backend.set(CATALOG_VERSION_KEY, version, None)
    return version


def get_showcase_categories_cached(cache_backend: Optional[BaseCache], timeout: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Retrieve showcase categories in rank order with caching.
    """
    if cache_backend is None:
        logger.warning("No cache backend passed to get_showcase_categories_cached; querying DB directly.")
        return _service().showcase_categories()

    key = f'showroom:{catalog_version(cache_backend)}:showcase'
    categories = cache_backend.get(key)
    if categories is not None:
        return categories

    categories = _service().showcase_categories()
    cache_backend.set(key, categories, _timeout(timeout))
    return categories


def get_featured_products_cached(
    category_id,
    cache_backend: Optional[BaseCache],
    timeout: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Featured products of one category in rank order.
    """
    if cache_backend is None:
        logger.warning("No cache backend passed to get_featured_products_cached; querying DB directly.")
        return _service().featured_products(category_id)

    key = f'showroom:{catalog_version(cache_backend)}:featured:{category_id}'
    products = cache_backend.get(key)
    if products is not None:
        return products

    products = _service().featured_products(category_id)
    cache_backend.set(key, products, _timeout(timeout))
    return products
