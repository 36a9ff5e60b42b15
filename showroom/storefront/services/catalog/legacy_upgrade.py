"""
Read-time upgrade of single-variant product records.

Older products carry one price, one stock quantity and one image list. The
upgrader maps them onto the size x colour matrix without touching the stored
record; the canonical form is persisted only by an explicit save.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from django.db import models

from storefront.services.catalog.color_service import swatch_from_legacy_color

logger = logging.getLogger(__name__)

STANDARD_SIZE_ID = 'standard'
STANDARD_SIZE_LABEL = 'Standard'
DEFAULT_COLOR_ID = 'default'
DEFAULT_COLOR_LABEL = 'Default'


def as_document(product) -> Dict[str, Any]:
    """
    Return a product as a plain document dict.

    Model instances are flattened by attribute name (``category_id``), which
    matches what the gateway returns from ``get``/``get_all``.
    """
    if isinstance(product, models.Model):
        return {f.attname: getattr(product, f.attname) for f in product._meta.concrete_fields}
    return dict(product)


def normalize_images(images) -> List[Dict[str, Any]]:
    """Accepts URL strings or image dicts; returns dicts ordered by ``order``."""
    result = []
    for index, image in enumerate(images or []):
        if isinstance(image, str):
            if image:
                result.append({'url': image, 'alt': '', 'order': index})
            continue
        url = image.get('url')
        if not url:
            continue
        order = image.get('order')
        result.append({
            'url': url,
            'alt': image.get('alt') or '',
            'order': index if order is None else order,
        })
    result.sort(key=lambda item: item['order'])
    return result


def is_legacy(doc: Dict[str, Any]) -> bool:
    return not (doc.get('size_variants') and doc.get('color_variants'))


def _standard_size(doc):
    size = {
        'id': STANDARD_SIZE_ID,
        'label': STANDARD_SIZE_LABEL,
        'price': doc.get('price') or 0,
    }
    if doc.get('compare_at_price') is not None:
        size['compare_at_price'] = doc['compare_at_price']
    return size


def _default_color(doc):
    return {
        'id': DEFAULT_COLOR_ID,
        'label': DEFAULT_COLOR_LABEL,
        'swatch': swatch_from_legacy_color(doc.get('color')),
        'images': normalize_images(doc.get('images')),
        'stock_by_size': {},
    }


def upgrade(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Canonical equivalent of ``doc``; canonical input is returned as-is.

    A fully legacy record becomes one "Standard" size priced at the legacy
    price and one "Default" colour holding the legacy images, with the legacy
    stock in its single cell. Records with only one of the two arrays keep
    it; a colour without stock data gets the legacy stock in its first cell
    (first colour only) and zero elsewhere.
    """
    if not is_legacy(doc):
        return doc

    upgraded = dict(doc)
    sizes = [dict(size) for size in doc.get('size_variants') or []] or [_standard_size(doc)]
    colors = [dict(color) for color in doc.get('color_variants') or []] or [_default_color(doc)]
    size_ids = [str(size['id']) for size in sizes]
    legacy_stock = int(doc.get('stock_quantity') or 0)

    for index, color in enumerate(colors):
        existing = {str(key): value for key, value in (color.get('stock_by_size') or {}).items()}
        if not existing and index == 0:
            existing = {size_ids[0]: legacy_stock}
        color['stock_by_size'] = {size_id: int(existing.get(size_id, 0)) for size_id in size_ids}
        color['images'] = normalize_images(color.get('images'))

    upgraded['size_variants'] = sizes
    upgraded['color_variants'] = colors
    logger.debug("Upgraded legacy product %s to %s size(s) x %s colour(s)", doc.get('id'), len(sizes), len(colors))
    return upgraded
