"""
Storefront utilities package.
"""

from .colors import (
    NEUTRAL_SWATCH,
    normalize_color_name,
    normalize_variant_id,
    swatch_for_color_name,
)
from .slugs import slugify_name, unique_slugify

__all__ = [
    'NEUTRAL_SWATCH',
    'normalize_color_name',
    'normalize_variant_id',
    'swatch_for_color_name',
    'slugify_name',
    'unique_slugify',
]
