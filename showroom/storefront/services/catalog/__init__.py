"""
Catalog-related service helpers (authoritative implementation).
"""

from .color_service import (
    normalize_hex_code,
    swatch_from_legacy_color,
)
from .legacy_upgrade import (
    as_document,
    is_legacy,
    normalize_images,
    upgrade,
)
from .variant_service import (
    VariantResolution,
    add_color,
    add_size,
    clamp_quantity,
    discount_percent,
    ensure_quantity,
    remove_size,
    resolve_variant,
    sync_stock_matrix,
    validate_variant_matrix,
)

__all__ = [
    "normalize_hex_code",
    "swatch_from_legacy_color",
    "as_document",
    "is_legacy",
    "normalize_images",
    "upgrade",
    "VariantResolution",
    "add_color",
    "add_size",
    "clamp_quantity",
    "discount_percent",
    "ensure_quantity",
    "remove_size",
    "resolve_variant",
    "sync_stock_matrix",
    "validate_variant_matrix",
]
