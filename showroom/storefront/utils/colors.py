"""
Color utility functions for storefront app.

Centralized swatch/name handling shared by the legacy upgrader and the
variant resolver.
"""

from typing import Optional

NEUTRAL_SWATCH = '#CCCCCC'

NAMED_SWATCHES = {
    'black': '#000000',
    'white': '#FFFFFF',
    'ivory': '#FFFFF0',
    'cream': '#FFFDD0',
    'beige': '#F5F5DC',
    'red': '#FF0000',
    'maroon': '#800000',
    'pink': '#FFC0CB',
    'orange': '#FFA500',
    'mustard': '#FFDB58',
    'yellow': '#FFFF00',
    'green': '#008000',
    'olive': '#808000',
    'teal': '#008080',
    'blue': '#0000FF',
    'navy': '#000080',
    'indigo': '#4B0082',
    'purple': '#800080',
    'gray': '#808080',
    'grey': '#808080',
    'brown': '#A52A2A',
}


def normalize_color_name(raw_color: Optional[str]) -> str:
    """Normalizes color name (trims, lowercase)."""
    if not raw_color:
        return ''
    return raw_color.strip().lower()


def swatch_for_color_name(color_name: Optional[str]) -> Optional[str]:
    """
    Returns ``#RRGGBB`` for a known English color name.

    Args:
        color_name: Free-form color name (e.g. 'Navy ', 'indigo')

    Returns:
        Hex swatch or None if the name is unknown
    """
    return NAMED_SWATCHES.get(normalize_color_name(color_name))


def normalize_variant_id(raw) -> Optional[str]:
    """Normalizes a requested size/color id to str or None."""
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None
    if value.lower() in {'none', 'null', 'false', 'undefined'}:
        return None
    return value
