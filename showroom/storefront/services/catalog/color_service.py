"""
Colour swatch helpers: HEX normalisation for colour variants.
"""
from __future__ import annotations

import re
from typing import Optional

from storefront.utils.colors import NEUTRAL_SWATCH, swatch_for_color_name

HEX_RE = re.compile(r"^[0-9A-F]{6}$")


def normalize_hex_code(raw: Optional[str]) -> Optional[str]:
    """
    Normalise HEX values to the `#RRGGBB` format.

    Accepts values with/without leading '#', ignores whitespace, and returns
    ``None`` for empty inputs. Raises ValueError for invalid hex strings.
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    if value.startswith("#"):
        value = value[1:]
    if not HEX_RE.fullmatch(value.upper()):
        raise ValueError(f"Invalid HEX colour value: {raw!r}")
    return f"#{value.upper()}"


def swatch_from_legacy_color(raw: Optional[str]) -> str:
    """
    Best swatch for a legacy single-colour field: a HEX value, a known
    colour name, or the neutral swatch.
    """
    if not raw:
        return NEUTRAL_SWATCH
    try:
        normalized = normalize_hex_code(raw)
    except ValueError:
        normalized = None
    return normalized or swatch_for_color_name(raw) or NEUTRAL_SWATCH
