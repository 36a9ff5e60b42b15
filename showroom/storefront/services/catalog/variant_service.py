"""
Buyer-facing resolution of the size x colour variant matrix.

Price and compare price live on the size; images and per-size stock live on
the colour. Resolution never switches the buyer's selection on its own: an
out-of-stock pair is reported as unavailable and the caller decides.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from storefront.exceptions import InsufficientStock, ValidationError
from storefront.services.catalog.color_service import normalize_hex_code
from storefront.services.catalog.legacy_upgrade import as_document, normalize_images, upgrade
from storefront.utils.colors import normalize_variant_id


@dataclass
class VariantResolution:
    """
    Effective view of one (size, colour) selection.

    Attributes:
        size / color: The selected variant entries.
        price / compare_at_price: Read from the selected size.
        stock: Quantity for the pair (0 when the cell is absent).
        images: Selected colour's images, or the product's primary image.
        selectable_sizes: Sizes with a stock cell in the selected colour.
    """

    product_id: Any
    size: Dict[str, Any]
    color: Dict[str, Any]
    price: Any
    compare_at_price: Any
    discount_percent: int
    stock: int
    images: List[Dict[str, Any]] = field(default_factory=list)
    selectable_sizes: List[Dict[str, Any]] = field(default_factory=list)
    sizes: List[Dict[str, Any]] = field(default_factory=list)
    colors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_available(self) -> bool:
        return self.stock > 0

    def as_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload['is_available'] = self.is_available
        return payload


def discount_percent(price, compare_at_price) -> int:
    """round(100 * (1 - price / compare)) when compare > price, else 0."""
    if price is None or not compare_at_price or compare_at_price <= price:
        return 0
    ratio = Decimal(1) - Decimal(str(price)) / Decimal(str(compare_at_price))
    return int((ratio * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _pick(entries, requested_id):
    requested = normalize_variant_id(requested_id)
    if requested is not None:
        for entry in entries:
            if str(entry.get('id')) == requested:
                return entry
    return entries[0]


def _fallback_images(doc) -> List[Dict[str, Any]]:
    if doc.get('primary_image_url'):
        return [{'url': doc['primary_image_url'], 'alt': doc.get('name') or '', 'order': 0}]
    return normalize_images(doc.get('images'))


def resolve_variant(product, size_id=None, color_id=None) -> VariantResolution:
    """
    Resolve price, stock and images for a product selection.

    ``product`` may be a model instance or a document dict, canonical or
    legacy. Missing or unknown ids fall back to the first size/colour.
    """
    doc = upgrade(as_document(product))
    sizes = doc['size_variants']
    colors = doc['color_variants']

    size = _pick(sizes, size_id)
    color = _pick(colors, color_id)
    stock_by_size = {str(key): value for key, value in (color.get('stock_by_size') or {}).items()}

    price = size.get('price')
    compare_at_price = size.get('compare_at_price')
    return VariantResolution(
        product_id=doc.get('id'),
        size=size,
        color=color,
        price=price,
        compare_at_price=compare_at_price,
        discount_percent=discount_percent(price, compare_at_price),
        stock=max(0, int(stock_by_size.get(str(size['id']), 0) or 0)),
        images=normalize_images(color.get('images')) or _fallback_images(doc),
        selectable_sizes=[s for s in sizes if str(s['id']) in stock_by_size],
        sizes=sizes,
        colors=colors,
    )


def ensure_quantity(resolution: VariantResolution, quantity: int) -> int:
    """Raise unless ``quantity`` can be ordered from the resolved pair."""
    if quantity < 1:
        raise ValidationError("quantity must be at least 1", quantity=quantity)
    if quantity > resolution.stock:
        raise InsufficientStock(
            f"Only {resolution.stock} available in stock",
            requested=quantity,
            available=resolution.stock,
        )
    return quantity


def clamp_quantity(resolution: VariantResolution, quantity: int) -> int:
    """Largest orderable quantity not above ``quantity`` (0 when sold out)."""
    if quantity < 1:
        raise ValidationError("quantity must be at least 1", quantity=quantity)
    return min(quantity, resolution.stock)


# ---------- matrix editing ----------


def sync_stock_matrix(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Give every colour exactly one stock cell per current size.

    New sizes get 0; cells for removed sizes are dropped.
    """
    synced = dict(doc)
    size_ids = [str(size['id']) for size in doc.get('size_variants') or []]
    colors = []
    for color in doc.get('color_variants') or []:
        color = dict(color)
        existing = {str(key): value for key, value in (color.get('stock_by_size') or {}).items()}
        color['stock_by_size'] = {size_id: int(existing.get(size_id, 0) or 0) for size_id in size_ids}
        colors.append(color)
    synced['color_variants'] = colors
    return synced


def add_size(doc: Dict[str, Any], size: Dict[str, Any], stock: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
    """Append ``size``; ``stock`` optionally maps colour id -> quantity."""
    if any(str(existing['id']) == str(size['id']) for existing in doc.get('size_variants') or []):
        raise ValidationError(f"size {size['id']!r} already exists", size_id=size['id'])
    updated = dict(doc)
    updated['size_variants'] = list(doc.get('size_variants') or []) + [dict(size)]
    updated = sync_stock_matrix(updated)
    for color in updated['color_variants']:
        quantity = (stock or {}).get(str(color['id']))
        if quantity is not None:
            color['stock_by_size'][str(size['id'])] = int(quantity)
    return updated


def remove_size(doc: Dict[str, Any], size_id) -> Dict[str, Any]:
    sizes = [size for size in doc.get('size_variants') or [] if str(size['id']) != str(size_id)]
    if len(sizes) == len(doc.get('size_variants') or []):
        raise ValidationError(f"size {size_id!r} does not exist", size_id=size_id)
    updated = dict(doc)
    updated['size_variants'] = sizes
    return sync_stock_matrix(updated)


def add_color(doc: Dict[str, Any], color: Dict[str, Any]) -> Dict[str, Any]:
    if any(str(existing['id']) == str(color['id']) for existing in doc.get('color_variants') or []):
        raise ValidationError(f"colour {color['id']!r} already exists", color_id=color['id'])
    updated = dict(doc)
    updated['color_variants'] = list(doc.get('color_variants') or []) + [dict(color)]
    return sync_stock_matrix(updated)


def validate_variant_matrix(doc: Dict[str, Any]) -> None:
    """Raise ValidationError for a malformed canonical matrix."""
    sizes = doc.get('size_variants') or []
    colors = doc.get('color_variants') or []
    if not sizes or not colors:
        raise ValidationError("a product needs at least one size and one colour")

    seen = set()
    for size in sizes:
        if size.get('id') in (None, '') or not size.get('label'):
            raise ValidationError("every size needs an id and a label")
        if str(size['id']) in seen:
            raise ValidationError(f"duplicate size id {size['id']!r}", size_id=size['id'])
        seen.add(str(size['id']))
        price = size.get('price')
        if price is None or price < 0:
            raise ValidationError(f"size {size['id']!r} needs a non-negative price", size_id=size['id'])
        compare = size.get('compare_at_price')
        if compare is not None and compare < 0:
            raise ValidationError(f"size {size['id']!r} has a negative compare price", size_id=size['id'])

    color_ids = set()
    for color in colors:
        if color.get('id') in (None, '') or not color.get('label'):
            raise ValidationError("every colour needs an id and a label")
        if str(color['id']) in color_ids:
            raise ValidationError(f"duplicate colour id {color['id']!r}", color_id=color['id'])
        color_ids.add(str(color['id']))
        try:
            normalize_hex_code(color.get('swatch'))
        except ValueError as exc:
            raise ValidationError(str(exc), color_id=color['id']) from exc
        stock = {str(key): value for key, value in (color.get('stock_by_size') or {}).items()}
        if set(stock) != seen:
            raise ValidationError(
                f"colour {color['id']!r} must have exactly one stock entry per size",
                color_id=color['id'],
            )
        if any(quantity is None or int(quantity) < 0 for quantity in stock.values()):
            raise ValidationError(f"colour {color['id']!r} has negative stock", color_id=color['id'])
