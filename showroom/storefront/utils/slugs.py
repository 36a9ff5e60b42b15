from django.utils.text import slugify


def slugify_name(name):
    """'Block Print Quilts' -> 'block-print-quilts'."""
    return slugify(name or '')


def unique_slugify(model, base_slug, **scope):
    """
    Створює унікальний slug на основі base_slug для заданої моделі.

    Якщо slug вже існує, додає числовий суфікс (-2, -3, і т.д.)
    до тих пір, поки не знайде унікальне значення. ``scope`` обмежує
    перевірку (наприклад, ``category_id`` для підкатегорій).

    Example:
        >>> unique_slugify(Product, 'my-product')
        'my-product'
        >>> unique_slugify(Product, 'my-product')  # якщо вже існує
        'my-product-2'
    """
    slug = base_slug or 'item'
    # Видаляємо зайві дефіси по краям
    slug = slug.strip('-') or 'item'

    uniq = slug
    i = 2
    while model.objects.filter(slug=uniq, **scope).exists():
        uniq = f"{slug}-{i}"
        i += 1
    return uniq
