"""
Tests for variant resolution and matrix editing.
"""
from __future__ import annotations

from django.test import SimpleTestCase

from storefront.exceptions import InsufficientStock, ValidationError
from storefront.services.catalog import (
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
from storefront.services.merchandising import MerchandisingService

from .base import CatalogTestCase, canonical_variants, make_product


def product_doc(**extra):
    doc = {'id': 11, 'name': 'Indigo Quilt', 'primary_image_url': '/media/quilt.jpg'}
    doc.update(canonical_variants())
    doc.update(extra)
    return doc


class ResolveVariantTests(SimpleTestCase):
    def test_price_and_stock_follow_selected_size(self):
        small = resolve_variant(product_doc(), 'S')
        medium = resolve_variant(product_doc(), 'M')

        self.assertEqual((small.stock, small.price), (0, 500))
        self.assertEqual((medium.stock, medium.price), (3, 700))

    def test_zero_stock_keeps_selection(self):
        resolution = resolve_variant(product_doc(), 'S', 'indigo')

        self.assertEqual(resolution.size['id'], 'S')
        self.assertFalse(resolution.is_available)

    def test_missing_or_unknown_ids_default_to_first_entry(self):
        for size_id in (None, '', 'none', 'XXL'):
            with self.subTest(size_id=size_id):
                resolution = resolve_variant(product_doc(), size_id, 'undefined')
                self.assertEqual(resolution.size['id'], 'S')
                self.assertEqual(resolution.color['id'], 'indigo')

    def test_absent_stock_cell_is_zero_and_not_selectable(self):
        doc = product_doc()
        doc['color_variants'][0]['stock_by_size'] = {'M': 3}

        resolution = resolve_variant(doc, 'S')

        self.assertEqual(resolution.stock, 0)
        self.assertEqual([s['id'] for s in resolution.selectable_sizes], ['M'])

    def test_compare_price_gives_discount(self):
        resolution = resolve_variant(product_doc(), 'M')
        self.assertEqual(resolution.compare_at_price, 1000)
        self.assertEqual(resolution.discount_percent, 30)

    def test_images_fall_back_to_primary_image(self):
        doc = product_doc()
        doc['color_variants'][0]['images'] = []

        resolution = resolve_variant(doc)

        self.assertEqual([image['url'] for image in resolution.images], ['/media/quilt.jpg'])

    def test_as_dict_includes_availability(self):
        payload = resolve_variant(product_doc(), 'M').as_dict()
        self.assertTrue(payload['is_available'])
        self.assertEqual(payload['product_id'], 11)


class DiscountTests(SimpleTestCase):
    def test_discount_percent(self):
        cases = [
            ((750, 1000), 25),
            ((333, 1000), 67),
            ((995, 1000), 1),
            ((1000, 1000), 0),
            ((1200, 1000), 0),
            ((500, None), 0),
        ]
        for args, expected in cases:
            with self.subTest(args=args):
                self.assertEqual(discount_percent(*args), expected)


class QuantityTests(SimpleTestCase):
    def test_ensure_quantity(self):
        resolution = resolve_variant(product_doc(), 'M')

        self.assertEqual(ensure_quantity(resolution, 3), 3)
        with self.assertRaises(InsufficientStock) as ctx:
            ensure_quantity(resolution, 4)
        self.assertEqual((ctx.exception.requested, ctx.exception.available), (4, 3))
        with self.assertRaises(ValidationError):
            ensure_quantity(resolution, 0)

    def test_clamp_quantity(self):
        self.assertEqual(clamp_quantity(resolve_variant(product_doc(), 'M'), 5), 3)
        self.assertEqual(clamp_quantity(resolve_variant(product_doc(), 'M'), 2), 2)
        self.assertEqual(clamp_quantity(resolve_variant(product_doc(), 'S'), 2), 0)
        with self.assertRaises(ValidationError):
            clamp_quantity(resolve_variant(product_doc(), 'M'), 0)


class MatrixEditingTests(SimpleTestCase):
    def test_add_size_adds_zero_stock_cells(self):
        doc = add_size(product_doc(), {'id': 'L', 'label': 'Large', 'price': 900})
        self.assertEqual(doc['color_variants'][0]['stock_by_size'], {'S': 0, 'M': 3, 'L': 0})

    def test_add_size_with_stock(self):
        doc = add_size(product_doc(), {'id': 'L', 'label': 'Large', 'price': 900}, stock={'indigo': 4})
        self.assertEqual(doc['color_variants'][0]['stock_by_size']['L'], 4)

    def test_add_existing_size_raises(self):
        with self.assertRaises(ValidationError):
            add_size(product_doc(), {'id': 'S', 'label': 'Small', 'price': 1})

    def test_remove_size_drops_cells(self):
        original = product_doc()
        doc = remove_size(original, 'S')

        self.assertEqual([s['id'] for s in doc['size_variants']], ['M'])
        self.assertEqual(doc['color_variants'][0]['stock_by_size'], {'M': 3})
        # input untouched
        self.assertIn('S', original['color_variants'][0]['stock_by_size'])

    def test_add_color_gets_cell_per_size(self):
        doc = add_color(product_doc(), {'id': 'rust', 'label': 'Rust', 'swatch': '#B7410E', 'images': []})
        self.assertEqual(doc['color_variants'][1]['stock_by_size'], {'S': 0, 'M': 0})

    def test_sync_drops_unknown_sizes(self):
        doc = product_doc()
        doc['color_variants'][0]['stock_by_size'] = {'S': 1, 'XL': 9}
        synced = sync_stock_matrix(doc)
        self.assertEqual(synced['color_variants'][0]['stock_by_size'], {'S': 1, 'M': 0})

    def test_validate_variant_matrix(self):
        validate_variant_matrix(product_doc())

        def broken(mutate):
            doc = product_doc()
            mutate(doc)
            return doc

        cases = {
            'duplicate size': lambda d: d['size_variants'].append(dict(d['size_variants'][0])),
            'negative price': lambda d: d['size_variants'][0].update(price=-1),
            'bad swatch': lambda d: d['color_variants'][0].update(swatch='indigo'),
            'negative stock': lambda d: d['color_variants'][0]['stock_by_size'].update(M=-2),
            'missing cell': lambda d: d['color_variants'][0]['stock_by_size'].pop('M'),
            'no colours': lambda d: d.update(color_variants=[]),
        }
        for name, mutate in cases.items():
            with self.subTest(name):
                with self.assertRaises(ValidationError):
                    validate_variant_matrix(broken(mutate))


class ResolveStoredProductTests(CatalogTestCase):
    def test_resolve_by_id_and_instance(self):
        product = make_product('Indigo Quilt', self.category, **canonical_variants())
        service = MerchandisingService()

        by_id = service.resolve_variant(product.pk, 'M')
        by_instance = service.resolve_variant(product, 'M')

        self.assertEqual(by_id.as_dict(), by_instance.as_dict())
        self.assertEqual(by_id.stock, 3)
