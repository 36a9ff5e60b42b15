"""
Tests for denormalised counters and their recount.
"""
from __future__ import annotations

from storefront.exceptions import ValidationError
from storefront.models import Category, Product, SubCategory
from storefront.services.counters import CatalogCountKeeper
from storefront.services.gateway import Increment
from storefront.services.merchandising import MerchandisingService

from .base import CatalogTestCase, make_category, make_product


class CountKeeperOpsTests(CatalogTestCase):
    def setUp(self):
        self.keeper = CatalogCountKeeper()

    def test_created_product_increments_category_and_sub_category(self):
        ops = self.keeper.on_product_created({'category_id': 1, 'sub_category_id': 2, 'is_active': True})
        self.assertEqual(
            [(op.collection, op.id, op.data) for op in ops],
            [
                ('categories', 1, {'product_count': Increment(1)}),
                ('subcategories', 2, {'product_count': Increment(1)}),
            ],
        )

    def test_inactive_product_does_not_count(self):
        self.assertEqual(self.keeper.on_product_created({'category_id': 1, 'is_active': False}), [])

    def test_move_between_categories(self):
        ops = self.keeper.on_product_updated(
            {'category_id': 1, 'sub_category_id': None, 'is_active': True},
            {'category_id': 3, 'sub_category_id': None, 'is_active': True},
        )
        self.assertEqual(
            [(op.id, op.data['product_count'].amount) for op in ops],
            [(1, -1), (3, 1)],
        )

    def test_unchanged_placement_produces_no_ops(self):
        doc = {'category_id': 1, 'sub_category_id': 2, 'is_active': True}
        self.assertEqual(self.keeper.on_product_updated(doc, dict(doc, name='Renamed')), [])

    def test_sub_category_move_shifts_category_count(self):
        ops = self.keeper.on_sub_category_updated(
            {'category_id': 1, 'is_active': True},
            {'category_id': 3, 'is_active': True},
        )
        self.assertEqual(
            [(op.id, op.data['sub_category_count'].amount) for op in ops],
            [(1, -1), (3, 1)],
        )

    def test_sub_category_rename_produces_no_ops(self):
        doc = {'category_id': 1, 'is_active': True, 'name': 'Kantha'}
        self.assertEqual(self.keeper.on_sub_category_updated(doc, dict(doc, name='Suzani')), [])


class RecountTests(CatalogTestCase):
    def setUp(self):
        self.service = MerchandisingService()

    def test_recount_after_deleting_two_of_five(self):
        products = [make_product(f'Quilt {i}', self.category) for i in range(5)]
        Category.objects.filter(pk=self.category.pk).update(product_count=42)
        for product in products[:2]:
            product.delete()

        with self.assertLogs('storefront.services.counters', level='WARNING') as logs:
            counts = self.service.recount_category(self.category.pk)

        self.assertEqual(counts['product_count'], 3)
        self.assertIn('Inconsistent counters', logs.output[0])
        self.category.refresh_from_db()
        self.assertEqual(self.category.product_count, 3)

    def test_recount_ignores_inactive_documents(self):
        make_product('Visible', self.category, sub_category=self.sub_category)
        make_product('Hidden', self.category, sub_category=self.sub_category, is_active=False)

        self.assertEqual(self.service.recount_sub_category(self.sub_category.pk), {'product_count': 1})
        self.assertEqual(self.service.recount_category(self.category.pk)['sub_category_count'], 1)

    def test_recount_without_drift_does_not_write(self):
        self.service.recount_category(self.category.pk)
        stamp = Category.objects.values_list('updated_at', flat=True).get(pk=self.category.pk)

        self.service.recount_category(self.category.pk)

        self.assertEqual(Category.objects.values_list('updated_at', flat=True).get(pk=self.category.pk), stamp)

    def test_recount_all(self):
        other = make_category('Throws')
        make_product('Throw', other)
        report = self.service.recount_all()
        self.assertEqual(report['categories'][other.pk]['product_count'], 1)
        self.assertIn(self.sub_category.pk, report['subcategories'])


class CounterMaintenanceTests(CatalogTestCase):
    def setUp(self):
        self.service = MerchandisingService()

    def counts(self):
        self.category.refresh_from_db()
        self.sub_category.refresh_from_db()
        return self.category.product_count, self.sub_category.product_count

    def test_create_and_delete_product(self):
        product_id = self.service.create_product({
            'name': 'Kantha Throw',
            'category_id': self.category.pk,
            'sub_category_id': self.sub_category.pk,
        })
        self.assertEqual(self.counts(), (1, 1))

        self.service.delete_product(product_id)
        self.assertEqual(self.counts(), (0, 0))

    def test_deactivation_and_move(self):
        other = make_category('Throws')
        product_id = self.service.create_product({'name': 'Runner', 'category_id': self.category.pk})

        self.service.update_product(product_id, {'is_active': False})
        self.assertEqual(self.counts(), (0, 0))

        self.service.update_product(product_id, {'is_active': True, 'category_id': other.pk})
        other.refresh_from_db()
        self.assertEqual((self.counts()[0], other.product_count), (0, 1))

    def test_sub_category_lifecycle_updates_category(self):
        sub_id = self.service.create_sub_category(self.category.pk, {'name': 'Suzani'})
        self.category.refresh_from_db()
        self.assertEqual(self.category.sub_category_count, 1)
        self.assertEqual(SubCategory.objects.get(pk=sub_id).order, 2)

        self.service.delete_sub_category(sub_id)
        self.category.refresh_from_db()
        self.assertEqual(self.category.sub_category_count, 0)

    def test_move_sub_category_between_categories(self):
        other = make_category('Throws')
        sub_id = self.service.create_sub_category(self.category.pk, {'name': 'Suzani'})

        moved = self.service.update_sub_category(sub_id, {'category_id': other.pk})

        self.category.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual(moved['category_id'], other.pk)
        self.assertEqual((self.category.sub_category_count, other.sub_category_count), (0, 1))

    def test_moving_sub_category_with_products_is_rejected(self):
        other = make_category('Throws')
        sub_id = self.service.create_sub_category(self.category.pk, {'name': 'Suzani'})
        self.service.create_product({'name': 'Throw', 'category_id': self.category.pk, 'sub_category_id': sub_id})

        with self.assertRaises(ValidationError):
            self.service.update_sub_category(sub_id, {'category_id': other.pk})

        self.assertEqual(SubCategory.objects.get(pk=sub_id).category_id, self.category.pk)
        other.refresh_from_db()
        self.assertEqual(other.sub_category_count, 0)

    def test_sub_category_deactivation(self):
        sub_id = self.service.create_sub_category(self.category.pk, {'name': 'Suzani'})
        self.service.update_sub_category(sub_id, {'is_active': False})
        self.category.refresh_from_db()
        self.assertEqual(self.category.sub_category_count, 0)

    def test_counters_never_go_negative(self):
        product = make_product('Untracked', self.category)
        self.service.delete_product(product.pk)
        self.assertEqual(self.counts(), (0, 0))
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())
