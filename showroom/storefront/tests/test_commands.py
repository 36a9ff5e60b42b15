"""
Tests for repair_ranks and recount_catalog management commands.
"""
from io import StringIO

from django.core.management import CommandError, call_command

from storefront.models import Category, Product

from .base import CatalogTestCase, make_category, make_product


class RepairRanksCommandTests(CatalogTestCase):
    def test_repairs_showcase_and_featured(self):
        showcase = make_category('Rugs', is_showcase=True, showcase_rank=3)
        product = make_product('Runner', self.category, is_featured=True, featured_rank=4)

        out = StringIO()
        call_command('repair_ranks', stdout=out)

        self.assertEqual(Category.objects.get(pk=showcase.pk).showcase_rank, 1)
        self.assertEqual(Product.objects.get(pk=product.pk).featured_rank, 1)
        self.assertIn('исправлено: 2', out.getvalue())

    def test_single_category(self):
        product = make_product('Runner', self.category, is_featured=True, featured_rank=2)
        call_command('repair_ranks', category=self.category.pk, stdout=StringIO())
        self.assertEqual(Product.objects.get(pk=product.pk).featured_rank, 1)

    def test_unknown_category(self):
        with self.assertRaises(CommandError):
            call_command('repair_ranks', category=999999, stdout=StringIO())


class RecountCatalogCommandTests(CatalogTestCase):
    def test_recounts_everything(self):
        make_product('Quilt', self.category, sub_category=self.sub_category)
        Category.objects.filter(pk=self.category.pk).update(product_count=10)

        out = StringIO()
        call_command('recount_catalog', stdout=out)

        self.assertEqual(Category.objects.get(pk=self.category.pk).product_count, 1)
        self.assertIn(f'categories/{self.category.pk}: product_count=1', out.getvalue())

    def test_single_sub_category(self):
        out = StringIO()
        call_command('recount_catalog', subcategory=self.sub_category.pk, stdout=out)
        self.assertIn('подкатегорий: 1', out.getvalue())
