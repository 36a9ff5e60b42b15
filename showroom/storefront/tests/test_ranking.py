"""
Tests for RankLedger: showcase categories and featured products.
"""
from __future__ import annotations

import random
from unittest import mock

from django.test import override_settings

from storefront.exceptions import InvalidRank, LimitExceeded, NotFound, ValidationError
from storefront.models import Category, Product
from storefront.services.gateway import DocumentGateway
from storefront.services.merchandising import MerchandisingService

from .base import CatalogTestCase, make_category, make_product


class ShowcaseRankTests(CatalogTestCase):
    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.extra = [make_category(f'Cushions {i}') for i in range(4)]

    def setUp(self):
        self.service = MerchandisingService()

    def test_promote_assigns_next_rank(self):
        first = self.service.promote_category(self.category.pk)
        second = self.service.promote_category(self.extra[0].pk)

        self.assertEqual((first.rank, second.rank), (1, 2))
        self.assertEqual(self.showcase_ranks(), {self.category.pk: 1, self.extra[0].pk: 2})

    def test_promote_member_is_noop(self):
        self.service.promote_category(self.category.pk)
        result = self.service.promote_category(self.category.pk)

        self.assertEqual(result.writes, 0)
        self.assertEqual(result.rank, 1)

    @override_settings(SHOWROOM_MAX_SHOWCASE_CATEGORIES=2)
    def test_promote_at_limit_leaves_documents_unchanged(self):
        self.service.promote_category(self.category.pk)
        self.service.promote_category(self.extra[0].pk)
        before = list(Category.objects.order_by('id').values())

        with self.assertRaises(LimitExceeded) as ctx:
            self.service.promote_category(self.extra[1].pk)

        self.assertEqual(ctx.exception.message, 'maximum 2 showcase categories')
        self.assertEqual(list(Category.objects.order_by('id').values()), before)

    def test_demote_compacts_ranks_and_clears_showcase_image(self):
        for category in [self.category] + self.extra[:2]:
            self.service.promote_category(category.pk)
        Category.objects.filter(pk=self.category.pk).update(showcase_image='/media/cover.jpg')

        self.service.demote_category(self.category.pk)

        self.category.refresh_from_db()
        self.assertFalse(self.category.is_showcase)
        self.assertIsNone(self.category.showcase_rank)
        self.assertIsNone(self.category.showcase_image)
        self.assertEqual(self.showcase_ranks(), {self.extra[0].pk: 1, self.extra[1].pk: 2})

    def test_demote_non_member_is_noop(self):
        result = self.service.demote_category(self.extra[3].pk)
        self.assertEqual(result.writes, 0)

    def test_reorder_to_same_rank_writes_nothing(self):
        for category in self.extra[:3]:
            self.service.promote_category(category.pk)

        with mock.patch.object(DocumentGateway, 'batch_write') as batch_write:
            result = self.service.reorder_category(self.extra[1].pk, 2)

        self.assertEqual(result.writes, 0)
        batch_write.assert_not_called()

    def test_reorder_rejects_out_of_range_rank(self):
        for category in self.extra[:3]:
            self.service.promote_category(category.pk)

        for rank in (0, 4, -1, True, '2', 1.5):
            with self.subTest(rank=rank):
                with self.assertRaises(InvalidRank):
                    self.service.reorder_category(self.extra[0].pk, rank)
        self.assertTrue(issubclass(InvalidRank, ValidationError))

    def test_reorder_non_member_raises_not_found(self):
        self.service.promote_category(self.extra[0].pk)
        with self.assertRaises(NotFound):
            self.service.reorder_category(self.extra[1].pk, 1)

    def test_random_sequences_keep_ranks_dense(self):
        rng = random.Random(7)
        ids = [self.category.pk] + [c.pk for c in self.extra]
        for _ in range(60):
            item_id = rng.choice(ids)
            members = self.showcase_ranks()
            operation = rng.choice(['promote', 'demote', 'reorder'])
            if operation == 'promote' and len(members) < 6:
                self.service.promote_category(item_id)
            elif operation == 'demote':
                self.service.demote_category(item_id)
            elif operation == 'reorder' and item_id in members:
                self.service.reorder_category(item_id, rng.randint(1, len(members)))
            self.assertDense(self.showcase_ranks())


class FeaturedRankTests(CatalogTestCase):
    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.p1 = make_product('P1', cls.category, is_featured=True, featured_rank=1)
        cls.p2 = make_product('P2', cls.category, is_featured=True, featured_rank=2)
        cls.p3 = make_product('P3', cls.category, is_featured=True, featured_rank=3)
        cls.other_category = make_category('Throws')
        cls.stranger = make_product('Stranger', cls.other_category)

    def setUp(self):
        self.service = MerchandisingService()

    def test_move_up_shifts_ranks_between(self):
        self.service.reorder_product(self.p3.pk, self.category.pk, 1)
        self.assertEqual(self.featured_ranks(), {self.p3.pk: 1, self.p1.pk: 2, self.p2.pk: 3})

    def test_move_down_shifts_ranks_between(self):
        self.service.reorder_product(self.p1.pk, self.category.pk, 3)
        self.assertEqual(self.featured_ranks(), {self.p2.pk: 1, self.p3.pk: 2, self.p1.pk: 3})

    def test_limit_comes_from_category(self):
        extra = make_product('P4', self.category)
        with self.assertRaises(LimitExceeded) as ctx:
            self.service.promote_product(extra.pk, self.category.pk)
        self.assertIn('maximum 3 featured products in Quilts', ctx.exception.message)

    def test_promote_from_other_category_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.service.promote_product(self.stranger.pk, self.category.pk)
        self.stranger.refresh_from_db()
        self.assertFalse(self.stranger.is_featured)

    def test_scopes_are_independent(self):
        self.service.promote_product(self.stranger.pk, self.other_category.pk)
        self.service.demote_product(self.p1.pk, self.category.pk)

        self.assertEqual(self.featured_ranks(self.other_category), {self.stranger.pk: 1})
        self.assertEqual(self.featured_ranks(), {self.p2.pk: 1, self.p3.pk: 2})

    def test_unranked_member_moves_in_from_the_end(self):
        Product.objects.filter(pk=self.p3.pk).update(featured_rank=None)
        self.service.reorder_product(self.p3.pk, self.category.pk, 1)
        self.assertEqual(self.featured_ranks(), {self.p3.pk: 1, self.p1.pk: 2, self.p2.pk: 3})


class RepairTests(CatalogTestCase):
    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.category.featured_product_limit = 6
        cls.category.save()
        cls.products = [make_product(f'Runner {i}', cls.category, is_featured=True) for i in range(4)]

    def setUp(self):
        self.service = MerchandisingService()

    def _set_ranks(self, ranks):
        for product, rank in zip(self.products, ranks):
            Product.objects.filter(pk=product.pk).update(featured_rank=rank)

    def test_repair_renumbers_shuffled_and_duplicated_ranks(self):
        self._set_ranks([7, 3, None, 3])

        with self.assertLogs('storefront.services.ranking', level='WARNING') as logs:
            report = self.service.repair_product_ranks(self.category.pk)

        self.assertTrue(report.changed)
        self.assertIn('Inconsistent ranks', logs.output[0])
        ranks = self.featured_ranks()
        self.assertDense(ranks)
        # duplicates keep creation order; unranked go last
        self.assertEqual(ranks[self.products[1].pk], 1)
        self.assertEqual(ranks[self.products[3].pk], 2)
        self.assertEqual(ranks[self.products[0].pk], 3)
        self.assertEqual(ranks[self.products[2].pk], 4)

    def test_repair_is_idempotent(self):
        self._set_ranks([2, 2, 9, None])
        self.service.repair_product_ranks(self.category.pk)
        first = self.featured_ranks()

        report = self.service.repair_product_ranks(self.category.pk)

        self.assertFalse(report.changed)
        self.assertEqual(self.featured_ranks(), first)

    def test_repair_writes_only_changed_documents(self):
        self._set_ranks([1, 2, 4, 5])
        report = self.service.repair_product_ranks(self.category.pk)
        self.assertEqual(
            sorted(report.changes),
            sorted([(self.products[2].pk, 4, 3), (self.products[3].pk, 5, 4)]),
        )

    def test_repair_clears_rank_left_on_unflagged_document(self):
        self._set_ranks([1, 2, 3, 4])
        stale = make_product('Stale', self.category, is_featured=False, featured_rank=5)

        report = self.service.repair_product_ranks(self.category.pk)

        self.assertEqual(report.cleared, [stale.pk])
        stale.refresh_from_db()
        self.assertIsNone(stale.featured_rank)

    def test_repair_showcase_scope(self):
        a = make_category('Rugs', is_showcase=True, showcase_rank=4)
        b = make_category('Mats', is_showcase=True, showcase_rank=4)
        self.service.repair_category_ranks()
        self.assertEqual(self.showcase_ranks(), {a.pk: 1, b.pk: 2})
