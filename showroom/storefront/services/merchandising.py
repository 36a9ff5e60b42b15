"""
Merchandising facade: the operations admin surfaces call.

Every mutating operation computes one write set (document write, rank shifts
and counter deltas) and submits it as a single batch through the gateway.
The REST API, Django admin and management commands all go through here.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from django.conf import settings

from storefront.exceptions import LimitExceeded, ValidationError
from storefront.services.catalog import legacy_upgrade, variant_service
from storefront.services.counters import CatalogCountKeeper
from storefront.services.gateway import DocumentGateway, WriteOp
from storefront.services.ranking import RankLedger, RankResult, RankScope, RepairReport
from storefront.utils.slugs import slugify_name, unique_slugify

logger = logging.getLogger(__name__)

# Поля рангів змінюються лише через promote/demote/reorder
CATEGORY_RANK_FIELDS = ('is_showcase', 'showcase_rank')
PRODUCT_RANK_FIELDS = ('is_featured', 'featured_rank')
COUNTER_FIELDS = ('product_count', 'sub_category_count')


def max_showcase_categories() -> int:
    return getattr(settings, 'SHOWROOM_MAX_SHOWCASE_CATEGORIES', 6)


class MerchandisingService:
    def __init__(
        self,
        gateway: Optional[DocumentGateway] = None,
        ledger: Optional[RankLedger] = None,
        counters: Optional[CatalogCountKeeper] = None,
    ):
        self.gateway = gateway or DocumentGateway()
        self.ledger = ledger or RankLedger(self.gateway)
        self.counters = counters or CatalogCountKeeper(self.gateway)

    # ---------- scopes ----------

    def showcase_scope(self) -> RankScope:
        return RankScope(
            collection='categories',
            flag_field='is_showcase',
            rank_field='showcase_rank',
            limit=max_showcase_categories(),
            label='showcase categories',
            clear_on_demote=('showcase_image',),
        )

    def featured_scope(self, category_id) -> RankScope:
        category = self.gateway.get('categories', category_id)
        return RankScope(
            collection='products',
            flag_field='is_featured',
            rank_field='featured_rank',
            limit=category['featured_product_limit'],
            label=f"featured products in {category['name']}",
            base_filters={'category_id': category['id']},
        )

    # ---------- showcase categories ----------

    def promote_category(self, category_id) -> RankResult:
        return self.ledger.promote(category_id, self.showcase_scope())

    def demote_category(self, category_id) -> RankResult:
        return self.ledger.demote(category_id, self.showcase_scope())

    def reorder_category(self, category_id, new_rank) -> RankResult:
        return self.ledger.reorder(category_id, new_rank, self.showcase_scope())

    def repair_category_ranks(self) -> RepairReport:
        return self.ledger.repair(self.showcase_scope())

    def showcase_categories(self) -> List[Dict[str, Any]]:
        return self.ledger.members(self.showcase_scope())

    # ---------- featured products ----------

    def promote_product(self, product_id, category_id) -> RankResult:
        return self.ledger.promote(product_id, self.featured_scope(category_id))

    def demote_product(self, product_id, category_id) -> RankResult:
        return self.ledger.demote(product_id, self.featured_scope(category_id))

    def reorder_product(self, product_id, category_id, new_rank) -> RankResult:
        return self.ledger.reorder(product_id, new_rank, self.featured_scope(category_id))

    def repair_product_ranks(self, category_id) -> RepairReport:
        return self.ledger.repair(self.featured_scope(category_id))

    def featured_products(self, category_id) -> List[Dict[str, Any]]:
        return self.ledger.members(self.featured_scope(category_id))

    # ---------- variants ----------

    def resolve_variant(self, product, size_id=None, color_id=None) -> variant_service.VariantResolution:
        """``product`` may be an id, a model instance or a document."""
        if not isinstance(product, dict) and not hasattr(product, '_meta'):
            product = self.gateway.get('products', product)
        return variant_service.resolve_variant(product, size_id=size_id, color_id=color_id)

    def save_canonical(self, product_id) -> Dict[str, Any]:
        """
        Persist the upgraded variant matrix of a legacy product.

        Canonical products are returned unchanged without a write.
        """
        doc = self.gateway.get('products', product_id)
        if not legacy_upgrade.is_legacy(doc):
            return doc
        upgraded = legacy_upgrade.upgrade(doc)
        variant_service.validate_variant_matrix(upgraded)
        self.gateway.update('products', product_id, {
            'size_variants': upgraded['size_variants'],
            'color_variants': upgraded['color_variants'],
        })
        logger.info("Saved canonical variant matrix for product %s", product_id)
        return upgraded

    # ---------- counters ----------

    def recount_category(self, category_id) -> Dict[str, int]:
        return self.counters.recount_category(category_id)

    def recount_sub_category(self, sub_category_id) -> Dict[str, int]:
        return self.counters.recount_sub_category(sub_category_id)

    def recount_all(self):
        return self.counters.recount_all()

    # ---------- categories ----------

    def _check_room(self, scope: RankScope):
        """LimitExceeded when ``scope`` is full, checked before a create writes anything."""
        count = self.gateway.count(scope.collection, scope.member_filters)
        if count >= scope.limit:
            raise LimitExceeded(f"maximum {scope.limit} {scope.label}", limit=scope.limit, count=count)

    def create_category(self, data: Dict[str, Any]):
        """
        Create a category at the end of the menu order.

        ``is_showcase=True`` promotes it after creation; the showcase limit is
        checked before anything is written.
        """
        Category = self.gateway.model('categories')
        data = dict(data)
        wants_showcase = bool(data.pop('is_showcase', False))
        for name in CATEGORY_RANK_FIELDS + COUNTER_FIELDS:
            data.pop(name, None)
        if not data.get('name'):
            raise ValidationError("category name is required")

        if wants_showcase:
            self._check_room(self.showcase_scope())

        data['slug'] = unique_slugify(Category, data.get('slug') or slugify_name(data['name']))
        data.setdefault('order', self.gateway.count('categories') + 1)
        category_id = self.gateway.create('categories', data)
        logger.info("Created category %s (%s)", category_id, data['slug'])
        if wants_showcase:
            self.promote_category(category_id)
        return category_id

    def update_category(self, category_id, data: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(data)
        showcase = data.pop('is_showcase', None)
        for name in CATEGORY_RANK_FIELDS + COUNTER_FIELDS:
            data.pop(name, None)
        if 'featured_product_limit' in data and data['featured_product_limit'] < 1:
            raise ValidationError("featured_product_limit must be at least 1")
        if data:
            self.gateway.update('categories', category_id, data)
        if showcase is True:
            self.promote_category(category_id)
        elif showcase is False:
            self.demote_category(category_id)
        return self.gateway.get('categories', category_id)

    def delete_category(self, category_id) -> int:
        """Demote (if needed) and delete an empty category with its empty sub-categories."""
        self.gateway.get('categories', category_id)
        if self.gateway.count('products', {'category_id': category_id}):
            raise ValidationError(
                "category has products; remove or reassign products first",
                id=category_id,
            )
        ops = self.ledger.plan_demote(category_id, self.showcase_scope())
        for sub in self.gateway.get_all('subcategories', {'category_id': category_id}):
            ops.append(WriteOp('subcategories', sub['id'], action='delete'))
        ops.append(WriteOp('categories', category_id, action='delete'))
        result = self.gateway.commit(ops, f'delete categories/{category_id}')
        logger.info("Deleted category %s", category_id)
        return result.applied

    # ---------- sub-categories ----------

    def create_sub_category(self, category_id, data: Dict[str, Any]):
        SubCategory = self.gateway.model('subcategories')
        self.gateway.get('categories', category_id)
        data = dict(data)
        data.pop('product_count', None)
        if not data.get('name'):
            raise ValidationError("sub-category name is required")
        data['category_id'] = category_id
        data['slug'] = unique_slugify(
            SubCategory,
            data.get('slug') or slugify_name(data['name']),
            category_id=category_id,
        )
        data.setdefault('order', self.gateway.count('subcategories', {'category_id': category_id}) + 1)

        ops = [WriteOp('subcategories', None, data, action='create')]
        ops += self.counters.on_sub_category_created(data)
        result = self.gateway.commit(ops, f'create sub-category in categories/{category_id}')
        return result.created_ids[0]

    def update_sub_category(self, sub_category_id, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partial sub-category update.

        Moving to another category is allowed only while the sub-category has
        no products; ``sub_category_count`` moves with it in the same batch.
        """
        before = self.gateway.get('subcategories', sub_category_id)
        data = dict(data)
        data.pop('product_count', None)
        after = {**before, **data}
        if after['category_id'] != before['category_id']:
            self.check_sub_category_move(sub_category_id, after['category_id'])
            SubCategory = self.gateway.model('subcategories')
            data['slug'] = unique_slugify(SubCategory, after['slug'], category_id=after['category_id'])

        ops = [WriteOp('subcategories', sub_category_id, data)] if data else []
        ops += self.counters.on_sub_category_updated(before, after)
        self.gateway.commit(ops, f'update subcategories/{sub_category_id}')
        return self.gateway.get('subcategories', sub_category_id)

    def check_sub_category_move(self, sub_category_id, category_id):
        self.gateway.get('categories', category_id)
        if self.gateway.count('products', {'sub_category_id': sub_category_id}):
            raise ValidationError(
                "sub-category has products; reassign products before moving it",
                id=sub_category_id,
                category_id=category_id,
            )

    def delete_sub_category(self, sub_category_id) -> int:
        doc = self.gateway.get('subcategories', sub_category_id)
        if self.gateway.count('products', {'sub_category_id': sub_category_id}):
            raise ValidationError(
                "sub-category has products; remove or reassign products first",
                id=sub_category_id,
            )
        ops = [WriteOp('subcategories', sub_category_id, action='delete')]
        ops += self.counters.on_sub_category_deleted(doc)
        return self.gateway.commit(ops, f'delete subcategories/{sub_category_id}').applied

    # ---------- products ----------

    def check_placement(self, category_id, sub_category_id):
        self.gateway.get('categories', category_id)
        if sub_category_id is None:
            return
        sub = self.gateway.get('subcategories', sub_category_id)
        if sub['category_id'] != category_id:
            raise ValidationError(
                "sub-category belongs to another category",
                category_id=category_id,
                sub_category_id=sub_category_id,
            )

    def _clean_variants(self, data, base=None):
        """Sync and validate an edited variant matrix against ``base``."""
        if 'size_variants' not in data and 'color_variants' not in data:
            return data
        merged = {**(base or {}), **data}
        if merged.get('size_variants') and merged.get('color_variants'):
            synced = variant_service.sync_stock_matrix(merged)
            variant_service.validate_variant_matrix(synced)
            data['size_variants'] = synced['size_variants']
            data['color_variants'] = synced['color_variants']
        return data

    def create_product(self, data: Dict[str, Any]):
        Product = self.gateway.model('products')
        data = dict(data)
        wants_featured = bool(data.pop('is_featured', False))
        for name in PRODUCT_RANK_FIELDS:
            data.pop(name, None)
        if not data.get('name'):
            raise ValidationError("product name is required")
        if data.get('category_id') is None:
            raise ValidationError("product category is required")
        self.check_placement(data['category_id'], data.get('sub_category_id'))
        data = self._clean_variants(data)
        if wants_featured:
            self._check_room(self.featured_scope(data['category_id']))
        data['slug'] = unique_slugify(Product, data.get('slug') or slugify_name(data['name']))

        ops = [WriteOp('products', None, data, action='create')]
        ops += self.counters.on_product_created(data)
        result = self.gateway.commit(ops, 'create product')
        product_id = result.created_ids[0]
        logger.info("Created product %s in category %s", product_id, data['category_id'])
        if wants_featured:
            self.promote_product(product_id, data['category_id'])
        return product_id

    def update_product(self, product_id, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partial product update.

        Moving a featured product to another category drops it from the old
        category's featured list in the same batch.
        """
        before = self.gateway.get('products', product_id)
        data = dict(data)
        featured = data.pop('is_featured', None)
        for name in PRODUCT_RANK_FIELDS:
            data.pop(name, None)
        after = {**before, **data}
        self.check_placement(after['category_id'], after.get('sub_category_id'))
        data = self._clean_variants(data, base=before)

        ops = []
        if after['category_id'] != before['category_id'] and before.get('is_featured'):
            ops += self.ledger.plan_demote(product_id, self.featured_scope(before['category_id']))
        if data:
            ops.append(WriteOp('products', product_id, data))
        ops += self.counters.on_product_updated(before, after)
        self.gateway.commit(ops, f'update products/{product_id}')

        if featured is True:
            self.promote_product(product_id, after['category_id'])
        elif featured is False:
            self.demote_product(product_id, after['category_id'])
        return self.gateway.get('products', product_id)

    def delete_product(self, product_id) -> int:
        doc = self.gateway.get('products', product_id)
        ops = []
        if doc.get('is_featured'):
            ops += self.ledger.plan_demote(product_id, self.featured_scope(doc['category_id']))
            # Demote clears the product itself; the delete replaces that write.
            ops = [op for op in ops if op.id != product_id]
        ops.append(WriteOp('products', product_id, action='delete'))
        ops += self.counters.on_product_deleted(doc)
        applied = self.gateway.commit(ops, f'delete products/{product_id}').applied
        logger.info("Deleted product %s", product_id)
        return applied


def get_service() -> MerchandisingService:
    return MerchandisingService()


# Module-level shortcuts over a default-configured service


def promote_category(category_id):
    return get_service().promote_category(category_id)


def demote_category(category_id):
    return get_service().demote_category(category_id)


def reorder_category(category_id, new_rank):
    return get_service().reorder_category(category_id, new_rank)


def promote_product(product_id, category_id):
    return get_service().promote_product(product_id, category_id)


def demote_product(product_id, category_id):
    return get_service().demote_product(product_id, category_id)


def reorder_product(product_id, category_id, new_rank):
    return get_service().reorder_product(product_id, category_id, new_rank)


def resolve_variant(product, size_id=None, color_id=None):
    return get_service().resolve_variant(product, size_id=size_id, color_id=color_id)


def repair_category_ranks():
    return get_service().repair_category_ranks()


def repair_product_ranks(category_id):
    return get_service().repair_product_ranks(category_id)


def recount_category(category_id):
    return get_service().recount_category(category_id)


def recount_sub_category(sub_category_id):
    return get_service().recount_sub_category(sub_category_id)
