"""
Denormalised catalog counters.

``Category.product_count``, ``Category.sub_category_count`` and
``SubCategory.product_count`` are kept as atomic increments batched with the
write that changes them. Only active documents are counted. The recount
methods recompute a counter from the referencing collection and overwrite it;
they are the recovery path after partial writes or concurrent edits.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from storefront.services.gateway import DocumentGateway, Increment, WriteOp

logger = logging.getLogger(__name__)


def _product_targets(doc: Optional[Dict[str, Any]]):
    """Counters an (active) product contributes to."""
    if not doc or not doc.get('is_active', True):
        return []
    targets = [('categories', doc.get('category_id'))]
    if doc.get('sub_category_id') is not None:
        targets.append(('subcategories', doc['sub_category_id']))
    return [(collection, doc_id) for collection, doc_id in targets if doc_id is not None]


def _increments(targets, amount, field_name):
    return [WriteOp(collection, doc_id, {field_name: Increment(amount)}) for collection, doc_id in targets]


class CatalogCountKeeper:
    def __init__(self, gateway: Optional[DocumentGateway] = None):
        self.gateway = gateway or DocumentGateway()

    # ---------- write-time deltas ----------

    def on_product_created(self, doc) -> List[WriteOp]:
        return _increments(_product_targets(doc), 1, 'product_count')

    def on_product_deleted(self, doc) -> List[WriteOp]:
        return _increments(_product_targets(doc), -1, 'product_count')

    def on_product_updated(self, before, after) -> List[WriteOp]:
        """
        Moves between categories/sub-categories and (de)activation.

        Unchanged targets produce no ops.
        """
        old = _product_targets(before)
        new = _product_targets(after)
        removed = [target for target in old if target not in new]
        added = [target for target in new if target not in old]
        return _increments(removed, -1, 'product_count') + _increments(added, 1, 'product_count')

    def on_sub_category_created(self, doc) -> List[WriteOp]:
        if not doc.get('is_active', True):
            return []
        return [WriteOp('categories', doc['category_id'], {'sub_category_count': Increment(1)})]

    def on_sub_category_deleted(self, doc) -> List[WriteOp]:
        if not doc.get('is_active', True):
            return []
        return [WriteOp('categories', doc['category_id'], {'sub_category_count': Increment(-1)})]

    def on_sub_category_updated(self, before, after) -> List[WriteOp]:
        """Move to another category and (de)activation of a sub-category."""
        moved = before.get('category_id') != after.get('category_id')
        toggled = bool(before.get('is_active', True)) != bool(after.get('is_active', True))
        if not (moved or toggled):
            return []
        return self.on_sub_category_deleted(before) + self.on_sub_category_created(after)

    # ---------- recount ----------

    def _overwrite(self, collection, doc, counts: Dict[str, int]) -> Dict[str, int]:
        drift = {name: (doc.get(name), value) for name, value in counts.items() if doc.get(name) != value}
        if drift:
            logger.warning("Inconsistent counters on %s/%s: %s", collection, doc['id'], drift)
            self.gateway.update(collection, doc['id'], {name: value for name, (_, value) in drift.items()})
        return counts

    def recount_category(self, category_id) -> Dict[str, int]:
        """Recompute ``product_count`` and ``sub_category_count`` for a category."""
        doc = self.gateway.get('categories', category_id)
        counts = {
            'product_count': self.gateway.count('products', {'category_id': category_id, 'is_active': True}),
            'sub_category_count': self.gateway.count(
                'subcategories', {'category_id': category_id, 'is_active': True}
            ),
        }
        return self._overwrite('categories', doc, counts)

    def recount_sub_category(self, sub_category_id) -> Dict[str, int]:
        doc = self.gateway.get('subcategories', sub_category_id)
        counts = {
            'product_count': self.gateway.count(
                'products', {'sub_category_id': sub_category_id, 'is_active': True}
            ),
        }
        return self._overwrite('subcategories', doc, counts)

    def recount_all(self) -> Dict[str, Dict[Any, Dict[str, int]]]:
        report = {'categories': {}, 'subcategories': {}}
        for doc in self.gateway.get_all('categories', order_by=['id']):
            report['categories'][doc['id']] = self.recount_category(doc['id'])
        for doc in self.gateway.get_all('subcategories', order_by=['id']):
            report['subcategories'][doc['id']] = self.recount_sub_category(doc['id'])
        return report
