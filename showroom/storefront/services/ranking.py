"""
Dense rank maintenance for limited showcase lists.

One ledger serves both the homepage showcase categories and the per-category
featured products: a ``RankScope`` names the collection, the membership
predicate and the rank/flag fields. Every mutation is planned as a list of
``WriteOp`` and submitted as one batch. ``repair`` renumbers a scope to
1..N and is the recovery path for concurrent or partially-applied writes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from storefront.exceptions import InvalidRank, LimitExceeded, NotFound, ValidationError
from storefront.services.gateway import DocumentGateway, WriteOp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankScope:
    """
    Subset of documents sharing one rank sequence.

    Attributes:
        collection: Gateway collection name.
        base_filters: Predicate every member satisfies besides the flag,
            e.g. ``{'category_id': 7}``.
        flag_field: Boolean membership flag (``is_showcase``/``is_featured``).
        rank_field: Rank column (``showcase_rank``/``featured_rank``).
        limit: Maximum number of members.
        label: Human name used in error messages.
        clear_on_demote: Extra fields reset to ``None`` when an item leaves.
    """

    collection: str
    flag_field: str
    rank_field: str
    limit: int
    label: str
    base_filters: Dict[str, Any] = field(default_factory=dict)
    clear_on_demote: Tuple[str, ...] = ()

    @property
    def member_filters(self) -> Dict[str, Any]:
        return {**self.base_filters, self.flag_field: True}

    def contains(self, doc: Dict[str, Any]) -> bool:
        return bool(doc.get(self.flag_field)) and self.accepts(doc)

    def accepts(self, doc: Dict[str, Any]) -> bool:
        """True when ``doc`` satisfies the scope predicate (flag aside)."""
        return all(doc.get(key) == value for key, value in self.base_filters.items())


@dataclass
class RankResult:
    item_id: Any
    rank: Optional[int]
    writes: int


@dataclass
class RepairReport:
    scope: str
    changes: List[Tuple[Any, Optional[int], int]] = field(default_factory=list)
    cleared: List[Any] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes or self.cleared)


def _rank_key(doc, rank_field):
    # Unranked last; ties fall back to creation order, then id.
    rank = doc.get(rank_field)
    created_at = doc.get('created_at')
    return (rank is None, rank or 0, created_at is None, created_at, doc['id'])


class RankLedger:
    def __init__(self, gateway: Optional[DocumentGateway] = None):
        self.gateway = gateway or DocumentGateway()

    # ---------- reads ----------

    def members(self, scope: RankScope) -> List[Dict[str, Any]]:
        """Scope members ordered by rank (unranked last), then creation order."""
        docs = self.gateway.get_all(scope.collection, scope.member_filters)
        return sorted(docs, key=lambda doc: _rank_key(doc, scope.rank_field))

    def _member(self, members, item_id):
        for doc in members:
            if doc['id'] == item_id:
                return doc
        return None

    # ---------- planning ----------

    def plan_promote(self, item_id, scope: RankScope) -> Tuple[List[WriteOp], Optional[int]]:
        doc = self.gateway.get(scope.collection, item_id)
        if not scope.accepts(doc):
            raise ValidationError(
                f"{scope.collection}/{item_id} is outside {scope.label}",
                id=item_id,
            )
        if doc.get(scope.flag_field):
            return [], doc.get(scope.rank_field)

        count = len(self.gateway.get_all(scope.collection, scope.member_filters))
        if count >= scope.limit:
            raise LimitExceeded(
                f"maximum {scope.limit} {scope.label}",
                limit=scope.limit,
                count=count,
            )
        rank = count + 1
        op = WriteOp(scope.collection, item_id, {scope.flag_field: True, scope.rank_field: rank})
        return [op], rank

    def plan_demote(self, item_id, scope: RankScope) -> List[WriteOp]:
        doc = self.gateway.get(scope.collection, item_id)
        if not scope.contains(doc):
            return []

        old_rank = doc.get(scope.rank_field)
        ops = []
        if old_rank is not None:
            for member in self.members(scope):
                rank = member.get(scope.rank_field)
                if member['id'] != item_id and rank is not None and rank > old_rank:
                    ops.append(WriteOp(scope.collection, member['id'], {scope.rank_field: rank - 1}))

        cleared = {scope.flag_field: False, scope.rank_field: None}
        for name in scope.clear_on_demote:
            cleared[name] = None
        ops.append(WriteOp(scope.collection, item_id, cleared))
        return ops

    def plan_reorder(self, item_id, new_rank, scope: RankScope) -> List[WriteOp]:
        members = self.members(scope)
        target = self._member(members, item_id)
        if target is None:
            raise NotFound(f"{scope.collection}/{item_id} is not among {scope.label}", id=item_id)

        count = len(members)
        if isinstance(new_rank, bool) or not isinstance(new_rank, int) or not 1 <= new_rank <= count:
            raise InvalidRank(
                f"rank must be between 1 and {count} for {scope.label}",
                rank=new_rank,
                count=count,
            )

        old_rank = target.get(scope.rank_field)
        if old_rank == new_rank:
            return []
        if old_rank is None:
            # Unranked member behaves as if it sat just past the end.
            logger.warning(
                "%s/%s has no %s inside %s; treating it as rank %s",
                scope.collection, item_id, scope.rank_field, scope.label, count + 1,
            )
            old_rank = count + 1

        ops = []
        for member in members:
            if member['id'] == item_id:
                continue
            rank = member.get(scope.rank_field)
            if rank is None:
                continue
            if new_rank < old_rank and new_rank <= rank <= old_rank - 1:
                ops.append(WriteOp(scope.collection, member['id'], {scope.rank_field: rank + 1}))
            elif new_rank > old_rank and old_rank < rank <= new_rank:
                ops.append(WriteOp(scope.collection, member['id'], {scope.rank_field: rank - 1}))
        ops.append(WriteOp(scope.collection, item_id, {scope.rank_field: new_rank}))
        return ops

    def plan_repair(self, scope: RankScope) -> Tuple[List[WriteOp], RepairReport]:
        report = RepairReport(scope=scope.label)
        ops = []

        for position, doc in enumerate(self.members(scope), start=1):
            rank = doc.get(scope.rank_field)
            if rank != position:
                report.changes.append((doc['id'], rank, position))
                ops.append(WriteOp(scope.collection, doc['id'], {scope.rank_field: position}))

        # Ranks left behind on documents that are no longer flagged.
        stray_filters = {
            **scope.base_filters,
            scope.flag_field: False,
            f'{scope.rank_field}__isnull': False,
        }
        for doc in self.gateway.get_all(scope.collection, stray_filters):
            report.cleared.append(doc['id'])
            ops.append(WriteOp(scope.collection, doc['id'], {scope.rank_field: None}))
        return ops, report

    # ---------- mutations ----------

    def submit(self, ops: List[WriteOp], action: str) -> int:
        if not ops:
            return 0
        return self.gateway.commit(ops, action).applied

    def promote(self, item_id, scope: RankScope) -> RankResult:
        ops, rank = self.plan_promote(item_id, scope)
        writes = self.submit(ops, f'promote {scope.collection}/{item_id}')
        if writes:
            logger.info("Promoted %s/%s to rank %s in %s", scope.collection, item_id, rank, scope.label)
        return RankResult(item_id=item_id, rank=rank, writes=writes)

    def demote(self, item_id, scope: RankScope) -> RankResult:
        ops = self.plan_demote(item_id, scope)
        writes = self.submit(ops, f'demote {scope.collection}/{item_id}')
        if writes:
            logger.info(
                "Demoted %s/%s from %s (%s ranks shifted)",
                scope.collection, item_id, scope.label, writes - 1,
            )
        return RankResult(item_id=item_id, rank=None, writes=writes)

    def reorder(self, item_id, new_rank, scope: RankScope) -> RankResult:
        ops = self.plan_reorder(item_id, new_rank, scope)
        writes = self.submit(ops, f'reorder {scope.collection}/{item_id}')
        if writes:
            logger.info(
                "Moved %s/%s to rank %s in %s (%s writes)",
                scope.collection, item_id, new_rank, scope.label, writes,
            )
        return RankResult(item_id=item_id, rank=new_rank, writes=writes)

    def repair(self, scope: RankScope) -> RepairReport:
        ops, report = self.plan_repair(scope)
        if report.changed:
            logger.warning(
                "Inconsistent ranks in %s: renumbered %s, cleared %s",
                scope.label,
                report.changes,
                report.cleared,
            )
        self.submit(ops, f'repair {scope.label}')
        return report
