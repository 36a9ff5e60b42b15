"""
Document-style persistence gateway over the Django ORM.

The merchandising engine talks to the store only through this module:
collections of dict documents, per-document writes and an optional atomic
batch. Reads are retried with bounded exponential backoff; writes are never
retried.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from django.apps import apps
from django.conf import settings
from django.db import InterfaceError, OperationalError, transaction
from django.db.models import F
from django.db.models.functions import Greatest
from django.dispatch import Signal
from django.utils import timezone

from storefront.exceptions import NotFound, PartialWriteError

logger = logging.getLogger(__name__)

COLLECTIONS = {
    'categories': 'storefront.Category',
    'subcategories': 'storefront.SubCategory',
    'products': 'storefront.Product',
}

# Sent after writes are applied: sender=DocumentGateway, collection=str, ids=list
documents_changed = Signal()


@dataclass(frozen=True)
class Increment:
    """Atomic counter delta; the stored value never drops below zero."""

    amount: int = 1


@dataclass
class WriteOp:
    """
    One document mutation inside a batch.

    Attributes:
        collection: Collection name (see ``COLLECTIONS``).
        id: Target document id (``None`` for creates).
        data: Partial document for update/create.
        action: ``update`` | ``create`` | ``delete``.
    """

    collection: str
    id: Any
    data: Dict[str, Any] = field(default_factory=dict)
    action: str = 'update'


@dataclass
class BatchResult:
    applied: int
    total: int
    created_ids: List[Any] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.applied == self.total

    @property
    def partial(self) -> bool:
        """Some, but not all, writes landed."""
        return 0 < self.applied < self.total


class DocumentGateway:
    """
    Read/write/batch-write primitives over the storefront collections.
    """

    def __init__(
        self,
        *,
        atomic: Optional[bool] = None,
        read_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        retry_backoff: Optional[float] = None,
    ):
        self.atomic = getattr(settings, 'SHOWROOM_ATOMIC_BATCHES', True) if atomic is None else atomic
        self.read_retries = (
            getattr(settings, 'SHOWROOM_READ_RETRIES', 3) if read_retries is None else read_retries
        )
        self.retry_delay = (
            getattr(settings, 'SHOWROOM_READ_RETRY_DELAY', 0.05) if retry_delay is None else retry_delay
        )
        self.retry_backoff = (
            getattr(settings, 'SHOWROOM_READ_RETRY_BACKOFF', 2) if retry_backoff is None else retry_backoff
        )

    # ---------- internals ----------

    def model(self, collection: str):
        """Model class behind a collection name."""
        try:
            return apps.get_model(COLLECTIONS[collection])
        except KeyError:
            raise ValueError(f"Unknown collection: {collection!r}") from None

    def _read(self, operation: str, fn):
        attempt = 1
        delay = self.retry_delay
        while True:
            try:
                return fn()
            except (OperationalError, InterfaceError) as exc:
                if attempt >= max(1, self.read_retries):
                    logger.error(
                        "Read %s failed after %s attempts: %s",
                        operation,
                        attempt,
                        exc,
                        exc_info=True,
                    )
                    raise
                logger.warning(
                    "Read %s attempt %s/%s failed: %s. Retrying in %s s",
                    operation,
                    attempt,
                    self.read_retries,
                    exc,
                    delay,
                )
                time.sleep(max(0, delay))
                delay *= max(1, self.retry_backoff)
                attempt += 1

    def _expand(self, model, data: Dict[str, Any], *, touch: bool = True) -> Dict[str, Any]:
        values = {}
        for key, value in data.items():
            if isinstance(value, Increment):
                values[key] = Greatest(F(key) + value.amount, 0)
            else:
                values[key] = value
        if touch and 'updated_at' not in values and any(f.name == 'updated_at' for f in model._meta.fields):
            values['updated_at'] = timezone.now()
        return values

    def _fetch(self, collection: str, filters=None, order_by=None) -> List[Dict[str, Any]]:
        queryset = self.model(collection).objects.filter(**(filters or {}))
        if order_by:
            queryset = queryset.order_by(*order_by)
        return list(queryset.values())

    def _apply(self, op: WriteOp):
        if op.action == 'create':
            return self._create(op.collection, op.data)
        if op.action == 'delete':
            self._delete(op.collection, op.id)
            return op.id
        self._update(op.collection, op.id, op.data)
        return op.id

    def _create(self, collection: str, doc: Dict[str, Any]):
        model = self.model(collection)
        instance = model.objects.create(**doc)
        return instance.pk

    def _update(self, collection: str, doc_id, partial: Dict[str, Any]) -> None:
        model = self.model(collection)
        updated = model.objects.filter(pk=doc_id).update(**self._expand(model, partial))
        if not updated:
            raise NotFound(f"{collection}/{doc_id} does not exist", collection=collection, id=doc_id)

    def _delete(self, collection: str, doc_id) -> None:
        self.model(collection).objects.filter(pk=doc_id).delete()

    def _notify(self, touched: Dict[str, List[Any]]) -> None:
        for collection, ids in touched.items():
            documents_changed.send(sender=self.__class__, collection=collection, ids=ids)

    # ---------- reads ----------

    def get_all(self, collection: str, filters=None, order_by: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        return self._read(
            f'{collection}.get_all',
            lambda: self._fetch(collection, filters, order_by),
        )

    def get(self, collection: str, doc_id) -> Dict[str, Any]:
        rows = self._read(
            f'{collection}.get',
            lambda: self._fetch(collection, {'pk': doc_id}),
        )
        if not rows:
            raise NotFound(f"{collection}/{doc_id} does not exist", collection=collection, id=doc_id)
        return rows[0]

    def count(self, collection: str, filters=None) -> int:
        return self._read(
            f'{collection}.count',
            lambda: self.model(collection).objects.filter(**(filters or {})).count(),
        )

    # ---------- single-document writes ----------

    def create(self, collection: str, doc: Dict[str, Any]):
        doc_id = self._create(collection, doc)
        self._notify({collection: [doc_id]})
        return doc_id

    def update(self, collection: str, doc_id, partial: Dict[str, Any]) -> None:
        self._update(collection, doc_id, partial)
        self._notify({collection: [doc_id]})

    def delete(self, collection: str, doc_id) -> None:
        self._delete(collection, doc_id)
        self._notify({collection: [doc_id]})

    # ---------- batches ----------

    def batch_write(self, ops: Iterable[WriteOp]) -> BatchResult:
        """
        Apply ``ops`` in order.

        With atomic batches the whole set commits or nothing does, and store
        errors propagate unchanged. Without them each write lands on its own;
        the first failure stops the batch and is reported on the result.
        """
        ops = list(ops)
        result = BatchResult(applied=0, total=len(ops))
        if not ops:
            return result

        touched: Dict[str, List[Any]] = {}
        if self.atomic:
            with transaction.atomic():
                for op in ops:
                    doc_id = self._apply(op)
                    if op.action == 'create':
                        result.created_ids.append(doc_id)
                    touched.setdefault(op.collection, []).append(doc_id)
                    result.applied += 1
        else:
            for op in ops:
                try:
                    doc_id = self._apply(op)
                except Exception as exc:
                    result.error = exc
                    logger.error(
                        "Batch stopped at write %s/%s (%s %s/%s): %s",
                        result.applied + 1,
                        result.total,
                        op.action,
                        op.collection,
                        op.id,
                        exc,
                        exc_info=True,
                    )
                    break
                if op.action == 'create':
                    result.created_ids.append(doc_id)
                touched.setdefault(op.collection, []).append(doc_id)
                result.applied += 1

        if touched:
            self._notify(touched)
        return result

    def commit(self, ops: Iterable[WriteOp], action: str) -> BatchResult:
        """
        ``batch_write`` for callers that need all-or-error semantics.

        A partly applied batch raises PartialWriteError; a batch that failed
        before its first write re-raises the store error.
        """
        result = self.batch_write(ops)
        if result.ok:
            return result
        if result.partial:
            logger.error(
                "%s applied %s of %s writes; run repair to restore dense ranks",
                action,
                result.applied,
                result.total,
            )
            raise PartialWriteError(
                f"{action} was only partly applied",
                applied=result.applied,
                total=result.total,
            ) from result.error
        raise result.error
