"""
Catalog error taxonomy.

Expected conditions (limit reached, bad rank, insufficient stock) are raised
as these typed errors. Database transport errors are not wrapped.
"""


class CatalogError(Exception):
    """Base class for merchandising/catalog failures."""

    code = 'catalog_error'

    def __init__(self, message='', **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_dict(self):
        payload = {'error': self.message, 'code': self.code}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(CatalogError):
    code = 'validation_error'


class InvalidRank(ValidationError):
    code = 'invalid_rank'


class LimitExceeded(CatalogError):
    code = 'limit_exceeded'


class NotFound(CatalogError):
    code = 'not_found'


class InsufficientStock(CatalogError):
    code = 'insufficient_stock'

    def __init__(self, message='', *, requested=0, available=0, **details):
        super().__init__(message, requested=requested, available=available, **details)
        self.requested = requested
        self.available = available


class Inconsistent(CatalogError):
    """
    Divergence found by repair/recount.

    Never raised mid-operation: repair and recount log it and correct it.
    """

    code = 'inconsistent'


class PartialWriteError(CatalogError):
    """A batch was only partly applied; the caller may run repair()."""

    code = 'partial_write'

    def __init__(self, message='', *, applied=0, total=0, **details):
        super().__init__(message, applied=applied, total=total, **details)
        self.applied = applied
        self.total = total
