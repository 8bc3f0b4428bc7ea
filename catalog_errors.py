"""
Exceptions raised by the catalog. The application registers a handler
for each of them in app.py.
"""


class CatalogError(Exception):
    """Base class for catalog errors."""

    status_code = 500


class NotFoundError(CatalogError):
    """An id in the URL does not resolve to a stored entity."""

    status_code = 404

    def __init__(self, kind: str, ident):
        super().__init__(f"{kind} not found")
        self.kind = kind
        self.ident = ident


class IntegrityBlockedError(CatalogError):
    """
    Deletion requested for an entity that other entities still reference.
    Not fatal: the delete handler catches it and shows the blockers.
    """

    status_code = 409

    def __init__(self, entity, blocking):
        super().__init__(f"{entity!r} is referenced by {len(blocking)} record(s)")
        self.entity = entity
        self.blocking = list(blocking)


class StoreError(CatalogError):
    """The database rejected a write or could not be reached."""

    status_code = 500
