"""
Delete guard: an entity that other entities still reference is not deleted.

The check and the delete are not wrapped in a lock, so a dependent created
between the two is not caught.
"""
import logging
from collections import namedtuple

from catalog_errors import IntegrityBlockedError
from data_models import db, commit, Author, Genre, Book, BookInstance

logger = logging.getLogger(__name__)

DeleteCheck = namedtuple("DeleteCheck", ["allowed", "blocking"])


def dependents(entity) -> list:
    """Entities that reference `entity`, ordered for display."""
    if isinstance(entity, Author):
        return (Book.query.filter(Book.author_id == entity.id)
                .order_by(Book.title.asc()).all())
    if isinstance(entity, Genre):
        return (Book.query.filter(Book.genre.any(Genre.id == entity.id))
                .order_by(Book.title.asc()).all())
    if isinstance(entity, Book):
        return (BookInstance.query.filter(BookInstance.book_id == entity.id)
                .order_by(BookInstance.id.asc()).all())
    if isinstance(entity, BookInstance):
        return []
    raise TypeError(f"not a catalog entity: {entity!r}")


def can_delete(entity) -> DeleteCheck:
    blocking = dependents(entity)
    return DeleteCheck(allowed=not blocking, blocking=blocking)


def delete(entity):
    """
    Delete `entity` unless something still references it.

    Raises:
        IntegrityBlockedError: with the blocking entities.
        StoreError: if the commit fails.
    """
    check = can_delete(entity)
    if not check.allowed:
        logger.info("Delete of %r blocked by %d dependent(s)", entity, len(check.blocking))
        raise IntegrityBlockedError(entity, check.blocking)

    description = repr(entity)
    if isinstance(entity, Book):
        # Drop the association rows; genres themselves stay.
        entity.genre = []
    db.session.delete(entity)
    commit()
    logger.info("Deleted %s", description)
