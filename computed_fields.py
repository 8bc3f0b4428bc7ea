"""
Display-only values derived from stored fields.

These are plain functions over an entity and are never written back to the
database. app.py registers each of them as a Jinja filter.
"""
from datetime import date, datetime

CATALOG_PREFIX = "/catalog"

_URL_KINDS = {
    "Author": "author",
    "Genre": "genre",
    "Book": "book",
    "BookInstance": "bookinstance",
}


def author_name(author) -> str:
    """'family_name, first_name', or '' if either part is missing."""
    if author is None or not author.first_name or not author.family_name:
        return ""
    return f"{author.family_name}, {author.first_name}"


def author_lifespan(author) -> str:
    """
    Birth and death years separated by ' - '. An unknown year leaves its
    side of the separator blank, e.g. '1920 - '.
    """
    birth = str(author.date_of_birth.year) if author.date_of_birth else ""
    death = str(author.date_of_death.year) if author.date_of_death else ""
    return f"{birth} - {death}"


def date_formatted(value) -> str:
    """Medium date such as 'Oct 19, 2026'; '' for a missing date."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        return ""
    return f"{value:%b} {value.day}, {value.year}"


def due_back_formatted(instance) -> str:
    return date_formatted(instance.due_back)


def url(entity) -> str:
    """Canonical detail path, e.g. /catalog/author/3."""
    kind = _URL_KINDS[type(entity).__name__]
    return f"{CATALOG_PREFIX}/{kind}/{entity.id}"


def list_url(kind: str) -> str:
    return f"{CATALOG_PREFIX}/{kind}s"


def date_input(value) -> str:
    """Value for an <input type="date">: 'YYYY-MM-DD' or ''."""
    if value is None:
        return ""
    # Re-displayed form input that failed to parse.
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()
