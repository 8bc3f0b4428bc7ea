"""
Validation and sanitization of submitted catalog forms.

Each entity declares a table mapping a form field to a Field: an ordered
list of (rule, message) pairs plus two flags. Every submitted value is
trimmed first; a rule is a callable that takes the value and returns the
(possibly coerced) value, or raises ValueError when the value is not
acceptable. The first failing rule records the pair's message and stops
that field, so a field never carries more than one error.

Fields flagged `optional` yield None when left empty and skip their rules.
Fields flagged `many` are normalized with to_list() and each element runs
through the rules.

validate() never touches the database and never raises on bad input.
"""
from collections import namedtuple
from datetime import datetime

from data_models import MAX_ID, STATUSES

FieldError = namedtuple("FieldError", ["field", "message"])


class ValidationResult(namedtuple("ValidationResult", ["cleaned", "errors"])):
    """Cleaned field values and the list of FieldError found."""

    @property
    def ok(self) -> bool:
        return not self.errors

    def error_for(self, field: str):
        for error in self.errors:
            if error.field == field:
                return error.message
        return None


class Field:

    def __init__(self, *rules, optional=False, many=False):
        self.rules = list(rules)
        self.optional = optional
        self.many = many


def to_list(raw) -> list:
    """
    Normalize a multi-valued form field.

    - absent (None) -> []
    - a single value -> [value]
    - a list -> unchanged
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    return [raw]


def flatten_form(form) -> dict:
    """
    Turn a werkzeug MultiDict into a plain dict: keys submitted once map
    to their value, keys submitted several times map to the list of values.
    """
    flat = {}
    for key, values in form.lists():
        flat[key] = values[0] if len(values) == 1 else values
    return flat


# --- Rules ---

def required(value):
    if not value:
        raise ValueError("empty")
    return value


def length(min_length=0, max_length=None):
    def check(value):
        if len(value) < min_length:
            raise ValueError("too short")
        if max_length is not None and len(value) > max_length:
            raise ValueError("too long")
        return value
    return check


def alphanumeric(value):
    if not (value.isascii() and value.isalnum()):
        raise ValueError("not alphanumeric")
    return value


def iso_date(value):
    """
    Parse an ISO-8601 date or timestamp into a datetime.date. HTML
    <input type="date"> sends 'YYYY-MM-DD'; '1929-10-21T00:00:00Z' is
    accepted too.
    """
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value).date()


def one_of(choices):
    def check(value):
        if value not in choices:
            raise ValueError(f"{value!r} not allowed")
        return value
    return check


def identifier(value):
    """Reference to another entity: a positive integer id."""
    ident = int(value)
    if not 0 < ident <= MAX_ID:
        raise ValueError("not an id")
    return ident


def _trim(value):
    if value is None:
        return ""
    if isinstance(value, list):
        # A single-valued field submitted more than once keeps the first.
        value = value[0] if value else ""
    return str(value).strip()


def _run(value, field):
    """Apply a field's rules in order. Returns (value, message or None)."""
    for rule, message in field.rules:
        try:
            value = rule(value)
        except (ValueError, TypeError):
            return value, message
    return value, None


def validate(raw: dict, table: dict) -> ValidationResult:
    """
    Validate and sanitize raw form values against a rule table.

    Args:
        raw: submitted values keyed by field name (see flatten_form()).
        table: field name -> Field.

    Returns:
        ValidationResult. `cleaned` holds every field of the table: the
        coerced value when its rules passed, the trimmed input otherwise,
        so a form can be re-displayed with what the user typed.
    """
    cleaned = {}
    errors = []

    for name, field in table.items():
        if field.many:
            items = [str(item).strip() for item in to_list(raw.get(name))]
            items = [item for item in items if item]
            values = []
            message = None
            for item in items:
                value, message = _run(item, field)
                values.append(value)
                if message:
                    break
            cleaned[name] = values if not message else items
            if message:
                errors.append(FieldError(name, message))
            continue

        value = _trim(raw.get(name))
        if field.optional and not value:
            cleaned[name] = None
            continue

        value, message = _run(value, field)
        cleaned[name] = value
        if message:
            errors.append(FieldError(name, message))

    return ValidationResult(cleaned, errors)


# --- Rule tables ---

AUTHOR_FIELDS = {
    "first_name": Field(
        (required, "First name must be specified."),
        (length(max_length=100), "First name must be at most 100 characters."),
        (alphanumeric, "First name has non-alphanumeric characters."),
    ),
    "family_name": Field(
        (required, "Family name must be specified."),
        (length(max_length=100), "Family name must be at most 100 characters."),
        (alphanumeric, "Family name has non-alphanumeric characters."),
    ),
    "date_of_birth": Field((iso_date, "Invalid date of birth."), optional=True),
    "date_of_death": Field((iso_date, "Invalid date of death."), optional=True),
}

GENRE_FIELDS = {
    "name": Field(
        (required, "Genre name required."),
        (length(3, 100), "Genre name must be between 3 and 100 characters."),
    ),
}

BOOK_FIELDS = {
    "title": Field((required, "Title must not be empty.")),
    "author": Field(
        (required, "Author must not be empty."),
        (identifier, "Author must be chosen from the list."),
    ),
    "summary": Field((required, "Summary must not be empty.")),
    "isbn": Field((required, "ISBN must not be empty.")),
    "genre": Field((identifier, "Genre must be chosen from the list."), many=True),
}

BOOKINSTANCE_FIELDS = {
    "book": Field(
        (required, "Book must be specified."),
        (identifier, "Book must be chosen from the list."),
    ),
    "imprint": Field((required, "Imprint must be specified.")),
    "status": Field(
        (one_of(STATUSES), "Status must be one of: " + ", ".join(STATUSES) + "."),
        optional=True,
    ),
    "due_back": Field((iso_date, "Invalid due date."), optional=True),
}
