"""
Catalog views: list, detail, create, update and delete for authors,
genres, books and book copies.

Create and update follow the same path: validate the submitted form,
re-render it with the cleaned values and error messages when anything is
wrong, otherwise write to the database and redirect to the detail page.
Delete shows a confirmation page listing whatever still references the
entity and only deletes once nothing does.
"""
import logging
from datetime import datetime, time

from flask import Blueprint, current_app, flash, redirect, render_template, request

import integrity
from catalog_errors import IntegrityBlockedError
from computed_fields import CATALOG_PREFIX, author_name, list_url, url
from data_models import (
    db, commit, find, get_or_raise, Author, Genre, Book, BookInstance,
    DEFAULT_STATUS, STATUSES,
)
from form_validation import (
    AUTHOR_FIELDS, BOOK_FIELDS, BOOKINSTANCE_FIELDS, GENRE_FIELDS,
    FieldError, flatten_form, validate,
)
from openlibrary import fetch_summary_by_isbn

logger = logging.getLogger(__name__)

bp = Blueprint("catalog", __name__, url_prefix=CATALOG_PREFIX)


def _assign(entity, values: dict):
    for name, value in values.items():
        setattr(entity, name, value)


def _save(entity, action: str):
    db.session.add(entity)
    commit()
    logger.info("%s %r", action, entity)


@bp.get("/")
def index():
    """
    Catalog home page with record counts.
    """
    data = {
        "book_count": Book.query.count(),
        "book_instance_count": BookInstance.query.count(),
        "book_instance_available_count": BookInstance.query.filter_by(status="Available").count(),
        "author_count": Author.query.count(),
        "genre_count": Genre.query.count(),
    }
    return render_template("index.html", title="Local Library Home", data=data)


# --- Delete confirmation shared by all entities ---

def _delete_get(model, entity_id, kind, title):
    entity = find(model, entity_id)
    if entity is None:
        return redirect(list_url(kind))

    check = integrity.can_delete(entity)
    return render_template("confirm_delete.html", title=title,
                           entity=entity, dependents=check.blocking)


def _delete_post(model, entity_id, kind, title):
    entity = find(model, entity_id)
    if entity is None:
        return redirect(list_url(kind))

    label = str(entity)
    try:
        integrity.delete(entity)
    except IntegrityBlockedError as exc:
        return render_template("confirm_delete.html", title=title,
                               entity=entity, dependents=exc.blocking)

    flash(f"'{label}' was deleted successfully.", "success")
    return redirect(list_url(kind))


# --- Authors ---

def _author_form(title, form, errors=()):
    return render_template("author_form.html", title=title, form=form, errors=errors)


@bp.get("/authors")
def author_list():
    authors = Author.query.order_by(Author.family_name.asc(), Author.first_name.asc()).all()
    return render_template("author_list.html", title="Author List", authors=authors)


@bp.get("/author/<int:author_id>")
def author_detail(author_id):
    """
    Show an author detail page (including their books).
    """
    author = get_or_raise(Author, author_id)
    books = integrity.dependents(author)
    return render_template("author_detail.html", title="Author Detail",
                           author=author, author_books=books)


@bp.get("/author/create")
def author_create_get():
    return _author_form("Create Author", {})


@bp.post("/author/create")
def author_create_post():
    result = validate(flatten_form(request.form), AUTHOR_FIELDS)
    if not result.ok:
        return _author_form("Create Author", result.cleaned, result.errors)

    author = Author(**result.cleaned)
    _save(author, "Created")
    flash(f"Author '{author_name(author)}' was added successfully.", "success")
    return redirect(url(author))


@bp.get("/author/<int:author_id>/update")
def author_update_get(author_id):
    author = get_or_raise(Author, author_id)
    form = {
        "first_name": author.first_name,
        "family_name": author.family_name,
        "date_of_birth": author.date_of_birth,
        "date_of_death": author.date_of_death,
    }
    return _author_form("Update Author", form)


@bp.post("/author/<int:author_id>/update")
def author_update_post(author_id):
    author = get_or_raise(Author, author_id)
    result = validate(flatten_form(request.form), AUTHOR_FIELDS)
    if not result.ok:
        return _author_form("Update Author", result.cleaned, result.errors)

    _assign(author, result.cleaned)
    _save(author, "Updated")
    flash(f"Author '{author_name(author)}' was updated.", "success")
    return redirect(url(author))


@bp.get("/author/<int:author_id>/delete")
def author_delete_get(author_id):
    return _delete_get(Author, author_id, "author", "Delete Author")


@bp.post("/author/<int:author_id>/delete")
def author_delete_post(author_id):
    return _delete_post(Author, author_id, "author", "Delete Author")


# --- Genres ---

def _genre_form(title, form, errors=()):
    return render_template("genre_form.html", title=title, form=form, errors=errors)


@bp.get("/genres")
def genre_list():
    genres = Genre.query.order_by(Genre.name.asc()).all()
    return render_template("genre_list.html", title="Genre List", genres=genres)


@bp.get("/genre/<int:genre_id>")
def genre_detail(genre_id):
    genre = get_or_raise(Genre, genre_id)
    books = integrity.dependents(genre)
    return render_template("genre_detail.html", title="Genre Detail",
                           genre=genre, genre_books=books)


@bp.get("/genre/create")
def genre_create_get():
    return _genre_form("Create Genre", {})


@bp.post("/genre/create")
def genre_create_post():
    result = validate(flatten_form(request.form), GENRE_FIELDS)
    if not result.ok:
        return _genre_form("Create Genre", result.cleaned, result.errors)

    # Same name already stored: send the user to that genre instead.
    found = Genre.query.filter_by(name=result.cleaned["name"]).first()
    if found is not None:
        logger.info("Genre %r already exists as %r", result.cleaned["name"], found)
        return redirect(url(found))

    genre = Genre(**result.cleaned)
    _save(genre, "Created")
    flash(f"Genre '{genre.name}' was added successfully.", "success")
    return redirect(url(genre))


@bp.get("/genre/<int:genre_id>/update")
def genre_update_get(genre_id):
    genre = get_or_raise(Genre, genre_id)
    return _genre_form("Update Genre", {"name": genre.name})


@bp.post("/genre/<int:genre_id>/update")
def genre_update_post(genre_id):
    genre = get_or_raise(Genre, genre_id)
    result = validate(flatten_form(request.form), GENRE_FIELDS)
    errors = list(result.errors)

    if result.ok:
        taken = (Genre.query
                 .filter(Genre.name == result.cleaned["name"], Genre.id != genre.id)
                 .first())
        if taken is not None:
            errors.append(FieldError("name", "Another genre already has this name."))

    if errors:
        return _genre_form("Update Genre", result.cleaned, errors)

    _assign(genre, result.cleaned)
    _save(genre, "Updated")
    flash(f"Genre '{genre.name}' was updated.", "success")
    return redirect(url(genre))


@bp.get("/genre/<int:genre_id>/delete")
def genre_delete_get(genre_id):
    return _delete_get(Genre, genre_id, "genre", "Delete Genre")


@bp.post("/genre/<int:genre_id>/delete")
def genre_delete_post(genre_id):
    return _delete_post(Genre, genre_id, "genre", "Delete Genre")


# --- Books ---

def _book_form(title, form, errors=()):
    authors = Author.query.order_by(Author.family_name.asc(), Author.first_name.asc()).all()
    genres = Genre.query.order_by(Genre.name.asc()).all()
    selected_genres = {str(ident) for ident in form.get("genre") or []}
    return render_template("book_form.html", title=title, form=form, errors=errors,
                           authors=authors, genres=genres, selected_genres=selected_genres)


def _resolve_book_references(cleaned, errors):
    """
    Look up the author and genres named by a validated book form. Ids that
    do not resolve add a field error. Returns (author, genres).
    """
    failed = {error.field for error in errors}
    author = None
    genres = []

    if "author" not in failed:
        author = find(Author, cleaned["author"])
        if author is None:
            errors.append(FieldError("author", "Author must exist."))

    if "genre" not in failed:
        ids = set(cleaned["genre"])
        if ids:
            genres = Genre.query.filter(Genre.id.in_(ids)).all()
        if len(genres) != len(ids):
            errors.append(FieldError("genre", "Genre must exist."))

    return author, genres


def _apply_book(book, cleaned, author, genres):
    book.title = cleaned["title"]
    book.summary = cleaned["summary"]
    book.isbn = cleaned["isbn"]
    book.author = author
    book.genre = genres


@bp.get("/books")
def book_list():
    """
    All books, with:
    - search by title or author via ?q=
    - sorting via ?sort=title|author
    """
    q = request.args.get("q", "").strip()
    sort_key = request.args.get("sort", "title").strip()

    base_query = Book.query.outerjoin(Author, Book.author_id == Author.id)

    if q:
        like = f"%{q}%"
        base_query = base_query.filter(
            Book.title.ilike(like)
            | Author.first_name.ilike(like)
            | Author.family_name.ilike(like)
        )

    if sort_key == "author":
        books = base_query.order_by(
            Author.family_name.asc(),
            Author.first_name.asc(),
            Book.title.asc(),
        ).all()
    else:
        sort_key = "title"
        books = base_query.order_by(Book.title.asc()).all()

    return render_template("book_list.html", title="Book List",
                           books=books, q=q, sort_key=sort_key)


@bp.get("/book/<int:book_id>")
def book_detail(book_id):
    """
    Book detail page, including its copies.
    """
    book = get_or_raise(Book, book_id)
    instances = integrity.dependents(book)
    return render_template("book_detail.html", title=book.title,
                           book=book, book_instances=instances)


@bp.get("/book/create")
def book_create_get():
    return _book_form("Create Book", {})


@bp.post("/book/create")
def book_create_post():
    raw = flatten_form(request.form)

    if current_app.config.get("OPENLIBRARY_LOOKUP") and not (raw.get("summary") or "").strip():
        summary = fetch_summary_by_isbn(raw.get("isbn") or "",
                                        timeout=current_app.config.get("OPENLIBRARY_TIMEOUT", 8))
        if summary:
            raw["summary"] = summary

    result = validate(raw, BOOK_FIELDS)
    errors = list(result.errors)
    author, genres = _resolve_book_references(result.cleaned, errors)
    if errors:
        return _book_form("Create Book", result.cleaned, errors)

    book = Book()
    _apply_book(book, result.cleaned, author, genres)
    _save(book, "Created")
    flash(f"Book '{book.title}' was added successfully.", "success")
    return redirect(url(book))


@bp.get("/book/<int:book_id>/update")
def book_update_get(book_id):
    book = get_or_raise(Book, book_id)
    form = {
        "title": book.title,
        "author": book.author_id,
        "summary": book.summary,
        "isbn": book.isbn,
        "genre": [genre.id for genre in book.genre],
    }
    return _book_form("Update Book", form)


@bp.post("/book/<int:book_id>/update")
def book_update_post(book_id):
    book = get_or_raise(Book, book_id)
    result = validate(flatten_form(request.form), BOOK_FIELDS)
    errors = list(result.errors)
    author, genres = _resolve_book_references(result.cleaned, errors)
    if errors:
        return _book_form("Update Book", result.cleaned, errors)

    _apply_book(book, result.cleaned, author, genres)
    _save(book, "Updated")
    flash(f"Book '{book.title}' was updated.", "success")
    return redirect(url(book))


@bp.get("/book/<int:book_id>/delete")
def book_delete_get(book_id):
    return _delete_get(Book, book_id, "book", "Delete Book")


@bp.post("/book/<int:book_id>/delete")
def book_delete_post(book_id):
    return _delete_post(Book, book_id, "book", "Delete Book")


# --- Book copies ---

def _bookinstance_form(title, form, errors=()):
    books = Book.query.order_by(Book.title.asc()).all()
    return render_template("bookinstance_form.html", title=title, form=form, errors=errors,
                           book_list=books, statuses=STATUSES)


def _resolve_book(cleaned, errors):
    if any(error.field == "book" for error in errors):
        return None
    book = find(Book, cleaned["book"])
    if book is None:
        errors.append(FieldError("book", "Book must exist."))
    return book


def _due_back(value):
    return datetime.combine(value, time.min)


@bp.get("/bookinstances")
def bookinstance_list():
    instances = (BookInstance.query
                 .outerjoin(Book, BookInstance.book_id == Book.id)
                 .order_by(Book.title.asc(), BookInstance.id.asc())
                 .all())
    return render_template("bookinstance_list.html", title="Book Instance List",
                           bookinstance_list=instances)


@bp.get("/bookinstance/<int:bookinstance_id>")
def bookinstance_detail(bookinstance_id):
    instance = get_or_raise(BookInstance, bookinstance_id)
    title = f"Copy: {instance.book.title}" if instance.book else "Copy"
    return render_template("bookinstance_detail.html", title=title, bookinstance=instance)


@bp.get("/bookinstance/create")
def bookinstance_create_get():
    form = {"book": request.args.get("book"), "status": DEFAULT_STATUS}
    return _bookinstance_form("Create BookInstance", form)


@bp.post("/bookinstance/create")
def bookinstance_create_post():
    result = validate(flatten_form(request.form), BOOKINSTANCE_FIELDS)
    errors = list(result.errors)
    book = _resolve_book(result.cleaned, errors)
    if errors:
        return _bookinstance_form("Create BookInstance", result.cleaned, errors)

    cleaned = result.cleaned
    instance = BookInstance(
        book=book,
        imprint=cleaned["imprint"],
        status=cleaned["status"] or DEFAULT_STATUS,
        due_back=_due_back(cleaned["due_back"]) if cleaned["due_back"] else datetime.now(),
    )
    _save(instance, "Created")
    flash(f"Copy of '{book.title}' was added successfully.", "success")
    return redirect(url(instance))


@bp.get("/bookinstance/<int:bookinstance_id>/update")
def bookinstance_update_get(bookinstance_id):
    instance = get_or_raise(BookInstance, bookinstance_id)
    form = {
        "book": instance.book_id,
        "imprint": instance.imprint,
        "status": instance.status,
        "due_back": instance.due_back,
    }
    return _bookinstance_form("Update BookInstance", form)


@bp.post("/bookinstance/<int:bookinstance_id>/update")
def bookinstance_update_post(bookinstance_id):
    instance = get_or_raise(BookInstance, bookinstance_id)
    result = validate(flatten_form(request.form), BOOKINSTANCE_FIELDS)
    errors = list(result.errors)
    book = _resolve_book(result.cleaned, errors)
    if errors:
        # Nothing is written when the form is rejected.
        return _bookinstance_form("Update BookInstance", result.cleaned, errors)

    cleaned = result.cleaned
    instance.book = book
    instance.imprint = cleaned["imprint"]
    instance.status = cleaned["status"] or DEFAULT_STATUS
    if cleaned["due_back"]:
        instance.due_back = _due_back(cleaned["due_back"])
    _save(instance, "Updated")
    flash("Copy was updated.", "success")
    return redirect(url(instance))


@bp.get("/bookinstance/<int:bookinstance_id>/delete")
def bookinstance_delete_get(bookinstance_id):
    return _delete_get(BookInstance, bookinstance_id, "bookinstance", "Delete Copy")


@bp.post("/bookinstance/<int:bookinstance_id>/delete")
def bookinstance_delete_post(bookinstance_id):
    return _delete_post(BookInstance, bookinstance_id, "bookinstance", "Delete Copy")
