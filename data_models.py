from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from catalog_errors import NotFoundError, StoreError

db = SQLAlchemy()

STATUSES = ("Available", "Maintenance", "Loaned", "Reserved")
DEFAULT_STATUS = "Maintenance"

# Largest value an SQLite INTEGER primary key can hold.
MAX_ID = 2 ** 63 - 1


book_genre = db.Table(
    "book_genre",
    db.Column("book_id", db.Integer, db.ForeignKey("books.id"), primary_key=True),
    db.Column("genre_id", db.Integer, db.ForeignKey("genres.id"), primary_key=True),
)


class Author(db.Model):
    """
    Author with optional life dates. Books keep a reference to the author,
    so an author is only deleted once no book points at it.
    """
    __tablename__ = "authors"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    first_name = db.Column(db.String(100), nullable=False)
    family_name = db.Column(db.String(100), nullable=False)
    date_of_birth = db.Column(db.Date, nullable=True)
    date_of_death = db.Column(db.Date, nullable=True)

    books = db.relationship("Book", back_populates="author")

    def __repr__(self):
        return f"Author(id = {self.id}, name = {self.family_name}, {self.first_name})"

    def __str__(self):
        return f"{self.family_name}, {self.first_name}"


class Genre(db.Model):
    __tablename__ = "genres"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    # Uniqueness is checked by the create handler, not by the schema.
    name = db.Column(db.String(100), nullable=False)

    books = db.relationship("Book", secondary=book_genre, back_populates="genre")

    def __repr__(self):
        return f"Genre(id = {self.id}, name = {self.name})"

    def __str__(self):
        return self.name


class Book(db.Model):
    """
    Book with one author, any number of genres and the physical copies
    held by the library.
    """
    __tablename__ = "books"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title = db.Column(db.String, nullable=False)
    summary = db.Column(db.Text, nullable=False)
    isbn = db.Column(db.String, nullable=False)

    author_id = db.Column(db.Integer, db.ForeignKey("authors.id"), nullable=False)

    author = db.relationship("Author", back_populates="books")
    genre = db.relationship(
        "Genre",
        secondary=book_genre,
        back_populates="books",
        order_by="Genre.name",
    )
    instances = db.relationship("BookInstance", back_populates="book")

    def __repr__(self):
        return f"<Book id={self.id} title='{self.title}'>"

    def __str__(self):
        return self.title


class BookInstance(db.Model):
    __tablename__ = "book_instances"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False)
    imprint = db.Column(db.String, nullable=False)
    status = db.Column(
        db.Enum(*STATUSES, name="bookinstance_status",
                create_constraint=True, validate_strings=True),
        nullable=False,
        default=DEFAULT_STATUS,
    )
    due_back = db.Column(db.DateTime, nullable=False, default=datetime.now)

    book = db.relationship("Book", back_populates="instances")

    def __repr__(self):
        return f"<BookInstance id={self.id} book_id={self.book_id} status={self.status}>"

    def __str__(self):
        return f"{self.imprint} ({self.status})"


LABELS = {
    Author: "Author",
    Genre: "Genre",
    Book: "Book",
    BookInstance: "Book copy",
}


def find(model, ident):
    """Load one entity by primary key, or None. Ids outside INTEGER range match nothing."""
    if not 0 < ident <= MAX_ID:
        return None
    return db.session.get(model, ident)


def get_or_raise(model, ident):
    """
    Load one entity by primary key.

    Raises:
        NotFoundError: when no row has this id.
    """
    entity = find(model, ident)
    if entity is None:
        raise NotFoundError(LABELS[model], ident)
    return entity


def commit():
    """
    Commit the current session, turning database failures into StoreError.
    The session is rolled back before the error propagates.
    """
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreError(str(exc)) from exc
