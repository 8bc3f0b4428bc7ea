from datetime import date, datetime

import pytest

from app import create_app
from data_models import db, Author, Genre, Book, BookInstance


@pytest.fixture
def app(tmp_path):
    """
    Application backed by a fresh SQLite file for every test.
    """
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.sqlite'}",
        "OPENLIBRARY_LOOKUP": False,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


class Catalog:
    """
    Inserts records directly through the models and returns their ids.
    """

    def __init__(self, app):
        self.app = app

    def _insert(self, entity):
        with self.app.app_context():
            db.session.add(entity)
            db.session.commit()
            return entity.id

    def author(self, first_name="Patrick", family_name="Rothfuss",
               date_of_birth=date(1973, 6, 6), date_of_death=None):
        return self._insert(Author(first_name=first_name, family_name=family_name,
                                   date_of_birth=date_of_birth, date_of_death=date_of_death))

    def genre(self, name="Fantasy"):
        return self._insert(Genre(name=name))

    def book(self, author_id, title="The Name of the Wind", genre_ids=(),
             summary="A young man grows to be the most notorious wizard.", isbn="9780756404741"):
        with self.app.app_context():
            book = Book(title=title, summary=summary, isbn=isbn, author_id=author_id)
            book.genre = [db.session.get(Genre, ident) for ident in genre_ids]
            db.session.add(book)
            db.session.commit()
            return book.id

    def copy(self, book_id, imprint="Gollancz, 2011", status="Available",
             due_back=datetime(2026, 10, 19)):
        return self._insert(BookInstance(book_id=book_id, imprint=imprint,
                                         status=status, due_back=due_back))

    def get(self, model, ident):
        with self.app.app_context():
            entity = db.session.get(model, ident)
            if entity is not None:
                # Load relationships before the session goes away.
                if isinstance(entity, Book):
                    entity.genre_ids = {genre.id for genre in entity.genre}
                db.session.expunge(entity)
            return entity

    def count(self, model):
        with self.app.app_context():
            return model.query.count()


@pytest.fixture
def catalog(app):
    return Catalog(app)
