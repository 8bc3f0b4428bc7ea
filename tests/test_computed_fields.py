from datetime import date, datetime

from computed_fields import (
    author_lifespan, author_name, date_formatted, date_input, due_back_formatted, url,
)
from data_models import Author, Genre, Book, BookInstance


def test_author_name():
    assert author_name(Author(first_name="Isaac", family_name="Asimov")) == "Asimov, Isaac"


def test_author_name_empty_when_part_missing():
    assert author_name(Author(first_name="Isaac")) == ""
    assert author_name(None) == ""


def test_lifespan():
    author = Author(date_of_birth=date(1920, 1, 2), date_of_death=date(1992, 4, 6))
    assert author_lifespan(author) == "1920 - 1992"


def test_lifespan_living_and_unknown():
    assert author_lifespan(Author(date_of_birth=date(1973, 6, 6))) == "1973 - "
    assert author_lifespan(Author()) == " - "


def test_date_formatted():
    assert date_formatted(date(2026, 10, 19)) == "Oct 19, 2026"
    assert date_formatted(datetime(2026, 3, 5, 14, 30)) == "Mar 5, 2026"
    assert date_formatted(None) == ""


def test_due_back_formatted():
    assert due_back_formatted(BookInstance(due_back=datetime(2026, 1, 9))) == "Jan 9, 2026"


def test_date_input():
    assert date_input(date(1929, 10, 21)) == "1929-10-21"
    assert date_input(datetime(2026, 10, 19, 8, 0)) == "2026-10-19"
    assert date_input("not a date") == "not a date"
    assert date_input(None) == ""


def test_urls():
    assert url(Author(id=3)) == "/catalog/author/3"
    assert url(Genre(id=4)) == "/catalog/genre/4"
    assert url(Book(id=5)) == "/catalog/book/5"
    assert url(BookInstance(id=6)) == "/catalog/bookinstance/6"
