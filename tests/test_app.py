from sqlalchemy.exc import OperationalError

from data_models import db, Genre


def test_home_redirects_to_catalog(client):
    response = client.get("/")
    assert response.status_code == 302
    assert response.headers["Location"] == "/catalog/"


def test_index_counts(client, catalog):
    author_id = catalog.author()
    catalog.genre()
    book_id = catalog.book(author_id)
    catalog.copy(book_id, status="Available")
    catalog.copy(book_id, status="Loaned")

    body = client.get("/catalog/").get_data(as_text=True)
    assert "<strong>Books:</strong> 1" in body
    assert "<strong>Copies:</strong> 2" in body
    assert "<strong>Copies available:</strong> 1" in body
    assert "<strong>Authors:</strong> 1" in body
    assert "<strong>Genres:</strong> 1" in body


def test_unknown_path_is_404(client):
    response = client.get("/catalog/author/not-a-number")
    assert response.status_code == 404
    assert "Page not found" in response.get_data(as_text=True)


def test_failed_commit_renders_error_page(client, catalog, monkeypatch):
    def failing_commit():
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(db.session, "commit", failing_commit)

    response = client.post("/catalog/genre/create", data={"name": "Fantasy"})

    assert response.status_code == 500
    assert "could not be read or updated" in response.get_data(as_text=True)
    monkeypatch.undo()
    assert catalog.count(Genre) == 0


def test_config_override(app):
    assert app.config["TESTING"] is True
    assert app.config["OPENLIBRARY_LOOKUP"] is False
    assert app.config["SQLALCHEMY_DATABASE_URI"].endswith("test.sqlite")
