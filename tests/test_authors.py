from datetime import date

from data_models import Author


def test_author_list_sorted_by_family_name(client, catalog):
    catalog.author("Isaac", "Asimov")
    catalog.author("Octavia", "Butler")
    catalog.author("Ursula", "LeGuin")

    response = client.get("/catalog/authors")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert body.index("Asimov, Isaac") < body.index("Butler, Octavia") < body.index("LeGuin, Ursula")


def test_author_detail_lists_books(client, catalog):
    author_id = catalog.author()
    catalog.book(author_id, title="The Name of the Wind")

    response = client.get(f"/catalog/author/{author_id}")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Rothfuss, Patrick" in body
    assert "The Name of the Wind" in body
    assert "Jun 6, 1973" in body


def test_author_detail_not_found(client):
    response = client.get("/catalog/author/999")
    assert response.status_code == 404
    assert "Author not found" in response.get_data(as_text=True)


def test_create_form(client):
    response = client.get("/catalog/author/create")
    assert response.status_code == 200
    assert 'name="first_name"' in response.get_data(as_text=True)


def test_create_author_redirects_to_detail(client, catalog):
    response = client.post("/catalog/author/create", data={
        "first_name": "  Ursula  ",
        "family_name": " LeGuin ",
        "date_of_birth": "1929-10-21",
        "date_of_death": "2018-01-22",
    })

    assert response.status_code == 302
    assert response.headers["Location"] == "/catalog/author/1"

    author = catalog.get(Author, 1)
    assert author.first_name == "Ursula"
    assert author.family_name == "LeGuin"
    assert author.date_of_birth == date(1929, 10, 21)
    assert author.date_of_death == date(2018, 1, 22)


def test_create_author_with_blank_fields_rerenders_form(client, catalog):
    response = client.post("/catalog/author/create", data={
        "first_name": "   ",
        "family_name": "",
        "date_of_birth": "",
    })

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert body.count("First name must be specified.") == 1
    assert body.count("Family name must be specified.") == 1
    assert catalog.count(Author) == 0


def test_create_author_keeps_entered_values_on_error(client, catalog):
    response = client.post("/catalog/author/create", data={
        "first_name": " Ursula ",
        "family_name": "Le Guin",
        "date_of_birth": "1929-10-21",
    })

    body = response.get_data(as_text=True)
    assert "Family name has non-alphanumeric characters." in body
    assert 'value="Ursula"' in body
    assert 'value="1929-10-21"' in body
    assert catalog.count(Author) == 0


def test_update_form_prefilled(client, catalog):
    author_id = catalog.author()
    body = client.get(f"/catalog/author/{author_id}/update").get_data(as_text=True)
    assert 'value="Patrick"' in body
    assert 'value="1973-06-06"' in body


def test_update_author_preserves_identity(client, catalog):
    author_id = catalog.author()

    response = client.post(f"/catalog/author/{author_id}/update", data={
        "first_name": "Pat",
        "family_name": "Rothfuss",
        "date_of_birth": "",
    })

    assert response.status_code == 302
    assert response.headers["Location"] == f"/catalog/author/{author_id}"
    author = catalog.get(Author, author_id)
    assert author.first_name == "Pat"
    # Full replacement: the cleared date is cleared.
    assert author.date_of_birth is None
    assert catalog.count(Author) == 1


def test_update_author_invalid_does_not_write(client, catalog):
    author_id = catalog.author()

    response = client.post(f"/catalog/author/{author_id}/update", data={
        "first_name": "",
        "family_name": "Rothfuss",
    })

    assert response.status_code == 200
    assert "First name must be specified." in response.get_data(as_text=True)
    assert catalog.get(Author, author_id).first_name == "Patrick"


def test_update_missing_author(client):
    assert client.get("/catalog/author/42/update").status_code == 404
    response = client.post("/catalog/author/42/update", data={"first_name": "A", "family_name": "B"})
    assert response.status_code == 404


def test_delete_author_without_books(client, catalog):
    author_id = catalog.author()

    confirm = client.get(f"/catalog/author/{author_id}/delete")
    assert confirm.status_code == 200
    assert "Do you really want to delete this record?" in confirm.get_data(as_text=True)

    response = client.post(f"/catalog/author/{author_id}/delete")
    assert response.status_code == 302
    assert response.headers["Location"] == "/catalog/authors"
    assert catalog.get(Author, author_id) is None
    assert client.get(f"/catalog/author/{author_id}").status_code == 404


def test_delete_author_with_books_is_blocked(client, catalog):
    author_id = catalog.author()
    other_id = catalog.author("Brandon", "Sanderson")
    catalog.book(author_id, title="The Name of the Wind")
    catalog.book(author_id, title="The Wise Man's Fear")
    catalog.book(other_id, title="Mistborn")

    response = client.post(f"/catalog/author/{author_id}/delete")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Delete the following records" in body
    assert "The Name of the Wind" in body
    assert "The Wise Man&#39;s Fear" in body
    assert "Mistborn" not in body
    assert catalog.get(Author, author_id) is not None


def test_delete_missing_author_redirects_to_list(client):
    assert client.get("/catalog/author/7/delete").headers["Location"] == "/catalog/authors"
    assert client.post("/catalog/author/7/delete").headers["Location"] == "/catalog/authors"


def test_create_author_with_iso_timestamp(client, catalog):
    response = client.post("/catalog/author/create", data={
        "first_name": "Ursula",
        "family_name": "LeGuin",
        "date_of_birth": "1929-10-21T00:00:00Z",
    })

    assert response.status_code == 302
    assert catalog.get(Author, 1).date_of_birth == date(1929, 10, 21)


def test_id_beyond_integer_range(client):
    huge = "99999999999999999999"

    assert client.get(f"/catalog/author/{huge}").status_code == 404
    assert client.get(f"/catalog/author/{huge}/update").status_code == 404
    assert client.get(f"/catalog/author/{huge}/delete").headers["Location"] == "/catalog/authors"
    assert client.post(f"/catalog/author/{huge}/delete").headers["Location"] == "/catalog/authors"
