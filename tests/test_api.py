import re

import pytest

from library import today_utc


def _add_book(client, isbn="111", title="Dune", author="Herbert", copies=2):
    return client.post("/api/books", json={"title": title, "author": author, "isbn": isbn, "copies": copies})


def _add_customer(client, customer_id="C1"):
    return client.post("/api/customers", json={"name": "Paul", "email": "paul@example.com", "customer_id": customer_id})


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["total_books"] == 0


def test_create_and_get_book(client):
    response = _add_book(client)
    assert response.status_code == 201
    assert response.json() == {"title": "Dune", "author": "Herbert", "isbn": "111", "copies": 2, "available_copies": 2}

    response = client.get("/api/books/111")
    assert response.status_code == 200
    assert response.json()["available_copies"] == 2


def test_get_missing_book(client):
    response = client.get("/api/books/nope")
    assert response.status_code == 404
    assert response.json()["message"] == "No book could be found with the provided ISBN."


def test_merge_and_conflict(client):
    _add_book(client, copies=1)
    response = _add_book(client, copies=2)
    assert response.status_code == 201
    assert response.json()["copies"] == 3

    response = _add_book(client, title="Other", copies=1)
    assert response.status_code == 400
    assert response.json()["kind"] == "conflict"
    assert client.get("/api/books/111").json()["title"] == "Dune"


@pytest.mark.parametrize("payload", [
    {"title": "Dune", "author": "Herbert", "isbn": "111"},
    {"title": "Dune", "author": "Herbert", "isbn": "111", "copies": "2"},
    {"title": "Dune", "author": "Herbert", "isbn": 111, "copies": 2},
    {"title": "Dune", "author": "Herbert", "isbn": "111", "copies": -1},
])
def test_invalid_book_payload(client, payload):
    response = client.post("/api/books", json=payload)
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid book format.")


def test_extra_book_properties_are_ignored(client):
    response = client.post("/api/books", json={"title": "Dune", "author": "Herbert", "isbn": "111", "copies": 1, "color": "red"})
    assert response.status_code == 201
    assert "color" not in response.json()


def test_customers(client):
    response = _add_customer(client)
    assert response.status_code == 201
    assert response.json() == {"name": "Paul", "email": "paul@example.com", "customer_id": "C1"}

    assert _add_customer(client).status_code == 400
    assert _add_customer(client, "c1").status_code == 201

    assert client.get("/api/customers/C1").json()["name"] == "Paul"
    assert client.get("/api/customers/missing").status_code == 404


def test_invalid_customer_payload(client):
    response = client.post("/api/customers", json={"name": "Paul", "customer_id": "C1"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid customer format.")


def test_checkout_and_list_books(client):
    _add_book(client)
    _add_customer(client)

    response = client.post("/api/checkouts", json={"isbn": "111", "customer_id": "C1", "due_date": "2030-01-01"})
    assert response.status_code == 201
    data = response.json()
    assert re.fullmatch(r"CKO\d{5}", data["checkout_id"])
    assert data["checkout_date"] == today_utc()
    assert data["title"] == "Dune"
    assert "author" not in data

    response = client.get("/api/customers/C1/books")
    assert response.status_code == 200
    books = response.json()
    assert len(books) == 1
    assert "checkout_id" not in books[0]
    assert "customer_id" not in books[0]
    assert books[0]["author"] == "Herbert"

    assert client.get("/api/books/111").json()["available_copies"] == 1


def test_list_books_for_missing_customer(client):
    assert client.get("/api/customers/missing/books").status_code == 404


def test_checkout_errors(client):
    payload = {"isbn": "111", "customer_id": "C1", "due_date": "2030-01-01"}
    assert client.post("/api/checkouts", json=payload).status_code == 404

    _add_customer(client)
    assert client.post("/api/checkouts", json=payload).status_code == 404

    _add_book(client, copies=1)
    assert client.post("/api/checkouts", json=payload).status_code == 201
    response = client.post("/api/checkouts", json=payload)
    assert response.status_code == 400
    assert response.json()["kind"] == "capacity"

    response = client.post("/api/checkouts", json={"isbn": "111", "customer_id": "C1"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid checkout format.")


def test_checkout_limit(client):
    _add_book(client, copies=6)
    _add_customer(client)
    payload = {"isbn": "111", "customer_id": "C1", "due_date": "2030-01-01"}
    for _ in range(5):
        assert client.post("/api/checkouts", json=payload).status_code == 201
    response = client.post("/api/checkouts", json=payload)
    assert response.status_code == 400
    assert response.json()["kind"] == "limit"


def test_return(client):
    _add_book(client)
    _add_customer(client)
    client.post("/api/checkouts", json={"isbn": "111", "customer_id": "C1", "due_date": "2030-01-01"})

    response = client.post("/api/returns", json={"isbn": "111", "customer_id": "C1"})
    assert response.status_code == 200
    assert response.json() == {
        "message": "Book returned successfully",
        "isbn": "111",
        "customer_id": "C1",
        "return_date": today_utc(),
    }
    assert client.get("/api/books/111").json()["available_copies"] == 2

    response = client.post("/api/returns", json={"isbn": "111", "customer_id": "C1"})
    assert response.status_code == 404

    response = client.post("/api/returns", json={"isbn": "111"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid return format.")


def test_reset(client):
    _add_book(client)
    _add_customer(client)
    response = client.post("/api/reset")
    assert response.status_code == 200
    assert response.json() == {"message": "System reset successful"}
    assert client.get("/api/books/111").status_code == 404
    assert client.get("/api/customers/C1").status_code == 404


def test_unreadable_store_returns_json_error(client, db_file):
    with open(db_file, "w", encoding="utf-8") as f:
        f.write("{not json")
    response = client.get("/api/books/111")
    assert response.status_code == 500
    data = response.json()
    assert data["kind"] == "store"
    assert "not valid JSON" in data["message"]
