from __future__ import annotations


class Book:
    """A catalogued title; ``isbn`` is its identity."""

    def __init__(self, title: str, author: str, isbn: str, copies: int, available_copies: int | None = None) -> None:
        self.title = title
        self.author = author
        self.isbn = isbn
        self.copies = copies
        self.available_copies = copies if available_copies is None else available_copies

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "copies": self.copies,
            "available_copies": self.available_copies,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            title=data["title"],
            author=data["author"],
            isbn=data["isbn"],
            copies=data["copies"],
            available_copies=data.get("available_copies"),
        )


class Customer:
    def __init__(self, customer_id: str, name: str, email: str) -> None:
        self.customer_id = customer_id
        self.name = name
        self.email = email

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.name} <{self.email}> ({self.customer_id})"

    def to_dict(self) -> dict:
        return {"name": self.name, "email": self.email, "customer_id": self.customer_id}

    @staticmethod
    def from_dict(data: dict) -> "Customer":
        return Customer(customer_id=data["customer_id"], name=data["name"], email=data["email"])


class Checkout:
    """An open checkout of one copy of a book by one customer.

    ``sequence`` orders checkouts by issuance; it is stored in the document
    but never exposed through the external views.
    """

    def __init__(self, checkout_id: str, isbn: str, customer_id: str, due_date: str, checkout_date: str,
                 title: str, author: str, sequence: int = 0) -> None:
        self.checkout_id = checkout_id
        self.isbn = isbn
        self.customer_id = customer_id
        self.due_date = due_date
        self.checkout_date = checkout_date
        self.title = title
        self.author = author
        self.sequence = sequence

    def to_dict(self) -> dict:
        return {
            "isbn": self.isbn,
            "due_date": self.due_date,
            "customer_id": self.customer_id,
            "title": self.title,
            "author": self.author,
            "checkout_id": self.checkout_id,
            "checkout_date": self.checkout_date,
            "sequence": self.sequence,
        }

    def to_receipt(self) -> dict:
        """View returned when a checkout is issued (no author)."""
        data = self.to_dict()
        data.pop("author")
        data.pop("sequence")
        return data

    def to_customer_view(self) -> dict:
        """View used when listing a customer's books (no internal identifiers)."""
        data = self.to_dict()
        for key in ("customer_id", "checkout_id", "sequence"):
            data.pop(key)
        return data

    @staticmethod
    def from_dict(data: dict) -> "Checkout":
        # Documents written before sequences existed fall back to 0
        return Checkout(
            checkout_id=data["checkout_id"],
            isbn=data["isbn"],
            customer_id=data["customer_id"],
            due_date=data["due_date"],
            checkout_date=data["checkout_date"],
            title=data["title"],
            author=data["author"],
            sequence=data.get("sequence", 0),
        )
