import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import database
from config import settings
from database import DocumentStore
from errors import CapacityError, ConflictError, ExhaustedError, LimitError, NotFoundError
from models import Book, Checkout, Customer
from validators import (
    BOOK_FORMAT,
    CHECKOUT_FORMAT,
    CUSTOMER_FORMAT,
    RETURN_FORMAT,
    FieldValidator,
)

logger = logging.getLogger(__name__)

CHECKOUT_ID_MIN = 10000
CHECKOUT_ID_MAX = 99999
MAX_CHECKOUTS = 5


def today_utc() -> str:
    """Current UTC calendar date as YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()


class Library:
    """Books, customers and the checkouts between them, kept in one JSON document."""

    def __init__(self, db_file: Optional[str] = None, rng: Optional[random.Random] = None) -> None:
        self.store = DocumentStore(db_file or database.DATABASE_FILE)
        self.rng = rng or random.Random()
        self.id_prefix = settings.checkout_id_prefix

    # ------------------------- Book catalog ------------------------- #
    def add_book(self, title: Any, author: Any, isbn: Any, copies: Any) -> Book:
        """Create a book, or add copies to an existing one with the same ISBN.

        An existing ISBN only merges when title and author match exactly.
        """
        FieldValidator.require_strings(BOOK_FORMAT, title=title, author=author, isbn=isbn)
        FieldValidator.require_copies(BOOK_FORMAT, copies)

        with self.store.transaction() as doc:
            existing = self._find(doc["books"], "isbn", isbn)
            if existing is not None:
                if existing["title"] != title or existing["author"] != author:
                    logger.warning(f"Rejected book {isbn}: title/author differ from catalog")
                    raise ConflictError("ISBN already exists with a different title/author.")
                existing["copies"] += copies
                existing["available_copies"] += copies
                logger.info(f"Merged {copies} copies into {isbn}; now {existing['copies']} total")
                return Book.from_dict(existing)

            book = Book(title=title, author=author, isbn=isbn, copies=copies)
            doc["books"].append(book.to_dict())
            logger.info(f"Added book {isbn} with {copies} copies")
            return book

    def get_book(self, isbn: str) -> Book:
        book = self.find_book(isbn)
        if book is None:
            raise NotFoundError("No book could be found with the provided ISBN.")
        return book

    def find_book(self, isbn: str) -> Optional[Book]:
        raw = self._find(self.store.load()["books"], "isbn", isbn)
        return Book.from_dict(raw) if raw is not None else None

    def list_books(self) -> List[Book]:
        return [Book.from_dict(b) for b in self.store.load()["books"]]

    # ------------------------- Customer registry ------------------------- #
    def add_customer(self, customer_id: Any, name: Any, email: Any) -> Customer:
        FieldValidator.require_strings(CUSTOMER_FORMAT, customer_id=customer_id, name=name, email=email)

        with self.store.transaction() as doc:
            # IDs are case-sensitive: CUST001 and cust001 are different customers
            if self._find(doc["customers"], "customer_id", customer_id) is not None:
                logger.warning(f"Rejected duplicate customer {customer_id}")
                raise ConflictError("Customer with provided ID already exists.")
            customer = Customer(customer_id=customer_id, name=name, email=email)
            doc["customers"].append(customer.to_dict())
            logger.info(f"Registered customer {customer_id}")
            return customer

    def get_customer(self, customer_id: str) -> Customer:
        raw = self._find(self.store.load()["customers"], "customer_id", customer_id)
        if raw is None:
            raise NotFoundError("No customer could be found with the provided customer_id.")
        return Customer.from_dict(raw)

    def list_customer_checkouts(self, customer_id: str) -> List[Checkout]:
        """Open checkouts held by a customer, in issuance order."""
        doc = self.store.load()
        if self._find(doc["customers"], "customer_id", customer_id) is None:
            raise NotFoundError("No customer could be found with the provided customer_id.")
        return [Checkout.from_dict(c) for c in doc["checkouts"] if c["customer_id"] == customer_id]

    # ------------------------- Checkout ledger ------------------------- #
    def checkout(self, isbn: Any, customer_id: Any, due_date: Any) -> Checkout:
        """Issue a checkout of one copy.

        Checks run in a fixed order (customer, book, availability, limit) and
        the first failure aborts the whole operation without writing.
        """
        FieldValidator.require_strings(CHECKOUT_FORMAT, isbn=isbn, customer_id=customer_id, due_date=due_date)

        with self.store.transaction() as doc:
            if self._find(doc["customers"], "customer_id", customer_id) is None:
                raise NotFoundError("No customer could be found with provided customer_id.")

            book = self._find(doc["books"], "isbn", isbn)
            if book is None:
                raise NotFoundError("No book could be found with the provided ISBN.")

            if book.get("available_copies", 0) <= 0:
                logger.warning(f"Checkout of {isbn} for {customer_id} refused: no copies available")
                raise CapacityError("There are currently no available copies of this book.")

            held = [c for c in doc["checkouts"] if c["customer_id"] == customer_id]
            if len(held) >= MAX_CHECKOUTS:
                logger.warning(f"Checkout of {isbn} for {customer_id} refused: limit of {MAX_CHECKOUTS} reached")
                raise LimitError(f"This customer has already checked out {MAX_CHECKOUTS} or more books.")

            checkout = Checkout(
                checkout_id=self._generate_checkout_id(doc["checkouts"]),
                isbn=isbn,
                customer_id=customer_id,
                due_date=due_date,
                checkout_date=today_utc(),
                title=book["title"],
                author=book["author"],
                sequence=self._next_sequence(doc["checkouts"]),
            )
            book["available_copies"] -= 1
            doc["checkouts"].append(checkout.to_dict())
            logger.info(f"Issued {checkout.checkout_id}: {isbn} to {customer_id}, due {due_date}")
            return checkout

    def _generate_checkout_id(self, checkouts: List[Dict[str, Any]]) -> str:
        taken = {c["checkout_id"] for c in checkouts}
        if self._ids_in_keyspace(taken) >= CHECKOUT_ID_MAX - CHECKOUT_ID_MIN + 1:
            raise ExhaustedError("No unused checkout IDs remain.")
        while True:
            candidate = f"{self.id_prefix}{self.rng.randint(CHECKOUT_ID_MIN, CHECKOUT_ID_MAX)}"
            if candidate not in taken:
                return candidate
            logger.debug(f"Checkout ID {candidate} already in use, re-rolling")

    def _ids_in_keyspace(self, taken: set) -> int:
        count = 0
        for checkout_id in taken:
            digits = checkout_id[len(self.id_prefix):]
            if checkout_id.startswith(self.id_prefix) and digits.isdigit() \
                    and CHECKOUT_ID_MIN <= int(digits) <= CHECKOUT_ID_MAX:
                count += 1
        return count

    @staticmethod
    def _next_sequence(checkouts: List[Dict[str, Any]]) -> int:
        return max((c.get("sequence", 0) for c in checkouts), default=0) + 1

    # ------------------------- Returns ------------------------- #
    def return_book(self, isbn: Any, customer_id: Any) -> Dict[str, str]:
        """Retire the customer's most recently issued checkout of ``isbn``."""
        FieldValidator.require_strings(RETURN_FORMAT, isbn=isbn, customer_id=customer_id)

        with self.store.transaction() as doc:
            if self._find(doc["customers"], "customer_id", customer_id) is None:
                raise NotFoundError("No customer could be found with provided customer_id.")

            book = self._find(doc["books"], "isbn", isbn)
            if book is None:
                raise NotFoundError("No book could be found with the provided ISBN.")

            matches = [
                (c.get("sequence", 0), index)
                for index, c in enumerate(doc["checkouts"])
                if c["customer_id"] == customer_id and c["isbn"] == isbn
            ]
            if not matches:
                raise NotFoundError("This customer has no checked out books with the provided ISBN.")

            # Highest sequence wins; position breaks ties for legacy records
            _, index = max(matches)
            retired = doc["checkouts"].pop(index)
            book["available_copies"] = min(book.get("available_copies", 0) + 1, book["copies"])
            logger.info(f"Returned {retired['checkout_id']}: {isbn} from {customer_id}")
            return {
                "message": "Book returned successfully",
                "isbn": isbn,
                "customer_id": customer_id,
                "return_date": today_utc(),
            }

    # ------------------------- Maintenance ------------------------- #
    def reset(self) -> None:
        """Clear all customers, books and checkouts."""
        self.store.reset()

    def get_statistics(self) -> Dict[str, int]:
        doc = self.store.load()
        return {
            "total_books": len(doc["books"]),
            "total_customers": len(doc["customers"]),
            "open_checkouts": len(doc["checkouts"]),
        }

    # ------------------------- Utilities ------------------------- #
    @staticmethod
    def _find(records: List[Dict[str, Any]], key: str, value: str) -> Optional[Dict[str, Any]]:
        for record in records:
            if record.get(key) == value:
                return record
        return None
