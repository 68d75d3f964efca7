import copy
import json
import logging
import os
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from dotenv import load_dotenv

from errors import StoreError

# Make sure .env values are visible even when this module is imported before config.
load_dotenv()

logger = logging.getLogger(__name__)

# Default document file.
# Priority:
# 1) LIBRARY_DB_FILE (explicit override)
# 2) db.json in the working directory
DATABASE_FILE = os.environ.get("LIBRARY_DB_FILE") or "db.json"

BLANK_DOCUMENT: Dict[str, List[Dict[str, Any]]] = {
    "customers": [],
    "books": [],
    "checkouts": [],
}

# One writer at a time: every read and every read-modify-write cycle holds this.
_store_lock = threading.RLock()


def blank_document() -> Dict[str, List[Dict[str, Any]]]:
    return copy.deepcopy(BLANK_DOCUMENT)


class DocumentStore:
    """Whole-document JSON persistence for customers, books and checkouts."""

    def __init__(self, path: str | None = None) -> None:
        self.path = path or DATABASE_FILE
        self.initialize()

    def initialize(self) -> None:
        """Create the document file with blank contents if it does not exist."""
        with _store_lock:
            if not os.path.exists(self.path):
                logger.info(f"Creating blank library document at {self.path}")
                self._write(blank_document())

    def load(self) -> Dict[str, List[Dict[str, Any]]]:
        with _store_lock:
            return self._read()

    def save(self, document: Dict[str, List[Dict[str, Any]]]) -> None:
        with _store_lock:
            self._write(document)

    def reset(self) -> None:
        """Replace the whole document with the blank one."""
        self.save(blank_document())
        logger.info(f"Library document at {self.path} reset")

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, List[Dict[str, Any]]]]:
        """Read the document, let the caller mutate it, then write it back.

        The write happens only if the block finishes without raising, so a
        failed check never leaves a partial change behind.
        """
        with _store_lock:
            document = self._read()
            yield document
            self._write(document)

    # ------------------------- File helpers ------------------------- #
    def _read(self) -> Dict[str, List[Dict[str, Any]]]:
        if not os.path.exists(self.path):
            return blank_document()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"{self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"{self.path} does not contain a library document.")
        for key in BLANK_DOCUMENT:
            data.setdefault(key, [])
            if not isinstance(data[key], list):
                raise StoreError(f"{self.path}: '{key}' must be a list.")
        return data

    def _write(self, document: Dict[str, List[Dict[str, Any]]]) -> None:
        """Write atomically through a temporary file next to the target."""
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(document, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)
        logger.debug(f"Wrote library document to {self.path}")
