import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, StrictInt, StrictStr

from config import configure_logging, settings
from errors import ErrorKind, LibraryError, StoreError
from library import Library
from validators import BOOK_FORMAT, CHECKOUT_FORMAT, CUSTOMER_FORMAT, RETURN_FORMAT

logger = logging.getLogger(__name__)

library = Library(os.environ.get("LIBRARY_DB_FILE"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(f"{settings.app_name} {settings.app_version} using {library.store.path}")
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error translation ---
STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 400,
    ErrorKind.CAPACITY: 400,
    ErrorKind.LIMIT: 400,
    ErrorKind.EXHAUSTED: 503,
}

# Format messages for malformed bodies, keyed by route path
FORMAT_BY_PATH = {
    "/api/books": BOOK_FORMAT,
    "/api/customers": CUSTOMER_FORMAT,
    "/api/checkouts": CHECKOUT_FORMAT,
    "/api/returns": RETURN_FORMAT,
}


@app.exception_handler(LibraryError)
async def library_error_handler(request: Request, exc: LibraryError):
    return JSONResponse(status_code=STATUS_BY_KIND.get(exc.kind, 400), content=exc.to_dict())


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Library document unreadable: {exc}")
    return JSONResponse(status_code=500, content={"message": str(exc), "kind": "store"})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = FORMAT_BY_PATH.get(request.url.path.rstrip("/"), "Invalid request format.")
    return JSONResponse(status_code=400, content={"message": message, "kind": ErrorKind.VALIDATION.value})


# --- Models ---
class BookModel(BaseModel):
    title: str
    author: str
    isbn: str
    copies: int
    available_copies: int


class BookCreateModel(BaseModel):
    title: StrictStr
    author: StrictStr
    isbn: StrictStr
    copies: StrictInt = Field(ge=0)


class CustomerModel(BaseModel):
    name: StrictStr
    email: StrictStr
    customer_id: StrictStr


class CheckoutRequest(BaseModel):
    isbn: StrictStr
    customer_id: StrictStr
    due_date: StrictStr


class CheckoutReceipt(BaseModel):
    checkout_id: str
    isbn: str
    customer_id: str
    title: str
    due_date: str
    checkout_date: str


class CustomerCheckoutView(BaseModel):
    isbn: str
    title: str
    author: str
    due_date: str
    checkout_date: str


class ReturnRequest(BaseModel):
    isbn: StrictStr
    customer_id: StrictStr


class ReturnResult(BaseModel):
    message: str
    isbn: str
    customer_id: str
    return_date: str


class MessageModel(BaseModel):
    message: str


# --- Health check ---
@app.get("/health")
def health():
    """Lightweight health endpoint with document counts."""
    stats = library.get_statistics()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **stats,
    }


# --- Books ---
@app.get("/api/books/{isbn}", response_model=BookModel)
def get_book(isbn: str):
    return library.get_book(isbn).to_dict()


@app.post("/api/books", response_model=BookModel, status_code=201)
def create_book(payload: BookCreateModel):
    book = library.add_book(payload.title, payload.author, payload.isbn, payload.copies)
    return book.to_dict()


# --- Customers ---
@app.get("/api/customers/{customer_id}", response_model=CustomerModel)
def get_customer(customer_id: str):
    return library.get_customer(customer_id).to_dict()


@app.post("/api/customers", response_model=CustomerModel, status_code=201)
def create_customer(payload: CustomerModel):
    customer = library.add_customer(payload.customer_id, payload.name, payload.email)
    return customer.to_dict()


@app.get("/api/customers/{customer_id}/books", response_model=List[CustomerCheckoutView])
def list_customer_books(customer_id: str):
    return [c.to_customer_view() for c in library.list_customer_checkouts(customer_id)]


# --- Circulation ---
@app.post("/api/checkouts", response_model=CheckoutReceipt, status_code=201)
def create_checkout(payload: CheckoutRequest):
    checkout = library.checkout(payload.isbn, payload.customer_id, payload.due_date)
    return checkout.to_receipt()


@app.post("/api/returns", response_model=ReturnResult)
def create_return(payload: ReturnRequest):
    return library.return_book(payload.isbn, payload.customer_id)


@app.post("/api/reset", response_model=MessageModel)
def reset():
    library.reset()
    return {"message": "System reset successful"}
