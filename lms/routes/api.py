#!/usr/bin/env python

"""
    API routes for LMS,
    including book, user and borrow/return transaction endpoints.

    :copyright: (c) 2026 by AUTHORS
    :license: see LICENSE for more details
"""

from typing import Optional, List
from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    status,
)
from sqlalchemy.orm import Session
from lms import __version__ as VERSION
from lms.configs import DEFAULT_LIMIT
from lms.core.db import get_db
from lms.core.books import BookRepository
from lms.core.users import UserRepository
from lms.core.transactions import TransactionService
from lms.core.exceptions import LMSAPIError
from lms.schemas.book import Book, BookCreate, BookUpdate
from lms.schemas.user import User, UserCreate
from lms.schemas.transaction import BookTransaction, BorrowRequest, ReturnRequest

router = APIRouter()
transactions = APIRouter()


def _http_error(e: LMSAPIError) -> HTTPException:
    if e.status_code >= 500:
        # Already logged where it was raised
        return HTTPException(status_code=e.status_code, detail="Internal server error")
    return HTTPException(status_code=e.status_code, detail=str(e))


@router.get('/', status_code=status.HTTP_200_OK)
async def home():
    return {"status": "ok", "version": VERSION}

# Books

@router.get("/books", response_model=List[Book])
def get_books(offset: Optional[int] = Query(None, ge=0), limit: Optional[int] = Query(None, ge=0),
              db: Session = Depends(get_db)):
    return BookRepository(db).find_all(offset=offset, limit=DEFAULT_LIMIT if limit is None else limit)

@router.get("/books/{book_id}", response_model=Book)
def get_book(book_id: int, db: Session = Depends(get_db)):
    try:
        return BookRepository(db).find_by_id(book_id)
    except LMSAPIError as e:
        raise _http_error(e)

@router.post("/books", response_model=Book, status_code=status.HTTP_201_CREATED)
def create_book(body: BookCreate, db: Session = Depends(get_db)):
    try:
        return BookRepository(db).create(body.title, body.author, total_copies=body.total_copies)
    except LMSAPIError as e:
        raise _http_error(e)

@router.put("/books/{book_id}", response_model=Book)
def update_book(book_id: int, body: BookUpdate, db: Session = Depends(get_db)):
    try:
        return BookRepository(db).update(
            book_id, title=body.title, author=body.author, total_copies=body.total_copies)
    except LMSAPIError as e:
        raise _http_error(e)

@router.delete("/books/{book_id}")
def delete_book(book_id: int, db: Session = Depends(get_db)):
    try:
        book = BookRepository(db).delete(book_id)
        return {"message": "Book deleted", "book": book}
    except LMSAPIError as e:
        raise _http_error(e)

# Users

@router.get("/users", response_model=List[User])
def get_users(offset: Optional[int] = Query(None, ge=0), limit: Optional[int] = Query(None, ge=0),
              db: Session = Depends(get_db)):
    return UserRepository(db).find_all(offset=offset, limit=DEFAULT_LIMIT if limit is None else limit)

@router.get("/users/{user_id}", response_model=User)
def get_user(user_id: int, db: Session = Depends(get_db)):
    try:
        return UserRepository(db).find_by_id(user_id)
    except LMSAPIError as e:
        raise _http_error(e)

@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, db: Session = Depends(get_db)):
    try:
        return UserRepository(db).create(body.first_name, body.last_name, body.email, role=body.role)
    except LMSAPIError as e:
        raise _http_error(e)

@router.get("/users/{user_id}/transactions", response_model=List[BookTransaction])
def get_user_transactions(user_id: int, db: Session = Depends(get_db)):
    try:
        return TransactionService(db).list_for_borrower(user_id)
    except LMSAPIError as e:
        raise _http_error(e)

# Transactions, mounted under /transactions

@transactions.post("/borrow", response_model=BookTransaction, status_code=status.HTTP_201_CREATED)
def borrow_book(body: BorrowRequest, db: Session = Depends(get_db)):
    """Borrow a book; one active (borrowed or overdue) loan per borrower."""
    try:
        return TransactionService(db).borrow(body.book_id, body.borrower_id)
    except LMSAPIError as e:
        raise _http_error(e)

@transactions.post("/return", response_model=BookTransaction, status_code=status.HTTP_200_OK)
def return_book(body: ReturnRequest, db: Session = Depends(get_db)):
    try:
        return TransactionService(db).return_book(body.transaction_id)
    except LMSAPIError as e:
        raise _http_error(e)

@transactions.get("/", response_model=List[BookTransaction])
def list_transactions(offset: Optional[int] = Query(None, ge=0), limit: Optional[int] = Query(None, ge=0),
                      db: Session = Depends(get_db)):
    """All transactions, newest first, with overdue loans marked."""
    try:
        return TransactionService(db).list_all(offset=offset, limit=limit)
    except LMSAPIError as e:
        raise _http_error(e)

# Example: GET /by-date?date=2026-01-15
@transactions.get("/by-date", response_model=List[BookTransaction])
def transactions_by_date(date: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        return TransactionService(db).by_date(date)
    except LMSAPIError as e:
        raise _http_error(e)

# Example: GET /by-range?startDate=2026-01-01&endDate=2026-01-15
@transactions.get("/by-range", response_model=List[BookTransaction])
def transactions_by_range(
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
        db: Session = Depends(get_db)):
    try:
        return TransactionService(db).by_range(start_date, end_date)
    except LMSAPIError as e:
        raise _http_error(e)

@transactions.get("/{transaction_id}", response_model=BookTransaction)
def get_transaction(transaction_id: int, db: Session = Depends(get_db)):
    try:
        return TransactionService(db).get(transaction_id)
    except LMSAPIError as e:
        raise _http_error(e)
