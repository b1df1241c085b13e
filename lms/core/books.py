#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    lms.core.books
    ~~~~~~~~~~~~~~

    Data access for the `books` table.

    :copyright: (c) 2026 by Authors.
    :license: see LICENSE for more details.
"""

import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from lms.core.db import atomic
from lms.core.models import Book
from lms.core.utils import required_text
from lms.core.exceptions import (
    InvalidRequestError,
    BookNotFoundError,
    BookInUseError,
)

logger = logging.getLogger(__name__)


class BookRepository:

    def __init__(self, session):
        self.session = session

    def find_all(self, offset: Optional[int] = None, limit: Optional[int] = None) -> List[Book]:
        return Book.get_many(self.session, offset=offset, limit=limit, order_by=[Book.id])

    def find_by_id(self, book_id: int) -> Book:
        if book := self.session.get(Book, book_id):
            return book
        raise BookNotFoundError("Book not found")

    def lock(self, book_id: int) -> Book:
        """Loads the book row with a row-level write lock held until commit."""
        book = self.session.query(Book).filter(
            Book.id == book_id
        ).with_for_update().populate_existing().first()
        if not book:
            raise BookNotFoundError("Book not found")
        return book

    def take_copy(self, book_id: int) -> bool:
        """Decrements `available_copies` in SQL unless none are left.

        Returns False when the row had no copy to give, whatever this
        session last read.
        """
        return self.session.query(Book).filter(
            Book.id == book_id,
            Book.available_copies > 0
        ).update(
            {Book.available_copies: Book.available_copies - 1},
            synchronize_session=False
        ) == 1

    def put_back_copy(self, book_id: int) -> bool:
        """Increments `available_copies` in SQL unless the shelf is already full."""
        return self.session.query(Book).filter(
            Book.id == book_id,
            Book.available_copies < Book.total_copies
        ).update(
            {Book.available_copies: Book.available_copies + 1},
            synchronize_session=False
        ) == 1

    def create(self, title: str, author: str, total_copies: Optional[int] = None) -> Book:
        title = required_text(title, "title")
        author = required_text(author, "author")
        copies = 1 if total_copies is None else total_copies
        if copies < 1:
            raise InvalidRequestError("totalCopies must be at least 1")

        with atomic(self.session):
            book = Book(
                title=title,
                author=author,
                total_copies=copies,
                available_copies=copies
            )
            self.session.add(book)
        return book

    def update(self, book_id: int, title: Optional[str] = None, author: Optional[str] = None,
               total_copies: Optional[int] = None) -> Book:
        """Partial update; only the supplied fields change.

        Changing `total_copies` shifts `available_copies` by the same amount,
        and is refused if more copies are currently on loan than the new total.
        """
        with atomic(self.session):
            book = self.lock(book_id)
            if title is not None:
                book.title = required_text(title, "title")
            if author is not None:
                book.author = required_text(author, "author")
            if total_copies is not None:
                if total_copies < 1:
                    raise InvalidRequestError("totalCopies must be at least 1")
                resized = self.session.query(Book).filter(
                    Book.id == book_id,
                    Book.copies_on_loan <= total_copies
                ).update({
                    Book.available_copies: total_copies - Book.copies_on_loan,
                    Book.total_copies: total_copies
                }, synchronize_session=False)
                if not resized:
                    raise InvalidRequestError(
                        f"Cannot reduce totalCopies to {total_copies}: "
                        f"{book.copies_on_loan} copies are on loan")
        return book

    def delete(self, book_id: int) -> dict:
        with atomic(self.session):
            book = self.lock(book_id)
            snapshot = {
                "id": book.id,
                "title": book.title,
                "author": book.author,
                "total_copies": book.total_copies,
                "available_copies": book.available_copies,
            }
            self.session.delete(book)
            try:
                self.session.flush()
            except IntegrityError as e:
                raise BookInUseError("Book has transactions and cannot be deleted") from e
        logger.info(f"Deleted book {book_id} ({snapshot['title']!r})")
        return snapshot
