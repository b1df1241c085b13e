#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    lms.core.transactions
    ~~~~~~~~~~~~~~~~~~~~~

    Borrow/return lifecycle of book transactions.

    Every mutation of a `BookTransaction` goes through `TransactionService`,
    which also owns the side effect on `Book.available_copies`. A borrow
    locks the book row and the borrower row before checking anything, so two
    requests racing for the last copy (or a borrower racing themselves) are
    serialized by the database rather than by luck. The count itself only
    moves through conditional UPDATEs (`take_copy`, `put_back_copy`,
    `mark_returned`) whose row count is checked, so a stale read can never
    lend a copy that is not there or return a loan twice.

    Overdue status is computed lazily: every read runs `sweep_overdue` first.

    :copyright: (c) 2026 by Authors.
    :license: see LICENSE for more details.
"""

import datetime
import logging
from typing import Callable, List, Optional
from sqlalchemy.exc import IntegrityError
from lms.configs import LOAN_PERIOD_DAYS
from lms.core.db import atomic
from lms.core.books import BookRepository
from lms.core.users import UserRepository
from lms.core.models import BookTransaction, TransactionStatus, ACTIVE_STATUSES
from lms.core.utils import utcnow, parse_date, day_start
from lms.core.exceptions import (
    InvalidRequestError,
    TransactionNotFoundError,
    NoCopiesAvailableError,
    ActiveLoanExistsError,
    AlreadyReturnedError,
)

logger = logging.getLogger(__name__)


class TransactionRepository:

    def __init__(self, session):
        self.session = session

    def _newest_first(self, query):
        return query.order_by(BookTransaction.borrowed_at.desc(), BookTransaction.id.desc())

    def find_by_id(self, transaction_id: int) -> BookTransaction:
        if transaction := self.session.get(BookTransaction, transaction_id):
            return transaction
        raise TransactionNotFoundError("Transaction not found")

    def lock(self, transaction_id: int) -> BookTransaction:
        transaction = self.session.query(BookTransaction).filter(
            BookTransaction.id == transaction_id
        ).with_for_update().populate_existing().first()
        if not transaction:
            raise TransactionNotFoundError("Transaction not found")
        return transaction

    def active_for_borrower(self, borrower_id: int) -> Optional[BookTransaction]:
        return self.session.query(BookTransaction).filter(
            BookTransaction.borrower_id == borrower_id,
            BookTransaction.status.in_(ACTIVE_STATUSES)
        ).first()

    def find_all(self, offset=None, limit=None) -> List[BookTransaction]:
        query = self._newest_first(self.session.query(BookTransaction))
        return query.offset(offset).limit(limit).all()

    def find_for_borrower(self, borrower_id: int) -> List[BookTransaction]:
        return self._newest_first(self.session.query(BookTransaction).filter(
            BookTransaction.borrower_id == borrower_id
        )).all()

    def find_borrowed_between(self, start: datetime.datetime, end: datetime.datetime) -> List[BookTransaction]:
        """Transactions with `start <= borrowed_at < end`."""
        return self._newest_first(self.session.query(BookTransaction).filter(
            BookTransaction.borrowed_at >= start,
            BookTransaction.borrowed_at < end
        )).all()

    def mark_overdue(self, now: datetime.datetime) -> int:
        """Bulk conditional update; returns the number of rows changed."""
        return self.session.query(BookTransaction).filter(
            BookTransaction.status == TransactionStatus.BORROWED,
            BookTransaction.due_date < now
        ).update(
            {BookTransaction.status: TransactionStatus.OVERDUE},
            synchronize_session=False
        )

    def mark_returned(self, transaction_id: int, now: datetime.datetime) -> bool:
        """Closes the loan in SQL; False if it was already returned."""
        return self.session.query(BookTransaction).filter(
            BookTransaction.id == transaction_id,
            BookTransaction.status != TransactionStatus.RETURNED
        ).update(
            {BookTransaction.status: TransactionStatus.RETURNED,
             BookTransaction.returned_at: now},
            synchronize_session=False
        ) == 1


class TransactionService:

    LOAN_PERIOD = datetime.timedelta(days=LOAN_PERIOD_DAYS)

    def __init__(self, session, clock: Callable[[], datetime.datetime] = utcnow):
        self.session = session
        self.clock = clock
        self.books = BookRepository(session)
        self.users = UserRepository(session)
        self.transactions = TransactionRepository(session)

    def borrow(self, book_id: Optional[int], borrower_id: Optional[int]) -> BookTransaction:
        """
        Borrow a book for a borrower.

        Args:
            book_id: id of the book to lend.
            borrower_id: id of the user borrowing it.

        Returns:
            The new BookTransaction, status `borrowed`, due one loan period from now.

        Raises:
            InvalidRequestError: If either id is missing.
            BookNotFoundError: If the book does not exist.
            UserNotFoundError: If the borrower does not exist.
            NoCopiesAvailableError: If every copy is on loan.
            ActiveLoanExistsError: If the borrower already holds a borrowed or overdue book.
        """
        if not book_id or not borrower_id:
            raise InvalidRequestError("Missing required fields: bookId, borrowerId")

        with atomic(self.session):
            book = self.books.lock(book_id)
            self.users.lock(borrower_id)

            if not book.is_borrowable:
                raise NoCopiesAvailableError("No copies available to borrow")

            if self.transactions.active_for_borrower(borrower_id):
                raise ActiveLoanExistsError(
                    "User already has an active borrowed book (only one allowed at a time)")

            if not self.books.take_copy(book_id):
                # Another borrow took the last copy after we read the row
                raise NoCopiesAvailableError("No copies available to borrow")

            now = self.clock()
            transaction = BookTransaction(
                book_id=book.id,
                borrower_id=borrower_id,
                borrowed_at=now,
                due_date=now + self.LOAN_PERIOD,
                status=TransactionStatus.BORROWED
            )
            self.session.add(transaction)
            try:
                self.session.flush()
            except IntegrityError as e:
                # A concurrent borrow by the same user committed first
                raise ActiveLoanExistsError(
                    "User already has an active borrowed book (only one allowed at a time)") from e

        logger.info(f"Borrower {borrower_id} borrowed book {book_id} (transaction {transaction.id})")
        return transaction

    def return_book(self, transaction_id: Optional[int]) -> BookTransaction:
        """
        Close an active loan and put the copy back on the shelf.

        Raises:
            InvalidRequestError: If the id is missing.
            TransactionNotFoundError: If no such transaction exists.
            AlreadyReturnedError: If it was returned before.
        """
        if not transaction_id:
            raise InvalidRequestError("transactionId is required")

        with atomic(self.session):
            transaction = self.transactions.lock(transaction_id)
            if not transaction.is_active:
                raise AlreadyReturnedError("Book has already been returned")

            self.books.lock(transaction.book_id)
            if not self.transactions.mark_returned(transaction_id, self.clock()):
                # A concurrent return closed it after we read the row
                raise AlreadyReturnedError("Book has already been returned")
            if not self.books.put_back_copy(transaction.book_id):
                logger.warning(f"Book {transaction.book_id} already had every copy on the shelf "
                               f"when transaction {transaction_id} was returned")

        logger.info(f"Transaction {transaction_id} returned (book {transaction.book_id})")
        return transaction

    def sweep_overdue(self) -> int:
        """Flip every `borrowed` transaction past its due date to `overdue`."""
        with atomic(self.session):
            count = self.transactions.mark_overdue(self.clock())
        if count:
            logger.info(f"Marked {count} transaction(s) overdue")
        return count

    def list_all(self, offset: Optional[int] = None, limit: Optional[int] = None) -> List[BookTransaction]:
        self.sweep_overdue()
        return self.transactions.find_all(offset=offset, limit=limit)

    def get(self, transaction_id: int) -> BookTransaction:
        self.sweep_overdue()
        return self.transactions.find_by_id(transaction_id)

    def list_for_borrower(self, borrower_id: int) -> List[BookTransaction]:
        self.users.find_by_id(borrower_id)
        self.sweep_overdue()
        return self.transactions.find_for_borrower(borrower_id)

    def by_date(self, date: Optional[str]) -> List[BookTransaction]:
        """Transactions borrowed on the given YYYY-MM-DD calendar day."""
        day = parse_date(date, "date")
        self.sweep_overdue()
        start = day_start(day)
        return self.transactions.find_borrowed_between(start, start + datetime.timedelta(days=1))

    def by_range(self, start_date: Optional[str], end_date: Optional[str]) -> List[BookTransaction]:
        """Transactions borrowed from `start_date` through `end_date`, both days inclusive."""
        if not start_date or not end_date:
            raise InvalidRequestError("Both startDate and endDate are required (YYYY-MM-DD)")
        first = parse_date(start_date, "startDate")
        last = parse_date(end_date, "endDate")
        if first > last:
            raise InvalidRequestError("startDate must not be after endDate")
        self.sweep_overdue()
        return self.transactions.find_borrowed_between(
            day_start(first), day_start(last) + datetime.timedelta(days=1))
