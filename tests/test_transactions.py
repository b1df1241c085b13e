#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_transactions
    ~~~~~~~~~~~~~~~~~~~~~~~

    Borrow/return lifecycle, overdue sweep and date queries of
    TransactionService.

    :copyright: (c) 2026 by Authors.
    :license: see LICENSE for more details.
"""

import datetime
import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError
from lms.core.models import Book, BookTransaction, TransactionStatus
from lms.core.books import BookRepository
from lms.core.transactions import TransactionService, TransactionRepository
from lms.core.exceptions import (
    InvalidRequestError,
    BookNotFoundError,
    UserNotFoundError,
    TransactionNotFoundError,
    NoCopiesAvailableError,
    ActiveLoanExistsError,
    AlreadyReturnedError,
    DatabaseError,
)

@pytest.fixture
def service(db_session, clock):
    return TransactionService(db_session, clock=clock)

def _available(db_session, book_id):
    db_session.expire_all()
    return db_session.get(Book, book_id).available_copies

def _count(db_session):
    return db_session.query(BookTransaction).count()


def test_borrow_creates_loan_and_takes_a_copy(service, db_session, clock, make_book, make_user):
    book = make_book(copies=2)
    user = make_user()

    transaction = service.borrow(book.id, user.id)

    assert transaction.status == TransactionStatus.BORROWED
    assert transaction.borrowed_at == clock.now
    assert transaction.due_date == clock.now + datetime.timedelta(days=14)
    assert transaction.returned_at is None
    assert _available(db_session, book.id) == 1

@pytest.mark.parametrize("book_id, borrower_id", [(None, 1), (1, None), (None, None)])
def test_borrow_requires_both_ids(service, book_id, borrower_id):
    with pytest.raises(InvalidRequestError):
        service.borrow(book_id, borrower_id)

def test_borrow_unknown_book(service, make_user):
    user = make_user()
    with pytest.raises(BookNotFoundError):
        service.borrow(9999, user.id)

def test_borrow_unknown_borrower(service, db_session, make_book):
    book = make_book()
    with pytest.raises(UserNotFoundError):
        service.borrow(book.id, 9999)
    assert _available(db_session, book.id) == 1

def test_borrow_without_copies_fails_cleanly(service, db_session, make_book, make_user):
    book = make_book(copies=1)
    first, second = make_user(), make_user()
    service.borrow(book.id, first.id)

    with pytest.raises(NoCopiesAvailableError):
        service.borrow(book.id, second.id)

    assert _available(db_session, book.id) == 0
    assert _count(db_session) == 1

def test_no_copies_is_checked_before_active_loan(service, make_book, make_user):
    empty = make_book(copies=1)
    other = make_book(title="Other")
    user, holder = make_user(), make_user()
    service.borrow(empty.id, holder.id)
    service.borrow(other.id, user.id)

    with pytest.raises(NoCopiesAvailableError):
        service.borrow(empty.id, user.id)

def test_second_active_loan_is_refused(service, db_session, make_book, make_user):
    first_book = make_book(title="First")
    second_book = make_book(title="Second")
    user = make_user()
    service.borrow(first_book.id, user.id)

    with pytest.raises(ActiveLoanExistsError):
        service.borrow(second_book.id, user.id)

    assert _available(db_session, second_book.id) == 1
    assert _count(db_session) == 1

def test_overdue_loan_still_counts_as_active(service, clock, make_book, make_user):
    first_book = make_book(title="First")
    second_book = make_book(title="Second")
    user = make_user()
    service.borrow(first_book.id, user.id)
    clock.advance(days=30)
    assert service.sweep_overdue() == 1

    with pytest.raises(ActiveLoanExistsError):
        service.borrow(second_book.id, user.id)

def test_unique_index_backs_up_the_active_loan_check(service, db_session, make_book, make_user):
    """If two borrows race past the check, the database still refuses the second."""
    first_book = make_book(title="First")
    second_book = make_book(title="Second")
    user = make_user()
    service.borrow(first_book.id, user.id)

    with patch.object(TransactionRepository, "active_for_borrower", return_value=None):
        with pytest.raises(ActiveLoanExistsError):
            service.borrow(second_book.id, user.id)

    assert _available(db_session, second_book.id) == 1
    assert _count(db_session) == 1

def test_borrow_rechecks_copies_when_taking_one(service, db_session, make_book, make_user):
    """A stale book row that still shows a copy cannot lend one the table no longer has."""
    book = make_book(copies=1)
    holder, late = make_user(), make_user()
    service.borrow(book.id, holder.id)
    stale = Book(id=book.id, title=book.title, author=book.author, total_copies=1, available_copies=1)

    with patch.object(BookRepository, "lock", return_value=stale):
        with pytest.raises(NoCopiesAvailableError):
            service.borrow(book.id, late.id)

    assert _available(db_session, book.id) == 0
    assert _count(db_session) == 1

def test_storage_failure_rolls_back_borrow(service, db_session, make_book, make_user):
    book = make_book()
    user = make_user()
    failure = OperationalError("INSERT INTO book_transactions", {}, Exception("disk I/O error"))

    with patch.object(db_session, "flush", side_effect=failure):
        with pytest.raises(DatabaseError):
            service.borrow(book.id, user.id)

    assert _available(db_session, book.id) == 1
    assert _count(db_session) == 0

def test_return_puts_copy_back(service, db_session, clock, make_book, make_user):
    book = make_book()
    user = make_user()
    transaction = service.borrow(book.id, user.id)
    clock.advance(days=3)

    returned = service.return_book(transaction.id)

    assert returned.status == TransactionStatus.RETURNED
    assert returned.returned_at == clock.now
    assert _available(db_session, book.id) == 1

def test_return_twice_fails(service, db_session, make_book, make_user):
    book = make_book()
    user = make_user()
    transaction = service.borrow(book.id, user.id)
    service.return_book(transaction.id)

    with pytest.raises(AlreadyReturnedError):
        service.return_book(transaction.id)
    assert _available(db_session, book.id) == 1

def test_return_rechecks_status_when_closing(service, db_session, make_book, make_user):
    """A stale read of a returned loan must not put a second copy back."""
    book = make_book(copies=2)
    user, other = make_user(), make_user()
    transaction = service.borrow(book.id, user.id)
    service.borrow(book.id, other.id)
    service.return_book(transaction.id)
    stale = BookTransaction(id=transaction.id, book_id=book.id, borrower_id=user.id,
                            status=TransactionStatus.BORROWED)

    with patch.object(TransactionRepository, "lock", return_value=stale):
        with pytest.raises(AlreadyReturnedError):
            service.return_book(transaction.id)

    assert _available(db_session, book.id) == 1

def test_return_requires_id(service):
    with pytest.raises(InvalidRequestError):
        service.return_book(None)

def test_return_unknown_transaction(service):
    with pytest.raises(TransactionNotFoundError):
        service.return_book(4242)

def test_overdue_loan_can_be_returned(service, db_session, clock, make_book, make_user):
    book = make_book()
    user = make_user()
    transaction = service.borrow(book.id, user.id)
    clock.advance(days=20)
    service.sweep_overdue()
    assert service.get(transaction.id).status == TransactionStatus.OVERDUE

    returned = service.return_book(transaction.id)

    assert returned.status == TransactionStatus.RETURNED
    assert _available(db_session, book.id) == 1

def test_returning_frees_the_borrower(service, make_book, make_user):
    first_book = make_book(title="First")
    second_book = make_book(title="Second")
    user = make_user()
    transaction = service.borrow(first_book.id, user.id)
    service.return_book(transaction.id)

    assert service.borrow(second_book.id, user.id).status == TransactionStatus.BORROWED

def test_copies_stay_within_bounds(service, db_session, make_book, make_user):
    book = make_book(copies=2)
    users = [make_user() for _ in range(3)]

    loans = [service.borrow(book.id, users[0].id), service.borrow(book.id, users[1].id)]
    with pytest.raises(NoCopiesAvailableError):
        service.borrow(book.id, users[2].id)
    assert _available(db_session, book.id) == 0

    for loan in loans:
        service.return_book(loan.id)
        available = _available(db_session, book.id)
        assert 0 <= available <= 2
    assert _available(db_session, book.id) == 2


# Overdue sweep

def test_sweep_marks_only_past_due_borrowed(service, db_session, clock, make_book, make_user, make_transaction):
    book = make_book(copies=4)
    late, on_time, returned_late = make_user(), make_user(), make_user()
    past_due = make_transaction(book, late, clock.now - datetime.timedelta(days=20),
                                status=TransactionStatus.BORROWED)
    current = make_transaction(book, on_time, clock.now - datetime.timedelta(days=2),
                               status=TransactionStatus.BORROWED)
    closed = make_transaction(book, returned_late, clock.now - datetime.timedelta(days=40))

    assert service.sweep_overdue() == 1

    db_session.expire_all()
    assert db_session.get(BookTransaction, past_due.id).status == TransactionStatus.OVERDUE
    assert db_session.get(BookTransaction, current.id).status == TransactionStatus.BORROWED
    assert db_session.get(BookTransaction, closed.id).status == TransactionStatus.RETURNED

def test_sweep_is_idempotent(service, db_session, clock, make_book, make_user, make_transaction):
    book = make_book()
    make_transaction(book, make_user(), clock.now - datetime.timedelta(days=20),
                     status=TransactionStatus.BORROWED)

    assert service.sweep_overdue() == 1
    states = [(t.id, t.status) for t in db_session.query(BookTransaction).all()]
    assert service.sweep_overdue() == 0
    db_session.expire_all()
    assert [(t.id, t.status) for t in db_session.query(BookTransaction).all()] == states

def test_sweep_leaves_loan_due_right_now(service, clock, make_book, make_user, make_transaction):
    book = make_book()
    make_transaction(book, make_user(), clock.now - datetime.timedelta(days=14),
                     status=TransactionStatus.BORROWED, due_date=clock.now)
    assert service.sweep_overdue() == 0


# Queries

def test_list_all_is_newest_first_and_sweeps(service, clock, make_book, make_user, make_transaction):
    book = make_book(copies=3)
    older = make_transaction(book, make_user(), clock.now - datetime.timedelta(days=30),
                             status=TransactionStatus.BORROWED)
    newer = make_transaction(book, make_user(), clock.now - datetime.timedelta(days=1))

    result = service.list_all()

    assert [t.id for t in result] == [newer.id, older.id]
    assert result[1].status == TransactionStatus.OVERDUE

def test_list_for_borrower(service, make_book, make_user):
    book = make_book(copies=2)
    user, other = make_user(), make_user()
    mine = service.borrow(book.id, user.id)
    service.borrow(book.id, other.id)

    assert [t.id for t in service.list_for_borrower(user.id)] == [mine.id]
    with pytest.raises(UserNotFoundError):
        service.list_for_borrower(9999)

def test_by_date_returns_only_that_day(service, make_book, make_user, make_transaction):
    book = make_book()
    user = make_user()
    day = datetime.datetime(2026, 1, 15)
    start_of_day = make_transaction(book, user, day)
    end_of_day = make_transaction(book, user, day + datetime.timedelta(hours=23, minutes=59))
    make_transaction(book, user, day - datetime.timedelta(seconds=1))
    make_transaction(book, user, day + datetime.timedelta(days=1))

    result = service.by_date("2026-01-15")

    assert [t.id for t in result] == [end_of_day.id, start_of_day.id]

def test_by_range_includes_whole_end_day(service, make_book, make_user, make_transaction):
    book = make_book()
    user = make_user()
    first = make_transaction(book, user, datetime.datetime(2026, 1, 1, 0, 0))
    middle = make_transaction(book, user, datetime.datetime(2026, 1, 8, 12, 0))
    last = make_transaction(book, user, datetime.datetime(2026, 1, 15, 22, 0))
    make_transaction(book, user, datetime.datetime(2025, 12, 31, 23, 59))
    make_transaction(book, user, datetime.datetime(2026, 1, 16, 0, 0))

    result = service.by_range("2026-01-01", "2026-01-15")

    assert [t.id for t in result] == [last.id, middle.id, first.id]

@pytest.mark.parametrize("value", [None, "", "15-01-2026", "2026-13-01", "2026-02-30", "yesterday"])
def test_by_date_rejects_bad_dates(service, value):
    with pytest.raises(InvalidRequestError):
        service.by_date(value)

@pytest.mark.parametrize("start, end", [
    (None, "2026-01-15"),
    ("2026-01-01", None),
    ("2026-01-01", "2026/01/15"),
    ("nope", "2026-01-15"),
    ("2026-01-15", "2026-01-01"),
])
def test_by_range_rejects_bad_ranges(service, start, end):
    with pytest.raises(InvalidRequestError):
        service.by_range(start, end)
