#!/usr/bin/env python

"""
    Models for LMS,
    including the Book, User and BookTransaction tables.

    :copyright: (c) 2026 by AUTHORS
    :license: see LICENSE for more details
"""

from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, CheckConstraint, Index,
    Enum as SQLAlchemyEnum, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_property
from lms.core.db import Base
from lms.core.utils import utcnow
import enum


def _values(enum_cls):
    return [member.value for member in enum_cls]


class TransactionStatus(str, enum.Enum):
    BORROWED = "borrowed"
    OVERDUE = "overdue"
    RETURNED = "returned"

ACTIVE_STATUSES = (TransactionStatus.BORROWED, TransactionStatus.OVERDUE)


class UserRole(str, enum.Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class Book(Base):
    __tablename__ = 'books'

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    total_copies = Column(Integer, default=1, nullable=False)
    available_copies = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint('total_copies >= 1', name='ck_books_total_copies'),
        CheckConstraint('available_copies >= 0', name='ck_books_available_nonnegative'),
        CheckConstraint('available_copies <= total_copies', name='ck_books_available_le_total'),
    )

    @hybrid_property
    def copies_on_loan(self):
        return self.total_copies - self.available_copies

    @hybrid_property
    def is_borrowable(self):
        """True if at least one copy is on the shelf."""
        return self.available_copies > 0

    def __repr__(self):
        return f"<Book {self.id} {self.title!r} {self.available_copies}/{self.total_copies}>"


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(
        SQLAlchemyEnum(UserRole, name='user_role', values_callable=_values),
        default=UserRole.STUDENT, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User {self.id} {self.email}>"


class BookTransaction(Base):
    __tablename__ = 'book_transactions'

    id = Column(Integer, primary_key=True)
    book_id = Column(Integer, ForeignKey('books.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False)
    borrower_id = Column(Integer, ForeignKey('users.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False)
    borrowed_at = Column(DateTime, default=utcnow, nullable=False)
    due_date = Column(DateTime, nullable=False)
    returned_at = Column(DateTime, nullable=True)
    status = Column(
        SQLAlchemyEnum(TransactionStatus, name='transaction_status', values_callable=_values),
        default=TransactionStatus.BORROWED, nullable=False)

    book = relationship('Book')
    borrower = relationship('User')

    __table_args__ = (
        CheckConstraint(
            "(status = 'returned' AND returned_at IS NOT NULL) OR "
            "(status <> 'returned' AND returned_at IS NULL)",
            name='ck_book_transactions_returned_at'),
        Index('ix_book_transactions_borrower_status', 'borrower_id', 'status'),
        Index('ix_book_transactions_status_due', 'status', 'due_date'),
        Index('ix_book_transactions_book_status', 'book_id', 'status'),
        # One active loan per borrower
        Index(
            'uq_book_transactions_active_borrower', 'borrower_id', unique=True,
            postgresql_where=text("status IN ('borrowed', 'overdue')"),
            sqlite_where=text("status IN ('borrowed', 'overdue')")),
    )

    @property
    def is_active(self):
        return self.status in ACTIVE_STATUSES

    def __repr__(self):
        return f"<BookTransaction {self.id} book={self.book_id} borrower={self.borrower_id} {self.status.value}>"
