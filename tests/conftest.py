#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.conftest
    ~~~~~~~~~~~~~~

    Shared fixtures: a fresh in-memory database per test, a TestClient
    bound to it, and small factories for books and users.

    :copyright: (c) 2026 by Authors.
    :license: see LICENSE for more details.
"""

import os
os.environ.setdefault("TESTING", "true")

import datetime
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from lms.core.db import Base, make_engine, get_db
from lms.core.models import Book, User, BookTransaction, TransactionStatus

NOW = datetime.datetime(2026, 1, 15, 10, 30, 0)


@pytest.fixture
def engine():
    engine = make_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()

@pytest.fixture
def SessionLocal(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session(SessionLocal):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client(SessionLocal):
    from lms.app import app

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()

@pytest.fixture
def clock():
    """A controllable clock for TransactionService."""
    class Clock:
        now = NOW
        def __call__(self):
            return self.now
        def advance(self, **kwargs):
            self.now += datetime.timedelta(**kwargs)
    return Clock()

@pytest.fixture
def make_book(db_session):
    def _make_book(title="X", author="Y", copies=1):
        book = Book(title=title, author=author, total_copies=copies, available_copies=copies)
        db_session.add(book)
        db_session.commit()
        return book
    return _make_book

@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}
    def _make_user(first_name="Ada", last_name="Lovelace"):
        counter["n"] += 1
        user = User(first_name=first_name, last_name=last_name,
                    email=f"user{counter['n']}@example.com")
        db_session.add(user)
        db_session.commit()
        return user
    return _make_user

@pytest.fixture
def make_transaction(db_session):
    """Inserts a transaction row directly, bypassing the service rules."""
    def _make_transaction(book, user, borrowed_at, status=TransactionStatus.RETURNED, due_date=None):
        transaction = BookTransaction(
            book_id=book.id,
            borrower_id=user.id,
            borrowed_at=borrowed_at,
            due_date=due_date or borrowed_at + datetime.timedelta(days=14),
            returned_at=borrowed_at + datetime.timedelta(days=1) if status == TransactionStatus.RETURNED else None,
            status=status
        )
        db_session.add(transaction)
        if status != TransactionStatus.RETURNED:
            book.available_copies -= 1
        db_session.commit()
        return transaction
    return _make_transaction
