"""books, users and book_transactions

Revision ID: 0001
Revises:
Create Date: 2026-01-25 00:00:00

"""
from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

ACTIVE = sa.text("status IN ('borrowed', 'overdue')")


def upgrade() -> None:
    op.create_table(
        'books',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('author', sa.String(255), nullable=False),
        sa.Column('total_copies', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('available_copies', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.CheckConstraint('total_copies >= 1', name='ck_books_total_copies'),
        sa.CheckConstraint('available_copies >= 0', name='ck_books_available_nonnegative'),
        sa.CheckConstraint('available_copies <= total_copies', name='ck_books_available_le_total'),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('role', sa.Enum('student', 'instructor', 'admin', name='user_role'), nullable=False),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_table(
        'book_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('book_id', sa.Integer(),
                  sa.ForeignKey('books.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False),
        sa.Column('borrower_id', sa.Integer(),
                  sa.ForeignKey('users.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False),
        sa.Column('borrowed_at', sa.DateTime(), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        sa.Column('returned_at', sa.DateTime(), nullable=True),
        sa.Column('status', sa.Enum('borrowed', 'overdue', 'returned', name='transaction_status'),
                  nullable=False),
        sa.CheckConstraint(
            "(status = 'returned' AND returned_at IS NOT NULL) OR "
            "(status <> 'returned' AND returned_at IS NULL)",
            name='ck_book_transactions_returned_at'),
    )
    op.create_index('ix_book_transactions_borrower_status', 'book_transactions', ['borrower_id', 'status'])
    op.create_index('ix_book_transactions_status_due', 'book_transactions', ['status', 'due_date'])
    op.create_index('ix_book_transactions_book_status', 'book_transactions', ['book_id', 'status'])
    op.create_index(
        'uq_book_transactions_active_borrower', 'book_transactions', ['borrower_id'], unique=True,
        postgresql_where=ACTIVE, sqlite_where=ACTIVE)


def downgrade() -> None:
    op.drop_table('book_transactions')
    op.drop_table('users')
    op.drop_table('books')
    sa.Enum(name='transaction_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='user_role').drop(op.get_bind(), checkfirst=True)
