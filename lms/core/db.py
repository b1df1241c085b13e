
import logging
from contextlib import contextmanager
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from lms.configs import DB_URI, DEBUG
from lms.core.exceptions import LMSAPIError, DatabaseError

logger = logging.getLogger(__name__)


def make_engine(uri=DB_URI, echo=DEBUG):
    engine_kwargs = {'echo': echo}
    sqlite = uri.startswith('sqlite')
    in_memory = sqlite and (':memory:' in uri or uri == 'sqlite://')
    if sqlite:
        # In-memory databases only live as long as their single connection
        if in_memory:
            engine_kwargs['poolclass'] = StaticPool
        engine_kwargs['connect_args'] = {'check_same_thread': False, 'timeout': 15}
    else:
        engine_kwargs['client_encoding'] = 'utf8'
    engine = create_engine(uri, **engine_kwargs)
    if sqlite and not in_memory:
        _serialize_sqlite_writers(engine)
    return engine


def _serialize_sqlite_writers(engine):
    """SQLite has no `SELECT ... FOR UPDATE`; take the write lock at BEGIN instead.

    pysqlite defers BEGIN until the first write, so two sessions could both
    read a row before either locks it. Emitting BEGIN IMMEDIATE ourselves
    makes the second session wait until the first commits.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores REFERENCES ... ON DELETE RESTRICT unless asked."""
    if type(dbapi_connection).__module__.startswith('sqlite3'):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = make_engine()
Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class LMSBase:
    @classmethod
    def get_many(cls, session, offset=None, limit=None, order_by=None):
        query = session.query(cls)
        if order_by is not None:
            query = query.order_by(*order_by)
        return query.offset(offset).limit(limit).all()

Base = declarative_base(cls=LMSBase)


def get_db():
    """FastAPI dependency yielding one session per request."""
    session = Session()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def atomic(session):
    """Commits everything done inside the block, or nothing.

    Domain errors roll back and propagate unchanged; storage errors roll
    back and surface as `DatabaseError`.
    """
    try:
        yield session
        session.commit()
    except LMSAPIError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Database transaction failed")
        raise DatabaseError(f"Database operation failed: {e.__class__.__name__}.") from e


def init(bind=None):
    try:
        Base.metadata.create_all(bind=bind or engine)
        return Session
    except Exception as e:
        logger.warning(f"[WARNING] Database initialization failed: {e}")
