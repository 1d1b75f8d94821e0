"""
Database connection management for the Lychee Meta Tool.

One engine per process with a bounded connection pool. Sessions are
short-lived: checked out per operation, committed or rolled back, and
returned to the pool before the request completes.
"""

import logging
from contextlib import contextmanager
from typing import Optional, Dict, Any, Iterator

from sqlalchemy import create_engine, Engine, event, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError, DBAPIError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

from ..config import DATABASE_MYSQL, DATABASE_POSTGRES, DATABASE_SQLITE
from ..errors import PartialUpdateInconsistency

logger = logging.getLogger(__name__)

_database: Optional["Database"] = None

# Driver error codes signalling a cancelled statement
_PG_QUERY_CANCELED = '57014'
_MYSQL_TIMEOUT_ERRNOS = (3024, 1969)  # MySQL max_execution_time, MariaDB max_statement_time


def build_url(db_config: Dict[str, Any]) -> URL:
    """Build a SQLAlchemy URL from the database section of the config."""
    db_type = db_config['type']
    if db_type == DATABASE_SQLITE:
        return URL.create('sqlite', database=db_config['path'])
    if db_type == DATABASE_MYSQL:
        return URL.create(
            'mysql+pymysql',
            username=db_config['user'],
            password=db_config.get('password') or None,
            host=db_config['host'],
            port=db_config['port'],
            database=db_config['database'],
            query={'charset': 'utf8mb4'},
        )
    if db_type == DATABASE_POSTGRES:
        return URL.create(
            'postgresql+psycopg2',
            username=db_config['user'],
            password=db_config.get('password') or None,
            host=db_config['host'],
            port=db_config['port'],
            database=db_config['database'],
        )
    raise ValueError(f"Unsupported database type: {db_type}")


def is_timeout_error(error: BaseException) -> bool:
    """Check whether a SQLAlchemy error means the time budget ran out."""
    if isinstance(error, PoolTimeoutError):
        return True
    if isinstance(error, DBAPIError) and error.orig is not None:
        orig = error.orig
        if getattr(orig, 'pgcode', None) == _PG_QUERY_CANCELED:
            return True
        args = getattr(orig, 'args', ())
        if args and args[0] in _MYSQL_TIMEOUT_ERRNOS:
            return True
        if 'database is locked' in str(orig):
            return True
    return False


class Database:
    """
    Owns the engine and session factory for one Lychee database.

    Usage:
        database = Database.from_config(config['database'])
        with database.session() as session:
            session.query(Photo).count()
    """

    def __init__(self, engine: Engine, statement_timeout_ms: Optional[int] = None):
        self.engine = engine
        self.statement_timeout_ms = statement_timeout_ms
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self._install_listeners()

    @classmethod
    def from_config(cls, db_config: Dict[str, Any]) -> "Database":
        """
        Create an engine with pooling suited to the configured dialect.

        Args:
            db_config: The ``database`` section of the configuration
        """
        url = build_url(db_config)
        timeout_ms = db_config.get('statement_timeout_ms')

        if db_config['type'] == DATABASE_SQLITE:
            connect_args = {'check_same_thread': False}
            if timeout_ms:
                connect_args['timeout'] = timeout_ms / 1000.0
            engine_kwargs = {'connect_args': connect_args}
            if db_config['path'] == ':memory:':
                engine_kwargs['poolclass'] = StaticPool
        else:
            engine_kwargs = {
                'poolclass': QueuePool,
                'pool_size': db_config.get('pool_size', 10),
                'max_overflow': db_config.get('max_overflow', 5),
                'pool_timeout': db_config.get('pool_timeout', 10),
                'pool_recycle': db_config.get('pool_recycle', 3600),
                'pool_pre_ping': True,
            }

        engine = create_engine(url, echo=False, **engine_kwargs)
        logger.info(f"Configured {db_config['type']} database engine ({engine.pool.__class__.__name__})")
        return cls(engine, statement_timeout_ms=timeout_ms)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @property
    def is_mariadb(self) -> bool:
        return bool(getattr(self.engine.dialect, 'is_mariadb', False))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Context manager for a transactional session.

        Commits on success and rolls back on any exception. A failed
        rollback is reported as a PartialUpdateInconsistency because the
        store may then hold half of a multi-statement change.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            try:
                session.rollback()
            except SQLAlchemyError as rollback_error:
                logger.critical(f"Rollback failed after database error: {rollback_error}")
                raise PartialUpdateInconsistency('rollback', rollback_error) from e
            logger.debug(f"Database session rolled back: {e.__class__.__name__}")
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database health check failed: {e.__class__.__name__}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()

    def _install_listeners(self) -> None:
        timeout_ms = self.statement_timeout_ms
        dialect_name = self.dialect_name

        @event.listens_for(self.engine, "connect")
        def set_statement_timeout(dbapi_connection, connection_record):
            """Bound the run time of every statement on server dialects."""
            if not timeout_ms or dialect_name == 'sqlite':
                return
            cursor = dbapi_connection.cursor()
            try:
                if dialect_name == 'postgresql':
                    cursor.execute(f"SET statement_timeout = {int(timeout_ms)}")
                elif self.is_mariadb:
                    cursor.execute(f"SET SESSION max_statement_time = {timeout_ms / 1000.0}")
                else:
                    cursor.execute(f"SET SESSION max_execution_time = {int(timeout_ms)}")
            finally:
                cursor.close()

        @event.listens_for(self.engine, "checkout")
        def receive_checkout(dbapi_connection, connection_record, connection_proxy):
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Connection checked out from pool")

        @event.listens_for(self.engine, "checkin")
        def receive_checkin(dbapi_connection, connection_record):
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Connection checked back into pool")

        @event.listens_for(self.engine, "commit")
        def do_commit(conn):
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Database transaction committed")

        @event.listens_for(self.engine, "rollback")
        def do_rollback(conn):
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Database transaction rolled back")


def configure_database(config: Dict[str, Any]) -> Database:
    """
    Configure the process-wide database from the application config.

    Args:
        config: Full application configuration dictionary
    """
    global _database

    if _database is not None:
        _database.dispose()
    _database = Database.from_config(config['database'])
    return _database


def get_database() -> Database:
    """Get the configured database instance."""
    if _database is None:
        raise RuntimeError("Database not configured. Call configure_database() first.")
    return _database
