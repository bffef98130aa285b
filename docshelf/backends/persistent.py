"""
docshelf.backends.persistent

```markdown
Namespace storage in a relational database through SQLAlchemy. Every
namespace/key pair is one row of the `docshelf_fields` table.
```
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import (
    Engine,
    event,
    pool,
    Column,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as SQLAlchemySession, declarative_base
from sqlmodel import create_engine, and_

from ..errors import BackendError
from .base import NamespaceBackend

logger = logging.getLogger(__name__)

__all__ = [
    "PersistentNamespaceBackend",
    "PersistentFieldItem",
]

Base = declarative_base()

# Dialects with a native single-statement upsert
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class PersistentFieldItem(Base):
    """
    ```markdown
    SQLAlchemy model for one raw field value.
    ```
    """

    __tablename__ = "docshelf_fields"

    namespace = Column(String(255), primary_key=True, index=True)
    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)

    def __repr__(self):
        return f"<PersistentFieldItem(namespace='{self.namespace}', key='{self.key}')>"


class PersistentNamespaceBackend(NamespaceBackend):
    """
    ```markdown
    Database-backed namespace storage. Each operation runs in its own
    transaction, so single-key writes are atomic.
    ```

    Example:
        ```python
        backend = PersistentNamespaceBackend("sqlite:///docshelf.db")
        backend.put("settings", "theme", '"dark"')
        backend.get("settings", "theme")  # '"dark"'
        ```
    """

    def __init__(
        self,
        location: str,
        *,
        echo_sql: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
    ):
        """
        ```markdown
        Connect to the database and create the table if it does not exist.
        ```

        Args:
            location: Database URL, e.g. `sqlite:///docshelf.db`.
            echo_sql: Whether to echo SQL statements.
            pool_size: Connection pool size (non-SQLite only).
            max_overflow: Connections allowed beyond `pool_size`.
            pool_timeout: Seconds to wait for a pooled connection.
            pool_recycle: Recycle connections after this many seconds.

        Raises:
            BackendError: If the engine cannot be created or the table
                cannot be created.
        """
        if not location:
            raise ValueError(
                "Database location (URL) must be provided for persistent storage. "
                "Example: 'sqlite:///docshelf.db'"
            )

        self.location = location
        is_sqlite = location.startswith("sqlite")

        engine_kwargs = {
            "echo": echo_sql,
            "future": True,
            "pool_pre_ping": True,
        }

        if is_sqlite:
            engine_kwargs.update(
                {
                    "connect_args": {"check_same_thread": False, "timeout": 15},
                    "poolclass": pool.StaticPool,
                }
            )
        else:
            engine_kwargs.update(
                {
                    "pool_size": pool_size,
                    "max_overflow": max_overflow,
                    "pool_timeout": pool_timeout,
                    "pool_recycle": pool_recycle,
                }
            )

        try:
            self._engine: Engine = create_engine(location, **engine_kwargs)

            if is_sqlite:

                @event.listens_for(self._engine, "connect")
                def set_sqlite_pragma(dbapi_connection, connection_record):
                    cursor = dbapi_connection.cursor()
                    try:
                        cursor.execute("PRAGMA journal_mode=WAL;")
                        cursor.execute("PRAGMA synchronous=NORMAL;")
                    finally:
                        cursor.close()

            Base.metadata.create_all(self._engine, checkfirst=True)
            logger.info(f"Persistent storage initialized at {location}")

        except Exception as e:
            logger.error(f"Failed to initialize persistent storage: {e}", exc_info=True)
            raise BackendError(f"Database initialization failed: {e}") from e

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _get_db_session(self) -> Iterator[SQLAlchemySession]:
        """Provide a SQLAlchemy session that commits on success."""
        session = SQLAlchemySession(self._engine)
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database transaction failed: {e}", exc_info=True)
            raise BackendError(f"Database transaction failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, namespace: str, key: str) -> Optional[str]:
        with self._get_db_session() as session:
            item = session.get(PersistentFieldItem, (namespace, key))
            return item.value if item else None

    def put(self, namespace: str, key: str, raw: str) -> None:
        """Insert or overwrite in one statement; concurrent writers never collide."""
        insert = _UPSERT_INSERTS.get(self._engine.dialect.name)
        with self._get_db_session() as session:
            if insert is None:
                session.merge(PersistentFieldItem(namespace=namespace, key=key, value=raw))
            else:
                statement = insert(PersistentFieldItem).values(
                    namespace=namespace, key=key, value=raw
                )
                session.execute(
                    statement.on_conflict_do_update(
                        index_elements=["namespace", "key"],
                        set_={"value": statement.excluded.value},
                    )
                )
            logger.debug(f"Set '{namespace}/{key}' in persistent store.")

    def remove(self, namespace: str, key: str) -> None:
        with self._get_db_session() as session:
            count = (
                session.query(PersistentFieldItem)
                .filter(
                    and_(
                        PersistentFieldItem.namespace == namespace,
                        PersistentFieldItem.key == key,
                    )
                )
                .delete()
            )
            if count:
                logger.debug(f"Deleted '{namespace}/{key}' from persistent store.")

    def keys(self, namespace: str) -> List[str]:
        with self._get_db_session() as session:
            rows = (
                session.query(PersistentFieldItem.key)
                .filter(PersistentFieldItem.namespace == namespace)
                .all()
            )
            return [key for (key,) in rows]

    def namespaces(self) -> List[str]:
        with self._get_db_session() as session:
            rows = session.query(PersistentFieldItem.namespace).distinct().all()
            return [namespace for (namespace,) in rows]

    def delete_namespace(self, namespace: str) -> None:
        with self._get_db_session() as session:
            count = (
                session.query(PersistentFieldItem)
                .filter(PersistentFieldItem.namespace == namespace)
                .delete()
            )
            logger.debug(f"Deleted {count} rows of namespace '{namespace}'.")

