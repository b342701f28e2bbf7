"""Store adapters -- one interface for every backing store.

Manifesto:
    Finders must resolve identically on SQLite (dev), PostgreSQL or MySQL
    (production), any SQLAlchemy-reachable database, and a plain in-memory
    store (tests).  The model layer only knows the adapter interface;
    backend-specific SQL rendering lives in each adapter's ``Dialect``.

    Each driver-backed adapter is **import-guarded**: the database driver
    is only required at ``connect()`` time, not at import time.  Install
    the corresponding extra::

        pip install finder-core[postgres]   # psycopg2-binary
        pip install finder-core[mysql]      # mysql-connector-python

Architecture::

    AbstractAdapter (base.py)        acquire / read / select / create / update / delete
        |-- MemoryAdapter            Python lists (structured queries only)
        |-- SQLAdapter (base.py)     DB-API connection + Dialect
              |-- SQLiteAdapter      stdlib sqlite3 (always available)
              |-- PostgreSQLAdapter  psycopg2 (optional)
              |-- MySQLAdapter       mysql.connector (optional)
              |-- SQLAlchemyAdapter  engine.raw_connection()

    AdapterRegistry (registry.py)    Singleton: DatabaseType -> adapter class
    adapter_from_url (registry.py)   Repository URL -> adapter
    DatabaseConfig (types.py)        Connection parameters

Guardrails:
    ❌ ``cursor.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``Model.find_by_sql(["SELECT * FROM t WHERE id = ?", user_input])``
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigError``

Tags:
    finder-core, database, adapters, multi-backend, import-guarded,
    registry-pattern, postgresql, sqlite, mysql, sqlalchemy

Doc-Types:
    package-overview, architecture-map, module-index
"""

from .base import AbstractAdapter, Row, SQLAdapter
from .engine import SQLAlchemyAdapter, create_finder_engine
from .memory import MemoryAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_from_url, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    "AbstractAdapter",
    "AdapterRegistry",
    "DatabaseConfig",
    "DatabaseType",
    "MemoryAdapter",
    "MySQLAdapter",
    "PostgreSQLAdapter",
    "Row",
    "SQLAdapter",
    "SQLAlchemyAdapter",
    "SQLiteAdapter",
    "adapter_from_url",
    "adapter_registry",
    "create_finder_engine",
    "get_adapter",
]
