"""Finder Core -- infrastructure under the finder layer.

Manifesto:
    Finders should not care how a row reaches them.  ``finder.core`` owns
    everything store-facing and ambient: adapters and SQL dialects,
    configuration, structured logging and the error hierarchy.  The
    domain layer in ``finder.model`` depends on it, never the reverse.

    - **Sync-only primitives:** one connection per repository scope
    - **Protocol-first:** Connection, Cursor and Dialect are protocols
    - **Import-guarded extras:** psycopg2 and mysql.connector loaded at connect()

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (FinderError, QueryArgumentError)
        protocols.py       DB-API Connection / Cursor protocols

    Layer 2 -- Database
        dialect.py         Placeholder, quoting, LIMIT and DDL per backend
        adapters/          Store adapters (SQLite, PostgreSQL, MySQL, SQLAlchemy, memory)

    Layer 3 -- Ambient
        settings.py        FinderSettings (pydantic-settings, FINDER_ prefix)
        logging.py         structlog configuration

Tags:
    finder-core, infrastructure, adapters, dialect, errors, settings, logging

Doc-Types:
    package-overview, architecture-map, module-index
"""
