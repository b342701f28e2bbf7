"""
Finder - query resolution and identity-mapped materialization for Python models.

Declare a model, point a repository at a store, and find::

    import finder
    from finder import Property, Resource, Serial, String

    class GreenSmoothie(Resource):
        id = Property(Serial)
        name = Property(String)

    finder.setup("default", "sqlite:///smoothies.db")
    finder.auto_migrate(GreenSmoothie)

    GreenSmoothie.create(name="Banana")
    GreenSmoothie.find_by_name("Banana")
    GreenSmoothie.find_by_sql(["SELECT id, name FROM green_smoothies WHERE id = ?", 1])

    with finder.repository("default") as repo:
        assert GreenSmoothie.find(1) is GreenSmoothie.find(1)
"""

__version__ = "0.1.0"

from finder.core.errors import (
    ConfigError,
    FinderError,
    PersistenceError,
    QueryArgumentError,
    RepositoryNotFoundError,
    UnknownFinderError,
    UnknownPropertyError,
    UnsupportedQueryError,
)
from finder.core.logging import configure_logging, get_logger
from finder.core.settings import FinderSettings, get_settings
from finder.model import *  # noqa: F401,F403
from finder.model import __all__ as _model_all

__all__ = [
    *_model_all,
    "ConfigError",
    "FinderError",
    "FinderSettings",
    "PersistenceError",
    "QueryArgumentError",
    "RepositoryNotFoundError",
    "UnknownFinderError",
    "UnknownPropertyError",
    "UnsupportedQueryError",
    "configure_logging",
    "get_logger",
    "get_settings",
]
