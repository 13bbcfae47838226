from flask import current_app, g

from ..extensions import db
from .base import Repositories
from .memory import InMemoryRepositories
from .sql import SqlRepositories

MEMORY_EXTENSION_KEY = "jaguar_memory_repositories"


def get_repositories() -> Repositories:
    """
    Repositories for the current request/CLI context, per STORAGE_BACKEND.

    The memory backend is one store per application; the SQL backend wraps
    the request-scoped db.session.
    """
    if current_app.config["STORAGE_BACKEND"] == "memory":
        return current_app.extensions[MEMORY_EXTENSION_KEY]
    if "repositories" not in g:
        g.repositories = SqlRepositories(db.session)
    return g.repositories


__all__ = [
    "Repositories",
    "InMemoryRepositories",
    "SqlRepositories",
    "MEMORY_EXTENSION_KEY",
    "get_repositories",
]
