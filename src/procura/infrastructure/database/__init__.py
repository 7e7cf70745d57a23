"""Database infrastructure module."""

from procura.infrastructure.database.session import (
    get_async_db,
    get_async_engine,
    get_session_factory,
)

__all__ = [
    "get_async_engine",
    "get_session_factory",
    "get_async_db",
]
