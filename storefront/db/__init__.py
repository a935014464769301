"""Database layer: ORM models and async session management."""

from storefront.db.session import async_session_factory, close_db, engine, get_db, init_db

__all__ = ["async_session_factory", "close_db", "engine", "get_db", "init_db"]
