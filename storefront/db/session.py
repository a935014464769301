"""Database engine and request-scoped sessions.

The engine is built once from ``StorefrontSettings.database``. Route handlers
get a session through the ``get_db`` dependency: it commits after the handler
returns and rolls back if the handler raises.
"""

import ssl
from typing import Any, AsyncGenerator, Dict, Tuple

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from storefront.config import DatabaseConfig, get_settings
from storefront.logging_config import get_logger

logger = get_logger(__name__)

# libpq sslmode values that ask for TLS
_TLS_MODES = frozenset({"require", "verify-ca", "verify-full"})


def asyncpg_connect_args(database_url: str) -> Tuple[URL, Dict[str, Any]]:
    """Split libpq's ``sslmode`` off a URL for asyncpg.

    asyncpg rejects ``sslmode`` in the query string, so it becomes an
    ``ssl`` connect argument. ``require`` encrypts without verifying the
    server certificate; ``verify-ca`` and ``verify-full`` verify it.

    Returns:
        Tuple of (url without sslmode, connect_args)
    """
    url = make_url(database_url)
    sslmode = url.query.get("sslmode")
    if isinstance(sslmode, tuple):
        sslmode = sslmode[-1]

    connect_args: Dict[str, Any] = {}
    if sslmode in _TLS_MODES:
        context = ssl.create_default_context()
        if sslmode == "require":
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = context

    return url.difference_update_query(["sslmode"]), connect_args


def build_engine(database: DatabaseConfig) -> AsyncEngine:
    url, connect_args = asyncpg_connect_args(database.url)
    return create_async_engine(
        url,
        echo=database.echo,
        pool_size=database.pool_size,
        max_overflow=database.max_overflow,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


engine = build_engine(get_settings().database)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session dependency."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_db() -> bool:
    """True when the database answers ``SELECT 1``."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database readiness check failed: {e}")
        return False
    return True


async def init_db() -> None:
    """Fail startup early when the database is unreachable."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database unreachable at startup: {e}")
        raise
    logger.info("Database connection established")


async def close_db() -> None:
    await engine.dispose()
    logger.info("Database connections closed")
