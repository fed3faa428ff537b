"""
Database URL helpers

Pool sizing and timeout parameters travel inside the DSN itself so that master
and tenant URLs carry their own budgets. The engine factory strips them back
out and turns them into SQLAlchemy engine options.
"""

from typing import Any, Dict, Tuple

from loguru import logger
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

__all__ = [
    "CONNECTION_LIMIT_PARAM",
    "POOL_TIMEOUT_PARAM",
    "CONNECT_TIMEOUT_PARAM",
    "STATEMENT_TIMEOUT_PARAM",
    "augment_database_url",
    "engine_options_from_url",
    "create_engine_from_url",
]

CONNECTION_LIMIT_PARAM = "connection_limit"
POOL_TIMEOUT_PARAM = "pool_timeout"
CONNECT_TIMEOUT_PARAM = "connect_timeout"
STATEMENT_TIMEOUT_PARAM = "statement_timeout"

POOL_PARAMS = (
    CONNECTION_LIMIT_PARAM,
    POOL_TIMEOUT_PARAM,
    CONNECT_TIMEOUT_PARAM,
    STATEMENT_TIMEOUT_PARAM,
)

ASYNC_POSTGRES_DRIVER = "postgresql+asyncpg"

# libpq connection options translated into asyncpg arguments
SSLMODE_PARAM = "sslmode"
APPLICATION_NAME_PARAM = "application_name"
LIBPQ_PARAMS = (SSLMODE_PARAM, APPLICATION_NAME_PARAM)


def augment_database_url(
    database_url: str,
    connection_limit: int,
    pool_timeout: int = 10,
    connect_timeout: int = 30,
    statement_timeout_ms: int = 30000,
) -> str:
    """Add connection pool parameters to a database URL.

    Existing values for the four pool parameters are overwritten, so applying
    this twice with the same arguments gives the same string as applying it once.

    Args:
        database_url: Raw DSN
        connection_limit: Maximum connections the pool for this DSN may open
        pool_timeout: Seconds to wait for a pooled connection
        connect_timeout: Seconds allowed for establishing a connection
        statement_timeout_ms: Server-side statement timeout in milliseconds

    Returns:
        The augmented DSN, or the input unchanged when it is empty or cannot be parsed
    """
    if not database_url or not database_url.strip():
        logger.warning("Database URL is empty, returning as-is")
        return database_url

    try:
        url = make_url(database_url)
        url = url.update_query_dict({
            CONNECTION_LIMIT_PARAM: str(connection_limit),
            POOL_TIMEOUT_PARAM: str(pool_timeout),
            CONNECT_TIMEOUT_PARAM: str(connect_timeout),
            STATEMENT_TIMEOUT_PARAM: str(statement_timeout_ms),
        })
        return url.render_as_string(hide_password=False)
    except (ArgumentError, ValueError, TypeError) as e:
        logger.warning(f"Failed to parse database URL, using original: {e}")
        return database_url


def _async_drivername(url: URL) -> str:
    if url.drivername in ("postgres", "postgresql"):
        return ASYNC_POSTGRES_DRIVER
    return url.drivername


def engine_options_from_url(database_url: str) -> Tuple[URL, Dict[str, Any]]:
    """Split a (possibly augmented) DSN into a clean URL and engine options.

    Args:
        database_url: DSN, optionally carrying pool parameters in its query string

    Returns:
        Tuple of the URL without pool parameters and keyword arguments
        for create_async_engine
    """
    url = make_url(database_url)
    drivername = _async_drivername(url)
    query = dict(url.query)
    params = {name: query.pop(name) for name in POOL_PARAMS if name in query}

    # asyncpg.connect() rejects libpq-only keywords passed through the URL
    libpq_params = {}
    if drivername == ASYNC_POSTGRES_DRIVER:
        libpq_params = {name: query.pop(name) for name in LIBPQ_PARAMS if name in query}

    url = url.set(drivername=drivername, query=query)

    options: Dict[str, Any] = {"pool_pre_ping": True}
    if CONNECTION_LIMIT_PARAM in params:
        options["pool_size"] = int(params[CONNECTION_LIMIT_PARAM])
        options["max_overflow"] = 0
    if POOL_TIMEOUT_PARAM in params:
        options["pool_timeout"] = float(params[POOL_TIMEOUT_PARAM])

    if drivername == ASYNC_POSTGRES_DRIVER:
        connect_args: Dict[str, Any] = {}
        server_settings: Dict[str, str] = {}
        if CONNECT_TIMEOUT_PARAM in params:
            connect_args["timeout"] = float(params[CONNECT_TIMEOUT_PARAM])
        if STATEMENT_TIMEOUT_PARAM in params:
            server_settings["statement_timeout"] = str(params[STATEMENT_TIMEOUT_PARAM])
        if SSLMODE_PARAM in libpq_params:
            # asyncpg accepts libpq sslmode names for its ssl argument
            connect_args["ssl"] = str(libpq_params[SSLMODE_PARAM])
        if APPLICATION_NAME_PARAM in libpq_params:
            server_settings["application_name"] = str(libpq_params[APPLICATION_NAME_PARAM])
        if server_settings:
            connect_args["server_settings"] = server_settings
        if connect_args:
            options["connect_args"] = connect_args

    return url, options


def create_engine_from_url(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine honoring the pool parameters embedded in the DSN.

    Engine creation is lazy: no connection is opened until first use.
    """
    url, options = engine_options_from_url(database_url)
    return create_async_engine(url, echo=echo, **options)
