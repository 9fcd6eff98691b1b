"""Async engine creation for order storage."""

import os
from pathlib import Path
from typing import Any

from sqlalchemy.exc import ArgumentError, InvalidRequestError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from bikelease.config import StorageConfig
from bikelease.domain.shared.error import ConfigurationError


def _expand_sqlite_path(url: str) -> str:
    """Expand ~ in SQLite URLs and ensure parent directory exists."""
    if not url.startswith("sqlite") or "///" not in url:
        return url

    # Extract path from URL (sqlite+aiosqlite:///path or sqlite:///path)
    prefix_end = url.index("///") + 3
    prefix = url[:prefix_end]
    path = url[prefix_end:]
    if not path or path == ":memory:":
        return url

    # Expand ~ and make absolute
    expanded = os.path.expanduser(path)
    abs_path = os.path.abspath(expanded)

    # Ensure parent directory exists
    parent = Path(abs_path).parent
    parent.mkdir(parents=True, exist_ok=True)

    return f"{prefix}{abs_path}"


def create_store_engine(config: StorageConfig) -> AsyncEngine:
    """Create an async engine for one request.

    Raises:
        ConfigurationError: If the storage URL is missing or unusable. The URL
            itself is never included in the error.
    """
    if not config.url.strip():
        raise ConfigurationError("Storage connection is not configured")

    url = _expand_sqlite_path(config.url.strip())

    if url.startswith("sqlite"):
        engine_kwargs: dict[str, Any] = {
            "echo": config.echo,
            # Use StaticPool for SQLite to allow same connection across threads
            # This is needed for async SQLite with aiosqlite
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    else:
        engine_kwargs = {
            "echo": config.echo,
            "pool_pre_ping": True,
        }

    try:
        return create_async_engine(url, **engine_kwargs)
    except (ArgumentError, InvalidRequestError) as e:
        raise ConfigurationError(
            f"Storage connection is invalid ({type(e).__name__})"
        ) from e
