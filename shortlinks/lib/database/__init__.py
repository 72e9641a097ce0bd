"""Storage layer for the short link registry."""

import logging
from typing import Optional

from .base import LinkStoreBase
from .memory import MemoryLinkStore
from .models import ClickEvent, LinkRecord

__all__ = [
    "LinkStoreBase",
    "MemoryLinkStore",
    "ClickEvent",
    "LinkRecord",
    "create_store",
]


def create_store(config, logger: Optional[logging.Logger] = None) -> LinkStoreBase:
    """Build the store backend selected by ``config.storage_backend``.

    Backends with third-party drivers are imported lazily so the memory
    backend works without a database or Redis server around.

    Raises:
        ValueError: If the backend is unknown or its URL is missing
    """
    backend = config.storage_backend.lower()

    if backend == "memory":
        return MemoryLinkStore(logger=logger)

    if backend == "postgres":
        if not config.database_url:
            raise ValueError("DATABASE_URL is required for the postgres backend")
        from .postgres import PostgresLinkStore

        return PostgresLinkStore(
            db_config=config.database_url,
            create_tables=config.database_create_tables,
            logger=logger,
        )

    if backend == "redis":
        if not config.redis_url:
            raise ValueError("REDIS_URL is required for the redis backend")
        from .redis_store import RedisLinkStore

        return RedisLinkStore(redis_url=config.redis_url, logger=logger)

    raise ValueError(f"Unknown storage backend: {config.storage_backend}")
