from __future__ import annotations
from typing import Any

from .base import BaseStore
from .memory import MemoryStore


def get_store(target: Any = None) -> BaseStore:
    """Return a store for ``target``: a store as-is, an ``AsyncSession`` wrapped, None in memory."""
    if target is None:
        return MemoryStore()
    if isinstance(target, BaseStore):
        return target
    from sqlalchemy.ext.asyncio import AsyncSession
    if isinstance(target, AsyncSession):
        from .sql import SQLAlchemyStore
        return SQLAlchemyStore(target)
    raise TypeError(f"Unsupported store target: {target!r}")


__all__ = [
    'BaseStore',
    'MemoryStore',
    'get_store',
]
