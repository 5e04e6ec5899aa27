"""autopopulate public API and lightweight lazy exports.

This __init__ avoids importing the document layer at import time so that the
core (walker, planner, directives) can be used on its own.

Exposes:
- Field factories: field, ref, array, embedded, computed
- Schema, ModelRegistry, Model, Document, Query
- autopopulate_plugin and the path cache (PathCache, path_cache)
- Core algorithms: discover, plan, resolve_directive
- Stores: MemoryStore, get_store (SQLAlchemyStore from autopopulate.adapters.sql)
"""
from __future__ import annotations

from .core.fields import field, ref, array, embedded, computed
from .core.walker import DiscoveredPath, discover
from .core.planner import plan
from .core.directives import resolve_directive

_LAZY = {
    'Schema': 'schema',
    'ModelRegistry': 'registry',
    'PathCache': 'registry',
    'path_cache': 'registry',
    'Model': 'model',
    'Document': 'document',
    'Query': 'query',
    'autopopulate_plugin': 'plugin',
    'MemoryStore': 'adapters',
    'get_store': 'adapters',
}


def __getattr__(name: str):  # PEP 562 lazy exports
    import importlib as _importlib
    module = _LAZY.get(name)
    if module is None:
        raise AttributeError(name)
    return getattr(_importlib.import_module(f"{__name__}.{module}"), name)


__all__ = [
    'field', 'ref', 'array', 'embedded', 'computed',
    'DiscoveredPath', 'discover', 'plan', 'resolve_directive',
    'Schema', 'ModelRegistry', 'PathCache', 'path_cache',
    'Model', 'Document', 'Query', 'autopopulate_plugin',
    'MemoryStore', 'get_store',
]
