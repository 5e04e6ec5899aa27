from __future__ import annotations
from typing import Any, Dict, Tuple

from .adapters import get_store
from .core.walker import DiscoveredPath, discover
from .schema import Schema


class PathCache:
    """Discovered autopopulate paths per schema.

    Keyed by :attr:`Schema.uid`. An entry is computed the first time a schema
    is asked for (normally when the plugin is installed) and never changes
    afterwards, so concurrent operations share it without locking.
    """

    def __init__(self):
        self._paths: Dict[str, Tuple[DiscoveredPath, ...]] = {}

    def get(self, schema: Schema) -> Tuple[DiscoveredPath, ...]:
        paths = self._paths.get(schema.uid)
        if paths is None:
            paths = tuple(discover(schema))
            self._paths[schema.uid] = paths
        return paths

    def __contains__(self, schema: Schema) -> bool:
        return schema.uid in self._paths

    def __len__(self) -> int:
        return len(self._paths)


# Process-wide cache used unless a plugin installation passes its own
path_cache = PathCache()


class ModelRegistry:
    """Models by name plus the store they read from and write to.

    Example:
        registry = ModelRegistry(db_session)   # or ModelRegistry() for memory
        Person = registry.model('Person', person_schema)
        Band = registry.model('Band', band_schema)
    """

    def __init__(self, store: Any = None):
        self.store = get_store(store)
        self.models: Dict[str, Any] = {}

    def model(self, name: str, schema: Schema, *, collection: str | None = None):
        from .model import Model  # local import to avoid cycles
        if name in self.models:
            raise ValueError(f"Model {name!r} is already registered")
        return self.register(Model(self, name, schema, collection=collection))

    def register(self, model: Any):
        self.models[model.name] = model
        return model

    def get(self, name: str):
        try:
            return self.models[name]
        except KeyError:
            raise KeyError(f"Model {name!r} is not registered") from None

    def __contains__(self, name: str) -> bool:
        return name in self.models

    def __getitem__(self, name: str):
        return self.get(name)
