from __future__ import annotations
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from .core.utils import get_path, new_id, set_path, to_storage

if TYPE_CHECKING:  # pragma: no cover
    from .model import Model


class Document(MutableMapping):
    """A hydrated document bound to its model.

    Stored values are reachable by key (``doc['lead']``), by dotted path
    (``doc.get('lead.name')``) and by attribute (``doc.lead.name``).
    Populated references hold :class:`Document` instances; the raw ids they
    replaced are remembered and reported by :meth:`populated`.
    """

    __autopopulate_document__ = True

    def __init__(self, model: 'Model', data: Optional[Dict[str, Any]] = None, *, is_new: bool = True, owner: Optional['Document'] = None):
        object.__setattr__(self, '_model', model)
        object.__setattr__(self, '_data', dict(data or {}))
        object.__setattr__(self, '_populated', {})
        object.__setattr__(self, '_computed', {})
        object.__setattr__(self, '_is_new', is_new)
        object.__setattr__(self, '_owner', owner)
        if '_id' not in self._data and owner is None:
            self._data['_id'] = new_id()
        if model.discriminator_value is not None:
            self._data.setdefault(model.schema.discriminator_key, model.discriminator_value)
        for name, fdef in model.schema.fields.items():
            if fdef.is_array and name not in self._data:
                self._data[name] = []

    # ---- mapping protocol ----------------------------------------------------
    def __getitem__(self, key: str) -> Any:
        if key in self._data:
            return self._data[key]
        if key in self._computed:
            return self._computed[key]
        fdef = self._model.schema.computed_fields.get(key)
        getter = fdef.options.get('getter') if fdef is not None else None
        if callable(getter):
            return getter(self)
        raise KeyError(key)

    def __setitem__(self, key: str, value: Any) -> None:
        if key in self._model.schema.computed_fields:
            self._computed[key] = value
        else:
            self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            schema = self._model.schema
            if name in schema.fields or name in schema.computed_fields:
                return None
            raise AttributeError(f"{self._model.name!r} document has no field {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith('_'):
            object.__setattr__(self, name, value)
        else:
            self[name] = value

    def __repr__(self) -> str:
        return f"<{self._model.name} {self._data!r}>"

    # ---- accessors -----------------------------------------------------------
    @property
    def id(self) -> Any:
        return self._data.get('_id')

    @property
    def model(self) -> 'Model':
        return self._model

    @property
    def is_new(self) -> bool:
        return self._is_new

    def get(self, path: str, default: Any = None) -> Any:
        value = get_path(self, path)
        return default if value is None else value

    def set(self, path: str, value: Any) -> 'Document':
        set_path(self, path, value)
        return self

    def populated(self, path: str) -> Any:
        """Raw id(s) ``path`` held before it was populated, or None if it was not."""
        return self._populated.get(path)

    def mark_populated(self, path: str, ids: Any) -> None:
        self._populated[path] = ids

    def is_subdocument(self) -> bool:
        return self._owner is not None

    def owner_document(self) -> Optional['Document']:
        return self._owner

    def to_storage(self) -> Dict[str, Any]:
        return to_storage(self._data)

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested dict, with populated documents expanded."""
        return _plain(self._data)

    # ---- operation context ----------------------------------------------------
    def get_options(self) -> Dict[str, Any]:
        return {}

    def is_lightweight_mode(self) -> bool:
        return False

    def lightweight_options(self) -> Dict[str, Any]:
        return {}

    def already_resolved(self, path: str) -> Any:
        return self.populated(path)

    def current_value(self, path: str) -> Any:
        return self.get(path)

    async def resolve(self, directive: Dict[str, Any]) -> None:
        await self.populate(directive)

    # ---- persistence ----------------------------------------------------------
    async def populate(self, directives: Any) -> 'Document':
        """Populate this document in place with one directive, a path string or a list of them."""
        await self._model.populate([self], directives)
        return self

    async def save(self) -> 'Document':
        """Persist the document, running ``save`` hooks around the write.

        Sub-documents only run their hooks; their owner persists them.
        """
        hooks = self._model.schema.hooks
        await hooks.run_before('save', self)
        if self._owner is None:
            store = self._model.store
            if self._is_new:
                await store.insert(self._model.collection, self.to_storage())
            else:
                await store.replace(self._model.collection, self.id, self.to_storage())
            self._is_new = False
        await hooks.run_after('save', self, self)
        return self


def _plain(value: Any) -> Any:
    if isinstance(value, Document):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
