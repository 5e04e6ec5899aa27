from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from .core.utils import apply_projection, apply_update, ensure_list

if TYPE_CHECKING:  # pragma: no cover
    from .model import Model

READ_OPERATIONS = (
    'find',
    'find_one',
    'find_one_and_update',
    'find_one_and_delete',
    'find_one_and_replace',
)


def normalize_populate(spec: Any) -> List[Dict[str, Any]]:
    """Normalize populate input into a list of directive dicts.

    Accepts ``'a b'`` (space separated paths), a directive dict, or a list of
    either.
    """
    out: List[Dict[str, Any]] = []
    for item in ensure_list(spec):
        if isinstance(item, str):
            out.extend({'path': p} for p in item.split())
        elif isinstance(item, Mapping):
            if not item.get('path'):
                raise ValueError(f"Populate directive without a path: {item!r}")
            out.append(dict(item))
        else:
            raise TypeError(f"Unsupported populate spec: {item!r}")
    return out


class Query:
    """A pending read against a model.

    Built by :class:`~autopopulate.model.Model` read methods; awaiting it (or
    calling :meth:`exec`) runs the ``pre`` hooks for its operation, reads the
    store, populates the queued directives and runs the ``post`` hooks.

    Example:
        band = await Band.find_one({'name': "Guns N' Roses"}).populate('lead')
        raw = await Band.find_one({}, None, {'autopopulate': False})
    """

    def __init__(
        self,
        model: 'Model',
        op: str = 'find',
        where: Mapping[str, Any] | None = None,
        *,
        projection: Any = None,
        update: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
    ):
        if op not in READ_OPERATIONS:
            raise ValueError(f"Unknown read operation: {op}")
        self.model = model
        self.op = op
        self.where: Dict[str, Any] = dict(where or {})
        self.projection = projection
        self.update = dict(update or {})
        self.options: Dict[str, Any] = dict(options or {})
        self._lean: Union[bool, Dict[str, Any]] = False
        self._populate: List[Dict[str, Any]] = []

    def __repr__(self) -> str:
        return f"<Query {self.model.name}.{self.op} where={self.where!r}>"

    # ---- chainable modifiers -------------------------------------------------
    def populate(self, spec: Any) -> 'Query':
        self._populate.extend(normalize_populate(spec))
        return self

    def select(self, projection: Any) -> 'Query':
        self.projection = projection
        return self

    def lean(self, value: Union[bool, Mapping[str, Any]] = True) -> 'Query':
        """Return plain dicts instead of documents.

        ``lean({'autopopulate': True})`` keeps autopopulation enabled.
        """
        self._lean = dict(value) if isinstance(value, Mapping) else bool(value)
        return self

    def set_options(self, **options: Any) -> 'Query':
        self.options.update(options)
        return self

    # ---- operation context -----------------------------------------------------
    def get_options(self) -> Dict[str, Any]:
        return self.options

    def is_lightweight_mode(self) -> bool:
        return bool(self._lean)

    def lightweight_options(self) -> Dict[str, Any]:
        return dict(self._lean) if isinstance(self._lean, dict) else {}

    # A read has no result before it runs: nothing is resolved yet and
    # there is no current value. Only the save path filter consults these.
    def already_resolved(self, path: str) -> Any:
        return None

    def current_value(self, path: str) -> Any:
        return None

    def is_queued(self, path: str) -> bool:
        """Whether a populate directive for ``path`` is queued on this query."""
        return any(d.get('path') == path for d in self._populate)

    def resolve(self, directive: Dict[str, Any]) -> None:
        """Queue ``directive``; it is applied to the result when the query runs."""
        self.populate(directive)

    @property
    def directives(self) -> List[Dict[str, Any]]:
        return list(self._populate)

    # ---- execution ---------------------------------------------------------------
    async def exec(self) -> Any:
        hooks = self.model.schema.hooks
        await hooks.run_before(self.op, self)
        result = await self._execute()
        if result is not None and self._populate:
            docs = result if isinstance(result, list) else [result]
            for directive in self._populate:
                await self.model.populate(docs, directive, lean=self._lean)
        await hooks.run_after(self.op, self, result)
        return result

    def __await__(self):
        return self.exec().__await__()

    async def _execute(self) -> Any:
        model = self.model
        store = model.store
        where = {**model.base_where(), **self.where}
        if self.op == 'find':
            rows = await store.find(model.collection, where, limit=self.options.get('limit'))
            return [self._hydrate(r) for r in rows]

        row = await store.find_one(model.collection, where)
        if row is None:
            return None
        if self.op == 'find_one_and_update':
            updated = apply_update(row, self.update)
            updated['_id'] = row['_id']
            await store.replace(model.collection, row['_id'], updated)
            if self.options.get('new'):
                row = updated
        elif self.op == 'find_one_and_replace':
            replacement = dict(self.update)
            replacement['_id'] = row['_id']
            key = model.schema.discriminator_key
            if key in row:
                replacement.setdefault(key, row[key])
            await store.replace(model.collection, row['_id'], replacement)
            if self.options.get('new'):
                row = replacement
        elif self.op == 'find_one_and_delete':
            await store.delete(model.collection, row['_id'])
        return self._hydrate(row)

    def _hydrate(self, row: Dict[str, Any]) -> Any:
        if self.projection is not None:
            row = apply_projection(row, self.projection, always=('_id', self.model.schema.discriminator_key))
        if self._lean:
            return row
        return self.model.hydrate(row)
