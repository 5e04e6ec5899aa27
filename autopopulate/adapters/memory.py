from __future__ import annotations
import copy
from typing import Any, Dict, List, Mapping, Optional

from ..core.filters import matches
from .base import BaseStore

class MemoryStore(BaseStore):
    """Process-local store; handy for unit tests and examples."""

    name = 'memory'

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _coll(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    async def insert(self, collection: str, data: Dict[str, Any]) -> None:
        key = str(data['_id'])
        coll = self._coll(collection)
        if key in coll:
            raise ValueError(f"Duplicate id {key!r} in collection {collection!r}")
        coll[key] = copy.deepcopy(data)

    async def replace(self, collection: str, doc_id: Any, data: Dict[str, Any]) -> None:
        self._coll(collection)[str(doc_id)] = copy.deepcopy(data)

    async def delete(self, collection: str, doc_id: Any) -> None:
        self._coll(collection).pop(str(doc_id), None)

    async def find(self, collection: str, where: Mapping[str, Any] | None = None, *, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        coll = self._coll(collection)
        ids = self.id_constraint(where)
        if ids is not None:
            rows = [coll[str(i)] for i in ids if str(i) in coll]
            # keep insertion order regardless of the order ids were asked for
            order = {k: n for n, k in enumerate(coll)}
            rows.sort(key=lambda r: order[str(r['_id'])])
        else:
            rows = list(coll.values())
        out: List[Dict[str, Any]] = []
        for row in rows:
            if matches(row, where):
                out.append(copy.deepcopy(row))
                if limit is not None and len(out) >= limit:
                    break
        return out
