from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

class BaseStore:
    """Storage backend for documents grouped by collection.

    Documents are plain JSON-friendly dicts carrying their id under ``_id``.
    ``where`` is a simple where dict (see :mod:`autopopulate.core.filters`).
    """

    name = 'base'

    async def insert(self, collection: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def replace(self, collection: str, doc_id: Any, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def delete(self, collection: str, doc_id: Any) -> None:
        raise NotImplementedError

    async def find(self, collection: str, where: Mapping[str, Any] | None = None, *, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def find_one(self, collection: str, where: Mapping[str, Any] | None = None) -> Optional[Dict[str, Any]]:
        rows = await self.find(collection, where, limit=1)
        return rows[0] if rows else None

    # Id constraint helper; backends with an id index can push it down
    @staticmethod
    def id_constraint(where: Mapping[str, Any] | None) -> Optional[List[Any]]:
        """Ids the where dict restricts ``_id`` to, or None when unrestricted."""
        cond = (where or {}).get('_id')
        if cond is None:
            return None
        if isinstance(cond, Mapping):
            if 'in' in cond:
                v = cond['in']
                return list(v) if isinstance(v, (list, tuple, set)) else [v]
            if 'eq' in cond:
                return [cond['eq']]
            return None
        return [cond]
