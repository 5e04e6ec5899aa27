"""SQLAlchemy-backed document store.

Documents are persisted as JSON rows in a single ``autopopulate_documents``
table. ``_id`` constraints are pushed down into SQL; the rest of a where dict
is evaluated in Python on the loaded bodies.
"""
from __future__ import annotations
import copy
import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import JSON, Column, Integer, String, UniqueConstraint, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from ..core.filters import matches
from .base import BaseStore

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for the store's tables."""
    pass


class DocumentRow(Base):
    __tablename__ = 'autopopulate_documents'
    __table_args__ = (
        UniqueConstraint('collection', 'doc_id', name='uq_autopopulate_documents_doc'),
        {'comment': 'Autopopulate documents (JSON bodies)'},
    )

    seq = Column(Integer, primary_key=True, autoincrement=True, comment='Insertion order')
    collection = Column(String(200), nullable=False, index=True, comment='Model collection name')
    doc_id = Column(String(64), nullable=False, comment='Document id (string form of _id)')
    body = Column(JSON, nullable=False, comment='Document body')


class SQLAlchemyStore(BaseStore):
    """Store documents through an ``AsyncSession``.

    Each write flushes and commits; create the session with
    ``expire_on_commit=False`` as usual for asyncio use.
    """

    name = 'sqlalchemy'
    metadata = Base.metadata

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_all(self) -> None:
        conn = await self.session.connection()
        await conn.run_sync(Base.metadata.create_all)
        await self.session.commit()

    async def _row(self, collection: str, doc_id: Any) -> Optional[DocumentRow]:
        stmt = select(DocumentRow).where(
            DocumentRow.collection == collection,
            DocumentRow.doc_id == str(doc_id),
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def insert(self, collection: str, data: Dict[str, Any]) -> None:
        self.session.add(DocumentRow(collection=collection, doc_id=str(data['_id']), body=copy.deepcopy(data)))
        await self.session.flush()
        await self.session.commit()

    async def replace(self, collection: str, doc_id: Any, data: Dict[str, Any]) -> None:
        row = await self._row(collection, doc_id)
        if row is None:
            logger.debug("replace of missing %s/%s inserts it", collection, doc_id)
            await self.insert(collection, data)
            return
        row.body = copy.deepcopy(data)
        await self.session.flush()
        await self.session.commit()

    async def delete(self, collection: str, doc_id: Any) -> None:
        row = await self._row(collection, doc_id)
        if row is not None:
            await self.session.delete(row)
            await self.session.flush()
            await self.session.commit()

    async def find(self, collection: str, where: Mapping[str, Any] | None = None, *, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        stmt = select(DocumentRow).where(DocumentRow.collection == collection).order_by(DocumentRow.seq)
        ids = self.id_constraint(where)
        if ids is not None:
            if not ids:
                return []
            stmt = stmt.where(DocumentRow.doc_id.in_([str(i) for i in ids]))
        rows = (await self.session.execute(stmt)).scalars().all()
        out: List[Dict[str, Any]] = []
        for row in rows:
            body = copy.deepcopy(row.body)
            if matches(body, where):
                out.append(body)
                if limit is not None and len(out) >= limit:
                    break
        return out
