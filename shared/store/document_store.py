"""
Document store over a single SQL table.

Records go in and come out as plain dicts keyed by collection name. Every
call opens its own session and commits on its own: callers get no atomicity
across calls and must order their writes so that a crash between two calls
never loses data.
"""
import uuid
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .exceptions import DocumentNotFound, StoreReadFailure, StoreWriteFailure
from .models import Document

ORDERS = "orders"
ORDER_ITEMS = "order_items"
ARCHIVED_ORDERS = "archived_orders"
ARCHIVE_METADATA = "archive_metadata"
PRODUCTS = "products"

Record = dict[str, Any]


class DocumentStore(Protocol):
    async def list_all(self, collection: str) -> list[Record]: ...

    async def list_where(self, collection: str, field: str, value: Any) -> list[Record]: ...

    async def get(self, collection: str, doc_id: str) -> Record | None: ...

    async def insert(self, collection: str, record: Record) -> str: ...

    async def update(self, collection: str, doc_id: str, fields: Record) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...


def _to_record(doc: Document) -> Record:
    return {"id": doc.doc_id, **doc.data}


class SqlDocumentStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_all(self, collection: str) -> list[Record]:
        stmt = select(Document).where(Document.collection == collection).order_by(Document.seq)
        return await self._read(collection, stmt)

    async def list_where(self, collection: str, field: str, value: Any) -> list[Record]:
        """Equality filter on a top-level field, compared as a string."""
        stmt = (
            select(Document)
            .where(Document.collection == collection)
            .where(Document.data[field].as_string() == str(value))
            .order_by(Document.seq)
        )
        return await self._read(collection, stmt)

    async def get(self, collection: str, doc_id: str) -> Record | None:
        stmt = (
            select(Document)
            .where(Document.collection == collection)
            .where(Document.doc_id == doc_id)
        )
        found = await self._read(collection, stmt)
        return found[0] if found else None

    async def insert(self, collection: str, record: Record) -> str:
        doc_id = uuid.uuid4().hex
        data = {k: v for k, v in record.items() if k != "id"}
        try:
            async with self._session_factory() as db:
                db.add(Document(doc_id=doc_id, collection=collection, data=data))
                await db.commit()
        except SQLAlchemyError as e:
            raise StoreWriteFailure(collection, f"insert failed: {e}") from e
        return doc_id

    async def update(self, collection: str, doc_id: str, fields: Record) -> None:
        try:
            async with self._session_factory() as db:
                doc = await self._find(db, collection, doc_id)
                # JSON columns are not mutation-tracked; assign a fresh dict
                doc.data = {**doc.data, **{k: v for k, v in fields.items() if k != "id"}}
                await db.commit()
        except SQLAlchemyError as e:
            raise StoreWriteFailure(collection, f"update of {doc_id} failed: {e}") from e

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            async with self._session_factory() as db:
                doc = await self._find(db, collection, doc_id)
                await db.delete(doc)
                await db.commit()
        except SQLAlchemyError as e:
            raise StoreWriteFailure(collection, f"delete of {doc_id} failed: {e}") from e

    async def _read(self, collection: str, stmt) -> list[Record]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                return [_to_record(doc) for doc in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreReadFailure(collection, f"read failed: {e}") from e

    @staticmethod
    async def _find(db: AsyncSession, collection: str, doc_id: str) -> Document:
        result = await db.execute(
            select(Document)
            .where(Document.collection == collection)
            .where(Document.doc_id == doc_id)
        )
        doc = result.scalars().first()
        if doc is None:
            raise DocumentNotFound(collection, doc_id)
        return doc
