from .document_store import (
    ORDERS,
    ORDER_ITEMS,
    ARCHIVED_ORDERS,
    ARCHIVE_METADATA,
    PRODUCTS,
    DocumentStore,
    Record,
    SqlDocumentStore,
)
from .exceptions import StoreError, StoreReadFailure, StoreWriteFailure, DocumentNotFound
from .deps import get_store, use_store

__all__ = [
    "ORDERS",
    "ORDER_ITEMS",
    "ARCHIVED_ORDERS",
    "ARCHIVE_METADATA",
    "PRODUCTS",
    "DocumentStore",
    "Record",
    "SqlDocumentStore",
    "StoreError",
    "StoreReadFailure",
    "StoreWriteFailure",
    "DocumentNotFound",
    "get_store",
    "use_store",
]
