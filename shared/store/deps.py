from shared.config.database import AsyncSessionLocal
from .document_store import DocumentStore, SqlDocumentStore

_store: DocumentStore | None = None


def get_store() -> DocumentStore:
    """FastAPI dependency returning the process-wide document store."""
    global _store
    if _store is None:
        _store = SqlDocumentStore(AsyncSessionLocal)
    return _store


def use_store(store: DocumentStore | None):
    """Swap the process-wide store (None restores the default on next use)."""
    global _store
    _store = store
