class StoreError(Exception):
    """Base class for document store failures."""

    def __init__(self, collection: str, message: str):
        self.collection = collection
        super().__init__(f"[{collection}] {message}")


class StoreReadFailure(StoreError):
    pass


class StoreWriteFailure(StoreError):
    pass


class DocumentNotFound(StoreWriteFailure):
    def __init__(self, collection: str, doc_id: str):
        self.doc_id = doc_id
        super().__init__(collection, f"document {doc_id} not found")
