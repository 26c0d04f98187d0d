from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, JSON
from shared.config.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Document(Base):
    __tablename__ = "documents"

    # seq keeps insertion order stable for list_all/list_where
    seq = Column(Integer, primary_key=True, autoincrement=True)
    doc_id = Column(String(64), unique=True, index=True, nullable=False)
    collection = Column(String(64), index=True, nullable=False)
    data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
