"""Sync cursor model"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from boardsync.models.base import Base


class SyncCursor(Base):
    """Persisted "last successful sync" timestamp"""

    __tablename__ = "sync_cursors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    # Stored as ISO-8601 text so that a garbled value can be told apart from a missing row.
    value = Column(String, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SyncCursor(name='{self.name}', value='{self.value}')>"
