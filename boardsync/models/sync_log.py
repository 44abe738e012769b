"""Sync log model"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Enum
from datetime import datetime
import enum
from boardsync.models.base import Base


class SyncStatus(str, enum.Enum):
    """Sync status enumeration"""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED = "skipped"
    BOOTSTRAP = "bootstrap"


class SyncLog(Base):
    """Log of sync runs and per-issue outcomes"""

    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Null for run-level entries
    sync_source_id = Column(Integer, ForeignKey("sync_sources.id"), nullable=True)

    remote_issue_id = Column(String, nullable=True)
    card_id = Column(String, nullable=True)

    status = Column(Enum(SyncStatus), nullable=False)
    message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<SyncLog(status={self.status}, issue={self.remote_issue_id})>"
