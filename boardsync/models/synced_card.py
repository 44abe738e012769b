"""Synced card model"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from boardsync.models.base import Base


def utcnow() -> datetime:
    """UTC 'now' as tz-naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SyncedCard(Base):
    """Mapping of a Redmine issue to the Trello card created for it"""

    __tablename__ = "synced_cards"
    __table_args__ = (
        UniqueConstraint("target_list_id", "remote_issue_id", name="uq_synced_cards_list_issue"),
    )

    id = Column(Integer, primary_key=True, index=True)
    target_list_id = Column(String, nullable=False, index=True)
    remote_issue_id = Column(String, nullable=False)
    card_id = Column(String, nullable=False)
    last_synced_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<SyncedCard(issue={self.remote_issue_id}, card={self.card_id})>"
