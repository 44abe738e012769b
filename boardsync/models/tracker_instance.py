"""Redmine instance model"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from boardsync.models.base import Base


class TrackerInstance(Base):
    """Redmine instance connection settings"""

    __tablename__ = "tracker_instances"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    url = Column(String, nullable=False)
    # Either HTTP Basic credentials or a REST API key; all optional for public trackers.
    username = Column(String, nullable=True)
    password = Column(String, nullable=True)
    api_key = Column(String, nullable=True)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<TrackerInstance(name='{self.name}', url='{self.url}')>"
