"""Sync source model"""

import json
from datetime import datetime
from typing import Dict

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from boardsync.models.base import Base


class SyncSource(Base):
    """A Redmine project feeding one Trello list"""

    __tablename__ = "sync_sources"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)

    # Redmine side. project_id is the numeric project id reported on each issue.
    tracker_instance_id = Column(Integer, ForeignKey("tracker_instances.id"), nullable=False)
    project_id = Column(String, nullable=False)

    # Trello side
    board_account_id = Column(Integer, ForeignKey("board_accounts.id"), nullable=False)
    target_list_id = Column(String, nullable=False)

    # JSON object: tracker name -> Trello label color, e.g. {"Bug": "red"}
    color_map = Column(Text, nullable=True)

    sync_enabled = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tracker_instance = relationship("TrackerInstance")
    board_account = relationship("BoardAccount")

    def get_color_map(self) -> Dict[str, str]:
        """Decode the stored tracker->color table (empty when unset)."""
        if not self.color_map:
            return {}
        data = json.loads(self.color_map)
        if not isinstance(data, dict):
            raise ValueError(f"color_map of source '{self.name}' must be a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def __repr__(self):
        return f"<SyncSource(name='{self.name}', list='{self.target_list_id}')>"
