"""Trello account model"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from boardsync.models.base import Base


class BoardAccount(Base):
    """Trello API credentials"""

    __tablename__ = "board_accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    app_key = Column(String, nullable=False)
    user_token = Column(String, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<BoardAccount(name='{self.name}')>"
