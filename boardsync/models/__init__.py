"""Database models"""

from boardsync.models.base import Base
from boardsync.models.board_account import BoardAccount
from boardsync.models.sync_cursor import SyncCursor
from boardsync.models.sync_log import SyncLog
from boardsync.models.sync_source import SyncSource
from boardsync.models.synced_card import SyncedCard
from boardsync.models.tracker_instance import TrackerInstance

__all__ = [
    "Base",
    "TrackerInstance",
    "BoardAccount",
    "SyncSource",
    "SyncCursor",
    "SyncedCard",
    "SyncLog",
]
