"""Services"""

from boardsync.services.redmine_client import RedmineClient
from boardsync.services.sync_service import SyncService
from boardsync.services.trello_client import TrelloClient

__all__ = ["RedmineClient", "TrelloClient", "SyncService"]
