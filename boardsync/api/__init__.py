"""API routes"""

from boardsync.api import boards, sources, sync, trackers

__all__ = ["trackers", "boards", "sources", "sync"]
