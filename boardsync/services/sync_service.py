"""Issue-to-card synchronization runs"""

import logging
import threading
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from boardsync.config import settings
from boardsync.models import BoardAccount, SyncLog, SyncSource, TrackerInstance
from boardsync.models.sync_log import SyncStatus
from boardsync.services.batch import BatchCoordinator, RunReport
from boardsync.services.change_set import ChangeSetFetcher
from boardsync.services.cursor_store import get_cursor_store
from boardsync.services.errors import (
    CursorError,
    MalformedDataError,
    SyncInProgressError,
    TransportError,
)
from boardsync.services.reconciliation import ReconciliationEngine, SyncedCardStore
from boardsync.services.records import StagingRecord, utcnow
from boardsync.services.redmine_client import RedmineClient
from boardsync.services.staging import CardListingCache, build_staging_record
from boardsync.services.trello_client import TrelloClient

logger = logging.getLogger(__name__)

# One run at a time per process: the cursor is a single global value.
_run_lock = threading.Lock()


class SyncService:
    """Run one incremental Redmine -> Trello synchronization"""

    def __init__(self, db: Session, cursor_store=None):
        self.db = db
        self.cursor_store = cursor_store if cursor_store is not None else get_cursor_store(db)
        self.source_clients: Dict[int, Any] = {}
        self.target_clients: Dict[int, Any] = {}

    def _get_source_client(self, instance: TrackerInstance):
        """Get or create the Redmine client for an instance"""
        if instance.id not in self.source_clients:
            self.source_clients[instance.id] = RedmineClient(
                instance.url,
                username=instance.username,
                password=instance.password,
                api_key=instance.api_key,
                timeout=settings.http_timeout_seconds,
            )
        return self.source_clients[instance.id]

    def _get_target_client(self, account: BoardAccount):
        """Get or create the Trello client for an account"""
        if account.id not in self.target_clients:
            self.target_clients[account.id] = TrelloClient(
                account.app_key, account.user_token, timeout=settings.http_timeout_seconds
            )
        return self.target_clients[account.id]

    @staticmethod
    def _issue_base_url(source_client) -> str:
        return getattr(source_client, "base_url", "")

    def _log_sync(
        self,
        status: SyncStatus,
        message: str = "",
        sync_source_id: Optional[int] = None,
        remote_issue_id: Optional[str] = None,
        card_id: Optional[str] = None,
    ):
        """Log sync operation"""
        log = SyncLog(
            sync_source_id=sync_source_id,
            status=status,
            message=message,
            remote_issue_id=remote_issue_id,
            card_id=card_id,
        )
        self.db.add(log)
        self.db.commit()

    def _stage_source(
        self,
        source: SyncSource,
        cursor,
        until,
        listing_caches: Dict[int, CardListingCache],
        stats: Dict[str, int],
    ) -> List[StagingRecord]:
        """Fetch one source's change set and turn it into staging records"""
        source_client = self._get_source_client(source.tracker_instance)
        target_client = self._get_target_client(source.board_account)

        change_set = ChangeSetFetcher(source_client, source.project_id).fetch_since(cursor, until)
        stats["fetched"] += len(change_set.issues)
        for remote_id, reason in change_set.failures:
            stats["failed"] += 1
            self._log_sync(
                SyncStatus.FAILED,
                f"Malformed issue data: {reason}",
                sync_source_id=source.id,
                remote_issue_id=remote_id,
            )

        cache = listing_caches.get(source.board_account_id)
        if cache is None:
            cache = listing_caches[source.board_account_id] = CardListingCache(target_client)
        lookup = cache.lookup_for(source.target_list_id)
        color_map = source.get_color_map()
        base_url = self._issue_base_url(source_client)

        return [
            build_staging_record(
                issue,
                base_url=base_url,
                color_map=color_map,
                destination=source.target_list_id,
                lookup=lookup,
            )
            for issue in change_set.issues
        ]

    def _apply_report(self, report: RunReport, stats: Dict[str, int]):
        stats["created"] += report.created
        stats["updated"] += report.updated
        stats["comments"] += report.comments
        stats["failed"] += len(report.failed)
        for failure in report.failed:
            self._log_sync(
                SyncStatus.FAILED,
                failure.message,
                remote_issue_id=failure.remote_id,
            )

    def run(self) -> Dict[str, Any]:
        """Synchronize every enabled source.

        Returns {"status": "bootstrap"|"success"|"partial"|"failed", ...}.
        Raises SyncInProgressError if another run is active in this process.
        """
        if not _run_lock.acquire(blocking=False):
            raise SyncInProgressError("A sync run is already in progress")
        try:
            return self._run_locked()
        finally:
            _run_lock.release()

    def _run_locked(self) -> Dict[str, Any]:
        stats = {"fetched": 0, "created": 0, "updated": 0, "comments": 0, "failed": 0}

        try:
            cursor = self.cursor_store.read()
            if cursor is None:
                baseline = self.cursor_store.bootstrap()
                message = f"First run: cursor initialized at {baseline.isoformat()}, nothing transferred"
                logger.info(message)
                self._log_sync(SyncStatus.BOOTSTRAP, message)
                return {"status": "bootstrap", "cursor": baseline.isoformat(), "stats": stats}
        except CursorError as e:
            logger.error(f"Sync aborted, cursor unavailable: {e}")
            self._log_sync(SyncStatus.FAILED, f"Cursor error: {e}")
            return {"status": "failed", "error": str(e), "stats": stats}

        # Changes made while this run is in flight belong to the next one: the
        # comment window is [cursor, run_started_at) and the cursor advances to its end.
        run_started_at = utcnow()
        sources = (
            self.db.query(SyncSource).filter(SyncSource.sync_enabled == True).all()  # noqa: E712
        )
        logger.info(f"Starting sync of {len(sources)} source(s) since {cursor.isoformat()}")

        coordinator = BatchCoordinator(
            ReconciliationEngine(
                mappings=SyncedCardStore(self.db),
                strict_id_match=settings.strict_id_match,
            )
        )
        listing_caches: Dict[int, CardListingCache] = {}

        try:
            for source in sources:
                records = self._stage_source(source, cursor, run_started_at, listing_caches, stats)
                coordinator.collect(records, self._get_target_client(source.board_account))
            report = coordinator.flush()
        except (TransportError, MalformedDataError, ValueError) as e:
            logger.error(f"Sync failed, cursor kept at {cursor.isoformat()}: {e}")
            self._log_sync(SyncStatus.FAILED, f"Sync failed: {e}")
            return {"status": "failed", "error": str(e), "stats": stats}

        self._apply_report(report, stats)
        status = SyncStatus.SUCCESS if stats["failed"] == 0 else SyncStatus.PARTIAL

        result: Dict[str, Any] = {"status": status.value, "stats": stats}
        if status == SyncStatus.SUCCESS or settings.advance_cursor_on_partial_failure:
            try:
                result["cursor"] = self.cursor_store.advance(run_started_at).isoformat()
            except CursorError as e:
                logger.error(f"Sync applied but cursor could not be advanced: {e}")
                self._log_sync(SyncStatus.FAILED, f"Cursor error: {e}")
                return {"status": "failed", "error": str(e), "stats": stats}
        else:
            logger.warning(
                f"{stats['failed']} issue(s) failed; cursor kept at {cursor.isoformat()} so they are retried"
            )
            result["cursor"] = cursor.isoformat()

        logger.info(f"Sync completed: {stats}")
        self._log_sync(status, f"Sync {status.value}: {stats}")
        return result
