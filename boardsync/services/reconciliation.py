"""Idempotent create-or-merge of staging records into Trello"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boardsync.models import SyncedCard
from boardsync.services.errors import ReconciliationError
from boardsync.services.records import StagingRecord, TargetRecord

logger = logging.getLogger(__name__)


def format_comment(author: str, body: str) -> str:
    return f"{author} wrote: \n\n{body}"


def find_matching_record(
    records: List[TargetRecord], remote_id: str, *, strict: bool = False
) -> Optional[TargetRecord]:
    """First card, in listing order, whose name carries "#<remote_id>".

    With strict matching the id must not be followed by another word character,
    so "#7" does not match "#70 ...".
    """
    token = f"#{remote_id}"
    if strict:
        pattern = re.compile(re.escape(token) + r"(?!\w)")
        return next((r for r in records if pattern.search(r.name or "")), None)
    return next((r for r in records if token in (r.name or "")), None)


class SyncedCardStore:
    """Explicit issue -> card mapping kept next to the name convention."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, destination: str, remote_id: str) -> Optional[str]:
        row = (
            self.db.query(SyncedCard)
            .filter(
                SyncedCard.target_list_id == destination,
                SyncedCard.remote_issue_id == remote_id,
            )
            .first()
        )
        return row.card_id if row else None

    def remember(self, destination: str, remote_id: str, card_id: str) -> None:
        row = (
            self.db.query(SyncedCard)
            .filter(
                SyncedCard.target_list_id == destination,
                SyncedCard.remote_issue_id == remote_id,
            )
            .first()
        )
        if row is not None and row.card_id == card_id:
            return
        if row is None:
            row = SyncedCard(target_list_id=destination, remote_issue_id=remote_id, card_id=card_id)
            self.db.add(row)
        else:
            row.card_id = card_id
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Mapping for issue #{remote_id} in {destination} already exists")


@dataclass
class ReconciliationOutcome:
    remote_id: str
    destination: str
    card_id: str
    created: bool
    comments_added: int


class ReconciliationEngine:
    """Apply staging records to Trello.

    Cursor filtering upstream is the only comment de-duplication: every comment
    a record carries is posted.
    """

    def __init__(self, mappings: Optional[SyncedCardStore] = None, strict_id_match: bool = False):
        self.mappings = mappings
        self.strict_id_match = strict_id_match
        # Cards created during this run; the per-destination listing is not refreshed.
        self._created: Dict[Tuple[str, str], TargetRecord] = {}

    def _find_existing(self, record: StagingRecord) -> Optional[TargetRecord]:
        created = self._created.get((record.destination, record.remote_id))
        if created is not None:
            return created

        existing = record.existing_records()
        if self.mappings is not None:
            card_id = self.mappings.get(record.destination, record.remote_id)
            if card_id:
                mapped = next((r for r in existing if r.id == card_id), None)
                if mapped is not None:
                    return mapped
        return find_matching_record(existing, record.remote_id, strict=self.strict_id_match)

    def apply(self, record: StagingRecord, target) -> ReconciliationOutcome:
        """Create the card if needed, then post the record's comments.

        Listing failures propagate (TransportError); create/comment failures raise
        ReconciliationError for this record only.
        """
        card = self._find_existing(record)
        created = False
        if card is None:
            try:
                card = target.create_record(
                    record.destination, record.card_name, record.description, record.color
                )
            except Exception as e:
                raise ReconciliationError(
                    f"Failed to create card for issue #{record.remote_id}: {e}",
                    record.remote_id,
                    record.destination,
                ) from e
            created = True
            self._created[(record.destination, record.remote_id)] = card

        if self.mappings is not None:
            self.mappings.remember(record.destination, record.remote_id, card.id)

        added = 0
        for comment in record.comments:
            try:
                target.add_comment(card, format_comment(comment.author, comment.body))
            except Exception as e:
                raise ReconciliationError(
                    f"Failed to comment on card '{card.name}' ({added} of {len(record.comments)} posted): {e}",
                    record.remote_id,
                    record.destination,
                ) from e
            added += 1

        return ReconciliationOutcome(
            remote_id=record.remote_id,
            destination=record.destination,
            card_id=card.id,
            created=created,
            comments_added=added,
        )
