"""Conversion of fetched issues into staging records"""

import logging
from typing import Callable, Dict, List, Mapping, Optional

from boardsync.services.records import RemoteIssue, StagingRecord, TargetRecord

logger = logging.getLogger(__name__)


class CardListingCache:
    """Existing cards per destination list, listed at most once per run.

    One instance per Trello account per run; never reused across runs.
    """

    def __init__(self, target):
        self.target = target
        self._listings: Dict[str, List[TargetRecord]] = {}

    def get(self, destination: str) -> List[TargetRecord]:
        if destination not in self._listings:
            self._listings[destination] = list(self.target.list_records(destination))
            logger.debug(f"Listed {len(self._listings[destination])} cards in {destination}")
        return self._listings[destination]

    def lookup_for(self, destination: str) -> Callable[[], List[TargetRecord]]:
        return lambda: self.get(destination)


def enrich_description(base_url: str, issue_id: str, description: Optional[str]) -> str:
    """Prefix the description with a link back to the issue"""
    return f"{base_url.rstrip('/')}/issues/{issue_id} \n\n{description or ''}"


def build_staging_record(
    issue: RemoteIssue,
    *,
    base_url: str,
    color_map: Mapping[str, str],
    destination: str,
    lookup: Callable[[], List[TargetRecord]],
) -> StagingRecord:
    """Build the staging record of one issue; unmapped trackers get no color."""
    return StagingRecord(
        remote_id=issue.id,
        title=issue.subject,
        description=enrich_description(base_url, issue.id, issue.description),
        color=color_map.get(issue.tracker) if issue.tracker else None,
        comments=list(issue.comments),
        destination=destination,
        lookup=lookup,
    )
