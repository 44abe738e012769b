"""Value types exchanged between the sync components"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Tuple


def utcnow() -> datetime:
    """UTC 'now' as tz-naive datetime for storage + comparisons."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_utc_naive(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to UTC tz-naive (safe for comparisons)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (Redmine style, trailing Z allowed) into UTC tz-naive."""
    dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return normalize_utc_naive(dt)


@dataclass(frozen=True)
class RemoteComment:
    """One journal entry of a Redmine issue"""

    author: str
    created_on: datetime
    body: str


@dataclass(frozen=True)
class RemoteIssue:
    """Read-only snapshot of a Redmine issue"""

    id: str
    subject: str
    description: Optional[str]
    tracker: Optional[str]
    status: Optional[str]
    priority: Optional[str]
    author: Optional[str]
    project_id: str
    created_on: Optional[datetime]
    updated_on: datetime
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    estimated_hours: Optional[float] = None
    done_ratio: Optional[int] = None
    comments: Tuple[RemoteComment, ...] = ()


@dataclass(frozen=True)
class TargetRecord:
    """A Trello card as seen by the sync"""

    id: str
    name: str
    description: str = ""
    list_id: Optional[str] = None


@dataclass
class StagingRecord:
    """A Redmine issue normalized and ready to be reconciled against one Trello list."""

    remote_id: str
    title: str
    description: str
    color: Optional[str]
    comments: List[RemoteComment]
    destination: str
    lookup: Callable[[], List[TargetRecord]] = field(repr=False, compare=False)

    @property
    def card_name(self) -> str:
        return f"#{self.remote_id} {self.title}"

    @property
    def id_token(self) -> str:
        return f"#{self.remote_id}"

    def existing_records(self) -> List[TargetRecord]:
        """Cards currently in the destination list (memoized per run)."""
        return self.lookup()
