"""Selection of the Redmine issues and comments changed since the last run"""

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from boardsync.services.errors import MalformedDataError
from boardsync.services.records import RemoteComment, RemoteIssue, normalize_utc_naive

logger = logging.getLogger(__name__)


@dataclass
class ChangeSet:
    """Issues to synchronize, each carrying only its new comments"""

    issues: List[RemoteIssue] = field(default_factory=list)
    # (remote issue id, reason) for issues whose comment history could not be read
    failures: List[Tuple[str, str]] = field(default_factory=list)


def select_comments(
    comments: List[RemoteComment], cursor: datetime, until: Optional[datetime] = None
) -> List[RemoteComment]:
    """Keep comments with a body written in [cursor, until), in source order.

    Comments at or after `until` belong to the next run, whose cursor starts there.
    """
    return [
        c
        for c in comments
        if c.body and c.created_on >= cursor and (until is None or c.created_on < until)
    ]


class ChangeSetFetcher:
    """Fetch the change set of one Redmine project.

    `source` must provide list_issues(project_id) and get_comments(issue_id).
    """

    def __init__(self, source, project_id: str):
        self.source = source
        self.project_id = str(project_id)

    def _in_scope(self, issue: RemoteIssue) -> bool:
        # The listing also returns issues of sub-projects.
        return issue.project_id == self.project_id

    def fetch_since(self, cursor: datetime, until: Optional[datetime] = None) -> ChangeSet:
        cursor = normalize_utc_naive(cursor)
        until = normalize_utc_naive(until)
        listed = self.source.list_issues(self.project_id)
        selected = [i for i in listed if i.updated_on >= cursor and self._in_scope(i)]
        logger.info(
            f"Project {self.project_id}: {len(selected)} of {len(listed)} issues changed since {cursor.isoformat()}"
        )

        change_set = ChangeSet()
        for issue in selected:
            try:
                comments = select_comments(self.source.get_comments(issue.id), cursor, until)
            except MalformedDataError as e:
                logger.error(f"Skipping issue #{issue.id}: {e}")
                change_set.failures.append((issue.id, str(e)))
                continue
            change_set.issues.append(dataclasses.replace(issue, comments=tuple(comments)))
        return change_set
