"""Redmine REST API client wrapper"""
import logging
import time
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from boardsync.services.errors import MalformedDataError, TransportError
from boardsync.services.records import RemoteComment, RemoteIssue, parse_timestamp

logger = logging.getLogger(__name__)


class RedmineClient:
    """Read-only access to the issues and journals of a Redmine instance"""

    page_size = 100

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Redmine client"""
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if username and password:
            self.session.auth = (username, password)
        if api_key:
            self.session.headers["X-Redmine-API-Key"] = api_key

    @staticmethod
    def _should_retry(exc: Exception) -> bool:
        """Retry predicate for transient Redmine failures."""
        if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
            return True
        response = getattr(exc, "response", None)
        rc = getattr(response, "status_code", None)
        return rc in (429, 500, 502, 503, 504)

    def _with_retries(self, fn, *, max_attempts: int = 3, base_delay_s: float = 0.5):
        """Run callable with small exponential backoff on transient errors."""
        attempt = 1
        while True:
            try:
                return fn()
            except requests.RequestException as e:
                if attempt >= max_attempts or not self._should_retry(e):
                    raise
                time.sleep(base_delay_s * (2 ** (attempt - 1)))
                attempt += 1

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"

        def _call():
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        try:
            data = self._with_retries(_call)
        except requests.exceptions.JSONDecodeError as e:
            raise MalformedDataError(f"Redmine returned invalid JSON for {path}: {e}") from e
        except requests.RequestException as e:
            rc = getattr(getattr(e, "response", None), "status_code", None)
            logger.error(f"Redmine request {path} failed: {e}")
            raise TransportError(f"Redmine request {path} failed: {e}", status_code=rc) from e
        if not isinstance(data, dict):
            raise MalformedDataError(f"Unexpected Redmine response for {path}")
        return data

    def list_issues(self, project_id: str) -> List[RemoteIssue]:
        """Get all issues (open and closed) listed under a project.

        Redmine includes issues of sub-projects in this listing; callers filter on
        RemoteIssue.project_id. Pages are ordered by id, which edits made while
        paging cannot reorder; an issue repeated across pages is kept once.
        """
        issues: List[RemoteIssue] = []
        seen = set()
        offset = 0
        while True:
            params = {
                "project_id": project_id,
                "status_id": "*",
                "sort": "id",
                "limit": self.page_size,
                "offset": offset,
            }
            data = self._get_json("/issues.json", params=params)
            page = data.get("issues") or []
            for item in page:
                parsed = self._parse_issue(item)
                if parsed.id not in seen:
                    seen.add(parsed.id)
                    issues.append(parsed)

            total = int(data.get("total_count") or 0)
            offset += len(page)
            if not page or offset >= total:
                break
        logger.info(f"Fetched {len(issues)} issues for Redmine project {project_id}")
        return issues

    def get_comments(self, issue_id: str) -> List[RemoteComment]:
        """Get the journal entries of an issue, oldest first"""
        data = self._get_json(f"/issues/{issue_id}.json", params={"include": "journals"})
        issue = data.get("issue")
        if not isinstance(issue, dict):
            raise MalformedDataError(f"Issue {issue_id} payload has no 'issue' object", remote_id=str(issue_id))
        return [self._parse_journal(issue_id, j) for j in issue.get("journals") or []]

    ###########################################################################
    # Payload parsing
    ###########################################################################

    @staticmethod
    def _name_of(value: Any) -> Optional[str]:
        if isinstance(value, dict):
            return value.get("name")
        return None

    @staticmethod
    def _optional_date(value: Optional[str]) -> Optional[date]:
        if not value:
            return None
        return date.fromisoformat(value)

    @classmethod
    def _parse_issue(cls, item: Dict[str, Any]) -> RemoteIssue:
        issue_id = item.get("id")
        if issue_id is None:
            raise MalformedDataError("Redmine issue without id in listing")
        issue_id = str(issue_id)

        project = item.get("project")
        if not isinstance(project, dict) or project.get("id") is None:
            raise MalformedDataError(f"Issue {issue_id} has no project", remote_id=issue_id)
        updated_on = item.get("updated_on")
        if not updated_on:
            raise MalformedDataError(f"Issue {issue_id} has no updated_on", remote_id=issue_id)

        try:
            created_on = item.get("created_on")
            estimated = item.get("estimated_hours")
            done = item.get("done_ratio")
            return RemoteIssue(
                id=issue_id,
                subject=item.get("subject") or "",
                description=item.get("description"),
                tracker=cls._name_of(item.get("tracker")),
                status=cls._name_of(item.get("status")),
                priority=cls._name_of(item.get("priority")),
                author=cls._name_of(item.get("author")),
                project_id=str(project["id"]),
                created_on=parse_timestamp(created_on) if created_on else None,
                updated_on=parse_timestamp(updated_on),
                start_date=cls._optional_date(item.get("start_date")),
                due_date=cls._optional_date(item.get("due_date")),
                estimated_hours=float(estimated) if estimated is not None else None,
                done_ratio=int(done) if done is not None else None,
            )
        except (TypeError, ValueError) as e:
            raise MalformedDataError(f"Issue {issue_id} has an unreadable field: {e}", remote_id=issue_id) from e

    @classmethod
    def _parse_journal(cls, issue_id: str, journal: Dict[str, Any]) -> RemoteComment:
        created_on = journal.get("created_on")
        if not created_on:
            raise MalformedDataError(
                f"Journal {journal.get('id')} of issue {issue_id} has no created_on",
                remote_id=str(issue_id),
            )
        try:
            created = parse_timestamp(created_on)
        except ValueError as e:
            raise MalformedDataError(
                f"Journal {journal.get('id')} of issue {issue_id} has a bad created_on", remote_id=str(issue_id)
            ) from e
        return RemoteComment(
            author=cls._name_of(journal.get("user")) or "unknown",
            created_on=created,
            body=journal.get("notes") or "",
        )
