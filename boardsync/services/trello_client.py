"""Trello REST API client wrapper"""
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from boardsync.services.errors import MalformedDataError, TransportError
from boardsync.services.records import TargetRecord

logger = logging.getLogger(__name__)

TRELLO_API_URL = "https://api.trello.com/1"


class TrelloClient:
    """Wrapper for the Trello card operations the sync needs"""

    def __init__(
        self,
        app_key: str,
        user_token: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        base_url: str = TRELLO_API_URL,
    ):
        """Initialize Trello client"""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._auth = {"key": app_key, "token": user_token}
        # Board lookups, filled once per client; SyncService builds fresh clients each run.
        self._board_ids: Dict[str, str] = {}
        self._labels: Dict[str, Dict[str, str]] = {}

    @staticmethod
    def _should_retry(exc: Exception) -> bool:
        """Trello rate limits with 429; retry that and gateway errors."""
        if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
            return True
        rc = getattr(getattr(exc, "response", None), "status_code", None)
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

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        query = dict(params or {})
        query.update(self._auth)

        def _call():
            response = self.session.request(method, url, params=query, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        try:
            return self._with_retries(_call)
        except requests.exceptions.JSONDecodeError as e:
            raise MalformedDataError(f"Trello returned invalid JSON for {method} {path}: {e}") from e
        except requests.RequestException as e:
            rc = getattr(getattr(e, "response", None), "status_code", None)
            logger.error(f"Trello request {method} {path} failed: {e}")
            raise TransportError(f"Trello request {method} {path} failed: {e}", status_code=rc) from e

    @staticmethod
    def _to_record(card: Dict[str, Any]) -> TargetRecord:
        if not isinstance(card, dict) or not card.get("id"):
            raise MalformedDataError("Trello card without id")
        return TargetRecord(
            id=str(card["id"]),
            name=card.get("name") or "",
            description=card.get("desc") or "",
            list_id=card.get("idList"),
        )

    def list_records(self, list_id: str) -> List[TargetRecord]:
        """Get the open cards of a list, in board order"""
        cards = self._request("GET", f"/lists/{list_id}/cards", {"fields": "name,desc,idList"})
        return [self._to_record(card) for card in cards or []]

    def _board_id(self, list_id: str) -> str:
        if list_id not in self._board_ids:
            data = self._request("GET", f"/lists/{list_id}", {"fields": "idBoard"})
            if not isinstance(data, dict) or not data.get("idBoard"):
                raise MalformedDataError(f"Trello list {list_id} has no board")
            self._board_ids[list_id] = str(data["idBoard"])
        return self._board_ids[list_id]

    def _board_labels(self, board_id: str) -> Dict[str, str]:
        """color -> label id for a board, preferring unnamed labels"""
        if board_id not in self._labels:
            labels = self._request("GET", f"/boards/{board_id}/labels", {"fields": "name,color"})
            by_color: Dict[str, str] = {}
            for label in sorted(labels or [], key=lambda l: bool(l.get("name"))):
                color = label.get("color")
                if color and label.get("id"):
                    by_color.setdefault(color, str(label["id"]))
            self._labels[board_id] = by_color
        return self._labels[board_id]

    def label_for(self, list_id: str, color: str) -> str:
        """Id of the board label carrying `color`, created once if the board has none"""
        board_id = self._board_id(list_id)
        labels = self._board_labels(board_id)
        if color not in labels:
            label = self._request("POST", "/labels", {"idBoard": board_id, "color": color, "name": ""})
            if not isinstance(label, dict) or not label.get("id"):
                raise MalformedDataError(f"Trello returned no id for new {color} label")
            labels[color] = str(label["id"])
            logger.info(f"Created {color} label on board {board_id}")
        return labels[color]

    def create_record(
        self, list_id: str, name: str, description: str, color: Optional[str] = None
    ) -> TargetRecord:
        """Create a card, labelled with the board's label of `color` when one is given"""
        params = {"idList": list_id, "name": name, "desc": description, "pos": "bottom"}
        if color:
            params["idLabels"] = self.label_for(list_id, color)
        record = self._to_record(self._request("POST", "/cards", params))
        logger.info(f"Created card '{record.name}' in list {list_id}")
        return record

    def add_comment(self, record: TargetRecord, text: str) -> None:
        """Add a comment to a card"""
        self._request("POST", f"/cards/{record.id}/actions/comments", {"text": text})
        logger.info(f"Updated card {record.name}")
