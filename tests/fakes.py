"""Shared fakes for sync tests"""

from datetime import datetime
from itertools import count

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from boardsync.models import Base
from boardsync.services.errors import TransportError
from boardsync.services.records import RemoteComment, RemoteIssue, TargetRecord


def make_session():
    """Fresh in-memory database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


def issue(issue_id, updated_on, *, project_id="1", tracker="Bug", subject=None, description="", comments=()):
    return RemoteIssue(
        id=str(issue_id),
        subject=subject or f"Issue {issue_id}",
        description=description,
        tracker=tracker,
        status="New",
        priority="Normal",
        author="Reporter",
        project_id=str(project_id),
        created_on=updated_on,
        updated_on=updated_on,
        comments=tuple(comments),
    )


def comment(author, created_on, body):
    return RemoteComment(author=author, created_on=created_on, body=body)


class FakeSource:
    """In-memory Redmine"""

    def __init__(self, issues=(), comments=None, base_url="https://redmine.example"):
        self.base_url = base_url
        self.issues = list(issues)
        self.comments = dict(comments or {})
        self.list_calls = []
        self.comment_calls = []

    def list_issues(self, project_id):
        self.list_calls.append(project_id)
        return list(self.issues)

    def get_comments(self, issue_id):
        self.comment_calls.append(issue_id)
        result = self.comments.get(issue_id, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakeTarget:
    """In-memory Trello"""

    def __init__(self, cards=None):
        self.cards = {k: list(v) for k, v in (cards or {}).items()}
        self.list_calls = []
        self.created = []
        self.comments = []
        self.fail_create_for = set()
        self.fail_list = False
        self._ids = count(1)

    def list_records(self, list_id):
        self.list_calls.append(list_id)
        if self.fail_list:
            raise TransportError("board unreachable")
        return list(self.cards.get(list_id, []))

    def create_record(self, list_id, name, description, color=None):
        if any(token in name for token in self.fail_create_for):
            raise TransportError("create rejected", status_code=400)
        card = TargetRecord(id=f"card{next(self._ids)}", name=name, description=description, list_id=list_id)
        self.created.append((list_id, name, description, color))
        self.cards.setdefault(list_id, []).append(card)
        return card

    def add_comment(self, record, text):
        self.comments.append((record.id, text))


def at(*args):
    return datetime(*args)
