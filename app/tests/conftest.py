"""
Pytest configuration and fixtures for the outing expense service tests.
"""
import jwt
import pytest
from decimal import Decimal
from typing import Dict, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.database import Base, get_db
from app.main import app
from app.models.expenses import ShareStatus
from app.models.groups import Attendance, Event, EventStatus, Group, GroupMember
from app.models.profiles import Profile
from app.rabbitmq.producer import get_event_publisher
from app.services.auth.jwt_handler import ALGORITHM, SECRET_KEY
from app.services.ledger import LedgerShare

USER_A = "user-a"
USER_B = "user-b"
USER_C = "user-c"
USER_D = "user-d"
OUTSIDER = "user-x"


class FakePublisher:
    """Records published events instead of talking to RabbitMQ"""

    def __init__(self):
        self.expenses_created: List[Dict] = []
        self.status_changes: List[Dict] = []

    def publish_expense_created(self, expense_id, event_id, paid_by, debtor_ids):
        self.expenses_created.append({
            "expense_id": expense_id, "event_id": event_id, "paid_by": paid_by, "debtor_ids": debtor_ids
        })
        return True

    def publish_share_status_changed(self, share_ids, status, actor_id):
        if not share_ids:
            return False
        self.status_changes.append({"share_ids": share_ids, "status": status, "actor_id": actor_id})
        return True


def make_share(share_id, debtor, creditor, amount, status=ShareStatus.pending) -> LedgerShare:
    return LedgerShare(
        share_id=share_id,
        debtor_id=debtor,
        creditor_id=creditor,
        amount=Decimal(amount),
        status=status,
    )


@pytest.fixture
def ledger_share():
    """Factory for LedgerShare value objects."""
    return make_share


@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def client(db_session, publisher):
    """API client sharing the test session."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build request headers carrying a signed token for a user."""
    def _headers(user_id: str) -> Dict[str, str]:
        token = jwt.encode({"user_id": user_id}, SECRET_KEY, algorithm=ALGORITHM)
        return {"access-token": f"Bearer {token}"}
    return _headers


@pytest.fixture
def outing(db_session):
    """
    Group with members A, B, C, D and one event attended by A, B and C.

    D is a member who did not attend; OUTSIDER belongs to another group.
    """
    group = Group(id="group-1", name="Tennis", created_by=USER_A)
    other_group = Group(id="group-2", name="Book club", created_by=OUTSIDER)
    db_session.add_all([group, other_group])
    db_session.flush()

    db_session.add_all([
        GroupMember(group_id=group.id, user_id=user_id, is_admin=user_id == USER_A)
        for user_id in (USER_A, USER_B, USER_C, USER_D)
    ])
    db_session.add(GroupMember(group_id=other_group.id, user_id=OUTSIDER, is_admin=True))

    event = Event(id="event-1", group_id=group.id, title="Saturday doubles", status=EventStatus.completed)
    empty_event = Event(id="event-2", group_id=group.id, title="Sunday poll", status=EventStatus.poll)
    other_event = Event(id="event-3", group_id=other_group.id, title="Reading night", status=EventStatus.completed)
    db_session.add_all([event, empty_event, other_event])
    db_session.flush()

    db_session.add_all([
        Attendance(event_id=event.id, user_id=USER_C, attended=True),
        Attendance(event_id=event.id, user_id=USER_A, attended=True),
        Attendance(event_id=event.id, user_id=USER_B, attended=True),
        Attendance(event_id=event.id, user_id=USER_D, attended=False),
        Attendance(event_id=other_event.id, user_id=OUTSIDER, attended=True),
    ])
    db_session.add_all([
        Profile(id=user_id, email=f"{user_id}@example.com", full_name=name)
        for user_id, name in (
            (USER_A, "Alice"), (USER_B, "Bob"), (USER_C, "Carol"), (USER_D, "Dan"), (OUTSIDER, "Xena")
        )
    ])
    db_session.commit()

    return {"group_id": group.id, "event_id": event.id, "empty_event_id": empty_event.id,
            "other_group_id": other_group.id, "other_event_id": other_event.id}
