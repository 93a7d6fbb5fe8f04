"""
Shared test fixtures.

Provides:
- In-memory SQLite session (fresh schema per test)
- Users (regular, second owner, admin)
- Trackable items by intensity and recurrence
- Date helpers and a completion factory
"""
import pytest
from datetime import date, datetime, time, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from habit_ladder.database import Base
from habit_ladder.models import (
    User, TrackableItem, CompletionEvent, ChecklistTask
)
from habit_ladder.constants import ROLE_ADMIN
from habit_ladder.repositories.item_repository import UserRepository


def at(day: date) -> datetime:
    """
    Timestamp to complete something on a day.

    Past days use noon; today uses the current moment so the completion is
    never in the future.
    """
    if day >= date.today():
        return datetime.now()
    return datetime.combine(day, time(12, 0))


def add_completion(db, user, item, day: date, points: int = 10, streak: int = 1) -> CompletionEvent:
    """Insert a completion row directly, bypassing the engine"""
    event = CompletionEvent(
        item_id=item.id,
        user_id=user.id,
        completed_at=datetime.combine(day, time(9, 0)),
        points_awarded=points,
        streak_at_completion=streak
    )
    db.add(event)
    db.commit()
    return event


def make_item(db, user, intensity="medium", is_recurring=True, title="Item", is_active=True):
    """Create an item with its intensity-derived point value"""
    item = TrackableItem(
        user_id=user.id,
        title=title,
        is_recurring=is_recurring,
        is_active=is_active
    )
    item.apply_intensity(intensity)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db_session):
    return UserRepository.create(db_session, User(email="climber@example.com", name="Climber"))


@pytest.fixture
def other_user(db_session):
    return UserRepository.create(db_session, User(email="someone@example.com", name="Someone Else"))


@pytest.fixture
def admin_user(db_session):
    return UserRepository.create(db_session, User(email="ops@example.com", name="Operator", role=ROLE_ADMIN))


@pytest.fixture
def hard_habit(db_session, user):
    return make_item(db_session, user, intensity="hard", title="Run 5k")


@pytest.fixture
def medium_habit(db_session, user):
    return make_item(db_session, user, intensity="medium", title="Read 20 pages")


@pytest.fixture
def easy_goal(db_session, user):
    return make_item(db_session, user, intensity="easy", is_recurring=False, title="Book dentist")


@pytest.fixture
def repetitive_tasks(db_session, user, hard_habit):
    """Two completed repetitive tasks, one completed one-off, one open repetitive"""
    stale = datetime.now() - timedelta(days=3)
    tasks = [
        ChecklistTask(user_id=user.id, item_id=hard_habit.id, title="Stretch",
                      is_completed=True, is_repetitive=True, last_shown=stale),
        ChecklistTask(user_id=user.id, item_id=hard_habit.id, title="Hydrate",
                      is_completed=True, is_repetitive=True, last_shown=stale),
        ChecklistTask(user_id=user.id, item_id=hard_habit.id, title="Buy shoes",
                      is_completed=True, is_repetitive=False, last_shown=stale),
        ChecklistTask(user_id=user.id, item_id=hard_habit.id, title="Warm up",
                      is_completed=False, is_repetitive=True, last_shown=stale),
    ]
    db_session.add_all(tasks)
    db_session.commit()
    return tasks


@pytest.fixture
def today():
    return date.today()


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)
