"""Concurrent activation against a file-backed SQLite database"""
import threading

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.core.errors import NotFoundError
from app.models import Base
from app.models.profile import Profile
from app.models.user import User
from app.services.account_service import sync_account
from app.services.profile_service import create_profile, delete_profile, switch_active_profile

ROUNDS = 5


@pytest.fixture(scope="function")
def file_sessions(tmp_path):
    """Session factory on a database file shared by worker threads"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'profiles.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    # SQLite ignores FOR UPDATE, so transactions take the write lock at BEGIN instead
    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def account(file_sessions):
    """Account with three profiles, P1 active"""
    with file_sessions() as db:
        user = sync_account(uid="uid-race", email="race@example.com", display_name="Race", db=db)
        profile_ids = [create_profile(user.id, name, db=db).id for name in ("P1", "P2", "P3")]
        return user.id, profile_ids


def run_together(*operations):
    """Start every operation at the same moment; return what each one raised"""
    barrier = threading.Barrier(len(operations))
    raised = []

    def worker(operation):
        barrier.wait()
        try:
            operation()
        except Exception as e:
            raised.append(e)

    threads = [threading.Thread(target=worker, args=(op,)) for op in operations]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return raised


def switching(file_sessions, user_id, profile_id):
    def run():
        with file_sessions() as db:
            switch_active_profile(user_id, profile_id, db=db)
    return run


def deleting(file_sessions, user_id, profile_id):
    def run():
        with file_sessions() as db:
            delete_profile(user_id, profile_id, db)
    return run


def active_state(file_sessions, user_id):
    with file_sessions() as db:
        active = [p.id for p in db.query(Profile).filter(
            Profile.user_id == user_id, Profile.is_active.is_(True)
        ).all()]
        remaining = {p.id for p in db.query(Profile).filter(Profile.user_id == user_id).all()}
        return active, db.get(User, user_id).active_profile_id, remaining


@pytest.mark.critical
class TestConcurrentActivation:

    @pytest.mark.parametrize("round_no", range(ROUNDS))
    def test_parallel_switches_leave_one_active(self, file_sessions, account, round_no):
        user_id, (_, second, third) = account

        raised = run_together(
            switching(file_sessions, user_id, second),
            switching(file_sessions, user_id, third),
        )

        assert raised == []
        active, pointer, _ = active_state(file_sessions, user_id)
        assert len(active) == 1
        assert active[0] in (second, third)
        assert pointer == active[0]

    @pytest.mark.parametrize("round_no", range(ROUNDS))
    def test_delete_active_racing_switch(self, file_sessions, account, round_no):
        user_id, (first, _, third) = account

        raised = run_together(
            deleting(file_sessions, user_id, first),
            switching(file_sessions, user_id, third),
        )

        assert raised == []
        active, pointer, remaining = active_state(file_sessions, user_id)
        assert first not in remaining
        assert len(active) == 1
        assert pointer == active[0]

    @pytest.mark.parametrize("round_no", range(ROUNDS))
    def test_switch_to_profile_being_deleted(self, file_sessions, account, round_no):
        user_id, (_, second, _) = account

        raised = run_together(
            deleting(file_sessions, user_id, second),
            switching(file_sessions, user_id, second),
        )

        # The switch either lands first or finds the profile gone
        assert all(isinstance(e, NotFoundError) for e in raised)
        active, pointer, remaining = active_state(file_sessions, user_id)
        assert second not in remaining
        assert len(active) == 1
        assert active[0] in remaining
        assert pointer == active[0]
