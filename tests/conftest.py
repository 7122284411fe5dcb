"""
Pytest fixtures for the salary ledger test suite.

Provides:
- An in-memory SQLite database per test, shared with the FastAPI app
- User and unpaid-row factories
- Bearer token headers for authenticated requests
- InMemoryLedgerStore, a thread-safe LedgerStore with fault injection
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

import itertools
import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salary_ledger.core.database import Base, get_db
from salary_ledger.core.security import create_access_token
from salary_ledger.ledger.models import HourlyRateRecord, PermanentSalaryEntry, WorkedHoursRecord
from salary_ledger.ledger.store import HistoryRecord, LedgerStore, SourceSnapshot, ZERO
from salary_ledger.main import app
from salary_ledger.users.models import User, UserRole


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def make_user(db_session):
    counter = itertools.count(1)

    def _make_user(role: UserRole = UserRole.EMPLOYEE, firstname: str = None, lastname: str = "Tester"):
        user = User(
            firstname=firstname or f"user{next(counter)}",
            lastname=lastname,
            role=role,
            iban="DE89370400440532013000",
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def employee(make_user):
    return make_user(UserRole.EMPLOYEE, firstname="Erin")


@pytest.fixture
def employer(make_user):
    return make_user(UserRole.EMPLOYER, firstname="Morgan")


@pytest.fixture
def add_unpaid(db_session):
    """Insert unpaid source rows for a user and commit."""

    def _add_unpaid(user_id: int, hours=(), rates=(), permanent=()):
        for value in hours:
            db_session.add(WorkedHoursRecord(userid=user_id, hours=Decimal(str(value))))
        for value in rates:
            db_session.add(HourlyRateRecord(userid=user_id, rate=Decimal(str(value))))
        for value in permanent:
            db_session.add(PermanentSalaryEntry(userid=user_id, amount=Decimal(str(value))))
        db_session.commit()

    return _add_unpaid


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


# =============================================================================
# In-memory ledger store
# =============================================================================


class _Transaction:
    def __init__(self):
        self.locks = []
        self.deleted_hours = set()
        self.deleted_permanent = set()
        self.history = []


class InMemoryLedgerStore(LedgerStore):
    """LedgerStore held in dictionaries.

    Writes are staged per transaction and applied on commit. ``user_exists``
    with ``lock=True`` holds a per-user lock until the transaction ends.
    ``fail_on`` injects a storage error into ``"delete"`` or ``"append"``.
    """

    def __init__(self, read_delay: float = 0.0):
        self.users = set()
        self.worked_hours = {}
        self.permanent = {}
        self.rates = {}
        self.history = []
        self.fail_on = None
        self.read_delay = read_delay
        self._ids = itertools.count(1)
        self._data_lock = threading.RLock()
        self._user_locks = defaultdict(threading.Lock)
        self._local = threading.local()

    # -- seeding helpers ------------------------------------------------------

    def add_user(self, user_id: int):
        self.users.add(user_id)

    def add_hours(self, user_id: int, hours):
        with self._data_lock:
            self.worked_hours[next(self._ids)] = (user_id, Decimal(str(hours)))

    def add_rate(self, user_id: int, rate):
        with self._data_lock:
            self.rates[next(self._ids)] = (user_id, Decimal(str(rate)))

    def add_permanent(self, user_id: int, amount):
        with self._data_lock:
            self.permanent[next(self._ids)] = (user_id, Decimal(str(amount)))

    def unpaid_row_count(self, user_id: int) -> int:
        rows = list(self.worked_hours.values()) + list(self.permanent.values())
        return sum(1 for owner, _ in rows if owner == user_id)

    # -- LedgerStore ----------------------------------------------------------

    @contextmanager
    def transaction(self):
        tx = _Transaction()
        self._local.tx = tx
        try:
            yield self
            with self._data_lock:
                for row_id in tx.deleted_hours:
                    self.worked_hours.pop(row_id, None)
                for row_id in tx.deleted_permanent:
                    self.permanent.pop(row_id, None)
                self.history.extend(tx.history)
        finally:
            self._local.tx = None
            for lock in reversed(tx.locks):
                lock.release()

    def _tx(self) -> _Transaction:
        tx = getattr(self._local, "tx", None)
        if tx is None:
            return _Transaction()
        return tx

    def user_exists(self, user_id: int, lock: bool = False) -> bool:
        if lock:
            with self._data_lock:
                user_lock = self._user_locks[user_id]
            user_lock.acquire()
            self._tx().locks.append(user_lock)
        return user_id in self.users

    def read_aggregates(self, user_id: int, lock: bool = False) -> SourceSnapshot:
        tx = self._tx()
        with self._data_lock:
            hours = [(row_id, value) for row_id, (owner, value) in sorted(self.worked_hours.items())
                     if owner == user_id and row_id not in tx.deleted_hours]
            permanent = [(row_id, value) for row_id, (owner, value) in sorted(self.permanent.items())
                         if owner == user_id and row_id not in tx.deleted_permanent]
            rates = tuple(value for _, (owner, value) in sorted(self.rates.items()) if owner == user_id)

        if self.read_delay:
            time.sleep(self.read_delay)

        return SourceSnapshot(
            user_id=user_id,
            hours_total=sum((value for _, value in hours), ZERO),
            hours_count=len(hours),
            permanent_total=sum((value for _, value in permanent), ZERO),
            permanent_count=len(permanent),
            rates=rates,
            worked_hours_ids=tuple(row_id for row_id, _ in hours) if lock else (),
            permanent_salary_ids=tuple(row_id for row_id, _ in permanent) if lock else (),
        )

    def delete_consumed(self, snapshot: SourceSnapshot):
        tx = self._tx()
        tx.deleted_hours.update(snapshot.worked_hours_ids)
        tx.deleted_permanent.update(snapshot.permanent_salary_ids)
        if self.fail_on == "delete":
            raise OperationalError("DELETE FROM request", {}, Exception("disk I/O error"))
        return len(snapshot.worked_hours_ids), len(snapshot.permanent_salary_ids)

    def append_history(self, user_id, hours_paid, hourly_rate, permanent_paid, total_paid, paid_at):
        if self.fail_on == "append":
            raise OperationalError("INSERT INTO history", {}, Exception("could not extend file"))
        record = HistoryRecord(id=next(self._ids), paid_at=paid_at)
        self._tx().history.append({
            "id": record.id,
            "userid": user_id,
            "hours_paid": hours_paid,
            "hourly_rate": hourly_rate,
            "permanent_paid": permanent_paid,
            "total_paid": total_paid,
            "paid_at": paid_at,
        })
        return record


@pytest.fixture
def memory_store():
    return InMemoryLedgerStore()
