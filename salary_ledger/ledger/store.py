"""
Transactional storage for the unpaid-balance sources and the history ledger.

Settlement only talks to the ``LedgerStore`` interface so it can run against
the SQLAlchemy implementation in production and an in-memory store in tests.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterator, NamedTuple, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from salary_ledger.ledger.models import (
    HistoryEntry,
    HourlyRateRecord,
    PermanentSalaryEntry,
    WorkedHoursRecord,
)
from salary_ledger.users.models import User

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class SourceSnapshot:
    """Raw contents of a user's three unpaid sources.

    Row ids are only populated when the snapshot was taken under lock, and
    identify exactly which rows a settlement consumes.
    """
    user_id: int
    hours_total: Decimal = ZERO
    hours_count: int = 0
    permanent_total: Decimal = ZERO
    permanent_count: int = 0
    rates: Tuple[Decimal, ...] = ()
    worked_hours_ids: Tuple[int, ...] = ()
    permanent_salary_ids: Tuple[int, ...] = ()

    @property
    def has_records(self) -> bool:
        return bool(self.hours_count or self.permanent_count or self.rates)


class HistoryRecord(NamedTuple):
    id: int
    paid_at: datetime


class LedgerStore(ABC):
    """Storage capability used by the balance aggregator and settlement."""

    @abstractmethod
    def transaction(self):
        """Context manager wrapping one atomic unit of work.

        Commits on normal exit and rolls back if the block raises.
        """

    @abstractmethod
    def user_exists(self, user_id: int, lock: bool = False) -> bool:
        """Check that a user exists, optionally locking the user row."""

    @abstractmethod
    def read_aggregates(self, user_id: int, lock: bool = False) -> SourceSnapshot:
        """Read the unpaid sources of a user.

        With ``lock=True`` the unpaid rows are locked until the surrounding
        transaction ends and their ids are recorded in the snapshot.
        """

    @abstractmethod
    def delete_consumed(self, snapshot: SourceSnapshot) -> Tuple[int, int]:
        """Delete the worked-hours and permanent-salary rows of a locked snapshot.

        Returns the number of deleted (worked hours, permanent salary) rows.
        """

    @abstractmethod
    def append_history(
        self,
        user_id: int,
        hours_paid: Decimal,
        hourly_rate: Decimal,
        permanent_paid: Decimal,
        total_paid: Decimal,
        paid_at: datetime
    ) -> HistoryRecord:
        """Append one settlement record to the history ledger."""


class SqlAlchemyLedgerStore(LedgerStore):
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator["SqlAlchemyLedgerStore"]:
        try:
            yield self
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def user_exists(self, user_id: int, lock: bool = False) -> bool:
        query = self.db.query(User.id).filter(User.id == user_id)
        if lock:
            # Serializes settlements of the same employee
            query = query.with_for_update()
        return query.first() is not None

    def read_aggregates(self, user_id: int, lock: bool = False) -> SourceSnapshot:
        if lock:
            return self._read_locked(user_id)

        hours_total, hours_count = self.db.query(
            func.coalesce(func.sum(WorkedHoursRecord.hours), 0),
            func.count(WorkedHoursRecord.id)
        ).filter(WorkedHoursRecord.userid == user_id).one()

        permanent_total, permanent_count = self.db.query(
            func.coalesce(func.sum(PermanentSalaryEntry.amount), 0),
            func.count(PermanentSalaryEntry.id)
        ).filter(PermanentSalaryEntry.userid == user_id).one()

        return SourceSnapshot(
            user_id=user_id,
            hours_total=to_decimal(hours_total),
            hours_count=hours_count,
            permanent_total=to_decimal(permanent_total),
            permanent_count=permanent_count,
            rates=self._read_rates(user_id),
        )

    def _read_locked(self, user_id: int) -> SourceSnapshot:
        # FOR UPDATE cannot be combined with aggregates, so sum the locked rows here
        hours_rows = self.db.query(WorkedHoursRecord.id, WorkedHoursRecord.hours).filter(
            WorkedHoursRecord.userid == user_id
        ).order_by(WorkedHoursRecord.id).with_for_update().all()

        permanent_rows = self.db.query(PermanentSalaryEntry.id, PermanentSalaryEntry.amount).filter(
            PermanentSalaryEntry.userid == user_id
        ).order_by(PermanentSalaryEntry.id).with_for_update().all()

        return SourceSnapshot(
            user_id=user_id,
            hours_total=sum((to_decimal(row.hours) for row in hours_rows), ZERO),
            hours_count=len(hours_rows),
            permanent_total=sum((to_decimal(row.amount) for row in permanent_rows), ZERO),
            permanent_count=len(permanent_rows),
            rates=self._read_rates(user_id, lock=True),
            worked_hours_ids=tuple(row.id for row in hours_rows),
            permanent_salary_ids=tuple(row.id for row in permanent_rows),
        )

    def _read_rates(self, user_id: int, lock: bool = False) -> Tuple[Decimal, ...]:
        query = self.db.query(HourlyRateRecord.rate).filter(
            HourlyRateRecord.userid == user_id
        ).order_by(HourlyRateRecord.id)
        if lock:
            query = query.with_for_update()
        return tuple(to_decimal(row.rate) for row in query.all())

    def delete_consumed(self, snapshot: SourceSnapshot) -> Tuple[int, int]:
        hours_deleted = 0
        permanent_deleted = 0

        if snapshot.worked_hours_ids:
            hours_deleted = self.db.query(WorkedHoursRecord).filter(
                WorkedHoursRecord.id.in_(snapshot.worked_hours_ids)
            ).delete(synchronize_session=False)

        if snapshot.permanent_salary_ids:
            permanent_deleted = self.db.query(PermanentSalaryEntry).filter(
                PermanentSalaryEntry.id.in_(snapshot.permanent_salary_ids)
            ).delete(synchronize_session=False)

        logger.debug(
            f"Deleted {hours_deleted} worked hours and {permanent_deleted} "
            f"permanent salary rows for user {snapshot.user_id}"
        )
        return hours_deleted, permanent_deleted

    def append_history(
        self,
        user_id: int,
        hours_paid: Decimal,
        hourly_rate: Decimal,
        permanent_paid: Decimal,
        total_paid: Decimal,
        paid_at: datetime
    ) -> HistoryRecord:
        entry = HistoryEntry(
            userid=user_id,
            hours_paid=hours_paid,
            hourly_rate=hourly_rate,
            permanent_paid=permanent_paid,
            total_paid=total_paid,
            paid_at=paid_at,
        )
        self.db.add(entry)
        self.db.flush()
        return HistoryRecord(id=entry.id, paid_at=paid_at)
