import logging
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, event
from sqlalchemy.orm import Session, relationship
from sqlalchemy.sql import func
from salary_ledger.core.database import Base
from salary_ledger.core.exceptions import ImmutableRecordError

logger = logging.getLogger(__name__)


class HourlyRateRecord(Base):
    __tablename__ = "hour_salary"

    id = Column(Integer, primary_key=True, autoincrement=True)
    userid = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rate = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="hourly_rates")


class WorkedHoursRecord(Base):
    """Unpaid hours submitted by an employee; consumed by settlement."""
    __tablename__ = "request"

    id = Column(Integer, primary_key=True, autoincrement=True)
    userid = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    hours = Column(Numeric(8, 2), nullable=False)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="worked_hours")


class PermanentSalaryEntry(Base):
    """Flat unpaid amount owed to an employee; consumed by settlement."""
    __tablename__ = "permanent_salary"

    id = Column(Integer, primary_key=True, autoincrement=True)
    userid = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="permanent_salaries")


class HistoryEntry(Base):
    """Append-only record of a completed settlement."""
    __tablename__ = "history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    userid = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    hours_paid = Column(Numeric(8, 2), nullable=False, default=0)
    hourly_rate = Column(Numeric(10, 2), nullable=False, default=0)
    permanent_paid = Column(Numeric(10, 2), nullable=False, default=0)
    total_paid = Column(Numeric(12, 2), nullable=False, default=0)
    paid_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="history")


@event.listens_for(HistoryEntry, "before_update")
def _block_history_update(mapper, connection, target):
    logger.error(f"Blocked update of history entry {target.id}")
    raise ImmutableRecordError("HistoryEntry", target.id, "UPDATE")


@event.listens_for(HistoryEntry, "before_delete")
def _block_history_delete(mapper, connection, target):
    logger.error(f"Blocked delete of history entry {target.id}")
    raise ImmutableRecordError("HistoryEntry", target.id, "DELETE")


@event.listens_for(Session, "do_orm_execute")
def _block_history_bulk_writes(orm_execute_state):
    # Bulk query.update()/query.delete() bypass the mapper events above
    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mapper = orm_execute_state.bind_mapper
    table = getattr(orm_execute_state.statement, "table", None)
    if table is HistoryEntry.__table__ or (mapper is not None and mapper.class_ is HistoryEntry):
        operation = "UPDATE" if orm_execute_state.is_update else "DELETE"
        logger.error(f"Blocked bulk {operation} on history")
        raise ImmutableRecordError("HistoryEntry", operation=operation)
