import enum
from sqlalchemy import Column, String, Integer, DateTime, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from salary_ledger.core.database import Base


class UserRole(str, enum.Enum):
    EMPLOYEE = "employee"
    EMPLOYER = "employer"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    firstname = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=UserRole.EMPLOYEE
    )
    iban = Column(String(34))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    hourly_rates = relationship("HourlyRateRecord", back_populates="user")
    worked_hours = relationship("WorkedHoursRecord", back_populates="user")
    permanent_salaries = relationship("PermanentSalaryEntry", back_populates="user")
    history = relationship("HistoryEntry", back_populates="user")
