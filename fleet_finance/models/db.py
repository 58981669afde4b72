"""SQLAlchemy ORM models for contract persistence.

A contract is stored as one row. Vehicles and rate history stay in
document shape as JSON columns; derived figures are cached alongside for
listing and search.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON, Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ContractRecord(Base):
    __tablename__ = "contracts"

    contract_number: Mapped[str] = mapped_column(String(50), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    # Terms
    total_capital: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    total_instalments: Mapped[int] = mapped_column(Integer)
    first_instalment_date: Mapped[date] = mapped_column(Date)
    interest_type: Mapped[str] = mapped_column(String(10))
    total_interest: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    base_rate: Mapped[Decimal] = mapped_column(Numeric(7, 4), default=0)
    margin: Mapped[Decimal] = mapped_column(Numeric(7, 4), default=0)
    original_vehicle_count: Mapped[int] = mapped_column(Integer)

    # [{"registration", "make", "model", "status", "settled_date"}]
    vehicles: Mapped[list] = mapped_column(JSON, default=list)
    # [{"effective_date", "old_base_rate", "new_base_rate", "old_effective_rate", "new_effective_rate"}]
    rate_history: Mapped[list] = mapped_column(JSON, default=list)

    # Cached derived figures, rewritten on every save
    status: Mapped[str] = mapped_column(String(10), index=True)
    active_vehicles_count: Mapped[int] = mapped_column(Integer)
    current_monthly_capital: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    per_vehicle_capital_rate: Mapped[Decimal] = mapped_column(Numeric(14, 2))
