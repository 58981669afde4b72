"""Engine output records."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from fleet_finance.models.contract import ContractStatus


@dataclass(frozen=True)
class SettlementEvent:
    registration: str
    settlement_date: date
    capital: Decimal  # Pooled share discharged at settlement


@dataclass(frozen=True)
class MonthEntry:
    month_index: int  # 0-based
    period_start: date  # Instalment date
    period_end: date  # Inclusive, day before the next instalment date
    days_in_period: int
    opening_balance: Decimal
    capital_due: Decimal
    interest_due: Decimal
    closing_balance: Decimal
    active_vehicle_count: int
    settlements: tuple[SettlementEvent, ...] = ()
    annual_rate: Decimal | None = None  # Rate at period start; None for FIXED

    @property
    def settled_capital(self) -> Decimal:
        return sum((s.capital for s in self.settlements), Decimal("0"))

    @property
    def total_due(self) -> Decimal:
        return self.capital_due + self.interest_due


@dataclass(frozen=True)
class SettlementQuote:
    contract_number: str
    registration: str
    settlement_date: date
    month_index: int
    capital_component: Decimal
    interest_component: Decimal
    total_figure: Decimal
    interest_saved_this_period: Decimal
    future_interest_saved: Decimal
    current_monthly_capital: Decimal
    new_monthly_capital: Decimal
    months_remaining: int
    days_before_settlement: int
    days_after_settlement: int
    valid_until: date

    @property
    def monthly_reduction(self) -> Decimal:
        return self.current_monthly_capital - self.new_monthly_capital

    @property
    def total_interest_saved(self) -> Decimal:
        return self.interest_saved_this_period + self.future_interest_saved


class TransactionType(Enum):
    OPENING = "OPENING"
    CAPITAL_PAYMENT = "CAPITAL_PAYMENT"
    SETTLEMENT = "SETTLEMENT"
    INTEREST_CHARGE = "INTEREST_CHARGE"

    @property
    def priority(self) -> int:
        """Tie-break order for transactions on the same date."""
        return _PRIORITY[self]


_PRIORITY = {
    TransactionType.OPENING: 0,
    TransactionType.CAPITAL_PAYMENT: 1,
    TransactionType.SETTLEMENT: 2,
    TransactionType.INTEREST_CHARGE: 3,
}


@dataclass(frozen=True)
class Transaction:
    date: date
    type: TransactionType
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal
    month_index: int | None = None
    registration: str | None = None


@dataclass(frozen=True)
class StatementSummary:
    total_debits: Decimal
    total_capital_paid: Decimal
    total_interest_charged: Decimal
    transaction_count: int  # Excludes the opening entry


@dataclass(frozen=True)
class ContractMetrics:
    contract_number: str
    as_of: date
    status: ContractStatus
    instalments_elapsed: int
    months_remaining: int
    progress_pct: Decimal
    per_vehicle_capital_rate: Decimal
    monthly_capital_instalment: Decimal
    current_monthly_capital: Decimal
    active_vehicles: int
    settled_vehicles: int
    capital_outstanding: Decimal
    interest_outstanding: Decimal
    next_instalment_date: date | None
    next_month_capital_due: Decimal
    next_month_interest_due: Decimal
    effective_annual_rate: Decimal | None
    end_date: date


@dataclass(frozen=True)
class PortfolioSummary:
    as_of: date
    active_contracts: int
    settled_contracts: int
    active_vehicles: int
    settled_vehicles: int
    capital_outstanding: Decimal
    interest_outstanding: Decimal
    next_month_capital_due: Decimal
    next_month_interest_due: Decimal

    @property
    def total_outstanding(self) -> Decimal:
        return self.capital_outstanding + self.interest_outstanding


@dataclass(frozen=True)
class MaturityEntry:
    contract_number: str
    end_date: date
    days_until_end: int
    active_vehicles: int
    total_vehicles: int
    current_monthly_capital: Decimal
    capital_outstanding: Decimal


@dataclass(frozen=True)
class MaturityReport:
    as_of: date
    within_one_month: list[MaturityEntry]
    within_two_months: list[MaturityEntry]
    within_three_months: list[MaturityEntry]


@dataclass(frozen=True)
class CalendarPayment:
    contract_number: str
    month_index: int
    capital_due: Decimal
    interest_due: Decimal
    active_vehicles: int


@dataclass(frozen=True)
class CalendarDay:
    day: date
    payments: list[CalendarPayment]

    @property
    def total_capital(self) -> Decimal:
        return sum((p.capital_due for p in self.payments), Decimal("0"))

    @property
    def total_interest(self) -> Decimal:
        return sum((p.interest_due for p in self.payments), Decimal("0"))
