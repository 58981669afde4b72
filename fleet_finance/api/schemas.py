"""Pydantic schemas for API request/response models."""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, Field, field_validator

from fleet_finance.models.contract import (
    Contract,
    ContractStatus,
    InterestType,
    Vehicle,
    VehicleStatus,
    normalize_registration,
)

TWO_PLACES = Decimal("0.01")


# ---- Request schemas ----

class VehicleIn(BaseModel):
    registration: str = Field(..., min_length=1)
    make: str = ""
    model: str = ""
    status: VehicleStatus = VehicleStatus.ACTIVE
    settled_date: date | None = None

    @field_validator("registration")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_registration(v)

    def to_vehicle(self) -> Vehicle:
        return Vehicle(
            registration=self.registration,
            make=self.make,
            model=self.model,
            status=self.status,
            settled_date=self.settled_date,
        )


class ContractTerms(BaseModel):
    total_capital: Decimal = Field(..., ge=0)
    total_instalments: int = Field(..., ge=1)
    first_instalment_date: date
    interest_type: InterestType
    total_interest: Decimal = Decimal("0")
    base_rate: Decimal = Decimal("0")
    margin: Decimal = Decimal("0")
    original_vehicle_count: int | None = Field(None, description="Defaults to the number of vehicles")
    vehicles: list[VehicleIn] = Field(default_factory=list)

    def to_contract(self, contract_number: str) -> Contract:
        return Contract(
            contract_number=contract_number.strip().upper(),
            total_capital=self.total_capital,
            total_instalments=self.total_instalments,
            first_instalment_date=self.first_instalment_date,
            interest_type=self.interest_type,
            original_vehicle_count=self.original_vehicle_count or len(self.vehicles),
            total_interest=self.total_interest if self.interest_type == InterestType.FIXED else Decimal("0"),
            base_rate=self.base_rate if self.interest_type == InterestType.VARIABLE else Decimal("0"),
            margin=self.margin if self.interest_type == InterestType.VARIABLE else Decimal("0"),
            vehicles=tuple(v.to_vehicle() for v in self.vehicles),
        )


class ContractCreate(ContractTerms):
    contract_number: str = Field(..., min_length=1, max_length=50)


class SettlementRequest(BaseModel):
    registration: str
    settlement_date: date


class RateChangeRequest(BaseModel):
    effective_date: date
    new_base_rate: Decimal


# ---- Response schemas ----

class ORMModel(BaseModel):
    model_config = {"from_attributes": True}


class VehicleResponse(ORMModel):
    registration: str
    make: str
    model: str
    status: VehicleStatus
    settled_date: date | None


class RateChangeResponse(ORMModel):
    effective_date: date
    old_base_rate: Decimal
    new_base_rate: Decimal
    old_effective_rate: Decimal
    new_effective_rate: Decimal


class ContractResponse(BaseModel):
    contract_number: str
    total_capital: Decimal
    total_instalments: int
    first_instalment_date: date
    interest_type: InterestType
    total_interest: Decimal
    base_rate: Decimal
    margin: Decimal
    effective_annual_rate: Decimal | None
    original_vehicle_count: int
    active_vehicles_count: int
    per_vehicle_capital_rate: Decimal
    current_monthly_capital: Decimal
    status: ContractStatus
    vehicles: list[VehicleResponse]
    rate_history: list[RateChangeResponse]

    @classmethod
    def from_contract(cls, contract: Contract) -> "ContractResponse":
        variable = contract.interest_type == InterestType.VARIABLE
        return cls(
            contract_number=contract.contract_number,
            total_capital=contract.total_capital,
            total_instalments=contract.total_instalments,
            first_instalment_date=contract.first_instalment_date,
            interest_type=contract.interest_type,
            total_interest=contract.total_interest,
            base_rate=contract.base_rate,
            margin=contract.margin,
            effective_annual_rate=contract.effective_annual_rate if variable else None,
            original_vehicle_count=contract.original_vehicle_count,
            active_vehicles_count=contract.active_vehicles_count,
            per_vehicle_capital_rate=contract.per_vehicle_capital_rate.quantize(TWO_PLACES, ROUND_HALF_UP),
            current_monthly_capital=contract.current_monthly_capital,
            status=contract.status,
            vehicles=[VehicleResponse.model_validate(v) for v in contract.vehicles],
            rate_history=[RateChangeResponse.model_validate(c) for c in contract.rate_history],
        )


class SettlementEventResponse(ORMModel):
    registration: str
    settlement_date: date
    capital: Decimal


class MonthEntryResponse(ORMModel):
    month_index: int
    period_start: date
    period_end: date
    days_in_period: int
    opening_balance: Decimal
    capital_due: Decimal
    interest_due: Decimal
    closing_balance: Decimal
    active_vehicle_count: int
    settlements: list[SettlementEventResponse]
    settled_capital: Decimal
    total_due: Decimal
    annual_rate: Decimal | None


class ScheduleResponse(BaseModel):
    contract_number: str
    entries: list[MonthEntryResponse]
    total_capital: Decimal
    total_settled_capital: Decimal
    total_interest: Decimal
    total_payable: Decimal
    period_lengths: dict[int, int] = Field(default_factory=dict, description="Periods by length in days")


class SettlementQuoteResponse(ORMModel):
    contract_number: str
    registration: str
    settlement_date: date
    month_index: int
    capital_component: Decimal
    interest_component: Decimal
    total_figure: Decimal
    interest_saved_this_period: Decimal
    future_interest_saved: Decimal
    total_interest_saved: Decimal
    current_monthly_capital: Decimal
    new_monthly_capital: Decimal
    monthly_reduction: Decimal
    months_remaining: int
    days_before_settlement: int
    days_after_settlement: int
    valid_until: date


class TransactionResponse(ORMModel):
    date: date
    type: str
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal
    month_index: int | None
    registration: str | None

    @field_validator("type", mode="before")
    @classmethod
    def _type_value(cls, v):
        return getattr(v, "value", v)


class StatementSummaryResponse(ORMModel):
    total_debits: Decimal
    total_capital_paid: Decimal
    total_interest_charged: Decimal
    transaction_count: int


class StatementResponse(BaseModel):
    contract_number: str
    transactions: list[TransactionResponse]
    summary: StatementSummaryResponse


class ContractMetricsResponse(ORMModel):
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


class PortfolioSummaryResponse(ORMModel):
    as_of: date
    active_contracts: int
    settled_contracts: int
    active_vehicles: int
    settled_vehicles: int
    capital_outstanding: Decimal
    interest_outstanding: Decimal
    total_outstanding: Decimal
    next_month_capital_due: Decimal
    next_month_interest_due: Decimal


class MaturityEntryResponse(ORMModel):
    contract_number: str
    end_date: date
    days_until_end: int
    active_vehicles: int
    total_vehicles: int
    current_monthly_capital: Decimal
    capital_outstanding: Decimal


class MaturityReportResponse(ORMModel):
    as_of: date
    within_one_month: list[MaturityEntryResponse]
    within_two_months: list[MaturityEntryResponse]
    within_three_months: list[MaturityEntryResponse]


class CalendarPaymentResponse(ORMModel):
    contract_number: str
    month_index: int
    capital_due: Decimal
    interest_due: Decimal
    active_vehicles: int


class CalendarDayResponse(ORMModel):
    day: date
    payments: list[CalendarPaymentResponse]
    total_capital: Decimal
    total_interest: Decimal


class ImportResponse(BaseModel):
    imported: int
    contract_numbers: list[str]


class VehicleDetailsResponse(ORMModel):
    registration: str
    make: str
    model: str
    colour: str | None
    fuel_type: str | None
    year_of_manufacture: int | None
    date_first_registered: str | None
