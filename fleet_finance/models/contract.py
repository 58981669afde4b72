from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

TWO_PLACES = Decimal("0.01")


class InterestType(Enum):
    FIXED = "FIXED"
    VARIABLE = "VARIABLE"


class VehicleStatus(Enum):
    ACTIVE = "ACTIVE"
    SETTLED = "SETTLED"


class ContractStatus(Enum):
    ACTIVE = "ACTIVE"
    SETTLED = "SETTLED"


def normalize_registration(registration: str) -> str:
    """Strip all whitespace and uppercase, e.g. "ab12 cde" -> "AB12CDE"."""
    return "".join(registration.split()).upper()


@dataclass(frozen=True)
class Vehicle:
    registration: str
    make: str = ""
    model: str = ""
    status: VehicleStatus = VehicleStatus.ACTIVE
    settled_date: date | None = None

    @property
    def is_settled(self) -> bool:
        return self.status == VehicleStatus.SETTLED


@dataclass(frozen=True)
class RateChange:
    effective_date: date
    old_base_rate: Decimal
    new_base_rate: Decimal
    old_effective_rate: Decimal
    new_effective_rate: Decimal


@dataclass(frozen=True)
class Contract:
    contract_number: str
    total_capital: Decimal
    total_instalments: int
    first_instalment_date: date
    interest_type: InterestType
    original_vehicle_count: int
    total_interest: Decimal = Decimal("0")  # FIXED only
    base_rate: Decimal = Decimal("0")  # VARIABLE only, percent p.a.
    margin: Decimal = Decimal("0")  # VARIABLE only, percent p.a.
    vehicles: tuple[Vehicle, ...] = field(default_factory=tuple)
    rate_history: tuple[RateChange, ...] = field(default_factory=tuple)

    @property
    def effective_annual_rate(self) -> Decimal:
        return self.base_rate + self.margin

    @property
    def monthly_capital_instalment(self) -> Decimal:
        return self.total_capital / self.total_instalments

    @property
    def per_vehicle_capital_rate(self) -> Decimal:
        """Capital owed per vehicle per month. Kept unrounded; round at posting."""
        return self.total_capital / self.total_instalments / self.original_vehicle_count

    @property
    def settled_vehicles_count(self) -> int:
        return sum(1 for v in self.vehicles if v.is_settled)

    @property
    def active_vehicles_count(self) -> int:
        return max(0, self.original_vehicle_count - self.settled_vehicles_count)

    @property
    def current_monthly_capital(self) -> Decimal:
        return (self.per_vehicle_capital_rate * self.active_vehicles_count).quantize(
            TWO_PLACES, ROUND_HALF_UP
        )

    @property
    def status(self) -> ContractStatus:
        if self.active_vehicles_count == 0:
            return ContractStatus.SETTLED
        return ContractStatus.ACTIVE

    @property
    def last_settlement_date(self) -> date | None:
        dates = [v.settled_date for v in self.vehicles if v.settled_date is not None]
        return max(dates) if dates else None

    def vehicle(self, registration: str) -> Vehicle | None:
        reg = normalize_registration(registration)
        for v in self.vehicles:
            if v.registration == reg:
                return v
        return None
