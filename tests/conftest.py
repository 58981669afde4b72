"""Canonical contracts used across engine, data and API tests.

Fixed: £12,000 over 12 months from 1 Jan 2024, £600 interest, one van.
Variable: £10,000 over 10 months from 1 Jan 2024 at 5% base + 2% margin.
Pooled: £40,000 over 10 months from 1 Jan 2024, two vehicles, 5% + 2%.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from fleet_finance.models.contract import Contract, InterestType, Vehicle, VehicleStatus


@pytest.fixture
def fixed_contract() -> Contract:
    return Contract(
        contract_number="CON001",
        total_capital=Decimal("12000"),
        total_instalments=12,
        first_instalment_date=date(2024, 1, 1),
        interest_type=InterestType.FIXED,
        original_vehicle_count=1,
        total_interest=Decimal("600"),
        vehicles=(Vehicle("AB12CDE", "Ford", "Transit"),),
    )


@pytest.fixture
def variable_contract() -> Contract:
    return Contract(
        contract_number="VAR001",
        total_capital=Decimal("10000"),
        total_instalments=10,
        first_instalment_date=date(2024, 1, 1),
        interest_type=InterestType.VARIABLE,
        original_vehicle_count=1,
        base_rate=Decimal("5"),
        margin=Decimal("2"),
        vehicles=(Vehicle("CD34EFG", "Vauxhall", "Vivaro"),),
    )


@pytest.fixture
def pooled_contract() -> Contract:
    """£2,000 per vehicle per month."""
    return Contract(
        contract_number="POOL01",
        total_capital=Decimal("40000"),
        total_instalments=10,
        first_instalment_date=date(2024, 1, 1),
        interest_type=InterestType.VARIABLE,
        original_vehicle_count=2,
        base_rate=Decimal("5"),
        margin=Decimal("2"),
        vehicles=(
            Vehicle("AA11AAA", "Mercedes", "Sprinter"),
            Vehicle("BB22BBB", "Mercedes", "Sprinter"),
        ),
    )


def settled(vehicle: Vehicle, on: date) -> Vehicle:
    return Vehicle(vehicle.registration, vehicle.make, vehicle.model, VehicleStatus.SETTLED, on)


@pytest.fixture
def settle():
    """settle(contract, {reg: date}) -> contract with those vehicles settled."""

    def _settle(contract: Contract, dates: dict[str, date]) -> Contract:
        vehicles = tuple(
            settled(v, dates[v.registration]) if v.registration in dates else v
            for v in contract.vehicles
        )
        return replace(contract, vehicles=vehicles)

    return _settle
