"""Early settlement of one vehicle's share of a pooled contract.

Quoting compares the schedule with and without the settlement; nothing is
mutated. confirm_settlement returns the updated contract for storage to
persist.
"""

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from fleet_finance.engine.dates import contract_end_date, days_between, months_elapsed, period_bounds
from fleet_finance.engine.schedule import build_schedule, period_interest
from fleet_finance.errors import InvalidSettlementError
from fleet_finance.models.contract import Contract, InterestType, Vehicle, VehicleStatus, normalize_registration
from fleet_finance.models.results import SettlementQuote

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
DEFAULT_QUOTE_VALIDITY_DAYS = 7


def _check_settleable(contract: Contract, registration: str, settlement_date: date) -> Vehicle:
    vehicle = contract.vehicle(registration)
    if vehicle is None:
        raise InvalidSettlementError(
            f"Vehicle {registration} is not on contract {contract.contract_number}"
        )
    if vehicle.is_settled:
        raise InvalidSettlementError(
            f"Vehicle {vehicle.registration} was already settled on {vehicle.settled_date}"
        )
    if settlement_date < contract.first_instalment_date:
        raise InvalidSettlementError(
            f"Settlement date {settlement_date} precedes the first instalment date "
            f"{contract.first_instalment_date}"
        )
    end = contract_end_date(contract.first_instalment_date, contract.total_instalments)
    if settlement_date >= end:
        raise InvalidSettlementError(
            f"Settlement date {settlement_date} is after the contract term ended on {end}"
        )
    return vehicle


def confirm_settlement(contract: Contract, registration: str, settlement_date: date) -> Contract:
    """Mark a vehicle SETTLED on settlement_date and return the new contract."""
    vehicle = _check_settleable(contract, normalize_registration(registration), settlement_date)
    settled = replace(vehicle, status=VehicleStatus.SETTLED, settled_date=settlement_date)
    vehicles = tuple(settled if v.registration == vehicle.registration else v for v in contract.vehicles)
    return replace(contract, vehicles=vehicles)


def quote_settlement(
    contract: Contract,
    registration: str,
    settlement_date: date,
    validity_days: int = DEFAULT_QUOTE_VALIDITY_DAYS,
) -> SettlementQuote:
    """Quote the figure to settle one vehicle early.

    Args:
        contract: The contract as it stands, with earlier settlements applied
        registration: Vehicle to settle
        settlement_date: Day the settlement funds are received
        validity_days: How long the quote stands

    Raises:
        InvalidSettlementError: Unknown or already-settled vehicle, or a date
            outside the contract term.
    """
    reg = normalize_registration(registration)
    _check_settleable(contract, reg, settlement_date)

    period = months_elapsed(contract.first_instalment_date, settlement_date)
    start, end = period_bounds(contract.first_instalment_date, period)

    baseline = build_schedule(contract)
    projected = build_schedule(confirm_settlement(contract, reg, settlement_date))
    event = next(s for s in projected[period].settlements if s.registration == reg)

    future_saved = sum(
        (b.interest_due - p.interest_due for b, p in zip(baseline[period + 1:], projected[period + 1:])),
        ZERO,
    )
    if contract.interest_type == InterestType.VARIABLE:
        # Interest on the whole pool up to the day before settlement
        prior = tuple(s for s in baseline[period].settlements if s.settlement_date < settlement_date)
        interest_component = period_interest(
            contract, start, settlement_date, baseline[period].opening_balance, prior
        ).quantize(TWO_PLACES, ROUND_HALF_UP)
        saved_this_period = baseline[period].interest_due - projected[period].interest_due
    else:
        # Fixed interest is pre-agreed and only stops once the last vehicle settles
        interest_component = ZERO
        saved_this_period = ZERO

    active_after = max(0, contract.active_vehicles_count - 1)
    new_monthly_capital = (contract.per_vehicle_capital_rate * active_after).quantize(TWO_PLACES, ROUND_HALF_UP)

    return SettlementQuote(
        contract_number=contract.contract_number,
        registration=reg,
        settlement_date=settlement_date,
        month_index=period,
        capital_component=event.capital,
        interest_component=interest_component,
        total_figure=event.capital + interest_component,
        interest_saved_this_period=saved_this_period,
        future_interest_saved=future_saved,
        current_monthly_capital=contract.current_monthly_capital,
        new_monthly_capital=new_monthly_capital,
        months_remaining=contract.total_instalments - period - 1,
        days_before_settlement=days_between(start, settlement_date),
        days_after_settlement=days_between(settlement_date, end),
        valid_until=settlement_date + timedelta(days=validity_days),
    )
