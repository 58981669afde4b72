"""Month-by-month amortization schedule for a pooled vehicle-finance contract.

Pure functions: Decimal in, dataclass out. No I/O.

Capital is pooled: each vehicle owes per_vehicle_capital_rate per month
until it settles. FIXED contracts charge total_interest evenly; VARIABLE
contracts accrue daily on the declining balance using actual calendar
days, split at every settlement and rate change inside a period.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from itertools import pairwise

from fleet_finance.engine.dates import (
    contract_end_date,
    days_between,
    last_day_of_period,
    months_elapsed,
    period_bounds,
)
from fleet_finance.engine.rates import accrue, rate_change_dates, rate_on
from fleet_finance.errors import ContractDataError
from fleet_finance.models.contract import Contract, InterestType, Vehicle, VehicleStatus
from fleet_finance.models.results import MonthEntry, SettlementEvent

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def _q(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def validate_contract(contract: Contract) -> None:
    """Reject malformed terms before any schedule is built."""
    if contract.total_instalments <= 0:
        raise ContractDataError(f"total_instalments must be at least 1, got {contract.total_instalments}")
    if contract.total_capital < 0:
        raise ContractDataError(f"total_capital cannot be negative, got {contract.total_capital}")
    if contract.original_vehicle_count <= 0:
        raise ContractDataError(
            f"original_vehicle_count must be at least 1, got {contract.original_vehicle_count}"
        )
    if contract.interest_type == InterestType.FIXED and contract.total_interest < 0:
        raise ContractDataError(f"total_interest cannot be negative, got {contract.total_interest}")
    if contract.interest_type == InterestType.VARIABLE and (contract.base_rate < 0 or contract.margin < 0):
        raise ContractDataError("base_rate and margin cannot be negative")
    if len(contract.vehicles) > contract.original_vehicle_count:
        raise ContractDataError(
            f"{len(contract.vehicles)} vehicles listed but original_vehicle_count is "
            f"{contract.original_vehicle_count}"
        )

    seen: set[str] = set()
    for v in contract.vehicles:
        if v.registration in seen:
            raise ContractDataError(f"Duplicate registration {v.registration}")
        seen.add(v.registration)
        if v.status == VehicleStatus.SETTLED and v.settled_date is None:
            raise ContractDataError(f"Vehicle {v.registration} is settled but has no settled date")
        if v.status == VehicleStatus.ACTIVE and v.settled_date is not None:
            raise ContractDataError(f"Vehicle {v.registration} is active but has a settled date")
        if v.settled_date is not None and v.settled_date < contract.first_instalment_date:
            raise ContractDataError(
                f"Vehicle {v.registration} settled on {v.settled_date}, before the first "
                f"instalment date {contract.first_instalment_date}"
            )


def _settlements_by_period(contract: Contract) -> dict[int, list[Vehicle]]:
    """Settled vehicles keyed by the period containing their settlement date.

    Settlements on or after the end of the term have nothing left to discharge.
    """
    end = contract_end_date(contract.first_instalment_date, contract.total_instalments)
    settled = sorted(
        (v for v in contract.vehicles if v.is_settled and v.settled_date < end),
        key=lambda v: (v.settled_date, v.registration),
    )
    by_period: dict[int, list[Vehicle]] = defaultdict(list)
    for v in settled:
        by_period[months_elapsed(contract.first_instalment_date, v.settled_date)].append(v)
    return by_period


def period_interest(
    contract: Contract,
    start: date,
    end: date,
    opening_balance: Decimal,
    settlements: tuple[SettlementEvent, ...] = (),
) -> Decimal:
    """Unrounded VARIABLE interest for days in [start, end).

    The range is cut at each settlement and rate change. Each sub-range
    accrues on the opening balance less capital settled on or before its
    first day, at the rate in force on that day.
    """
    if end <= start:
        return ZERO

    cuts = {start, end}
    cuts.update(s.settlement_date for s in settlements if start < s.settlement_date < end)
    cuts.update(rate_change_dates(contract, start, end))

    total = ZERO
    for seg_start, seg_end in pairwise(sorted(cuts)):
        settled = sum((s.capital for s in settlements if s.settlement_date <= seg_start), ZERO)
        basis = max(ZERO, opening_balance - settled)
        total += accrue(basis, rate_on(contract, seg_start), days_between(seg_start, seg_end))
    return total


def build_schedule(contract: Contract) -> list[MonthEntry]:
    """Build the full schedule, one entry per instalment.

    Args:
        contract: Validated contract terms, including any settled vehicles
            and recorded rate changes.

    Raises:
        ContractDataError: If the terms are malformed.
    """
    validate_contract(contract)

    n = contract.total_instalments
    rate = contract.per_vehicle_capital_rate
    settlements_by_period = _settlements_by_period(contract)
    fixed_interest = _q(contract.total_interest / n) if contract.interest_type == InterestType.FIXED else None

    entries: list[MonthEntry] = []
    balance = contract.total_capital
    active = contract.original_vehicle_count
    owed = ZERO
    billed = ZERO

    for i in range(n):
        start, end = period_bounds(contract.first_instalment_date, i)
        opening = balance

        # Rounded cumulatively so no instalment drifts more than a penny
        owed += rate * active
        if i == n - 1:
            capital_due = opening
        else:
            capital_due = min(_q(owed) - billed, opening)
        billed += capital_due
        remaining = opening - capital_due

        events: list[SettlementEvent] = []
        active_after = active
        for vehicle in settlements_by_period.get(i, []):
            active_after -= 1
            if active_after <= 0:
                share = remaining
            else:
                share = min(_q(rate * (n - i - 1)), remaining)
            remaining -= share
            events.append(SettlementEvent(vehicle.registration, vehicle.settled_date, share))
        settlements = tuple(events)

        if fixed_interest is not None:
            # Nothing accrues once every vehicle has settled
            interest_due = fixed_interest if active > 0 else ZERO
            annual_rate = None
        else:
            interest_due = _q(period_interest(contract, start, end, opening, settlements))
            annual_rate = rate_on(contract, start)

        closing = max(ZERO, remaining)
        entries.append(MonthEntry(
            month_index=i,
            period_start=start,
            period_end=last_day_of_period(end),
            days_in_period=days_between(start, end),
            opening_balance=opening,
            capital_due=capital_due,
            interest_due=interest_due,
            closing_balance=closing,
            active_vehicle_count=active,
            settlements=settlements,
            annual_rate=annual_rate,
        ))
        balance = closing
        active = max(0, active_after)

    return entries


def schedule_totals(schedule: list[MonthEntry]) -> dict[str, Decimal]:
    """Totals across a schedule: capital, settled, interest, payable."""
    capital = sum((e.capital_due for e in schedule), ZERO)
    settled = sum((e.settled_capital for e in schedule), ZERO)
    interest = sum((e.interest_due for e in schedule), ZERO)
    return {
        "capital": capital,
        "settled_capital": settled,
        "interest": interest,
        "total_payable": capital + settled + interest,
    }
