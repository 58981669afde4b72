"""Variable-rate interest: rate history and daily accrual.

Rates are percent per annum (e.g. Decimal("7.5")). Interest accrues daily
on an actual/365 basis.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

from fleet_finance.errors import RateChangeError
from fleet_finance.models.contract import Contract, InterestType, RateChange

DAYS_PER_YEAR = Decimal("365")


def rate_on(contract: Contract, day: date) -> Decimal:
    """Effective annual rate in force on a given day."""
    if not contract.rate_history:
        return contract.effective_annual_rate

    rate = contract.rate_history[0].old_effective_rate
    for change in contract.rate_history:
        if change.effective_date <= day:
            rate = change.new_effective_rate
        else:
            break
    return rate


def rate_change_dates(contract: Contract, start: date, end: date) -> list[date]:
    """Dates strictly inside (start, end) on which a new rate takes effect."""
    return [c.effective_date for c in contract.rate_history if start < c.effective_date < end]


def accrue(balance: Decimal, annual_rate: Decimal, days: int) -> Decimal:
    """Unrounded interest on balance for days at annual_rate percent."""
    if days <= 0 or balance <= 0:
        return Decimal("0")
    return balance * annual_rate / 100 / DAYS_PER_YEAR * days


def record_rate_change(contract: Contract, effective_date: date, new_base_rate: Decimal) -> Contract:
    """Return the contract with a base-rate change appended to its history.

    The margin is fixed for the life of the contract, so only the base
    rate moves. Changes must be recorded in date order.
    """
    if contract.interest_type != InterestType.VARIABLE:
        raise RateChangeError(
            f"Contract {contract.contract_number} is fixed-rate; base rate changes do not apply"
        )
    if new_base_rate < 0:
        raise RateChangeError(f"Base rate cannot be negative: {new_base_rate}")
    if contract.rate_history and effective_date < contract.rate_history[-1].effective_date:
        raise RateChangeError(
            f"Rate change on {effective_date} precedes the last recorded change "
            f"on {contract.rate_history[-1].effective_date}"
        )

    change = RateChange(
        effective_date=effective_date,
        old_base_rate=contract.base_rate,
        new_base_rate=new_base_rate,
        old_effective_rate=contract.effective_annual_rate,
        new_effective_rate=new_base_rate + contract.margin,
    )
    return replace(
        contract,
        base_rate=new_base_rate,
        rate_history=contract.rate_history + (change,),
    )
