"""Portfolio-level figures folded from per-contract metrics."""

import calendar
from datetime import date
from decimal import Decimal

from fleet_finance.engine.dates import add_months, contract_end_date
from fleet_finance.engine.metrics import contract_metrics
from fleet_finance.engine.schedule import build_schedule
from fleet_finance.models.contract import Contract, ContractStatus
from fleet_finance.models.results import (
    CalendarDay,
    CalendarPayment,
    MaturityEntry,
    MaturityReport,
    PortfolioSummary,
)

ZERO = Decimal("0")


def aggregate(contracts: list[Contract], as_of: date) -> PortfolioSummary:
    """Sum outstanding figures over contracts still active on as_of.

    Settled contracts add nothing to the outstanding figures and are only
    counted.
    """
    active_contracts = 0
    settled_contracts = 0
    active_vehicles = 0
    settled_vehicles = 0
    capital = ZERO
    interest = ZERO
    next_capital = ZERO
    next_interest = ZERO

    for contract in contracts:
        m = contract_metrics(contract, as_of)
        settled_vehicles += m.settled_vehicles
        if m.status == ContractStatus.SETTLED:
            settled_contracts += 1
            continue
        active_contracts += 1
        active_vehicles += m.active_vehicles
        capital += m.capital_outstanding
        interest += m.interest_outstanding
        next_capital += m.next_month_capital_due
        next_interest += m.next_month_interest_due

    return PortfolioSummary(
        as_of=as_of,
        active_contracts=active_contracts,
        settled_contracts=settled_contracts,
        active_vehicles=active_vehicles,
        settled_vehicles=settled_vehicles,
        capital_outstanding=capital,
        interest_outstanding=interest,
        next_month_capital_due=next_capital,
        next_month_interest_due=next_interest,
    )


def maturity_report(contracts: list[Contract], as_of: date) -> MaturityReport:
    """Active contracts concluding within one, two and three months."""
    horizons = [add_months(as_of, 1), add_months(as_of, 2), add_months(as_of, 3)]
    buckets: list[list[MaturityEntry]] = [[], [], []]

    for contract in contracts:
        m = contract_metrics(contract, as_of)
        if m.status != ContractStatus.ACTIVE:
            continue
        for bucket, horizon in zip(buckets, horizons):
            if m.end_date <= horizon:
                bucket.append(MaturityEntry(
                    contract_number=contract.contract_number,
                    end_date=m.end_date,
                    days_until_end=(m.end_date - as_of).days,
                    active_vehicles=m.active_vehicles,
                    total_vehicles=contract.original_vehicle_count,
                    current_monthly_capital=m.current_monthly_capital,
                    capital_outstanding=m.capital_outstanding,
                ))
                break

    for bucket in buckets:
        bucket.sort(key=lambda e: (e.days_until_end, e.contract_number))
    return MaturityReport(
        as_of=as_of,
        within_one_month=buckets[0],
        within_two_months=buckets[1],
        within_three_months=buckets[2],
    )


def payment_calendar(contracts: list[Contract], year: int, month: int) -> list[CalendarDay]:
    """Instalments falling on each day of a calendar month."""
    month_start = date(year, month, 1)
    month_end = date(year, month, calendar.monthrange(year, month)[1])
    by_day: dict[date, list[CalendarPayment]] = {}

    for contract in contracts:
        if contract.status != ContractStatus.ACTIVE:
            continue
        end = contract_end_date(contract.first_instalment_date, contract.total_instalments)
        if end <= month_start or contract.first_instalment_date > month_end:
            continue
        for entry in build_schedule(contract):
            if not month_start <= entry.period_start <= month_end:
                continue
            if entry.total_due <= 0:
                continue
            by_day.setdefault(entry.period_start, []).append(CalendarPayment(
                contract_number=contract.contract_number,
                month_index=entry.month_index,
                capital_due=entry.capital_due,
                interest_due=entry.interest_due,
                active_vehicles=entry.active_vehicle_count,
            ))

    return [
        CalendarDay(day=date(year, month, d), payments=by_day.get(date(year, month, d), []))
        for d in range(1, month_end.day + 1)
    ]
