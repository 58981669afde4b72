"""Per-contract position as of a given date."""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from fleet_finance.engine.dates import contract_end_date, months_elapsed
from fleet_finance.engine.schedule import build_schedule
from fleet_finance.models.contract import Contract, ContractStatus, InterestType
from fleet_finance.models.results import ContractMetrics, MonthEntry

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def contract_status(contract: Contract, as_of: date) -> ContractStatus:
    """SETTLED once every vehicle has settled or the term has run out."""
    end = contract_end_date(contract.first_instalment_date, contract.total_instalments)
    if contract.status == ContractStatus.SETTLED or as_of >= end:
        return ContractStatus.SETTLED
    return ContractStatus.ACTIVE


def contract_metrics(
    contract: Contract,
    as_of: date,
    schedule: list[MonthEntry] | None = None,
) -> ContractMetrics:
    """Outstanding balances and next instalment for a contract on as_of.

    The instalment falling on as_of counts as paid. Before the first
    instalment nothing has been paid; after the term everything has.
    """
    schedule = schedule if schedule is not None else build_schedule(contract)
    n = contract.total_instalments
    end = contract_end_date(contract.first_instalment_date, n)
    status = contract_status(contract, as_of)

    if as_of < contract.first_instalment_date:
        elapsed = 0
        next_entry: MonthEntry | None = schedule[0]
        capital_outstanding = contract.total_capital
        interest_outstanding = sum((e.interest_due for e in schedule), ZERO)
    else:
        k = months_elapsed(contract.first_instalment_date, as_of)
        elapsed = min(k + 1, n)
        next_entry = schedule[k + 1] if k + 1 < n else None
        if k < n:
            capital_outstanding = schedule[k].closing_balance
            interest_outstanding = sum((e.interest_due for e in schedule[k + 1:]), ZERO)
        else:
            capital_outstanding = ZERO
            interest_outstanding = ZERO

    if status == ContractStatus.SETTLED:
        capital_outstanding = ZERO
        interest_outstanding = ZERO
        next_entry = None

    return ContractMetrics(
        contract_number=contract.contract_number,
        as_of=as_of,
        status=status,
        instalments_elapsed=elapsed,
        months_remaining=n - elapsed,
        progress_pct=(Decimal(elapsed) / n * 100).quantize(TWO_PLACES, ROUND_HALF_UP),
        per_vehicle_capital_rate=contract.per_vehicle_capital_rate.quantize(TWO_PLACES, ROUND_HALF_UP),
        monthly_capital_instalment=contract.monthly_capital_instalment.quantize(TWO_PLACES, ROUND_HALF_UP),
        current_monthly_capital=contract.current_monthly_capital,
        active_vehicles=contract.active_vehicles_count,
        settled_vehicles=contract.settled_vehicles_count,
        capital_outstanding=capital_outstanding,
        interest_outstanding=interest_outstanding,
        next_instalment_date=next_entry.period_start if next_entry else None,
        next_month_capital_due=next_entry.capital_due if next_entry else ZERO,
        next_month_interest_due=next_entry.interest_due if next_entry else ZERO,
        effective_annual_rate=(
            contract.effective_annual_rate if contract.interest_type == InterestType.VARIABLE else None
        ),
        end_date=end,
    )
