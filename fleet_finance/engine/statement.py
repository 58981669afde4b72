"""Statement of account: the schedule replayed as a dated ledger."""

from datetime import date
from decimal import Decimal

from fleet_finance.engine.schedule import build_schedule
from fleet_finance.models.contract import Contract, ContractStatus
from fleet_finance.models.results import StatementSummary, Transaction, TransactionType

ZERO = Decimal("0")


def _month_label(d: date) -> str:
    return d.strftime("%B %Y")


def build_ledger(contract: Contract) -> list[Transaction]:
    """Date-ordered transactions with a running capital balance.

    Payments are debits and reduce the balance; interest charges are
    debits that leave it unchanged. Same-day entries follow
    TransactionType.priority. Once every vehicle has settled, nothing is
    posted for periods starting after the final settlement.
    """
    schedule = build_schedule(contract)

    cutoff: date | None = None
    if contract.status == ContractStatus.SETTLED:
        cutoff = contract.last_settlement_date

    # (date, type, description, amount, month_index, registration)
    postings: list[tuple[date, TransactionType, str, Decimal, int | None, str | None]] = []
    for entry in schedule:
        start = entry.period_start
        in_term = cutoff is None or start <= cutoff

        if in_term and entry.capital_due > 0:
            postings.append((
                start,
                TransactionType.CAPITAL_PAYMENT,
                f"Monthly Capital Payment - {_month_label(start)}",
                entry.capital_due,
                entry.month_index,
                None,
            ))
        for s in entry.settlements:
            postings.append((
                s.settlement_date,
                TransactionType.SETTLEMENT,
                f"Early Settlement - {s.registration}",
                s.capital,
                entry.month_index,
                s.registration,
            ))
        if in_term and entry.interest_due > 0:
            postings.append((
                start,
                TransactionType.INTEREST_CHARGE,
                f"Interest Charge - {_month_label(start)} ({entry.days_in_period} days)",
                entry.interest_due,
                entry.month_index,
                None,
            ))

    postings.sort(key=lambda p: (p[0], p[1].priority))

    balance = contract.total_capital
    ledger = [Transaction(
        date=contract.first_instalment_date,
        type=TransactionType.OPENING,
        description="Contract Opening Balance",
        debit=ZERO,
        credit=ZERO,
        balance=balance,
    )]
    for day, kind, description, amount, month_index, registration in postings:
        if kind != TransactionType.INTEREST_CHARGE:
            balance -= amount
        ledger.append(Transaction(
            date=day,
            type=kind,
            description=description,
            debit=amount,
            credit=ZERO,
            balance=balance,
            month_index=month_index,
            registration=registration,
        ))
    return ledger


def summarize_ledger(transactions: list[Transaction]) -> StatementSummary:
    total_debits = sum((t.debit for t in transactions), ZERO)
    capital_paid = sum(
        (t.debit for t in transactions
         if t.type in (TransactionType.CAPITAL_PAYMENT, TransactionType.SETTLEMENT)),
        ZERO,
    )
    interest = sum((t.debit for t in transactions if t.type == TransactionType.INTEREST_CHARGE), ZERO)
    return StatementSummary(
        total_debits=total_debits,
        total_capital_paid=capital_paid,
        total_interest_charged=interest,
        transaction_count=sum(1 for t in transactions if t.type != TransactionType.OPENING),
    )
