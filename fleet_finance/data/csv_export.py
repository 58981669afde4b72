"""Statement of account as CSV."""

import csv
import io
from datetime import date
from decimal import Decimal

from fleet_finance.models.results import Transaction

HEADERS = ["Date", "Type", "Description", "Debit", "Credit", "Balance"]


def _amount(value: Decimal) -> str:
    """Two decimal places; zero is written blank."""
    return f"{value:.2f}" if value else ""


def ledger_to_csv(transactions: list[Transaction]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(HEADERS)
    for t in transactions:
        writer.writerow([
            t.date.strftime("%d/%m/%Y"),
            t.type.value,
            t.description,
            _amount(t.debit),
            _amount(t.credit),
            f"{t.balance:.2f}",
        ])
    return buf.getvalue()


def statement_filename(contract_number: str, generated_on: date) -> str:
    return f"statement-{contract_number}-{generated_on.isoformat()}.csv"
