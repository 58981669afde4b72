"""CLI for running the engine over a contracts CSV, no database needed.

Usage:
    python -m fleet_finance.cli schedule contracts.csv --contract CON001
    python -m fleet_finance.cli statement contracts.csv --contract CON001 --out statement.csv
    python -m fleet_finance.cli quote contracts.csv --contract CON001 --reg AB12CDE --date 15/06/2024
    python -m fleet_finance.cli portfolio contracts.csv --as-of 2024-06-01
    python -m fleet_finance.cli lookup "AB12 CDE"
"""

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

from fleet_finance.config import settings
from fleet_finance.data.csv_export import ledger_to_csv
from fleet_finance.data.csv_import import parse_contracts_csv, parse_date
from fleet_finance.data.vehicle_lookup import VehicleLookupClient
from fleet_finance.engine.dates import contract_end_date, day_distribution
from fleet_finance.engine.portfolio import aggregate, maturity_report
from fleet_finance.engine.schedule import build_schedule, schedule_totals
from fleet_finance.engine.settlement import quote_settlement
from fleet_finance.engine.statement import build_ledger, summarize_ledger
from fleet_finance.errors import CsvImportError, FleetFinanceError
from fleet_finance.logging import setup_logging
from fleet_finance.models.contract import Contract


def _header(title: str) -> None:
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}")


def print_schedule(contract: Contract) -> None:
    schedule = build_schedule(contract)
    end = contract_end_date(contract.first_instalment_date, contract.total_instalments)
    _header(f"Schedule: {contract.contract_number} ({contract.interest_type.value})")
    print(f"  Capital:      £{contract.total_capital:,.2f} over {contract.total_instalments} months")
    print(f"  Term:         {contract.first_instalment_date:%d/%m/%Y} to {end:%d/%m/%Y}")
    print(f"  Vehicles:     {contract.active_vehicles_count} active of {contract.original_vehicle_count}")
    lengths = day_distribution(contract.first_instalment_date, contract.total_instalments)
    periods = ", ".join(f"{days}d x{count}" for days, count in lengths.items())
    print(f"  Periods:      {periods}")
    print()
    print(f"  {'#':>3}  {'Date':<10} {'Days':>4} {'Opening':>12} {'Capital':>10} {'Settled':>10} {'Interest':>9} {'Closing':>12}")
    for e in schedule:
        print(
            f"  {e.month_index + 1:>3}  {e.period_start:%d/%m/%Y} {e.days_in_period:>4} "
            f"{e.opening_balance:>12,.2f} {e.capital_due:>10,.2f} {e.settled_capital:>10,.2f} "
            f"{e.interest_due:>9,.2f} {e.closing_balance:>12,.2f}"
        )
    totals = schedule_totals(schedule)
    print()
    print(f"  Total capital:    £{totals['capital'] + totals['settled_capital']:,.2f}")
    print(f"  Total interest:   £{totals['interest']:,.2f}")
    print(f"  Total payable:    £{totals['total_payable']:,.2f}")
    print()


def print_statement(contract: Contract) -> None:
    ledger = build_ledger(contract)
    summary = summarize_ledger(ledger)
    _header(f"Statement of Account: {contract.contract_number}")
    for t in ledger:
        debit = f"{t.debit:,.2f}" if t.debit else ""
        print(f"  {t.date:%d/%m/%Y}  {t.description:<45} {debit:>11} {t.balance:>12,.2f}")
    print()
    print(f"  Capital paid:     £{summary.total_capital_paid:,.2f}")
    print(f"  Interest charged: £{summary.total_interest_charged:,.2f}")
    print(f"  Transactions:     {summary.transaction_count}")
    print()


def print_quote(contract: Contract, registration: str, settlement_date: date) -> None:
    q = quote_settlement(
        contract, registration, settlement_date, validity_days=settings.settlement_quote_validity_days
    )
    _header(f"Settlement Quote: {q.registration} on {contract.contract_number}")
    print(f"  Settlement date:      {q.settlement_date:%d/%m/%Y} (valid until {q.valid_until:%d/%m/%Y})")
    print(f"  Capital:              £{q.capital_component:,.2f}")
    print(f"  Interest to date:     £{q.interest_component:,.2f}  ({q.days_before_settlement} days)")
    print(f"  Settlement figure:    £{q.total_figure:,.2f}")
    print()
    print(f"  Saved this month:     £{q.interest_saved_this_period:,.2f}  ({q.days_after_settlement} days)")
    print(f"  Saved future months:  £{q.future_interest_saved:,.2f}  ({q.months_remaining} months)")
    print(f"  Monthly capital:      £{q.current_monthly_capital:,.2f} -> £{q.new_monthly_capital:,.2f}")
    print()


def print_portfolio(contracts: list[Contract], as_of: date) -> None:
    s = aggregate(contracts, as_of)
    _header(f"Portfolio as of {as_of:%d/%m/%Y}")
    print(f"  Contracts:            {s.active_contracts} active, {s.settled_contracts} settled")
    print(f"  Vehicles:             {s.active_vehicles} active, {s.settled_vehicles} settled")
    print(f"  Capital outstanding:  £{s.capital_outstanding:,.2f}")
    print(f"  Interest outstanding: £{s.interest_outstanding:,.2f}")
    print(f"  Next month capital:   £{s.next_month_capital_due:,.2f}")
    print(f"  Next month interest:  £{s.next_month_interest_due:,.2f}")

    report = maturity_report(contracts, as_of)
    for label, entries in [
        ("within 1 month", report.within_one_month),
        ("within 2 months", report.within_two_months),
        ("within 3 months", report.within_three_months),
    ]:
        if entries:
            print(f"\n  Concluding {label}:")
            for m in entries:
                print(f"    {m.contract_number:<12} {m.end_date:%d/%m/%Y}  ({m.days_until_end} days)")
    print()


def _date_arg(raw: str) -> date:
    parsed = parse_date(raw)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid date: {raw!r} (use DD/MM/YYYY or YYYY-MM-DD)")
    return parsed


def _load(path: str) -> list[Contract]:
    return parse_contracts_csv(Path(path).read_text(encoding="utf-8-sig"))


def _pick(contracts: list[Contract], number: str | None) -> list[Contract]:
    if number is None:
        return contracts
    chosen = [c for c in contracts if c.contract_number == number.upper()]
    if not chosen:
        raise FleetFinanceError(f"Contract {number.upper()} not in file")
    return chosen


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Vehicle finance contract register CLI")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level (default: from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("schedule", help="Month-by-month schedule")
    p.add_argument("csv", help="Contracts CSV file")
    p.add_argument("--contract", help="Only this contract number")

    p = sub.add_parser("statement", help="Statement of account")
    p.add_argument("csv", help="Contracts CSV file")
    p.add_argument("--contract", required=True, help="Contract number")
    p.add_argument("--out", help="Write the statement CSV here instead of printing")

    p = sub.add_parser("quote", help="Early settlement quote for one vehicle")
    p.add_argument("csv", help="Contracts CSV file")
    p.add_argument("--contract", required=True, help="Contract number")
    p.add_argument("--reg", required=True, help="Vehicle registration")
    p.add_argument("--date", type=_date_arg, required=True, help="Settlement date")

    p = sub.add_parser("portfolio", help="Portfolio summary and maturity report")
    p.add_argument("csv", help="Contracts CSV file")
    p.add_argument("--as-of", type=_date_arg, default=None, help="Valuation date (default: today)")

    p = sub.add_parser("lookup", help="Look up a UK registration")
    p.add_argument("registration")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        if args.command == "lookup":
            details = asyncio.run(VehicleLookupClient().lookup(args.registration))
            _header(f"Vehicle: {details.registration}")
            print(f"  Make:       {details.make}")
            print(f"  Model:      {details.model}")
            print(f"  Colour:     {details.colour or 'N/A'}")
            print(f"  Fuel:       {details.fuel_type or 'N/A'}")
            print(f"  Year:       {details.year_of_manufacture or 'N/A'}")
            print()
            return 0

        contracts = _load(args.csv)
        if args.command == "schedule":
            for contract in _pick(contracts, args.contract):
                print_schedule(contract)
        elif args.command == "statement":
            contract = _pick(contracts, args.contract)[0]
            if args.out:
                Path(args.out).write_text(ledger_to_csv(build_ledger(contract)), encoding="utf-8")
                print(f"Wrote {args.out}")
            else:
                print_statement(contract)
        elif args.command == "quote":
            print_quote(_pick(contracts, args.contract)[0], args.reg, args.date)
        elif args.command == "portfolio":
            print_portfolio(contracts, args.as_of or date.today())
    except CsvImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        for err in e.errors:
            print(f"  {err}", file=sys.stderr)
        return 1
    except FleetFinanceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
