"""Bulk contract import from CSV.

One row per vehicle. Rows sharing a contract number form one contract;
the contract terms are read from the first row for that number. Every row
problem is collected and reported together.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from fleet_finance.errors import CsvImportError
from fleet_finance.models.contract import (
    Contract,
    InterestType,
    Vehicle,
    VehicleStatus,
    normalize_registration,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    "contract number",
    "total capital",
    "interest type",
    "total instalments",
    "first instalment date",
]

TEMPLATE_COLUMNS = [
    "Contract Number",
    "Total Capital",
    "Interest Type",
    "Total Interest",
    "Base Rate",
    "Margin",
    "Total Instalments",
    "First Instalment Date",
    "Vehicle Registration",
    "Vehicle Make",
    "Vehicle Model",
    "Vehicle Status",
    "Settled Date",
]

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")


def parse_date(raw: str) -> date | None:
    """Parse DD/MM/YYYY, DD-MM-YYYY or YYYY-MM-DD. None if unparseable."""
    raw = raw.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def _decimal(raw: str) -> Decimal | None:
    raw = raw.strip().replace(",", "").lstrip("£")
    if not raw:
        return Decimal("0")
    try:
        return Decimal(raw)
    except InvalidOperation:
        return None


@dataclass
class _Draft:
    contract_number: str
    total_capital: Decimal
    interest_type: InterestType
    total_instalments: int
    first_instalment_date: date
    total_interest: Decimal
    base_rate: Decimal
    margin: Decimal
    vehicles: list[Vehicle] = field(default_factory=list)


def _parse_terms(row: dict[str, str], row_num: int, errors: list[str]) -> _Draft | None:
    number = row.get("contract number", "").strip().upper()
    start = len(errors)

    capital = _decimal(row.get("total capital", ""))
    if capital is None or capital <= 0:
        errors.append(f"Row {row_num}: Total capital must be greater than 0")

    interest_raw = row.get("interest type", "").strip().upper() or "FIXED"
    interest_type = None
    try:
        interest_type = InterestType(interest_raw)
    except ValueError:
        errors.append(f"Row {row_num}: Interest type must be 'fixed' or 'variable'")

    instalments = 0
    try:
        instalments = int(row.get("total instalments", "").strip())
    except ValueError:
        pass
    if instalments <= 0:
        errors.append(f"Row {row_num}: Total instalments must be greater than 0")

    raw_date = row.get("first instalment date", "").strip()
    first = parse_date(raw_date) if raw_date else None
    if not raw_date:
        errors.append(f"Row {row_num}: First instalment date is required")
    elif first is None:
        errors.append(
            f"Row {row_num}: First instalment date must be DD/MM/YYYY, DD-MM-YYYY or YYYY-MM-DD"
        )

    total_interest = _decimal(row.get("total interest", ""))
    base_rate = _decimal(row.get("base rate", ""))
    margin = _decimal(row.get("margin", ""))
    if interest_type == InterestType.FIXED and (total_interest is None or total_interest < 0):
        errors.append(f"Row {row_num}: Total interest cannot be negative for fixed interest")
    if interest_type == InterestType.VARIABLE and (
        base_rate is None or margin is None or base_rate < 0 or margin < 0
    ):
        errors.append(f"Row {row_num}: Base rate and margin must be non-negative for variable interest")

    if len(errors) > start:
        return None
    return _Draft(
        contract_number=number,
        total_capital=capital,
        interest_type=interest_type,
        total_instalments=instalments,
        first_instalment_date=first,
        total_interest=total_interest if interest_type == InterestType.FIXED else Decimal("0"),
        base_rate=base_rate if interest_type == InterestType.VARIABLE else Decimal("0"),
        margin=margin if interest_type == InterestType.VARIABLE else Decimal("0"),
    )


def _parse_vehicle(row: dict[str, str], row_num: int, errors: list[str]) -> Vehicle | None:
    start = len(errors)
    registration = normalize_registration(row.get("vehicle registration", ""))
    make = row.get("vehicle make", "").strip()
    model = row.get("vehicle model", "").strip()
    if not registration:
        errors.append(f"Row {row_num}: Vehicle registration is required")
    if not make:
        errors.append(f"Row {row_num}: Vehicle make is required")
    if not model:
        errors.append(f"Row {row_num}: Vehicle model is required")

    settled = row.get("vehicle status", "").strip().upper() == "SETTLED"
    raw_settled = row.get("settled date", "").strip()
    settled_date = parse_date(raw_settled) if raw_settled else None
    if raw_settled and settled_date is None:
        errors.append(f"Row {row_num}: Settled date must be DD/MM/YYYY, DD-MM-YYYY or YYYY-MM-DD")
    elif settled and settled_date is None:
        errors.append(f"Row {row_num}: Settled vehicles need a settled date")

    if len(errors) > start:
        return None
    return Vehicle(
        registration=registration,
        make=make,
        model=model,
        status=VehicleStatus.SETTLED if settled else VehicleStatus.ACTIVE,
        settled_date=settled_date if settled else None,
    )


def parse_contracts_csv(text: str) -> list[Contract]:
    """Parse an import file into contracts, in file order.

    Raises:
        CsvImportError: With every row error found, if any.
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if reader.fieldnames is None:
        raise CsvImportError(["File is empty"])

    headers = [h.strip().lower() for h in reader.fieldnames]
    missing = [c for c in REQUIRED_COLUMNS if c not in headers]
    if missing:
        raise CsvImportError([f"Missing required column(s): {', '.join(missing)}"])

    errors: list[str] = []
    drafts: dict[str, _Draft] = {}
    for row_num, raw in enumerate(reader, start=2):
        row = {h: (raw.get(f) or "") for h, f in zip(headers, reader.fieldnames)}
        if not any(v.strip() for v in row.values()):
            continue

        number = row.get("contract number", "").strip().upper()
        if not number:
            errors.append(f"Row {row_num}: Contract number is required")
            continue

        if number not in drafts:
            draft = _parse_terms(row, row_num, errors)
            if draft is None:
                continue
            drafts[number] = draft

        vehicle = _parse_vehicle(row, row_num, errors)
        if vehicle is None:
            continue
        draft = drafts[number]
        if any(v.registration == vehicle.registration for v in draft.vehicles):
            errors.append(f"Row {row_num}: Duplicate registration {vehicle.registration} on {number}")
            continue
        draft.vehicles.append(vehicle)

    if errors:
        logger.warning("CSV import rejected with %d error(s)", len(errors))
        raise CsvImportError(errors)

    contracts = [
        Contract(
            contract_number=d.contract_number,
            total_capital=d.total_capital,
            total_instalments=d.total_instalments,
            first_instalment_date=d.first_instalment_date,
            interest_type=d.interest_type,
            original_vehicle_count=len(d.vehicles),
            total_interest=d.total_interest,
            base_rate=d.base_rate,
            margin=d.margin,
            vehicles=tuple(d.vehicles),
        )
        for d in drafts.values()
        if d.vehicles
    ]
    logger.info("Parsed %d contract(s) from CSV", len(contracts))
    return contracts


def import_template() -> str:
    """Header plus one example row, for users to fill in."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(TEMPLATE_COLUMNS)
    writer.writerow([
        "CON001", "50000", "fixed", "5000", "", "", "36", "15/01/2024",
        "AB12CDE", "Ford", "Transit", "active", "",
    ])
    return buf.getvalue()
