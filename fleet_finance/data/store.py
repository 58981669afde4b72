"""Contract persistence over an async SQLAlchemy session.

The store converts between ContractRecord rows and Contract dataclasses.
Every mutation runs the pure engine function on the loaded contract and
writes the result back inside one transaction.
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_finance.engine.rates import record_rate_change
from fleet_finance.engine.schedule import validate_contract
from fleet_finance.engine.settlement import confirm_settlement
from fleet_finance.errors import (
    ContractDataError,
    ContractNotFoundError,
    DuplicateContractError,
    RateChangeError,
)
from fleet_finance.models.contract import (
    Contract,
    InterestType,
    RateChange,
    Vehicle,
    VehicleStatus,
    normalize_registration,
)
from fleet_finance.models.db import ContractRecord

logger = logging.getLogger(__name__)


def _vehicle_to_json(v: Vehicle) -> dict:
    return {
        "registration": v.registration,
        "make": v.make,
        "model": v.model,
        "status": v.status.value,
        "settled_date": v.settled_date.isoformat() if v.settled_date else None,
    }


def _vehicle_from_json(data: dict) -> Vehicle:
    settled = data.get("settled_date")
    return Vehicle(
        registration=data["registration"],
        make=data.get("make", ""),
        model=data.get("model", ""),
        status=VehicleStatus(data.get("status", "ACTIVE")),
        settled_date=date.fromisoformat(settled) if settled else None,
    )


def _rate_change_to_json(c: RateChange) -> dict:
    return {
        "effective_date": c.effective_date.isoformat(),
        "old_base_rate": str(c.old_base_rate),
        "new_base_rate": str(c.new_base_rate),
        "old_effective_rate": str(c.old_effective_rate),
        "new_effective_rate": str(c.new_effective_rate),
    }


def _rate_change_from_json(data: dict) -> RateChange:
    return RateChange(
        effective_date=date.fromisoformat(data["effective_date"]),
        old_base_rate=Decimal(data["old_base_rate"]),
        new_base_rate=Decimal(data["new_base_rate"]),
        old_effective_rate=Decimal(data["old_effective_rate"]),
        new_effective_rate=Decimal(data["new_effective_rate"]),
    )


def record_to_contract(record: ContractRecord) -> Contract:
    return Contract(
        contract_number=record.contract_number,
        total_capital=Decimal(record.total_capital),
        total_instalments=record.total_instalments,
        first_instalment_date=record.first_instalment_date,
        interest_type=InterestType(record.interest_type),
        original_vehicle_count=record.original_vehicle_count,
        total_interest=Decimal(record.total_interest or 0),
        base_rate=Decimal(record.base_rate or 0),
        margin=Decimal(record.margin or 0),
        vehicles=tuple(_vehicle_from_json(v) for v in record.vehicles or []),
        rate_history=tuple(_rate_change_from_json(c) for c in record.rate_history or []),
    )


def apply_contract(record: ContractRecord, contract: Contract) -> ContractRecord:
    """Copy contract terms and cached figures onto a row."""
    record.total_capital = contract.total_capital
    record.total_instalments = contract.total_instalments
    record.first_instalment_date = contract.first_instalment_date
    record.interest_type = contract.interest_type.value
    record.total_interest = contract.total_interest
    record.base_rate = contract.base_rate
    record.margin = contract.margin
    record.original_vehicle_count = contract.original_vehicle_count
    record.vehicles = [_vehicle_to_json(v) for v in contract.vehicles]
    record.rate_history = [_rate_change_to_json(c) for c in contract.rate_history]
    record.status = contract.status.value
    record.active_vehicles_count = contract.active_vehicles_count
    record.current_monthly_capital = contract.current_monthly_capital
    record.per_vehicle_capital_rate = contract.per_vehicle_capital_rate.quantize(Decimal("0.01"))
    return record


class ContractStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load(self, contract_number: str, for_update: bool = False) -> ContractRecord:
        stmt = select(ContractRecord).where(ContractRecord.contract_number == contract_number.upper())
        if for_update:
            stmt = stmt.with_for_update()
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        if record is None:
            raise ContractNotFoundError(contract_number.upper())
        return record

    async def get_contract(self, contract_number: str) -> Contract:
        return record_to_contract(await self._load(contract_number))

    async def list_contracts(self, status: str | None = None) -> list[Contract]:
        stmt = select(ContractRecord).order_by(ContractRecord.contract_number)
        if status:
            stmt = stmt.where(ContractRecord.status == status.upper())
        result = await self.session.execute(stmt)
        return [record_to_contract(r) for r in result.scalars()]

    async def find_by_registration(self, registration: str) -> list[Contract]:
        """Contracts carrying a vehicle whose registration contains the search term."""
        term = normalize_registration(registration)
        if not term:
            return []
        return [
            c for c in await self.list_contracts()
            if any(term in v.registration for v in c.vehicles)
        ]

    async def add_contracts(self, contracts: list[Contract]) -> list[Contract]:
        """Insert contracts atomically; nothing is written if any number exists."""
        for contract in contracts:
            validate_contract(contract)

        numbers = [c.contract_number for c in contracts]
        existing = await self.session.execute(
            select(ContractRecord.contract_number).where(ContractRecord.contract_number.in_(numbers))
        )
        clashes = sorted(set(existing.scalars()) | {n for n in numbers if numbers.count(n) > 1})
        if clashes:
            raise DuplicateContractError(clashes)

        for contract in contracts:
            self.session.add(apply_contract(ContractRecord(contract_number=contract.contract_number), contract))
        await self.session.commit()
        logger.info("Added %d contract(s): %s", len(contracts), ", ".join(numbers))
        return contracts

    async def add_contract(self, contract: Contract) -> Contract:
        await self.add_contracts([contract])
        return contract

    async def update_contract(self, contract: Contract) -> Contract:
        """Replace the stored terms and vehicles of an existing contract."""
        validate_contract(contract)
        record = await self._load(contract.contract_number, for_update=True)
        current = record_to_contract(record)
        if contract.interest_type == current.interest_type == InterestType.VARIABLE and (
            contract.base_rate != current.base_rate or contract.margin != current.margin
        ):
            await self.session.rollback()
            raise RateChangeError(
                f"Base rate and margin on {contract.contract_number} cannot be edited; "
                "record base rate changes through /rate-changes"
            )
        for settled in (v for v in current.vehicles if v.is_settled):
            edited = contract.vehicle(settled.registration)
            if edited is None or edited.settled_date != settled.settled_date:
                await self.session.rollback()
                raise ContractDataError(
                    f"Vehicle {settled.registration} settled on {settled.settled_date}; "
                    "settlements cannot be edited or removed"
                )
        apply_contract(record, contract)
        await self.session.commit()
        logger.info("Updated contract %s", contract.contract_number)
        return contract

    async def delete_contract(self, contract_number: str) -> None:
        result = await self.session.execute(
            delete(ContractRecord).where(ContractRecord.contract_number == contract_number.upper())
        )
        if result.rowcount == 0:
            await self.session.rollback()
            raise ContractNotFoundError(contract_number.upper())
        await self.session.commit()
        logger.info("Deleted contract %s", contract_number.upper())

    async def settle_vehicle(self, contract_number: str, registration: str, settlement_date: date) -> Contract:
        record = await self._load(contract_number, for_update=True)
        try:
            contract = confirm_settlement(record_to_contract(record), registration, settlement_date)
        except Exception:
            await self.session.rollback()
            raise
        apply_contract(record, contract)
        await self.session.commit()
        logger.info(
            "Settled %s on %s for %s (%d vehicle(s) remain active)",
            normalize_registration(registration), settlement_date, contract.contract_number,
            contract.active_vehicles_count,
        )
        return contract

    async def record_rate_change(
        self, contract_number: str, effective_date: date, new_base_rate: Decimal
    ) -> Contract:
        record = await self._load(contract_number, for_update=True)
        try:
            contract = record_rate_change(record_to_contract(record), effective_date, new_base_rate)
        except Exception:
            await self.session.rollback()
            raise
        apply_contract(record, contract)
        await self.session.commit()
        logger.info(
            "Base rate on %s changed to %s from %s", contract.contract_number, new_base_rate, effective_date
        )
        return contract
