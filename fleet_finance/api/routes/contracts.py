"""Contract routes: CRUD, schedule, settlement, rate changes and statements."""

from dataclasses import replace
from datetime import date

from fastapi import APIRouter, Depends, Request, Response

from fleet_finance.api.deps import get_store
from fleet_finance.api.schemas import (
    ContractCreate,
    ContractMetricsResponse,
    ContractResponse,
    ContractTerms,
    ImportResponse,
    MonthEntryResponse,
    RateChangeRequest,
    ScheduleResponse,
    SettlementQuoteResponse,
    SettlementRequest,
    StatementResponse,
    StatementSummaryResponse,
    TransactionResponse,
)
from fleet_finance.config import settings
from fleet_finance.data.csv_export import ledger_to_csv, statement_filename
from fleet_finance.data.csv_import import parse_contracts_csv
from fleet_finance.data.store import ContractStore
from fleet_finance.engine.dates import day_distribution
from fleet_finance.engine.metrics import contract_metrics
from fleet_finance.engine.schedule import build_schedule, schedule_totals
from fleet_finance.engine.settlement import quote_settlement
from fleet_finance.engine.statement import build_ledger, summarize_ledger

router = APIRouter(prefix="/api/v1/contracts", tags=["contracts"])


@router.get("", response_model=list[ContractResponse])
async def list_contracts(status: str | None = None, store: ContractStore = Depends(get_store)):
    """List contracts, optionally filtered by ACTIVE/SETTLED."""
    return [ContractResponse.from_contract(c) for c in await store.list_contracts(status)]


@router.post("", response_model=ContractResponse, status_code=201)
async def create_contract(req: ContractCreate, store: ContractStore = Depends(get_store)):
    contract = await store.add_contract(req.to_contract(req.contract_number))
    return ContractResponse.from_contract(contract)


@router.post("/import", response_model=ImportResponse, status_code=201)
async def import_contracts(request: Request, store: ContractStore = Depends(get_store)):
    """Import contracts from a CSV request body. All or nothing."""
    text = (await request.body()).decode("utf-8-sig")
    contracts = await store.add_contracts(parse_contracts_csv(text))
    return ImportResponse(
        imported=len(contracts),
        contract_numbers=[c.contract_number for c in contracts],
    )


@router.get("/{contract_number}", response_model=ContractResponse)
async def get_contract(contract_number: str, store: ContractStore = Depends(get_store)):
    return ContractResponse.from_contract(await store.get_contract(contract_number))


@router.put("/{contract_number}", response_model=ContractResponse)
async def update_contract(
    contract_number: str, req: ContractTerms, store: ContractStore = Depends(get_store)
):
    """Edit terms or vehicle details. Recorded settlements must be kept."""
    existing = await store.get_contract(contract_number)
    contract = req.to_contract(existing.contract_number)
    contract = await store.update_contract(replace(contract, rate_history=existing.rate_history))
    return ContractResponse.from_contract(contract)


@router.delete("/{contract_number}", status_code=204)
async def delete_contract(contract_number: str, store: ContractStore = Depends(get_store)):
    await store.delete_contract(contract_number)


@router.get("/{contract_number}/schedule", response_model=ScheduleResponse)
async def get_schedule(contract_number: str, store: ContractStore = Depends(get_store)):
    contract = await store.get_contract(contract_number)
    schedule = build_schedule(contract)
    totals = schedule_totals(schedule)
    return ScheduleResponse(
        contract_number=contract.contract_number,
        entries=[MonthEntryResponse.model_validate(e) for e in schedule],
        total_capital=totals["capital"],
        total_settled_capital=totals["settled_capital"],
        total_interest=totals["interest"],
        total_payable=totals["total_payable"],
        period_lengths=day_distribution(contract.first_instalment_date, contract.total_instalments),
    )


@router.get("/{contract_number}/metrics", response_model=ContractMetricsResponse)
async def get_metrics(
    contract_number: str, as_of: date | None = None, store: ContractStore = Depends(get_store)
):
    contract = await store.get_contract(contract_number)
    return ContractMetricsResponse.model_validate(contract_metrics(contract, as_of or date.today()))


@router.post("/{contract_number}/settlement-quote", response_model=SettlementQuoteResponse)
async def get_settlement_quote(
    contract_number: str, req: SettlementRequest, store: ContractStore = Depends(get_store)
):
    """Quote an early settlement. Nothing is saved."""
    contract = await store.get_contract(contract_number)
    quote = quote_settlement(
        contract,
        req.registration,
        req.settlement_date,
        validity_days=settings.settlement_quote_validity_days,
    )
    return SettlementQuoteResponse.model_validate(quote)


@router.post("/{contract_number}/settlements", response_model=ContractResponse)
async def confirm_vehicle_settlement(
    contract_number: str, req: SettlementRequest, store: ContractStore = Depends(get_store)
):
    contract = await store.settle_vehicle(contract_number, req.registration, req.settlement_date)
    return ContractResponse.from_contract(contract)


@router.post("/{contract_number}/rate-changes", response_model=ContractResponse)
async def record_base_rate_change(
    contract_number: str, req: RateChangeRequest, store: ContractStore = Depends(get_store)
):
    contract = await store.record_rate_change(contract_number, req.effective_date, req.new_base_rate)
    return ContractResponse.from_contract(contract)


@router.get("/{contract_number}/statement", response_model=StatementResponse)
async def get_statement(contract_number: str, store: ContractStore = Depends(get_store)):
    contract = await store.get_contract(contract_number)
    ledger = build_ledger(contract)
    return StatementResponse(
        contract_number=contract.contract_number,
        transactions=[TransactionResponse.model_validate(t) for t in ledger],
        summary=StatementSummaryResponse.model_validate(summarize_ledger(ledger)),
    )


@router.get("/{contract_number}/statement.csv")
async def download_statement(contract_number: str, store: ContractStore = Depends(get_store)):
    contract = await store.get_contract(contract_number)
    filename = statement_filename(contract.contract_number, date.today())
    return Response(
        content=ledger_to_csv(build_ledger(contract)),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
