"""Portfolio routes: summary, maturity report and payment calendar."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from fleet_finance.api.deps import get_store
from fleet_finance.api.schemas import CalendarDayResponse, MaturityReportResponse, PortfolioSummaryResponse
from fleet_finance.data.store import ContractStore
from fleet_finance.engine.portfolio import aggregate, maturity_report, payment_calendar

router = APIRouter(prefix="/api/v1/portfolio", tags=["portfolio"])


@router.get("", response_model=PortfolioSummaryResponse)
async def get_portfolio_summary(as_of: date | None = None, store: ContractStore = Depends(get_store)):
    """Outstanding capital and interest across active contracts."""
    summary = aggregate(await store.list_contracts(), as_of or date.today())
    return PortfolioSummaryResponse.model_validate(summary)


@router.get("/maturity", response_model=MaturityReportResponse)
async def get_maturity_report(as_of: date | None = None, store: ContractStore = Depends(get_store)):
    """Contracts concluding within the next three months."""
    report = maturity_report(await store.list_contracts(), as_of or date.today())
    return MaturityReportResponse.model_validate(report)


@router.get("/calendar", response_model=list[CalendarDayResponse])
async def get_payment_calendar(
    year: int = Query(..., ge=1900, le=2200),
    month: int = Query(..., ge=1, le=12),
    store: ContractStore = Depends(get_store),
):
    days = payment_calendar(await store.list_contracts(status="ACTIVE"), year, month)
    return [CalendarDayResponse.model_validate(d) for d in days]
