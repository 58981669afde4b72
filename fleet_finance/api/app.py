"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fleet_finance.api.deps import engine
from fleet_finance.api.routes import contracts, portfolio, vehicles
from fleet_finance.config import settings
from fleet_finance.errors import (
    ConfigurationError,
    ContractDataError,
    ContractNotFoundError,
    CsvImportError,
    DuplicateContractError,
    FleetFinanceError,
    InvalidRegistrationError,
    InvalidSettlementError,
    LookupRateLimitedError,
    RateChangeError,
    VehicleLookupError,
    VehicleNotFoundError,
)
from fleet_finance.logging import setup_logging
from fleet_finance.models.db import Base

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS: list[tuple[type[FleetFinanceError], int]] = [
    (ContractNotFoundError, 404),
    (DuplicateContractError, 409),
    (InvalidSettlementError, 409),
    (ContractDataError, 422),
    (RateChangeError, 422),
    (CsvImportError, 422),
    (InvalidRegistrationError, 400),
    (VehicleNotFoundError, 404),
    (LookupRateLimitedError, 429),
    (ConfigurationError, 503),
    (VehicleLookupError, 502),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, settings.log_format)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Fleet Finance API started")
    yield
    await engine.dispose()


app = FastAPI(
    title="Fleet Finance",
    description="Vehicle finance contract register",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(contracts.router)
app.include_router(portfolio.router)
app.include_router(vehicles.router)


@app.exception_handler(FleetFinanceError)
async def handle_domain_error(request: Request, exc: FleetFinanceError):
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    content: dict = {"detail": str(exc)}
    if isinstance(exc, CsvImportError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=status_code, content=content)


@app.get("/health")
async def health():
    return {"status": "ok"}
