"""FastAPI dependency injection."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from fleet_finance.config import settings
from fleet_finance.data.store import ContractStore
from fleet_finance.data.vehicle_lookup import VehicleLookupClient

engine = create_async_engine(settings.database_url, echo=settings.debug)
async_session = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncSession:
    async with async_session() as session:
        yield session


def get_store(db: AsyncSession = Depends(get_db)) -> ContractStore:
    return ContractStore(db)


def get_vehicle_lookup() -> VehicleLookupClient:
    return VehicleLookupClient()
