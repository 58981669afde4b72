"""Vehicle routes: registration search and UK vehicle data lookup."""

from fastapi import APIRouter, Depends

from fleet_finance.api.deps import get_store, get_vehicle_lookup
from fleet_finance.api.schemas import ContractResponse, VehicleDetailsResponse
from fleet_finance.data.store import ContractStore
from fleet_finance.data.vehicle_lookup import VehicleLookupClient

router = APIRouter(prefix="/api/v1/vehicles", tags=["vehicles"])


@router.get("/search/{registration}", response_model=list[ContractResponse])
async def search_by_registration(registration: str, store: ContractStore = Depends(get_store)):
    """Contracts holding a vehicle whose registration matches."""
    return [ContractResponse.from_contract(c) for c in await store.find_by_registration(registration)]


@router.get("/lookup/{registration}", response_model=VehicleDetailsResponse)
async def lookup_vehicle(registration: str, client: VehicleLookupClient = Depends(get_vehicle_lookup)):
    """Make and model for a plate, for pre-filling new contracts."""
    return VehicleDetailsResponse.model_validate(await client.lookup(registration))
