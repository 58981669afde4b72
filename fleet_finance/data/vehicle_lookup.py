"""UK Vehicle Data client for registration lookups."""

import logging
from dataclasses import dataclass

import httpx

from fleet_finance.config import settings
from fleet_finance.errors import (
    ConfigurationError,
    InvalidRegistrationError,
    LookupRateLimitedError,
    VehicleLookupError,
    VehicleNotFoundError,
)
from fleet_finance.models.contract import normalize_registration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VehicleDetails:
    registration: str
    make: str
    model: str
    colour: str | None = None
    fuel_type: str | None = None
    year_of_manufacture: int | None = None
    date_first_registered: str | None = None


class VehicleLookupClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.vehicle_api_key
        self.base_url = base_url or settings.vehicle_api_url
        self.timeout = timeout or settings.vehicle_api_timeout
        self.transport = transport

    async def _get(self, registration: str) -> dict:
        params = {
            "v": "2",
            "api_nullitems": "1",
            "auth_apikey": self.api_key,
            "user_tag": "",
            "key_VRM": registration,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.get(self.base_url, params=params)
            resp.raise_for_status()
            return resp.json()

    async def lookup(self, registration: str) -> VehicleDetails:
        """Fetch make, model and registration details for a UK plate.

        Raises:
            InvalidRegistrationError: Blank registration
            ConfigurationError: No API key configured
            VehicleNotFoundError: The service has no record of the plate
            LookupRateLimitedError: HTTP 429 from the service
            VehicleLookupError: Any other upstream failure
        """
        reg = normalize_registration(registration or "")
        if not reg:
            raise InvalidRegistrationError("Registration number is required")
        if not self.api_key:
            raise ConfigurationError("Vehicle lookup API key not configured")

        try:
            data = await self._get(reg)
        except httpx.HTTPStatusError as e:
            logger.warning("Vehicle lookup failed for %s: %s", reg, e)
            if e.response.status_code == 429:
                raise LookupRateLimitedError("Vehicle lookup rate limit reached") from e
            raise VehicleLookupError(f"Vehicle data service error: {e.response.status_code}") from e
        except (httpx.RequestError, ValueError) as e:
            logger.warning("Vehicle lookup failed for %s: %s", reg, e)
            raise VehicleLookupError(f"Failed to look up vehicle: {e}") from e

        response = data.get("Response") or {}
        if response.get("StatusCode") != "Success":
            raise VehicleNotFoundError(response.get("StatusMessage") or "Vehicle not found")

        items = response.get("DataItems")
        if not items:
            raise VehicleNotFoundError("Vehicle data not available")

        year = items.get("YearOfManufacture")
        return VehicleDetails(
            registration=items.get("Vrm") or reg,
            make=items.get("Make") or "Unknown",
            model=items.get("Model") or "Unknown",
            colour=items.get("Colour"),
            fuel_type=items.get("FuelType"),
            year_of_manufacture=int(year) if year else None,
            date_first_registered=items.get("DateFirstRegistered"),
        )
