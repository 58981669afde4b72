"""Exception hierarchy for the contract register."""


class FleetFinanceError(Exception):
    """Base exception for all register errors."""


# Engine

class ContractDataError(FleetFinanceError):
    """Contract terms are malformed or inconsistent."""


class InvalidSettlementError(FleetFinanceError):
    """A settlement cannot be quoted or confirmed for this vehicle/date."""


class RateChangeError(FleetFinanceError):
    """A base-rate change cannot be applied to the contract."""


# Storage and import

class ContractNotFoundError(FleetFinanceError):
    def __init__(self, contract_number: str):
        self.contract_number = contract_number
        super().__init__(f"Contract {contract_number} not found")


class DuplicateContractError(FleetFinanceError):
    def __init__(self, contract_numbers: list[str]):
        self.contract_numbers = contract_numbers
        super().__init__(f"Contract(s) already exist: {', '.join(contract_numbers)}")


class CsvImportError(FleetFinanceError):
    """One or more rows of an import file are invalid.

    All row problems are collected so the whole file can be fixed in one pass.
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"{len(errors)} error(s) in import file")


class ConfigurationError(FleetFinanceError):
    """A required setting (e.g. an API key) is missing."""


# Vehicle lookup

class VehicleLookupError(FleetFinanceError):
    """The vehicle data service failed or returned an unusable response."""


class InvalidRegistrationError(VehicleLookupError):
    pass


class VehicleNotFoundError(VehicleLookupError):
    pass


class LookupRateLimitedError(VehicleLookupError):
    pass
