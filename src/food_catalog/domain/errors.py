"""Errors raised by the food ingestion pipeline."""


class FoodCatalogError(Exception):
    """Base error for the food catalog."""


class ProviderUnavailable(FoodCatalogError):
    """A nutrition provider call failed or returned a non-success status."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class MalformedProviderPayload(ProviderUnavailable):
    """A provider response could not be parsed at all."""


class CatalogWriteFailure(FoodCatalogError):
    """The catalog merge transaction failed; nothing was written."""


class FoodSearchUnavailable(FoodCatalogError):
    """No provider could answer a search."""
