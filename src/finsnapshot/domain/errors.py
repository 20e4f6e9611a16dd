"""Error taxonomy for the fetch-and-reconcile cycle."""
from __future__ import annotations

from typing import Optional


class FinancialDataError(Exception):
    """Base class for failures surfaced to the caller of a cycle."""


class NoDataError(FinancialDataError):
    """Every statement array came back empty for the symbol."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"No data available for {symbol}.")
        self.symbol = symbol


class UnmappableDataError(FinancialDataError):
    """Reports existed but none carried a usable fiscal year."""

    def __init__(self, symbol: str) -> None:
        super().__init__(
            f"Provider returned reports for {symbol}, but no fiscal year could be extracted from them."
        )
        self.symbol = symbol


class TransportError(FinancialDataError):
    """An adapter's HTTP call did not succeed."""

    def __init__(self, provider: str, resource: str, detail: Optional[str] = None) -> None:
        message = f"{provider} request for {resource} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.provider = provider
        self.resource = resource


class UnknownProviderError(FinancialDataError, ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown provider: {name!r}")
        self.name = name
