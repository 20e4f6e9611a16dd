"""Provider adapter contract and the concurrent statement fetch."""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import httpx

from finsnapshot.domain.errors import TransportError
from finsnapshot.domain.models.financials import CompanyProfile, RawReport, StatementBundle

logger = logging.getLogger(__name__)

# Semantic field name -> candidate provider field names, first present wins.
FieldMap = Mapping[str, Sequence[str]]


class StatementProvider(ABC):
    """Fetch provider-native annual reports and rename them to semantic fields."""

    name: str = "provider"

    @abstractmethod
    async def fetch_income(self, symbol: str) -> List[RawReport]:
        ...

    @abstractmethod
    async def fetch_balance(self, symbol: str) -> List[RawReport]:
        ...

    @abstractmethod
    async def fetch_cash_flow(self, symbol: str) -> List[RawReport]:
        ...

    async def fetch_profile(self, symbol: str) -> Optional[CompanyProfile]:
        return None

    async def aclose(self) -> None:
        return None


class HttpStatementProvider(StatementProvider):
    """Shared httpx plumbing for JSON-over-HTTP providers."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        proxy_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        client_kwargs: Dict[str, Any] = {"timeout": httpx.Timeout(timeout, connect=10.0)}
        if proxy_url:
            client_kwargs["proxy"] = proxy_url
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    async def _get_json(self, url: str, params: Dict[str, Any], resource: str) -> Any:
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(self.name, resource, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(self.name, resource, str(exc) or exc.__class__.__name__) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(self.name, resource, "response was not valid JSON") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


def rename_fields(
    payload: Mapping[str, Any],
    period_keys: Sequence[str],
    field_map: FieldMap,
) -> RawReport:
    """Build a RawReport from one provider record using a candidate-name map."""
    period = _first_present(payload, period_keys)
    values: Dict[str, Any] = {}
    for semantic, candidates in field_map.items():
        value = _first_present(payload, candidates)
        if value is not None:
            values[semantic] = value
    return RawReport(period_end_date=None if period is None else str(period), values=values)


def rename_all(payloads: Iterable[Any], period_keys: Sequence[str], field_map: FieldMap) -> List[RawReport]:
    return [rename_fields(p, period_keys, field_map) for p in payloads if isinstance(p, Mapping)]


def _first_present(payload: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    for key in candidates:
        value = payload.get(key)
        if value is None:
            continue
        # Alpha Vantage spells a missing value as the string "None".
        if isinstance(value, str) and value.strip() in {"", "None"}:
            continue
        return value
    return None


_STATEMENT_LABELS = ("income", "balance", "cash_flow")


async def fetch_statement_bundle(
    provider: StatementProvider,
    symbol: str,
    *,
    tolerate_partial_failure: bool = False,
) -> StatementBundle:
    """Fetch all three statements and the profile concurrently.

    Every request settles before any result is inspected. In strict mode the
    first statement failure is re-raised; in tolerant mode a TransportError
    degrades that statement to an empty array. Profile failures only cost
    the company name.
    """
    results = await asyncio.gather(
        provider.fetch_income(symbol),
        provider.fetch_balance(symbol),
        provider.fetch_cash_flow(symbol),
        provider.fetch_profile(symbol),
        return_exceptions=True,
    )
    *statement_results, profile_result = results

    statements: Dict[str, List[RawReport]] = {}
    for label, result in zip(_STATEMENT_LABELS, statement_results):
        if isinstance(result, BaseException):
            if tolerate_partial_failure and isinstance(result, TransportError):
                logger.warning("%s %s fetch failed for %s; continuing without it: %s", provider.name, label, symbol, result)
                statements[label] = []
                continue
            raise result
        statements[label] = list(result or [])

    profile: Optional[CompanyProfile] = None
    if isinstance(profile_result, BaseException):
        if not isinstance(profile_result, Exception):
            raise profile_result
        logger.warning("%s profile fetch failed for %s: %s", provider.name, symbol, profile_result)
    else:
        profile = profile_result

    return StatementBundle(
        symbol=symbol,
        provider=provider.name,
        income=statements["income"],
        balance=statements["balance"],
        cash_flow=statements["cash_flow"],
        profile=profile,
    )
