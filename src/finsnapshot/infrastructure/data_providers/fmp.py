"""Financial Modeling Prep adapter."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from finsnapshot.domain.models.financials import CompanyProfile, RawReport
from finsnapshot.domain.services.parsing import parse_number
from finsnapshot.infrastructure.data_providers.base import HttpStatementProvider, rename_all

logger = logging.getLogger(__name__)

PERIOD_KEYS = ("date", "fiscalDateEnding")

INCOME_MAP = {
    "total_revenue": ["revenue"],
    "operating_income": ["operatingIncome"],
    "depreciation_and_amortization": ["depreciationAndAmortization"],
    "net_income": ["netIncome"],
}

BALANCE_MAP = {
    "total_shareholder_equity": ["totalStockholdersEquity", "totalShareholderEquity"],
    "short_term_debt": ["shortTermDebt"],
    "long_term_debt": ["longTermDebt"],
    "total_liabilities": ["totalLiabilities"],
    "receivables": ["netReceivables", "accountReceivables"],
    "inventory": ["inventory"],
    "cash_and_equivalents": ["cashAndCashEquivalents"],
    "short_term_investments": ["shortTermInvestments"],
    "long_term_investments": ["longTermInvestments"],
    "accounts_payable": ["accountPayables"],
}

CASHFLOW_MAP = {
    "operating_cash_flow": ["netCashProvidedByOperatingActivities", "operatingCashFlow"],
    "capital_expenditures": ["capitalExpenditure"],
    "dividends_paid": ["dividendsPaid"],
}

# FMP signs cash outflows negative; Alpha Vantage reports magnitudes.
_OUTFLOW_FIELDS = ("capital_expenditures", "dividends_paid")


class FMPProvider(HttpStatementProvider):
    """Query the profile and annual statement endpoints of the v3 API."""

    name = "fmp"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://financialmodelingprep.com/api/v3",
        limit: int = 5,
        timeout: float = 30.0,
        proxy_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("FMP API key is missing; set FMP_API_KEY.")
        super().__init__(timeout=timeout, proxy_url=proxy_url, transport=transport)
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._limit = limit

    async def fetch_income(self, symbol: str) -> List[RawReport]:
        rows = await self._statement("income-statement", symbol)
        return rename_all(rows, PERIOD_KEYS, INCOME_MAP)

    async def fetch_balance(self, symbol: str) -> List[RawReport]:
        rows = await self._statement("balance-sheet-statement", symbol)
        return rename_all(rows, PERIOD_KEYS, BALANCE_MAP)

    async def fetch_cash_flow(self, symbol: str) -> List[RawReport]:
        rows = await self._statement("cash-flow-statement", symbol)
        reports = rename_all(rows, PERIOD_KEYS, CASHFLOW_MAP)
        for report in reports:
            for key in _OUTFLOW_FIELDS:
                if key in report.values:
                    report.values[key] = _as_outflow(report.values[key])
        return reports

    async def fetch_profile(self, symbol: str) -> Optional[CompanyProfile]:
        payload = await self._get(f"profile/{quote(symbol)}", {}, resource="profile")
        if not isinstance(payload, list) or not payload or not isinstance(payload[0], dict):
            return None
        first = payload[0]
        return CompanyProfile(
            symbol=first.get("symbol") or symbol,
            name=first.get("companyName"),
            sector=first.get("sector"),
            industry=first.get("industry"),
            currency=first.get("currency"),
        )

    async def _statement(self, endpoint: str, symbol: str) -> List[Dict[str, Any]]:
        params = {"period": "annual", "limit": self._limit}
        payload = await self._get(f"{endpoint}/{quote(symbol)}", params, resource=endpoint)
        if not isinstance(payload, list):
            message = payload.get("Error Message") if isinstance(payload, dict) else None
            logger.warning("FMP %s returned no report array for %s: %s", endpoint, symbol, message or payload)
            return []
        return payload

    async def _get(self, path: str, params: Dict[str, Any], resource: str) -> Any:
        query = dict(params)
        query["apikey"] = self._api_key
        return await self._get_json(f"{self._base_url}/{path}", query, resource=resource)


def _as_outflow(value: Any) -> Any:
    number = parse_number(value)
    return value if number is None else abs(number)
