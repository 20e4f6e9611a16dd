"""Alpha Vantage fundamentals adapter."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from finsnapshot.domain.models.financials import CompanyProfile, RawReport
from finsnapshot.infrastructure.data_providers.base import HttpStatementProvider, rename_all

logger = logging.getLogger(__name__)

PERIOD_KEYS = ("fiscalDateEnding",)

INCOME_MAP = {
    "total_revenue": ["totalRevenue"],
    "operating_income": ["operatingIncome"],
    "depreciation_and_amortization": ["depreciationAndAmortization"],
    "net_income": ["netIncome"],
}

BALANCE_MAP = {
    "total_shareholder_equity": ["totalShareholderEquity"],
    "short_term_debt": ["shortTermDebt"],
    "long_term_debt": ["longTermDebtNoncurrent", "longTermDebt"],
    "total_liabilities": ["totalLiabilities"],
    "receivables": ["currentNetReceivables"],
    "inventory": ["inventory"],
    "cash_and_equivalents": ["cashAndCashEquivalentsAtCarryingValue"],
    "short_term_investments": ["shortTermInvestments"],
    "long_term_investments": ["longTermInvestments"],
    "accounts_payable": ["currentAccountsPayable"],
}

CASHFLOW_MAP = {
    "operating_cash_flow": ["operatingCashflow"],
    "capital_expenditures": ["capitalExpenditures"],
    "dividends_paid": ["dividendPayout"],
}

# Advisory keys Alpha Vantage returns with HTTP 200 (rate limits, bad symbols).
_ADVISORY_KEYS = ("Information", "Note", "Error Message")


class AlphaVantageProvider(HttpStatementProvider):
    """Query the INCOME_STATEMENT, BALANCE_SHEET, CASH_FLOW and OVERVIEW functions."""

    name = "alphavantage"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://www.alphavantage.co/query",
        timeout: float = 30.0,
        proxy_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("Alpha Vantage API key is missing; set ALPHA_VANTAGE_API_KEY.")
        super().__init__(timeout=timeout, proxy_url=proxy_url, transport=transport)
        self._api_key = api_key
        self._base_url = base_url

    async def fetch_income(self, symbol: str) -> List[RawReport]:
        payload = await self._query("INCOME_STATEMENT", symbol)
        return rename_all(payload.get("annualReports") or [], PERIOD_KEYS, INCOME_MAP)

    async def fetch_balance(self, symbol: str) -> List[RawReport]:
        payload = await self._query("BALANCE_SHEET", symbol)
        return rename_all(payload.get("annualReports") or [], PERIOD_KEYS, BALANCE_MAP)

    async def fetch_cash_flow(self, symbol: str) -> List[RawReport]:
        payload = await self._query("CASH_FLOW", symbol)
        return rename_all(payload.get("annualReports") or [], PERIOD_KEYS, CASHFLOW_MAP)

    async def fetch_profile(self, symbol: str) -> Optional[CompanyProfile]:
        payload = await self._query("OVERVIEW", symbol)
        if not payload.get("Name"):
            return None
        return CompanyProfile(
            symbol=payload.get("Symbol") or symbol,
            name=payload.get("Name"),
            sector=payload.get("Sector"),
            industry=payload.get("Industry"),
            currency=payload.get("Currency"),
        )

    async def _query(self, function: str, symbol: str) -> Dict[str, Any]:
        params = {"function": function, "symbol": symbol, "apikey": self._api_key}
        payload = await self._get_json(self._base_url, params, resource=function)
        if not isinstance(payload, dict):
            logger.warning("Alpha Vantage %s returned a non-object payload for %s", function, symbol)
            return {}
        for key in _ADVISORY_KEYS:
            if payload.get(key):
                logger.warning("Alpha Vantage %s message for %s: %s", function, symbol, payload[key])
        return payload
