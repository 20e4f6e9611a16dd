"""Offline demo provider serving a fixed five-year data set."""
from __future__ import annotations

from typing import List, Optional

from finsnapshot.domain.models.financials import CompanyProfile, RawReport
from finsnapshot.infrastructure.data_providers.base import StatementProvider

# year, revenue, operating income, D&A, PAT, OCF, capex, AR, cash, equity,
# short-term debt, long-term debt, investments
_SAMPLE_ROWS = (
    ("2020", 1000, 170, 30, 100, 120, 40, 150, 500, 1500, 100, 400, 100),
    ("2021", 1200, 215, 35, 130, 140, 40, 180, 550, 1700, 100, 350, 120),
    ("2022", 1400, 270, 40, 170, 100, 40, 250, 450, 1900, 100, 300, 180),
    ("2023", 1650, 335, 45, 200, 180, 60, 280, 480, 2100, 100, 250, 200),
    ("2024", 1900, 400, 50, 240, 220, 60, 300, 520, 2300, 100, 200, 220),
)


class SampleProvider(StatementProvider):
    """Serves the same newest-first arrays for any symbol."""

    name = "sample"

    async def fetch_income(self, symbol: str) -> List[RawReport]:
        return [
            RawReport(
                period_end_date=f"{year}-12-31",
                values={
                    "total_revenue": str(revenue),
                    "operating_income": str(op_income),
                    "depreciation_and_amortization": str(da),
                    "net_income": str(pat),
                },
            )
            for year, revenue, op_income, da, pat, *_ in reversed(_SAMPLE_ROWS)
        ]

    async def fetch_balance(self, symbol: str) -> List[RawReport]:
        return [
            RawReport(
                period_end_date=f"{row[0]}-12-31",
                values={
                    "receivables": str(row[7]),
                    "cash_and_equivalents": str(row[8]),
                    "total_shareholder_equity": f"{row[9]:,}",
                    "short_term_debt": str(row[10]),
                    "long_term_debt": str(row[11]),
                    "short_term_investments": str(row[12]),
                },
            )
            for row in reversed(_SAMPLE_ROWS)
        ]

    async def fetch_cash_flow(self, symbol: str) -> List[RawReport]:
        return [
            RawReport(
                period_end_date=f"{row[0]}-12-31",
                values={"operating_cash_flow": str(row[5]), "capital_expenditures": str(row[6])},
            )
            for row in reversed(_SAMPLE_ROWS)
        ]

    async def fetch_profile(self, symbol: str) -> Optional[CompanyProfile]:
        return CompanyProfile(symbol=symbol, name=f"{symbol} Corp")
