"""Year-keyed merge of income, balance sheet and cash flow reports.

Every statement type (and every provider) is keyed by fiscal year rather than
array position, so sources with uneven coverage line up on the same record.
Fields are filled, never overwritten: the first source to supply a value for a
year wins, and a later source can only fill what is still missing.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

from finsnapshot.domain.errors import NoDataError, UnmappableDataError
from finsnapshot.domain.models.financials import (
    STATEMENT_TYPES,
    FiscalYearRecord,
    StatementBundle,
)
from finsnapshot.domain.services.parsing import extract_year, parse_number

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 5

FieldValues = Dict[str, Optional[float]]


def _sum_present(*values: Optional[float]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return float(sum(present))


def derive_ebitda(operating_income: Optional[float], depreciation: Optional[float]) -> Optional[float]:
    if operating_income is None:
        return None
    if depreciation is None:
        return operating_income
    return operating_income + depreciation


def derive_debt(
    short_term: Optional[float],
    long_term: Optional[float],
    total_liabilities: Optional[float],
) -> Optional[float]:
    """Sum the debt components; use total liabilities only when both are missing.

    An explicit zero is a real value (debt-free company) and does not trigger
    the liabilities fallback.
    """
    components = _sum_present(short_term, long_term)
    if components is not None:
        return components
    return total_liabilities


def derive_fcf(ocf: Optional[float], capex: Optional[float]) -> Optional[float]:
    if ocf is None or capex is None:
        return None
    return ocf - capex


def map_income(values: Dict[str, object]) -> FieldValues:
    return {
        "revenue": parse_number(values.get("total_revenue")),
        "ebitda": derive_ebitda(
            parse_number(values.get("operating_income")),
            parse_number(values.get("depreciation_and_amortization")),
        ),
        "pat": parse_number(values.get("net_income")),
    }


def map_balance(values: Dict[str, object]) -> FieldValues:
    return {
        "equity": parse_number(values.get("total_shareholder_equity")),
        "debt": derive_debt(
            parse_number(values.get("short_term_debt")),
            parse_number(values.get("long_term_debt")),
            parse_number(values.get("total_liabilities")),
        ),
        "ar": parse_number(values.get("receivables")),
        "inventory": parse_number(values.get("inventory")),
        "cash": parse_number(values.get("cash_and_equivalents")),
        "investments_advances": _sum_present(
            parse_number(values.get("short_term_investments")),
            parse_number(values.get("long_term_investments")),
        ),
        "payables": parse_number(values.get("accounts_payable")),
    }


def map_cash_flow(values: Dict[str, object]) -> FieldValues:
    ocf = parse_number(values.get("operating_cash_flow"))
    return {
        "ocf": ocf,
        "fcf": derive_fcf(ocf, parse_number(values.get("capital_expenditures"))),
        "dividends_paid": parse_number(values.get("dividends_paid")),
    }


FIELD_MAPPERS: Dict[str, Callable[[Dict[str, object]], FieldValues]] = {
    "income": map_income,
    "balance": map_balance,
    "cash_flow": map_cash_flow,
}


class YearReconciler:
    """Merge statement bundles into an ascending, windowed FiscalYearRecord list."""

    def __init__(self, window: int = DEFAULT_WINDOW) -> None:
        if window < 1:
            raise ValueError("Reconciliation window must be at least one year.")
        self._window = window

    @property
    def window(self) -> int:
        return self._window

    def reconcile(self, bundles: Union[StatementBundle, Sequence[StatementBundle]]) -> List[FiscalYearRecord]:
        if isinstance(bundles, StatementBundle):
            bundles = [bundles]
        if not bundles:
            raise ValueError("At least one statement bundle is required.")
        symbol = bundles[0].symbol

        if all(bundle.is_empty() for bundle in bundles):
            raise NoDataError(symbol)

        years: Dict[str, FiscalYearRecord] = {}
        for bundle in bundles:
            for statement_type in STATEMENT_TYPES:
                self._merge_statement(years, bundle, statement_type)

        ordered = sorted((y for y in years if y), key=int)
        if not ordered:
            raise UnmappableDataError(symbol)
        return [years[y] for y in ordered[-self._window:]]

    def _merge_statement(
        self,
        years: Dict[str, FiscalYearRecord],
        bundle: StatementBundle,
        statement_type: str,
    ) -> None:
        mapper = FIELD_MAPPERS[statement_type]
        for report in bundle.reports(statement_type):
            year = extract_year(report.period_end_date)
            if year is None:
                logger.debug(
                    "Dropping %s %s report without a usable period end (%r)",
                    bundle.provider,
                    statement_type,
                    report.period_end_date,
                )
                continue
            record = years.get(year)
            if record is None:
                record = years[year] = FiscalYearRecord(year=year)
            _fill_missing(record, mapper(report.values))


def _fill_missing(record: FiscalYearRecord, values: FieldValues) -> None:
    for name, value in values.items():
        if value is None or getattr(record, name) is not None:
            continue
        setattr(record, name, value)
