"""CSV export of the reconciled five-year table."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pandas as pd

from finsnapshot.domain.models.financials import RECORD_FIELDS, FiscalYearRecord

# Fixed column order shared with downstream spreadsheets.
CSV_COLUMNS = (
    "Year",
    "Revenue",
    "EBITDA",
    "PAT",
    "OCF",
    "FCF",
    "AR",
    "Cash",
    "Equity",
    "Debt",
    "InvestmentsAdvances",
    "DividendsPaid",
    "Inventory",
    "TradePayables",
)


def records_frame(records: Sequence[FiscalYearRecord]) -> pd.DataFrame:
    """Records as a frame with CSV column headers; missing values are NaN."""
    rows = [[r.year, *(getattr(r, name) for name in RECORD_FIELDS)] for r in records]
    frame = pd.DataFrame(rows, columns=list(CSV_COLUMNS))
    numeric = list(CSV_COLUMNS[1:])
    frame[numeric] = frame[numeric].astype(float)
    return frame


def to_csv(records: Sequence[FiscalYearRecord]) -> str:
    return records_frame(records).to_csv(index=False, na_rep="", lineterminator="\n")


def export_csv(records: Sequence[FiscalYearRecord], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_csv(records), encoding="utf-8")
    return path
