"""Application-wide configuration defaults and helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from finsnapshot.domain.services.calculations import CASH_CONVERSION_BASES

# Base directory for resolving relative paths.
BASE_DIR = Path.cwd()


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse truthy environment values like '1' or 'true'."""
    if value is None:
        return default
    # Normalize non-string inputs (e.g., int defaults) before parsing.
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str], default: Optional[int] = None) -> Optional[int]:
    """Safely parse an integer env var, returning the default on failure."""
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _to_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass
class Config:
    """Runtime configuration loaded from environment variables."""

    debug: bool = False
    alpha_vantage_api_key: Optional[str] = None
    alpha_vantage_base_url: str = "https://www.alphavantage.co/query"
    fmp_api_key: Optional[str] = None
    fmp_base_url: str = "https://financialmodelingprep.com/api/v3"
    default_provider: str = "alphavantage"
    proxy_url: Optional[str] = None
    request_timeout: float = 30.0
    years_window: int = 5
    cash_conversion_basis: str = "ebitda"
    tolerate_partial_failure: bool = False
    output_dir: Path = BASE_DIR / "reports"

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration instance using environment overrides."""
        basis = os.getenv("CASH_CONVERSION_BASIS", "ebitda").strip().lower()
        if basis not in CASH_CONVERSION_BASES:
            basis = "ebitda"
        window = _to_int(os.getenv("FINSNAP_YEARS"), default=5) or 5
        return cls(
            debug=_to_bool(os.getenv("APP_DEBUG")),
            alpha_vantage_api_key=os.getenv("ALPHA_VANTAGE_API_KEY"),
            alpha_vantage_base_url=os.getenv("ALPHA_VANTAGE_BASE_URL", cls.alpha_vantage_base_url),
            fmp_api_key=os.getenv("FMP_API_KEY"),
            fmp_base_url=os.getenv("FMP_BASE_URL", cls.fmp_base_url),
            default_provider=os.getenv("FINSNAP_PROVIDER", "alphavantage").strip().lower(),
            proxy_url=os.getenv("PROXY_URL"),
            request_timeout=_to_float(os.getenv("REQUEST_TIMEOUT"), 30.0),
            years_window=max(window, 1),
            cash_conversion_basis=basis,
            tolerate_partial_failure=_to_bool(os.getenv("TOLERATE_PARTIAL_FAILURE")),
            output_dir=Path(os.getenv("OUTPUT_DIR", BASE_DIR / "reports")),
        )

    def ensure_directories(self) -> None:
        """Create directories needed for runtime artifacts."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
