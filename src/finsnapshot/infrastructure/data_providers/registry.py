"""Build provider adapters by name from configuration."""
from __future__ import annotations

from typing import Optional

import httpx

from finsnapshot.domain.errors import UnknownProviderError
from finsnapshot.infrastructure.data_providers.alpha_vantage import AlphaVantageProvider
from finsnapshot.infrastructure.data_providers.base import StatementProvider
from finsnapshot.infrastructure.data_providers.fmp import FMPProvider
from finsnapshot.infrastructure.data_providers.sample import SampleProvider
from finsnapshot.settings.config import Config

PROVIDER_NAMES = ("alphavantage", "fmp", "sample")


def build_provider(
    name: str,
    config: Config,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> StatementProvider:
    key = (name or "").strip().lower()
    if key == "alphavantage":
        return AlphaVantageProvider(
            config.alpha_vantage_api_key,
            base_url=config.alpha_vantage_base_url,
            timeout=config.request_timeout,
            proxy_url=config.proxy_url,
            transport=transport,
        )
    if key == "fmp":
        return FMPProvider(
            config.fmp_api_key,
            base_url=config.fmp_base_url,
            limit=config.years_window,
            timeout=config.request_timeout,
            proxy_url=config.proxy_url,
            transport=transport,
        )
    if key == "sample":
        return SampleProvider()
    raise UnknownProviderError(name)
