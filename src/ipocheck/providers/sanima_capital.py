from __future__ import annotations

from ..models import ProviderDescriptor, TransportFamily
from .frontapi import FrontApiProvider


class SanimaCapitalProvider(FrontApiProvider):
    descriptor = ProviderDescriptor(
        id="sanima-capital",
        display_name="Sanima Capital Limited",
        transport_family=TransportFamily.API,
        url="https://www.sanima.capital/ipo",
    )
    base_url = "https://www.sanima.capital/frontapi/en"
    site_url = "https://www.sanima.capital"


__all__ = ["SanimaCapitalProvider"]
