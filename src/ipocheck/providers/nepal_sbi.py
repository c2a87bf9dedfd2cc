from __future__ import annotations

from ..models import ProviderDescriptor, TransportFamily
from .frontapi import FrontApiProvider


class NepalSbiProvider(FrontApiProvider):
    descriptor = ProviderDescriptor(
        id="nepal-sbi",
        display_name="Nepal SBI Merchant Banking Limited",
        transport_family=TransportFamily.API,
        url="https://www.nsmbl.com.np/ipo",
    )
    base_url = "https://www.nsmbl.com.np/frontapi/en"
    site_url = "https://www.nsmbl.com.np"


__all__ = ["NepalSbiProvider"]
