from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models import (
    CheckResult,
    ProviderDescriptor,
    Script,
    TransportFamily,
    failed_result,
    not_allotted_result,
    parse_units,
    units_result,
)
from ..normalize import DEFAULT_NORMALIZER, OFFERING_TAGS
from .http import ApiProvider

_PORTAL = "https://result.nimbacecapital.com"
_QUANTITY_KEYS = ("allottedKitta", "kitta", "quantity")


def _quantity(data: Any) -> int | None:
    if not isinstance(data, Mapping):
        return None
    for key in _QUANTITY_KEYS:
        units = parse_units(data.get(key))
        if units is not None:
            return units
    return None


class NimbAceCapitalProvider(ApiProvider):
    """Tenant ``1003`` of the TradePulse allotment API.

    Responses carry a string ``code``; ``"0"`` means the search ran. A BOID
    that is not on the applicant list is answered with HTTP 400.
    """

    descriptor = ProviderDescriptor(
        id="nimb-ace-capital",
        display_name="NIMB Ace Capital Limited",
        transport_family=TransportFamily.API,
        url=_PORTAL,
    )
    base_url = "https://tradepulse.com.np/tradepulse-capital/web-api/tradepulse-allotment/v1"
    default_headers = {
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.5",
        "X-XSRF-TOKEN": "1003",
        "X-MULTITENANCY-TOKEN": "1003",
        "Origin": _PORTAL,
        "Referer": f"{_PORTAL}/",
    }
    soft_miss_statuses = frozenset({400})
    normalizer = DEFAULT_NORMALIZER.extended(trailing_phrases=OFFERING_TAGS)

    def _fetch_scripts(self) -> list[Script]:
        payload = self._json(self._request("GET", "/public/ipo-allotment-result/companies"))
        companies = None
        if isinstance(payload, dict) and payload.get("code") == "0":
            companies = payload.get("data")
        if not isinstance(companies, list):
            self.logger.warning(
                "NIMB-Ace-Capital-API lieferte ein unerwartetes Format der Firmenliste"
            )
            return []
        return self._build_scripts(
            (item.get("companyName"), item.get("companyCode"))
            for item in companies
            if isinstance(item, dict)
        )

    def _query_allotment(self, boid: str, script: Script) -> CheckResult:
        response = self._request(
            "POST",
            "/allotments/public/search",
            json_body={"companyCode": script.provider_value, "boid": boid},
            soft_miss=True,
        )
        soft_miss = self._soft_miss(response, boid, script)
        if soft_miss is not None:
            return soft_miss

        payload = self._json(response)
        if not isinstance(payload, dict):
            return failed_result(self.provider_id, boid, "Unknown result state from API")

        data = payload.get("data")
        if payload.get("code") != "0" or not data:
            message = str(payload.get("message") or "Not Allotted")
            return not_allotted_result(self.provider_id, boid, message, company=script.raw_name)

        if isinstance(data, str) and "not allotted" in data.lower():
            return not_allotted_result(self.provider_id, boid, company=script.raw_name)

        units = _quantity(data)
        if units is None:
            self.logger.warning("Unbekannter Zuteilungsdatensatz für BOID %s: %r", boid, data)
            return failed_result(
                self.provider_id, boid, "Allotment record without a recognisable quantity"
            )
        return units_result(self.provider_id, boid, units, company=script.raw_name)


__all__ = ["NimbAceCapitalProvider"]
