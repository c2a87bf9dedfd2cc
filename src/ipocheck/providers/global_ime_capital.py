from __future__ import annotations

from ..models import (
    CheckResult,
    ProviderDescriptor,
    Script,
    TransportFamily,
    not_allotted_result,
    parse_units,
    units_result,
)
from .http import ApiProvider

_SITE = "https://globalimecapital.com"


class GlobalImeCapitalProvider(ApiProvider):
    """Offerings from ``/companies``, one POST per BOID.

    Unknown BOID/company combinations come back as HTTP 422.
    """

    descriptor = ProviderDescriptor(
        id="global-ime-capital",
        display_name="Global IME Capital Limited",
        transport_family=TransportFamily.API,
        url=f"{_SITE}/share-allotment-check",
    )
    base_url = f"{_SITE}/api/v1/public"
    soft_miss_statuses = frozenset({422})

    def _fetch_scripts(self) -> list[Script]:
        payload = self._json(
            self._request("GET", "/companies", params={"type": "share-allotment-check"})
        )
        if not isinstance(payload, dict) or payload.get("status") != "success":
            self.logger.warning("Global-IME-API meldet keinen Erfolg für die Firmenliste")
            return []
        companies = payload.get("data") or []
        if not isinstance(companies, list):
            return []
        return self._build_scripts(
            (company.get("name"), company.get("id"))
            for company in companies
            if isinstance(company, dict)
        )

    def _query_allotment(self, boid: str, script: Script) -> CheckResult:
        response = self._request(
            "POST",
            "/share-allotment-check",
            json_body={"company_id": script.provider_value, "boid": boid},
            headers={"Origin": _SITE, "Referer": f"{_SITE}/"},
            soft_miss=True,
        )
        soft_miss = self._soft_miss(response, boid, script)
        if soft_miss is not None:
            return soft_miss

        payload = self._json(response)
        if not isinstance(payload, dict):
            payload = {}
        records = payload.get("data")
        if payload.get("status") == "success" and isinstance(records, list) and records:
            record = records[0] if isinstance(records[0], dict) else {}
            units = parse_units(record.get("allotted_kitta")) or 0
            if units > 0:
                return units_result(self.provider_id, boid, units, company=script.raw_name)

        return not_allotted_result(
            self.provider_id, boid, "Sorry, not allotted", company=script.raw_name
        )


__all__ = ["GlobalImeCapitalProvider"]
