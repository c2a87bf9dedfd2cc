"""Kumari Capital: offerings are nested below companies in a Directus backend."""

from __future__ import annotations

import json
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from ..bulk import MAX_WORKERS_CAP
from ..exceptions import TransportError
from ..models import (
    CheckResult,
    ProviderDescriptor,
    Script,
    TransportFamily,
    not_allotted_result,
    parse_units,
    units_result,
)
from ..share_types import ShareType
from .http import ApiProvider

_SITE = "https://kumaricapital.com"
_LISTED_COMPANY_TYPES = {"others", "scheme"}


class KumariCapitalProvider(ApiProvider):
    """Two-step listing: companies first, then the searchable share slices of each.

    A script's raw name is the company name; its share type comes from the
    slice title. Bulk checks resolve the slice once and reuse its id.
    """

    descriptor = ProviderDescriptor(
        id="kumari-capital",
        display_name="Kumari Capital Limited",
        transport_family=TransportFamily.API,
        url=f"{_SITE}/share-allotment",
    )
    base_url = "https://api-web.kumaricapital.com"
    default_headers = {
        "Accept": "application/json, text/plain, */*",
        "Origin": _SITE,
        "Referer": f"{_SITE}/",
    }

    def _fetch_scripts(self) -> list[Script]:
        payload = self._json(self._request("GET", "/items/company"))
        companies = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(companies, list):
            self.logger.warning(
                "Kumari Capital lieferte ein unerwartetes Format der Firmenliste"
            )
            return []

        listed = [
            company
            for company in companies
            if isinstance(company, dict) and company.get("type") in _LISTED_COMPANY_TYPES
        ]
        if not listed:
            self.logger.info("Keine Firmen vom Typ others/scheme bei Kumari Capital gelistet")
            return []

        workers = max(1, min(self.settings.max_workers, MAX_WORKERS_CAP, len(listed)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            groups = list(executor.map(self._company_scripts, listed))
        return [script for group in groups for script in group]

    def _company_scripts(self, company: dict[str, Any]) -> list[Script]:
        company_id = company.get("id")
        company_name = company.get("company_name")
        try:
            payload = self._json(
                self._request(
                    "GET",
                    "/items/share_details_search_type",
                    params={"filter": json.dumps({"company": {"_eq": company_id}})},
                )
            )
        except TransportError as exc:
            self.logger.error(
                "Fehler beim Laden der Suchtypen für Firma %s (%s): %s",
                company_name,
                company_id,
                exc,
            )
            return []

        search_types = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(search_types, list):
            return []
        return self._build_scripts(
            (company_name, item.get("id"), str(item.get("title") or ""))
            for item in search_types
            if isinstance(item, dict)
        )

    def _query_allotment(self, boid: str, script: Script) -> CheckResult:
        payload = self._json(
            self._request(
                "GET",
                "/sharedetails/search-details",
                params={
                    "holderId": boid,
                    "type": 2,
                    "share_details_search_type": script.provider_value,
                },
            )
        )
        records = payload.get("data") if isinstance(payload, dict) else None
        if isinstance(records, list) and records and isinstance(records[0], dict):
            units = parse_units(records[0].get("allotted_kitta")) or 0
            if units > 0:
                return units_result(self.provider_id, boid, units, company=script.raw_name)
        return not_allotted_result(
            self.provider_id, boid, "Sorry, not allotted", company=script.raw_name
        )

    def check_result_bulk(
        self,
        boids: Sequence[str],
        company_name: str,
        share_type: ShareType | str,
        *,
        cancel: threading.Event | None = None,
    ) -> list[CheckResult]:
        return self._check_bulk_resolved_once(boids, company_name, share_type, cancel=cancel)


__all__ = ["KumariCapitalProvider"]
