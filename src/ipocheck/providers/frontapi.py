"""Shared client for merchant bankers running the same ``/frontapi/en`` backend."""

from __future__ import annotations

from typing import Any, ClassVar

from ..models import (
    CheckResult,
    Script,
    failed_result,
    not_allotted_result,
    parse_units,
    units_result,
)
from ..normalize import DEFAULT_NORMALIZER, OFFERING_TAGS, CompanyNameNormalizer
from .http import ApiProvider


class FrontApiProvider(ApiProvider):
    """``GET /ipo`` lists offerings, ``GET /ipo/filter`` answers one BOID.

    The backend answers ``{"error": true}`` for a BOID without allotment and
    an HTTP 500 for BOIDs it does not know at all. Offering names carry
    suffixes such as "- IPO for General Public".
    """

    site_url: ClassVar[str] = ""
    normalizer: ClassVar[CompanyNameNormalizer] = DEFAULT_NORMALIZER.extended(
        trailing_phrases=OFFERING_TAGS
    )
    soft_miss_statuses: ClassVar[frozenset[int]] = frozenset({500})

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._headers.update(
            {
                "Accept-Language": "en-US,en;q=0.9",
                "Origin": self.site_url,
                "Referer": f"{self.site_url}/ipo",
                "X-Requested-With": "XMLHttpRequest",
            }
        )

    def _fetch_scripts(self) -> list[Script]:
        payload = self._json(self._request("GET", "/ipo"))
        if not isinstance(payload, list):
            self.logger.warning(
                "%s lieferte ein unerwartetes Format der Firmenliste", self.descriptor.display_name
            )
            return []
        return self._build_scripts(
            (item.get("name"), item.get("id")) for item in payload if isinstance(item, dict)
        )

    def _query_allotment(self, boid: str, script: Script) -> CheckResult:
        response = self._request(
            "GET",
            "/ipo/filter",
            params={"companyId": script.provider_value, "boidNumber": boid},
            soft_miss=True,
        )
        soft_miss = self._soft_miss(response, boid, script)
        if soft_miss is not None:
            return soft_miss

        payload = self._json(response)
        if not isinstance(payload, dict):
            return failed_result(self.provider_id, boid, "Unknown result state from API")

        if payload.get("error") is True:
            return not_allotted_result(self.provider_id, boid, company=script.raw_name)

        data = payload.get("data")
        allotments = data.get("allotments") if isinstance(data, dict) else None
        if payload.get("error") is False and isinstance(allotments, dict):
            units = parse_units(allotments.get("alloted_kitta")) or 0
            return units_result(self.provider_id, boid, units, company=script.raw_name)

        return failed_result(self.provider_id, boid, "Unknown result state from API")


__all__ = ["FrontApiProvider"]
