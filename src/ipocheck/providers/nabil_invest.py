from __future__ import annotations

import re
from collections.abc import Sequence

from playwright.async_api import Page

from ..models import (
    CheckResult,
    ProviderDescriptor,
    Script,
    TransportFamily,
    allotted_result,
    failed_result,
    not_allotted_result,
)
from .session import SessionProvider

PROVIDER_ID = "nabil-invest"

_UNITS_PATTERN = re.compile(r"allotted\s+(\d+)\s+units", re.IGNORECASE)
_BOID_INPUT = 'input[aria-label="boid"]'
_SUBMIT = "button.btn.bg-gradient-info"
_SUCCESS_ALERT = "div.alert.alert-success"
_DANGER_ALERT = "div.alert.alert-danger"


def read_alerts(
    boid: str,
    success_texts: Sequence[str],
    danger_texts: Sequence[str],
    *,
    company: str | None = None,
) -> CheckResult:
    """Turn the texts of the success/danger alerts into a result."""

    if success_texts:
        text = success_texts[0]
        match = _UNITS_PATTERN.search(text)
        units = int(match.group(1)) if match else None
        if units == 0:
            return not_allotted_result(PROVIDER_ID, boid, "Allotted 0 units", company=company)
        return allotted_result(PROVIDER_ID, boid, units, message=text, company=company)
    if danger_texts:
        return not_allotted_result(
            PROVIDER_ID, boid, danger_texts[0] or "Not Allotted", company=company
        )
    return failed_result(PROVIDER_ID, boid, "No result message found")


class NabilInvestProvider(SessionProvider):
    descriptor = ProviderDescriptor(
        id=PROVIDER_ID,
        display_name="Nabil Investment Banking Limited",
        transport_family=TransportFamily.SESSION,
        url="https://result.nabilinvest.com.np/search/ipo-share",
    )
    company_select = 'select[aria-label="company"]'

    async def _check_on_page(self, page: Page, script: Script, boid: str) -> CheckResult:
        await page.select_option(self.company_select, value=str(script.provider_value))
        await page.fill(_BOID_INPUT, boid)
        await page.click(_SUBMIT)
        await page.wait_for_selector(".alert-success, .alert-danger", state="visible")
        return read_alerts(
            boid,
            await self._texts(page, _SUCCESS_ALERT),
            await self._texts(page, _DANGER_ALERT),
            company=script.raw_name,
        )


__all__ = ["NabilInvestProvider", "read_alerts"]
