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
from ..normalize import DEFAULT_NORMALIZER, OFFERING_TAGS
from ..share_types import ShareType
from .session import SessionProvider

PROVIDER_ID = "nmb-capital"

# The site spells it "Alloted" today; accept the correct spelling as well.
_QUANTITY_PATTERN = re.compile(r"Allot+ed Quantity\s*:\s*(\d+)", re.IGNORECASE)


def read_headline(
    boid: str,
    success_texts: Sequence[str],
    danger_texts: Sequence[str],
    *,
    company: str | None = None,
) -> CheckResult:
    if success_texts:
        match = _QUANTITY_PATTERN.search(success_texts[0])
        units = int(match.group(1)) if match else None
        if units == 0:
            return not_allotted_result(PROVIDER_ID, boid, "Allotted 0 units", company=company)
        return allotted_result(PROVIDER_ID, boid, units, company=company)
    if danger_texts:
        return not_allotted_result(PROVIDER_ID, boid, company=company)
    return failed_result(PROVIDER_ID, boid, "Unable to determine result")


class NmbCapitalProvider(SessionProvider):
    """NMB labels the slice reserved for local residents "(Public)"."""

    descriptor = ProviderDescriptor(
        id=PROVIDER_ID,
        display_name="NMB Capital Limited",
        transport_family=TransportFamily.SESSION,
        url="https://nmbcl.com.np/ipo",
    )
    company_select = "select#company"
    normalizer = DEFAULT_NORMALIZER.extended(trailing_phrases=OFFERING_TAGS)
    share_type_overrides = (
        ("(public)", ShareType.LOCAL),
        ("- public", ShareType.LOCAL),
    )

    async def _open_form(self, page: Page) -> None:
        await super()._open_form(page)
        await page.wait_for_selector("input#boidNumber", state="attached")

    async def _check_on_page(self, page: Page, script: Script, boid: str) -> CheckResult:
        await page.select_option(self.company_select, value=str(script.provider_value))
        await page.fill("input#boidNumber", boid)
        await page.click("button.btn-warning")
        await page.wait_for_selector("h6.text-success, h6.text-danger", state="visible")
        return read_headline(
            boid,
            await self._texts(page, "h6.text-success"),
            await self._texts(page, "h6.text-danger"),
            company=script.raw_name,
        )


__all__ = ["NmbCapitalProvider", "read_headline"]
