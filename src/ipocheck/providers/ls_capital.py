from __future__ import annotations

from collections.abc import Sequence

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PWTimeoutError

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
from ..share_types import ShareType
from .session import SessionProvider

PROVIDER_ID = "ls-capital"

NOT_ALLOTTED_MARKER = "Sorry, Not Allotted"
_ALLOTTED_HEADERS = ("Alloted Kitta", "Allotted Kitta")
_BOID_INPUT = 'input[name="boidNumber"]'
_RESULT_WAIT_MS = 10_000
_RESULT_READY = (
    "() => document.body.innerText.includes('Sorry, Not Allotted')"
    " || document.querySelector('table') !== null"
)


def read_result_table(
    boid: str,
    body_text: str,
    headers: Sequence[str],
    first_row: Sequence[str],
    *,
    company: str | None = None,
) -> CheckResult:
    """Read the verdict from the page text and the first row of the result table."""

    if NOT_ALLOTTED_MARKER in body_text:
        return not_allotted_result(
            PROVIDER_ID,
            boid,
            "Sorry, Not Allotted for the entered BOID/Details",
            company=company,
        )

    column = next(
        (
            index
            for index, header in enumerate(headers)
            if any(label in header for label in _ALLOTTED_HEADERS)
        ),
        None,
    )
    if column is not None and column < len(first_row):
        units = parse_units(first_row[column]) or 0
        return units_result(PROVIDER_ID, boid, units, company=company)

    return failed_result(PROVIDER_ID, boid, "Result unknown")


class LsCapitalProvider(SessionProvider):
    descriptor = ProviderDescriptor(
        id=PROVIDER_ID,
        display_name="LS Capital Limited",
        transport_family=TransportFamily.SESSION,
        url="https://lscapital.com.np/ipo",
    )
    company_select = "select.form-select"
    share_type_overrides = (("(public)", ShareType.LOCAL),)

    async def _check_on_page(self, page: Page, script: Script, boid: str) -> CheckResult:
        await page.select_option(self.company_select, value=str(script.provider_value))
        await page.fill(_BOID_INPUT, boid)
        await page.click("button:has-text('CHECK')")
        try:
            await page.wait_for_function(_RESULT_READY, timeout=_RESULT_WAIT_MS)
        except PWTimeoutError:
            self.logger.warning(
                "Zeitüberschreitung beim Warten auf das Ergebnis für BOID %s", boid
            )

        return read_result_table(
            boid,
            await page.inner_text("body"),
            await self._texts(page, "table th"),
            await self._texts(page, "table tbody tr:first-child td"),
            company=script.raw_name,
        )


__all__ = ["LsCapitalProvider", "read_result_table"]
