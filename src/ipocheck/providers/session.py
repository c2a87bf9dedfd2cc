"""Base implementation for providers that are driven through a browser form."""

from __future__ import annotations

import asyncio
import threading
from abc import abstractmethod
from collections.abc import Sequence
from typing import ClassVar

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from ..bulk import CANCELLED_MESSAGE, fill_missing
from ..config import Settings
from ..models import CheckResult, Script, TransportFamily, failed_result, not_found_result
from ..share_types import ShareType
from .base import COMPANY_REQUIRED_MESSAGE, BaseProvider
from .browser import PageFactory, open_page

_OPTIONS_SCRIPT = "els => els.map(e => [e.textContent.trim(), e.value])"
_TEXTS_SCRIPT = "els => els.map(e => (e.innerText || e.textContent || '').trim())"


class SessionProvider(BaseProvider):
    """Provider reached by filling a web form in a headless browser.

    One page is opened per :meth:`get_scripts` call and per bulk batch. BOIDs
    in a batch are checked one after another on that page; the form is
    reloaded between BOIDs. A failure on one BOID is recorded for that BOID
    only, a failure to reopen the form ends the batch and marks the remaining
    BOIDs as failed.
    """

    family: ClassVar[TransportFamily] = TransportFamily.SESSION
    company_select: ClassVar[str] = "select"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        page_factory: PageFactory | None = None,
    ) -> None:
        super().__init__(settings)
        self._page_factory: PageFactory = page_factory or open_page

    @property
    def form_url(self) -> str:
        return self.descriptor.url

    # -- page hooks ------------------------------------------------------------------

    async def _open_form(self, page: Page) -> None:
        await page.goto(self.form_url, wait_until="domcontentloaded")
        await page.wait_for_selector(self.company_select, state="attached")

    async def _read_options(self, page: Page) -> list[tuple[str, str]]:
        options = await page.eval_on_selector_all(
            f"{self.company_select} option", _OPTIONS_SCRIPT
        )
        return [
            (str(text), str(value))
            for text, value in options
            if value and not str(value).lower().startswith("select")
        ]

    async def _reset(self, page: Page) -> None:
        await self._open_form(page)

    async def _texts(self, page: Page, selector: str) -> list[str]:
        texts = await page.eval_on_selector_all(selector, _TEXTS_SCRIPT)
        return [str(text) for text in texts]

    @abstractmethod
    async def _check_on_page(self, page: Page, script: Script, boid: str) -> CheckResult:
        """Submit the form for *boid* on an open form page and read the verdict."""

    # -- scripts -----------------------------------------------------------------------

    async def _load_scripts(self, page: Page) -> list[Script]:
        await self._open_form(page)
        scripts = self._build_scripts(await self._read_options(page))
        self.logger.info(
            "%s IPO-Skripte von %s geladen", len(scripts), self.descriptor.display_name
        )
        return scripts

    async def _get_scripts_async(self) -> list[Script]:
        async with self._page_factory(self.settings) as page:
            return await asyncio.wait_for(
                self._load_scripts(page), timeout=self.settings.session_timeout
            )

    def get_scripts(self) -> list[Script]:
        try:
            return asyncio.run(self._get_scripts_async())
        except (PlaywrightError, asyncio.TimeoutError) as exc:
            self.logger.warning(
                "Fehler beim Laden der Skripte von %s: %s", self.descriptor.display_name, exc
            )
            return []

    # -- checks ------------------------------------------------------------------------

    def check_result(
        self,
        boid: str,
        company_name: str,
        share_type: ShareType | str,
    ) -> CheckResult:
        return self.check_result_bulk([boid], company_name, share_type)[0]

    def check_result_bulk(
        self,
        boids: Sequence[str],
        company_name: str,
        share_type: ShareType | str,
        *,
        cancel: threading.Event | None = None,
    ) -> list[CheckResult]:
        if not boids:
            return []
        if not company_name:
            return [
                failed_result(self.provider_id, boid, COMPANY_REQUIRED_MESSAGE) for boid in boids
            ]

        results: list[CheckResult | None] = [None] * len(boids)
        try:
            asyncio.run(self._run_batch(boids, company_name, share_type, results, cancel))
        except Exception as exc:
            self.logger.error(
                "Browser-Sitzung bei %s nach %s von %s BOIDs fehlgeschlagen: %s",
                self.descriptor.display_name,
                sum(result is not None for result in results),
                len(boids),
                exc,
            )
            return fill_missing(
                results,
                boids,
                provider_id=self.provider_id,
                message=f"Error connecting to {self.descriptor.display_name}: {exc}",
            )
        return fill_missing(
            results, boids, provider_id=self.provider_id, message=CANCELLED_MESSAGE
        )

    async def _run_batch(
        self,
        boids: Sequence[str],
        company_name: str,
        share_type: ShareType | str,
        results: list[CheckResult | None],
        cancel: threading.Event | None,
    ) -> None:
        if cancel is not None and cancel.is_set():
            return

        async with self._page_factory(self.settings) as page:
            scripts = await asyncio.wait_for(
                self._load_scripts(page), timeout=self.settings.session_timeout
            )
            script = self._resolve(scripts, company_name, share_type)
            if script is None:
                results[:] = [
                    not_found_result(self.provider_id, boid, company_name) for boid in boids
                ]
                return

            last_index = len(boids) - 1
            for index, boid in enumerate(boids):
                if cancel is not None and cancel.is_set():
                    self.logger.info("Stapel nach %s BOIDs abgebrochen", index)
                    return
                self.logger.info(
                    "Prüfe IPO-Ergebnis für BOID %s bei %s (%s)",
                    boid,
                    self.descriptor.display_name,
                    script.raw_name,
                )
                try:
                    result = await asyncio.wait_for(
                        self._check_on_page(page, script, boid),
                        timeout=self.settings.session_timeout,
                    )
                except (PlaywrightError, asyncio.TimeoutError) as exc:
                    self.logger.warning("Prüfung für BOID %s fehlgeschlagen: %s", boid, exc)
                    reason = str(exc) or "timed out"
                    result = failed_result(
                        self.provider_id, boid, f"Failed to check result: {reason}"
                    )
                except Exception as exc:
                    self.logger.exception("Unerwarteter Fehler bei BOID %s: %s", boid, exc)
                    result = failed_result(
                        self.provider_id, boid, f"Failed to check result: {exc}"
                    )
                results[index] = result

                if index < last_index:
                    await asyncio.wait_for(
                        self._reset(page), timeout=self.settings.session_timeout
                    )


__all__ = ["SessionProvider"]
