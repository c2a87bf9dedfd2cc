"""Scoped Playwright browser pages for providers that only offer a web form."""

from __future__ import annotations

import os
import re
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

from playwright.async_api import Page, Route, async_playwright

from ..config import Settings
from ..utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("providers.browser")

PageFactory = Callable[[Settings], AbstractAsyncContextManager[Page]]

_COMMON_BROWSER_PATHS = (
    "/usr/bin/google-chrome-stable",
    "/usr/bin/google-chrome",
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
)

_BLOCKED_RESOURCES = re.compile(
    r".*\.(png|jpe?g|gif|svg|webp|ico|woff2?|ttf|otf|mp4|webm)(\?.*)?$", re.I
)

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--no-first-run",
    "--no-default-browser-check",
]


def find_browser_executable(settings: Settings) -> str | None:
    """Return the configured browser binary, a system Chrome/Chromium, or ``None``."""

    if settings.browser_executable:
        if not os.path.exists(settings.browser_executable):
            LOGGER.warning("Browser-Programm nicht gefunden unter %s", settings.browser_executable)
        return settings.browser_executable
    for candidate in _COMMON_BROWSER_PATHS:
        if os.path.exists(candidate):
            LOGGER.debug("Browser automatisch gefunden unter %s", candidate)
            return candidate
    return None


def apply_page_timeouts(target_page: Page, settings: Settings) -> None:
    timeout_ms = settings.session_timeout * 1000
    target_page.set_default_navigation_timeout(timeout_ms)
    target_page.set_default_timeout(timeout_ms)


async def _abort_route(route: Route) -> None:
    await route.abort()


@asynccontextmanager
async def open_page(settings: Settings) -> AsyncIterator[Page]:
    """Launch a browser, yield one page and close everything on every exit path."""

    launch_kwargs: dict[str, Any] = {"headless": settings.headless, "args": _LAUNCH_ARGS}
    executable = find_browser_executable(settings)
    if executable:
        launch_kwargs["executable_path"] = executable

    async with async_playwright() as playwright:
        LOGGER.debug("Starte Browser (headless=%s)", settings.headless)
        browser = await playwright.chromium.launch(**launch_kwargs)
        try:
            context = await browser.new_context(
                user_agent=settings.user_agent,
                viewport={"width": 1280, "height": 720},
                ignore_https_errors=True,
            )
            await context.route(_BLOCKED_RESOURCES, _abort_route)
            page = await context.new_page()
            apply_page_timeouts(page, settings)
            yield page
        finally:
            LOGGER.debug("Schließe Browser")
            await browser.close()


__all__ = ["PageFactory", "apply_page_timeouts", "find_browser_executable", "open_page"]
