"""Run one BOID set against several providers at once."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

from .config import Settings
from .models import BulkSummary, CheckResult, failed_result
from .providers.base import ProviderAdapter
from .registry import ensure_supported, get_checker, supported_provider_ids
from .share_types import ShareType
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("orchestrator")

CheckerFactory = Callable[[str, Settings], ProviderAdapter]


def summarize(results: Iterable[CheckResult]) -> BulkSummary:
    """Count allotted, not allotted and failed results."""

    total = allotted = not_allotted = errors = 0
    for result in results:
        total += 1
        if not result.success:
            errors += 1
        elif result.allotted:
            allotted += 1
        else:
            not_allotted += 1
    return BulkSummary(total=total, allotted=allotted, not_allotted=not_allotted, errors=errors)


class BulkCheckOrchestrator:
    """Fan a bulk check out over providers.

    Each provider is built and runs its own bulk strategy on a worker thread.
    An exception escaping one provider, its construction included, is turned
    into failed results for that provider only; the other providers are still
    collected. An empty *provider_ids* selects nothing, ``None`` selects all.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        checker_factory: CheckerFactory | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._checker_factory: CheckerFactory = checker_factory or get_checker

    def check_across_providers(
        self,
        boids: str | Sequence[str],
        company_name: str,
        share_type: ShareType | str,
        provider_ids: Sequence[str] | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> dict[str, list[CheckResult]]:
        boid_list = [boids] if isinstance(boids, str) else list(boids)
        ids = (
            list(dict.fromkeys(provider_ids))
            if provider_ids is not None
            else supported_provider_ids()
        )
        ensure_supported(ids)
        if not ids:
            return {}

        workers = max(1, min(self.settings.provider_workers, len(ids)))
        LOGGER.info(
            "Prüfe %s BOID(s) für %r bei %s Providern", len(boid_list), company_name, len(ids)
        )

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                provider_id: executor.submit(
                    self._run_provider,
                    provider_id,
                    boid_list,
                    company_name,
                    share_type,
                    cancel,
                )
                for provider_id in ids
            }
            collected = {provider_id: future.result() for provider_id, future in futures.items()}

        for provider_id, results in collected.items():
            summary = summarize(results)
            LOGGER.info(
                "[%s] allotted=%s not_allotted=%s errors=%s",
                provider_id,
                summary.allotted,
                summary.not_allotted,
                summary.errors,
            )
        return collected

    def _run_provider(
        self,
        provider_id: str,
        boids: list[str],
        company_name: str,
        share_type: ShareType | str,
        cancel: threading.Event | None,
    ) -> list[CheckResult]:
        try:
            checker = self._checker_factory(provider_id, self.settings)
            results = checker.check_result_bulk(boids, company_name, share_type, cancel=cancel)
        except Exception as exc:
            LOGGER.error("[%s] Fehler: %s", provider_id, exc)
            return [
                failed_result(provider_id, boid, f"Provider check failed: {exc}") for boid in boids
            ]
        if len(results) != len(boids):
            LOGGER.error(
                "[%s] lieferte %s Ergebnisse für %s BOIDs", provider_id, len(results), len(boids)
            )
            return [
                failed_result(provider_id, boid, "Provider returned an incomplete result set")
                for boid in boids
            ]
        return list(results)


__all__ = ["BulkCheckOrchestrator", "summarize"]
