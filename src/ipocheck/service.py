"""Entry points for callers: single, bulk and cross-provider checks."""

from __future__ import annotations

import threading
from collections.abc import Sequence

from .config import Settings
from .models import CheckResult, ProviderDescriptor
from .orchestrator import BulkCheckOrchestrator
from .registry import get_checker
from .registry import list_providers as _registered_providers
from .share_types import ShareType


def check_single(
    provider_id: str,
    boid: str,
    company_name: str,
    share_type: ShareType | str,
    *,
    settings: Settings | None = None,
) -> CheckResult:
    return get_checker(provider_id, settings).check_result(boid, company_name, share_type)


def check_bulk(
    provider_id: str,
    boids: Sequence[str],
    company_name: str,
    share_type: ShareType | str,
    *,
    settings: Settings | None = None,
    cancel: threading.Event | None = None,
) -> list[CheckResult]:
    """Check *boids* at one provider; ``result[i].boid == boids[i]``."""

    checker = get_checker(provider_id, settings)
    return checker.check_result_bulk(list(boids), company_name, share_type, cancel=cancel)


def check_across_providers(
    boids: str | Sequence[str],
    company_name: str,
    share_type: ShareType | str,
    provider_ids: Sequence[str] | None = None,
    *,
    settings: Settings | None = None,
    cancel: threading.Event | None = None,
) -> dict[str, list[CheckResult]]:
    orchestrator = BulkCheckOrchestrator(settings)
    return orchestrator.check_across_providers(
        boids, company_name, share_type, provider_ids, cancel=cancel
    )


def list_providers() -> list[ProviderDescriptor]:
    return _registered_providers()


__all__ = ["check_across_providers", "check_bulk", "check_single", "list_providers"]
