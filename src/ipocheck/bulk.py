"""Default bulk strategies shared by the provider families.

Both strategies return exactly one :class:`CheckResult` per input BOID, in
input order. Exceptions raised by a single check are recorded as a failed
result for that BOID and never abort the rest of the batch.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from .models import CheckResult, failed_result
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("bulk")

CANCELLED_MESSAGE = "Cancelled before check"
MAX_WORKERS_CAP = 32

CheckFn = Callable[[str], CheckResult]


def _bind(result: CheckResult, boid: str) -> CheckResult:
    if result.boid != boid:
        return replace(result, boid=boid)
    return result


def _run_one(check: CheckFn, boid: str, provider_id: str) -> CheckResult:
    try:
        return _bind(check(boid), boid)
    except Exception as exc:
        LOGGER.exception("%s: Prüfung für BOID %s fehlgeschlagen: %s", provider_id, boid, exc)
        return failed_result(provider_id, boid, f"Check failed: {exc}")


def run_parallel(
    check: CheckFn,
    boids: Sequence[str],
    *,
    provider_id: str,
    max_workers: int,
    cancel: threading.Event | None = None,
) -> list[CheckResult]:
    """Run *check* for every BOID on a bounded thread pool."""

    if not boids:
        return []

    def _guarded(boid: str) -> CheckResult:
        if cancel is not None and cancel.is_set():
            return failed_result(provider_id, boid, CANCELLED_MESSAGE)
        return _run_one(check, boid, provider_id)

    workers = max(1, min(max_workers, MAX_WORKERS_CAP, len(boids)))
    LOGGER.debug("%s: prüfe %s BOIDs mit %s Workern", provider_id, len(boids), workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(_guarded, boid) for boid in boids]
        return [future.result() for future in futures]


def run_sequential(
    check: CheckFn,
    boids: Sequence[str],
    *,
    provider_id: str,
    cancel: threading.Event | None = None,
) -> list[CheckResult]:
    """Run *check* for every BOID one after another."""

    results: list[CheckResult] = []
    for boid in boids:
        if cancel is not None and cancel.is_set():
            results.append(failed_result(provider_id, boid, CANCELLED_MESSAGE))
            continue
        results.append(_run_one(check, boid, provider_id))
    return results


def fill_missing(
    results: Sequence[CheckResult | None],
    boids: Sequence[str],
    *,
    provider_id: str,
    message: str,
) -> list[CheckResult]:
    """Replace unset slots with failed results so output stays aligned with *boids*."""

    return [
        result if result is not None else failed_result(provider_id, boid, message)
        for result, boid in zip(results, boids)
    ]


__all__ = [
    "CANCELLED_MESSAGE",
    "MAX_WORKERS_CAP",
    "fill_missing",
    "run_parallel",
    "run_sequential",
]
