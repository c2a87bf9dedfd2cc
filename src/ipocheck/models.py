"""Shared value types: offerings, check outcomes and provider descriptors."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from .share_types import ShareType


class TransportFamily(str, Enum):
    """How a provider is reached, which also decides its default bulk strategy."""

    API = "api"
    SESSION = "session"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ProviderDescriptor:
    id: str
    display_name: str
    transport_family: TransportFamily
    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "transport_family": self.transport_family.value,
            "url": self.url,
        }


@dataclass(frozen=True)
class Script:
    """One checkable offering as published by a provider.

    ``provider_value`` is whatever the owning provider needs to address the
    offering again (numeric id, dropdown value, search type id) and carries no
    meaning elsewhere.
    """

    raw_name: str
    company_name: str
    share_type: ShareType
    provider_value: Any


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one BOID check.

    ``success`` is ``False`` only when the check itself could not be completed.
    A reachable provider that reports no allotment (or does not list the
    company) yields ``success=True, allotted=False``.
    """

    success: bool
    boid: str
    allotted: bool
    units: int | None
    message: str
    provider_id: str
    company: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BulkSummary:
    total: int
    allotted: int
    not_allotted: int
    errors: int


def allotted_result(
    provider_id: str,
    boid: str,
    units: int | None,
    *,
    message: str | None = None,
    company: str | None = None,
) -> CheckResult:
    if message is None:
        message = f"Allotted {units} units" if units is not None else "Allotted"
    return CheckResult(
        success=True,
        boid=boid,
        allotted=True,
        units=units,
        message=message,
        provider_id=provider_id,
        company=company,
    )


def not_allotted_result(
    provider_id: str,
    boid: str,
    message: str = "Not Allotted",
    *,
    company: str | None = None,
) -> CheckResult:
    return CheckResult(
        success=True,
        boid=boid,
        allotted=False,
        units=None,
        message=message,
        provider_id=provider_id,
        company=company,
    )


def not_found_result(provider_id: str, boid: str, company_name: str) -> CheckResult:
    return not_allotted_result(provider_id, boid, f"Company not found: {company_name}")


def failed_result(provider_id: str, boid: str, message: str) -> CheckResult:
    return CheckResult(
        success=False,
        boid=boid,
        allotted=False,
        units=None,
        message=message,
        provider_id=provider_id,
    )


def units_result(
    provider_id: str,
    boid: str,
    units: int,
    *,
    company: str | None = None,
) -> CheckResult:
    """Allotted when *units* is positive; a reported quantity of 0 counts as not allotted."""

    if units > 0:
        return allotted_result(provider_id, boid, units, company=company)
    return not_allotted_result(provider_id, boid, "Allotted 0 units", company=company)


def parse_units(value: object) -> int | None:
    """Turn a quantity as sent by a provider (``"20"``, ``20.0``, ``"1,000"``) into an int."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value >= 0 else None
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return int(number)


__all__ = [
    "BulkSummary",
    "CheckResult",
    "ProviderDescriptor",
    "Script",
    "TransportFamily",
    "allotted_result",
    "failed_result",
    "not_allotted_result",
    "not_found_result",
    "parse_units",
    "units_result",
]
