"""Static table of the providers this package can check.

Adding a provider means writing one adapter and adding one row to
:data:`ADAPTERS`.
"""

from __future__ import annotations

from collections.abc import Iterable

from .config import Settings
from .exceptions import UnsupportedProvider
from .models import ProviderDescriptor
from .providers import (
    GlobalImeCapitalProvider,
    KumariCapitalProvider,
    LsCapitalProvider,
    NabilInvestProvider,
    NepalSbiProvider,
    NimbAceCapitalProvider,
    NmbCapitalProvider,
    SanimaCapitalProvider,
)
from .providers.base import BaseProvider

ADAPTERS: dict[str, type[BaseProvider]] = {
    "nabil-invest": NabilInvestProvider,
    "nmb-capital": NmbCapitalProvider,
    "global-ime-capital": GlobalImeCapitalProvider,
    "kumari-capital": KumariCapitalProvider,
    "nepal-sbi": NepalSbiProvider,
    "nimb-ace-capital": NimbAceCapitalProvider,
    "sanima-capital": SanimaCapitalProvider,
    "ls-capital": LsCapitalProvider,
}

for _provider_id, _adapter in ADAPTERS.items():
    if _adapter.descriptor.id != _provider_id:
        raise RuntimeError(
            f"Provider-Tabelle: Eintrag {_provider_id!r} verweist auf {_adapter.descriptor.id!r}"
        )
    if _adapter.descriptor.transport_family is not _adapter.family:
        raise RuntimeError(f"Provider {_provider_id!r} meldet die falsche Transportfamilie")
del _provider_id, _adapter


def supported_provider_ids() -> list[str]:
    return list(ADAPTERS)


def ensure_supported(provider_ids: Iterable[str]) -> None:
    """Raise :class:`UnsupportedProvider` for the first unknown id."""

    for provider_id in provider_ids:
        if provider_id not in ADAPTERS:
            raise UnsupportedProvider(provider_id, supported_provider_ids())


def get_checker(provider_id: str, settings: Settings | None = None) -> BaseProvider:
    """Instantiate the adapter for *provider_id*.

    Raises:
        UnsupportedProvider: if the id is not registered. Nothing is fetched
        before the lookup succeeds.
    """

    adapter_class = ADAPTERS.get(provider_id)
    if adapter_class is None:
        raise UnsupportedProvider(provider_id, supported_provider_ids())
    return adapter_class(settings)


def list_providers() -> list[ProviderDescriptor]:
    return [adapter.descriptor for adapter in ADAPTERS.values()]


def get_all_checkers(settings: Settings | None = None) -> list[BaseProvider]:
    return [adapter(settings) for adapter in ADAPTERS.values()]


__all__ = [
    "ADAPTERS",
    "ensure_supported",
    "get_all_checkers",
    "get_checker",
    "list_providers",
    "supported_provider_ids",
]
