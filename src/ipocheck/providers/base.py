"""Provider base interfaces and the helpers both transport families share."""

from __future__ import annotations

import threading
from abc import ABC
from collections.abc import Iterable, Sequence
from typing import ClassVar, Protocol, runtime_checkable

from ..config import Settings
from ..matching import resolve_script
from ..models import CheckResult, ProviderDescriptor, Script, TransportFamily
from ..normalize import DEFAULT_NORMALIZER, CompanyNameNormalizer
from ..share_types import ShareType, classify_with_overrides, parse_share_type
from ..utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()

COMPANY_REQUIRED_MESSAGE = "Company name is required"


@runtime_checkable
class ProviderAdapter(Protocol):
    """Protocol every allotment result provider implements."""

    descriptor: ClassVar[ProviderDescriptor]

    def normalize_name(self, raw_name: str) -> str:
        """Normalise a company name the way this provider's scripts are normalised."""

        ...

    def get_scripts(self) -> list[Script]:
        """Return the offerings currently checkable at the provider (empty on failure)."""

        ...

    def check_result(
        self,
        boid: str,
        company_name: str,
        share_type: ShareType | str,
    ) -> CheckResult:
        """Check one BOID against the offering matching *company_name*/*share_type*."""

        ...

    def check_result_bulk(
        self,
        boids: Sequence[str],
        company_name: str,
        share_type: ShareType | str,
        *,
        cancel: threading.Event | None = None,
    ) -> list[CheckResult]:
        """Check many BOIDs against one offering; output order follows *boids*."""

        ...


class BaseProvider(ABC):
    """State and helpers common to API and session providers.

    Subclasses set :attr:`descriptor` and may extend :attr:`normalizer` or
    declare :attr:`share_type_overrides` for wording only they use.
    """

    descriptor: ClassVar[ProviderDescriptor]
    family: ClassVar[TransportFamily]
    normalizer: ClassVar[CompanyNameNormalizer] = DEFAULT_NORMALIZER
    share_type_overrides: ClassVar[tuple[tuple[str, ShareType], ...]] = ()

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.logger = _BASE_LOGGER.getChild(f"providers.{self.provider_id}")

    @property
    def provider_id(self) -> str:
        return self.descriptor.id

    def normalize_name(self, raw_name: str) -> str:
        return self.normalizer.normalize(raw_name)

    def classify(self, raw_text: str | None) -> ShareType:
        return classify_with_overrides(raw_text, self.share_type_overrides)

    def _make_script(
        self,
        raw_name: object,
        provider_value: object,
        share_text: str | None = None,
    ) -> Script | None:
        name = str(raw_name).strip() if raw_name is not None else ""
        company_name = self.normalize_name(name)
        if not company_name or provider_value is None or provider_value == "":
            self.logger.debug(
                "Überspringe unbrauchbaren Skript-Eintrag %r (%r)", raw_name, provider_value
            )
            return None
        return Script(
            raw_name=name,
            company_name=company_name,
            share_type=self.classify(share_text if share_text is not None else name),
            provider_value=provider_value,
        )

    def _build_scripts(
        self,
        entries: Iterable[tuple[object, object] | tuple[object, object, str | None]],
    ) -> list[Script]:
        scripts: list[Script] = []
        for entry in entries:
            script = self._make_script(*entry)
            if script is not None:
                scripts.append(script)
        return scripts

    def _resolve(
        self,
        scripts: Sequence[Script],
        company_name: str,
        share_type: ShareType | str,
    ) -> Script | None:
        script = resolve_script(
            scripts,
            company_name,
            parse_share_type(share_type),
            self.normalize_name,
            provider_id=self.provider_id,
        )
        if script is None:
            self.logger.warning(
                "Firma nicht in der Liste von %s gefunden: %s (normalisiert: %s)",
                self.descriptor.display_name,
                company_name,
                self.normalize_name(company_name),
            )
        else:
            self.logger.info("%r dem Skript %r zugeordnet", company_name, script.raw_name)
        return script


__all__ = ["COMPANY_REQUIRED_MESSAGE", "BaseProvider", "ProviderAdapter"]
