"""Base implementation for providers that publish results through a JSON API."""

from __future__ import annotations

import threading
from abc import abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

import requests
from requests import Response
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..bulk import run_parallel
from ..config import Settings
from ..exceptions import TransportError
from ..models import (
    CheckResult,
    Script,
    TransportFamily,
    failed_result,
    not_allotted_result,
    not_found_result,
)
from ..share_types import ShareType
from ..utils.logging_setup import setup_logger
from .base import COMPANY_REQUIRED_MESSAGE, BaseProvider

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("providers.http")

_RETRYABLE_STATUS_CODES = {429, 502, 503, 504}


class _RetryableRequestError(TransportError):
    """Transport error worth another attempt (timeouts, 429, 502-504)."""


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    retry_obj = retry_state.retry_object
    max_attempts = "?"
    if isinstance(retry_obj, Retrying):
        stop = getattr(retry_obj, "stop", None)
        max_attempts = getattr(stop, "max_attempt_number", "?")
    if isinstance(exc, _RetryableRequestError) and exc.status_code is not None:
        LOGGER.warning(
            "Wiederhole Anfrage (Versuch %s/%s) nach Status %s",
            retry_state.attempt_number,
            max_attempts,
            exc.status_code,
        )
    else:
        LOGGER.warning(
            "Wiederhole Anfrage (Versuch %s/%s) wegen %s",
            retry_state.attempt_number,
            max_attempts,
            exc,
        )


class ApiProvider(BaseProvider):
    """Stateless provider reached over HTTP.

    Concrete providers implement :meth:`_fetch_scripts` and
    :meth:`_query_allotment`; both may raise :class:`TransportError`, which is
    turned into a failed :class:`CheckResult` here. Statuses listed in
    :attr:`soft_miss_statuses` are handed back to the provider instead of
    raising, but only for requests made with ``soft_miss=True``; some providers
    answer an allotment query for an unknown BOID with an error status.
    """

    family: ClassVar[TransportFamily] = TransportFamily.API
    base_url: ClassVar[str] = ""
    default_headers: ClassVar[Mapping[str, str]] = {
        "Accept": "application/json, text/plain, */*",
    }
    soft_miss_statuses: ClassVar[frozenset[int]] = frozenset()

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(settings)
        self._session = session if session is not None else requests.Session()
        self._headers = {"User-Agent": self.settings.user_agent, **self.default_headers}

    # -- transport -----------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
        soft_miss: bool = False,
    ) -> Response:
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.retry_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
            retry=retry_if_exception_type(_RetryableRequestError),
            after=_log_retry,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._request_once(
                    method,
                    path,
                    params=params,
                    json_body=json_body,
                    headers=headers,
                    soft_miss=soft_miss,
                )
        raise TransportError(f"{self.provider_id}: request was never attempted")

    def _request_once(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None,
        json_body: Any,
        headers: Mapping[str, str] | None,
        soft_miss: bool = False,
    ) -> Response:
        url = path if path.startswith(("http://", "https://")) else f"{self.base_url}{path}"
        merged_headers = {**self._headers, **(headers or {})}
        self.logger.debug("%s %s params=%s", method, url, params)

        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=merged_headers,
                timeout=self.settings.http_timeout,
            )
        except requests.Timeout as exc:
            raise _RetryableRequestError(f"Connection timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise _RetryableRequestError(str(exc)) from exc

        status = response.status_code
        if soft_miss and status in self.soft_miss_statuses:
            return response
        if status in _RETRYABLE_STATUS_CODES:
            raise _RetryableRequestError(f"Retryable status code: {status}", status_code=status)
        if status >= 400:
            raise TransportError(f"Unexpected HTTP status {status}", status_code=status)
        return response

    def _json(self, response: Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError("Invalid JSON response") from exc

    def _soft_miss(self, response: Response, boid: str, script: Script) -> CheckResult | None:
        if response.status_code in self.soft_miss_statuses:
            return not_allotted_result(
                self.provider_id,
                boid,
                f"Sorry, not allotted ({response.status_code})",
                company=script.raw_name,
            )
        return None

    # -- provider specific -----------------------------------------------------------

    @abstractmethod
    def _fetch_scripts(self) -> list[Script]:
        """Fetch and parse the offering list. Malformed payloads yield ``[]``."""

    @abstractmethod
    def _query_allotment(self, boid: str, script: Script) -> CheckResult:
        """Query the allotment record of *boid* for *script*."""

    # -- public contract ---------------------------------------------------------------

    def _load_scripts(self) -> list[Script]:
        scripts = self._fetch_scripts()
        self.logger.info(
            "%s IPO-Skripte von %s geladen", len(scripts), self.descriptor.display_name
        )
        return scripts

    def get_scripts(self) -> list[Script]:
        try:
            return self._load_scripts()
        except TransportError as exc:
            self.logger.warning(
                "Fehler beim Laden der Skripte von %s: %s", self.descriptor.display_name, exc
            )
            return []

    def _check_script(self, boid: str, script: Script) -> CheckResult:
        self.logger.info(
            "Prüfe IPO-Ergebnis für BOID %s bei %s (%s, ID %s)",
            boid,
            self.descriptor.display_name,
            script.raw_name,
            script.provider_value,
        )
        try:
            return self._query_allotment(boid, script)
        except TransportError as exc:
            self.logger.error(
                "Fehler bei der Ergebnisabfrage in der %s-API für BOID %s: %s",
                self.descriptor.display_name,
                boid,
                exc,
            )
            return failed_result(
                self.provider_id,
                boid,
                f"Error connecting to {self.descriptor.display_name}: {exc}",
            )

    def _resolve_for_check(
        self,
        boid_count: int,
        company_name: str,
        share_type: ShareType | str,
    ) -> tuple[Script | None, str | None]:
        """Return ``(script, None)``, ``(None, None)`` when unlisted or ``(None, error)``."""

        try:
            scripts = self._load_scripts()
        except TransportError as exc:
            self.logger.error(
                "Skripte von %s für %s BOID(s) nicht ladbar: %s",
                self.descriptor.display_name,
                boid_count,
                exc,
            )
            return None, f"Could not load offerings from {self.descriptor.display_name}: {exc}"
        return self._resolve(scripts, company_name, share_type), None

    def check_result(
        self,
        boid: str,
        company_name: str,
        share_type: ShareType | str,
    ) -> CheckResult:
        if not company_name:
            return failed_result(self.provider_id, boid, COMPANY_REQUIRED_MESSAGE)

        script, error = self._resolve_for_check(1, company_name, share_type)
        if error is not None:
            return failed_result(self.provider_id, boid, error)
        if script is None:
            return not_found_result(self.provider_id, boid, company_name)
        return self._check_script(boid, script)

    def check_result_bulk(
        self,
        boids: Sequence[str],
        company_name: str,
        share_type: ShareType | str,
        *,
        cancel: threading.Event | None = None,
    ) -> list[CheckResult]:
        return run_parallel(
            lambda boid: self.check_result(boid, company_name, share_type),
            boids,
            provider_id=self.provider_id,
            max_workers=self.settings.max_workers,
            cancel=cancel,
        )

    def _check_bulk_resolved_once(
        self,
        boids: Sequence[str],
        company_name: str,
        share_type: ShareType | str,
        *,
        cancel: threading.Event | None = None,
    ) -> list[CheckResult]:
        """Bulk variant that resolves the script once and then fans out by id."""

        if not boids:
            return []
        if not company_name:
            return [
                failed_result(self.provider_id, boid, COMPANY_REQUIRED_MESSAGE) for boid in boids
            ]

        script, error = self._resolve_for_check(len(boids), company_name, share_type)
        if error is not None:
            return [failed_result(self.provider_id, boid, error) for boid in boids]
        if script is None:
            return [not_found_result(self.provider_id, boid, company_name) for boid in boids]

        return run_parallel(
            lambda boid: self._check_script(boid, script),
            boids,
            provider_id=self.provider_id,
            max_workers=self.settings.max_workers,
            cancel=cancel,
        )


__all__ = ["ApiProvider"]
