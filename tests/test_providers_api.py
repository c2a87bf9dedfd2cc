from __future__ import annotations

import json
import threading
from collections.abc import Callable
from typing import Any

import pytest
import requests

from ipocheck.config import Settings
from ipocheck.models import CheckResult
from ipocheck.providers.global_ime_capital import GlobalImeCapitalProvider
from ipocheck.providers.kumari_capital import KumariCapitalProvider
from ipocheck.providers.nepal_sbi import NepalSbiProvider
from ipocheck.providers.nimb_ace_capital import NimbAceCapitalProvider
from ipocheck.providers.sanima_capital import SanimaCapitalProvider
from ipocheck.share_types import ShareType


class _DummyResponse:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


Handler = Callable[[str, str, dict[str, Any], Any], _DummyResponse]


class _FakeSession:
    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self.calls: list[dict[str, Any]] = []

    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        timeout: tuple[float, float] | None = None,
    ) -> _DummyResponse:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "params": params or {},
                "json": json,
                "headers": headers or {},
                "timeout": timeout,
            }
        )
        return self._handler(method, url, params or {}, json)


SETTINGS = Settings(max_workers=4)
NSMBL = "https://www.nsmbl.com.np/frontapi/en"


def _nepal_sbi_handler(
    allotments: dict[str, Any],
) -> Handler:
    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        if url == f"{NSMBL}/ipo":
            return _DummyResponse(
                [
                    {"id": 7, "name": "Himalayan Reinsurance Limited (General Public)"},
                    {"id": 8, "name": "Example Hydro Limited (Foreign Employment)"},
                    {"id": None, "name": "Broken Entry"},
                ]
            )
        if url == f"{NSMBL}/ipo/filter":
            outcome = allotments[params["boidNumber"]]
            if isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, int):
                return _DummyResponse({"message": "error"}, status_code=outcome)
            return _DummyResponse(outcome)
        raise AssertionError(f"unexpected url {url}")

    return handler


def _nepal_sbi(allotments: dict[str, Any]) -> tuple[NepalSbiProvider, _FakeSession]:
    session = _FakeSession(_nepal_sbi_handler(allotments))
    return NepalSbiProvider(SETTINGS, session=session), session


def test_nepal_sbi_get_scripts_parses_and_classifies() -> None:
    provider, session = _nepal_sbi({})

    scripts = provider.get_scripts()

    assert [script.provider_value for script in scripts] == [7, 8]
    assert scripts[0].company_name == "himalayan reinsurance"
    assert scripts[0].share_type is ShareType.ORDINARY
    assert scripts[1].share_type is ShareType.MIGRANT_WORKERS
    headers = session.calls[0]["headers"]
    assert headers["X-Requested-With"] == "XMLHttpRequest"
    assert headers["Referer"] == "https://www.nsmbl.com.np/ipo"
    assert session.calls[0]["timeout"] == SETTINGS.http_timeout


def test_nepal_sbi_allotted() -> None:
    provider, session = _nepal_sbi(
        {"1301000000000001": {"error": False, "data": {"allotments": {"alloted_kitta": "10"}}}}
    )

    result = provider.check_result(
        "1301000000000001", "Himalayan Re-Insurance Ltd.", ShareType.ORDINARY
    )

    assert result == CheckResult(
        success=True,
        boid="1301000000000001",
        allotted=True,
        units=10,
        message="Allotted 10 units",
        provider_id="nepal-sbi",
        company="Himalayan Reinsurance Limited (General Public)",
    )
    assert session.calls[-1]["params"] == {"companyId": 7, "boidNumber": "1301000000000001"}


def test_nepal_sbi_not_allotted_and_zero_units() -> None:
    provider, _ = _nepal_sbi(
        {
            "A": {"error": True, "message": "No record found"},
            "B": {"error": False, "data": {"allotments": {"alloted_kitta": 0}}},
        }
    )

    first = provider.check_result("A", "Himalayan Reinsurance", "ordinary")
    second = provider.check_result("B", "Himalayan Reinsurance", "ordinary")

    assert (first.success, first.allotted, first.units) == (True, False, None)
    assert first.message == "Not Allotted"
    assert (second.success, second.allotted, second.units) == (True, False, None)
    assert second.message == "Allotted 0 units"


def test_nepal_sbi_status_500_is_a_soft_miss() -> None:
    provider, _ = _nepal_sbi({"A": 500})

    result = provider.check_result("A", "Himalayan Reinsurance", "ordinary")

    assert result.success is True
    assert result.allotted is False
    assert result.message == "Sorry, not allotted (500)"


@pytest.mark.parametrize(
    ("provider_class", "status"),
    [
        (NepalSbiProvider, 500),
        (SanimaCapitalProvider, 500),
        (GlobalImeCapitalProvider, 422),
        (NimbAceCapitalProvider, 400),
    ],
)
def test_listing_error_status_is_a_failure_not_a_miss(provider_class: type, status: int) -> None:
    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        return _DummyResponse({"message": "Server Error"}, status_code=status)

    session = _FakeSession(handler)
    provider = provider_class(SETTINGS, session=session)

    assert provider.get_scripts() == []
    result = provider.check_result("A", "Himalayan Reinsurance", "ordinary")
    assert result.success is False
    assert result.allotted is False
    assert f"Unexpected HTTP status {status}" in result.message
    assert all(call["method"] == "GET" for call in session.calls)


def test_nepal_sbi_timeout_is_a_failure() -> None:
    provider, _ = _nepal_sbi({"A": requests.Timeout("read timed out")})

    result = provider.check_result("A", "Himalayan Reinsurance", "ordinary")

    assert result.success is False
    assert result.allotted is False
    assert result.units is None
    assert "Connection timed out" in result.message


def test_unknown_company_is_a_soft_miss() -> None:
    provider, session = _nepal_sbi({})

    result = provider.check_result("A", "Nonexistent Power Company", "ordinary")

    assert result.success is True
    assert result.allotted is False
    assert result.message == "Company not found: Nonexistent Power Company"
    assert len(session.calls) == 1


def test_missing_company_name_is_a_failure() -> None:
    provider, session = _nepal_sbi({})

    result = provider.check_result("A", "", "ordinary")

    assert result.success is False
    assert result.message == "Company name is required"
    assert session.calls == []


def test_script_outage_is_a_failure_for_checks_but_empty_for_listing() -> None:
    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        raise requests.ConnectionError("connection refused")

    provider = NepalSbiProvider(SETTINGS, session=_FakeSession(handler))

    assert provider.get_scripts() == []
    result = provider.check_result("A", "Himalayan Reinsurance", "ordinary")
    assert result.success is False
    assert "connection refused" in result.message


def test_malformed_script_list_yields_no_scripts() -> None:
    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        return _DummyResponse({"unexpected": "shape"})

    provider = SanimaCapitalProvider(SETTINGS, session=_FakeSession(handler))

    assert provider.get_scripts() == []
    result = provider.check_result("A", "Himalayan Reinsurance", "ordinary")
    assert result.success is True
    assert result.message.startswith("Company not found")


def test_bulk_preserves_order_and_isolates_failures() -> None:
    provider, _ = _nepal_sbi(
        {
            "A": {"error": False, "data": {"allotments": {"alloted_kitta": 20}}},
            "B": {"error": True},
            "C": RuntimeError("boom"),
            "D": {"error": False, "data": {"allotments": {"alloted_kitta": "1,000"}}},
        }
    )

    results = provider.check_result_bulk(["A", "B", "C", "D"], "Himalayan Reinsurance", "ordinary")

    assert [result.boid for result in results] == ["A", "B", "C", "D"]
    assert (results[0].allotted, results[0].units) == (True, 20)
    assert (results[1].success, results[1].allotted, results[1].units) == (True, False, None)
    assert results[2].success is False
    assert "boom" in results[2].message
    assert (results[3].allotted, results[3].units) == (True, 1000)


def test_bulk_cancelled_before_start() -> None:
    provider, session = _nepal_sbi({})
    cancel = threading.Event()
    cancel.set()

    results = provider.check_result_bulk(
        ["A", "B"], "Himalayan Reinsurance", "ordinary", cancel=cancel
    )

    assert [result.boid for result in results] == ["A", "B"]
    assert all(result.success is False for result in results)
    assert all(result.message == "Cancelled before check" for result in results)
    assert session.calls == []


def test_retryable_status_is_retried_when_configured() -> None:
    attempts: list[int] = []

    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        attempts.append(1)
        if len(attempts) == 1:
            return _DummyResponse({}, status_code=503)
        return _DummyResponse([{"id": 1, "name": "Example Bank Limited"}])

    provider = NepalSbiProvider(
        Settings(retry_attempts=2), session=_FakeSession(handler)
    )

    scripts = provider.get_scripts()

    assert len(attempts) == 2
    assert [script.company_name for script in scripts] == ["example bank"]


def test_retryable_status_is_not_retried_by_default() -> None:
    attempts: list[int] = []

    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        attempts.append(1)
        return _DummyResponse({}, status_code=503)

    provider = NepalSbiProvider(SETTINGS, session=_FakeSession(handler))

    assert provider.get_scripts() == []
    assert len(attempts) == 1


def test_invalid_json_is_a_failure() -> None:
    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        if url.endswith("/ipo"):
            return _DummyResponse([{"id": 1, "name": "Example Bank Limited"}])
        return _DummyResponse(ValueError("not json"))

    provider = NepalSbiProvider(SETTINGS, session=_FakeSession(handler))

    result = provider.check_result("A", "Example Bank", "ordinary")

    assert result.success is False
    assert "Invalid JSON response" in result.message


GIME = "https://globalimecapital.com/api/v1/public"


def test_global_ime_checks_by_post_and_treats_422_as_not_allotted() -> None:
    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        if url == f"{GIME}/companies":
            assert params == {"type": "share-allotment-check"}
            return _DummyResponse(
                {"status": "success", "data": [{"id": 5, "name": "Example Bank Limited"}]}
            )
        assert method == "POST"
        assert url == f"{GIME}/share-allotment-check"
        if body["boid"] == "A":
            return _DummyResponse({"status": "success", "data": [{"allotted_kitta": "20.00"}]})
        if body["boid"] == "B":
            return _DummyResponse({"message": "invalid"}, status_code=422)
        return _DummyResponse({"status": "success", "data": []})

    session = _FakeSession(handler)
    provider = GlobalImeCapitalProvider(SETTINGS, session=session)

    results = provider.check_result_bulk(["A", "B", "C"], "Example Bank Ltd.", "ordinary")

    assert (results[0].allotted, results[0].units) == (True, 20)
    assert (results[1].success, results[1].allotted) == (True, False)
    assert results[1].message == "Sorry, not allotted (422)"
    assert (results[2].success, results[2].allotted, results[2].units) == (True, False, None)
    posts = [call for call in session.calls if call["method"] == "POST"]
    assert {call["json"]["company_id"] for call in posts} == {5}


def test_global_ime_non_success_listing_is_empty() -> None:
    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        return _DummyResponse({"status": "error"})

    provider = GlobalImeCapitalProvider(SETTINGS, session=_FakeSession(handler))

    assert provider.get_scripts() == []


KUMARI = "https://api-web.kumaricapital.com"


def _kumari_handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
    if url == f"{KUMARI}/items/company":
        return _DummyResponse(
            {
                "data": [
                    {"id": 1, "company_name": "Example Hydro Limited", "type": "others"},
                    {"id": 2, "company_name": "Listed Bank Limited", "type": "bank"},
                    {"id": 3, "company_name": "Broken Scheme", "type": "scheme"},
                ]
            }
        )
    if url == f"{KUMARI}/items/share_details_search_type":
        company_id = json.loads(params["filter"])["company"]["_eq"]
        if company_id == 1:
            return _DummyResponse(
                {
                    "data": [
                        {"id": 11, "title": "IPO for General Public"},
                        {"id": 12, "title": "IPO for Foreign Employment"},
                    ]
                }
            )
        if company_id == 3:
            return _DummyResponse({}, status_code=404)
        raise AssertionError(f"company {company_id} should have been filtered out")
    if url == f"{KUMARI}/sharedetails/search-details":
        if params["holderId"] == "A":
            return _DummyResponse({"data": [{"allotted_kitta": 10}]})
        return _DummyResponse({"data": []})
    raise AssertionError(f"unexpected url {url}")


def test_kumari_two_step_listing_skips_failed_companies() -> None:
    provider = KumariCapitalProvider(SETTINGS, session=_FakeSession(_kumari_handler))

    scripts = provider.get_scripts()

    assert [(script.provider_value, script.share_type) for script in scripts] == [
        (11, ShareType.ORDINARY),
        (12, ShareType.MIGRANT_WORKERS),
    ]
    assert {script.raw_name for script in scripts} == {"Example Hydro Limited"}


def test_kumari_bulk_resolves_the_offering_once() -> None:
    session = _FakeSession(_kumari_handler)
    provider = KumariCapitalProvider(SETTINGS, session=session)

    results = provider.check_result_bulk(
        ["A", "B", "C"], "Example Hydro", ShareType.MIGRANT_WORKERS
    )

    assert [result.boid for result in results] == ["A", "B", "C"]
    assert (results[0].allotted, results[0].units) == (True, 10)
    assert [result.allotted for result in results[1:]] == [False, False]
    company_calls = [call for call in session.calls if call["url"].endswith("/items/company")]
    assert len(company_calls) == 1
    lookups = [call for call in session.calls if call["url"].endswith("/search-details")]
    assert {call["params"]["share_details_search_type"] for call in lookups} == {12}
    assert all(call["params"]["type"] == 2 for call in lookups)


NIMB = "https://tradepulse.com.np/tradepulse-capital/web-api/tradepulse-allotment/v1"


def test_nimb_ace_capital_outcomes() -> None:
    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        if url == f"{NIMB}/public/ipo-allotment-result/companies":
            return _DummyResponse(
                {
                    "code": "0",
                    "data": [{"companyName": "Example Hydro Limited", "companyCode": "EXH"}],
                }
            )
        assert url == f"{NIMB}/allotments/public/search"
        assert body["companyCode"] == "EXH"
        outcomes = {
            "A": _DummyResponse({"code": "0", "data": {"allottedKitta": 10}}),
            "B": _DummyResponse({"message": "bad request"}, status_code=400),
            "C": _DummyResponse({"code": "1", "message": "No record found"}),
            "D": _DummyResponse({"code": "0", "data": {"unexpected": True}}),
            "E": _DummyResponse({"code": "0", "data": "Not Allotted"}),
        }
        return outcomes[body["boid"]]

    session = _FakeSession(handler)
    provider = NimbAceCapitalProvider(SETTINGS, session=session)

    results = provider.check_result_bulk(["A", "B", "C", "D", "E"], "Example Hydro", "ordinary")

    assert (results[0].success, results[0].allotted, results[0].units) == (True, True, 10)
    assert (results[1].success, results[1].allotted) == (True, False)
    assert results[2].message == "No record found"
    assert results[2].allotted is False
    assert results[3].success is False
    assert (results[4].success, results[4].allotted) == (True, False)
    assert session.calls[0]["headers"]["X-MULTITENANCY-TOKEN"] == "1003"


@pytest.mark.parametrize(
    "provider_class",
    [NepalSbiProvider, SanimaCapitalProvider, GlobalImeCapitalProvider, NimbAceCapitalProvider],
)
def test_api_providers_send_configured_user_agent(provider_class: type) -> None:
    def handler(method: str, url: str, params: dict[str, Any], body: Any) -> _DummyResponse:
        return _DummyResponse([])

    session = _FakeSession(handler)
    provider = provider_class(Settings(user_agent="ipocheck-test"), session=session)

    provider.get_scripts()

    assert session.calls[0]["headers"]["User-Agent"] == "ipocheck-test"
