"""Unit tests for the compliance backend client"""

import json
import httpx
import pytest
from onboarding_engine.domain.exceptions import ComplianceServiceError
from onboarding_engine.domain.models import (
    AddressData,
    ApplicantRecord,
    ComplianceStatus,
    PersonalData,
    SourceOfFunds,
    TaxStatus,
)
from onboarding_engine.infrastructure.clients.compliance import (
    ComplianceClient,
    backend_risk_level,
    build_customer_payload,
    map_country_to_iso,
    map_source_of_wealth,
)


def make_client(handler) -> ComplianceClient:
    return ComplianceClient(
        base_url="http://compliance.test",
        api_key="test-key",
        transport=httpx.MockTransport(handler),
    )


def backend(risk_response: httpx.Response | None = None, status_code: int = 200):
    """Fake backend recording every request it receives"""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        path = request.url.path
        if path == "/customers/":
            return httpx.Response(status_code, json={"id": 42})
        if path == "/workflow/submit":
            return httpx.Response(200, json={"status": "SUBMITTED"})
        if path == "/risk/assess":
            return risk_response or httpx.Response(200, json={"result": "APPROVED", "total_score": 10})
        if path == "/workflow/status":
            return httpx.Response(200, json={"ok": True})
        return httpx.Response(404)

    return handler, calls


@pytest.fixture
def record() -> ApplicantRecord:
    return ApplicantRecord(
        personal_data=PersonalData(first_name="Anna", last_name="de Vries", date_of_birth="1990-05-01", nationality="Nederland"),
        address_data=AddressData(country="Belgium"),
        tax_status=TaxStatus(is_pep=False),
        source_of_funds=SourceOfFunds(primary_source="inheritance"),
    )


async def test_submit_onboarding_approved(record: ApplicantRecord):
    handler, calls = backend()
    result = await make_client(handler).submit_onboarding("cust_abc", record)

    assert result.status == ComplianceStatus.APPROVED
    assert result.eligible is True
    assert result.risk_score == 10
    assert result.risk_level == "low"
    assert [c.url.path for c in calls] == ["/customers/", "/workflow/submit", "/risk/assess", "/workflow/status"]
    assert all(c.headers["X-API-Key"] == "test-key" for c in calls)

    customer = json.loads(calls[0].content)
    assert customer["external_id"] == "cust_abc"
    assert customer["nationality"] == "NL"
    assert customer["country_of_residence"] == "BE"
    assert customer["source_of_wealth"] == "INHERITANCE"

    risk_request = json.loads(calls[2].content)
    assert risk_request == {"customer_id": 42, "assessed_by": "Portal"}


async def test_failing_risk_assessment_falls_back_to_manual_review(record: ApplicantRecord):
    handler, calls = backend(risk_response=httpx.Response(500))
    result = await make_client(handler).submit_onboarding("cust_abc", record)

    assert result.status == ComplianceStatus.MANUAL_REVIEW
    assert result.eligible is False
    assert result.risk_score == 0

    status_update = json.loads(calls[-1].content)
    assert status_update["new_status"] == "MANUAL_REVIEW"
    assert status_update["customer_id"] == "42"


async def test_customer_creation_error_raises(record: ApplicantRecord):
    handler, _ = backend(status_code=500)

    with pytest.raises(ComplianceServiceError):
        await make_client(handler).submit_onboarding("cust_abc", record)


async def test_unreachable_backend_raises(record: ApplicantRecord):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ComplianceServiceError):
        await make_client(handler).submit_onboarding("cust_abc", record)


async def test_check_eligibility():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/portal/eligibility/cust_abc"
        return httpx.Response(200, json={"status": "APPROVED", "reason": "ok", "risk_score": 12})

    result = await make_client(handler).check_eligibility("cust_abc")

    assert result.status == ComplianceStatus.APPROVED
    assert result.eligible is True
    assert result.risk_score == 12


async def test_check_eligibility_error_means_manual_review():
    handler = lambda request: httpx.Response(503)
    result = await make_client(handler).check_eligibility("cust_abc")

    assert result.status == ComplianceStatus.MANUAL_REVIEW
    assert result.eligible is False


async def test_get_customer_status():
    handler = lambda request: httpx.Response(200, json={"status": "APPROVED", "is_active": True})
    status = await make_client(handler).get_customer_status("cust_abc")

    assert status.status == ComplianceStatus.APPROVED
    assert status.is_active is True


@pytest.mark.parametrize(
    "country, expected",
    [("Nederland", "NL"), (" Germany ", "DE"), ("noord-korea", "KP"), ("Atlantis", "NL"), (None, "NL")],
)
def test_map_country_to_iso(country, expected):
    assert map_country_to_iso(country) == expected


@pytest.mark.parametrize(
    "source, expected",
    [
        ("salary", "SALARY"),
        ("savings", "SALARY"),
        ("sale_business", "BUSINESS"),
        ("investment_returns", "INVESTMENTS"),
        ("sale_property", "REAL_ESTATE"),
        ("Loterij", "LOTTERY"),
        ("crypto", "CRYPTO"),
        ("other", "OTHER"),
        ("something new", "OTHER"),
    ],
)
def test_map_source_of_wealth(source, expected):
    assert map_source_of_wealth(source) == expected


def test_build_customer_payload_defaults():
    payload = build_customer_payload("cust_abc", ApplicantRecord())

    assert payload["name"] == "Unknown"
    assert payload["nationality"] == "NL"
    assert payload["source_of_wealth"] == "SALARY"
    assert payload["is_pep"] is False


def test_backend_risk_level_bands():
    assert backend_risk_level(39) == "low"
    assert backend_risk_level(40) == "medium"
    assert backend_risk_level(70) == "high"
