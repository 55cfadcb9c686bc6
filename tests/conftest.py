"""Pytest fixtures for testing"""

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from onboarding_engine.api.main import create_app
from onboarding_engine.domain.models import (
    AddressData,
    ApplicantRecord,
    ComplianceResult,
    ComplianceStatus,
    InvestmentProfile,
    PersonalData,
    SourceOfFunds,
    TaxCountry,
    TaxStatus,
)
from onboarding_engine.domain.session import OnboardingSession
from onboarding_engine.infrastructure.sessions import SessionRegistry

TEST_CUSTOMER_ID = "cust_test_0001"


@pytest.fixture
def approved_result() -> ComplianceResult:
    return ComplianceResult(
        status=ComplianceStatus.APPROVED,
        eligible=True,
        reason="Low risk - approved automatically",
        checked_at="2024-01-01T00:00:00+00:00",
        risk_score=10,
        risk_level="low",
    )


@pytest.fixture
def gateway(approved_result: ComplianceResult) -> AsyncMock:
    """Compliance backend double that approves everything"""
    mock = AsyncMock()
    mock.submit_onboarding.return_value = approved_result
    return mock


@pytest.fixture
def customer_id_factory():
    return lambda: TEST_CUSTOMER_ID


@pytest.fixture
def session(gateway: AsyncMock, customer_id_factory) -> OnboardingSession:
    return OnboardingSession(gateway, customer_id_factory=customer_id_factory)


@pytest.fixture
def registry(gateway: AsyncMock, customer_id_factory) -> SessionRegistry:
    return SessionRegistry(gateway, customer_id_factory=customer_id_factory)


@pytest.fixture
def client(registry: SessionRegistry) -> TestClient:
    """Create FastAPI test client backed by the mocked compliance gateway"""
    app = create_app(registry)
    return TestClient(app)


@pytest.fixture
def low_risk_record() -> ApplicantRecord:
    """Dutch salaried applicant with some experience"""
    return ApplicantRecord(
        personal_data=PersonalData(first_name="Anna", last_name="de Vries", nationality="Netherlands"),
        address_data=AddressData(street="Keizersgracht", house_number="1", city="Amsterdam", country="Netherlands"),
        tax_status=TaxStatus(tax_countries=[TaxCountry(country="Netherlands", tin="123456789")]),
        source_of_funds=SourceOfFunds(primary_source="salary", expected_investment="5000-25000"),
        investment_profile=InvestmentProfile(experience="beginner"),
    )


@pytest.fixture
def high_risk_record() -> ApplicantRecord:
    """Inheritance money above 100k, no PEP or US person"""
    return ApplicantRecord(
        source_of_funds=SourceOfFunds(primary_source="inheritance", expected_investment="100000+"),
    )


@pytest.fixture
def pep_record() -> ApplicantRecord:
    return ApplicantRecord(
        tax_status=TaxStatus(is_pep=True),
        source_of_funds=SourceOfFunds(primary_source="salary"),
    )
