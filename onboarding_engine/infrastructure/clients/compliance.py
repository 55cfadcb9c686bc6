"""Compliance backend HTTP client - customer creation, workflow submission and risk verdicts"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

import httpx

from onboarding_engine.config import settings
from onboarding_engine.domain.exceptions import ComplianceServiceError
from onboarding_engine.domain.models import ApplicantRecord, ComplianceResult, ComplianceStatus, CustomerStatus
from onboarding_engine.infrastructure.observability.metrics import compliance_latency_histogram

logger = logging.getLogger(__name__)

COUNTRY_ISO_CODES = {
    "nederland": "NL", "netherlands": "NL", "the netherlands": "NL",
    "belgie": "BE", "belgium": "BE", "belgië": "BE",
    "duitsland": "DE", "germany": "DE",
    "frankrijk": "FR", "france": "FR",
    "verenigd koninkrijk": "GB", "united kingdom": "GB", "uk": "GB", "england": "GB",
    "spanje": "ES", "spain": "ES",
    "italië": "IT", "italy": "IT", "italie": "IT",
    "portugal": "PT",
    "oostenrijk": "AT", "austria": "AT",
    "zwitserland": "CH", "switzerland": "CH",
    "polen": "PL", "poland": "PL",
    "turkije": "TR", "turkey": "TR",
    "rusland": "RU", "russia": "RU",
    "china": "CN",
    "india": "IN",
    "japan": "JP",
    "verenigde staten": "US", "united states": "US", "usa": "US", "america": "US",
    "iran": "IR",
    "afghanistan": "AF",
    "noord-korea": "KP", "north korea": "KP",
    "syrië": "SY", "syria": "SY",
}

DEFAULT_COUNTRY = "NL"

# Backend risk score bands, these differ from the local risk model
BACKEND_MEDIUM_RISK_SCORE = 40
BACKEND_HIGH_RISK_SCORE = 70


def map_country_to_iso(country: str | None) -> str:
    """Country name (English or Dutch) to ISO 3166 alpha-2, NL when unknown"""
    normalized = (country or "").strip().lower()
    return COUNTRY_ISO_CODES.get(normalized, DEFAULT_COUNTRY)


def map_source_of_wealth(primary_source: str | None) -> str:
    """
    Map the declared primary source to the backend's source_of_wealth enum.

    Unknown sources map to OTHER, which the backend treats as high risk.
    """
    source = (primary_source or "").lower()

    if source == "salary" or "salaris" in source or "loon" in source:
        return "SALARY"
    if source == "savings" or "spaar" in source:
        return "SALARY"  # savings count as regular income
    if source == "inheritance" or "erfenis" in source:
        return "INHERITANCE"
    if source == "sale_business" or any(s in source for s in ("bedrijf", "business", "onderneming")):
        return "BUSINESS"
    if source == "investment_returns" or "belegging" in source or "investment" in source:
        return "INVESTMENTS"
    if source == "sale_property" or any(s in source for s in ("vastgoed", "real_estate", "onroerend")):
        return "REAL_ESTATE"
    if "loterij" in source or "lottery" in source:
        return "LOTTERY"
    if "crypto" in source:
        return "CRYPTO"
    if source == "other" or "anders" in source:
        return "OTHER"

    logger.warning(f"Unknown source of wealth {primary_source!r}, defaulting to OTHER")
    return "OTHER"


def backend_risk_level(score: int) -> str:
    if score < BACKEND_MEDIUM_RISK_SCORE:
        return "low"
    elif score < BACKEND_HIGH_RISK_SCORE:
        return "medium"
    else:
        return "high"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_customer_payload(customer_id: str, record: ApplicantRecord) -> Dict[str, Any]:
    """Backend CustomerCreate body from the applicant record"""
    personal = record.personal_data
    address = record.address_data
    tax_status = record.tax_status
    source_of_funds = record.source_of_funds

    name = f"{personal.first_name} {personal.last_name}" if personal else "Unknown"

    date_of_birth = personal.date_of_birth if personal else ""
    try:
        date_of_birth = datetime.fromisoformat(date_of_birth).isoformat()
    except ValueError:
        date_of_birth = date_of_birth or _now()

    return {
        "name": name,
        "date_of_birth": date_of_birth,
        "nationality": map_country_to_iso((personal.nationality if personal else "") or "Nederland"),
        "country_of_residence": map_country_to_iso((address.country if address else "") or "Nederland"),
        "source_of_wealth": map_source_of_wealth(
            (source_of_funds.primary_source if source_of_funds else "") or "salary"
        ),
        "is_pep": bool(tax_status and tax_status.is_pep is True),
        "external_id": customer_id,
    }


class ComplianceClient:
    """Client for the external compliance decision service"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.compliance_api_base
        self.api_key = api_key if api_key is not None else settings.compliance_api_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"X-API-Key": self.api_key, "Content-Type": "application/json"},
            transport=self.transport,
        )

    async def submit_onboarding(self, customer_id: str, record: ApplicantRecord) -> ComplianceResult:
        """
        Submit a completed application and return the backend's verdict.

        Flow:
        1. Create the customer (POST /customers/)
        2. Submit the onboarding workflow (POST /workflow/submit)
        3. Run the backend risk assessment (POST /risk/assess)
        4. Move the workflow to APPROVED or MANUAL_REVIEW (POST /workflow/status)

        A failing risk assessment falls back to MANUAL_REVIEW, a failing
        status update is only logged.

        Raises:
            ComplianceServiceError: On timeout, HTTP errors, or invalid response
        """
        async with self._client() as client:
            try:
                with compliance_latency_histogram.time():
                    create_response = await client.post("/customers/", json=build_customer_payload(customer_id, record))
                    create_response.raise_for_status()
                    created_customer = create_response.json()

                    submit_response = await client.post("/workflow/submit", json={"customer_id": customer_id})
                    submit_response.raise_for_status()

                    risk_result = await self._assess_risk(client, created_customer["id"])

                    approved = risk_result.get("result") == ComplianceStatus.APPROVED.value
                    new_status = ComplianceStatus.APPROVED if approved else ComplianceStatus.MANUAL_REVIEW
                    reason = (
                        "Low risk - approved automatically"
                        if approved
                        else "Manual review required based on risk profile"
                    )
                    await self._update_status(client, created_customer["id"], new_status, reason)

            except httpx.TimeoutException as e:
                raise ComplianceServiceError(f"Compliance API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ComplianceServiceError(f"Compliance API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise ComplianceServiceError(f"Compliance API unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise ComplianceServiceError(f"Invalid response from compliance API: {e}") from e

        risk_score = risk_result.get("total_score") or 0
        return ComplianceResult(
            status=new_status,
            eligible=new_status == ComplianceStatus.APPROVED,
            reason=reason,
            checked_at=_now(),
            risk_score=risk_score,
            risk_level=backend_risk_level(risk_score),
        )

    async def _assess_risk(self, client: httpx.AsyncClient, backend_id: Any) -> Dict[str, Any]:
        response = await client.post("/risk/assess", json={"customer_id": backend_id, "assessed_by": "Portal"})
        if response.is_error:
            logger.error(f"Risk assessment failed: {response.status_code}", extra={"customer_id": backend_id})
            return {"result": ComplianceStatus.MANUAL_REVIEW.value, "total_score": 0}
        return response.json()

    async def _update_status(
        self, client: httpx.AsyncClient, backend_id: Any, new_status: ComplianceStatus, reason: str
    ) -> None:
        try:
            response = await client.post(
                "/workflow/status",
                json={"customer_id": str(backend_id), "new_status": new_status.value, "reason": reason},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to update workflow status: {e}", extra={"customer_id": backend_id})

    async def check_eligibility(self, customer_id: str) -> ComplianceResult:
        """
        Current eligibility of an already submitted customer.

        An unreachable or failing backend yields MANUAL_REVIEW rather than
        an error, so callers always get a verdict.
        """
        async with self._client() as client:
            try:
                response = await client.get(f"/portal/eligibility/{customer_id}")
                response.raise_for_status()
                data = response.json()
                status = ComplianceStatus(data["status"])
            except (httpx.HTTPError, KeyError, ValueError) as e:
                logger.error(f"Compliance eligibility check failed: {e}", extra={"customer_id": customer_id})
                return ComplianceResult(
                    status=ComplianceStatus.MANUAL_REVIEW,
                    eligible=False,
                    reason="Compliance check could not be performed. Manual review required.",
                    checked_at=_now(),
                )

        return ComplianceResult(
            status=status,
            eligible=status == ComplianceStatus.APPROVED,
            reason=data.get("reason") or data.get("message"),
            checked_at=data.get("checked_at") or _now(),
            risk_score=data.get("risk_score"),
            risk_level=data.get("risk_level"),
        )

    async def get_customer_status(self, customer_id: str) -> CustomerStatus:
        """Poll whether a reviewer has activated the account yet"""
        async with self._client() as client:
            try:
                response = await client.get(f"/portal/customer/{customer_id}/status")
                response.raise_for_status()
                data = response.json()
                status = ComplianceStatus(data["status"])
            except (httpx.HTTPError, KeyError, ValueError) as e:
                logger.warning(f"Customer status poll failed: {e}", extra={"customer_id": customer_id})
                return CustomerStatus(status=ComplianceStatus.MANUAL_REVIEW, is_active=False)

        return CustomerStatus(status=status, is_active=bool(data.get("is_active")))
