"""POST /v1/risk/assess - stateless risk assessment of applicant data"""

from fastapi import APIRouter, Request

from onboarding_engine.api.dependencies import get_request_id
from onboarding_engine.api.v1.schemas import ApplicantDataUpdate, RiskAssessmentResponse
from onboarding_engine.domain.models import ApplicantRecord
from onboarding_engine.domain.risk import assess_risk
from onboarding_engine.infrastructure.observability.logging import log_risk_assessment
from onboarding_engine.infrastructure.observability.metrics import record_risk_assessment

router = APIRouter()


@router.post("/risk/assess", response_model=RiskAssessmentResponse)
def assess(body: ApplicantDataUpdate, request: Request):
    """
    Score applicant data without a session.

    Returns:
        Overall score, risk level and all six factors in canonical order
    """
    record = ApplicantRecord().merge(body.step_data())
    assessment = assess_risk(record)

    record_risk_assessment(assessment)
    log_risk_assessment(get_request_id(request), None, assessment)

    return RiskAssessmentResponse.from_assessment(assessment)
