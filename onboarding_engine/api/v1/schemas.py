"""Pydantic schemas for API request/response validation"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from onboarding_engine.domain.models import (
    AccountType,
    AddressData,
    AgreementData,
    BankAccountData,
    BusinessData,
    ComplianceResult,
    DocumentData,
    EnhancedDueDiligenceData,
    InvestmentProfile,
    PersonalData,
    RiskAssessment,
    RiskFactor,
    RiskLevel,
    SourceOfFunds,
    TaxStatus,
)
from onboarding_engine.domain.risk import risk_label
from onboarding_engine.domain.session import OnboardingSession, SubmissionState
from onboarding_engine.domain.steps import STEP_NAMES, OnboardingStep


class ApplicantDataUpdate(BaseModel):
    """
    Body for PATCH /v1/sessions/{id}/data and POST /v1/risk/assess.

    Only the keys sent are merged; each one replaces the stored payload
    for that step. Unknown keys are passed through untouched.
    """

    model_config = ConfigDict(extra="allow")

    account_type: Optional[AccountType] = None
    personal_data: Optional[PersonalData] = None
    business_data: Optional[BusinessData] = None
    address_data: Optional[AddressData] = None
    id_document: Optional[DocumentData] = None
    address_proof: Optional[DocumentData] = None
    tax_status: Optional[TaxStatus] = None
    source_of_funds: Optional[SourceOfFunds] = None
    investment_profile: Optional[InvestmentProfile] = None
    bank_account: Optional[BankAccountData] = None
    enhanced_due_diligence: Optional[EnhancedDueDiligenceData] = None
    agreement: Optional[AgreementData] = None

    def step_data(self) -> Dict[str, Any]:
        data = {name: getattr(self, name) for name in self.model_fields_set if name in type(self).model_fields}
        data.update(self.model_extra or {})
        return data


class AccountTypeRequest(BaseModel):
    """Request body for PUT /v1/sessions/{id}/account-type"""

    account_type: AccountType


class GoToRequest(BaseModel):
    """Request body for POST /v1/sessions/{id}/goto"""

    step: OnboardingStep


class RiskAssessmentResponse(BaseModel):
    """Itemized risk assessment"""

    overall_score: int
    risk_level: RiskLevel
    risk_label: str
    factors: List[RiskFactor]
    requires_manual_review: bool
    auto_approved: bool

    @classmethod
    def from_assessment(cls, assessment: RiskAssessment) -> "RiskAssessmentResponse":
        return cls(
            overall_score=assessment.overall_score,
            risk_level=assessment.risk_level,
            risk_label=risk_label(assessment.risk_level),
            factors=assessment.factors,
            requires_manual_review=assessment.requires_manual_review,
            auto_approved=assessment.auto_approved,
        )


class StepSchema(BaseModel):
    """One entry of the step sequence"""

    step: OnboardingStep
    name: str


class SessionStateResponse(BaseModel):
    """Everything the presentation layer needs to render a session"""

    session_id: str
    current_step: OnboardingStep
    current_step_name: str
    steps: List[StepSchema]
    progress: int = Field(..., ge=0, le=100)
    account_type: Optional[str] = None
    data: Dict[str, Any]
    risk_assessment: RiskAssessmentResponse
    compliance_result: Optional[ComplianceResult] = None
    customer_id: Optional[str] = None
    submission_state: SubmissionState
    is_loading: bool
    error: Optional[str] = None

    @classmethod
    def from_session(cls, session: OnboardingSession) -> "SessionStateResponse":
        return cls(
            session_id=session.session_id,
            current_step=session.current_step,
            current_step_name=STEP_NAMES[session.current_step],
            steps=[StepSchema(step=step, name=STEP_NAMES[step]) for step in session.steps],
            progress=session.progress,
            account_type=session.account_type.value if session.account_type else None,
            data=dict(session.data),
            risk_assessment=RiskAssessmentResponse.from_assessment(session.risk_assessment),
            compliance_result=session.compliance_result,
            customer_id=session.customer_id,
            submission_state=session.submission_state,
            is_loading=session.is_loading,
            error=session.error,
        )
