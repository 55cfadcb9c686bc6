"""Onboarding step sequencing - which steps an applicant walks through, and in what order"""

from enum import Enum
from typing import List, Optional
from onboarding_engine.domain.models import AccountType, ApplicantRecord, RiskLevel
from onboarding_engine.domain.risk import assess_risk


class OnboardingStep(str, Enum):
    ACCOUNT_TYPE = "account_type"
    PERSONAL_DATA = "personal_data"
    BUSINESS_DATA = "business_data"
    ADDRESS = "address"
    ID_VERIFICATION = "id_verification"
    ADDRESS_PROOF = "address_proof"
    TAX_STATUS = "tax_status"
    SOURCE_OF_FUNDS = "source_of_funds"
    INVESTMENT_PROFILE = "investment_profile"
    BANK_ACCOUNT = "bank_account"
    ENHANCED_DUE_DILIGENCE = "enhanced_due_diligence"
    AGREEMENT = "agreement"
    REVIEW = "review"
    COMPLETED = "completed"  # terminal, never part of a sequence


INDIVIDUAL_STEPS = [
    OnboardingStep.ACCOUNT_TYPE,
    OnboardingStep.PERSONAL_DATA,
    OnboardingStep.ADDRESS,
    OnboardingStep.ID_VERIFICATION,
    OnboardingStep.ADDRESS_PROOF,
    OnboardingStep.TAX_STATUS,
    OnboardingStep.SOURCE_OF_FUNDS,
    OnboardingStep.INVESTMENT_PROFILE,
    OnboardingStep.BANK_ACCOUNT,
    OnboardingStep.AGREEMENT,
    OnboardingStep.REVIEW,
]

BUSINESS_STEPS = [
    OnboardingStep.ACCOUNT_TYPE,
    OnboardingStep.BUSINESS_DATA,
    OnboardingStep.PERSONAL_DATA,
    OnboardingStep.ADDRESS,
    OnboardingStep.ID_VERIFICATION,
    OnboardingStep.ADDRESS_PROOF,
    OnboardingStep.TAX_STATUS,
    OnboardingStep.SOURCE_OF_FUNDS,
    OnboardingStep.INVESTMENT_PROFILE,
    OnboardingStep.BANK_ACCOUNT,
    OnboardingStep.AGREEMENT,
    OnboardingStep.REVIEW,
]

STEP_NAMES = {
    OnboardingStep.ACCOUNT_TYPE: "Account Type",
    OnboardingStep.PERSONAL_DATA: "Personal Data",
    OnboardingStep.BUSINESS_DATA: "Business Data",
    OnboardingStep.ADDRESS: "Address",
    OnboardingStep.ID_VERIFICATION: "ID Verification",
    OnboardingStep.ADDRESS_PROOF: "Proof of Address",
    OnboardingStep.TAX_STATUS: "Tax Status",
    OnboardingStep.SOURCE_OF_FUNDS: "Source of Funds",
    OnboardingStep.INVESTMENT_PROFILE: "Investment Profile",
    OnboardingStep.BANK_ACCOUNT: "Bank Account",
    OnboardingStep.ENHANCED_DUE_DILIGENCE: "Enhanced Due Diligence",
    OnboardingStep.AGREEMENT: "Agreement",
    OnboardingStep.REVIEW: "Review",
    OnboardingStep.COMPLETED: "Completed",
}


def base_steps(account_type: Optional[AccountType]) -> List[OnboardingStep]:
    """Business applicants get BUSINESS_DATA right after ACCOUNT_TYPE"""
    if account_type == AccountType.BUSINESS:
        return list(BUSINESS_STEPS)
    return list(INDIVIDUAL_STEPS)


def build_step_sequence(account_type: Optional[AccountType], record: ApplicantRecord) -> List[OnboardingStep]:
    """
    Derive the ordered step list for an applicant.

    The list is never stored: risk is re-assessed on every call, and a
    medium or high level inserts ENHANCED_DUE_DILIGENCE right after
    BANK_ACCOUNT. Same inputs always give the same list.
    """
    steps = base_steps(account_type)
    assessment = assess_risk(record)

    if assessment.risk_level in (RiskLevel.MEDIUM, RiskLevel.HIGH):
        if OnboardingStep.ENHANCED_DUE_DILIGENCE not in steps:
            steps.insert(steps.index(OnboardingStep.BANK_ACCOUNT) + 1, OnboardingStep.ENHANCED_DUE_DILIGENCE)

    return steps


def step_index(steps: List[OnboardingStep], current_step: Optional[OnboardingStep]) -> int:
    """Position of current_step, or 0 when it is not part of the sequence"""
    try:
        return steps.index(current_step)
    except ValueError:
        return 0


def calculate_progress(steps: List[OnboardingStep], current_step: Optional[OnboardingStep]) -> int:
    """
    Percentage through the sequence: 0 at the first step, 100 at the last (review).

    Unknown steps count as the first one. A sequence with fewer than two
    steps has no meaningful progress and reports 0.
    """
    if len(steps) < 2:
        return 0
    return round(step_index(steps, current_step) / (len(steps) - 1) * 100)


def next_step(steps: List[OnboardingStep], current_step: OnboardingStep) -> OnboardingStep:
    """
    Step after current_step, clamped at the last one.

    A current step that dropped out of the sequence (e.g. BUSINESS_DATA
    after switching to an individual account) restarts at the first step.
    """
    if current_step not in steps:
        return steps[0]

    index = steps.index(current_step)
    if index < len(steps) - 1:
        return steps[index + 1]
    return current_step


def previous_step(steps: List[OnboardingStep], current_step: OnboardingStep) -> OnboardingStep:
    """Step before current_step, clamped at the first one; unknown steps stay put"""
    if current_step not in steps:
        return current_step

    index = steps.index(current_step)
    if index > 0:
        return steps[index - 1]
    return current_step
