"""Domain models - pure Python dataclasses representing onboarding entities"""

import logging
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class AccountType(str, Enum):
    """Kind of account the applicant opens"""

    INDIVIDUAL = "individual"
    BUSINESS = "business"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ComplianceStatus(str, Enum):
    """Verdict returned by the compliance backend"""

    APPROVED = "APPROVED"
    MANUAL_REVIEW = "MANUAL_REVIEW"
    REJECTED = "REJECTED"


@dataclass
class PersonalData:
    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""  # ISO date as entered
    nationality: str = ""
    phone: str = ""
    email: str = ""


@dataclass
class BusinessData:
    company_name: str = ""
    kvk_number: str = ""  # Chamber of Commerce registration
    vat_number: Optional[str] = None
    legal_form: str = ""
    incorporation_date: str = ""
    industry: str = ""


@dataclass
class AddressData:
    street: str = ""
    house_number: str = ""
    house_number_addition: Optional[str] = None
    postal_code: str = ""
    city: str = ""
    country: str = ""


@dataclass
class DocumentData:
    """Uploaded ID document or proof of address"""

    type: str = ""
    uploaded_at: Optional[str] = None
    status: str = "pending"  # "pending", "verified" or "rejected"


@dataclass
class TaxCountry:
    country: str = ""
    tin: str = ""


@dataclass
class TaxStatus:
    """PEP and FATCA declarations plus tax residencies"""

    is_pep: bool = False
    pep_details: Optional[str] = None
    is_us_person: bool = False
    us_tin: Optional[str] = None
    tax_countries: List[TaxCountry] = field(default_factory=list)


@dataclass
class SourceOfFunds:
    primary_source: str = ""  # e.g. "salary", "inheritance", "sale_business"
    monthly_income: str = ""
    net_worth: str = ""
    expected_investment: str = ""  # bucket label, e.g. "25000-100000" or "100000+"
    funding_source: str = ""


@dataclass
class InvestmentProfile:
    experience: str = ""  # "none", "beginner", "intermediate", "experienced"
    risk_tolerance: str = ""
    investment_goals: List[str] = field(default_factory=list)
    investment_horizon: str = ""
    knowledge_level: str = ""


@dataclass
class BankAccountData:
    iban: str = ""
    account_holder: str = ""
    verified: bool = False


@dataclass
class EnhancedDueDiligenceData:
    """Extra evidence gathered from elevated-risk applicants"""

    source_of_wealth_explanation: str = ""
    employer_name: Optional[str] = None
    employer_address: Optional[str] = None
    additional_info: Optional[str] = None
    documents: List[str] = field(default_factory=list)
    verified_at: Optional[str] = None
    risk_level: Optional[str] = None


@dataclass
class AgreementData:
    terms_accepted: bool = False
    privacy_accepted: bool = False
    investment_agreement_accepted: bool = False
    marketing_opt_in: bool = False
    signed_at: Optional[str] = None


@dataclass(frozen=True)
class ApplicantRecord:
    """
    Accumulated applicant data, one slot per onboarding step.

    None means the step has not been collected yet. A slot is only ever
    replaced wholesale by merge(); keys that are not step slots are kept
    in `extras` so a merge never rejects input.
    """

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
    extras: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def step_keys(cls) -> List[str]:
        return [f.name for f in fields(cls) if f.name != "extras"]

    def merge(self, step_data: Mapping[str, Any]) -> "ApplicantRecord":
        """
        Shallow merge: every key in step_data overwrites the same key.

        Plain mappings are converted into the slot's dataclass. A value that
        does not fit its slot empties the slot and is kept raw in `extras`.
        """
        updates: Dict[str, Any] = {}
        extras: Dict[str, Any] = {}

        for key, value in step_data.items():
            adapter = _SLOT_ADAPTERS.get(key)
            if adapter is None:
                extras[key] = value
                continue
            try:
                updates[key] = adapter.validate_python(value)
            except ValidationError as e:
                logger.warning(f"Unusable payload for {key} kept as extra: {e.error_count()} error(s)")
                updates[key] = None
                extras[key] = value

        # A slot that now holds a valid value drops its earlier raw copy
        stale = [key for key in self.extras if key in updates and key not in extras]
        if extras or stale:
            kept = {k: v for k, v in self.extras.items() if k not in stale}
            updates["extras"] = {**kept, **extras}

        return replace(self, **updates)

    def as_dict(self) -> Dict[str, Any]:
        """Collected slots only, absent slots are left out"""
        collected = {key: getattr(self, key) for key in self.step_keys() if getattr(self, key) is not None}
        collected.update(self.extras)
        return collected


_SLOT_ADAPTERS: Dict[str, TypeAdapter] = {
    f.name: TypeAdapter(f.type) for f in fields(ApplicantRecord) if f.name != "extras"
}


@dataclass(frozen=True)
class RiskFactor:
    """One scored contributor to a risk assessment"""

    category: str
    score: int
    description: str
    weight: int  # display metadata only, not used in the score


@dataclass(frozen=True)
class RiskAssessment:
    """Output of the risk model"""

    overall_score: int
    risk_level: RiskLevel
    factors: List[RiskFactor]
    requires_manual_review: bool
    auto_approved: bool


@dataclass(frozen=True)
class ComplianceResult:
    """Verdict from the compliance backend for one submission"""

    status: ComplianceStatus
    eligible: bool
    reason: Optional[str]
    checked_at: str
    risk_score: Optional[int] = None
    risk_level: Optional[str] = None


@dataclass(frozen=True)
class CustomerStatus:
    """Account status of a customer known to the compliance backend"""

    status: ComplianceStatus
    is_active: bool
