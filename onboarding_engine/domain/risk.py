"""Risk scoring engine - turns partial applicant data into a KYC/AML risk assessment"""

from typing import List, Set
from onboarding_engine.domain.models import ApplicantRecord, RiskAssessment, RiskFactor, RiskLevel

# Display weights per factor (not used in the arithmetic)
WEIGHTS = {
    "pep": 30,
    "us_person": 15,
    "country": 25,
    "source_of_funds": 20,
    "investment_amount": 15,
    "experience": 10,
}

# Simplified lists, not an authoritative sanctions/FATF source
HIGH_RISK_COUNTRIES = [
    "Afghanistan", "Iran", "North Korea", "Syria", "Yemen",
    "Myanmar", "Russia", "Belarus", "Venezuela", "Zimbabwe",
]

MEDIUM_RISK_COUNTRIES = [
    "United Arab Emirates", "Saudi Arabia", "Turkey", "China",
    "India", "Brazil", "South Africa", "Nigeria",
]

HIGH_RISK_SOURCES = ["inheritance", "crypto", "gambling", "gift"]
MEDIUM_RISK_SOURCES = ["business", "investments", "real_estate"]

# Score bands
HIGH_RISK_THRESHOLD = 50
MEDIUM_RISK_THRESHOLD = 25

RISK_LABELS = {
    RiskLevel.LOW: "Low risk",
    RiskLevel.MEDIUM: "Medium risk",
    RiskLevel.HIGH: "High risk",
}


def _is_pep(record: ApplicantRecord) -> bool:
    return bool(record.tax_status and record.tax_status.is_pep)


def assess_pep(record: ApplicantRecord) -> RiskFactor:
    """Politically exposed persons are the single heaviest factor"""
    if _is_pep(record):
        return RiskFactor("PEP Status", 40, "Applicant is a Politically Exposed Person", WEIGHTS["pep"])
    return RiskFactor("PEP Status", 0, "No PEP status", WEIGHTS["pep"])


def assess_us_person(record: ApplicantRecord) -> RiskFactor:
    """FATCA reporting obligation for US persons"""
    if record.tax_status and record.tax_status.is_us_person:
        return RiskFactor("US Person", 25, "Applicant is a US Person (FATCA obligation)", WEIGHTS["us_person"])
    return RiskFactor("US Person", 0, "Not a US Person", WEIGHTS["us_person"])


def collect_countries(record: ApplicantRecord) -> Set[str]:
    """Nationality, residence and every declared tax residence"""
    countries = set()
    if record.personal_data and record.personal_data.nationality:
        countries.add(record.personal_data.nationality)
    if record.address_data and record.address_data.country:
        countries.add(record.address_data.country)
    if record.tax_status:
        countries.update(tc.country for tc in record.tax_status.tax_countries if tc.country)
    return countries


def _matches_any(values: Set[str], needles: List[str]) -> bool:
    # Case-insensitive substring match, so "Russian Federation" hits "Russia"
    return any(needle.lower() in value.lower() for value in values for needle in needles)


def assess_country(record: ApplicantRecord) -> RiskFactor:
    """
    Country exposure across nationality, residence and tax residencies.

    A high-risk match wins over a medium-risk match when both occur.
    """
    countries = collect_countries(record)

    if _matches_any(countries, HIGH_RISK_COUNTRIES):
        return RiskFactor("Country Risk", 35, "Connection to a high-risk country", WEIGHTS["country"])
    elif _matches_any(countries, MEDIUM_RISK_COUNTRIES):
        return RiskFactor("Country Risk", 15, "Connection to a medium-risk country", WEIGHTS["country"])
    else:
        return RiskFactor("Country Risk", 0, "Low-risk countries only", WEIGHTS["country"])


def assess_source_of_funds(record: ApplicantRecord) -> RiskFactor:
    """Declared primary source of wealth"""
    declared = record.source_of_funds.primary_source if record.source_of_funds else ""
    primary_source = (declared or "").lower()

    if any(source in primary_source for source in HIGH_RISK_SOURCES):
        return RiskFactor(
            "Source of Funds", 30, f"High-risk source: {declared}", WEIGHTS["source_of_funds"]
        )
    elif any(source in primary_source for source in MEDIUM_RISK_SOURCES):
        return RiskFactor(
            "Source of Funds", 10, f"Medium-risk source: {declared}", WEIGHTS["source_of_funds"]
        )
    else:
        return RiskFactor(
            "Source of Funds", 0, "Low-risk source (salary/pension)", WEIGHTS["source_of_funds"]
        )


def assess_investment_amount(record: ApplicantRecord) -> RiskFactor:
    """
    Expected investment, read from the bucket label the applicant picked.

    Markers:
    - "100000", "100.000", ">" or "meer" (Dutch "more"): above EUR 100k
    - "50000" or "50.000": EUR 50k-100k

    Note that "25000-100000" contains "100000" and therefore scores as the
    top bucket. The matching is on substrings of free text on purpose.
    """
    expected = (record.source_of_funds.expected_investment if record.source_of_funds else "") or ""

    if "100000" in expected or "100.000" in expected or ">" in expected or "meer" in expected.lower():
        return RiskFactor(
            "Investment Amount", 20, "High investment amount (>EUR 100,000)", WEIGHTS["investment_amount"]
        )
    elif "50000" in expected or "50.000" in expected:
        return RiskFactor(
            "Investment Amount", 10, "Medium investment amount (EUR 50,000-100,000)", WEIGHTS["investment_amount"]
        )
    else:
        return RiskFactor(
            "Investment Amount", 0, "Standard investment amount (<EUR 50,000)", WEIGHTS["investment_amount"]
        )


def assess_experience(record: ApplicantRecord) -> RiskFactor:
    """No investing experience is a small suitability concern"""
    experience = record.investment_profile.experience if record.investment_profile else ""
    if experience == "none":
        return RiskFactor("Experience", 5, "No investment experience", WEIGHTS["experience"])
    return RiskFactor("Experience", 0, "Has investment experience", WEIGHTS["experience"])


def determine_risk_level(score: int, is_pep: bool) -> RiskLevel:
    """
    Map overall score to a risk level.

    Score bands:
    - 50+:   high
    - 25-49: medium
    - 0-24:  low

    PEP status forces high regardless of score.
    """
    if is_pep:
        return RiskLevel.HIGH

    if score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    elif score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW


def assess_risk(record: ApplicantRecord) -> RiskAssessment:
    """
    Main entry point: score every factor and derive the risk level.

    Factors are always reported in the same order, including the ones
    that scored 0, so the assessment fully explains itself.
    """
    factors = [
        assess_pep(record),
        assess_us_person(record),
        assess_country(record),
        assess_source_of_funds(record),
        assess_investment_amount(record),
        assess_experience(record),
    ]
    overall_score = sum(factor.score for factor in factors)
    risk_level = determine_risk_level(overall_score, _is_pep(record))

    return RiskAssessment(
        overall_score=overall_score,
        risk_level=risk_level,
        factors=factors,
        # Enhanced due diligence is requested instead of manual review
        requires_manual_review=False,
        auto_approved=risk_level == RiskLevel.LOW,
    )


def risk_label(level: RiskLevel) -> str:
    return RISK_LABELS[RiskLevel(level)]
