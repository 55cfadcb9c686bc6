"""Prometheus metrics for monitoring risk levels, submissions and compliance latency"""

from prometheus_client import Counter, Histogram

from onboarding_engine.domain.models import RiskAssessment

# Risk metrics
risk_assessment_counter = Counter(
    "onboarding_risk_assessment_total",
    "Risk assessments returned to clients",
    ["risk_level"],  # low | medium | high
)

risk_score_histogram = Histogram(
    "onboarding_risk_score",
    "Distribution of overall risk scores",
    buckets=[0, 10, 25, 50, 75, 100, 155],
)

# Submission metrics
submission_counter = Counter(
    "onboarding_submission_total",
    "Onboarding submissions to the compliance backend",
    ["outcome"],  # approved | manual_review | rejected | failed | suppressed
)

# Compliance backend metrics
compliance_latency_histogram = Histogram(
    "compliance_latency_seconds",
    "Compliance backend submission round-trip time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_risk_assessment(assessment: RiskAssessment) -> None:
    """Record risk level and score distribution"""
    risk_assessment_counter.labels(risk_level=assessment.risk_level.value).inc()
    risk_score_histogram.observe(assessment.overall_score)


def record_submission(outcome: str) -> None:
    submission_counter.labels(outcome=outcome).inc()
