"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from onboarding_engine.domain.models import ComplianceResult, RiskAssessment


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "onboarding-engine", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "onboarding-engine") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_risk_assessment(request_id: str, session_id: str | None, assessment: RiskAssessment) -> None:
    """Log structured risk outcome with the per-factor scores"""
    logging.info(
        "Risk assessed",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "step": "risk_assessment",
            "risk_level": assessment.risk_level.value,
            "overall_score": assessment.overall_score,
            "factor_scores": {factor.category: factor.score for factor in assessment.factors},
        },
    )


def log_submission(
    request_id: str,
    session_id: str,
    customer_id: str | None,
    result: ComplianceResult | None,
    duration_ms: float,
) -> None:
    """Log structured submission outcome for analysis"""
    logging.info(
        "Submission completed",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "customer_id": customer_id,
            "step": "submission_complete",
            "compliance_status": result.status.value if result else None,
            "duration_ms": duration_ms,
        },
    )
