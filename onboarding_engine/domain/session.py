"""Onboarding session - owns the step pointer and applicant data, drives submission"""

import logging
import uuid
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Protocol

from onboarding_engine.domain.models import AccountType, ApplicantRecord, ComplianceResult, RiskAssessment
from onboarding_engine.domain.risk import assess_risk
from onboarding_engine.domain.steps import (
    OnboardingStep,
    build_step_sequence,
    calculate_progress,
    next_step,
    previous_step,
)
from onboarding_engine.utils.identifiers import generate_customer_id

logger = logging.getLogger(__name__)

DEFAULT_SUBMISSION_ERROR = "Something went wrong while submitting your application. Please try again."


class SubmissionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"


class ComplianceGateway(Protocol):
    """Anything that can hand an application to the compliance backend"""

    async def submit_onboarding(self, customer_id: str, record: ApplicantRecord) -> ComplianceResult:
        ...


class OnboardingSession:
    """
    One applicant's walk through onboarding.

    The step list is derived from account type and data on every read,
    never stored. COMPLETED is absorbing: once submission succeeded,
    navigation and data writes no longer change anything.
    """

    def __init__(
        self,
        gateway: ComplianceGateway,
        customer_id_factory: Callable[[], str] = generate_customer_id,
        session_id: str | None = None,
        submission_error_message: str | None = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self._gateway = gateway
        self._customer_id_factory = customer_id_factory
        self._submission_error_message = submission_error_message or DEFAULT_SUBMISSION_ERROR

        self._current_step = OnboardingStep.ACCOUNT_TYPE
        self._record = ApplicantRecord()
        self._customer_id: Optional[str] = None
        self._compliance_result: Optional[ComplianceResult] = None
        self._submission = SubmissionState.NOT_STARTED
        self._error: Optional[str] = None
        self._closed = False

    # Read-only view for the presentation layer

    @property
    def current_step(self) -> OnboardingStep:
        return self._current_step

    @property
    def record(self) -> ApplicantRecord:
        return self._record

    @property
    def data(self) -> Mapping[str, Any]:
        return MappingProxyType(self._record.as_dict())

    @property
    def account_type(self) -> Optional[AccountType]:
        return self._record.account_type

    @property
    def customer_id(self) -> Optional[str]:
        return self._customer_id

    @property
    def compliance_result(self) -> Optional[ComplianceResult]:
        return self._compliance_result

    @property
    def submission_state(self) -> SubmissionState:
        return self._submission

    @property
    def is_loading(self) -> bool:
        return self._submission == SubmissionState.IN_FLIGHT

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_completed(self) -> bool:
        return self._current_step == OnboardingStep.COMPLETED

    @property
    def risk_assessment(self) -> RiskAssessment:
        return assess_risk(self._record)

    @property
    def steps(self) -> List[OnboardingStep]:
        return build_step_sequence(self._record.account_type, self._record)

    @property
    def progress(self) -> int:
        return calculate_progress(self.steps, self._current_step)

    # Data

    def set_account_type(self, account_type: AccountType) -> None:
        """May change the step list; a current step that drops out of it is accepted"""
        if self.is_completed:
            logger.info("Ignoring account type change on completed session", extra={"session_id": self.session_id})
            return

        self._record = self._record.merge({"account_type": account_type})

    def update(self, step_data: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        """
        Shallow-merge step payloads into the record.

        Never rejects input: payloads that do not fit their step end up in
        the record's extras and score as if the step was not filled in.
        """
        if self.is_completed:
            logger.info("Ignoring data update on completed session", extra={"session_id": self.session_id})
            return

        changes = {**(step_data or {}), **kwargs}
        self._record = self._record.merge(changes)

    # Navigation

    def next(self) -> OnboardingStep:
        if not self.is_completed:
            self._current_step = next_step(self.steps, self._current_step)
        return self._current_step

    def previous(self) -> OnboardingStep:
        if not self.is_completed:
            self._current_step = previous_step(self.steps, self._current_step)
        return self._current_step

    def go_to(self, step: OnboardingStep) -> OnboardingStep:
        """
        Jump without checking the step is in the current sequence (review -> edit links).

        COMPLETED is only reached through submit().
        """
        if step == OnboardingStep.COMPLETED:
            logger.warning("Ignoring jump to COMPLETED outside submission", extra={"session_id": self.session_id})
        elif not self.is_completed:
            self._current_step = step
        return self._current_step

    # Submission

    async def submit(self) -> Optional[ComplianceResult]:
        """
        Hand the application to the compliance backend, at most once.

        - Already completed: returns the stored result, no external call.
        - Already in flight: returns None, no external call.
        - Failure: error message set, exception re-raised, retry allowed.
        - Closed while in flight: the result is dropped.
        """
        if self._closed:
            logger.warning("Submit called on closed session", extra={"session_id": self.session_id})
            return None

        if self._submission == SubmissionState.COMPLETED:
            logger.info(
                "Duplicate submission suppressed",
                extra={"session_id": self.session_id, "customer_id": self._customer_id, "reason": "completed"},
            )
            return self._compliance_result

        if self._submission == SubmissionState.IN_FLIGHT:
            logger.info(
                "Duplicate submission suppressed",
                extra={"session_id": self.session_id, "customer_id": self._customer_id, "reason": "in_flight"},
            )
            return None

        # Stable id across retries within this session
        if self._customer_id is None:
            self._customer_id = self._customer_id_factory()

        self._submission = SubmissionState.IN_FLIGHT
        self._error = None
        record = self._record

        try:
            result = await self._gateway.submit_onboarding(self._customer_id, record)
        except Exception as e:
            if self._closed:
                logger.info("Submission failed after session was closed", extra={"session_id": self.session_id})
                raise
            self._submission = SubmissionState.NOT_STARTED
            self._error = self._submission_error_message
            logger.error(
                f"Submission failed: {e}",
                extra={"session_id": self.session_id, "customer_id": self._customer_id},
            )
            raise
        except BaseException:
            # Task cancelled mid-call: release the in-flight guard so submit() can run again
            self._submission = SubmissionState.NOT_STARTED
            logger.info(
                "Submission cancelled",
                extra={"session_id": self.session_id, "customer_id": self._customer_id},
            )
            raise

        if self._closed:
            logger.info(
                "Discarding compliance result for closed session",
                extra={"session_id": self.session_id, "customer_id": self._customer_id},
            )
            return None

        self._submission = SubmissionState.COMPLETED
        self._compliance_result = result
        self._current_step = OnboardingStep.COMPLETED
        return result

    def close(self) -> None:
        """Tear the session down; a submission still in flight will not be applied"""
        self._closed = True
