"""/v1/sessions - onboarding session lifecycle, navigation and submission"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from onboarding_engine.api.v1.schemas import (
    AccountTypeRequest,
    ApplicantDataUpdate,
    GoToRequest,
    SessionStateResponse,
)
from onboarding_engine.api.dependencies import get_request_id, get_session, get_session_registry
from onboarding_engine.domain.exceptions import ComplianceServiceError, SessionNotFoundError
from onboarding_engine.domain.session import OnboardingSession, SubmissionState
from onboarding_engine.infrastructure.sessions import SessionRegistry
from onboarding_engine.infrastructure.observability.metrics import record_risk_assessment, record_submission
from onboarding_engine.infrastructure.observability.logging import log_risk_assessment, log_submission

router = APIRouter()


@router.post("/sessions", response_model=SessionStateResponse, status_code=201)
def start_session(registry: SessionRegistry = Depends(get_session_registry)):
    """Start onboarding at the account type step with no data"""
    session = registry.create()
    logging.info("Onboarding session started", extra={"session_id": session.session_id})
    return SessionStateResponse.from_session(session)


@router.get("/sessions/{session_id}", response_model=SessionStateResponse)
def get_session_state(session: OnboardingSession = Depends(get_session)):
    """Current step, derived step list, progress, data and risk assessment"""
    return SessionStateResponse.from_session(session)


@router.delete("/sessions/{session_id}", status_code=204)
def abandon_session(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    """Discard a session; a submission still in flight is not applied"""
    try:
        registry.discard(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

    logging.info("Onboarding session abandoned", extra={"session_id": session_id})
    return Response(status_code=204)


@router.put("/sessions/{session_id}/account-type", response_model=SessionStateResponse)
def set_account_type(body: AccountTypeRequest, session: OnboardingSession = Depends(get_session)):
    session.set_account_type(body.account_type)
    return SessionStateResponse.from_session(session)


@router.patch("/sessions/{session_id}/data", response_model=SessionStateResponse)
def update_data(
    body: ApplicantDataUpdate,
    request: Request,
    session: OnboardingSession = Depends(get_session),
):
    """
    Merge step payloads into the applicant record.

    Every write re-assesses risk, which may add or remove the enhanced
    due diligence step from the returned sequence.
    """
    session.update(body.step_data())

    assessment = session.risk_assessment
    record_risk_assessment(assessment)
    log_risk_assessment(get_request_id(request), session.session_id, assessment)

    return SessionStateResponse.from_session(session)


@router.post("/sessions/{session_id}/next", response_model=SessionStateResponse)
def go_next(session: OnboardingSession = Depends(get_session)):
    session.next()
    return SessionStateResponse.from_session(session)


@router.post("/sessions/{session_id}/previous", response_model=SessionStateResponse)
def go_previous(session: OnboardingSession = Depends(get_session)):
    session.previous()
    return SessionStateResponse.from_session(session)


@router.post("/sessions/{session_id}/goto", response_model=SessionStateResponse)
def go_to(body: GoToRequest, session: OnboardingSession = Depends(get_session)):
    session.go_to(body.step)
    return SessionStateResponse.from_session(session)


@router.post("/sessions/{session_id}/submit", response_model=SessionStateResponse)
async def submit_session(request: Request, session: OnboardingSession = Depends(get_session)):
    """
    Submit the application to the compliance backend.

    Flow:
    1. Repeated submits after success, or while one is running, are suppressed
    2. Customer id is assigned on first submit and kept across retries
    3. Backend verdict is stored and the session moves to COMPLETED
    4. On backend failure the session keeps its step and may be resubmitted
    """
    start_time = time.time()
    request_id = get_request_id(request)
    suppressed = session.submission_state != SubmissionState.NOT_STARTED

    try:
        result = await session.submit()

    except ComplianceServiceError as e:
        record_submission("failed")
        logging.error(f"Compliance service error: {e}", extra={"request_id": request_id, "session_id": session.session_id})
        raise HTTPException(status_code=503, detail=session.error or "Compliance service unavailable")

    except Exception as e:
        record_submission("failed")
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id, "session_id": session.session_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if suppressed or result is None:
        record_submission("suppressed")
    else:
        record_submission(result.status.value.lower())

    duration_ms = (time.time() - start_time) * 1000
    log_submission(request_id, session.session_id, session.customer_id, result, duration_ms)

    return SessionStateResponse.from_session(session)
