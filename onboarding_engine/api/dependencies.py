"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, HTTPException, Request
from onboarding_engine.domain.exceptions import SessionNotFoundError
from onboarding_engine.domain.session import OnboardingSession
from onboarding_engine.infrastructure.sessions import SessionRegistry


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_session_registry(request: Request) -> SessionRegistry:
    """Provide the application's session registry"""
    return request.app.state.session_registry


def get_session(session_id: str, registry: SessionRegistry = Depends(get_session_registry)) -> OnboardingSession:
    """Resolve the session named in the path, 404 when unknown"""
    try:
        return registry.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
