"""In-process registry of live onboarding sessions"""

from typing import Callable, Dict

from onboarding_engine.domain.exceptions import SessionNotFoundError
from onboarding_engine.domain.session import ComplianceGateway, OnboardingSession
from onboarding_engine.utils.identifiers import generate_customer_id


class SessionRegistry:
    """
    Owns every live session, keyed by session id.

    Nothing is persisted: sessions live as long as the process or until
    they are discarded.
    """

    def __init__(
        self,
        gateway: ComplianceGateway,
        customer_id_factory: Callable[[], str] = generate_customer_id,
        submission_error_message: str | None = None,
    ):
        self.gateway = gateway
        self.customer_id_factory = customer_id_factory
        self.submission_error_message = submission_error_message
        self._sessions: Dict[str, OnboardingSession] = {}

    def create(self) -> OnboardingSession:
        """Start a fresh session at ACCOUNT_TYPE with an empty record"""
        session = OnboardingSession(
            self.gateway,
            customer_id_factory=self.customer_id_factory,
            submission_error_message=self.submission_error_message,
        )
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> OnboardingSession:
        """
        Raises:
            SessionNotFoundError: No live session with this id
        """
        try:
            return self._sessions[session_id]
        except KeyError as e:
            raise SessionNotFoundError(f"Onboarding session {session_id} not found") from e

    def discard(self, session_id: str) -> None:
        """Abandon a session; an in-flight submission will not be applied to it"""
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(f"Onboarding session {session_id} not found")
        session.close()

    def __len__(self) -> int:
        return len(self._sessions)
