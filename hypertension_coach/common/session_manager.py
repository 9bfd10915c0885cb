# hypertension_coach/common/session_manager.py
"""
Thread-safe session manager with per-session coach state.
Each CoachSession owns its conversation, latest assessment and in-flight flag;
components receive the session explicitly instead of sharing global state.
"""
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from hypertension_coach.common.logger import get_logger
from hypertension_coach.components.conversation import Conversation
from hypertension_coach.components.models import PatientInput, PredictionResult
from hypertension_coach.config.config import SESSION_TIMEOUT_HOURS

logger = get_logger(__name__)


@dataclass
class CoachSession:
    session_id: str
    patient_input: Optional[PatientInput] = None
    prediction: Optional[PredictionResult] = None
    conversation: Conversation = field(default_factory=Conversation)
    language: str = "en"
    diet_preference: Optional[str] = None
    is_loading: bool = False
    notifications: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_accessed: datetime = field(default_factory=datetime.utcnow)

    def notify(self, text: str):
        """Queue a user-visible notice (the UI shows it as a toast)."""
        self.notifications.append(text)

    def record_assessment(self, patient: PatientInput, prediction: PredictionResult):
        self.patient_input = patient
        self.prediction = prediction


class SessionManager:
    """
    Thread-safe session manager that isolates coach sessions.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._sessions = {}
                    cls._instance._session_lock = threading.RLock()
                    cls._instance._session_timeout = timedelta(hours=SESSION_TIMEOUT_HOURS)
        return cls._instance

    def create_session(self, session_id: Optional[str] = None, language: str = "en") -> CoachSession:
        """
        Create a session. A client-supplied id (kept in the browser's local
        storage) is reused so reading history stays attached to it.
        Expired sessions are evicted first so the table only holds live ones.
        """
        with self._session_lock:
            self.cleanup_expired_sessions()
            session_id = session_id or str(uuid.uuid4())
            session = CoachSession(session_id=session_id, language=language)
            self._sessions[session_id] = session
            logger.info(f"Created session {session_id}")
            return session

    def get_session(self, session_id: str) -> Optional[CoachSession]:
        """
        Get session by id.
        Returns None if session doesn't exist or expired.
        """
        with self._session_lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.warning(f"Session {session_id} not found")
                return None

            if datetime.utcnow() - session.last_accessed > self._session_timeout:
                logger.info(f"Session {session_id} expired, removing")
                del self._sessions[session_id]
                return None

            session.last_accessed = datetime.utcnow()
            return session

    def get_or_create(self, session_id: Optional[str]) -> CoachSession:
        with self._session_lock:
            session = self.get_session(session_id) if session_id else None
            return session or self.create_session(session_id)

    def delete_session(self, session_id: str) -> bool:
        with self._session_lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                logger.info(f"Deleted session {session_id}")
                return True
            return False

    def cleanup_expired_sessions(self) -> int:
        """
        Remove all expired sessions.
        Called on every session creation.
        """
        with self._session_lock:
            now = datetime.utcnow()
            expired = [
                sid for sid, sess in self._sessions.items()
                if now - sess.last_accessed > self._session_timeout
            ]
            for sid in expired:
                del self._sessions[sid]
                logger.info(f"Cleaned up expired session {sid}")
            return len(expired)

    def get_session_count(self) -> int:
        with self._session_lock:
            return len(self._sessions)


# Global singleton instance
_session_manager = SessionManager()


def get_session_manager() -> SessionManager:
    """Get the global session manager instance"""
    return _session_manager
