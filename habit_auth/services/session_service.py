"""Opaque login sessions. A session only records which user, if any, it belongs to."""
import logging

from sqlalchemy.orm import Session

from habit_auth.models import LoginSession

logger = logging.getLogger(__name__)


def make_session(db: Session) -> LoginSession:
    session = LoginSession()
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def get_session(db: Session, session_id: str) -> LoginSession | None:
    session = db.query(LoginSession).filter(LoginSession.id == session_id).first()
    if not session or session.disabled:
        return None
    return session


def attach_user(db: Session, session: LoginSession, user_id: str) -> LoginSession:
    """Log the session in as user_id. Does not commit: runs inside the validation transaction."""
    session.user_id = user_id
    db.add(session)
    logger.info(f"Session {session.id} logged in as user={user_id}")
    return session


def log_out(db: Session, session: LoginSession) -> LoginSession:
    session.user_id = None
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(f"Session {session.id} logged out")
    return session
