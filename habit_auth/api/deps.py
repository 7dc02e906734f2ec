from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from habit_auth.db.session import SessionLocal
from habit_auth.models import LoginSession
from habit_auth.services import session_service


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_login_session(
    x_session_id: str | None = Header(None), db: Session = Depends(get_db)
) -> LoginSession:
    if not x_session_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing session id")
    session = session_service.get_session(db, x_session_id)
    if not session:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")
    return session
