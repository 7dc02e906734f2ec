"""Login endpoints: session handles, code issuance, code attempts, logout."""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.orm import Session

from habit_auth.api.deps import get_db, get_login_session
from habit_auth.models import LoginSession
from habit_auth.schemas.auth import AttemptRequest, LoginRequest, MeResponse, ResultResponse, SessionResponse
from habit_auth.services import challenge_service, notification_service, session_service, user_service
from habit_auth.services.challenge_service import ChallengeError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

ERROR_STATUS = {
    ChallengeError.TOO_MANY_UNUSED_CODES: status.HTTP_429_TOO_MANY_REQUESTS,
    ChallengeError.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ChallengeError.TOO_MANY_FAILED_ATTEMPTS: status.HTTP_423_LOCKED,
    ChallengeError.CODE_ALREADY_USED: status.HTTP_401_UNAUTHORIZED,
    ChallengeError.INVALID_CODE: status.HTTP_401_UNAUTHORIZED,
}


def _user_not_found(response: Response) -> ResultResponse:
    response.status_code = status.HTTP_404_NOT_FOUND
    return ResultResponse(ok=False, error="UserNotFound", message="User not found.")


def _failure(response: Response, result) -> ResultResponse:
    response.status_code = ERROR_STATUS[result.error]
    return ResultResponse(ok=False, error=result.error.value, message=result.message, retry_at=result.retry_at)


@router.post("/sessions", response_model=SessionResponse)
def make_session(db: Session = Depends(get_db)):
    session = session_service.make_session(db)
    return SessionResponse(session_id=session.id)


@router.post("/login", response_model=ResultResponse)
def login(body: LoginRequest, response: Response, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    """
    Issue a one-time code for the user with this phone number.
    The code is sent by SMS after the response is produced.
    """
    user = user_service.get_user_by_phone(db, body.phone)
    if not user:
        logger.info(f"Login requested for unknown phone {body.phone}")
        return _user_not_found(response)

    result = challenge_service.issue_challenge(db, user.id)
    if not result.ok:
        return _failure(response, result)

    background_tasks.add_task(notification_service.send_challenge_sms, user.phone, result.challenge.code)
    return ResultResponse(ok=True)


@router.post("/attempt", response_model=ResultResponse)
def attempt(
    body: AttemptRequest,
    response: Response,
    db: Session = Depends(get_db),
    session: LoginSession = Depends(get_login_session),
):
    """Check a submitted code; on success the session is logged in as that user."""
    user = user_service.get_user_by_phone(db, body.phone)
    if not user:
        return _user_not_found(response)

    result = challenge_service.validate_challenge(
        db, user.id, body.code, on_success=lambda tx: session_service.attach_user(tx, session, user.id)
    )
    if not result.ok:
        return _failure(response, result)

    return ResultResponse(ok=True)


@router.post("/logout", response_model=ResultResponse)
def logout(db: Session = Depends(get_db), session: LoginSession = Depends(get_login_session)):
    session_service.log_out(db, session)
    return ResultResponse(ok=True)


@router.get("/me", response_model=MeResponse)
def me(session: LoginSession = Depends(get_login_session)):
    return MeResponse(session_id=session.id, user_id=session.user_id)
