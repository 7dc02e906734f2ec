"""
One-time-code challenges: issuance and validation.

Both operations run as a single transaction that first locks the owning user
row, so concurrent calls for the same user observe each other's writes in
full. Rate-limit and lockout outcomes are returned as results, never raised.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from sqlalchemy.orm import Session

from habit_auth.core.config import get_settings
from habit_auth.core.security import codes_match, generate_code
from habit_auth.core.time import as_utc, utcnow
from habit_auth.db.session import atomic
from habit_auth.models import Challenge, FailedLogin, User

logger = logging.getLogger(__name__)


class ChallengeError(str, enum.Enum):
    TOO_MANY_UNUSED_CODES = "TooManyUnusedCodes"
    RATE_LIMITED = "RateLimited"
    TOO_MANY_FAILED_ATTEMPTS = "TooManyFailedAttempts"
    CODE_ALREADY_USED = "CodeAlreadyUsed"
    INVALID_CODE = "InvalidCode"


@dataclass(frozen=True)
class ChallengePolicy:
    attempt_limit: int = 5
    max_code_age: timedelta = timedelta(minutes=15)
    backoff: Sequence[timedelta] = (
        timedelta(seconds=1),
        timedelta(seconds=10),
        timedelta(seconds=30),
        timedelta(seconds=60),
    )
    code_length: int = 6

    def __post_init__(self):
        if self.attempt_limit < 1:
            raise ValueError("attempt_limit must be at least 1")
        if self.code_length < 1:
            raise ValueError("code_length must be at least 1")
        if not self.backoff:
            raise ValueError("backoff table must have at least one entry")
        if any(step < timedelta(0) for step in self.backoff):
            raise ValueError("backoff entries must not be negative")

    @classmethod
    def from_settings(cls) -> "ChallengePolicy":
        settings = get_settings()
        return cls(
            attempt_limit=settings.attempt_limit,
            max_code_age=timedelta(seconds=settings.max_code_age_seconds),
            backoff=tuple(timedelta(seconds=s) for s in settings.backoff_seconds),
            code_length=settings.code_length,
        )

    def backoff_for(self, count: int) -> timedelta:
        """Wait imposed after `count` consecutive unused codes or failures (count >= 1)."""
        idx = min(count - 1, len(self.backoff) - 1)
        return self.backoff[idx]


@dataclass(frozen=True)
class IssueResult:
    ok: bool
    challenge: Optional[Challenge] = None
    error: Optional[ChallengeError] = None
    retry_at: Optional[datetime] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class ValidateResult:
    ok: bool
    error: Optional[ChallengeError] = None
    retry_at: Optional[datetime] = None
    message: Optional[str] = None


def _wait_message(retry_at: datetime) -> str:
    return f"You must wait until {retry_at.isoformat()} to try again."


def _issue_failure(error: ChallengeError, message: str, retry_at: datetime | None = None) -> IssueResult:
    return IssueResult(ok=False, error=error, retry_at=retry_at, message=message)


def _validate_failure(error: ChallengeError, message: str, retry_at: datetime | None = None) -> ValidateResult:
    return ValidateResult(ok=False, error=error, retry_at=retry_at, message=message)


def _lock_user(db: Session, user_id: str) -> User:
    # Raises NoResultFound for an unknown user: callers resolve users first.
    return db.query(User).filter(User.id == user_id).with_for_update().one()


def recent_challenges(db: Session, user_id: str, now: datetime, policy: ChallengePolicy) -> list[Challenge]:
    """Fresh challenges for a user, newest first, at most attempt_limit of them."""
    return (
        db.query(Challenge)
        .filter(
            Challenge.user_id == user_id,
            Challenge.created_at_utc > now - policy.max_code_age,
        )
        .order_by(Challenge.created_at_utc.desc())
        .limit(policy.attempt_limit)
        .all()
    )


def _record_failure(db: Session, failed: FailedLogin | None, user_id: str, now: datetime) -> int:
    if failed is None:
        failed = FailedLogin(user_id=user_id, failures=[])
        db.add(failed)
    failed.append_failure(now)
    return len(failed.failures)


def issue_challenge(
    db: Session,
    user_id: str,
    now: datetime | None = None,
    policy: ChallengePolicy | None = None,
) -> IssueResult:
    policy = policy or ChallengePolicy.from_settings()
    with atomic(db):
        _lock_user(db, user_id)
        now = as_utc(now) if now else utcnow()

        codes = recent_challenges(db, user_id, now, policy)
        latest_relevant = as_utc(codes[0].created_at_utc) if codes else None
        num_unused = 0
        any_used = False
        for c in codes:
            if c.used:
                latest_relevant = as_utc(c.created_at_utc)
                any_used = True
                break
            num_unused += 1

        if len(codes) == policy.attempt_limit and not any_used:
            logger.warning(f"Challenge refused: user={user_id} has {num_unused} unused codes")
            return _issue_failure(ChallengeError.TOO_MANY_UNUSED_CODES, "Too many unused codes.")

        if num_unused > 0 and latest_relevant is not None:
            retry_at = latest_relevant + policy.backoff_for(num_unused)
            if now < retry_at:
                logger.info(f"Challenge rate limited: user={user_id} unused={num_unused} retry_at={retry_at.isoformat()}")
                return _issue_failure(ChallengeError.RATE_LIMITED, _wait_message(retry_at), retry_at)

        challenge = Challenge(
            user_id=user_id,
            code=generate_code(policy.code_length),
            used=False,
            created_at_utc=now,
        )
        db.add(challenge)
        db.flush()

    logger.info(f"Challenge issued: user={user_id} challenge={challenge.id}")
    return IssueResult(ok=True, challenge=challenge)


def validate_challenge(
    db: Session,
    user_id: str,
    code: str,
    now: datetime | None = None,
    policy: ChallengePolicy | None = None,
    on_success: Callable[[Session], None] | None = None,
) -> ValidateResult:
    """
    Check a submitted code. `on_success` runs inside the same transaction after
    the code is marked used; if it raises, the code stays unused.
    """
    policy = policy or ChallengePolicy.from_settings()
    with atomic(db):
        _lock_user(db, user_id)
        now = as_utc(now) if now else utcnow()

        failed = db.query(FailedLogin).filter(FailedLogin.user_id == user_id).one_or_none()
        if failed:
            failures = failed.failure_times
            if len(failures) >= policy.attempt_limit:
                logger.warning(f"Validation refused: user={user_id} locked out after {len(failures)} failures")
                return _validate_failure(ChallengeError.TOO_MANY_FAILED_ATTEMPTS, "Too many failed login attempts.")
            if failures:
                retry_at = failures[-1] + policy.backoff_for(len(failures))
                if now < retry_at:
                    logger.info(f"Validation rate limited: user={user_id} retry_at={retry_at.isoformat()}")
                    return _validate_failure(ChallengeError.RATE_LIMITED, _wait_message(retry_at), retry_at)

        for challenge in recent_challenges(db, user_id, now, policy):
            if not codes_match(code, challenge.code):
                continue
            if challenge.used:
                count = _record_failure(db, failed, user_id, now)
                logger.warning(f"Replayed code: user={user_id} challenge={challenge.id} failures={count}")
                return _validate_failure(ChallengeError.CODE_ALREADY_USED, "Code already used.")
            challenge.used = True
            if failed:
                db.delete(failed)
            if on_success:
                on_success(db)
            logger.info(f"Challenge validated: user={user_id} challenge={challenge.id}")
            return ValidateResult(ok=True)

        count = _record_failure(db, failed, user_id, now)
        logger.warning(f"Invalid code: user={user_id} failures={count}")
        return _validate_failure(ChallengeError.INVALID_CODE, "Invalid code.")


def clear_failed_logins(db: Session, user_id: str) -> bool:
    """Out-of-band unlock: drop the failure history for a user. Returns False if there was none."""
    with atomic(db):
        _lock_user(db, user_id)
        deleted = db.query(FailedLogin).filter(FailedLogin.user_id == user_id).delete(synchronize_session=False)
    if deleted:
        logger.info(f"Failure history cleared: user={user_id}")
    return bool(deleted)


def prune_stale_challenges(
    db: Session,
    now: datetime | None = None,
    policy: ChallengePolicy | None = None,
) -> int:
    """Delete challenges that have aged out of the freshness window."""
    policy = policy or ChallengePolicy.from_settings()
    now = as_utc(now) if now else utcnow()
    with atomic(db):
        deleted = (
            db.query(Challenge)
            .filter(Challenge.created_at_utc <= now - policy.max_code_age)
            .delete(synchronize_session=False)
        )
    logger.info(f"Pruned {deleted} stale challenges")
    return deleted
