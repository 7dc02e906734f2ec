import threading
from datetime import timedelta

import pytest

from habit_auth.db.base import Base
from habit_auth.db.session import make_engine, make_sessionmaker
from habit_auth.models import Challenge, FailedLogin
from habit_auth.services.challenge_service import (
    ChallengeError,
    ChallengePolicy,
    clear_failed_logins,
    issue_challenge,
    validate_challenge,
)

from .conftest import T0, seed_user

POLICY = ChallengePolicy()


def at(seconds):
    return T0 + timedelta(seconds=seconds)


def failure_count(db, user_id):
    record = db.query(FailedLogin).filter(FailedLogin.user_id == user_id).one_or_none()
    return len(record.failures) if record else 0


def issue(db, user_id, seconds=0):
    result = issue_challenge(db, user_id, now=at(seconds), policy=POLICY)
    assert result.ok
    return result.challenge.code


def test_correct_code_succeeds_once(db, user):
    code = issue(db, user.id)

    assert validate_challenge(db, user.id, code, now=at(0), policy=POLICY).ok
    assert db.query(Challenge).one().used is True

    replay = validate_challenge(db, user.id, code, now=at(0), policy=POLICY)
    assert not replay.ok
    assert replay.error == ChallengeError.CODE_ALREADY_USED
    assert failure_count(db, user.id) == 1


def test_wrong_code_then_backoff_then_success(db, user):
    code = issue(db, user.id)
    wrong = "000000" if code != "000000" else "111111"

    result = validate_challenge(db, user.id, wrong, now=at(0), policy=POLICY)
    assert result.error == ChallengeError.INVALID_CODE
    assert failure_count(db, user.id) == 1

    result = validate_challenge(db, user.id, code, now=at(0.5), policy=POLICY)
    assert result.error == ChallengeError.RATE_LIMITED
    assert result.retry_at == at(1)
    assert failure_count(db, user.id) == 1

    assert validate_challenge(db, user.id, code, now=at(1.1), policy=POLICY).ok
    assert failure_count(db, user.id) == 0
    assert db.query(FailedLogin).count() == 0


def test_lockout_after_attempt_limit(db, user):
    code = issue(db, user.id)
    wrong = "000000" if code != "000000" else "111111"

    for t in (0, 2, 13, 44, 105):
        result = validate_challenge(db, user.id, wrong, now=at(t), policy=POLICY)
        assert result.error == ChallengeError.INVALID_CODE
    assert failure_count(db, user.id) == 5

    locked = validate_challenge(db, user.id, code, now=at(200), policy=POLICY)
    assert locked.error == ChallengeError.TOO_MANY_FAILED_ATTEMPTS
    assert locked.retry_at is None
    # lockout checks do not add failures or consume the code
    assert failure_count(db, user.id) == 5
    assert db.query(Challenge).one().used is False


def test_success_resets_failure_backoff(db, user):
    code = issue(db, user.id)
    wrong = "000000" if code != "000000" else "111111"
    for t in (0, 2, 13):
        validate_challenge(db, user.id, wrong, now=at(t), policy=POLICY)
    assert failure_count(db, user.id) == 3

    assert validate_challenge(db, user.id, code, now=at(44), policy=POLICY).ok

    next_code = issue(db, user.id, seconds=44)
    wrong = "000000" if next_code != "000000" else "111111"
    result = validate_challenge(db, user.id, wrong, now=at(44), policy=POLICY)
    assert result.error == ChallengeError.INVALID_CODE
    assert failure_count(db, user.id) == 1


def test_expired_code_is_not_matched(db, user):
    code = issue(db, user.id)

    result = validate_challenge(db, user.id, code, now=at(15 * 60 + 1), policy=POLICY)
    assert result.error == ChallengeError.INVALID_CODE
    assert db.query(Challenge).one().used is False


def test_codes_are_scoped_to_their_owner(db, user):
    other = seed_user(db, phone="+15550199", name="Grace")
    code = issue(db, user.id)
    issue(db, other.id)

    result = validate_challenge(db, other.id, code, now=at(0), policy=POLICY)
    if result.ok:
        # both users happened to receive the same code
        assert db.query(Challenge).filter(Challenge.user_id == other.id).one().used is True
    else:
        assert result.error == ChallengeError.INVALID_CODE
    assert db.query(Challenge).filter(Challenge.user_id == user.id).one().used is False


def test_clear_failed_logins_unlocks(db, user):
    code = issue(db, user.id)
    wrong = "000000" if code != "000000" else "111111"
    for t in (0, 2, 13, 44, 105):
        validate_challenge(db, user.id, wrong, now=at(t), policy=POLICY)

    assert clear_failed_logins(db, user.id) is True
    assert clear_failed_logins(db, user.id) is False
    assert validate_challenge(db, user.id, code, now=at(200), policy=POLICY).ok


def test_concurrent_validation_consumes_code_once(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    SessionFactory = make_sessionmaker(engine)

    setup = SessionFactory()
    user = seed_user(setup)
    code = issue(setup, user.id)
    setup.close()

    barrier = threading.Barrier(2)
    results = []

    def attempt():
        session = SessionFactory()
        try:
            barrier.wait()
            results.append(validate_challenge(session, user.id, code, now=at(0), policy=POLICY))
        finally:
            session.close()

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(r.ok for r in results) == [False, True]
    assert [r.error for r in results if not r.ok] == [ChallengeError.CODE_ALREADY_USED]
    engine.dispose()


def test_success_hook_runs_in_validation_transaction(db, user):
    code = issue(db, user.id)
    calls = []

    result = validate_challenge(db, user.id, code, now=at(0), policy=POLICY, on_success=calls.append)

    assert result.ok
    assert calls == [db]


def test_failing_success_hook_leaves_code_unused(db, user):
    code = issue(db, user.id)
    wrong = "000000" if code != "000000" else "111111"
    validate_challenge(db, user.id, wrong, now=at(0), policy=POLICY)

    def broken(tx):
        raise RuntimeError("session store unavailable")

    with pytest.raises(RuntimeError):
        validate_challenge(db, user.id, code, now=at(2), policy=POLICY, on_success=broken)

    assert db.query(Challenge).one().used is False
    assert failure_count(db, user.id) == 1
    assert validate_challenge(db, user.id, code, now=at(3), policy=POLICY).ok


def test_hook_is_not_called_on_failure(db, user):
    code = issue(db, user.id)
    wrong = "000000" if code != "000000" else "111111"
    calls = []

    result = validate_challenge(db, user.id, wrong, now=at(0), policy=POLICY, on_success=calls.append)

    assert result.error == ChallengeError.INVALID_CODE
    assert calls == []
