"""
Clear the failed-login history of a locked-out user.
Usage: python unlock_user.py <phone>
"""
import sys

from habit_auth.db.session import SessionLocal
from habit_auth.services import user_service
from habit_auth.services.challenge_service import clear_failed_logins


def unlock(phone: str):
    db = SessionLocal()
    try:
        user = user_service.get_user_by_phone(db, phone)
        if not user:
            print(f"No user with phone {phone}")
            return 1

        if clear_failed_logins(db, user.id):
            print(f"✓ Failure history cleared for {user.name} ({phone})")
        else:
            print(f"{user.name} ({phone}) had no failed logins")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__.strip())
        sys.exit(2)
    sys.exit(unlock(sys.argv[1]))
