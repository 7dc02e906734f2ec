"""
Delete challenges that have aged out of the freshness window.
Safe to run at any time: pruned rows are already ignored by login.
"""
from habit_auth.db.session import SessionLocal
from habit_auth.services.challenge_service import prune_stale_challenges


def main():
    db = SessionLocal()
    try:
        deleted = prune_stale_challenges(db)
        print(f"Deleted {deleted} stale challenges")
    finally:
        db.close()


if __name__ == "__main__":
    main()
