from sqlalchemy.orm import Session

from habit_auth.models import User


def get_user_by_phone(db: Session, phone: str) -> User | None:
    return db.query(User).filter(User.phone == phone).first()


def create_user(db: Session, name: str, phone: str, email: str | None = None, timezone: str | None = None) -> User:
    user = User(name=name, phone=phone, email=email, timezone=timezone)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
