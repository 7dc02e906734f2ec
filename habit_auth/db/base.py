from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import models so Alembic can discover metadata
from habit_auth.models import (  # noqa: E402,F401
    challenge,
    failed_login,
    login_session,
    user,
)
