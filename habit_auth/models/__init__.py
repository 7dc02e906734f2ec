from .user import User
from .login_session import LoginSession
from .challenge import Challenge
from .failed_login import FailedLogin

__all__ = [
    "User",
    "LoginSession",
    "Challenge",
    "FailedLogin",
]
