from clubhouse.models.base import Base
from clubhouse.models.screen import Screen, ScreenStatus
from clubhouse.models.user import User, UserRole

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Screen",
    "ScreenStatus",
]
