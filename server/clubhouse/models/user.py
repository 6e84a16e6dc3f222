from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from clubhouse.core.time import utcnow
from clubhouse.models.base import Base


class UserRole(str, Enum):
    ADMIN = "admin"
    CONTENT_MANAGER = "content_manager"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    role: Mapped[str] = mapped_column(
        String(20), default=UserRole.CONTENT_MANAGER.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
