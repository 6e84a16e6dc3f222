from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from clubhouse.core.time import utcnow
from clubhouse.models.base import Base


class ScreenStatus(str, Enum):
    PENDING = "pending"
    ACTIVATED = "activated"


class Screen(Base):
    """A display screen's pairing session.

    ``activated_at`` and ``activated_by_user_id`` are only ever set together
    with ``status = activated``.
    """

    __tablename__ = "screens"

    id: Mapped[int] = mapped_column(primary_key=True)
    pairing_code: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    status: Mapped[str] = mapped_column(String(20), default=ScreenStatus.PENDING.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime, index=True)
    activated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    activated_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def is_activated(self) -> bool:
        return self.status == ScreenStatus.ACTIVATED.value
