"""Screen pairing registry.

A kiosk asks for a short-lived pairing code, shows it on screen and polls
until an admin activates the code from the CMS. All state lives in the
``screens`` table. Activation is a single conditional UPDATE, so two workers
activating the same code cannot both succeed.
"""

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clubhouse.core.config import get_settings
from clubhouse.core.time import utcnow
from clubhouse.models.screen import Screen, ScreenStatus

logger = logging.getLogger(__name__)

# Reported by status polling only; never persisted
EXPIRED_STATUS = "expired"


class PairingError(ValueError):
    """Base class for pairing workflow failures."""


class PairingCodeNotFound(PairingError):
    def __init__(self, code: str) -> None:
        super().__init__(f"Invalid pairing code: {code}")
        self.code = code


class PairingCodeExpired(PairingError):
    def __init__(self, code: str) -> None:
        super().__init__("Pairing code has expired")
        self.code = code


class ScreenAlreadyActivated(PairingError):
    def __init__(self, code: str) -> None:
        super().__init__("Screen is already activated")
        self.code = code


def normalize_pairing_code(code: str) -> str:
    """Codes are entered by hand, so lookups ignore case and stray whitespace."""
    return code.strip().upper()


def generate_pairing_code(length: int | None = None, alphabet: str | None = None) -> str:
    """Generate a random pairing code from the configured alphabet."""
    settings = get_settings()
    length = length or settings.pairing_code_length
    alphabet = alphabet or settings.pairing_code_alphabet
    return "".join(secrets.choice(alphabet) for _ in range(length))


def is_pairing_code_expired(screen: Screen, now: datetime | None = None) -> bool:
    return screen.expires_at < (now or utcnow())


def pairing_status(screen: Screen, now: datetime | None = None) -> str:
    """Return ``activated``, ``pending`` or ``expired`` for a session."""
    if screen.is_activated:
        return ScreenStatus.ACTIVATED.value
    if is_pairing_code_expired(screen, now):
        return EXPIRED_STATUS
    return ScreenStatus.PENDING.value


def get_screen_by_code(db: Session, code: str) -> Screen | None:
    return db.query(Screen).filter(Screen.pairing_code == normalize_pairing_code(code)).first()


def cleanup_expired_screens(db: Session, now: datetime | None = None) -> int:
    """Delete every pairing session whose expiry has passed.

    Returns the number of deleted records.
    """
    count = (
        db.query(Screen)
        .filter(Screen.expires_at < (now or utcnow()))
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def _purge_expired(db: Session, now: datetime) -> None:
    try:
        purged = cleanup_expired_screens(db, now)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Expired pairing cleanup failed, issuing code anyway", exc_info=True)
        return
    if purged:
        logger.info("Purged %d expired pairing session(s)", purged)


def request_pairing(db: Session, ttl: timedelta | None = None) -> Screen:
    """Issue a new pending pairing session.

    Lazily purges expired sessions first. Code collisions, whether caught by
    the pre-check or by the unique constraint at insert, are retried with a
    fresh code.

    Raises:
        RuntimeError: If no free code was found within the configured attempts.
    """
    settings = get_settings()
    if ttl is None:
        ttl = timedelta(minutes=settings.pairing_code_ttl_minutes)

    now = utcnow()
    _purge_expired(db, now)

    for _ in range(settings.pairing_code_max_attempts):
        code = generate_pairing_code()
        if get_screen_by_code(db, code) is not None:
            continue

        screen = Screen(
            pairing_code=code,
            status=ScreenStatus.PENDING.value,
            created_at=now,
            expires_at=now + ttl,
        )
        db.add(screen)
        try:
            db.commit()
        except IntegrityError:
            # Another worker claimed the same code between the check and the insert
            db.rollback()
            continue

        db.refresh(screen)
        logger.info("Issued pairing code %s, expires at %s", code, screen.expires_at)
        return screen

    raise RuntimeError(
        f"Could not allocate a unique pairing code after "
        f"{settings.pairing_code_max_attempts} attempts"
    )


def update_screen_last_seen(db: Session, screen: Screen, now: datetime | None = None) -> None:
    screen.last_seen_at = now or utcnow()
    db.commit()


def get_pairing_status(db: Session, code: str) -> str:
    """Report a pairing code's status for a polling kiosk.

    A pending code past its expiry reports ``expired`` so the kiosk knows to
    request a new one. Also records the poll in ``last_seen_at``.

    Raises:
        PairingCodeNotFound: If the code was never issued or has been purged.
    """
    screen = get_screen_by_code(db, code)
    if screen is None:
        raise PairingCodeNotFound(normalize_pairing_code(code))

    code = screen.pairing_code
    now = utcnow()
    status = pairing_status(screen, now)
    try:
        update_screen_last_seen(db, screen, now)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Could not record last_seen for pairing code %s", code)
    return status


def mark_activated(
    db: Session, code: str, user_id: int | None = None, now: datetime | None = None
) -> bool:
    """Atomically move a pending, unexpired session to activated.

    Returns False when no row matched, i.e. the code is unknown, expired, or
    already activated by someone else.
    """
    now = now or utcnow()
    updated = (
        db.query(Screen)
        .filter(
            Screen.pairing_code == normalize_pairing_code(code),
            Screen.status == ScreenStatus.PENDING.value,
            Screen.expires_at >= now,
        )
        .update(
            {
                Screen.status: ScreenStatus.ACTIVATED.value,
                Screen.activated_at: now,
                Screen.activated_by_user_id: user_id,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    return updated == 1


def activate_screen(db: Session, code: str, user_id: int | None = None) -> Screen:
    """Activate a pairing code on behalf of an admin.

    Raises:
        PairingCodeNotFound: If the code does not exist.
        PairingCodeExpired: If the code's expiry has passed, whatever its status.
        ScreenAlreadyActivated: If the code was already activated, including
            when a concurrent activation won the race.
    """
    screen = get_screen_by_code(db, code)
    if screen is None:
        raise PairingCodeNotFound(normalize_pairing_code(code))

    code = screen.pairing_code
    now = utcnow()
    if is_pairing_code_expired(screen, now):
        raise PairingCodeExpired(code)
    if screen.is_activated:
        raise ScreenAlreadyActivated(code)

    if not mark_activated(db, code, user_id, now):
        logger.warning("Lost activation race for pairing code %s", code)
        raise ScreenAlreadyActivated(code)

    db.refresh(screen)
    logger.info("Pairing code %s activated by user %s", code, user_id)
    return screen


def list_screens(db: Session) -> list[Screen]:
    return db.query(Screen).order_by(Screen.created_at.desc(), Screen.id.desc()).all()


def delete_screen(db: Session, screen: Screen) -> None:
    code = screen.pairing_code
    db.delete(screen)
    db.commit()
    logger.info("Deleted pairing session %s", code)
