"""Bootstrap script to create the initial admin user if configured."""

import logging
import sys

from clubhouse.core.config import get_settings
from clubhouse.db.session import SessionLocal
from clubhouse.models.user import User, UserRole
from clubhouse.services.auth import create_user

logger = logging.getLogger(__name__)


def bootstrap_admin() -> User | None:
    """Create an admin if no users exist and bootstrap credentials are set."""
    settings = get_settings()

    if not settings.bootstrap_admin_username or not settings.bootstrap_admin_password:
        logger.info("Bootstrap: no admin credentials configured, skipping")
        return None

    db = SessionLocal()
    try:
        user_count = db.query(User).count()
        if user_count > 0:
            logger.info("Bootstrap: %d user(s) already exist, skipping", user_count)
            return None

        user = create_user(
            db,
            settings.bootstrap_admin_username,
            settings.bootstrap_admin_password,
            role=UserRole.ADMIN.value,
        )
        logger.info("Bootstrap: created admin user '%s' with ID %d", user.username, user.id)
        return user
    finally:
        db.close()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        bootstrap_admin()
    except Exception:
        logger.exception("Bootstrap failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
