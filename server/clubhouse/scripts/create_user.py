"""Script to create a CMS user."""
import argparse
import sys

from clubhouse.db.session import SessionLocal
from clubhouse.models.user import UserRole
from clubhouse.services.auth import create_user, get_user_by_username


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create a CMS user")
    parser.add_argument("--username", required=True, help="Login name")
    parser.add_argument("--password", required=True, help="Initial password")
    parser.add_argument(
        "--role",
        choices=[role.value for role in UserRole],
        default=UserRole.CONTENT_MANAGER.value,
        help="Only admins can activate screens",
    )
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        if get_user_by_username(db, args.username):
            print(f"User '{args.username}' already exists.")
            sys.exit(1)

        user = create_user(db, args.username, args.password, role=args.role)
        print(f"Created {user.role} '{user.username}' with ID {user.id}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
