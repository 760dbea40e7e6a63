"""
Create a user (e.g. first admin). Run from project root:
  python -m formula_access.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME [role]
Example:
  python -m formula_access.scripts.create_user admin@example.com 'S3cure!Pass' Ada Admin admin
"""
import argparse
import sys

from formula_access.core.config import get_settings
from formula_access.core.database import SessionLocal, db_operation
from formula_access.core.errors import AppError
from formula_access.core.roles import Role
from formula_access.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from formula_access.models import User
from formula_access.services.users import get_user_by_email


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a Formula PM user (bypasses self-registration).")
    parser.add_argument("email", help="Account email")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("first_name")
    parser.add_argument("last_name")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.CRAFTSMAN.value,
        choices=[r.value for r in Role],
    )
    args = parser.parse_args()

    email = args.email.strip().lower()
    if "@" not in email or len(email) > 255:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        if get_user_by_email(db, email) is not None:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            email=email,
            password_hash=hash_password(args.password, settings.BCRYPT_ROUNDS),
            first_name=args.first_name.strip(),
            last_name=args.last_name.strip(),
            role=args.role,
            status="active",
        )
        with db_operation(db, "Failed to create user"):
            db.add(user)
            db.commit()
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    except AppError as e:
        print(f"Failed to create user: {e.message}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
