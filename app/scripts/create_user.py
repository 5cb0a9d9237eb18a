"""
Create a user (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user "Front Desk Admin" admin@clinic.example your-secure-password admin
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from app.models.user import ADMIN_ROLE, User


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an active clinic staff user.")
    parser.add_argument("name", help="Display name")
    parser.add_argument("email", help="Login email (unique)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=ADMIN_ROLE)
    args = parser.parse_args(argv)

    email = args.email.strip().lower()
    if not email or "@" not in email or len(email) > EMAIL_MAX_LEN:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN:
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            name=args.name.strip(),
            email=email,
            password_hash=hash_password(args.password),
            role=args.role,
            status="active",
        )
        db.add(user)
        db.commit()
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
