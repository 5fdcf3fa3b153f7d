"""
Create a staff account (e.g. the first admin). Run from project root:
  python -m compssa.scripts.create_user USERNAME PASSWORD FULL_NAME [role]
Example:
  python -m compssa.scripts.create_user admin your-secure-password "System Admin" admin
"""
import argparse
import sys

from compssa.core.database import SessionLocal
from compssa.core.security import (
    FULL_NAME_MAX_LEN,
    FULL_NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from compssa.models.account import ROLE_CLERK, ROLES
from compssa.services.accounts import UsernameTaken, create_account


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a COMPSSA staff account.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} letters/digits)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("full_name", help="Display name")
    parser.add_argument("role", nargs="?", default=ROLE_CLERK, choices=list(ROLES))
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN) or not username.isalnum():
        print("Invalid username.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1
    if not (FULL_NAME_MIN_LEN <= len(args.full_name.strip()) <= FULL_NAME_MAX_LEN):
        print("Invalid full name length.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        account = create_account(
            db,
            username=username,
            password=args.password,
            full_name=args.full_name,
            role=args.role,
        )
    except UsernameTaken:
        print(f"User '{username.lower()}' already exists.", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{account.username}' with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
