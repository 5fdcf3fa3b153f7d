"""
Clear failed-login counters and lockouts. Run from project root:
  python -m compssa.scripts.reset_lockout                # every account
  python -m compssa.scripts.reset_lockout -u admin -u jdoe
"""
import argparse
import logging
import sys

from compssa.core.database import SessionLocal
from compssa.services.accounts import list_accounts
from compssa.services.auth import reset_lockout

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Reset account lockouts.")
    parser.add_argument(
        "-u",
        "--username",
        action="append",
        dest="usernames",
        help="Account to reset (repeatable); all accounts when omitted",
    )
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        updated = reset_lockout(db, args.usernames)
        logger.info("Reset lockout for %s account(s)", updated)
        for account in list_accounts(db):
            print(
                f"  - {account.username}: attempts={account.failed_login_count}, "
                f"locked={'YES' if account.locked_until else 'NO'}, "
                f"active={account.is_active}"
            )
        return 0
    except Exception as e:
        logger.exception("Lockout reset failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
