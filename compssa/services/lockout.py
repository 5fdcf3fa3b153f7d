"""
Account lockout state machine.

An account is OPEN (no lock recorded), LOCKED (locked_until is in the future)
or EXPIRED (locked_until has passed; the next attempt starts a fresh cycle).
A lock is in force strictly before locked_until; at that instant it is over.

Functions here mutate the in-memory Account only. The caller owns the
transaction and must hold the row lock while calling them.
"""

import math
from datetime import datetime, timedelta
from enum import Enum

from compssa.models.account import Account, as_utc


class LockoutState(str, Enum):
    OPEN = "open"
    LOCKED = "locked"
    EXPIRED = "expired"


def lockout_state(account: Account, now: datetime) -> LockoutState:
    """Classify the account's lock at `now` (aware UTC)."""
    locked_until = as_utc(account.locked_until)
    if locked_until is None:
        return LockoutState.OPEN
    if locked_until > now:
        return LockoutState.LOCKED
    return LockoutState.EXPIRED


def is_locked(account: Account, now: datetime) -> bool:
    return lockout_state(account, now) is LockoutState.LOCKED


def retry_after_seconds(account: Account, now: datetime) -> int:
    """Whole seconds until the lock lifts (rounded up); 0 when not locked."""
    if not is_locked(account, now):
        return 0
    remaining = (as_utc(account.locked_until) - now).total_seconds()
    return max(1, math.ceil(remaining))


def register_failure(
    account: Account,
    now: datetime,
    max_attempts: int,
    lockout: timedelta,
) -> bool:
    """
    Record one wrong-password attempt. Returns True if this attempt engaged a lock.

    A stale (expired) lock restarts the cycle with this attempt as the first.
    """
    state = lockout_state(account, now)
    if state is LockoutState.EXPIRED:
        account.failed_login_count = 1
        account.locked_until = None
        state = LockoutState.OPEN
    else:
        account.failed_login_count = (account.failed_login_count or 0) + 1

    if account.failed_login_count >= max_attempts and state is not LockoutState.LOCKED:
        account.locked_until = now + lockout
        return True
    return False


def register_success(account: Account, now: datetime) -> None:
    """Clear counters and stamp last_login after a correct password."""
    account.failed_login_count = 0
    account.locked_until = None
    account.last_login = now
