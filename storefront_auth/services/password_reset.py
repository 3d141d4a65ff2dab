"""Password reset ledger: single-use, expiring reset tokens."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront_auth.config import get_settings
from storefront_auth.errors import InvalidOrExpiredError
from storefront_auth.models.account import Account
from storefront_auth.models.password_reset import PasswordReset

logger = logging.getLogger("storefront_auth")

RESET_TOKEN_BYTES = 32
INVALID_RESET_MESSAGE = "This reset link is invalid or has expired. Please request a new one."


@dataclass
class IssuedReset:
    """A freshly issued reset token."""

    token: str
    expires_at: datetime


class PasswordResetLedger:
    """Issues and consumes reset tokens.

    At most one unused, unexpired token exists per account: ``issue`` marks
    every earlier unused token as used in the same transaction that inserts
    the new one.
    """

    def __init__(self, expire_minutes: int | None = None) -> None:
        if expire_minutes is None:
            expire_minutes = get_settings().RESET_TOKEN_EXPIRE_MINUTES
        self.expire_minutes = expire_minutes

    def issue(self, db: Session, account_id: int, now: datetime | None = None) -> IssuedReset:
        """Create a new reset token for the account, superseding older ones."""
        now = now or datetime.utcnow()
        token = secrets.token_hex(RESET_TOKEN_BYTES)
        expires_at = now + timedelta(minutes=self.expire_minutes)

        try:
            # Row lock serializes issues for one account; SQLite ignores FOR UPDATE.
            db.query(Account.id).filter(Account.id == account_id).with_for_update().one()
            db.execute(
                update(PasswordReset)
                .where(PasswordReset.account_id == account_id, PasswordReset.used.is_(False))
                .values(used=True)
                .execution_options(synchronize_session=False)
            )
            db.add(PasswordReset(account_id=account_id, token=token, expires_at=expires_at, used=False, created_at=now))
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info("Issued password reset token for account %s (expires %s)", account_id, expires_at.isoformat())
        return IssuedReset(token=token, expires_at=expires_at)

    def consume(self, db: Session, token: str, new_password_hash: str, now: datetime | None = None) -> int:
        """Spend a reset token and set the owner's password. Returns the account id.

        Marking the row used and changing the password commit together, so a
        token is spent exactly once even when two requests race on it.
        """
        now = now or datetime.utcnow()
        try:
            result = db.execute(
                update(PasswordReset)
                .where(
                    PasswordReset.token == token,
                    PasswordReset.used.is_(False),
                    PasswordReset.expires_at > now,
                )
                .values(used=True)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                raise InvalidOrExpiredError(INVALID_RESET_MESSAGE)

            account_id = db.query(PasswordReset.account_id).filter(PasswordReset.token == token).scalar()
            account = db.query(Account).filter(Account.id == account_id, Account.is_active.is_(True)).first()
            if account is None:
                db.rollback()
                raise InvalidOrExpiredError(INVALID_RESET_MESSAGE)

            account.password_hash = new_password_hash
            account.updated_at = datetime.utcnow()
            db.commit()
        except InvalidOrExpiredError:
            raise
        except Exception:
            db.rollback()
            raise

        logger.info("Password reset completed for account %s", account_id)
        return account_id
