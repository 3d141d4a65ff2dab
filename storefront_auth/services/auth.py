"""Authentication service: the register/login/profile/password flows."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from storefront_auth.errors import NotFoundError, UnauthorizedError, ValidationError
from storefront_auth.models.account import Account
from storefront_auth.services.accounts import AccountStore
from storefront_auth.services.jwt import JWTService, get_jwt_service
from storefront_auth.services.notifications import AccountNotifier
from storefront_auth.services.password_reset import PasswordResetLedger
from storefront_auth.services.passwords import (
    check_password_policy,
    dummy_hash,
    hash_password,
    verify_password,
)
from storefront_auth.services.validation import check_email, sanitize_name

logger = logging.getLogger("storefront_auth")

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
FORGOT_PASSWORD_MESSAGE = "If an account exists with that email, a reset link has been sent"


@dataclass
class AuthResult:
    """A signed-in account and its session token."""

    account: Account
    token: str


class AuthService:
    """Composes the credential store, reset ledger and session tokens."""

    def __init__(
        self,
        notifier: AccountNotifier,
        accounts: AccountStore | None = None,
        resets: PasswordResetLedger | None = None,
        jwt_service: JWTService | None = None,
    ) -> None:
        self.notifier = notifier
        self.accounts = accounts or AccountStore()
        self.resets = resets or PasswordResetLedger()
        self.jwt_service = jwt_service or get_jwt_service()

    def register(
        self,
        db: Session,
        email: str | None,
        password: str | None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> AuthResult:
        """Create an account and sign it in. Raises ValidationError or ConflictError."""
        email = check_email(email)
        check_password_policy(password)
        first_name = sanitize_name(first_name)
        last_name = sanitize_name(last_name)
        account = self.accounts.create_account(db, email, hash_password(password), first_name, last_name)
        token = self.jwt_service.issue_token(account.id)
        logger.info("Registered account %s", account.id)

        try:
            self.notifier.send_welcome_email(account.email, account.first_name)
        except Exception:
            logger.exception("Could not queue welcome email for account %s", account.id)

        return AuthResult(account=account, token=token)

    def authenticate(self, db: Session, email: str | None, password: str | None) -> AuthResult:
        """Check credentials. Unknown email and wrong password fail identically."""
        if not email or not password:
            raise ValidationError("Email and password are required")

        account = self.accounts.find_active_by_email(db, email)
        if account is None:
            verify_password(password, dummy_hash())
            logger.info("Login failed for unknown email")
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        if not verify_password(password, account.password_hash):
            logger.info("Login failed for account %s", account.id)
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        return AuthResult(account=account, token=self.jwt_service.issue_token(account.id))

    def resolve_session(self, db: Session, token: str) -> Account:
        """Return the active account behind a session token.

        Re-reads the account on every call so deactivation applies to tokens
        issued before it.
        """
        account_id = self.jwt_service.verify_token(token)
        account = self.accounts.find_active_by_id(db, account_id)
        if account is None:
            raise NotFoundError("Account not found or deactivated")
        return account

    def update_profile(
        self,
        db: Session,
        account: Account,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> Account:
        """Update name fields. Omitted fields keep their current value."""
        return self.accounts.update_profile(
            db,
            account,
            sanitize_name(first_name) if first_name is not None else account.first_name,
            sanitize_name(last_name) if last_name is not None else account.last_name,
        )

    def change_password(
        self,
        db: Session,
        account: Account,
        current_password: str | None,
        new_password: str | None,
    ) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current and new password are required")
        check_password_policy(new_password)

        if not verify_password(current_password, account.password_hash):
            raise UnauthorizedError("Current password is incorrect")

        self.accounts.update_password_hash(db, account, hash_password(new_password))
        logger.info("Password changed for account %s", account.id)

    def request_password_reset(self, db: Session, email: str | None) -> str:
        """Issue a reset token if the account exists.

        Always returns the same message so the response does not reveal
        whether the email is registered.
        """
        email = check_email(email)
        account = self.accounts.find_active_by_email(db, email)
        if account is None:
            return FORGOT_PASSWORD_MESSAGE

        issued = self.resets.issue(db, account.id)
        try:
            self.notifier.send_password_reset_email(account.email, issued.token)
        except Exception:
            logger.exception("Could not queue reset email for account %s", account.id)
        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, db: Session, token: str | None, new_password: str | None) -> int:
        """Set a new password using a reset token. Does not sign the user in."""
        if not token:
            raise ValidationError("Reset token is required")
        check_password_policy(new_password)
        return self.resets.consume(db, token, hash_password(new_password))
