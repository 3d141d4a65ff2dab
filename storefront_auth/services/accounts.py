"""Credential store: durable account rows keyed by normalized email."""

from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront_auth.errors import ConflictError
from storefront_auth.models.account import Account
from storefront_auth.services.validation import normalize_email

DUPLICATE_EMAIL_MESSAGE = "An account with this email already exists"


class AccountStore:
    """Creates, finds and mutates accounts. Inactive accounts are never returned."""

    def create_account(
        self,
        db: Session,
        email: str,
        password_hash: str,
        first_name: str = "",
        last_name: str = "",
    ) -> Account:
        """Insert a new account. Raises ConflictError if the email is taken.

        The existence check is a fast path. The unique index is what rejects
        concurrent duplicates.
        """
        email = normalize_email(email)
        if self.email_exists(db, email):
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

        now = datetime.utcnow()
        account = Account(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            created_at=now,
            updated_at=now,
            email_verified=False,
            is_active=True,
        )
        db.add(account)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from None
        db.refresh(account)
        return account

    def email_exists(self, db: Session, email: str) -> bool:
        """True if any account, active or not, holds this email."""
        return db.query(Account.id).filter(Account.email == normalize_email(email)).first() is not None

    def find_active_by_email(self, db: Session, email: str) -> Account | None:
        return (
            db.query(Account)
            .filter(Account.email == normalize_email(email), Account.is_active.is_(True))
            .first()
        )

    def find_active_by_id(self, db: Session, account_id: int) -> Account | None:
        return db.query(Account).filter(Account.id == account_id, Account.is_active.is_(True)).first()

    def update_profile(self, db: Session, account: Account, first_name: str, last_name: str) -> Account:
        account.first_name = first_name
        account.last_name = last_name
        account.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(account)
        return account

    def update_password_hash(self, db: Session, account: Account, password_hash: str) -> Account:
        account.password_hash = password_hash
        account.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(account)
        return account
