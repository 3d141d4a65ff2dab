"""Account model."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, func

from storefront_auth.database import Base


class Account(Base):
    """Storefront customer account."""

    __tablename__ = "account"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(256), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)
    first_name = Column(String(256), nullable=False, default="")
    last_name = Column(String(256), nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    email_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)


# Emails are stored lowercased; this index keeps the rule even for rows written outside the store.
Index("uq_account_email_lower", func.lower(Account.email), unique=True)
