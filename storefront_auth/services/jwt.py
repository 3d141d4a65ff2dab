"""Session token service.

Tokens are stateless HS256 JWTs. There is no revocation list: logout only
drops the client's copy, so a leaked token stays valid until ``exp``.
"""

from datetime import datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from storefront_auth.config import Settings, get_settings
from storefront_auth.errors import TokenExpiredError, TokenInvalidError


class JWTService:
    """Handles session token creation and validation."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.secret_key = settings.jwt_secret
        self.algorithm = settings.JWT_ALGORITHM
        self.expire_minutes = settings.JWT_EXPIRE_MINUTES

    def issue_token(self, account_id: int, now: datetime | None = None) -> str:
        """Create a signed token for the given account."""
        issued_at = now or datetime.utcnow()
        payload = {
            "sub": str(account_id),
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> int:
        """Return the account id bound to a token.

        Raises TokenExpiredError for a well-signed token past its expiry and
        TokenInvalidError for anything else.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError("Session expired, please log in again") from None
        except JWTError:
            raise TokenInvalidError("Invalid session") from None

        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise TokenInvalidError("Invalid session") from None


_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get singleton JWT service instance."""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JWTService()
    return _jwt_service
