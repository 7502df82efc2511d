from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from deckpad.core.config import settings
from deckpad.domain.exceptions import UnauthorizedAccessException


class SecurityService:
    def create_access_token(
        self, data: Dict[str, Any], expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a JWT access token."""
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(UTC) + expires_delta
        else:
            expire = datetime.now(UTC) + timedelta(
                minutes=settings.jwt_expiration_minutes
            )

        to_encode.update({"exp": expire, "iat": datetime.now(UTC)})

        return jwt.encode(
            to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
        )

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify and decode a JWT token."""
        try:
            return jwt.decode(
                token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
            )
        except JWTError as e:
            raise UnauthorizedAccessException("token", reason=str(e))

    def extract_user_id_from_token(self, token: str) -> str:
        """Extract user ID from JWT token."""
        payload = self.verify_token(token)
        user_id = payload.get("sub")
        if user_id is None:
            raise UnauthorizedAccessException("token", reason="No user ID found")
        return user_id


security_service = SecurityService()
