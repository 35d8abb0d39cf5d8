import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from app.core.config import settings
from app.core.exceptions import Unauthorized

ALGORITHM = "HS256"


def create_access_token(data: Dict[str, Any], subject: str, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "sub": subject, "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid token")


class AccessCodeVerifier:
    """Checks the admin access code against the configured secret."""

    def __init__(self, expected: str):
        self._expected = expected.encode("utf-8")

    def verify(self, candidate: Optional[str]) -> bool:
        if not candidate:
            return False
        return secrets.compare_digest(candidate.encode("utf-8"), self._expected)


admin_code_verifier = AccessCodeVerifier(settings.ADMIN_ACCESS_CODE.get_secret_value())
