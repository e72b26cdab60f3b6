"""JWT issuing and validation for API bearer tokens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from ..core.constants import DEFAULT_TOKEN_DAYS
from ..core.exceptions import TokenError

ALGORITHM = "HS256"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime
    token_type: str = "Bearer"


class TokenService:
    def __init__(self, secret: str, *, expires_days: int = DEFAULT_TOKEN_DAYS):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._expires = timedelta(days=int(expires_days))

    def issue(self, *, user_id: int, email: str, role: str, company_id: Optional[int],
              company_code: Optional[str], job_role: Optional[str],
              now: Optional[datetime] = None) -> IssuedToken:
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + self._expires
        payload: Dict[str, Any] = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "companyId": company_id,
            "companyCode": company_code,
            "jobRole": job_role,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        return IssuedToken(token=token, expires_at=expires_at)

    def decode(self, token: str) -> Dict[str, Any]:
        """Validate ``token`` and return its payload.

        Raises:
            TokenError: expired (TOKEN_EXPIRED) or otherwise invalid (INVALID_TOKEN).
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise TokenError("Token has expired", error_code="TOKEN_EXPIRED")
        except InvalidTokenError:
            raise TokenError("Invalid token", error_code="INVALID_TOKEN")

        if "sub" not in payload:
            raise TokenError("Token missing subject claim", error_code="INVALID_TOKEN")
        return payload

    @staticmethod
    def user_id_from(payload: Dict[str, Any]) -> int:
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise TokenError("Invalid token", error_code="INVALID_TOKEN")
