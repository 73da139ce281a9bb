from dataclasses import dataclass

from jose import JWTError, jwt

from app.config import settings
from app.errors import Unauthenticated

COURSE = "course"
PROFESSIONAL = "professional"
ACCOUNT_TYPES = (COURSE, PROFESSIONAL)


@dataclass(frozen=True)
class CurrentUser:
    """Identity asserted by the hosted auth provider."""

    id: str
    email: str | None = None


@dataclass(frozen=True)
class Actor:
    """An authenticated user together with their marketplace account type.

    Every lifecycle operation receives the acting account explicitly.
    """

    id: str
    account_type: str
    email: str | None = None

    @property
    def is_course(self) -> bool:
        return self.account_type == COURSE

    @property
    def is_professional(self) -> bool:
        return self.account_type == PROFESSIONAL


class IdentityService:
    def __init__(self, secret: str | None = None, algorithm: str | None = None, audience: str | None = None):
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    @property
    def secret(self) -> str:
        return self._secret or settings.auth_jwt_secret

    @property
    def algorithm(self) -> str:
        return self._algorithm or settings.auth_jwt_algorithm

    @property
    def audience(self) -> str | None:
        return self._audience or settings.auth_jwt_audience

    def verify(self, token: str) -> CurrentUser:
        options = {"verify_aud": self.audience is not None}
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options=options,
            )
        except JWTError as exc:
            raise Unauthenticated("Invalid or expired token") from exc

        subject = claims.get("sub")
        if not subject:
            raise Unauthenticated("Token has no subject")
        return CurrentUser(id=subject, email=claims.get("email"))

    def issue(self, user_id: str, email: str | None = None, **claims) -> str:
        """Mint a token the way the provider does. Used by tests and local tooling."""
        payload = {"sub": user_id, **claims}
        if email:
            payload["email"] = email
        if self.audience and "aud" not in payload:
            payload["aud"] = self.audience
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)


identity_service = IdentityService()
