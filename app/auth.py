from datetime import datetime, timedelta
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError as PydanticValidationError
from app.config import Settings, get_settings
from app.errors import AuthError
from app.schemas.user import TokenPayload

security = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, settings: Settings | None = None, expires_in: timedelta | None = None) -> str:
    settings = settings or get_settings()
    expire = datetime.utcnow() + (expires_in or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": user_id,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


class JWTAuthenticator:
    """Validates a bearer token and yields the user id it was issued to."""

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self._secret_key = secret_key
        self._algorithm = algorithm

    def validate(self, token: str | None) -> str:
        if not token:
            raise AuthError("Couldn't find JWT")
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
            payload = TokenPayload(**claims)
        except (JWTError, PydanticValidationError) as e:
            raise AuthError("Couldn't validate JWT") from e
        if payload.type != "access" or not payload.sub:
            raise AuthError("Couldn't validate JWT")
        return payload.sub


def get_authenticator(settings: Settings = Depends(get_settings)) -> JWTAuthenticator:
    return JWTAuthenticator(settings.secret_key, settings.algorithm)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    authenticator: JWTAuthenticator = Depends(get_authenticator),
) -> str:
    return authenticator.validate(credentials.credentials if credentials else None)
