from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from placementcracker.config import Settings, get_settings
from placementcracker.errors import Unauthenticated


def create_access_token(user_id: int, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_ttl_min)
    return jwt.encode(
        {"sub": str(user_id), "exp": expire},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str, settings: Settings | None = None) -> int:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise Unauthenticated("Unauthorized") from exc

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise Unauthenticated("Unauthorized") from exc
