from __future__ import annotations

import uuid
from collections.abc import Generator

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from placementcracker.api.auth import decode_access_token
from placementcracker.config import get_settings
from placementcracker.db.repositories import Repository
from placementcracker.db.session import get_db_session
from placementcracker.errors import Unauthenticated
from placementcracker.llm.client import GenerationClient
from placementcracker.types import RequestContext

bearer = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_generation_client() -> GenerationClient:
    return GenerationClient(get_settings())


def get_request_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    x_request_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> RequestContext:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Unauthorized")

    user_id = decode_access_token(credentials.credentials)
    if Repository(db).get_user(user_id) is None:
        raise Unauthenticated("Unauthorized")

    return RequestContext(user_id=user_id, trace_id=x_request_id or uuid.uuid4().hex)
