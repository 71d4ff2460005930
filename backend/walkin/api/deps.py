"""
Request-scoped dependencies: datasource session, settings, auth
"""
import uuid
from typing import Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from walkin.core.config import Settings
from walkin.core.db import User, get_db_session
from walkin.core.security import decode_access_token
from walkin.services.errors import AuthenticationError, PermissionDeniedError
from walkin.services.events import EventBroadcaster
from walkin.services.users import get_user_by_uid

bearer_scheme = HTTPBearer(auto_error=False)


def get_request_id(x_request_id: Optional[str] = Header(None)) -> str:
    return x_request_id or str(uuid.uuid4())


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_broadcaster(request: Request) -> EventBroadcaster:
    return request.app.state.broadcaster


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
) -> User:
    """Resolve the bearer token to a user row"""
    if credentials is None:
        raise AuthenticationError("로그인이 필요합니다")

    payload = decode_access_token(credentials.credentials, secret_key=config.SECRET_KEY)
    if payload is None:
        raise AuthenticationError("인증이 만료되었거나 유효하지 않습니다")

    user = get_user_by_uid(db, payload["sub"])
    if user is None:
        raise AuthenticationError("사용자 정보를 찾을 수 없습니다")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise PermissionDeniedError("관리자 권한이 필요합니다")
    return user
