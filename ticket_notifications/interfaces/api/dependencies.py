"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from ticket_notifications.application.use_cases.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from ticket_notifications.infrastructure.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def resolve_current_user_id(token: str) -> str:
    """Return the user id carried by ``token``."""

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Return the authenticated user id from the bearer token."""

    return resolve_current_user_id(token)


def get_dispatcher() -> NotificationDispatcher:
    """Return the dispatcher used for ticket events."""

    return get_notification_dispatcher()
