"""Verification of the access tokens issued by the external session layer."""

from jose import JWTError, jwt

from ticket_notifications.config import get_settings

ALGORITHM = "HS256"


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc
