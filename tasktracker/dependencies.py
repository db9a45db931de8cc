"""FastAPI dependencies: database session and the authenticated principal."""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from tasktracker.config import settings
from tasktracker.database import get_db
from tasktracker.models import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Please authenticate.",
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_user_id(token: str) -> int:
    """Return the user id carried in the ``sub`` claim of ``token``."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise _unauthorized()

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise _unauthorized()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized()

    user = db.get(User, decode_user_id(credentials.credentials))
    if user is None:
        raise _unauthorized()
    return user
