"""
Actor identity and the permission gate

Credentials are checked by the external auth service. The core receives an
already authenticated actor id plus its permission set, carried in a bearer
token signed with the shared secret.
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import FrozenSet, Iterable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from resortpms.clock import utcnow
from resortpms.config import settings
from resortpms.exceptions import PermissionDeniedError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_EXPIRE_HOURS = 24

security = HTTPBearer()


@dataclass(frozen=True)
class Actor:
    """Pre-authenticated caller"""
    actor_id: str
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def has_permission(self, action: str) -> bool:
        return action in self.permissions


def require_permission(actor: Actor, action: str) -> None:
    """Raise PermissionDeniedError unless `actor` may perform `action`"""
    if actor is None or not actor.has_permission(action):
        actor_id = actor.actor_id if actor else None
        logger.warning(f"Permission denied: actor={actor_id} action={action}")
        raise PermissionDeniedError(actor_id, action)


def create_access_token(actor_id: str, permissions: Iterable[str],
                        expires_in: Optional[timedelta] = None) -> str:
    """Issue a token the way the external auth service does (tests and tooling)"""
    expire = utcnow() + (expires_in or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode = {
        "sub": str(actor_id),
        "permissions": sorted(permissions),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Actor:
    """FastAPI dependency: actor carried by the bearer token"""
    payload = decode_token(credentials.credentials)
    actor_id = payload.get("sub")
    if not actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )
    return Actor(actor_id=actor_id, permissions=frozenset(payload.get("permissions") or []))


def permission_required(action: str):
    """FastAPI dependency factory for read endpoints: actor holding `action`"""
    def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        require_permission(actor, action)
        return actor
    return dependency
