"""Bearer-token authentication dependencies.

Tokens are itsdangerous-signed payloads of the form ``{"id": <user id>,
"role": <role>}``; the id becomes the ``updated_by`` attribution on stages.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

TOKEN_SALT = "farmtrace-actor"


@dataclass
class ActorContext:
    """Authenticated identity available to request handlers."""
    id: int
    role: str


def _get_serializer() -> URLSafeTimedSerializer:
    from farmtrace.common.config import get_settings
    return URLSafeTimedSerializer(get_settings().secret_key, salt=TOKEN_SALT)


def issue_token(user_id: int, role: str) -> str:
    """Sign an actor payload and return the bearer token."""
    return _get_serializer().dumps({"id": user_id, "role": role})


def decode_token(token: str) -> Optional[dict]:
    """Verify and decode a bearer token. Returns payload or None."""
    from farmtrace.common.config import get_settings

    try:
        payload = _get_serializer().loads(token, max_age=get_settings().token_max_age)
    except (BadSignature, SignatureExpired):
        return None
    if not isinstance(payload, dict) or "id" not in payload or "role" not in payload:
        return None
    return payload


async def require_actor(
    authorization: str = Header(None, alias="Authorization"),
) -> ActorContext:
    """FastAPI dependency that resolves the calling actor from the bearer token."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Access denied")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Access denied")

    payload = decode_token(token)
    if payload is None:
        raise HTTPException(status_code=403, detail="Invalid token")
    return ActorContext(id=int(payload["id"]), role=str(payload["role"]))


def require_role(*roles: str) -> Callable:
    """Build a dependency that only admits actors holding one of ``roles``."""

    async def _check(actor: ActorContext = Depends(require_actor)) -> ActorContext:
        if actor.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return actor

    return _check
