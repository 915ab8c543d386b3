"""Token introspection for browser extensions.

``/auth/validate`` performs its own bearer check so a client can test a
freshly pasted token before its first sync.  It answers with a plain
``{"valid": ...}`` body instead of the success envelope.
"""

import logging
import time

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from jose import ExpiredSignatureError
from jose import JWTError
from sqlalchemy.orm import Session

from tabsync.auth.tokens import subject_user_id
from tabsync.crud import crud
from tabsync.database import get_db
from tabsync.dependencies.auth import get_jwt_strategy
from tabsync.schemas.auth import TokenUser
from tabsync.schemas.auth import TokenValidation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _invalid(error: str) -> JSONResponse:
    body = TokenValidation(valid=False, error=error)
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.get("/validate")
def validate_token(request: Request, db: Session = Depends(get_db)):
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        return _invalid("No token provided")

    try:
        claims = get_jwt_strategy().decode(auth_header[7:].strip())
    except ExpiredSignatureError:
        return _invalid("Token has expired")
    except JWTError:
        return _invalid("Invalid token")

    try:
        user_id = subject_user_id(claims)
    except (TypeError, ValueError):
        return _invalid("Invalid token format: missing user ID")

    user = crud.get_user(db, user_id)
    if user is None or not user.is_active:
        logger.info("[AUTH] Valid signature for unknown or inactive user %s", user_id)
        return _invalid("User not found or inactive")

    exp = claims.get("exp")
    expires_in = f"{int(exp - time.time())} seconds" if isinstance(exp, (int, float)) else "never"

    body = TokenValidation(
        valid=True,
        user=TokenUser(
            id=user.id,
            email=user.email,
            name=user.display_name or claims.get("name") or "",
            expires_in=expires_in,
        ),
    )
    return body.model_dump(by_alias=True, exclude_none=True)
