"""
Identity token verification.

Tokens are issued by the identity provider; we only check the signature
and read the email claim.
"""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from jose import JWTError, jwt

from config import Settings, get_settings

logger = logging.getLogger(__name__)


def verify_token(token: str, settings: Settings) -> str:
    options = {"verify_aud": settings.jwt_audience is not None}
    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )
    email = payload.get("email")
    if not email:
        raise JWTError("Token carries no email claim")
    return email


def get_decoded_email(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="unauthorized access")
    token = authorization.replace("Bearer ", "").strip()
    try:
        return verify_token(token, settings)
    except JWTError as e:
        logger.info("Rejected identity token: %s", e)
        raise HTTPException(status_code=401, detail="unauthorized access")
