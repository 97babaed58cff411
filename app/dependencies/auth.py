from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer
from app.utils.auth_token import verify_access_token
import logging

logger = logging.getLogger(__name__)
security = HTTPBearer()

async def get_current_user(credentials = Depends(security)):
    """
    Extract the viewer (username + role) from the Bearer JWT.

    Raises 401 when the token is expired, invalid or carries no username.
    """
    token = credentials.credentials

    payload = verify_access_token(token)

    if not payload:
        logger.warning("Token verification failed - token is expired or invalid")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired or invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    username = payload.get("username") or payload.get("sub")
    role = payload.get("role")

    if not username:
        logger.error("Token missing required username")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing required user information",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "username": username,
        "role": role
    }
