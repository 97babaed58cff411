from jose import JWTError, jwt
from datetime import datetime, timedelta
from app.config import SECRET_KEY
import logging

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

ACCESS_TOKEN_EXPIRE_HOURS = 1


def create_access_token(data: dict):
    """Create an access token carrying the viewer's username and role"""
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_access_token(token: str) -> dict | None:
    """
    Verify an access token.

    Returns:
        dict: Token payload if valid
        None: If token is expired or invalid
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        logger.debug("Access token verified successfully")
        return payload
    except JWTError as e:
        logger.warning(f"Access token verification failed: {str(e)}")
        return None
