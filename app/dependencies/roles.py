from fastapi import Depends, HTTPException, status
from app.config import ADMIN_ROLES
from app.dependencies.auth import get_current_user

def admin_required(current_user: dict = Depends(get_current_user)):
    """Only administrative roles allowed"""
    if current_user.get("role") not in ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this resource."
        )
    return current_user
