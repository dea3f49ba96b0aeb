"""
FastAPI Dependencies
"""
from fastapi import Request

from bidhouse.core.config import get_settings
from bidhouse.services.exceptions import UnauthenticatedError


def get_current_user_id(request: Request) -> str:
    """
    Caller identity set by the session layer in front of the API

    Raises:
        UnauthenticatedError: header missing or blank
    """
    header = get_settings().AUTH_USER_HEADER
    user_id = (request.headers.get(header) or "").strip()
    if not user_id:
        raise UnauthenticatedError("Authentication required", {"header": header})
    return user_id
