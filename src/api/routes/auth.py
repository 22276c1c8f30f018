"""Authentication routes.

This module handles HTTP endpoints for user authentication and registration,
and provides the bearer-token dependencies used by every other router.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

import pytz
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET_KEY
from core.dependencies import UserManagerDep
from core.error_handlers import to_http_exception
from core.exceptions import EcoterraError
from schemas.common import envelope
from schemas.user import (
    AuthPayload,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# Missing credentials are reported by the dependencies below, not by HTTPBearer
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Args:
        data: Data to encode in the token.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token string.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(pytz.utc) + expires_delta
    else:
        expire = datetime.now(pytz.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """Return the user ID a token was issued for, or None if it is invalid."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")


def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Verify the JWT token from the Authorization header.

    Returns:
        The user ID carried by the token.

    Raises:
        HTTPException: If the token is missing, invalid or expired.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided.",
        )
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return user_id


def get_current_user(
    user_id: str = Depends(verify_token),
    user_manager: UserManagerDep = None,
) -> User:
    """Get current authenticated user.

    Raises:
        HTTPException: If the user no longer exists or is deactivated.
    """
    user = user_manager.get_user_by_id(user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token or user not found",
        )
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    user_manager: UserManagerDep = None,
) -> Optional[User]:
    """Get the caller if a valid token was sent, otherwise None."""
    if credentials is None:
        return None
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        return None
    user = user_manager.get_user_by_id(user_id)
    if user is None or not user.is_active:
        return None
    return user


def require_roles(*roles: str) -> Callable[..., User]:
    """Build a dependency that admits only users holding one of ``roles``."""

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(
                "Denied %s (%s): requires one of %s",
                current_user.user_id, current_user.role, roles,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Insufficient permissions.",
            )
        return current_user

    return checker


def _auth_payload(user_manager, user: User) -> dict:
    token = create_access_token(data={"sub": user.user_id})
    payload = AuthPayload(user=user_manager.get_user_info(user.user_id), token=token)
    return payload.model_dump()


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register")
def register(
    req: RegisterRequest,
    user_manager: UserManagerDep = None,
) -> dict:
    """Register a new user.

    guru and murid accounts must use a school email address; the account is
    bound to the school owning the domain.
    """
    try:
        user = user_manager.create_user(
            full_name=req.full_name,
            email=req.email,
            password=req.password,
            role=req.role,
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e

    return envelope("User registered successfully", data=_auth_payload(user_manager, user))


@router.post("/login", summary="Login")
def login(
    req: LoginRequest,
    user_manager: UserManagerDep = None,
) -> dict:
    """Login with email and password."""
    try:
        user = user_manager.authenticate(req.email, req.password)
    except EcoterraError as e:
        raise to_http_exception(e) from e

    logger.info("User logged in: %s", user.user_id)
    return envelope("Login successful", data=_auth_payload(user_manager, user))


@router.post("/logout", summary="Logout")
def logout(current_user: User = Depends(get_current_user)) -> dict:
    """Logout endpoint.

    Note: Since we're using stateless JWT tokens, logout is handled
    client-side by removing the token. This endpoint exists for API
    consistency.
    """
    return envelope("Logout successful")


@router.get("/profile", summary="Get current user")
@router.get("/me", summary="Get current user")
def get_profile(
    current_user: User = Depends(get_current_user),
    user_manager: UserManagerDep = None,
) -> dict:
    """Get the authenticated user with their school."""
    info = user_manager.get_user_info(current_user.user_id)
    return envelope("Profile retrieved successfully", data=info.model_dump())


@router.put("/profile", summary="Update profile")
def update_profile(
    req: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    user_manager: UserManagerDep = None,
) -> dict:
    info = user_manager.update_profile(
        current_user.user_id,
        full_name=req.full_name,
        profile_image=req.profile_image,
    )
    return envelope("Profile updated successfully", data=info.model_dump())


@router.put("/change-password", summary="Change password")
def change_password(
    req: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    user_manager: UserManagerDep = None,
) -> dict:
    """Change the password after checking the current one."""
    try:
        user_manager.change_password(
            current_user.user_id, req.current_password, req.new_password
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope("Password changed successfully")
