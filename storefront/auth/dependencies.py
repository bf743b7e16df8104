"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from the bearer JWT
- Role-based access control
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from pydantic import ValidationError

from storefront.auth.permissions import UserRole
from storefront.auth.schemas import UserResponse
from storefront.auth.security import decode_access_token
from storefront.core.context import set_user_id


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        Token string or None if not present or malformed
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        user = UserResponse(
            id=payload["sub"],
            email=payload.get("email", ""),
            role=payload.get("role", UserRole.USER.value),
            name=payload.get("name", ""),
        )
    except (JWTError, ValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    # Set user_id in context for logging
    set_user_id(user.id)
    return user


def require_role(*allowed_roles: UserRole):
    """Create dependency requiring specific role(s).

    Example:
        @router.get("/admin-only")
        async def admin_endpoint(
            user: Annotated[UserResponse, Depends(require_role(UserRole.ADMIN))]
        ):
            ...
    """

    async def role_checker(
        user: Annotated[UserResponse, Depends(get_current_user)],
    ) -> UserResponse:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return role_checker


CurrentUser = Annotated[UserResponse, Depends(get_current_user)]
AdminUser = Annotated[UserResponse, Depends(require_role(UserRole.ADMIN))]
