"""Pydantic schemas for the authenticated caller."""

from uuid import UUID

from pydantic import BaseModel, Field

from storefront.auth.permissions import UserRole


class UserResponse(BaseModel):
    """Identity extracted from a verified access token."""

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(default=UserRole.USER, description="User role")
    name: str = Field(default="", description="Display name, when known")
