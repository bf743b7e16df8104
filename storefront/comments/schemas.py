"""Pydantic schemas for product comments.

Request and response models for:
- Comment create / update / admin reply
- Enriched comment responses (author, product and parent summaries)
- Page-number pagination
- Admin per-product reports
"""

from datetime import datetime
from math import ceil
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


if TYPE_CHECKING:
    from storefront.auth.models import User
    from storefront.catalog.models import Product

    from .models import Comment


# ==============================================================================
# Request Schemas
# ==============================================================================


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        msg = "content must not be empty"
        raise ValueError(msg)
    return value


class CreateCommentRequest(BaseModel):
    """Request to create a comment or a reply."""

    # Ids stay strings so malformed values reach the service as 400s
    product_id: str = Field(..., description="Product being commented on")
    content: str = Field(..., max_length=5000, description="Comment text")
    parent_id: str | None = Field(
        None, description="Top-level comment this replies to"
    )

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _strip_required(v)


class UpdateCommentRequest(BaseModel):
    """Request to update a comment; omitted content leaves it unchanged."""

    content: str | None = Field(None, max_length=5000, description="New text")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class AdminReplyRequest(BaseModel):
    content: str = Field(..., max_length=5000, description="Reply text")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _strip_required(v)


# ==============================================================================
# Summaries
# ==============================================================================


class AuthorSummary(BaseModel):
    """Author fields shown next to a comment."""

    id: UUID
    name: str = ""
    avatar: str | None = None
    email: str | None = None
    role: str | None = None

    @classmethod
    def from_user(cls, user: "User") -> "AuthorSummary":
        return cls(
            id=user.id,
            name=user.name,
            avatar=user.avatar_url,
            email=user.email or None,
            role=user.role,
        )


class ProductSummary(BaseModel):
    id: UUID
    name: str
    slug: str
    image_primary: str | None = None

    @classmethod
    def from_product(cls, product: "Product") -> "ProductSummary":
        return cls(
            id=product.product_id,
            name=product.name,
            slug=product.slug,
            image_primary=product.image_primary,
        )


class ParentSummary(BaseModel):
    """The comment a reply answers, with its author."""

    id: UUID
    content: str
    user_id: UUID
    author: AuthorSummary | None = None


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(BaseModel):
    """Comment with optional enrichment."""

    id: UUID = Field(description="Comment ID")
    product_id: UUID
    user_id: UUID
    content: str
    parent_id: UUID | None = None
    replies: list[UUID] = Field(default_factory=list)
    reply_count: int = 0
    is_deleted: bool = False
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary | None = None
    product: ProductSummary | None = None
    parent: ParentSummary | None = None

    @classmethod
    def from_comment(
        cls,
        comment: "Comment",
        author: AuthorSummary | None = None,
        product: ProductSummary | None = None,
        parent: ParentSummary | None = None,
    ) -> "CommentResponse":
        return cls(
            id=comment.comment_id,
            product_id=comment.product_id,
            user_id=comment.user_id,
            content=comment.content,
            parent_id=comment.parent_id,
            replies=sorted(comment.replies, key=str),
            reply_count=comment.reply_count,
            is_deleted=comment.is_deleted,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
            author=author,
            product=product,
            parent=parent,
        )


class PaginationResponse(BaseModel):
    """Page-number pagination metadata."""

    total: int
    page: int
    limit: int
    total_pages: int = Field(serialization_alias="totalPages")

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationResponse":
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=ceil(total / limit) if limit else 0,
        )


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    pagination: PaginationResponse


class MessageResponse(BaseModel):
    message: str


class ProductCommentSummary(BaseModel):
    """Top-level comment activity for one product."""

    product_id: UUID
    comment_count: int
    latest_comment: datetime
    product: ProductSummary


class ProductCommentReport(BaseModel):
    products: list[ProductCommentSummary]
    total: int
