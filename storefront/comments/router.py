"""Comment system API endpoints.

Provides routes for:
- Public thread reads (by product, by id, replies)
- Authenticated create / update / delete and "my comments"
- Admin moderation: delete, reply, listings and per-product reports

Static and admin paths are declared before ``/{comment_id}`` so they are
not captured by it.
"""

from fastapi import APIRouter, Query, status

from storefront.auth.dependencies import AdminUser, CurrentUser

from .dependencies import CommentServiceDep, handle_comment_error
from .schemas import (
    AdminReplyRequest,
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    MessageResponse,
    ProductCommentReport,
    UpdateCommentRequest,
)
from .service import CommentError


router = APIRouter(prefix="/comments", tags=["comments"])

PageQuery = Query(1, ge=1, description="Page number (1-based)")
LimitQuery = Query(None, ge=1, le=100, description="Items per page")


# ==============================================================================
# Public reads
# ==============================================================================


@router.get(
    "/product",
    response_model=CommentListResponse,
    summary="List comments of a product",
)
async def list_product_comments(
    comment_service: CommentServiceDep,
    product_id: str | None = Query(None, description="Product ID"),
    parent_id: str | None = Query(None, description="List replies of this comment"),
    page: int = PageQuery,
    limit: int | None = LimitQuery,
) -> CommentListResponse:
    """Top-level comments of a product, newest first.

    With ``parent_id``, lists that comment's replies instead.
    """
    try:
        return await comment_service.list_by_product(
            product_id=product_id, parent_id=parent_id, page=page, limit=limit
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.get(
    "/my-comments",
    response_model=CommentListResponse,
    summary="List the caller's comments",
)
async def list_my_comments(
    comment_service: CommentServiceDep,
    user: CurrentUser,
    page: int = PageQuery,
    limit: int | None = LimitQuery,
) -> CommentListResponse:
    try:
        return await comment_service.list_by_user(
            user_id=user.id, page=page, limit=limit
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


# ==============================================================================
# Admin
# ==============================================================================


@router.get(
    "/admin/all",
    response_model=CommentListResponse,
    summary="List all top-level comments (admin)",
)
async def admin_list_comments(
    comment_service: CommentServiceDep,
    _admin: AdminUser,
    page: int = PageQuery,
    limit: int | None = LimitQuery,
    product_id: str | None = Query(None, description="Filter by product"),
    search: str | None = Query(None, description="Case-insensitive content match"),
) -> CommentListResponse:
    try:
        return await comment_service.list_all(
            page=page, limit=limit, product_id=product_id, search=search
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.get(
    "/admin/by-product",
    response_model=ProductCommentReport,
    summary="Comment activity per product (admin)",
)
async def admin_comments_by_product(
    comment_service: CommentServiceDep,
    _admin: AdminUser,
) -> ProductCommentReport:
    return await comment_service.group_by_product()


@router.get(
    "/admin/products-by-category/{category_slug}",
    response_model=ProductCommentReport,
    summary="Comment activity per product within a category (admin)",
)
async def admin_products_by_category(
    category_slug: str,
    comment_service: CommentServiceDep,
    _admin: AdminUser,
) -> ProductCommentReport:
    try:
        return await comment_service.products_with_comments_by_category(category_slug)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.post(
    "/admin/reply/{comment_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to a comment as admin",
)
async def admin_reply(
    comment_id: str,
    data: AdminReplyRequest,
    comment_service: CommentServiceDep,
    admin: AdminUser,
) -> CommentResponse:
    try:
        return await comment_service.admin_reply(
            comment_id=comment_id, admin_id=admin.id, content=data.content
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.delete(
    "/admin/{comment_id}",
    response_model=MessageResponse,
    summary="Delete any comment (admin)",
)
async def admin_delete_comment(
    comment_id: str,
    comment_service: CommentServiceDep,
    admin: AdminUser,
) -> MessageResponse:
    try:
        return await comment_service.delete(
            comment_id=comment_id, requester_id=admin.id, as_admin=True
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


# ==============================================================================
# Comment CRUD
# ==============================================================================


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Create a comment on a product, or a reply to a top-level comment.

    The parent author is notified in the background when someone else replies.
    """
    try:
        return await comment_service.create(
            author_id=user.id,
            product_id=data.product_id,
            content=data.content,
            parent_id=data.parent_id,
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.get(
    "/{comment_id}",
    response_model=CommentResponse,
    summary="Get comment",
)
async def get_comment(
    comment_id: str,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    try:
        return await comment_service.get_by_id(comment_id)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.get(
    "/{comment_id}/replies",
    response_model=CommentListResponse,
    summary="List replies of a comment",
)
async def list_replies(
    comment_id: str,
    comment_service: CommentServiceDep,
    page: int = PageQuery,
    limit: int | None = LimitQuery,
) -> CommentListResponse:
    """Direct replies, oldest first."""
    try:
        return await comment_service.list_replies(
            comment_id=comment_id, page=page, limit=limit
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.put(
    "/{comment_id}",
    response_model=CommentResponse,
    summary="Update comment",
)
async def update_comment(
    comment_id: str,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Edit a comment's text. Only the author can edit."""
    try:
        return await comment_service.update(
            comment_id=comment_id, requester_id=user.id, new_content=data.content
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.delete(
    "/{comment_id}",
    response_model=MessageResponse,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: str,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    """Soft-delete a comment. Only the author can delete here."""
    try:
        return await comment_service.delete(
            comment_id=comment_id, requester_id=user.id
        )
    except CommentError as e:
        raise handle_comment_error(e) from e
