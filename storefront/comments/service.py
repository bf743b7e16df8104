"""Comment system service layer.

Business logic for:
- Threaded product comments (top-level comments and one level of replies)
- Ownership checks for edit and soft delete
- Reply bookkeeping on the parent (reply set and reply_count)
- Author / product / parent enrichment for listings
- Admin listings and per-product reports
- Reply notifications, handed off so they never block or fail a write
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING
from uuid import UUID

from storefront.config import Settings, get_settings
from storefront.core.logging import get_logger
from storefront.notifications.models import CommentReplyContext
from storefront.utils import parse_uuid

from .models import Comment, CommentFilter, create_comment
from .schemas import (
    AuthorSummary,
    CommentListResponse,
    CommentResponse,
    MessageResponse,
    PaginationResponse,
    ParentSummary,
    ProductCommentReport,
    ProductCommentSummary,
    ProductSummary,
)


if TYPE_CHECKING:
    from storefront.auth.service import UserService
    from storefront.catalog.service import CatalogService
    from storefront.notifications.dispatcher import NotificationDispatcher

    from .store import CommentStore


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CommentError(Exception):
    """Base comment error."""

    def __init__(self, message: str, code: str = "comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidArgumentError(CommentError):
    """Missing or malformed input."""

    def __init__(self, message: str = "Invalid argument"):
        super().__init__(message, "invalid_argument")


class CommentNotFoundError(CommentError):
    """Comment not found."""

    def __init__(self, message: str = "Comment not found"):
        super().__init__(message, "comment_not_found")


class PermissionDeniedError(CommentError):
    """Permission denied for operation."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied")


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Service for comment management."""

    def __init__(
        self,
        store: "CommentStore",
        users: "UserService",
        catalog: "CatalogService",
        notifier: "NotificationDispatcher | None" = None,
        settings: Settings | None = None,
    ):
        """Initialize with persistence and lookup collaborators.

        Args:
            store: Comment persistence
            users: Profile lookup for authors
            catalog: Product and category lookup
            notifier: Reply notification dispatcher (optional)
            settings: Page size defaults; falls back to global settings
        """
        settings = settings or get_settings()
        self.store = store
        self.users = users
        self.catalog = catalog
        self.notifier = notifier
        self.default_page_size = settings.comments_default_page_size
        self.max_page_size = settings.comments_max_page_size

    # ==========================================================================
    # Input helpers
    # ==========================================================================

    @staticmethod
    def _require_id(value: str | UUID | None, name: str) -> UUID:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvalidArgumentError(f"{name} is required")
        parsed = parse_uuid(value.strip() if isinstance(value, str) else value)
        if parsed is None:
            raise InvalidArgumentError(f"{name} is invalid")
        return parsed

    def _page_window(self, page: int, limit: int | None) -> tuple[int, int, int]:
        """Validate page/limit and return (page, limit, skip)."""
        if page < 1:
            raise InvalidArgumentError("page must be at least 1")
        if limit is None:
            limit = self.default_page_size
        if limit < 1:
            raise InvalidArgumentError("limit must be at least 1")
        limit = min(limit, self.max_page_size)
        return page, limit, (page - 1) * limit

    async def _list(
        self,
        criteria: CommentFilter,
        page: int,
        limit: int | None,
        *,
        ascending: bool = False,
        with_author: bool = True,
        with_product: bool = False,
        with_parent: bool = False,
    ) -> CommentListResponse:
        page, limit, skip = self._page_window(page, limit)
        comments, total = await self.store.find_many(
            criteria, ascending=ascending, skip=skip, limit=limit
        )
        items = await self._enrich(
            comments,
            with_author=with_author,
            with_product=with_product,
            with_parent=with_parent,
        )
        return CommentListResponse(
            comments=items,
            pagination=PaginationResponse.build(total=total, page=page, limit=limit),
        )

    async def _enrich(
        self,
        comments: Iterable[Comment],
        *,
        with_author: bool = True,
        with_product: bool = False,
        with_parent: bool = False,
    ) -> list[CommentResponse]:
        """Attach summaries using one batch lookup per collaborator."""
        comments = list(comments)

        parents: dict[UUID, Comment] = {}
        if with_parent:
            parents = await self.store.find_by_ids(
                c.parent_id for c in comments if c.parent_id is not None
            )

        user_ids: set[UUID] = set()
        if with_author:
            user_ids.update(c.user_id for c in comments)
        user_ids.update(p.user_id for p in parents.values())
        users = await self.users.get_users_by_ids(user_ids) if user_ids else {}

        products = {}
        if with_product:
            products = await self.catalog.get_products({c.product_id for c in comments})

        def author_of(user_id: UUID) -> AuthorSummary | None:
            user = users.get(user_id)
            return AuthorSummary.from_user(user) if user else None

        results = []
        for comment in comments:
            product = products.get(comment.product_id)
            parent = parents.get(comment.parent_id) if comment.parent_id else None
            results.append(
                CommentResponse.from_comment(
                    comment,
                    author=author_of(comment.user_id) if with_author else None,
                    product=ProductSummary.from_product(product) if product else None,
                    parent=(
                        ParentSummary(
                            id=parent.comment_id,
                            content=parent.content,
                            user_id=parent.user_id,
                            author=author_of(parent.user_id),
                        )
                        if parent
                        else None
                    ),
                )
            )
        return results

    async def _get_live(self, comment_id: UUID) -> Comment:
        comment = await self.store.find_one(comment_id)
        if comment is None:
            raise CommentNotFoundError("Comment not found")
        return comment

    # ==========================================================================
    # Public listings
    # ==========================================================================

    async def list_by_product(
        self,
        product_id: str | UUID | None,
        parent_id: str | UUID | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> CommentListResponse:
        """Top-level comments of a product, or the replies of one comment.

        Newest first, with author summaries.
        """
        pid = self._require_id(product_id, "product_id")
        parent = self._require_id(parent_id, "parent_id") if parent_id else None
        criteria = CommentFilter(
            product_id=pid,
            parent_id=parent,
            top_level_only=parent is None,
        )
        return await self._list(criteria, page, limit)

    async def list_by_user(
        self,
        user_id: str | UUID | None,
        page: int = 1,
        limit: int | None = None,
    ) -> CommentListResponse:
        """Everything a user wrote, with product and parent context."""
        uid = self._require_id(user_id, "user_id")
        return await self._list(
            CommentFilter(user_id=uid),
            page,
            limit,
            with_author=False,
            with_product=True,
            with_parent=True,
        )

    async def list_replies(
        self,
        comment_id: str | UUID | None,
        page: int = 1,
        limit: int | None = None,
    ) -> CommentListResponse:
        """Direct replies of a comment, oldest first."""
        cid = self._require_id(comment_id, "comment_id")
        return await self._list(
            CommentFilter(parent_id=cid), page, limit, ascending=True
        )

    async def get_by_id(self, comment_id: str | UUID | None) -> CommentResponse:
        cid = self._require_id(comment_id, "comment_id")
        comment = await self._get_live(cid)
        enriched = await self._enrich(
            [comment], with_author=True, with_product=True, with_parent=True
        )
        return enriched[0]

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def create(
        self,
        author_id: str | UUID | None,
        product_id: str | UUID | None,
        content: str | None,
        parent_id: str | UUID | None = None,
    ) -> CommentResponse:
        """Create a top-level comment or a reply.

        Replies may only target live top-level comments. The parent's reply
        set gains the new id and the parent author is notified unless they
        replied to themselves.
        """
        aid = self._require_id(author_id, "user_id")
        pid = self._require_id(product_id, "product_id")
        text = (content or "").strip()
        if not text:
            raise InvalidArgumentError("content is required")

        parent = None
        if parent_id:
            parent = await self.store.find_one(self._require_id(parent_id, "parent_id"))
            if parent is None:
                raise CommentNotFoundError("Parent comment not found")
            if parent.is_reply:
                raise InvalidArgumentError(
                    "Cannot reply to a reply. Maximum 2 levels allowed"
                )

        comment = create_comment(
            product_id=pid,
            user_id=aid,
            content=text,
            parent_id=parent.comment_id if parent else None,
        )
        await self.store.insert(comment)

        if parent is not None:
            updated_parent = await self.store.add_reply(
                parent.comment_id, comment.comment_id
            )
            if updated_parent is None:
                logger.warning(
                    "reply_parent_missing",
                    parent_id=str(parent.comment_id),
                    comment_id=str(comment.comment_id),
                )

        logger.info(
            "comment_created",
            comment_id=str(comment.comment_id),
            product_id=str(pid),
            is_reply=parent is not None,
        )

        enriched = (await self._enrich([comment], with_product=True))[0]

        if parent is not None and parent.user_id != aid:
            self._notify_reply(parent, comment, enriched)

        return enriched

    def _notify_reply(
        self, parent: Comment, reply: Comment, enriched: CommentResponse
    ) -> None:
        if self.notifier is None:
            return

        author = enriched.author
        ctx = CommentReplyContext(
            recipient_id=parent.user_id,
            actor_id=reply.user_id,
            actor_name=(author.name if author and author.name else "Someone"),
            actor_avatar=author.avatar if author else None,
            reply_id=reply.comment_id,
            reply_content=reply.content,
            parent_comment_id=parent.comment_id,
            product_id=reply.product_id,
            product_name=enriched.product.name if enriched.product else "",
        )
        try:
            self.notifier.dispatch_comment_reply(ctx)
        except Exception as e:
            # The reply is already stored; notification is best effort
            logger.warning(
                "notification_processing_failed",
                error=str(e),
                comment_id=str(reply.comment_id),
            )

    async def update(
        self,
        comment_id: str | UUID | None,
        requester_id: str | UUID | None,
        new_content: str | None = None,
    ) -> CommentResponse:
        """Edit a comment's text; only its author may do so."""
        cid = self._require_id(comment_id, "comment_id")
        uid = self._require_id(requester_id, "user_id")
        comment = await self._get_live(cid)
        if comment.user_id != uid:
            raise PermissionDeniedError("You are not allowed to update this comment")

        text = (new_content or "").strip()
        if text:
            updated = await self.store.update_fields(cid, content=text)
            if updated is None:
                raise CommentNotFoundError("Comment not found")
            comment = updated
            logger.info("comment_updated", comment_id=str(cid))

        return (await self._enrich([comment]))[0]

    async def delete(
        self,
        comment_id: str | UUID | None,
        requester_id: str | UUID | None,
        as_admin: bool = False,
    ) -> MessageResponse:
        """Soft-delete a comment (author or admin).

        A deleted reply is taken out of its parent's reply set.
        """
        cid = self._require_id(comment_id, "comment_id")
        uid = self._require_id(requester_id, "user_id")
        comment = await self._get_live(cid)
        if comment.user_id != uid and not as_admin:
            raise PermissionDeniedError("You are not allowed to delete this comment")

        await self.store.update_fields(cid, is_deleted=True)
        if comment.parent_id is not None:
            await self.store.remove_reply(comment.parent_id, cid)

        logger.info(
            "comment_deleted",
            comment_id=str(cid),
            deleted_by=str(uid),
            as_admin=as_admin,
        )
        return MessageResponse(message="Comment deleted successfully")

    # ==========================================================================
    # Admin
    # ==========================================================================

    async def admin_reply(
        self,
        comment_id: str | UUID | None,
        admin_id: str | UUID | None,
        content: str | None,
    ) -> CommentResponse:
        """Reply to a comment as an admin, on the comment's own product."""
        cid = self._require_id(comment_id, "comment_id")
        target = await self._get_live(cid)
        return await self.create(
            author_id=admin_id,
            product_id=target.product_id,
            content=content,
            parent_id=target.comment_id,
        )

    async def list_all(
        self,
        page: int = 1,
        limit: int | None = None,
        product_id: str | UUID | None = None,
        search: str | None = None,
    ) -> CommentListResponse:
        """All live top-level comments, newest first.

        A malformed product_id is ignored rather than rejected. ``search``
        matches content case-insensitively.
        """
        criteria = CommentFilter(
            product_id=parse_uuid(product_id) if product_id else None,
            top_level_only=True,
            search=(search or "").strip() or None,
        )
        return await self._list(criteria, page, limit, with_product=True)

    async def _product_report(
        self, category_id: UUID | None = None
    ) -> ProductCommentReport:
        stats = await self.store.aggregate_by_product()
        products = await self.catalog.get_products({s.product_id for s in stats})
        rows = []
        for s in stats:
            product = products.get(s.product_id)
            if product is None:
                continue
            if category_id is not None and product.category_id != category_id:
                continue
            rows.append(
                ProductCommentSummary(
                    product_id=s.product_id,
                    comment_count=s.comment_count,
                    latest_comment=s.latest_comment,
                    product=ProductSummary.from_product(product),
                )
            )
        return ProductCommentReport(products=rows, total=len(rows))

    async def group_by_product(self) -> ProductCommentReport:
        """Products with top-level comments, most recently active first."""
        return await self._product_report()

    async def products_with_comments_by_category(
        self, category_slug: str | None
    ) -> ProductCommentReport:
        """Same report restricted to one category; unknown slugs yield nothing."""
        slug = (category_slug or "").strip()
        if not slug:
            raise InvalidArgumentError("category_slug is required")

        category = await self.catalog.get_category_by_slug(slug)
        if category is None:
            return ProductCommentReport(products=[], total=0)
        return await self._product_report(category.category_id)
