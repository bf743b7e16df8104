"""Database models for product comments.

Cassandra table definitions for:
- comments: full record keyed by comment_id (single-row reads and updates)
- comments_by_product / comments_by_user / comments_by_parent: listing
  tables clustered by created_at, carrying the columns listings filter on

Threading is two levels deep: a comment is top-level (parent_id is NULL)
or a reply to a top-level comment. The parent keeps the set of its reply
ids; reply_count is always the size of that set.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from storefront.utils import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    comment_id UUID PRIMARY KEY,
    product_id UUID,
    user_id UUID,
    content TEXT,
    parent_id UUID,
    replies SET<UUID>,
    is_deleted BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Newest first per product
COMMENTS_BY_PRODUCT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_product (
    product_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    user_id UUID,
    parent_id UUID,
    is_deleted BOOLEAN,
    PRIMARY KEY ((product_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at DESC, comment_id ASC)
"""

# Newest first per author
COMMENTS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_user (
    user_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    product_id UUID,
    parent_id UUID,
    is_deleted BOOLEAN,
    PRIMARY KEY ((user_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at DESC, comment_id ASC)
"""

# Oldest first per parent, so a thread reads top to bottom
COMMENTS_BY_PARENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_parent (
    parent_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    product_id UUID,
    user_id UUID,
    is_deleted BOOLEAN,
    PRIMARY KEY ((parent_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at ASC, comment_id ASC)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENTS_BY_PRODUCT_TABLE_CQL,
    COMMENTS_BY_USER_TABLE_CQL,
    COMMENTS_BY_PARENT_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Comment entity with full details."""

    comment_id: UUID
    product_id: UUID
    user_id: UUID
    content: str
    parent_id: UUID | None
    replies: set[UUID]
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

    @property
    def reply_count(self) -> int:
        return len(self.replies)

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        created_at = ensure_utc_aware(row.created_at)
        return cls(
            comment_id=row.comment_id,
            product_id=row.product_id,
            user_id=row.user_id,
            content=row.content or "",
            parent_id=row.parent_id,
            # Cassandra returns None for an empty set
            replies=set(row.replies or ()),
            is_deleted=row.is_deleted or False,
            created_at=created_at,
            updated_at=ensure_utc_aware(row.updated_at) or created_at,
        )


@dataclass
class ProductCommentStats:
    """Top-level comment activity for one product."""

    product_id: UUID
    comment_count: int
    latest_comment: datetime


@dataclass
class CommentFilter:
    """Selection criteria for comment listings.

    ``parent_id`` selects direct replies of one comment. ``top_level_only``
    keeps comments without a parent. ``search`` is a case-insensitive
    substring match on content.
    """

    product_id: UUID | None = None
    user_id: UUID | None = None
    parent_id: UUID | None = None
    top_level_only: bool = False
    search: str | None = None
    include_deleted: bool = False

    def matches(self, row: Any) -> bool:
        """Check a row (or Comment) against every criterion."""
        if not self.include_deleted and row.is_deleted:
            return False
        if self.product_id is not None and row.product_id != self.product_id:
            return False
        if self.user_id is not None and row.user_id != self.user_id:
            return False
        if self.parent_id is not None and row.parent_id != self.parent_id:
            return False
        if self.top_level_only and row.parent_id is not None:
            return False
        if self.search:
            content = getattr(row, "content", None) or ""
            if self.search.casefold() not in content.casefold():
                return False
        return True


# ==============================================================================
# Factory Functions
# ==============================================================================


def _truncate_to_millis(dt: datetime) -> datetime:
    # Cassandra TIMESTAMP keeps milliseconds; listing-table keys must compare equal
    return dt.replace(microsecond=dt.microsecond - dt.microsecond % 1000)


def create_comment(
    product_id: UUID,
    user_id: UUID,
    content: str,
    parent_id: UUID | None = None,
) -> Comment:
    """Create a new comment with default values."""
    now = _truncate_to_millis(utc_now())
    return Comment(
        comment_id=uuid4(),
        product_id=product_id,
        user_id=user_id,
        content=content,
        parent_id=parent_id,
        replies=set(),
        is_deleted=False,
        created_at=now,
        updated_at=now,
    )
