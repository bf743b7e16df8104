"""Comment system module.

Provides product comments with:
- Two-level threading (top-level comments and replies)
- Soft delete with reply bookkeeping on the parent
- Admin listings and per-product reports
- Reply notifications through the notifications module

Note: Router is not exported here to avoid circular imports.
Import directly from storefront.comments.router when needed.
"""

from .models import COMMENTS_TABLES_CQL, Comment, CommentFilter, ProductCommentStats
from .service import (
    CommentError,
    CommentNotFoundError,
    CommentService,
    InvalidArgumentError,
    PermissionDeniedError,
)
from .store import CommentStore


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentError",
    "CommentFilter",
    "CommentNotFoundError",
    "CommentService",
    "CommentStore",
    "InvalidArgumentError",
    "PermissionDeniedError",
    "ProductCommentStats",
]
