# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra persistence for comments.

Writes go to the ``comments`` table and to the listing tables
(``comments_by_product``, ``comments_by_user``, ``comments_by_parent``).
Listings read keys from the narrowest listing table the filter allows,
filter and order them, then load full records for the requested page only.

Paging happens in Python, so a listing reads its whole source: one
partition for product, user and reply listings, the whole ``comments``
table for content search, unfiltered admin listings and
``aggregate_by_product``. Admin scans are unbounded and grow with the table.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any
from uuid import UUID

from storefront.core.logging import get_logger
from storefront.utils import ensure_utc_aware, utc_now

from .models import Comment, CommentFilter, ProductCommentStats


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class CommentStore:
    """Comment records keyed by id plus ordered listing tables."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        ks = self.keyspace

        # Writes
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {ks}.comments
            (comment_id, product_id, user_id, content, parent_id, replies,
             is_deleted, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_by_product = self.session.prepare(f"""
            INSERT INTO {ks}.comments_by_product
            (product_id, created_at, comment_id, user_id, parent_id, is_deleted)
            VALUES (?, ?, ?, ?, ?, ?)
        """)
        self._insert_by_user = self.session.prepare(f"""
            INSERT INTO {ks}.comments_by_user
            (user_id, created_at, comment_id, product_id, parent_id, is_deleted)
            VALUES (?, ?, ?, ?, ?, ?)
        """)
        self._insert_by_parent = self.session.prepare(f"""
            INSERT INTO {ks}.comments_by_parent
            (parent_id, created_at, comment_id, product_id, user_id, is_deleted)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

        # Updates
        # One column per statement; concurrent edits never overwrite each other
        self._update_content = self.session.prepare(f"""
            UPDATE {ks}.comments SET content = ?, updated_at = ?
            WHERE comment_id = ?
        """)
        self._update_deleted = self.session.prepare(f"""
            UPDATE {ks}.comments SET is_deleted = ?, updated_at = ?
            WHERE comment_id = ?
        """)
        self._mark_deleted_by_product = self.session.prepare(f"""
            UPDATE {ks}.comments_by_product SET is_deleted = ?
            WHERE product_id = ? AND created_at = ? AND comment_id = ?
        """)
        self._mark_deleted_by_user = self.session.prepare(f"""
            UPDATE {ks}.comments_by_user SET is_deleted = ?
            WHERE user_id = ? AND created_at = ? AND comment_id = ?
        """)
        self._mark_deleted_by_parent = self.session.prepare(f"""
            UPDATE {ks}.comments_by_parent SET is_deleted = ?
            WHERE parent_id = ? AND created_at = ? AND comment_id = ?
        """)

        # Reply set maintenance (single-row collection updates are atomic)
        self._add_reply = self.session.prepare(f"""
            UPDATE {ks}.comments SET replies = replies + ?, updated_at = ?
            WHERE comment_id = ?
        """)
        self._remove_reply = self.session.prepare(f"""
            UPDATE {ks}.comments SET replies = replies - ?, updated_at = ?
            WHERE comment_id = ?
        """)

        # Reads
        self._get_comment = self.session.prepare(f"""
            SELECT * FROM {ks}.comments WHERE comment_id = ?
        """)
        self._get_comments = self.session.prepare(f"""
            SELECT * FROM {ks}.comments WHERE comment_id IN ?
        """)
        self._scan_comments = self.session.prepare(f"""
            SELECT * FROM {ks}.comments
        """)
        self._keys_by_product = self.session.prepare(f"""
            SELECT * FROM {ks}.comments_by_product WHERE product_id = ?
        """)
        self._keys_by_user = self.session.prepare(f"""
            SELECT * FROM {ks}.comments_by_user WHERE user_id = ?
        """)
        self._keys_by_parent = self.session.prepare(f"""
            SELECT * FROM {ks}.comments_by_parent WHERE parent_id = ?
        """)

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def insert(self, comment: Comment) -> UUID:
        """Persist a new comment and its listing entries."""
        await self.session.aexecute(
            self._insert_comment,
            [
                comment.comment_id,
                comment.product_id,
                comment.user_id,
                comment.content,
                comment.parent_id,
                comment.replies,
                comment.is_deleted,
                comment.created_at,
                comment.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_by_product,
            [
                comment.product_id,
                comment.created_at,
                comment.comment_id,
                comment.user_id,
                comment.parent_id,
                comment.is_deleted,
            ],
        )
        await self.session.aexecute(
            self._insert_by_user,
            [
                comment.user_id,
                comment.created_at,
                comment.comment_id,
                comment.product_id,
                comment.parent_id,
                comment.is_deleted,
            ],
        )
        if comment.parent_id is not None:
            await self.session.aexecute(
                self._insert_by_parent,
                [
                    comment.parent_id,
                    comment.created_at,
                    comment.comment_id,
                    comment.product_id,
                    comment.user_id,
                    comment.is_deleted,
                ],
            )

        logger.debug(
            "comment_inserted",
            comment_id=str(comment.comment_id),
            parent_id=str(comment.parent_id) if comment.parent_id else None,
        )
        return comment.comment_id

    async def update_fields(
        self,
        comment_id: UUID,
        content: str | None = None,
        is_deleted: bool | None = None,
    ) -> Comment | None:
        """Update content and/or the deleted flag.

        Returns the updated comment, or None if no record exists. A change of
        ``is_deleted`` is mirrored to the listing tables.
        """
        comment = await self.find_one(comment_id, include_deleted=True)
        if comment is None:
            return None

        deleted_changed = is_deleted is not None and is_deleted != comment.is_deleted
        comment.updated_at = utc_now()

        if content is not None:
            comment.content = content
            await self.session.aexecute(
                self._update_content, [content, comment.updated_at, comment_id]
            )
        if is_deleted is not None:
            comment.is_deleted = is_deleted
            await self.session.aexecute(
                self._update_deleted, [is_deleted, comment.updated_at, comment_id]
            )

        if deleted_changed:
            await self._mirror_deleted(comment)

        return comment

    async def _mirror_deleted(self, comment: Comment) -> None:
        await self.session.aexecute(
            self._mark_deleted_by_product,
            [
                comment.is_deleted,
                comment.product_id,
                comment.created_at,
                comment.comment_id,
            ],
        )
        await self.session.aexecute(
            self._mark_deleted_by_user,
            [comment.is_deleted, comment.user_id, comment.created_at, comment.comment_id],
        )
        if comment.parent_id is not None:
            await self.session.aexecute(
                self._mark_deleted_by_parent,
                [
                    comment.is_deleted,
                    comment.parent_id,
                    comment.created_at,
                    comment.comment_id,
                ],
            )

    async def add_reply(self, parent_id: UUID, child_id: UUID) -> Comment | None:
        """Add a child to the parent's reply set.

        Returns the parent as read back after the write, or None if it is gone.
        """
        await self.session.aexecute(
            self._add_reply, [{child_id}, utc_now(), parent_id]
        )
        return await self.find_one(parent_id, include_deleted=True)

    async def remove_reply(self, parent_id: UUID, child_id: UUID) -> Comment | None:
        """Remove a child from the parent's reply set."""
        await self.session.aexecute(
            self._remove_reply, [{child_id}, utc_now(), parent_id]
        )
        return await self.find_one(parent_id, include_deleted=True)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def find_one(
        self, comment_id: UUID, include_deleted: bool = False
    ) -> Comment | None:
        """Load one comment; soft-deleted records are hidden by default."""
        rows = await self.session.aexecute(self._get_comment, [comment_id])
        row = rows.one()
        if row is None:
            return None
        comment = Comment.from_row(row)
        if comment.is_deleted and not include_deleted:
            return None
        return comment

    async def find_by_ids(self, comment_ids: Iterable[UUID]) -> dict[UUID, Comment]:
        """Batch load comments (deleted ones included) keyed by id."""
        ids = list(set(comment_ids))
        if not ids:
            return {}
        rows = await self.session.aexecute(self._get_comments, [ids])
        return {row.comment_id: Comment.from_row(row) for row in rows}

    async def find_many(
        self,
        criteria: CommentFilter,
        ascending: bool = False,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Comment], int]:
        """Return one page of matching comments and the total match count.

        Total and page come from the same scan, so they describe the same
        set of comments.
        """
        rows, full_records = await self._scan(criteria)
        matched = [row for row in rows if criteria.matches(row)]
        matched.sort(
            key=lambda row: (ensure_utc_aware(row.created_at), row.comment_id),
            reverse=not ascending,
        )
        total = len(matched)
        page_rows = matched[skip : skip + limit]

        if full_records:
            return [Comment.from_row(row) for row in page_rows], total

        loaded = await self.find_by_ids(row.comment_id for row in page_rows)
        page = [loaded[row.comment_id] for row in page_rows if row.comment_id in loaded]
        return page, total

    async def _scan(self, criteria: CommentFilter) -> tuple[list[Any], bool]:
        """Pick the narrowest source for the filter.

        Returns the rows and whether they are full ``comments`` records.
        Content search needs full records, so it reads the main table.
        """
        if criteria.search:
            rows = await self.session.aexecute(self._scan_comments)
            return list(rows), True
        if criteria.parent_id is not None:
            rows = await self.session.aexecute(
                self._keys_by_parent, [criteria.parent_id]
            )
            return list(rows), False
        if criteria.product_id is not None:
            rows = await self.session.aexecute(
                self._keys_by_product, [criteria.product_id]
            )
            return list(rows), False
        if criteria.user_id is not None:
            rows = await self.session.aexecute(self._keys_by_user, [criteria.user_id])
            return list(rows), False

        logger.debug("comment_full_scan")
        rows = await self.session.aexecute(self._scan_comments)
        return list(rows), True

    async def aggregate_by_product(self) -> list[ProductCommentStats]:
        """Group non-deleted top-level comments by product.

        Returns stats ordered by latest comment, newest first.
        """
        rows = await self.session.aexecute(self._scan_comments)

        stats: dict[UUID, ProductCommentStats] = {}
        for row in rows:
            if row.is_deleted or row.parent_id is not None:
                continue
            created_at = ensure_utc_aware(row.created_at)
            entry = stats.get(row.product_id)
            if entry is None:
                stats[row.product_id] = ProductCommentStats(
                    product_id=row.product_id,
                    comment_count=1,
                    latest_comment=created_at,
                )
                continue
            entry.comment_count += 1
            entry.latest_comment = max(entry.latest_comment, created_at)

        return sorted(stats.values(), key=lambda s: s.latest_comment, reverse=True)
