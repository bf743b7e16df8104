"""Shared fixtures for comment tests.

The service is exercised against an in-memory store with the same contract
as the Cassandra-backed ``CommentStore``; users and catalog are mocked.
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest

from storefront.auth.models import User
from storefront.auth.service import UserService
from storefront.catalog.models import Category, Product
from storefront.catalog.service import CatalogService
from storefront.comments.models import (
    Comment,
    CommentFilter,
    ProductCommentStats,
    create_comment,
)
from storefront.comments.service import CommentService
from storefront.config import Settings
from storefront.notifications.dispatcher import NotificationDispatcher


def _copy(comment: Comment) -> Comment:
    return replace(comment, replies=set(comment.replies))


class InMemoryCommentStore:
    """In-memory implementation of the comment store for testing."""

    def __init__(self) -> None:
        self._comments: dict[UUID, Comment] = {}

    async def insert(self, comment: Comment) -> UUID:
        self._comments[comment.comment_id] = _copy(comment)
        return comment.comment_id

    async def update_fields(
        self,
        comment_id: UUID,
        content: str | None = None,
        is_deleted: bool | None = None,
    ) -> Comment | None:
        stored = self._comments.get(comment_id)
        if stored is None:
            return None
        if content is not None:
            stored.content = content
        if is_deleted is not None:
            stored.is_deleted = is_deleted
        stored.updated_at = datetime.now(UTC)
        return _copy(stored)

    async def add_reply(self, parent_id: UUID, child_id: UUID) -> Comment | None:
        stored = self._comments.get(parent_id)
        if stored is None:
            return None
        stored.replies.add(child_id)
        return _copy(stored)

    async def remove_reply(self, parent_id: UUID, child_id: UUID) -> Comment | None:
        stored = self._comments.get(parent_id)
        if stored is None:
            return None
        stored.replies.discard(child_id)
        return _copy(stored)

    async def find_one(
        self, comment_id: UUID, include_deleted: bool = False
    ) -> Comment | None:
        stored = self._comments.get(comment_id)
        if stored is None or (stored.is_deleted and not include_deleted):
            return None
        return _copy(stored)

    async def find_by_ids(self, comment_ids) -> dict[UUID, Comment]:
        return {
            cid: _copy(self._comments[cid])
            for cid in set(comment_ids)
            if cid in self._comments
        }

    async def find_many(
        self,
        criteria: CommentFilter,
        ascending: bool = False,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Comment], int]:
        matched = [c for c in self._comments.values() if criteria.matches(c)]
        matched.sort(key=lambda c: (c.created_at, c.comment_id), reverse=not ascending)
        return [_copy(c) for c in matched[skip : skip + limit]], len(matched)

    async def aggregate_by_product(self) -> list[ProductCommentStats]:
        stats: dict[UUID, ProductCommentStats] = {}
        for c in self._comments.values():
            if c.is_deleted or c.parent_id is not None:
                continue
            entry = stats.setdefault(
                c.product_id, ProductCommentStats(c.product_id, 0, c.created_at)
            )
            entry.comment_count += 1
            entry.latest_comment = max(entry.latest_comment, c.created_at)
        return sorted(stats.values(), key=lambda s: s.latest_comment, reverse=True)

    def get(self, comment_id: UUID) -> Comment:
        """Raw stored record, deleted or not."""
        return self._comments[comment_id]

    def seed(
        self,
        product_id: UUID,
        user_id: UUID,
        content: str,
        parent_id: UUID | None = None,
        minutes_ago: int = 0,
    ) -> Comment:
        """Insert a record directly with a controlled timestamp."""
        comment = create_comment(product_id, user_id, content, parent_id)
        comment.created_at = comment.updated_at = datetime(
            2025, 1, 1, 12, 0, tzinfo=UTC
        ) - timedelta(minutes=minutes_ago)
        self._comments[comment.comment_id] = comment
        if parent_id is not None and parent_id in self._comments:
            parent = self._comments[parent_id]
            parent.replies.add(comment.comment_id)
        return _copy(comment)


# ==============================================================================
# Identities and catalog
# ==============================================================================


@pytest.fixture
def u1() -> User:
    return User(id=uuid4(), email="ana@example.com", name="Ana", avatar_url="a.png")


@pytest.fixture
def u2() -> User:
    return User(id=uuid4(), email="ben@example.com", name="Ben")


@pytest.fixture
def u3() -> User:
    return User(id=uuid4(), email="cleo@example.com", name="Cleo")


@pytest.fixture
def admin() -> User:
    return User(id=uuid4(), email="admin@example.com", name="Admin", role="admin")


@pytest.fixture
def category() -> Category:
    return Category(
        category_id=uuid4(),
        name="Shoes",
        slug="shoes",
        is_active=True,
        is_deleted=False,
    )


@pytest.fixture
def product(category: Category) -> Product:
    return Product(
        product_id=uuid4(),
        name="Trail Runner",
        slug="trail-runner",
        image_primary="runner.jpg",
        category_id=category.category_id,
        is_deleted=False,
    )


@pytest.fixture
def other_product() -> Product:
    return Product(
        product_id=uuid4(),
        name="Rain Jacket",
        slug="rain-jacket",
        image_primary=None,
        category_id=uuid4(),
        is_deleted=False,
    )


@pytest.fixture
def users(u1: User, u2: User, u3: User, admin: User) -> Mock:
    """User directory mock backed by the test identities."""
    profiles = {u.id: u for u in (u1, u2, u3, admin)}
    directory = Mock(spec=UserService)
    directory.get_users_by_ids = AsyncMock(
        side_effect=lambda ids: {i: profiles[i] for i in ids if i in profiles}
    )
    return directory


@pytest.fixture
def catalog(product: Product, other_product: Product, category: Category) -> Mock:
    """Catalog mock backed by the test products."""
    products = {p.product_id: p for p in (product, other_product)}
    lookup = Mock(spec=CatalogService)
    lookup.get_products = AsyncMock(
        side_effect=lambda ids: {i: products[i] for i in ids if i in products}
    )
    lookup.get_category_by_slug = AsyncMock(
        side_effect=lambda slug: category if slug == category.slug else None
    )
    return lookup


# ==============================================================================
# Service
# ==============================================================================


@pytest.fixture
def store() -> InMemoryCommentStore:
    return InMemoryCommentStore()


@pytest.fixture
def dispatcher() -> Mock:
    """Records reply dispatches without scheduling anything."""
    return Mock(spec=NotificationDispatcher)


@pytest.fixture
def settings() -> Settings:
    return Settings(comments_default_page_size=10, comments_max_page_size=100)


@pytest.fixture
def comment_service(
    store: InMemoryCommentStore,
    users: Mock,
    catalog: Mock,
    dispatcher: Mock,
    settings: Settings,
) -> CommentService:
    return CommentService(
        store=store,
        users=users,
        catalog=catalog,
        notifier=dispatcher,
        settings=settings,
    )
