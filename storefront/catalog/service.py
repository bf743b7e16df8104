# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Read-only catalog lookups."""

from typing import TYPE_CHECKING
from uuid import UUID

from .models import Category, Product


if TYPE_CHECKING:
    from cassandra.cluster import Session


class CatalogService:
    """Product and category lookups used for comment enrichment."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_products = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.products WHERE product_id IN ?"
        )
        self._get_category_by_slug = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.categories WHERE slug = ?"
        )

    async def get_products(self, product_ids: set[UUID]) -> dict[UUID, Product]:
        """Batch lookup; unknown ids are absent from the result."""
        if not product_ids:
            return {}
        rows = await self.session.aexecute(self._get_products, [list(product_ids)])
        return {row.product_id: Product.from_row(row) for row in rows}

    async def get_category_by_slug(self, slug: str) -> Category | None:
        rows = await self.session.aexecute(self._get_category_by_slug, [slug])
        row = rows.one()
        return Category.from_row(row) if row else None
