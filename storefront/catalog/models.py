"""Catalog records read by the comment system.

Products and categories are managed by the catalog service. Comments only
need enough of them to render product summaries and to filter admin
reports by category, so the entities here carry a subset of the columns.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID


PRODUCT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.products (
    product_id UUID PRIMARY KEY,
    name TEXT,
    slug TEXT,
    image_primary TEXT,
    category_id UUID,
    is_deleted BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

CATEGORY_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.categories (
    category_id UUID PRIMARY KEY,
    name TEXT,
    slug TEXT,
    image TEXT,
    description TEXT,
    parent_id UUID,
    is_active BOOLEAN,
    is_deleted BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

CATEGORY_SLUG_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS categories_slug_idx ON {keyspace}.categories (slug)
"""

CATALOG_TABLES_CQL = [
    PRODUCT_TABLE_CQL,
    CATEGORY_TABLE_CQL,
    CATEGORY_SLUG_INDEX_CQL,
]


@dataclass
class Product:
    """Product fields shown next to comments."""

    product_id: UUID
    name: str
    slug: str
    image_primary: str | None
    category_id: UUID | None
    is_deleted: bool = False

    @classmethod
    def from_row(cls, row: Any) -> "Product":
        return cls(
            product_id=row.product_id,
            name=row.name or "",
            slug=row.slug or "",
            image_primary=row.image_primary,
            category_id=row.category_id,
            is_deleted=row.is_deleted or False,
        )


@dataclass
class Category:
    category_id: UUID
    name: str
    slug: str
    is_active: bool = True
    is_deleted: bool = False

    @classmethod
    def from_row(cls, row: Any) -> "Category":
        return cls(
            category_id=row.category_id,
            name=row.name or "",
            slug=row.slug or "",
            is_active=row.is_active if row.is_active is not None else True,
            is_deleted=row.is_deleted or False,
        )
