"""Catalog lookups (products and categories)."""

from .models import CATALOG_TABLES_CQL, Category, Product
from .service import CatalogService


__all__ = ["CATALOG_TABLES_CQL", "CatalogService", "Category", "Product"]
