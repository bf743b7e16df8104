"""Storefront API: product comments, notifications and catalog lookups."""

__version__ = "0.1.0"
