"""Caller identity and the read-only user directory.

Note: dependencies are imported directly from storefront.auth.dependencies
to keep this package importable from the database bootstrap.
"""
