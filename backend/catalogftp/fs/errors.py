from __future__ import annotations


class CatalogError(RuntimeError):
    pass


class NotFoundError(CatalogError):
    """The path has the shape of a file but the catalog has no such file."""


class RetrievalError(CatalogError):
    """Content was requested for a path that is not a file."""
