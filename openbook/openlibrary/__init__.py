"""Open Library integration utilities."""

from openbook.openlibrary.client import CatalogRequestError, OpenLibraryClient

__all__ = ["OpenLibraryClient", "CatalogRequestError"]
