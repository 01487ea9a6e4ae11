"""Exceptions raised by the catalog pipeline."""

from __future__ import annotations

import pathlib


class CatalogError(Exception):
    """Base class for pipeline errors."""


class FatalIngestionError(CatalogError):
    """The source sheet could not be fetched or parsed."""


class ResolutionFailure(CatalogError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Could not resolve a product id for {url}")
        self.url = url


class ExtractionFailure(CatalogError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Extraction failed for {url}: {reason}")
        self.url = url
        self.reason = reason


class PersistenceFailure(CatalogError):
    def __init__(self, path: pathlib.Path, reason: str) -> None:
        super().__init__(f"Catalog persistence failed for {path}: {reason}")
        self.path = path
        self.reason = reason
