"""JSON-backed product catalog."""

from __future__ import annotations

import json
import logging
import os
import pathlib
import stat
import tempfile

from slugify import slugify

from affiliate_catalog.errors import PersistenceFailure
from affiliate_catalog.ingest.models import ProductMetadata, ProductRecord

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLE = "Temu Item {product_id}"


def merge_record(
    existing: ProductRecord | None,
    fresh: ProductMetadata,
    *,
    product_id: str,
    category_slug: str,
    outbound_url: str,
    now: int,
) -> ProductRecord:
    """Combine a fresh extraction with what the catalog already knows.

    Non-empty fresh values win, empty ones never erase a known value. The slug
    and ``added_at`` are fixed at creation.
    """
    title = fresh.title or (existing.title if existing else "") or PLACEHOLDER_TITLE.format(product_id=product_id)
    if existing is None:
        return ProductRecord(
            id=product_id,
            title=title,
            slug=slugify(title),
            category_slug=category_slug,
            price=fresh.price,
            images=list(fresh.images),
            outbound_url=outbound_url,
            available=fresh.available,
            added_at=now,
            updated_at=now,
            check_count=1,
        )
    return ProductRecord(
        id=product_id,
        title=title,
        slug=existing.slug or slugify(title),
        category_slug=category_slug or existing.category_slug,
        price=fresh.price or existing.price,
        images=list(fresh.images or existing.images),
        outbound_url=outbound_url or existing.outbound_url,
        available=fresh.available,
        added_at=existing.added_at or now,
        updated_at=max(existing.updated_at, now),
        check_count=existing.check_count + 1,
    )


class CatalogStore:
    def __init__(self, path: pathlib.Path, records: dict[str, ProductRecord] | None = None) -> None:
        self.path = path
        self._records: dict[str, ProductRecord] = records or {}

    @classmethod
    def load(cls, path: pathlib.Path) -> "CatalogStore":
        if not path.exists():
            logger.info("No catalog at %s; starting empty", path)
            return cls(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            records = [ProductRecord.from_dict(item) for item in data]
        except (OSError, ValueError, TypeError, KeyError) as exc:
            raise PersistenceFailure(path, f"unreadable snapshot: {exc}") from exc
        store = cls(path)
        for record in records:
            store.apply(record)
        logger.info("Loaded %s catalog records from %s", len(store), path)
        return store

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._records

    def get(self, product_id: str) -> ProductRecord | None:
        return self._records.get(product_id)

    def records(self) -> list[ProductRecord]:
        return list(self._records.values())

    def apply(self, record: ProductRecord) -> None:
        self._records[record.id] = record

    def snapshot(self) -> list[ProductRecord]:
        ordered = sorted(self._records.values(), key=lambda record: record.id)
        return sorted(ordered, key=lambda record: record.updated_at, reverse=True)

    def save(self) -> None:
        payload = json.dumps([record.to_dict() for record in self.snapshot()], indent=2, ensure_ascii=False)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent, prefix=f".{self.path.name}.", delete=False
            ) as handle:
                tmp_name = handle.name
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, self._file_mode())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceFailure(self.path, str(exc)) from exc
        logger.info("Wrote %s catalog records to %s", len(self), self.path)

    def _file_mode(self) -> int:
        # temp files are created 0600
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask
