import itertools

import pytest

from affiliate_catalog.ingest.models import CategoryRule


@pytest.fixture()
def categories():
    return [
        CategoryRule(slug="room-decor", title="Room Decor", keywords=frozenset({"lamp", "rug", "pillow"})),
        CategoryRule(slug="kitchen", title="Kitchen", keywords=frozenset({"pan", "knife", "spatula"})),
        CategoryRule(slug="office", title="Office", keywords=frozenset({"desk", "pen"})),
    ]


@pytest.fixture()
def clock():
    counter = itertools.count(10_000, 10)
    return lambda: next(counter)


@pytest.fixture()
def catalog_path(tmp_path):
    return tmp_path / "public" / "data" / "products.json"
