import random

from affiliate_catalog.logic.recheck import select_for_recheck
from tests.fakes import make_record


def test_selects_exactly_the_oldest_records():
    records = [make_record(f"{100000000000 + idx}", updated_at=idx * 3) for idx in range(500)]
    random.Random(7).shuffle(records)

    picked = select_for_recheck(records, 40)

    assert len(picked) == 40
    assert sorted(r.updated_at for r in picked) == [idx * 3 for idx in range(40)]


def test_excluded_ids_are_skipped():
    records = [make_record(str(1000000000 + idx), updated_at=idx) for idx in range(5)]
    picked = select_for_recheck(records, 2, exclude={"1000000000"})
    assert [r.id for r in picked] == ["1000000001", "1000000002"]


def test_non_positive_limit_selects_nothing():
    records = [make_record("1000000000")]
    assert select_for_recheck(records, 0) == []
    assert select_for_recheck(records, -3) == []
