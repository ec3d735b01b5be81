import pytest

from media_sync.sync.mls_client import MLSGridClient
from media_sync.sync.planner import batch_count, odata_literal, plan_batches
from media_sync.config import ProviderConfig


class _Dialect:
    order_by = "Order asc"

    def build_filter(self, keys):
        return " or ".join(keys)


@pytest.mark.parametrize(
    ("total", "size", "expected"),
    [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 10, 3), (7, 1, 7)],
)
def test_batch_count_rounds_up(total, size, expected) -> None:
    assert batch_count(total, size) == expected


def test_plan_batches_splits_in_key_order() -> None:
    keys = [f"K{index}" for index in range(7)]

    queries = list(plan_batches(keys, _Dialect(), batch_size=3, result_cap=50))

    assert [query.index for query in queries] == [1, 2, 3]
    assert [query.keys for query in queries] == [
        ("K0", "K1", "K2"),
        ("K3", "K4", "K5"),
        ("K6",),
    ]
    assert queries[2].filter == "K6"
    assert all(query.top == 50 and query.order_by == "Order asc" for query in queries)


def test_plan_batches_is_lazy() -> None:
    calls = []

    class _Counting(_Dialect):
        def build_filter(self, keys):
            calls.append(keys)
            return super().build_filter(keys)

    planner = plan_batches(["a", "b", "c"], _Counting(), batch_size=1)
    assert calls == []
    next(planner)
    assert calls == [("a",)]


def test_plan_batches_yields_nothing_for_no_keys() -> None:
    assert list(plan_batches([], _Dialect())) == []


@pytest.mark.parametrize("overrides", [{"batch_size": 0}, {"result_cap": 0}])
def test_plan_batches_rejects_non_positive_bounds(overrides) -> None:
    with pytest.raises(ValueError):
        list(plan_batches(["a"], _Dialect(), **overrides))


def test_odata_literal_doubles_quotes() -> None:
    assert odata_literal("O'Brien") == "'O''Brien'"
    assert odata_literal("plain") == "'plain'"


def test_mls_filter_quotes_each_key_and_adds_category() -> None:
    client = MLSGridClient(ProviderConfig("https://api.mlsgrid.test/v2", "token"), category="Photo")

    built = client.build_filter(["A1", "B'2"])

    assert built == "(ResourceRecordID eq 'A1' or ResourceRecordID eq 'B''2') and MediaCategory eq 'Photo'"
