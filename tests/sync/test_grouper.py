from media_sync.sync.grouper import classify, group_media
from media_sync.sync.models import MappingOutcome, MediaItem


def _item(key: str, name: str, order=None) -> MediaItem:
    return MediaItem(item_id=name, foreign_key=key, url=f"https://media.test/{name}.jpg", order=order)


def test_groups_by_target_and_sorts_by_order() -> None:
    key_map = {"L-1": "prop-1", "L-2": "prop-2"}
    items = [
        _item("L-1", "c", 3),
        _item("L-2", "x", 1),
        _item("L-1", "a", 1),
        _item("L-1", "b", 2),
    ]

    result = group_media(items, key_map)

    assert [item.item_id for item in result.groups["prop-1"]] == ["a", "b", "c"]
    assert [item.item_id for item in result.groups["prop-2"]] == ["x"]
    assert result.unmapped_total == 0


def test_missing_orders_follow_ordered_items_in_fetch_order() -> None:
    items = [_item("L-1", "late-1"), _item("L-1", "second", 2), _item("L-1", "late-2"), _item("L-1", "first", 1)]

    result = group_media(items, {"L-1": "prop-1"})

    assert [item.item_id for item in result.groups["prop-1"]] == ["first", "second", "late-1", "late-2"]


def test_ties_keep_fetch_order() -> None:
    items = [_item("L-1", "one", 1), _item("L-1", "two", 1), _item("L-1", "zero", 0)]

    result = group_media(items, {"L-1": "prop-1"})

    assert [item.item_id for item in result.groups["prop-1"]] == ["zero", "one", "two"]


def test_unmapped_items_are_counted_per_key() -> None:
    items = [_item("L-1", "a"), _item("GONE", "b"), _item("GONE", "c"), _item("OTHER", "d")]

    result = group_media(items, {"L-1": "prop-1"})

    assert list(result.groups) == ["prop-1"]
    assert result.unmapped == {"GONE": 2, "OTHER": 1}
    assert result.unmapped_total == 3


def test_classify_matches_exact_key() -> None:
    assert classify(_item("L-1", "a"), {"L-1": "p"}) is MappingOutcome.MAPPED
    assert classify(_item("l-1", "a"), {"L-1": "p"}) is MappingOutcome.UNMAPPED
