"""Tests for item selection."""

from collections import Counter
from datetime import timedelta

import pytest

from newsdigest.selection import cap_per_source, group_by_source, select_items
from tests.helpers import MONDAY, make_item

SUNDAY = MONDAY - timedelta(days=1)
TUESDAY = MONDAY + timedelta(days=1)
WEDNESDAY = MONDAY + timedelta(days=2)


@pytest.fixture
def week_items():
    """Source A publishes Mon/Tue/Wed, source B publishes Sun."""
    return [
        make_item("A", "https://a.example/mon", MONDAY),
        make_item("A", "https://a.example/tue", TUESDAY),
        make_item("A", "https://a.example/wed", WEDNESDAY),
        make_item("B", "https://b.example/sun", SUNDAY),
    ]


def links(items):
    return [item.link for item in items]


def many_items(sources=3, per_source=7):
    items = []
    for s in range(sources):
        for i in range(per_source):
            items.append(
                make_item(f"S{s}", f"https://s{s}.example/{i}", MONDAY + timedelta(hours=i * 5 + s))
            )
    return items


def test_per_feed_and_total_cap_scenario(week_items):
    result = select_items(week_items, set(), per_feed_cap=2, total_cap=3)

    assert links(result.items) == [
        "https://a.example/wed",
        "https://a.example/tue",
        "https://b.example/sun",
    ]
    assert result.duplicate_count == 0
    assert result.new_count == 3
    assert result.candidate_count == 3


def test_seen_url_is_dropped_and_counted(week_items):
    result = select_items(week_items, {"https://a.example/wed"}, per_feed_cap=2, total_cap=3)

    assert links(result.items) == ["https://a.example/tue", "https://b.example/sun"]
    assert result.duplicate_count == 1
    assert result.new_count == 2


def test_per_feed_cap_applies_before_dedup(week_items):
    # Wed is seen, but Mon does not move up to take its slot.
    result = select_items(week_items, {"https://a.example/wed"}, per_feed_cap=2, total_cap=10)

    assert "https://a.example/mon" not in links(result.items)


def test_new_count_is_measured_before_total_cap(week_items):
    result = select_items(week_items, set(), per_feed_cap=3, total_cap=2)

    assert result.new_count == 4
    assert result.published_count == 2
    assert links(result.items) == ["https://a.example/wed", "https://a.example/tue"]


def test_second_run_with_updated_history_finds_nothing_new():
    items = many_items()
    first = select_items(items, set(), per_feed_cap=4, total_cap=100)
    seen = set(links(first.items))

    second = select_items(items, seen, per_feed_cap=4, total_cap=100)

    assert first.new_count > 0
    assert second.items == []
    assert second.new_count == 0
    assert second.duplicate_count == first.new_count


@pytest.mark.parametrize("per_source", [0, 1, 2, 5, 9])
@pytest.mark.parametrize("cap", [1, 2, 4])
def test_no_source_exceeds_per_feed_cap(per_source, cap):
    items = many_items(sources=4, per_source=per_source)

    candidates = cap_per_source(items, cap)

    counts = Counter(item.source_name for item in candidates)
    assert all(count <= cap for count in counts.values())
    assert len(candidates) == 4 * min(per_source, cap)


@pytest.mark.parametrize("total_cap", [0, 1, 5, 12, 100])
def test_total_cap_bounds_output(total_cap):
    result = select_items(many_items(), set(), per_feed_cap=10, total_cap=total_cap)

    assert len(result.items) <= total_cap


def test_output_is_newest_first():
    result = select_items(many_items(sources=5, per_source=6), set(), per_feed_cap=4, total_cap=50)

    dates = [item.published_at for item in result.items]
    assert all(earlier >= later for earlier, later in zip(dates, dates[1:]))


def test_equal_timestamps_keep_fetch_then_group_order():
    items = [
        make_item("A", "https://a.example/1", MONDAY),
        make_item("B", "https://b.example/1", MONDAY),
        make_item("A", "https://a.example/2", MONDAY),
    ]

    result = select_items(items, set(), per_feed_cap=5, total_cap=5)

    # Groups are concatenated A then B, and the stable sort keeps that.
    assert links(result.items) == [
        "https://a.example/1",
        "https://a.example/2",
        "https://b.example/1",
    ]


def test_ordering_does_not_depend_on_arrival_order(week_items):
    forward = select_items(week_items, set(), per_feed_cap=3, total_cap=10)
    backward = select_items(list(reversed(week_items)), set(), per_feed_cap=3, total_cap=10)

    assert links(forward.items) == links(backward.items)


def test_same_link_from_two_sources_is_published_once():
    items = [
        make_item("A", "https://shared.example/story", MONDAY),
        make_item("B", "https://shared.example/story", TUESDAY),
        make_item("B", "https://b.example/other", MONDAY),
    ]

    result = select_items(items, set(), per_feed_cap=5, total_cap=5)

    assert links(result.items) == ["https://shared.example/story", "https://b.example/other"]
    assert result.items[0].source_name == "B"
    assert result.duplicate_count == 0
    assert result.new_count == 3
    assert result.repeat_count == 1
    assert result.new_by_source == {"A": 1, "B": 2}


def test_shared_link_is_not_a_history_duplicate():
    items = [
        make_item("A", "https://shared.example/x", MONDAY),
        make_item("B", "https://shared.example/x", TUESDAY),
    ]

    result = select_items(items, set(), per_feed_cap=5, total_cap=5)

    assert result.duplicate_count == 0
    assert result.new_count == 2
    assert [i.source_name for i in result.items] == ["B"]


def test_shared_link_already_seen_counts_once_per_candidate():
    items = [
        make_item("A", "https://shared.example/x", MONDAY),
        make_item("B", "https://shared.example/x", TUESDAY),
    ]

    result = select_items(items, {"https://shared.example/x"}, per_feed_cap=5, total_cap=5)

    assert result.items == []
    assert result.duplicate_count == 2
    assert result.repeat_count == 0


@pytest.mark.parametrize("per_feed_cap,total_cap", [(0, 10), (10, 0), (0, 0)])
def test_zero_caps_give_empty_digest(week_items, per_feed_cap, total_cap):
    result = select_items(week_items, set(), per_feed_cap=per_feed_cap, total_cap=total_cap)

    assert result.items == []


def test_no_items_is_not_an_error():
    result = select_items([], set(), per_feed_cap=5, total_cap=5)

    assert result.items == []
    assert result.new_count == 0
    assert result.duplicate_count == 0
    assert result.new_by_source == {}


def test_new_by_source_counts_survivors_before_total_cap(week_items):
    result = select_items(week_items, {"https://a.example/tue"}, per_feed_cap=3, total_cap=1)

    assert result.new_by_source == {"A": 2, "B": 1}


def test_group_by_source_keeps_first_appearance_order():
    items = [
        make_item("B", "https://b.example/1", MONDAY),
        make_item("A", "https://a.example/1", MONDAY),
        make_item("B", "https://b.example/2", MONDAY),
    ]

    groups = group_by_source(items)

    assert list(groups) == ["B", "A"]
    assert links(groups["B"]) == ["https://b.example/1", "https://b.example/2"]


def test_input_items_are_not_mutated(week_items):
    before = [item.model_dump() for item in week_items]

    select_items(week_items, {"https://a.example/mon"}, per_feed_cap=1, total_cap=1)

    assert [item.model_dump() for item in week_items] == before
