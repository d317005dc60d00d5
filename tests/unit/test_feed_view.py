"""Unit tests for feed filtering and grouping."""

from datetime import date, timedelta, timezone

from live_feed.models.schemas import FeedCategory
from live_feed.services.feed_view import filter_items, group_by_day
from .conftest import NOW, make_item


def test_filter_by_category():
    """Test only the requested category is kept."""
    items = [
        make_item("a", 0, FeedCategory.COMMIT),
        make_item("b", 1, FeedCategory.TASK),
        make_item("c", 2, FeedCategory.COMMIT),
    ]

    result = filter_items(items, category="commit", days=None, now=NOW)

    assert [item.id for item in result] == ["a", "c"]


def test_filter_all_categories_is_case_insensitive():
    """Test "all" matches regardless of case and whitespace."""
    items = [make_item("a", 0, FeedCategory.COMMIT), make_item("b", 1, FeedCategory.TASK)]

    assert len(filter_items(items, category=" ALL ", days=None, now=NOW)) == 2


def test_filter_by_days():
    """Test items older than the day window are dropped."""
    items = [
        make_item("recent", 60),
        make_item("old", int(timedelta(days=8).total_seconds() // 60)),
    ]

    result = filter_items(items, days=7, now=NOW)

    assert [item.id for item in result] == ["recent"]


def test_no_day_limit_keeps_everything():
    """Test days=None disables the date filter."""
    items = [make_item("ancient", int(timedelta(days=400).total_seconds() // 60))]

    assert len(filter_items(items, days=None, now=NOW)) == 1


def test_group_by_day_preserves_order():
    """Test groups appear in order of first appearance."""
    items = [
        make_item("a", 0),
        make_item("b", 60 * 13),
        make_item("c", 60 * 14),
    ]

    groups = group_by_day(items, tz=timezone.utc)

    assert list(groups) == [date(2026, 3, 14), date(2026, 3, 13)]
    assert [item.id for item in groups[date(2026, 3, 13)]] == ["b", "c"]


def test_group_by_day_uses_the_given_zone():
    """Test late-evening UTC items fall on the next day east of UTC."""
    items = [make_item("a", 0), make_item("b", 60 * 13)]

    east = group_by_day(items, tz=timezone(timedelta(hours=2)))
    west = group_by_day(items, tz=timezone(timedelta(hours=-14)))

    assert list(east) == [date(2026, 3, 14)]
    assert list(west) == [date(2026, 3, 13)]


def test_group_by_day_defaults_to_local_time():
    """Test the default grouping follows the host's local calendar day."""
    items = [make_item("a", 0), make_item("b", 60 * 13)]

    groups = group_by_day(items)

    expected = [item.timestamp.astimezone().date() for item in items]
    assert list(groups) == list(dict.fromkeys(expected))
