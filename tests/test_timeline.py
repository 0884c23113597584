from maniaparser.classes.timeline import Timeline


def make_timeline(times=()) -> Timeline[tuple[int, str]]:
    return Timeline(lambda item: item[0], [(t, f"item{i}") for i, t in enumerate(times)])


def test_add_in_order_stays_sorted():
    timeline = make_timeline([0, 10, 10, 20])
    assert timeline.is_sorted
    assert len(timeline) == 4


def test_add_earlier_item_marks_unsorted():
    timeline = make_timeline([0, 20])
    timeline.add((10, "late"))
    assert not timeline.is_sorted

    timeline.sort()
    assert timeline.is_sorted
    assert [t for t, _ in timeline] == [0, 10, 20]


def test_add_equal_time_keeps_sorted_flag():
    timeline = make_timeline([0, 20])
    timeline.add((20, "tie"))
    assert timeline.is_sorted


def test_sort_is_stable():
    timeline = make_timeline([30, 10, 10, 0])
    timeline.sort()
    assert [item for item in timeline] == [(0, "item3"), (10, "item1"), (10, "item2"), (30, "item0")]


def test_sort_is_idempotent():
    timeline = make_timeline([5, 1, 3])
    timeline.sort()
    first = list(timeline)
    timeline.sort()
    assert list(timeline) == first


def test_add_sorted_places_ties_after_existing_items():
    timeline = make_timeline([0, 10, 20])
    timeline.add_sorted((10, "new"))
    assert list(timeline) == [(0, "item0"), (10, "item1"), (10, "new"), (20, "item2")]


def test_add_sorted_sorts_dirty_container_first():
    timeline = make_timeline([20, 0])
    assert not timeline.is_sorted
    timeline.add_sorted((10, "mid"))
    assert timeline.is_sorted
    assert [t for t, _ in timeline] == [0, 10, 20]


def test_first_and_last():
    timeline = make_timeline([20, 0, 10])
    assert timeline.first() == (0, "item1")
    assert timeline.last() == (20, "item0")
    assert make_timeline().first() is None


def test_indexing():
    timeline = make_timeline([0, 10, 20])
    assert timeline[1] == (10, "item1")
    assert timeline[-1] == (20, "item2")
    assert timeline[:2] == [(0, "item0"), (10, "item1")]
