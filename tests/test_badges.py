"""Tests for badge aggregation."""

from farm_passport.badges.aggregator import aggregate


def test_farm_count_dedupes_farms_but_not_badges():
    summary = aggregate([
        {"farmName": "Green Valley", "batchId": "VEG-1"},
        {"farm_name": "Green Valley", "batch_id": "VEG-2"},
        {"farmName": "Oak Hill", "batchId": "FRU-1"},
    ])

    assert summary.total == 3
    assert summary.farm_count == 2
    assert [badge.batch_id for badge in summary.badges] == ["VEG-1", "VEG-2", "FRU-1"]


def test_mixed_field_names_are_normalized():
    summary = aggregate([
        {"farmName": "Green Valley", "productName": "Carrots", "unlockDate": "2026-02-01T10:00:00Z"},
        {"farm_name": "Oak Hill", "restaurant_name": "Bistro", "unlocked_at": 1769940000000},
    ])

    first, second = summary.badges
    assert first.product_name == "Carrots"
    assert first.unlock_date.year == 2026
    assert second.restaurant_name == "Bistro"
    assert second.unlock_date is not None


def test_badge_without_farm_name_is_kept():
    summary = aggregate([{"batchId": "VEG-1"}, {"farmName": "Oak Hill", "batchId": "FRU-1"}])

    assert summary.total == 2
    assert summary.badges[0].farm_name is None
    assert summary.farm_count == 2
    assert summary.contains_batch("VEG-1")


def test_non_record_entries_are_skipped():
    summary = aggregate([{"batchId": "no-farm"}, "junk", None, {"farmName": "Oak Hill"}])

    assert summary.total == 2
    assert [badge.farm_name for badge in summary.badges] == [None, "Oak Hill"]


def test_empty_collection():
    summary = aggregate([])

    assert summary.total == 0
    assert summary.farm_count == 0
    assert not summary.contains_batch("VEG-1")
