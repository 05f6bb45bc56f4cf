"""Spatial deduplication of detected zones."""
from eduasset.models.location import Location
from eduasset.services.zone_merge import center_distance, merge_detected_zones


def zone(zone_id, x, y, w=10.0, h=10.0):
    return Location(id=zone_id, name=zone_id, pin_x=x, pin_y=y, width=w, height=h)


def test_center_uses_bounding_box():
    assert zone("a", 0, 0).center == (5.0, 5.0)
    assert Location(id="pin", pin_x=3, pin_y=4).center == (3.0, 4.0)
    assert center_distance(zone("a", 0, 0), zone("b", 3, 4)) == 5.0


def test_near_duplicate_is_skipped():
    existing = [zone("room-a", 10, 10)]
    merged, added, skipped = merge_detected_zones(existing, [zone("det-1", 10.3, 10.4)], threshold=1.0)
    assert [z.id for z in merged] == ["room-a"]
    assert added == []
    assert [z.id for z in skipped] == ["det-1"]


def test_distant_zone_is_added():
    existing = [zone("room-a", 10, 10)]
    merged, added, _ = merge_detected_zones(existing, [zone("det-1", 13, 14)], threshold=1.0)
    assert [z.id for z in merged] == ["room-a", "det-1"]
    assert [z.id for z in added] == ["det-1"]


def test_candidates_are_deduplicated_against_each_other():
    detected = [zone("det-1", 50, 50), zone("det-2", 50.2, 50.1), zone("det-3", 70, 70)]
    merged, added, skipped = merge_detected_zones([], detected)
    assert [z.id for z in added] == ["det-1", "det-3"]
    assert [z.id for z in skipped] == ["det-2"]
    assert len(merged) == 2


def test_threshold_is_configurable():
    existing = [zone("room-a", 10, 10)]
    _, added, _ = merge_detected_zones(existing, [zone("det-1", 13, 14)], threshold=10.0)
    assert added == []
