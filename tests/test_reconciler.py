import copy

from campusplan.models import (
    CAMPUS_PARAM_LIMITS, CampusProperties, RackGroup, ZoneRackRules, reconcile_campus,
)
from campusplan.models.reconciler import align_group_counts, sanitize_rack_rules

from conftest import all_halls


def assert_contiguous_racks(campus):
    expected_start = 1
    for position, hall in enumerate(all_halls(campus), start=1):
        assert hall.hall_index == position
        assert hall.rack_start_index == expected_start
        assert hall.rack_end_index == expected_start + hall.rack_count - 1
        assert len(hall.racks) == hall.rack_count
        assert [rack.rack_index for rack in hall.racks] == list(
            range(hall.rack_start_index, hall.rack_end_index + 1))
        if hall.rack_groups:
            assert sum(group.rack_count for group in hall.rack_groups) == hall.rack_count
        expected_start = hall.rack_end_index + 1


def test_reconciles_rules_groups_and_indexing(campus):
    draft = copy.deepcopy(campus)
    zone = draft.zones[0]
    zone.rack_rules = ZoneRackRules(min_rack_count=4, max_rack_count=10, default_rack_count=700, step=0)
    hall = zone.halls[0]
    hall.rack_groups = [
        RackGroup(id="", name="", rack_count=30),
        RackGroup(id="", name="Overflow", rack_count=20),
    ]
    hall.rack_count = 999
    hall.profile.rack_density_kw = 120

    reconciled = reconcile_campus(draft)
    first_zone = reconciled.zones[0]
    first_hall = first_zone.halls[0]

    assert first_zone.rack_rules == ZoneRackRules(
        min_rack_count=4, max_rack_count=10, default_rack_count=10, step=1)
    assert first_hall.rack_count == 10
    assert first_hall.profile.rack_density_kw == CAMPUS_PARAM_LIMITS['rackPowerDensity']['max']
    assert sum(group.rack_count for group in first_hall.rack_groups) == 10
    assert first_hall.rack_groups[0].name == "Group 1"
    assert first_hall.rack_groups[0].id == "H-01-G-01"
    assert first_hall.rack_groups[1].name == "Overflow"
    assert_contiguous_racks(reconciled)


def test_fixture_rack_ranges(campus):
    assert [(h.rack_start_index, h.rack_end_index) for h in all_halls(campus)] == [
        (1, 80), (81, 176), (177, 246), (247, 336)]
    assert campus.zones[0].halls[0].racks[0].id == "R-0001"
    assert campus.zones[1].halls[1].racks[-1].metadata.name == "Rack 336"


def test_does_not_mutate_input(campus):
    draft = copy.deepcopy(campus)
    draft.zones[0].halls[0].rack_count = 999
    draft.zones[0].halls[0].rack_groups = []
    snapshot = copy.deepcopy(draft)

    reconcile_campus(draft)

    assert draft == snapshot


def test_is_idempotent(large_campus):
    once = reconcile_campus(large_campus)
    assert reconcile_campus(once) == once


def test_large_campus_invariants(large_campus):
    reconciled = reconcile_campus(large_campus)
    halls = all_halls(reconciled)

    assert len(halls) == 72
    assert all(hall.rack_count > 0 for hall in halls)
    for zone in reconciled.zones:
        for hall in zone.halls:
            assert zone.rack_rules.min_rack_count <= hall.rack_count <= zone.rack_rules.max_rack_count
    assert_contiguous_racks(reconciled)


def test_non_finite_properties_fall_back_to_defaults(campus):
    draft = copy.deepcopy(campus)
    draft.properties = CampusProperties(target_pue=float('nan'), whitespace_ratio=float('inf'))

    reconciled = reconcile_campus(draft)

    assert reconciled.properties.target_pue == 1.4
    assert reconciled.properties.whitespace_ratio == 0.4


def test_hall_without_groups_keeps_no_groups(campus):
    draft = copy.deepcopy(campus)
    draft.zones[0].halls[0].rack_groups = []
    draft.zones[0].halls[0].rack_count = 3

    hall = reconcile_campus(draft).zones[0].halls[0]

    assert hall.rack_groups == []
    assert hall.rack_count == 4


def test_blank_hall_id_is_assigned(campus):
    draft = copy.deepcopy(campus)
    draft.zones[1].halls[0].id = ""

    hall = reconcile_campus(draft).zones[1].halls[0]

    assert hall.id == "H-03"


def test_sanitize_rack_rules_orders_bounds():
    rules = sanitize_rack_rules(ZoneRackRules(
        min_rack_count=20, max_rack_count=10, default_rack_count=float('nan'), step=-3))

    assert rules == ZoneRackRules(min_rack_count=20, max_rack_count=20, default_rack_count=20, step=1)


def test_align_group_counts_shortfall_goes_to_first_group():
    groups = [RackGroup("G1", "A", 5), RackGroup("G2", "B", 5)]

    aligned = align_group_counts(groups, 14)

    assert [group.rack_count for group in aligned] == [9, 5]


def test_align_group_counts_surplus_comes_off_the_back():
    groups = [RackGroup("G1", "A", 10), RackGroup("G2", "B", 6), RackGroup("G3", "C", 4)]

    aligned = align_group_counts(groups, 12)

    assert [group.rack_count for group in aligned] == [10, 1, 1]


def test_align_group_counts_drops_groups_beyond_rack_count():
    groups = [RackGroup(f"G{i}", f"G{i}", 1) for i in range(1, 6)]

    aligned = align_group_counts(groups, 3)

    assert sum(group.rack_count for group in aligned) == 3
    assert all(group.rack_count >= 1 for group in aligned)
