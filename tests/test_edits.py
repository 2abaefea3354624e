from dataclasses import replace

from campusplan.models import (
    DEFAULT_PARAMS, Containment, CoolingType, Redundancy, add_hall, add_zone, commit_campus_edit,
    derive_params_from_campus, is_hall_profile_inherited, remove_hall, remove_zone, rename_entity,
    reset_hall_profile, set_hall_rack_count, update_zone_rack_rules,
)

from conftest import all_halls


def test_add_zone_copies_first_zone_settings(campus):
    edited = add_zone(campus, DEFAULT_PARAMS)

    zone = edited.zones[-1]
    assert zone.id == "Z-03"
    assert zone.metadata.name == "Zone C"
    assert zone.rack_rules == campus.zones[0].rack_rules
    assert zone.hall_defaults == campus.zones[0].hall_defaults
    assert [(hall.id, hall.rack_count) for hall in zone.halls] == [("H-05", 80)]
    assert edited.zones[:2] == campus.zones
    assert len(campus.zones) == 2


def test_add_zone_to_empty_campus_uses_params(campus):
    empty = replace(campus, zones=[])

    zone = add_zone(empty, DEFAULT_PARAMS).zones[0]

    assert zone.id == "Z-01"
    assert zone.hall_defaults.rack_density_kw == DEFAULT_PARAMS.rack_power_density
    assert zone.hall_defaults.cooling_type == CoolingType.AIR_COOLED
    assert zone.halls[0].id == "H-01"


def test_remove_zone(campus):
    edited = remove_zone(campus, "Z-01")

    assert [zone.id for zone in edited.zones] == ["Z-02"]
    assert remove_zone(edited, "Z-02") is edited
    assert remove_zone(campus, "Z-404") is campus


def test_add_hall_uses_zone_defaults(campus):
    edited = add_hall(campus, "Z-02")

    hall = edited.zones[1].halls[-1]
    assert hall.id == "H-05"
    assert hall.rack_count == 70
    assert hall.profile.redundancy == Redundancy.TWO_N
    assert hall.rack_groups[0].name == "Default Group"
    assert edited.zones[0] is campus.zones[0]
    assert add_hall(campus, "Z-404") is campus


def test_remove_hall_keeps_last_hall(campus):
    edited = remove_hall(campus, "Z-01", "H-02")

    assert [hall.id for hall in edited.zones[0].halls] == ["H-01"]
    assert remove_hall(edited, "Z-01", "H-01") is edited
    assert remove_hall(campus, "Z-01", "H-03") is campus


def test_set_hall_rack_count_syncs_groups(campus):
    edited = set_hall_rack_count(campus, "H-03", 120)

    hall = edited.zones[1].halls[0]
    assert hall.rack_count == 120
    assert [(g.id, g.name, g.rack_count) for g in hall.rack_groups] == [("H-03-G-01", "Default Group", 120)]
    assert set_hall_rack_count(campus, "H-03", 70) is campus
    assert set_hall_rack_count(campus, "H-404", 70) is campus


def test_update_zone_rack_rules(campus):
    edited = update_zone_rack_rules(campus, "Z-01", max_rack_count=90)

    assert edited.zones[0].rack_rules.max_rack_count == 90
    assert edited.zones[0].rack_rules.min_rack_count == 4
    assert update_zone_rack_rules(campus, "Z-01", max_rack_count=250) is campus


def test_rename_entity(campus):
    assert rename_entity(campus, "C-01", "North Campus").metadata.name == "North Campus"
    assert rename_entity(campus, "Z-02", "East").zones[1].metadata.name == "East"
    assert rename_entity(campus, "H-04", "Hall Four").zones[1].halls[1].metadata.name == "Hall Four"
    assert rename_entity(campus, "H-04", "Hall 4") is campus
    assert rename_entity(campus, "nope", "x") is campus


def test_profile_inheritance(campus):
    zone_a, zone_b = campus.zones

    assert is_hall_profile_inherited(zone_a.halls[0], zone_a)
    assert not is_hall_profile_inherited(zone_a.halls[1], zone_a)
    assert not is_hall_profile_inherited(zone_b.halls[1], zone_b)


def test_reset_hall_profile(campus):
    edited = reset_hall_profile(campus, "H-04")

    hall = edited.zones[1].halls[1]
    assert hall.profile == campus.zones[1].hall_defaults
    assert hall.profile.containment == Containment.COLD_AISLE
    assert reset_hall_profile(campus, "H-01") is campus


def test_commit_clean_edit_reconciles_and_derives(campus):
    draft = set_hall_rack_count(add_hall(campus, "Z-01"), "H-01", 101)

    result = commit_campus_edit(draft, DEFAULT_PARAMS)

    assert result.committed
    assert result.issues == []
    assert result.params == derive_params_from_campus(draft, DEFAULT_PARAMS)
    assert result.params.data_halls == 5
    halls = all_halls(result.campus)
    assert [hall.hall_index for hall in halls] == [1, 2, 3, 4, 5]
    assert halls[-1].rack_end_index == sum(hall.rack_count for hall in halls)


def test_commit_holds_back_invalid_edit(campus):
    draft = set_hall_rack_count(campus, "H-01", 999)

    result = commit_campus_edit(draft, DEFAULT_PARAMS)

    assert not result.committed
    assert result.campus is draft
    assert result.params is DEFAULT_PARAMS
    assert [issue.path for issue in result.issues] == ["Hall 1 rack count"]
