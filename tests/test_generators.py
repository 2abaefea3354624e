from campusplan.models import (
    DEFAULT_PARAMS, CampusGenerator, build_default_campus_from_params, validate_campus,
)

from conftest import all_halls


def test_default_campus_layout():
    campus = build_default_campus_from_params(DEFAULT_PARAMS)

    assert campus.id == "C-01"
    assert campus.metadata.name == "Campus C-01"
    assert [zone.id for zone in campus.zones] == ["Z-01"]
    assert campus.zones[0].metadata.name == "Zone A"
    assert [hall.id for hall in all_halls(campus)] == ["H-01", "H-02"]
    assert [hall.rack_count for hall in all_halls(campus)] == [125, 125]
    assert campus.properties.target_pue == 1.4
    assert campus.properties.whitespace_ratio == 0.4


def test_default_campus_rules_and_groups():
    campus = build_default_campus_from_params(DEFAULT_PARAMS)
    zone = campus.zones[0]

    assert zone.rack_rules.min_rack_count == 1
    assert zone.rack_rules.max_rack_count == 450
    assert zone.rack_rules.default_rack_count == 125
    assert zone.rack_rules.step == 2
    for hall in zone.halls:
        assert hall.profile == zone.hall_defaults
        assert [(g.id, g.name, g.rack_count) for g in hall.rack_groups] == [
            (f"{hall.id}-G-01", "Default Group", 125)]


def test_default_campus_is_reconciled_and_valid():
    campus = build_default_campus_from_params(DEFAULT_PARAMS)
    second = all_halls(campus)[1]

    assert (second.rack_start_index, second.rack_end_index) == (126, 250)
    assert second.racks[0].id == "R-0126"
    assert validate_campus(campus) == []


def test_rack_rules_grow_with_large_halls():
    params = DEFAULT_PARAMS.with_changes(
        critical_load_mw=20.0, whitespace_area_sqft=200000.0, data_halls=2)

    zone = CampusGenerator(params).generate().zones[0]

    assert zone.rack_rules.max_rack_count == 1250
    assert all(hall.rack_count == 1250 for hall in zone.halls)
