import pytest

from campusplan.models import (
    DEFAULT_PARAMS, CampusDocumentError, Containment, Redundancy, campus_from_dict, campus_to_dict,
    compute_data_center, dump_campus_document, load_campus_document, params_from_dict,
    params_to_dict, reconcile_campus, to_document, validate_campus,
)


def test_campus_document_uses_camel_case(campus):
    document = campus_to_dict(campus)

    assert document['properties'] == {'targetPue': 1.35, 'whitespaceRatio': 0.42}
    hall = document['zones'][1]['halls'][1]
    assert hall['profile'] == {
        'rackDensityKw': 24, 'redundancy': 'N', 'containment': 'Full Enclosure', 'coolingType': 'Hybrid'}
    assert hall['rackGroups'] == [{'id': 'H-04-G-01', 'name': 'Default Group', 'rackCount': 90}]
    assert document['zones'][0]['rackRules']['maxRackCount'] == 250
    assert 'racks' not in hall


def test_decoded_document_reconciles_to_same_campus(campus):
    decoded = campus_from_dict(campus_to_dict(campus))

    assert reconcile_campus(decoded) == campus


def test_yaml_file_round_trip(campus, tmp_path):
    path = tmp_path / "campus.yaml"

    dump_campus_document(campus, str(path))
    loaded = load_campus_document(str(path))

    assert "Campus Test" in path.read_text()
    assert reconcile_campus(loaded) == campus


def test_loads_json_document(tmp_path):
    path = tmp_path / "campus.json"
    path.write_text('{"metadata": {"name": "J"}, "properties": {"targetPue": 1.2, "whitespaceRatio": 0.5},'
                    ' "zones": [{"id": "Z-01", "metadata": {"name": "Zone A"},'
                    ' "rackRules": {"minRackCount": 1, "maxRackCount": 10, "defaultRackCount": 5, "step": 1},'
                    ' "halls": [{"id": "H-01", "rackCount": 4, "metadata": {"name": "Hall 1"}}]}]}')

    campus = reconcile_campus(load_campus_document(str(path)))

    assert campus.metadata.name == "J"
    assert campus.zones[0].halls[0].rack_count == 4
    assert campus.zones[0].halls[0].profile == campus.zones[0].hall_defaults


def test_lenient_values_are_repaired_downstream():
    campus = campus_from_dict({
        'metadata': {'name': 'Loose'},
        'properties': {'targetPue': 'high', 'whitespaceRatio': 0.4},
        'zones': [{
            'metadata': {'name': 'Zone A'},
            'hallDefaults': {'rackDensityKw': 10, 'redundancy': 'N+2'},
            'rackRules': {'minRackCount': 2, 'maxRackCount': 20, 'defaultRackCount': 6, 'step': 2},
            'halls': [{'metadata': {'name': 'Hall 1'}, 'rackCount': 'many'}],
        }],
    })

    assert campus.zones[0].hall_defaults.redundancy == DEFAULT_PARAMS.redundancy
    assert [issue.path for issue in validate_campus(campus)] == ["Campus target PUE", "Hall 1 rack count"]

    reconciled = reconcile_campus(campus)
    assert reconciled.properties.target_pue == 1.4
    assert reconciled.zones[0].halls[0].rack_count == 2
    assert reconciled.zones[0].halls[0].id == "H-01"


@pytest.mark.parametrize("document", [
    None,
    [],
    {'zones': {'Z-01': {}}},
    {'zones': ['not a zone']},
    {'zones': [{'halls': [{'rackGroups': 'G'}]}]},
])
def test_malformed_structure_raises(document):
    with pytest.raises(CampusDocumentError):
        campus_from_dict(document)


def test_invalid_yaml_raises(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("zones: [unclosed")

    with pytest.raises(CampusDocumentError):
        load_campus_document(str(path))


def test_params_round_trip():
    document = params_to_dict(DEFAULT_PARAMS)

    assert document['criticalLoadMW'] == 2.0
    assert document['redundancy'] == 'N+1'
    assert params_from_dict(document) == DEFAULT_PARAMS


def test_params_fall_back_per_field():
    params = params_from_dict({'pue': 1.2, 'dataHalls': 'four', 'containment': 'Cold Aisle',
                               'redundancy': 'N+7'})

    assert params.pue == 1.2
    assert params.data_halls == DEFAULT_PARAMS.data_halls
    assert params.containment == Containment.COLD_AISLE
    assert params.redundancy == Redundancy.N_PLUS_1


def test_params_are_clamped_into_limits():
    params = params_from_dict({'dataHalls': 5000, 'pue': 9, 'criticalLoadMW': -3,
                               'whitespaceRatio': 0.3, 'rackPowerDensity': 2.6})

    assert params.data_halls == 100
    assert isinstance(params.data_halls, int)
    assert params.pue == 2.0
    assert params.critical_load_mw == 0.5
    assert params.whitespace_ratio == 0.3
    assert params.rack_power_density == 3.0


def test_non_finite_params_take_the_fallback():
    params = params_from_dict({'dataHalls': float('nan'), 'pue': float('inf'),
                               'whitespaceAreaSqFt': float('-inf')})

    assert params == DEFAULT_PARAMS


def test_to_document_encodes_models():
    document = to_document(compute_data_center(DEFAULT_PARAMS))

    assert document['facilityLoad']['criticalItMw'] == 2.0
    assert document['hallRackDistribution'] == [125, 125]
    assert document['halls'][0]['packing']['rowCount'] == 6
    assert document['halls'][0]['rows'][0]['id'] == "H01-ROW-01"
