import copy

from campusplan.models import (
    DEFAULT_PARAMS, Containment, CoolingType, Redundancy, derive_params_from_campus,
    derive_params_from_reconciled_campus, reconcile_campus,
)
from campusplan.models.derivation import resolve_mode


def test_derives_aggregate_params(campus):
    derived = derive_params_from_campus(campus, DEFAULT_PARAMS)

    assert derived.critical_load_mw == 5.35
    assert derived.data_halls == 4
    assert derived.rack_power_density == 15.93
    assert derived.redundancy == Redundancy.N_PLUS_1
    assert derived.cooling_type == CoolingType.AIR_COOLED
    assert derived.containment == Containment.HOT_AISLE
    assert derived.whitespace_area_sqft == 12096
    assert derived.pue == 1.35
    assert derived.whitespace_ratio == 0.42


def test_reconciled_and_raw_inputs_agree(large_campus):
    reconciled = reconcile_campus(large_campus)

    assert derive_params_from_reconciled_campus(reconciled, DEFAULT_PARAMS) == \
        derive_params_from_campus(large_campus, DEFAULT_PARAMS)


def test_empty_campus_uses_fallback_profiles(campus):
    empty = copy.deepcopy(campus)
    empty.zones = []

    derived = derive_params_from_campus(empty, DEFAULT_PARAMS)

    assert derived.data_halls == 1
    assert derived.rack_power_density == DEFAULT_PARAMS.rack_power_density
    assert derived.redundancy == DEFAULT_PARAMS.redundancy
    assert derived.cooling_type == DEFAULT_PARAMS.cooling_type
    assert derived.containment == DEFAULT_PARAMS.containment
    # Floors at the smallest supported load and area.
    assert derived.critical_load_mw == 0.5
    assert derived.whitespace_area_sqft == 5000


def test_resolve_mode_prefers_most_frequent():
    values = [Redundancy.TWO_N, Redundancy.N, Redundancy.TWO_N]

    assert resolve_mode(values, Redundancy, Redundancy.N_PLUS_1) == Redundancy.TWO_N


def test_resolve_mode_breaks_ties_in_declaration_order():
    values = [Containment.FULL_ENCLOSURE, Containment.COLD_AISLE]

    assert resolve_mode(values, Containment, Containment.NONE) == Containment.COLD_AISLE


def test_resolve_mode_without_values_returns_fallback():
    assert resolve_mode([], CoolingType, CoolingType.DLC) == CoolingType.DLC
