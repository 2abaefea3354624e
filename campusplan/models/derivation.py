"""
Fold a campus tree into one flat Params record.
"""
from typing import Dict, Iterable, Type, TypeVar

from .campus import Campus
from .parameters import Params, get_campus_param_limits
from .reconciler import reconcile_campus
from .types import Redundancy, CoolingType, Containment
from .units import round_half_up, round_to

WHITESPACE_SQFT_PER_RACK = 36

E = TypeVar('E')


def resolve_mode(values: Iterable[E], enum_cls: Type[E], fallback: E) -> E:
    """
    Most frequent value; ties go to the value defined first in enum_cls.
    Returns fallback when there are no values.
    """
    counts: Dict[E, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1

    if not counts:
        return fallback

    best_value = fallback
    best_count = -1
    for candidate in enum_cls:
        count = counts.get(candidate, 0)
        if count > best_count:
            best_value = candidate
            best_count = count
    return best_value


def derive_params_from_reconciled_campus(normalized: Campus, fallback: Params) -> Params:
    """
    Derive aggregate params from an already reconciled campus.
    Use derive_params_from_campus() when the input may not be reconciled.
    """
    limits = get_campus_param_limits()
    halls = [hall for _, hall in normalized.iter_halls()]

    hall_count = max(1, len(halls))
    total_racks = sum(hall.rack_count for hall in halls)
    critical_kw = sum(hall.rack_count * hall.profile.rack_density_kw for hall in halls)

    average_density = critical_kw / total_racks if total_racks > 0 else fallback.rack_power_density
    critical_load_mw = critical_kw / 1000

    whitespace_area_sqft = limits.clamp(
        'whitespaceAreaSqFt', round_half_up(total_racks * WHITESPACE_SQFT_PER_RACK)
    )

    return Params(
        critical_load_mw=round_to(limits.clamp('criticalLoadMW', critical_load_mw), 2),
        whitespace_area_sqft=whitespace_area_sqft,
        data_halls=int(limits.clamp('dataHalls', hall_count)),
        whitespace_ratio=round_to(limits.clamp('whitespaceRatio', normalized.properties.whitespace_ratio), 2),
        rack_power_density=round_to(limits.clamp('rackPowerDensity', average_density), 2),
        redundancy=resolve_mode((h.profile.redundancy for h in halls), Redundancy, fallback.redundancy),
        pue=round_to(limits.clamp('pue', normalized.properties.target_pue), 2),
        cooling_type=resolve_mode((h.profile.cooling_type for h in halls), CoolingType, fallback.cooling_type),
        containment=resolve_mode((h.profile.containment for h in halls), Containment, fallback.containment),
    )


def derive_params_from_campus(campus: Campus, fallback: Params) -> Params:
    """Reconcile, then derive. Produces the same result as the reconciled variant."""
    return derive_params_from_reconciled_campus(reconcile_campus(campus), fallback)
