"""
Scoped copy-on-write patches.

Both helpers return the *same* campus object when nothing would change or
when the scope cannot be resolved, so callers can detect no-ops with `is`.
Otherwise a new tree is built that shares every untouched zone and hall.
"""
import logging
from dataclasses import dataclass, replace
from typing import Optional, Set

from .campus import Campus, RackProfile, Zone
from .parameters import get_campus_param_limits
from .types import Redundancy, CoolingType, Containment, ScopeLevel
from .units import is_finite_number, round_to

logger = logging.getLogger("CampusPatches")


@dataclass
class CampusParameterScope:
    level: ScopeLevel
    zone_id: Optional[str] = None
    hall_id: Optional[str] = None


@dataclass
class RackProfilePatch:
    """None means leave the field unchanged."""
    rack_density_kw: Optional[float] = None
    redundancy: Optional[Redundancy] = None
    containment: Optional[Containment] = None
    cooling_type: Optional[CoolingType] = None

    def is_empty(self) -> bool:
        return (
            self.rack_density_kw is None
            and self.redundancy is None
            and self.containment is None
            and self.cooling_type is None
        )


@dataclass
class CampusPropertyPatch:
    target_pue: Optional[float] = None
    whitespace_ratio: Optional[float] = None


def normalize_rack_profile_patch(patch: RackProfilePatch) -> RackProfilePatch:
    """Drop non-finite densities and clamp the rest into the supported range."""
    density = None
    if is_finite_number(patch.rack_density_kw):
        density = round_to(get_campus_param_limits().clamp('rackPowerDensity', patch.rack_density_kw), 2)
    return replace(patch, rack_density_kw=density)


def apply_patch_to_profile(profile: RackProfile, patch: RackProfilePatch) -> RackProfile:
    changes = {
        name: value
        for name, value in (
            ('rack_density_kw', patch.rack_density_kw),
            ('redundancy', patch.redundancy),
            ('containment', patch.containment),
            ('cooling_type', patch.cooling_type),
        )
        if value is not None and getattr(profile, name) != value
    }
    if not changes:
        return profile
    return replace(profile, **changes)


def resolve_scope_zone(campus: Campus, zone_id: Optional[str]) -> Optional[Zone]:
    """Zone by id; the first zone when no id is given."""
    if not campus.zones:
        return None
    if not zone_id:
        return campus.zones[0]
    return next((zone for zone in campus.zones if zone.id == zone_id), None)


def resolve_scope_hall(campus: Campus, hall_id: Optional[str], zone_id: Optional[str]):
    """
    Resolve (zone, hall) for a hall-level scope.
    An unknown or missing hall id falls back to the first hall of the scoped zone.
    """
    if hall_id:
        for zone in campus.zones:
            for hall in zone.halls:
                if hall.id == hall_id:
                    return zone, hall

    zone = resolve_scope_zone(campus, zone_id)
    if zone is None or not zone.halls:
        return None
    return zone, zone.halls[0]


def apply_rack_profile_patch(campus: Campus, scope: CampusParameterScope,
                             patch: RackProfilePatch) -> Campus:
    """
    Apply a rack profile patch to every hall in scope.
    Campus and zone scopes also update the zone hall defaults.
    """
    normalized = normalize_rack_profile_patch(patch)
    if normalized.is_empty():
        return campus

    target_hall_ids: Set[str] = set()
    target_zone_ids: Set[str] = set()

    if scope.level == ScopeLevel.CAMPUS:
        for zone in campus.zones:
            target_zone_ids.add(zone.id)
            target_hall_ids.update(hall.id for hall in zone.halls)
    elif scope.level == ScopeLevel.ZONE:
        zone = resolve_scope_zone(campus, scope.zone_id)
        if zone is None:
            logger.debug(f"Profile patch ignored: zone {scope.zone_id!r} not found")
            return campus
        target_zone_ids.add(zone.id)
        target_hall_ids.update(hall.id for hall in zone.halls)
    else:
        target = resolve_scope_hall(campus, scope.hall_id, scope.zone_id)
        if target is None:
            logger.debug(f"Profile patch ignored: hall {scope.hall_id!r} not found")
            return campus
        target_hall_ids.add(target[1].id)

    changed = False
    zones = []
    for zone in campus.zones:
        hall_defaults = zone.hall_defaults
        if zone.id in target_zone_ids:
            hall_defaults = apply_patch_to_profile(zone.hall_defaults, normalized)

        halls = []
        for hall in zone.halls:
            if hall.id in target_hall_ids:
                profile = apply_patch_to_profile(hall.profile, normalized)
                if profile is not hall.profile:
                    hall = replace(hall, profile=profile)
            halls.append(hall)

        halls_changed = any(new is not old for new, old in zip(halls, zone.halls))
        if hall_defaults is not zone.hall_defaults or halls_changed:
            zone = replace(zone, hall_defaults=hall_defaults, halls=halls)
            changed = True
        zones.append(zone)

    if not changed:
        return campus
    return replace(campus, zones=zones)


def apply_campus_property_patch(campus: Campus, patch: CampusPropertyPatch) -> Campus:
    """Clamp and apply campus-level property changes."""
    limits = get_campus_param_limits()
    properties = campus.properties

    target_pue = properties.target_pue
    if is_finite_number(patch.target_pue):
        target_pue = round_to(limits.clamp('pue', patch.target_pue), 2)

    whitespace_ratio = properties.whitespace_ratio
    if is_finite_number(patch.whitespace_ratio):
        whitespace_ratio = round_to(limits.clamp('whitespaceRatio', patch.whitespace_ratio), 2)

    if target_pue == properties.target_pue and whitespace_ratio == properties.whitespace_ratio:
        return campus

    return replace(
        campus,
        properties=replace(properties, target_pue=target_pue, whitespace_ratio=whitespace_ratio),
    )
