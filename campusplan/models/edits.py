"""
Structural campus edits.

Each edit returns a new campus that shares every untouched zone and hall with
its input. Edits that cannot find their target, or that would leave a zone or
the campus empty, return the input unchanged. Edits do not reconcile; pass the
result through commit_campus_edit() to validate, reconcile and re-derive.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional

from .campus import (
    Campus, EntityMetadata, Hall, RackGroup, RackProfile, Zone, ZoneRackRules,
    format_hall_id, format_rack_group_id, format_zone_id, zone_letter_name,
)
from .derivation import derive_params_from_reconciled_campus
from .parameters import Params
from .reconciler import reconcile_campus
from .validator import CampusValidationIssue, validate_campus

logger = logging.getLogger("CampusEdits")

DEFAULT_GROUP_NAME = "Default Group"


@dataclass
class CampusCommit:
    """Outcome of gating a draft campus through validation."""
    campus: Campus
    params: Params
    issues: List[CampusValidationIssue] = field(default_factory=list)
    committed: bool = False


def _next_hall_index(campus: Campus) -> int:
    return campus.hall_count + 1


def _unique_id(candidate: str, taken, formatter: Callable[[int], str], start: int) -> str:
    index = start
    while candidate in taken:
        index += 1
        candidate = formatter(index)
    return candidate


def _hall_ids(campus: Campus):
    return {hall.id for _, hall in campus.iter_halls()}


def _new_hall(hall_id: str, hall_index: int, rack_count: int, profile: RackProfile) -> Hall:
    return Hall(
        id=hall_id,
        hall_index=hall_index,
        rack_count=rack_count,
        rack_start_index=0,
        rack_end_index=0,
        metadata=EntityMetadata(name=f"Hall {hall_index}"),
        profile=profile,
        rack_groups=[RackGroup(
            id=format_rack_group_id(hall_id, 1),
            name=DEFAULT_GROUP_NAME,
            rack_count=rack_count,
        )],
    )


def replace_zone(campus: Campus, zone_id: str, next_zone: Zone) -> Campus:
    return replace(campus, zones=[next_zone if zone.id == zone_id else zone for zone in campus.zones])


def replace_hall(zone: Zone, hall_id: str, next_hall: Hall) -> Zone:
    return replace(zone, halls=[next_hall if hall.id == hall_id else hall for hall in zone.halls])


def find_zone(campus: Campus, zone_id: str) -> Optional[Zone]:
    return next((zone for zone in campus.zones if zone.id == zone_id), None)


def find_hall(campus: Campus, hall_id: str):
    """Return (zone, hall) for hall_id, or None."""
    for zone, hall in campus.iter_halls():
        if hall.id == hall_id:
            return zone, hall
    return None


def add_zone(campus: Campus, params: Params) -> Campus:
    """
    Append a zone with one hall. Rules and defaults are copied from the first
    zone when there is one, otherwise taken from the params baseline.
    """
    zone_index = len(campus.zones) + 1
    zone_id = _unique_id(format_zone_id(zone_index), {z.id for z in campus.zones}, format_zone_id, zone_index)
    hall_index = _next_hall_index(campus)
    hall_id = _unique_id(format_hall_id(hall_index), _hall_ids(campus), format_hall_id, hall_index)

    source = campus.zones[0] if campus.zones else None
    if source is not None:
        hall_defaults = source.hall_defaults
        rack_rules = source.rack_rules
    else:
        hall_defaults = RackProfile(
            rack_density_kw=params.rack_power_density,
            redundancy=params.redundancy,
            containment=params.containment,
            cooling_type=params.cooling_type,
        )
        rack_rules = ZoneRackRules(min_rack_count=4, max_rack_count=450, default_rack_count=120, step=2)

    zone = Zone(
        id=zone_id,
        zone_index=zone_index,
        metadata=EntityMetadata(name=zone_letter_name(zone_index)),
        hall_defaults=hall_defaults,
        rack_rules=rack_rules,
        halls=[_new_hall(hall_id, hall_index, rack_rules.default_rack_count, hall_defaults)],
    )
    logger.info(f"Added zone {zone_id} with hall {hall_id}")
    return replace(campus, zones=list(campus.zones) + [zone])


def remove_zone(campus: Campus, zone_id: str) -> Campus:
    if len(campus.zones) <= 1 or find_zone(campus, zone_id) is None:
        return campus
    logger.info(f"Removed zone {zone_id}")
    return replace(campus, zones=[zone for zone in campus.zones if zone.id != zone_id])


def add_hall(campus: Campus, zone_id: str) -> Campus:
    """Append a hall built from the zone's defaults and default rack count."""
    zone = find_zone(campus, zone_id)
    if zone is None:
        return campus

    hall_index = _next_hall_index(campus)
    hall_id = _unique_id(format_hall_id(hall_index), _hall_ids(campus), format_hall_id, hall_index)
    hall = _new_hall(hall_id, hall_index, zone.rack_rules.default_rack_count, zone.hall_defaults)
    logger.info(f"Added hall {hall_id} to zone {zone_id}")
    return replace_zone(campus, zone_id, replace(zone, halls=list(zone.halls) + [hall]))


def remove_hall(campus: Campus, zone_id: str, hall_id: str) -> Campus:
    zone = find_zone(campus, zone_id)
    if zone is None or len(zone.halls) <= 1 or not any(h.id == hall_id for h in zone.halls):
        return campus
    logger.info(f"Removed hall {hall_id} from zone {zone_id}")
    return replace_zone(campus, zone_id, replace(zone, halls=[h for h in zone.halls if h.id != hall_id]))


def sync_hall_rack_count(hall: Hall, rack_count: int) -> Hall:
    """Set the rack count and collapse the hall's groups into one matching group."""
    first = hall.rack_groups[0] if hall.rack_groups else None
    group = RackGroup(
        id=first.id if first and first.id else format_rack_group_id(hall.id, 1),
        name=first.name if first and first.name else DEFAULT_GROUP_NAME,
        rack_count=rack_count,
    )
    return replace(hall, rack_count=rack_count, rack_groups=[group])


def set_hall_rack_count(campus: Campus, hall_id: str, rack_count: int) -> Campus:
    target = find_hall(campus, hall_id)
    if target is None:
        return campus
    zone, hall = target
    if hall.rack_count == rack_count and hall.requested_rack_count == rack_count:
        return campus
    return replace_zone(campus, zone.id, replace_hall(zone, hall_id, sync_hall_rack_count(hall, rack_count)))


def update_zone_rack_rules(campus: Campus, zone_id: str, **changes) -> Campus:
    """Update zone rack rules fields, e.g. update_zone_rack_rules(c, 'Z-01', max_rack_count=300)."""
    zone = find_zone(campus, zone_id)
    if zone is None:
        return campus
    rack_rules = replace(zone.rack_rules, **changes)
    if rack_rules == zone.rack_rules:
        return campus
    return replace_zone(campus, zone_id, replace(zone, rack_rules=rack_rules))


def rename_entity(campus: Campus, entity_id: str, name: str) -> Campus:
    """Rename the campus, a zone or a hall by id."""
    if campus.id == entity_id:
        if campus.metadata.name == name:
            return campus
        return replace(campus, metadata=replace(campus.metadata, name=name))

    zone = find_zone(campus, entity_id)
    if zone is not None:
        if zone.metadata.name == name:
            return campus
        return replace_zone(campus, zone.id, replace(zone, metadata=replace(zone.metadata, name=name)))

    target = find_hall(campus, entity_id)
    if target is None:
        return campus
    zone, hall = target
    if hall.metadata.name == name:
        return campus
    next_hall = replace(hall, metadata=replace(hall.metadata, name=name))
    return replace_zone(campus, zone.id, replace_hall(zone, hall.id, next_hall))


def is_hall_profile_inherited(hall: Hall, zone: Zone) -> bool:
    """True when the hall's profile matches its zone's hall defaults."""
    return hall.profile == zone.hall_defaults


def reset_hall_profile(campus: Campus, hall_id: str) -> Campus:
    """Restore a hall's profile to its zone's hall defaults."""
    target = find_hall(campus, hall_id)
    if target is None:
        return campus
    zone, hall = target
    if is_hall_profile_inherited(hall, zone):
        return campus
    return replace_zone(campus, zone.id, replace_hall(zone, hall_id, replace(hall, profile=zone.hall_defaults)))


def commit_campus_edit(draft: Campus, params: Params) -> CampusCommit:
    """
    Gate a draft edit: a clean draft is reconciled and new params are derived,
    a draft with issues is handed back with the previous params and the issues.
    """
    issues = validate_campus(draft)
    if issues:
        logger.info(f"Campus edit held back: {len(issues)} issue(s)")
        return CampusCommit(campus=draft, params=params, issues=issues, committed=False)

    reconciled = reconcile_campus(draft)
    return CampusCommit(
        campus=reconciled,
        params=derive_params_from_reconciled_campus(reconciled, params),
        issues=[],
        committed=True,
    )
