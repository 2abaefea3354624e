"""
Campus documents: plain dict / YAML representations of campuses and params.

Keys are camelCase, matching CAMPUS_PARAM_LIMITS. Decoding is lenient about
values (non-numeric numbers become NaN, unknown enum strings become defaults)
so that reconcile_campus() and validate_campus() see and repair them. It is
strict about structure: a document that is not shaped like a campus raises
CampusDocumentError.
"""
import logging
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Optional, Type

import yaml

from .campus import (
    Campus, CampusProperties, EntityMetadata, Hall, RackGroup, RackProfile, Zone, ZoneRackRules,
)
from .parameters import DEFAULT_PARAMS, Params, finite_params, get_campus_param_limits
from .types import Containment, CoolingType, Redundancy
from .units import is_finite_number, round_half_up

logger = logging.getLogger("CampusDocuments")

NAN = float('nan')


class CampusDocumentError(ValueError):
    """Raised when a document cannot be decoded into a campus or params."""


def _number(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return NAN
    return value


def _enum(enum_cls: Type, value, fallback):
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} {value!r}, using {fallback.value}")
        return fallback


def _mapping(data, path: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise CampusDocumentError(f"{path} must be a mapping")
    return data


def _sequence(data, path: str) -> list:
    if data is None:
        return []
    if not isinstance(data, list):
        raise CampusDocumentError(f"{path} must be a list")
    return data


# ---- encoding ----

def metadata_to_dict(metadata: EntityMetadata) -> Dict[str, Any]:
    data = {'name': metadata.name, 'notes': metadata.notes, 'tags': list(metadata.tags)}
    if metadata.capacity_target is not None:
        data['capacityTarget'] = metadata.capacity_target
    return data


def profile_to_dict(profile: RackProfile) -> Dict[str, Any]:
    return {
        'rackDensityKw': profile.rack_density_kw,
        'redundancy': profile.redundancy.value,
        'containment': profile.containment.value,
        'coolingType': profile.cooling_type.value,
    }


def hall_to_dict(hall: Hall) -> Dict[str, Any]:
    # Racks are derived from the rack range and are not persisted.
    return {
        'id': hall.id,
        'hallIndex': hall.hall_index,
        'rackCount': hall.rack_count,
        'rackStartIndex': hall.rack_start_index,
        'rackEndIndex': hall.rack_end_index,
        'metadata': metadata_to_dict(hall.metadata),
        'profile': profile_to_dict(hall.profile),
        'rackGroups': [
            {'id': group.id, 'name': group.name, 'rackCount': group.rack_count}
            for group in hall.rack_groups
        ],
    }


def zone_to_dict(zone: Zone) -> Dict[str, Any]:
    rules = zone.rack_rules
    return {
        'id': zone.id,
        'zoneIndex': zone.zone_index,
        'metadata': metadata_to_dict(zone.metadata),
        'hallDefaults': profile_to_dict(zone.hall_defaults),
        'rackRules': {
            'minRackCount': rules.min_rack_count,
            'maxRackCount': rules.max_rack_count,
            'defaultRackCount': rules.default_rack_count,
            'step': rules.step,
        },
        'halls': [hall_to_dict(hall) for hall in zone.halls],
    }


def campus_to_dict(campus: Campus) -> Dict[str, Any]:
    return {
        'id': campus.id,
        'version': campus.version,
        'metadata': metadata_to_dict(campus.metadata),
        'properties': {
            'targetPue': campus.properties.target_pue,
            'whitespaceRatio': campus.properties.whitespace_ratio,
        },
        'zones': [zone_to_dict(zone) for zone in campus.zones],
    }


def params_to_dict(params: Params) -> Dict[str, Any]:
    return {
        'criticalLoadMW': params.critical_load_mw,
        'whitespaceAreaSqFt': params.whitespace_area_sqft,
        'dataHalls': params.data_halls,
        'whitespaceRatio': params.whitespace_ratio,
        'rackPowerDensity': params.rack_power_density,
        'redundancy': params.redundancy.value,
        'pue': params.pue,
        'coolingType': params.cooling_type.value,
        'containment': params.containment.value,
    }


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_document(value):
    """Encode any computed result (dataclasses, enums, lists, dicts) as JSON-ready data."""
    if is_dataclass(value) and not isinstance(value, type):
        return {camel_case(f.name): to_document(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_document(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_document(item) for item in value]
    return value


# ---- decoding ----

def metadata_from_dict(data, path: str) -> EntityMetadata:
    data = _mapping(data or {}, path)
    capacity_target = data.get('capacityTarget')
    return EntityMetadata(
        name=str(data.get('name') or ""),
        notes=str(data.get('notes') or ""),
        capacity_target=None if capacity_target is None else _number(capacity_target),
        tags=[str(tag) for tag in _sequence(data.get('tags'), f"{path}.tags")],
    )


def profile_from_dict(data, path: str, fallback: Optional[RackProfile] = None) -> RackProfile:
    if data is None and fallback is not None:
        return fallback
    data = _mapping(data or {}, path)
    redundancy = fallback.redundancy if fallback else DEFAULT_PARAMS.redundancy
    containment = fallback.containment if fallback else DEFAULT_PARAMS.containment
    cooling_type = fallback.cooling_type if fallback else DEFAULT_PARAMS.cooling_type
    density = fallback.rack_density_kw if fallback else DEFAULT_PARAMS.rack_power_density
    return RackProfile(
        rack_density_kw=_number(data['rackDensityKw']) if 'rackDensityKw' in data else density,
        redundancy=_enum(Redundancy, data.get('redundancy', redundancy.value), redundancy),
        containment=_enum(Containment, data.get('containment', containment.value), containment),
        cooling_type=_enum(CoolingType, data.get('coolingType', cooling_type.value), cooling_type),
    )


def hall_from_dict(data, path: str, zone_defaults: RackProfile) -> Hall:
    data = _mapping(data, path)
    groups = []
    for position, group in enumerate(_sequence(data.get('rackGroups'), f"{path}.rackGroups"), start=1):
        group = _mapping(group, f"{path}.rackGroups[{position}]")
        groups.append(RackGroup(
            id=str(group.get('id') or ""),
            name=str(group.get('name') or ""),
            rack_count=_number(group.get('rackCount')),
        ))
    return Hall(
        id=str(data.get('id') or ""),
        hall_index=data.get('hallIndex', 0),
        rack_count=_number(data.get('rackCount')),
        rack_start_index=data.get('rackStartIndex', 0),
        rack_end_index=data.get('rackEndIndex', 0),
        metadata=metadata_from_dict(data.get('metadata'), f"{path}.metadata"),
        profile=profile_from_dict(data.get('profile'), f"{path}.profile", zone_defaults),
        rack_groups=groups,
    )


def zone_from_dict(data, path: str) -> Zone:
    data = _mapping(data, path)
    rules = _mapping(data.get('rackRules') or {}, f"{path}.rackRules")
    hall_defaults = profile_from_dict(data.get('hallDefaults'), f"{path}.hallDefaults")
    return Zone(
        id=str(data.get('id') or ""),
        zone_index=data.get('zoneIndex', 0),
        metadata=metadata_from_dict(data.get('metadata'), f"{path}.metadata"),
        hall_defaults=hall_defaults,
        rack_rules=ZoneRackRules(
            min_rack_count=_number(rules.get('minRackCount')),
            max_rack_count=_number(rules.get('maxRackCount')),
            default_rack_count=_number(rules.get('defaultRackCount')),
            step=_number(rules.get('step')),
        ),
        halls=[
            hall_from_dict(hall, f"{path}.halls[{position}]", hall_defaults)
            for position, hall in enumerate(_sequence(data.get('halls'), f"{path}.halls"), start=1)
        ],
    )


def campus_from_dict(data) -> Campus:
    """Decode a campus document. The result is not reconciled."""
    data = _mapping(data, "campus")
    properties = _mapping(data.get('properties') or {}, "campus.properties")
    return Campus(
        id=str(data.get('id') or ""),
        version=data.get('version', 1),
        metadata=metadata_from_dict(data.get('metadata'), "campus.metadata"),
        properties=CampusProperties(
            target_pue=_number(properties.get('targetPue')),
            whitespace_ratio=_number(properties.get('whitespaceRatio')),
        ),
        zones=[
            zone_from_dict(zone, f"campus.zones[{position}]")
            for position, zone in enumerate(_sequence(data.get('zones'), "campus.zones"), start=1)
        ],
    )


def params_from_dict(data, fallback: Params = DEFAULT_PARAMS) -> Params:
    """
    Decode params; missing, non-numeric or non-finite fields take the fallback
    value. Supplied numbers are clamped into the shared campus limits.
    """
    data = _mapping({} if data is None else data, "params")
    limits = get_campus_param_limits()
    fallback = finite_params(fallback)

    def number(key: str, default):
        value = data.get(key)
        if not is_finite_number(value):
            return default
        return limits.clamp(key, value)

    return Params(
        critical_load_mw=number('criticalLoadMW', fallback.critical_load_mw),
        whitespace_area_sqft=number('whitespaceAreaSqFt', fallback.whitespace_area_sqft),
        data_halls=round_half_up(number('dataHalls', fallback.data_halls)),
        whitespace_ratio=number('whitespaceRatio', fallback.whitespace_ratio),
        rack_power_density=number('rackPowerDensity', fallback.rack_power_density),
        redundancy=_enum(Redundancy, data.get('redundancy', fallback.redundancy.value), fallback.redundancy),
        pue=number('pue', fallback.pue),
        cooling_type=_enum(CoolingType, data.get('coolingType', fallback.cooling_type.value), fallback.cooling_type),
        containment=_enum(Containment, data.get('containment', fallback.containment.value), fallback.containment),
    )


# ---- files ----

def load_campus_document(path: str) -> Campus:
    """Load a campus from a YAML (or JSON) file."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CampusDocumentError(f"Invalid campus document {path}: {e}") from e

    if isinstance(data, dict) and 'campus' in data:
        data = data['campus']
    campus = campus_from_dict(data)
    logger.info(f"Loaded campus {campus.id or '<unnamed>'} from {path}")
    return campus


def dump_campus_document(campus: Campus, path: str) -> None:
    with open(path, 'w') as f:
        yaml.dump({'campus': campus_to_dict(campus)}, f, default_flow_style=False, sort_keys=False)
    logger.info(f"Saved campus {campus.id} to {path}")
