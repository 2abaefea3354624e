"""
Campus hierarchy entities: Campus -> Zone -> Hall -> Rack.

Instances are treated as immutable values. Every transform in this package
returns new objects built with dataclasses.replace and reuses untouched
branches, so callers can compare references to detect changes.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from .types import Redundancy, CoolingType, Containment
from .units import round_to


@dataclass
class EntityMetadata:
    """Display metadata carried by every entity."""
    name: str
    notes: str = ""
    capacity_target: Optional[float] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class RackProfile:
    """Per-hall rack profile (value type)."""
    rack_density_kw: float
    redundancy: Redundancy
    containment: Containment
    cooling_type: CoolingType


@dataclass
class ZoneRackRules:
    """Rack-count guardrails applied to every hall in a zone."""
    min_rack_count: int
    max_rack_count: int
    default_rack_count: int
    step: int


@dataclass
class CampusProperties:
    target_pue: float
    whitespace_ratio: float


@dataclass
class Rack:
    """Derived leaf entity, regenerated on every reconciliation."""
    id: str
    rack_index: int
    metadata: EntityMetadata


@dataclass
class RackGroup:
    """Named sub-allocation of a hall's racks."""
    id: str
    name: str
    rack_count: int


@dataclass
class Hall:
    id: str
    hall_index: int
    rack_count: int
    rack_start_index: int
    rack_end_index: int
    metadata: EntityMetadata
    profile: RackProfile
    rack_groups: List[RackGroup] = field(default_factory=list)
    racks: List[Rack] = field(default_factory=list)

    @property
    def requested_rack_count(self) -> int:
        """Group sum when groups exist, else the hall's own rack count."""
        if self.rack_groups:
            return sum(group.rack_count for group in self.rack_groups)
        return self.rack_count


@dataclass
class Zone:
    id: str
    zone_index: int
    metadata: EntityMetadata
    hall_defaults: RackProfile
    rack_rules: ZoneRackRules
    halls: List[Hall] = field(default_factory=list)


@dataclass
class Campus:
    id: str
    metadata: EntityMetadata
    properties: CampusProperties
    zones: List[Zone] = field(default_factory=list)
    version: int = 1

    def iter_halls(self):
        """Yield (zone, hall) pairs in zone-then-hall order."""
        for zone in self.zones:
            for hall in zone.halls:
                yield zone, hall

    @property
    def hall_count(self) -> int:
        return sum(len(zone.halls) for zone in self.zones)


def format_campus_id(index: int) -> str:
    return f"C-{index:02d}"


def format_zone_id(index: int) -> str:
    return f"Z-{index:02d}"


def format_hall_id(index: int) -> str:
    return f"H-{index:02d}"


def format_rack_group_id(hall_id: str, index: int) -> str:
    return f"{hall_id}-G-{index:02d}"


def format_rack_id(index: int) -> str:
    return f"R-{index:04d}"


def format_row_id(hall_index: int, row_number: int) -> str:
    return f"H{hall_index:02d}-ROW-{row_number:02d}"


def zone_letter_name(index: int) -> str:
    """'Zone A' for 1, 'Zone B' for 2, ... capped at 'Zone Z'."""
    return f"Zone {chr(64 + min(max(index, 1), 26))}"


def build_rack_range(start_index: int, end_index: int, target_density_kw: float) -> List[Rack]:
    """Build the rack leaves spanning [start_index, end_index] (1-based, inclusive)."""
    if start_index <= 0 or end_index <= 0 or end_index < start_index:
        return []

    capacity_target = round_to(target_density_kw, 2)
    return [
        Rack(
            id=format_rack_id(rack_index),
            rack_index=rack_index,
            metadata=EntityMetadata(
                name=f"Rack {rack_index}",
                capacity_target=capacity_target,
                tags=["rack"],
            ),
        )
        for rack_index in range(start_index, end_index + 1)
    ]
