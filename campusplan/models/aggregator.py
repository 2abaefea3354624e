"""
Campus-aware model aggregation.

compute_campus_model() reconciles a campus, derives flat params from it, runs
the parameter-only capacity model as a geometry oracle and then re-derives
every hall from the campus's own rack counts. The result carries per-hall,
per-zone and campus-wide summaries plus three projections of the same
numbers: a flat data center model, an explorer tree and a specs lookup.

Results are memoized per campus object (identity, not equality) and per
fallback params, so repeated calls with the same inputs return the same object.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Generic, List, Optional, Type, TypeVar

from .cache import CampusModelCache, create_params_cache_key, get_model_cache
from .campus import Campus
from .datacenter import (
    AreaSummary, DataCenterModel, Dimensions, FacilityLoadSummary, HallDescription,
    HallRow, RowPackingSummary, TARGET_RACKS_PER_ROW, compute_data_center, pack_rows,
)
from .derivation import derive_params_from_reconciled_campus
from .parameters import Params, finite_params
from .reconciler import reconcile_campus
from .types import Redundancy, CoolingType, Containment
from .units import round_half_up, round_to

logger = logging.getLogger("CampusModel")

P = TypeVar('P')


@dataclass
class ProfileMixEntry(Generic[P]):
    profile: P
    hall_count: int
    rack_count: int


@dataclass
class ProfileMixSummary(Generic[P]):
    dominant_profile: P
    entries: List[ProfileMixEntry] = field(default_factory=list)


@dataclass
class ProfileMixes:
    redundancy: ProfileMixSummary
    cooling_type: ProfileMixSummary
    containment: ProfileMixSummary


@dataclass
class HallProfiles:
    redundancy: Redundancy
    cooling_type: CoolingType
    containment: Containment


@dataclass
class ZoneArea:
    whitespace_sqft: float
    gross_sqft: float


@dataclass
class HallAggregateSummary:
    id: str
    hall_index: int
    zone_id: str
    zone_index: int
    name: str
    rack_count: int
    capacity: int
    rack_capacity_by_space: int
    rack_density_kw: float
    utilization: float
    rack_start_index: int
    rack_end_index: int
    facility_load: FacilityLoadSummary
    area: ZoneArea
    profiles: HallProfiles
    dimensions_ft: Dimensions
    packing: RowPackingSummary
    rows: List[HallRow] = field(default_factory=list)


@dataclass
class ZoneAggregateSummary:
    id: str
    zone_index: int
    name: str
    hall_count: int
    rack_count: int
    rack_capacity_by_space: int
    utilization: float
    rack_count_from_power: int
    facility_load: FacilityLoadSummary
    area: ZoneArea
    profiles: ProfileMixes
    halls: List[HallAggregateSummary] = field(default_factory=list)


@dataclass
class CampusAggregateSummary:
    id: str
    name: str
    zone_count: int
    hall_count: int
    rack_count: int
    rack_capacity_by_space: int
    utilization: float
    rack_count_from_power: int
    facility_load: FacilityLoadSummary
    area: AreaSummary
    profiles: ProfileMixes


@dataclass
class ExplorerHallSummary:
    id: str
    name: str
    hall_index: int
    rack_count: int
    rack_capacity_by_space: int
    utilization: float


@dataclass
class ExplorerZoneSummary:
    id: str
    name: str
    zone_index: int
    hall_count: int
    rack_count: int
    halls: List[ExplorerHallSummary] = field(default_factory=list)


@dataclass
class CampusExplorerSummary:
    campus_id: str
    campus_name: str
    zone_count: int
    hall_count: int
    rack_count: int
    zones: List[ExplorerZoneSummary] = field(default_factory=list)


@dataclass
class CampusSpecsSummary:
    campus: CampusAggregateSummary
    zones_by_id: Dict[str, ZoneAggregateSummary] = field(default_factory=dict)
    halls_by_id: Dict[str, HallAggregateSummary] = field(default_factory=dict)


@dataclass
class CampusRuntimeSummary:
    data_center: DataCenterModel
    zone_order: List[str] = field(default_factory=list)
    hall_order: List[str] = field(default_factory=list)
    hall_to_zone: Dict[str, str] = field(default_factory=dict)


@dataclass
class CampusModel:
    params: Params
    campus: CampusAggregateSummary
    zones: List[ZoneAggregateSummary]
    halls: List[HallAggregateSummary]
    explorer: CampusExplorerSummary
    specs: CampusSpecsSummary
    runtime: CampusRuntimeSummary


class ProfileMixCounter:
    """Tallies halls and racks per categorical profile value."""

    def __init__(self, enum_cls: Type):
        self._enum_cls = enum_cls
        self._counts: Dict = {}

    def add(self, profile, rack_count: int) -> None:
        hall_count, racks = self._counts.get(profile, (0, 0))
        self._counts[profile] = (hall_count + 1, racks + rack_count)

    def dominant(self, fallback):
        """Most halls wins; ties go to the fallback, then to canonical enum order."""
        dominant = fallback
        best_count = self._counts[fallback][0] if fallback in self._counts else -1
        for value in self._enum_cls:
            hall_count = self._counts.get(value, (0, 0))[0]
            if hall_count > best_count:
                dominant = value
                best_count = hall_count
        return dominant

    def summary(self, fallback) -> ProfileMixSummary:
        entries = [
            ProfileMixEntry(profile=value, hall_count=counts[0], rack_count=counts[1])
            for value, counts in ((v, self._counts.get(v)) for v in self._enum_cls)
            if counts and counts[0] > 0
        ]
        dominant = self.dominant(fallback)
        if not entries:
            entries = [ProfileMixEntry(profile=dominant, hall_count=0, rack_count=0)]
        return ProfileMixSummary(dominant_profile=dominant, entries=entries)


class _Totals:
    """Running sums shared by zone and campus accumulation."""

    def __init__(self):
        self.hall_count = 0
        self.rack_count = 0
        self.rack_capacity_by_space = 0
        self.critical_kw = 0.0
        self.critical_it_mw = 0.0
        self.total_facility_mw = 0.0
        self.non_it_overhead_mw = 0.0
        self.whitespace_sqft = 0.0
        self.gross_sqft = 0.0
        self.redundancy = ProfileMixCounter(Redundancy)
        self.cooling_type = ProfileMixCounter(CoolingType)
        self.containment = ProfileMixCounter(Containment)

    def add(self, hall: HallAggregateSummary, hall_critical_kw: float) -> None:
        self.hall_count += 1
        self.rack_count += hall.rack_count
        self.rack_capacity_by_space += hall.capacity
        self.critical_kw += hall_critical_kw
        self.critical_it_mw += hall.facility_load.critical_it_mw
        self.total_facility_mw += hall.facility_load.total_facility_mw
        self.non_it_overhead_mw += hall.facility_load.non_it_overhead_mw
        self.whitespace_sqft += hall.area.whitespace_sqft
        self.gross_sqft += hall.area.gross_sqft
        self.redundancy.add(hall.profiles.redundancy, hall.rack_count)
        self.cooling_type.add(hall.profiles.cooling_type, hall.rack_count)
        self.containment.add(hall.profiles.containment, hall.rack_count)

    @property
    def utilization(self) -> float:
        if self.rack_capacity_by_space <= 0:
            return 0
        return round_to(self.rack_count / self.rack_capacity_by_space, 4)

    def rack_count_from_power(self) -> int:
        if self.rack_count <= 0:
            return 0
        average_density = self.critical_kw / self.rack_count
        return max(1, round_half_up(self.critical_kw / max(average_density, 0.1)))

    def facility_load(self) -> FacilityLoadSummary:
        return FacilityLoadSummary(
            critical_it_mw=round_to(self.critical_it_mw, 2),
            total_facility_mw=round_to(self.total_facility_mw, 2),
            non_it_overhead_mw=round_to(self.non_it_overhead_mw, 2),
        )

    def profile_mixes(self, redundancy, cooling_type, containment) -> ProfileMixes:
        return ProfileMixes(
            redundancy=self.redundancy.summary(redundancy),
            cooling_type=self.cooling_type.summary(cooling_type),
            containment=self.containment.summary(containment),
        )


def build_facility_load(critical_kw: float, pue: float) -> FacilityLoadSummary:
    critical_it_mw = round_to(critical_kw / 1000, 2)
    total_facility_mw = round_to(critical_it_mw * pue, 2)
    non_it_overhead_mw = round_to(max(0.0, total_facility_mw - critical_it_mw), 2)
    return FacilityLoadSummary(
        critical_it_mw=critical_it_mw,
        total_facility_mw=total_facility_mw,
        non_it_overhead_mw=non_it_overhead_mw,
    )


def _build_campus_model(campus: Campus, fallback: Params) -> CampusModel:
    normalized = reconcile_campus(campus)
    params = derive_params_from_reconciled_campus(normalized, fallback)
    base = compute_data_center(params)

    hall_descriptions: List[HallDescription] = []
    hall_summaries: List[HallAggregateSummary] = []
    zone_summaries: List[ZoneAggregateSummary] = []
    hall_to_zone: Dict[str, str] = {}
    campus_totals = _Totals()

    rack_cursor = 1
    base_hall_index = 0

    for zone in normalized.zones:
        zone_totals = _Totals()
        zone_halls: List[HallAggregateSummary] = []

        for hall in zone.halls:
            base_hall: Optional[HallDescription] = None
            if base_hall_index < len(base.halls):
                base_hall = base.halls[base_hall_index]
            base_hall_index += 1

            # The oracle supplies shape and capacity; the campus decides the count.
            capacity = base_hall.capacity if base_hall else hall.rack_count
            assigned_rack_count = min(hall.rack_count, capacity)
            if assigned_rack_count > 0:
                rack_start_index = rack_cursor
                rack_end_index = rack_cursor + assigned_rack_count - 1
                rack_cursor = rack_end_index + 1
            else:
                rack_start_index = rack_end_index = 0

            if base_hall:
                max_rows = base_hall.packing.max_rows
                max_racks_per_row = base_hall.packing.max_racks_per_row
                dimensions = base_hall.dimensions_ft
                whitespace_sqft = round_to(base_hall.whitespace_sqft, 2)
                gross_sqft = round_to(base_hall.gross_sqft, 2)
            else:
                max_rows = max(1, math.ceil(assigned_rack_count / TARGET_RACKS_PER_ROW))
                max_racks_per_row = TARGET_RACKS_PER_ROW
                dimensions = Dimensions(width=0, length=0)
                whitespace_sqft = gross_sqft = 0

            rows, row_count = pack_rows(hall.hall_index, assigned_rack_count, max_rows, max_racks_per_row)
            packing = RowPackingSummary(
                row_count=row_count,
                max_rows=max_rows,
                target_racks_per_row=TARGET_RACKS_PER_ROW,
                max_racks_per_row=max_racks_per_row,
            )
            hall_critical_kw = assigned_rack_count * hall.profile.rack_density_kw
            facility_load = build_facility_load(hall_critical_kw, params.pue)

            hall_descriptions.append(HallDescription(
                id=hall.id,
                hall_index=hall.hall_index,
                rack_count=assigned_rack_count,
                rack_start_index=rack_start_index,
                rack_end_index=rack_end_index,
                whitespace_sqft=whitespace_sqft,
                gross_sqft=gross_sqft,
                capacity=capacity,
                dimensions_ft=dimensions,
                packing=packing,
                rows=rows,
            ))

            hall_summary = HallAggregateSummary(
                id=hall.id,
                hall_index=hall.hall_index,
                zone_id=zone.id,
                zone_index=zone.zone_index,
                name=hall.metadata.name or hall.id,
                rack_count=assigned_rack_count,
                capacity=capacity,
                rack_capacity_by_space=capacity,
                rack_density_kw=hall.profile.rack_density_kw,
                utilization=round_to(assigned_rack_count / capacity, 4) if capacity > 0 else 0,
                rack_start_index=rack_start_index,
                rack_end_index=rack_end_index,
                facility_load=facility_load,
                area=ZoneArea(whitespace_sqft=whitespace_sqft, gross_sqft=gross_sqft),
                profiles=HallProfiles(
                    redundancy=hall.profile.redundancy,
                    cooling_type=hall.profile.cooling_type,
                    containment=hall.profile.containment,
                ),
                dimensions_ft=dimensions,
                packing=packing,
                rows=rows,
            )
            hall_summaries.append(hall_summary)
            zone_halls.append(hall_summary)
            hall_to_zone[hall.id] = zone.id

            zone_totals.add(hall_summary, hall_critical_kw)
            campus_totals.add(hall_summary, hall_critical_kw)

        # Zone mix ties lean toward the zone's first hall, then its defaults.
        lead = zone_halls[0].profiles if zone_halls else zone.hall_defaults
        zone_summaries.append(ZoneAggregateSummary(
            id=zone.id,
            zone_index=zone.zone_index,
            name=zone.metadata.name or zone.id,
            hall_count=zone_totals.hall_count,
            rack_count=zone_totals.rack_count,
            rack_capacity_by_space=zone_totals.rack_capacity_by_space,
            utilization=zone_totals.utilization,
            rack_count_from_power=zone_totals.rack_count_from_power(),
            facility_load=zone_totals.facility_load(),
            area=ZoneArea(
                whitespace_sqft=round_to(zone_totals.whitespace_sqft, 2),
                gross_sqft=round_to(zone_totals.gross_sqft, 2),
            ),
            profiles=zone_totals.profile_mixes(lead.redundancy, lead.cooling_type, lead.containment),
            halls=zone_halls,
        ))

    hall_count = len(hall_descriptions)
    facility_load = campus_totals.facility_load()
    area = AreaSummary(
        whitespace_sqft=round_to(campus_totals.whitespace_sqft, 2),
        gross_facility_sqft=round_to(campus_totals.gross_sqft, 2),
        hall_whitespace_sqft=round_to(campus_totals.whitespace_sqft / hall_count, 2) if hall_count else 0,
        hall_gross_sqft=round_to(campus_totals.gross_sqft / hall_count, 2) if hall_count else 0,
    )
    rack_count_from_power = campus_totals.rack_count_from_power()

    data_center = DataCenterModel(
        facility_load=facility_load,
        area=area,
        rack_count=campus_totals.rack_count,
        rack_count_from_power=rack_count_from_power,
        rack_capacity_by_space=campus_totals.rack_capacity_by_space,
        hall_rack_distribution=[hall.rack_count for hall in hall_descriptions],
        halls=hall_descriptions,
    )

    campus_summary = CampusAggregateSummary(
        id=normalized.id,
        name=normalized.metadata.name or normalized.id,
        zone_count=len(zone_summaries),
        hall_count=hall_count,
        rack_count=campus_totals.rack_count,
        rack_capacity_by_space=campus_totals.rack_capacity_by_space,
        utilization=campus_totals.utilization,
        rack_count_from_power=rack_count_from_power,
        facility_load=facility_load,
        area=area,
        profiles=campus_totals.profile_mixes(params.redundancy, params.cooling_type, params.containment),
    )

    explorer = CampusExplorerSummary(
        campus_id=campus_summary.id,
        campus_name=campus_summary.name,
        zone_count=campus_summary.zone_count,
        hall_count=campus_summary.hall_count,
        rack_count=campus_summary.rack_count,
        zones=[
            ExplorerZoneSummary(
                id=zone_summary.id,
                name=zone_summary.name,
                zone_index=zone_summary.zone_index,
                hall_count=zone_summary.hall_count,
                rack_count=zone_summary.rack_count,
                halls=[
                    ExplorerHallSummary(
                        id=hall_summary.id,
                        name=hall_summary.name,
                        hall_index=hall_summary.hall_index,
                        rack_count=hall_summary.rack_count,
                        rack_capacity_by_space=hall_summary.rack_capacity_by_space,
                        utilization=hall_summary.utilization,
                    )
                    for hall_summary in zone_summary.halls
                ],
            )
            for zone_summary in zone_summaries
        ],
    )

    return CampusModel(
        params=params,
        campus=campus_summary,
        zones=zone_summaries,
        halls=hall_summaries,
        explorer=explorer,
        specs=CampusSpecsSummary(
            campus=campus_summary,
            zones_by_id={zone_summary.id: zone_summary for zone_summary in zone_summaries},
            halls_by_id={hall_summary.id: hall_summary for hall_summary in hall_summaries},
        ),
        runtime=CampusRuntimeSummary(
            data_center=data_center,
            zone_order=[zone_summary.id for zone_summary in zone_summaries],
            hall_order=[hall_summary.id for hall_summary in hall_summaries],
            hall_to_zone=hall_to_zone,
        ),
    )


def compute_campus_model(campus: Campus, fallback: Params,
                         cache: Optional[CampusModelCache] = None) -> CampusModel:
    """
    Memoized campus model.

    The same campus object with value-equal fallback params returns the same
    model object. Campus trees are never mutated in place, so identity is a
    safe cache key.
    """
    cache = cache if cache is not None else get_model_cache()
    cache_key = create_params_cache_key(fallback)

    cached = cache.get(campus, cache_key)
    if cached is not None:
        logger.debug(f"Campus model cache hit for {campus.id}")
        return cached

    logger.debug(f"Campus model cache miss for {campus.id}; computing")
    model = _build_campus_model(campus, finite_params(fallback))
    return cache.put(campus, cache_key, model)


def compute_data_center_from_campus(campus: Campus, fallback: Params,
                                    cache: Optional[CampusModelCache] = None) -> DataCenterModel:
    """Flat data center projection of the campus model."""
    return compute_campus_model(campus, fallback, cache).runtime.data_center
