"""
Parameter-only capacity and geometry model.

Turns a flat Params record into hall footprints, rack capacity, a rack
distribution across halls and row packing inside each hall. The campus-aware
aggregator reuses this model as its geometry oracle.
"""
import logging
import math
from dataclasses import dataclass, field, replace
from typing import List

from .campus import format_hall_id, format_row_id
from .parameters import Params, finite_params
from .units import clamp, clamp_min, round_half_up, round_to

logger = logging.getLogger("CapacityModel")

HALL_ASPECT_RATIO = 2
SERVICE_CLEARANCE_FT = 4
END_CLEARANCE_FT = 4
ROW_PITCH_FT = 10
RACK_WIDTH_FT = 2
TARGET_RACKS_PER_ROW = 18


@dataclass
class FacilityLoadSummary:
    critical_it_mw: float
    total_facility_mw: float
    non_it_overhead_mw: float


@dataclass
class AreaSummary:
    whitespace_sqft: float
    gross_facility_sqft: float
    hall_whitespace_sqft: float
    hall_gross_sqft: float


@dataclass
class HallRow:
    id: str
    row_number: int
    rack_count: int


@dataclass
class RowPackingSummary:
    row_count: int
    max_rows: int
    target_racks_per_row: int
    max_racks_per_row: int


@dataclass
class Dimensions:
    width: float
    length: float


@dataclass
class HallDescription:
    id: str
    hall_index: int
    rack_count: int
    rack_start_index: int
    rack_end_index: int
    whitespace_sqft: float
    gross_sqft: float
    capacity: int
    dimensions_ft: Dimensions
    packing: RowPackingSummary
    rows: List[HallRow] = field(default_factory=list)


@dataclass
class DataCenterModel:
    facility_load: FacilityLoadSummary
    area: AreaSummary
    rack_count: int
    rack_count_from_power: int
    rack_capacity_by_space: int
    hall_rack_distribution: List[int] = field(default_factory=list)
    halls: List[HallDescription] = field(default_factory=list)


@dataclass
class HallGeometry:
    width_ft: float
    length_ft: float
    max_rows: int
    max_racks_per_row: int
    capacity: int


def sanitize_params(params: Params) -> Params:
    """Clamp inputs into the domain the geometry math accepts.

    Non-finite fields take the default parameter values before clamping.
    """
    params = finite_params(params)
    return replace(
        params,
        critical_load_mw=clamp_min(params.critical_load_mw, 0.1),
        whitespace_area_sqft=clamp_min(params.whitespace_area_sqft, 1),
        data_halls=max(1, round_half_up(params.data_halls)),
        whitespace_ratio=clamp(params.whitespace_ratio, 0.05, 0.95),
        rack_power_density=clamp_min(params.rack_power_density, 0.1),
        pue=clamp_min(params.pue, 1),
    )


def derive_hall_geometry(hall_whitespace_sqft: float) -> HallGeometry:
    """Fixed-aspect (1:2) rectangular hall sized from its whitespace share."""
    width_ft = math.sqrt(hall_whitespace_sqft / HALL_ASPECT_RATIO)
    length_ft = width_ft * HALL_ASPECT_RATIO

    usable_width_ft = max(ROW_PITCH_FT, width_ft - SERVICE_CLEARANCE_FT * 2)
    usable_length_ft = max(RACK_WIDTH_FT, length_ft - END_CLEARANCE_FT * 2)

    max_rows = max(1, math.floor(usable_width_ft / ROW_PITCH_FT))
    max_racks_per_row = max(1, math.floor(usable_length_ft / RACK_WIDTH_FT))

    return HallGeometry(
        width_ft=width_ft,
        length_ft=length_ft,
        max_rows=max_rows,
        max_racks_per_row=max_racks_per_row,
        capacity=max_rows * max_racks_per_row,
    )


def distribute_racks(total_racks: int, capacities: List[int]) -> List[int]:
    """
    Spread total_racks across halls in order without exceeding any capacity.

    Every hall first receives min(floor(total / halls), capacity). Any shortfall
    is then handed out one rack at a time, round-robin in hall order, to halls
    that still have headroom. Partial fulfilment is allowed when space runs out.
    """
    if not capacities:
        return []

    distribution = [0] * len(capacities)
    if total_racks <= 0:
        return distribution

    base_share = total_racks // len(capacities)
    remaining = total_racks

    for index, capacity in enumerate(capacities):
        allocated = min(base_share, capacity)
        distribution[index] = allocated
        remaining -= allocated

    while remaining > 0:
        placed_rack = False
        for index, capacity in enumerate(capacities):
            if remaining == 0:
                break
            if distribution[index] < capacity:
                distribution[index] += 1
                remaining -= 1
                placed_rack = True

        if not placed_rack:
            logger.debug(f"Rack distribution short by {remaining}: no hall has headroom")
            break

    return distribution


def pack_rows(hall_index: int, rack_count: int, max_rows: int, max_racks_per_row: int):
    """
    Pack a hall's racks into rows.

    Returns (rows, row_count). The row count honours both the physical minimum
    and the ergonomic target of TARGET_RACKS_PER_ROW, capped by max_rows; racks
    are spread evenly with the remainder going one each to the first rows.
    """
    if rack_count <= 0:
        return [], 0

    max_rows = max(1, max_rows)
    max_racks_per_row = max(1, max_racks_per_row)

    minimum_rows_required = math.ceil(rack_count / max_racks_per_row)
    target_rows = math.ceil(rack_count / TARGET_RACKS_PER_ROW)
    row_count = min(max_rows, max(1, minimum_rows_required, target_rows))

    base_racks_per_row, remainder = divmod(rack_count, row_count)

    rows = []
    for row_number in range(1, row_count + 1):
        row_racks = base_racks_per_row + (1 if row_number <= remainder else 0)
        rows.append(HallRow(
            id=format_row_id(hall_index, row_number),
            row_number=row_number,
            rack_count=row_racks,
        ))

    return rows, row_count


def compute_data_center(input_params: Params) -> DataCenterModel:
    """
    Convert flat parameters into a deterministic data center description.
    Out-of-range inputs are clamped, never rejected.
    """
    params = sanitize_params(input_params)
    hall_count = params.data_halls

    critical_it_mw = params.critical_load_mw
    total_facility_mw = critical_it_mw * params.pue
    non_it_overhead_mw = max(0.0, total_facility_mw - critical_it_mw)

    whitespace_sqft = params.whitespace_area_sqft
    gross_facility_sqft = whitespace_sqft / params.whitespace_ratio
    hall_whitespace_sqft = whitespace_sqft / hall_count
    hall_gross_sqft = gross_facility_sqft / hall_count

    # Equal split: every hall shares the same geometry.
    geometry = derive_hall_geometry(hall_whitespace_sqft)
    capacities = [geometry.capacity] * hall_count
    rack_capacity_by_space = sum(capacities)

    rack_count_from_power = max(
        1, round_half_up((critical_it_mw * 1000) / params.rack_power_density)
    )
    rack_count = min(rack_count_from_power, rack_capacity_by_space)

    hall_rack_distribution = distribute_racks(rack_count, capacities)

    rack_cursor = 1
    halls = []
    for index, hall_rack_count in enumerate(hall_rack_distribution):
        hall_index = index + 1
        rows, row_count = pack_rows(
            hall_index, hall_rack_count, geometry.max_rows, geometry.max_racks_per_row
        )

        if hall_rack_count > 0:
            rack_start_index = rack_cursor
            rack_end_index = rack_cursor + hall_rack_count - 1
            rack_cursor = rack_end_index + 1
        else:
            rack_start_index = rack_end_index = 0

        halls.append(HallDescription(
            id=format_hall_id(hall_index),
            hall_index=hall_index,
            rack_count=hall_rack_count,
            rack_start_index=rack_start_index,
            rack_end_index=rack_end_index,
            whitespace_sqft=round_to(hall_whitespace_sqft, 2),
            gross_sqft=round_to(hall_gross_sqft, 2),
            capacity=geometry.capacity,
            dimensions_ft=Dimensions(
                width=round_to(geometry.width_ft, 2),
                length=round_to(geometry.length_ft, 2),
            ),
            packing=RowPackingSummary(
                row_count=row_count,
                max_rows=geometry.max_rows,
                target_racks_per_row=TARGET_RACKS_PER_ROW,
                max_racks_per_row=geometry.max_racks_per_row,
            ),
            rows=rows,
        ))

    return DataCenterModel(
        facility_load=FacilityLoadSummary(
            critical_it_mw=round_to(critical_it_mw, 2),
            total_facility_mw=round_to(total_facility_mw, 2),
            non_it_overhead_mw=round_to(non_it_overhead_mw, 2),
        ),
        area=AreaSummary(
            whitespace_sqft=round_to(whitespace_sqft, 2),
            gross_facility_sqft=round_to(gross_facility_sqft, 2),
            hall_whitespace_sqft=round_to(hall_whitespace_sqft, 2),
            hall_gross_sqft=round_to(hall_gross_sqft, 2),
        ),
        rack_count=rack_count,
        rack_count_from_power=rack_count_from_power,
        rack_capacity_by_space=rack_capacity_by_space,
        hall_rack_distribution=hall_rack_distribution,
        halls=halls,
    )
