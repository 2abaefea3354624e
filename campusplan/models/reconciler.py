"""
Campus reconciliation.

reconcile_campus() turns any campus tree into one that satisfies the
structural invariants: sane zone rack rules, hall rack counts inside the
zone limits, rack groups that sum to the hall count, clamped densities and
contiguous 1-based hall and rack numbering across the whole campus.
It never fails and never mutates its input.
"""
import logging
from dataclasses import replace
from typing import List

from .campus import (
    Campus, CampusProperties, RackGroup, ZoneRackRules,
    build_rack_range, format_hall_id, format_rack_group_id,
)
from .parameters import get_campus_param_limits
from .units import clamp, round_to, to_float, to_positive_int

logger = logging.getLogger("CampusReconciler")


def sanitize_rack_rules(rules: ZoneRackRules) -> ZoneRackRules:
    min_rack_count = to_positive_int(rules.min_rack_count, 1)
    max_rack_count = max(min_rack_count, to_positive_int(rules.max_rack_count, min_rack_count))
    step = to_positive_int(rules.step, 1)
    default_rack_count = int(clamp(
        to_positive_int(rules.default_rack_count, min_rack_count),
        min_rack_count,
        max_rack_count,
    ))
    return ZoneRackRules(
        min_rack_count=min_rack_count,
        max_rack_count=max_rack_count,
        default_rack_count=default_rack_count,
        step=step,
    )


def normalize_rack_groups(groups: List[RackGroup], hall_id: str) -> List[RackGroup]:
    """Fill blank ids/names and coerce counts to positive integers."""
    return [
        RackGroup(
            id=group.id or format_rack_group_id(hall_id, index),
            name=(group.name or "").strip() or f"Group {index}",
            rack_count=to_positive_int(group.rack_count, 1),
        )
        for index, group in enumerate(groups, start=1)
    ]


def align_group_counts(groups: List[RackGroup], target_rack_count: int) -> List[RackGroup]:
    """
    Re-align group counts so they sum to target_rack_count.

    A shortfall goes entirely to the first group. A surplus is removed from the
    last group backwards, never taking a group below 1; whatever is left after
    that comes off the first group. When there are more groups than racks the
    trailing groups are dropped so the sum still matches.
    """
    if not groups:
        return groups

    counts = [group.rack_count for group in groups]
    current_total = sum(counts)

    if current_total < target_rack_count:
        counts[0] += target_rack_count - current_total
    elif current_total > target_rack_count:
        for index in range(len(counts) - 1, -1, -1):
            if current_total <= target_rack_count:
                break
            removable = min(current_total - target_rack_count, max(0, counts[index] - 1))
            counts[index] -= removable
            current_total -= removable

        if current_total > target_rack_count:
            counts[0] = max(1, counts[0] - (current_total - target_rack_count))

    aligned = [
        group if group.rack_count == count else replace(group, rack_count=count)
        for group, count in zip(groups, counts)
    ]

    if sum(counts) > target_rack_count:
        # Only reachable with more groups than racks; every group is already at 1.
        logger.debug(f"Dropping {len(aligned) - target_rack_count} rack group(s) to fit {target_rack_count} racks")
        aligned = aligned[:max(1, target_rack_count)]

    return aligned


def clamp_rack_density(value, fallback: float) -> float:
    limits = get_campus_param_limits()
    density = to_float(value, fallback)
    return round_to(limits.clamp('rackPowerDensity', density), 2)


def reconcile_properties(properties: CampusProperties) -> CampusProperties:
    limits = get_campus_param_limits()
    target_pue = to_float(properties.target_pue, limits.default('pue'))
    whitespace_ratio = to_float(properties.whitespace_ratio, limits.default('whitespaceRatio'))
    return CampusProperties(
        target_pue=round_to(limits.clamp('pue', target_pue), 2),
        whitespace_ratio=round_to(limits.clamp('whitespaceRatio', whitespace_ratio), 2),
    )


def reconcile_campus(campus: Campus) -> Campus:
    """Return a new campus satisfying every structural invariant."""
    limits = get_campus_param_limits()
    rack_cursor = 1
    hall_cursor = 1

    zones = []
    for zone_position, zone in enumerate(campus.zones, start=1):
        rack_rules = sanitize_rack_rules(zone.rack_rules)
        density_fallback = to_float(zone.hall_defaults.rack_density_kw, limits.default('rackPowerDensity'))

        halls = []
        for hall in zone.halls:
            hall_index = hall_cursor
            hall_cursor += 1
            hall_id = hall.id or format_hall_id(hall_index)

            normalized_groups = normalize_rack_groups(hall.rack_groups, hall_id)
            if normalized_groups:
                requested_rack_count = sum(group.rack_count for group in normalized_groups)
            else:
                requested_rack_count = to_positive_int(hall.rack_count, 1)

            rack_count = int(clamp(requested_rack_count, rack_rules.min_rack_count, rack_rules.max_rack_count))
            if rack_count != requested_rack_count:
                logger.debug(f"{hall_id}: rack count {requested_rack_count} clamped to {rack_count}")
            rack_groups = align_group_counts(normalized_groups, rack_count)

            rack_density_kw = clamp_rack_density(hall.profile.rack_density_kw, density_fallback)

            if rack_count > 0:
                rack_start_index = rack_cursor
                rack_end_index = rack_cursor + rack_count - 1
                rack_cursor = rack_end_index + 1
            else:
                rack_start_index = rack_end_index = 0

            halls.append(replace(
                hall,
                id=hall_id,
                hall_index=hall_index,
                rack_count=rack_count,
                rack_start_index=rack_start_index,
                rack_end_index=rack_end_index,
                rack_groups=rack_groups,
                profile=replace(hall.profile, rack_density_kw=rack_density_kw),
                racks=build_rack_range(rack_start_index, rack_end_index, rack_density_kw),
            ))

        zones.append(replace(
            zone,
            zone_index=zone_position,
            rack_rules=rack_rules,
            halls=halls,
        ))

    return replace(
        campus,
        properties=reconcile_properties(campus.properties),
        zones=zones,
    )
