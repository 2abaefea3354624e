"""
Campus validation.

validate_campus() walks a campus tree exactly as given (possibly before
reconciliation) and reports every structural problem it finds. It never
raises and never modifies the tree; callers decide whether to commit.
"""
import logging
from dataclasses import dataclass
from typing import List

from .campus import Campus
from .parameters import get_campus_param_limits
from .units import is_finite_number

logger = logging.getLogger("CampusValidator")


@dataclass
class CampusValidationIssue:
    path: str
    message: str
    recommendation: str


def _blank(name) -> bool:
    return not (name or "").strip()


def _in_range(limits, key: str, value) -> bool:
    return is_finite_number(value) and limits.contains(key, value)


def validate_campus(campus: Campus) -> List[CampusValidationIssue]:
    limits = get_campus_param_limits()
    issues: List[CampusValidationIssue] = []

    def report(path: str, message: str, recommendation: str) -> None:
        issues.append(CampusValidationIssue(path=path, message=message, recommendation=recommendation))

    if _blank(campus.metadata.name):
        report("Campus name", "Campus name is required.",
               "Enter a short, descriptive campus name.")

    if not _in_range(limits, 'pue', campus.properties.target_pue):
        report("Campus target PUE",
               f"Target PUE must stay between {limits.min('pue')} and {limits.max('pue')}.",
               "Adjust the PUE field to a supported range.")

    if not _in_range(limits, 'whitespaceRatio', campus.properties.whitespace_ratio):
        report("Campus whitespace ratio",
               f"Whitespace ratio must stay between {limits.min('whitespaceRatio')} "
               f"and {limits.max('whitespaceRatio')}.",
               "Update whitespace ratio before applying changes.")

    if not campus.zones:
        report("Zones", "At least one zone is required.", "Add a zone before saving.")

    density_min = limits.min('rackPowerDensity')
    density_max = limits.max('rackPowerDensity')

    for zone_position, zone in enumerate(campus.zones, start=1):
        zone_label = (zone.metadata.name or "").strip() or f"Zone {zone_position}"
        rules = zone.rack_rules

        if _blank(zone.metadata.name):
            report(f"Zone {zone_position}", "Zone name is required.",
                   "Provide a zone name such as Zone A or East Hall Cluster.")

        if not zone.halls:
            report(zone_label, "Each zone must contain at least one hall.",
                   "Add a hall to this zone.")

        if not (rules.min_rack_count <= rules.max_rack_count):
            report(f"{zone_label} rack rules", "Rack rule minimum cannot exceed maximum.",
                   "Set min <= max in zone rack rules.")

        if not rules.min_rack_count > 0:
            report(f"{zone_label} rack rules", "Rack rule minimum must be greater than 0.",
                   "Set the minimum rack count to at least 1.")

        if not rules.step >= 1:
            report(f"{zone_label} rack rules", "Rack step must be greater than 0.",
                   "Set rack step to at least 1.")

        for hall_position, hall in enumerate(zone.halls, start=1):
            hall_label = (hall.metadata.name or "").strip() or hall.id
            rack_count = hall.requested_rack_count

            if _blank(hall.metadata.name):
                report(f"{zone_label} / Hall {hall_position}", "Hall name is required.",
                       "Provide a hall label such as Hall 1.")

            if not (rules.min_rack_count <= rack_count <= rules.max_rack_count):
                report(f"{hall_label} rack count",
                       f"Rack count must stay between {rules.min_rack_count} and {rules.max_rack_count}.",
                       "Adjust hall rack count or zone rack limits.")

            if not _in_range(limits, 'rackPowerDensity', hall.profile.rack_density_kw):
                report(f"{hall_label} density",
                       f"Rack density must stay between {density_min:g} and {density_max:g} kW/rack.",
                       "Set a density within supported viewport limits.")

            if any(_blank(group.name) or not group.rack_count > 0 for group in hall.rack_groups):
                report(f"{hall_label} rack groups",
                       "Rack groups need a name and rack count above 0.",
                       "Fix group names/counts or switch to single rack count.")

    if issues:
        logger.debug(f"Campus {campus.id}: {len(issues)} validation issue(s)")
    return issues
