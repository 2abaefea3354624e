import logging

from .campus import (
    Campus, CampusProperties, EntityMetadata, Hall, RackGroup, RackProfile, Zone, ZoneRackRules,
    format_campus_id, format_hall_id, format_rack_group_id, format_zone_id,
)
from .datacenter import compute_data_center
from .parameters import Params
from .reconciler import reconcile_campus
from .units import round_to

logger = logging.getLogger("Generators")

DEFAULT_ZONE_MAX_RACKS = 450
DEFAULT_HALL_RACKS = 120
DEFAULT_RACK_STEP = 2


class CampusGenerator:
    """
    Generates a default campus from a flat parameter baseline:
    one zone holding the halls the capacity model sizes for those params.
    """

    def __init__(self, params: Params):
        self._params = params

    def _profile(self) -> RackProfile:
        return RackProfile(
            rack_density_kw=round_to(self._params.rack_power_density, 2),
            redundancy=self._params.redundancy,
            containment=self._params.containment,
            cooling_type=self._params.cooling_type,
        )

    def generate(self) -> Campus:
        params = self._params
        model = compute_data_center(params)
        profile = self._profile()

        halls = []
        for hall in model.halls:
            hall_id = format_hall_id(hall.hall_index)
            halls.append(Hall(
                id=hall_id,
                hall_index=hall.hall_index,
                rack_count=hall.rack_count,
                rack_start_index=hall.rack_start_index,
                rack_end_index=hall.rack_end_index,
                metadata=EntityMetadata(
                    name=f"Hall {hall.hall_index}",
                    notes=f"{hall.rack_count:,} modeled racks",
                    capacity_target=hall.capacity,
                    tags=["hall"],
                ),
                profile=profile,
                rack_groups=[RackGroup(
                    id=format_rack_group_id(hall_id, 1),
                    name="Default Group",
                    rack_count=hall.rack_count,
                )] if hall.rack_count > 0 else [],
            ))

        largest_hall = max((hall.rack_count for hall in model.halls), default=0)
        first_hall = model.halls[0].rack_count if model.halls else 0
        zone = Zone(
            id=format_zone_id(1),
            zone_index=1,
            metadata=EntityMetadata(
                name="Zone A",
                notes="Default zone generated from the parameter baseline.",
                capacity_target=model.rack_count,
                tags=["default-zone"],
            ),
            hall_defaults=profile,
            rack_rules=ZoneRackRules(
                min_rack_count=1,
                max_rack_count=max(DEFAULT_ZONE_MAX_RACKS, largest_hall),
                default_rack_count=first_hall or DEFAULT_HALL_RACKS,
                step=DEFAULT_RACK_STEP,
            ),
            halls=halls,
        )

        campus = Campus(
            id=format_campus_id(1),
            metadata=EntityMetadata(
                name="Campus C-01",
                notes="Generated from parameter baseline.",
                capacity_target=round_to(params.critical_load_mw, 2),
                tags=["generated", "default"],
            ),
            properties=CampusProperties(
                target_pue=params.pue,
                whitespace_ratio=params.whitespace_ratio,
            ),
            zones=[zone],
        )

        logger.info(f"Generated campus {campus.id}: {len(halls)} halls, {model.rack_count} racks")
        return reconcile_campus(campus)


def build_default_campus_from_params(params: Params) -> Campus:
    """Deterministic default campus for a parameter baseline."""
    return CampusGenerator(params).generate()
