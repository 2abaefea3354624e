import random
from dataclasses import replace

import pytest

from campusplan.models import (
    DEFAULT_PARAMS, Campus, CampusModelCache, CampusProperties, Containment, CoolingType,
    EntityMetadata, Hall, RackGroup, RackProfile, Redundancy, Zone, ZoneRackRules,
    build_default_campus_from_params, reconcile_campus,
)


def make_hall(hall_id: str, hall_index: int, rack_count: int, profile: RackProfile) -> Hall:
    return Hall(
        id=hall_id,
        hall_index=hall_index,
        rack_count=rack_count,
        rack_start_index=0,
        rack_end_index=0,
        metadata=EntityMetadata(name=f"Hall {hall_index}", notes=f"{rack_count:,} modeled racks"),
        profile=profile,
        rack_groups=[RackGroup(id=f"{hall_id}-G-01", name="Default Group", rack_count=rack_count)],
    )


def build_campus_fixture() -> Campus:
    """Two zones, four halls with mixed profiles: 336 racks, 5.35 MW critical."""
    base = build_default_campus_from_params(DEFAULT_PARAMS)
    hot_air = RackProfile(8, Redundancy.N_PLUS_1, Containment.HOT_AISLE, CoolingType.AIR_COOLED)
    cold_dlc = RackProfile(20, Redundancy.TWO_N, Containment.COLD_AISLE, CoolingType.DLC)

    zone_a = Zone(
        id="Z-01",
        zone_index=1,
        metadata=EntityMetadata(name="Zone A"),
        hall_defaults=hot_air,
        rack_rules=ZoneRackRules(min_rack_count=4, max_rack_count=250, default_rack_count=80, step=2),
        halls=[
            make_hall("H-01", 1, 80, hot_air),
            make_hall("H-02", 2, 96, replace(hot_air, rack_density_kw=12)),
        ],
    )
    zone_b = Zone(
        id="Z-02",
        zone_index=2,
        metadata=EntityMetadata(name="Zone B"),
        hall_defaults=cold_dlc,
        rack_rules=ZoneRackRules(min_rack_count=4, max_rack_count=300, default_rack_count=70, step=2),
        halls=[
            make_hall("H-03", 3, 70, cold_dlc),
            make_hall("H-04", 4, 90, RackProfile(
                24, Redundancy.N, Containment.FULL_ENCLOSURE, CoolingType.HYBRID)),
        ],
    )

    return reconcile_campus(replace(
        base,
        metadata=replace(base.metadata, name="Campus Test",
                         notes="Fixture campus for deterministic model tests."),
        properties=CampusProperties(target_pue=1.35, whitespace_ratio=0.42),
        zones=[zone_a, zone_b],
    ))


def build_large_campus(seed: int = 17) -> Campus:
    """Unreconciled 6 zone x 12 hall campus with seeded random rules and profiles."""
    rng = random.Random(seed)
    base = build_default_campus_from_params(DEFAULT_PARAMS)

    def random_profile(density: int) -> RackProfile:
        return RackProfile(
            rack_density_kw=density,
            redundancy=rng.choice(list(Redundancy)),
            containment=rng.choice(list(Containment)),
            cooling_type=rng.choice(list(CoolingType)),
        )

    zones = []
    hall_index = 1
    for zone_index in range(1, 7):
        min_rack_count = rng.randint(4, 24)
        max_rack_count = rng.randint(300, 450)
        rules = ZoneRackRules(
            min_rack_count=min_rack_count,
            max_rack_count=max_rack_count,
            default_rack_count=rng.randint(min_rack_count, max_rack_count),
            step=rng.randint(1, 8),
        )
        hall_defaults = random_profile(rng.randint(6, 40))

        halls = []
        for _ in range(12):
            rack_count = rng.randint(min_rack_count, max_rack_count)
            halls.append(make_hall(f"H-{hall_index:02d}", hall_index, rack_count,
                                   random_profile(rng.randint(6, 55))))
            hall_index += 1

        zones.append(Zone(
            id=f"Z-{zone_index:02d}",
            zone_index=zone_index,
            metadata=EntityMetadata(name=f"Zone {chr(64 + zone_index)}"),
            hall_defaults=hall_defaults,
            rack_rules=rules,
            halls=halls,
        ))

    return replace(
        base,
        metadata=replace(base.metadata, name="Stress Campus"),
        properties=CampusProperties(target_pue=1.38, whitespace_ratio=0.41),
        zones=zones,
    )


def all_halls(campus: Campus):
    return [hall for _, hall in campus.iter_halls()]


@pytest.fixture
def campus():
    return build_campus_fixture()


@pytest.fixture
def large_campus():
    return build_large_campus()


@pytest.fixture
def model_cache():
    return CampusModelCache(limit=6)
