import logging
import os
from dataclasses import dataclass, replace
from typing import Dict

from .types import Redundancy, CoolingType, Containment
from .units import clamp, is_finite_number, round_half_up, to_float

logger = logging.getLogger("CampusParameters")


@dataclass
class Params:
    """
    Flat, single-profile description of a data center.
    This is the baseline the parameter-only calculator consumes and the
    aggregate that campus derivation produces.
    """
    critical_load_mw: float
    whitespace_area_sqft: float
    data_halls: int
    whitespace_ratio: float
    rack_power_density: float
    redundancy: Redundancy
    pue: float
    cooling_type: CoolingType
    containment: Containment

    def with_changes(self, **changes) -> 'Params':
        return replace(self, **changes)


DEFAULT_PARAMS = Params(
    critical_load_mw=2.0,
    whitespace_area_sqft=20000.0,
    data_halls=2,
    whitespace_ratio=0.4,
    rack_power_density=8.0,
    redundancy=Redundancy.N_PLUS_1,
    pue=1.4,
    cooling_type=CoolingType.AIR_COOLED,
    containment=Containment.HOT_AISLE,
)


def finite_params(params: Params, fallback: Params = DEFAULT_PARAMS) -> Params:
    """Replace NaN, infinite or non-numeric fields with the fallback's values."""
    return replace(
        params,
        critical_load_mw=to_float(params.critical_load_mw, fallback.critical_load_mw),
        whitespace_area_sqft=to_float(params.whitespace_area_sqft, fallback.whitespace_area_sqft),
        data_halls=params.data_halls if is_finite_number(params.data_halls) else fallback.data_halls,
        whitespace_ratio=to_float(params.whitespace_ratio, fallback.whitespace_ratio),
        rack_power_density=to_float(params.rack_power_density, fallback.rack_power_density),
        pue=to_float(params.pue, fallback.pue),
    )


class CampusParamLimits:
    """
    Numeric limits shared between the campus engine and client-side clamping.
    Keys use the same camelCase names as campus documents.
    """

    DEFAULTS = {
        'criticalLoadMW': {
            'value': 2.0,
            'min': 0.5,
            'max': 1000.0,
            'unit': 'MW',
            'description': 'Critical IT load across the campus',
            'category': 'load'
        },
        'whitespaceAreaSqFt': {
            'value': 20000.0,
            'min': 5000.0,
            'max': 1000000.0,
            'unit': 'sq ft',
            'description': 'Raised-floor area dedicated to IT equipment',
            'category': 'area'
        },
        'dataHalls': {
            'value': 2,
            'min': 1,
            'max': 100,
            'unit': '',
            'description': 'Number of data halls',
            'category': 'area'
        },
        'whitespaceRatio': {
            'value': 0.4,
            'min': 0.25,
            'max': 0.65,
            'unit': '',
            'description': 'Whitespace share of gross facility area',
            'category': 'area'
        },
        'rackPowerDensity': {
            'value': 8.0,
            'min': 3.0,
            'max': 80.0,
            'unit': 'kW/rack',
            'description': 'Average power drawn per rack',
            'category': 'load'
        },
        'pue': {
            'value': 1.4,
            'min': 1.05,
            'max': 2.0,
            'unit': '',
            'description': 'Power Usage Effectiveness (total facility / critical IT)',
            'category': 'efficiency'
        },
    }

    def get(self, key: str) -> Dict:
        """Get the limit entry for a key (empty dict when unknown)."""
        return self.DEFAULTS.get(key, {})

    def min(self, key: str) -> float:
        return self.DEFAULTS[key]['min']

    def max(self, key: str) -> float:
        return self.DEFAULTS[key]['max']

    def default(self, key: str) -> float:
        return self.DEFAULTS[key]['value']

    def clamp(self, key: str, value: float) -> float:
        """Clamp a value into the supported range for key."""
        limit = self.DEFAULTS[key]
        return clamp(value, limit['min'], limit['max'])

    def contains(self, key: str, value: float) -> bool:
        limit = self.DEFAULTS[key]
        return limit['min'] <= value <= limit['max']

    def get_all(self) -> Dict[str, Dict]:
        """Get all limits with their metadata."""
        return {key: dict(limit) for key, limit in self.DEFAULTS.items()}

    def get_by_category(self) -> Dict[str, Dict]:
        """Get limits grouped by category."""
        result = {}
        for key, limit in self.DEFAULTS.items():
            cat = limit['category']
            if cat not in result:
                result[cat] = {}
            result[cat][key] = {k: v for k, v in limit.items() if k != 'category'}
        return result


_limits = CampusParamLimits()

# Module-level view of the limits table, keyed like campus documents.
CAMPUS_PARAM_LIMITS = {
    key: {'min': limit['min'], 'max': limit['max']}
    for key, limit in CampusParamLimits.DEFAULTS.items()
}


def get_campus_param_limits() -> CampusParamLimits:
    """Get the shared limits instance."""
    return _limits


# Cache bound per campus object for the campus model aggregator.
DEFAULT_MODEL_CACHE_LIMIT = 6


def get_model_cache_limit() -> int:
    """Per-campus model cache bound, overridable with CAMPUS_MODEL_CACHE_LIMIT."""
    raw = os.environ.get("CAMPUS_MODEL_CACHE_LIMIT", "")
    if not raw:
        return DEFAULT_MODEL_CACHE_LIMIT
    try:
        return max(1, round_half_up(float(raw)))
    except (ValueError, OverflowError):
        logger.warning(f"Ignoring invalid CAMPUS_MODEL_CACHE_LIMIT={raw!r}")
        return DEFAULT_MODEL_CACHE_LIMIT
