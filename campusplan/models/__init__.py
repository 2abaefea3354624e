from .types import Redundancy, CoolingType, Containment, ScopeLevel
from .parameters import (
    Params, DEFAULT_PARAMS, CampusParamLimits, CAMPUS_PARAM_LIMITS, get_campus_param_limits, finite_params,
    get_model_cache_limit
)
from .campus import (
    EntityMetadata, RackProfile, ZoneRackRules, CampusProperties, Rack, RackGroup, Hall, Zone, Campus
)
from .datacenter import DataCenterModel, HallDescription, compute_data_center
from .reconciler import reconcile_campus
from .derivation import derive_params_from_campus, derive_params_from_reconciled_campus
from .validator import CampusValidationIssue, validate_campus
from .patches import (
    CampusParameterScope, RackProfilePatch, CampusPropertyPatch,
    apply_rack_profile_patch, apply_campus_property_patch
)
from .cache import CampusModelCache, create_params_cache_key, get_model_cache
from .aggregator import CampusModel, compute_campus_model, compute_data_center_from_campus
from .generators import CampusGenerator, build_default_campus_from_params
from .edits import (
    CampusCommit, add_zone, remove_zone, add_hall, remove_hall, set_hall_rack_count,
    update_zone_rack_rules, rename_entity, reset_hall_profile, is_hall_profile_inherited,
    commit_campus_edit
)
from .documents import (
    CampusDocumentError, campus_to_dict, campus_from_dict, params_to_dict, params_from_dict,
    to_document, load_campus_document, dump_campus_document
)

__all__ = [
    'Redundancy', 'CoolingType', 'Containment', 'ScopeLevel',
    'Params', 'DEFAULT_PARAMS', 'CampusParamLimits', 'CAMPUS_PARAM_LIMITS', 'get_campus_param_limits', 'finite_params',
    'get_model_cache_limit',
    'EntityMetadata', 'RackProfile', 'ZoneRackRules', 'CampusProperties', 'Rack', 'RackGroup',
    'Hall', 'Zone', 'Campus',
    'DataCenterModel', 'HallDescription', 'compute_data_center',
    'reconcile_campus',
    'derive_params_from_campus', 'derive_params_from_reconciled_campus',
    'CampusValidationIssue', 'validate_campus',
    'CampusParameterScope', 'RackProfilePatch', 'CampusPropertyPatch',
    'apply_rack_profile_patch', 'apply_campus_property_patch',
    'CampusModelCache', 'create_params_cache_key', 'get_model_cache',
    'CampusModel', 'compute_campus_model', 'compute_data_center_from_campus',
    'CampusGenerator', 'build_default_campus_from_params',
    'CampusCommit', 'add_zone', 'remove_zone', 'add_hall', 'remove_hall', 'set_hall_rack_count',
    'update_zone_rack_rules', 'rename_entity', 'reset_hall_profile', 'is_hall_profile_inherited',
    'commit_campus_edit',
    'CampusDocumentError', 'campus_to_dict', 'campus_from_dict', 'params_to_dict', 'params_from_dict',
    'to_document', 'load_campus_document', 'dump_campus_document'
]
