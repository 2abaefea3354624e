"""
Flask front end for the campus engine.
Stateless JSON API: every request carries the campus (and fallback params) it operates on.
"""
import logging
import threading

from flask import Flask, jsonify, request
from flask_cors import CORS

from campusplan.interfaces import Server
from campusplan.models import (
    DEFAULT_PARAMS, CampusDocumentError, CampusParameterScope, CampusPropertyPatch,
    RackProfilePatch, ScopeLevel, Redundancy, CoolingType, Containment,
    apply_campus_property_patch, apply_rack_profile_patch, build_default_campus_from_params,
    campus_from_dict, campus_to_dict, commit_campus_edit, compute_campus_model,
    compute_data_center, derive_params_from_campus, get_campus_param_limits, params_from_dict,
    params_to_dict, reconcile_campus, to_document, validate_campus,
)

logger = logging.getLogger("WebAPI")


def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise CampusDocumentError("No data provided")
    return data


def _campus(data: dict):
    if 'campus' not in data:
        raise CampusDocumentError("Campus required")
    return campus_from_dict(data['campus'])


def _params(data: dict):
    return params_from_dict(data.get('params'), DEFAULT_PARAMS)


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise CampusDocumentError(f"{key} must be a mapping")
    return value


def _optional_enum(enum_cls, value):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise CampusDocumentError(f"Unknown {enum_cls.__name__}: {value}")


def _scope_from_dict(data) -> CampusParameterScope:
    if not isinstance(data, dict):
        raise CampusDocumentError("Scope required")
    level = _optional_enum(ScopeLevel, data.get('level'))
    if level is None:
        raise CampusDocumentError("Scope level required")
    return CampusParameterScope(level=level, zone_id=data.get('zoneId'), hall_id=data.get('hallId'))


def _profile_patch_from_dict(data: dict) -> RackProfilePatch:
    return RackProfilePatch(
        rack_density_kw=data.get('rackDensityKw'),
        redundancy=_optional_enum(Redundancy, data.get('redundancy')),
        containment=_optional_enum(Containment, data.get('containment')),
        cooling_type=_optional_enum(CoolingType, data.get('coolingType')),
    )


def _model_document(model) -> dict:
    document = to_document(model)
    document['params'] = params_to_dict(model.params)
    return document


def create_app() -> Flask:
    """
    Factory function to create the Flask app.
    """
    app = Flask(__name__)
    CORS(app)

    # Also covers CampusDocumentError.
    @app.errorhandler(ValueError)
    def handle_bad_request(e):
        logger.warning(f"Rejected request to {request.path}: {e}")
        return jsonify({'error': str(e)}), 400

    @app.route('/api/limits')
    def get_limits():
        """Numeric limits for client-side clamping; ?grouped=1 groups them by category."""
        limits = get_campus_param_limits()
        if request.args.get('grouped', '0').lower() in ('1', 'true', 'yes'):
            return jsonify(limits.get_by_category())
        return jsonify(limits.get_all())

    @app.route('/api/limits/<key>')
    def get_limit(key):
        limit = get_campus_param_limits().get(key)
        if not limit:
            return jsonify({'error': f"Unknown limit: {key}"}), 404
        return jsonify(limit)

    @app.route('/api/campus/default')
    def get_default_campus():
        """Default campus for the params given as query arguments (defaults otherwise)."""
        query = {}
        for key, value in request.args.items():
            try:
                query[key] = float(value)
            except ValueError:
                query[key] = value
        params = params_from_dict(query, DEFAULT_PARAMS)
        campus = build_default_campus_from_params(params)
        return jsonify({'campus': campus_to_dict(campus), 'params': params_to_dict(params)})

    @app.route('/api/capacity', methods=['POST'])
    def post_capacity():
        """Parameter-only capacity model."""
        params = params_from_dict(_payload().get('params'), DEFAULT_PARAMS)
        return jsonify(to_document(compute_data_center(params)))

    @app.route('/api/campus/reconcile', methods=['POST'])
    def post_reconcile():
        campus = reconcile_campus(_campus(_payload()))
        return jsonify({'campus': campus_to_dict(campus)})

    @app.route('/api/campus/validate', methods=['POST'])
    def post_validate():
        issues = validate_campus(_campus(_payload()))
        return jsonify({'valid': not issues, 'issues': to_document(issues)})

    @app.route('/api/campus/params', methods=['POST'])
    def post_params():
        data = _payload()
        params = derive_params_from_campus(_campus(data), _params(data))
        return jsonify({'params': params_to_dict(params)})

    @app.route('/api/campus/model', methods=['POST'])
    def post_model():
        data = _payload()
        model = compute_campus_model(_campus(data), _params(data))
        return jsonify(_model_document(model))

    @app.route('/api/campus/patch/profile', methods=['POST'])
    def post_profile_patch():
        data = _payload()
        campus = _campus(data)
        patched = apply_rack_profile_patch(
            campus,
            _scope_from_dict(data.get('scope')),
            _profile_patch_from_dict(_section(data, 'patch')),
        )
        return jsonify({'changed': patched is not campus, 'campus': campus_to_dict(patched)})

    @app.route('/api/campus/patch/properties', methods=['POST'])
    def post_property_patch():
        data = _payload()
        campus = _campus(data)
        patch = _section(data, 'patch')
        patched = apply_campus_property_patch(campus, CampusPropertyPatch(
            target_pue=patch.get('targetPue'),
            whitespace_ratio=patch.get('whitespaceRatio'),
        ))
        return jsonify({'changed': patched is not campus, 'campus': campus_to_dict(patched)})

    @app.route('/api/campus/commit', methods=['POST'])
    def post_commit():
        """Validate a draft; commit it (reconciled, with derived params) only when clean."""
        data = _payload()
        result = commit_campus_edit(_campus(data), _params(data))
        if result.committed:
            logger.info(f"Committed campus {result.campus.id}")
        return jsonify({
            'committed': result.committed,
            'campus': campus_to_dict(result.campus),
            'params': params_to_dict(result.params),
            'issues': to_document(result.issues),
        })

    return app


class WebServer(Server):
    """
    Runs the Flask app on a werkzeug server in a background thread.
    """

    def __init__(self, host: str = "0.0.0.0", port: int = 8080):
        self._host = host
        self._port = port
        self._app = None
        self._server = None
        self._thread = None

    def start(self) -> None:
        """Start the web server in a background thread."""
        from werkzeug.serving import make_server

        self._app = create_app()
        self._server = make_server(self._host, self._port, self._app, threaded=True)
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logger.info(f"Campus API started on http://{self._host}:{self._port}")

    def stop(self) -> None:
        """Stop the web server."""
        if self._server is not None:
            self._server.shutdown()
            self._server = None
        logger.info("Web server stopped")
