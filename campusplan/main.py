"""
Command line entry point.

    campusplan summarize campus.yaml [--params params.yaml]
    campusplan default [--critical-load-mw 5 --data-halls 4 ...]
    campusplan serve [--host 0.0.0.0 --port 8080]
"""
import argparse
import asyncio
import json
import logging
import os
import sys

import yaml

from campusplan import __version__
from campusplan.models import (
    DEFAULT_PARAMS, CampusDocumentError, build_default_campus_from_params, campus_to_dict,
    compute_campus_model, load_campus_document, params_from_dict, params_to_dict,
    to_document, validate_campus,
)
from campusplan.web.app import WebServer

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger("Main")


def load_params(path: str):
    if not path:
        return DEFAULT_PARAMS
    with open(path, 'r') as f:
        data = yaml.safe_load(f)
    return params_from_dict(data, DEFAULT_PARAMS)


def summarize(args) -> int:
    """Validate a campus document and print its campus-wide summary."""
    try:
        campus = load_campus_document(args.path)
        params = load_params(args.params)
    except (OSError, CampusDocumentError, yaml.YAMLError) as e:
        logger.error(f"Cannot load {args.path}: {e}")
        return 1

    issues = validate_campus(campus)
    for issue in issues:
        logger.warning(f"{issue.path}: {issue.message}")

    model = compute_campus_model(campus, params)
    print(json.dumps({
        'valid': not issues,
        'issues': to_document(issues),
        'params': params_to_dict(model.params),
        'campus': to_document(model.campus),
    }, indent=2))
    return 0


def default(args) -> int:
    """Print the default campus generated for a parameter baseline."""
    params = DEFAULT_PARAMS.with_changes(
        critical_load_mw=args.critical_load_mw,
        whitespace_area_sqft=args.whitespace_area_sqft,
        data_halls=args.data_halls,
        rack_power_density=args.rack_power_density,
    )
    campus = build_default_campus_from_params(params)
    yaml.dump({'campus': campus_to_dict(campus)}, sys.stdout, default_flow_style=False, sort_keys=False)
    return 0


async def serve(args) -> int:
    web = WebServer(host=args.host, port=args.port)
    web.start()
    try:
        while True:
            await asyncio.sleep(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        web.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="campusplan", description="Campus capacity planning engine")
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument('-v', '--verbose', action='store_true', help="enable debug logging")
    commands = parser.add_subparsers(dest='command', required=True)

    summary = commands.add_parser('summarize', help="validate and summarize a campus document")
    summary.add_argument('path', help="campus YAML or JSON document")
    summary.add_argument('--params', help="fallback params YAML or JSON document")

    generated = commands.add_parser('default', help="print the default campus for a baseline")
    generated.add_argument('--critical-load-mw', type=float, default=DEFAULT_PARAMS.critical_load_mw)
    generated.add_argument('--whitespace-area-sqft', type=float, default=DEFAULT_PARAMS.whitespace_area_sqft)
    generated.add_argument('--data-halls', type=int, default=DEFAULT_PARAMS.data_halls)
    generated.add_argument('--rack-power-density', type=float, default=DEFAULT_PARAMS.rack_power_density)

    server = commands.add_parser('serve', help="serve the HTTP API")
    server.add_argument('--host', default=os.environ.get("WEB_HOST", "0.0.0.0"))
    server.add_argument('--port', type=int, default=int(os.environ.get("WEB_PORT", "8080")))
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.command == 'summarize':
        return summarize(args)
    if args.command == 'default':
        return default(args)
    try:
        return asyncio.run(serve(args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
