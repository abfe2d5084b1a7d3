"""
Contract discovery API Routes

Endpoints:
- GET /api/contracts                 - export groups and their contracts
- GET /api/contracts/<group>         - JSON Schema export for client generation
- GET /api/contracts/<group>/<name>  - one contract (?version=N or vN for older versions)
"""

from flask import Blueprint, jsonify, request

from api.contracts import get_registry, parse_contract_version
from api.contracts.export import contract_document, contract_hash, export_group
from api.middleware import make_error_response

contracts_bp = Blueprint('contracts', __name__)


@contracts_bp.route("/contracts", methods=["GET"])
def list_contract_groups():
    registry = get_registry()
    return jsonify({
        "groups": {
            group: {
                contract.name: registry.versions(group, contract.name)
                for contract in registry.list_contracts(group)
            }
            for group in registry.groups()
        }
    })


@contracts_bp.route("/contracts/<group>", methods=["GET"])
def export_contract_group(group):
    return jsonify(export_group(get_registry().group(group)))


@contracts_bp.route("/contracts/<group>/<name>", methods=["GET"])
def get_contract(group, name):
    try:
        version = parse_contract_version(request.args.get("version"))
    except ValueError as e:
        return make_error_response("INVALID_CONTRACT_VERSION", str(e))
    contract = get_registry().get(group, name, version)
    return jsonify({
        "name": contract.name,
        "exportGroup": contract.export_group,
        "version": contract.version,
        "coerce": contract.coerce,
        "contractHash": contract_hash(contract),
        "schema": contract_document(contract),
    })
