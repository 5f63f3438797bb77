"""
Billing catalog API: charge types
"""

from flask import Blueprint, jsonify
import logging

from serializers import serialize_charge_type
from services import ChargeTypeService
from utils.errors import ServiceError
from utils.request_helpers import error_response, get_json_body, query_arg, parse_bool

charge_type_bp = Blueprint('charge_types', __name__, url_prefix='/api/charge-types')

logger = logging.getLogger(__name__)

charge_type_service = ChargeTypeService()

@charge_type_bp.route('', methods=['GET'])
def list_charge_types():
    try:
        charge_types = charge_type_service.list_charge_types(active=query_arg('active', parse_bool))
        return jsonify([serialize_charge_type(charge_type) for charge_type in charge_types])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching charge types: {str(e)}")
        return error_response('Failed to fetch charge types', 500)

@charge_type_bp.route('', methods=['POST'])
def create_charge_type():
    try:
        charge_type = charge_type_service.create_charge_type(get_json_body())
        return jsonify(serialize_charge_type(charge_type)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating charge type: {str(e)}")
        return error_response('Failed to create charge type', 500)

@charge_type_bp.route('/<int:charge_type_id>', methods=['GET'])
def get_charge_type(charge_type_id):
    try:
        return jsonify(serialize_charge_type(charge_type_service.get_charge_type(charge_type_id)))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching charge type {charge_type_id}: {str(e)}")
        return error_response('Failed to fetch charge type', 500)

@charge_type_bp.route('/<int:charge_type_id>', methods=['PUT'])
def update_charge_type(charge_type_id):
    try:
        charge_type = charge_type_service.update_charge_type(charge_type_id, get_json_body())
        return jsonify(serialize_charge_type(charge_type))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating charge type {charge_type_id}: {str(e)}")
        return error_response('Failed to update charge type', 500)

@charge_type_bp.route('/<int:charge_type_id>', methods=['DELETE'])
def delete_charge_type(charge_type_id):
    try:
        charge_type_service.delete_charge_type(charge_type_id)
        return jsonify({'message': 'Charge type deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting charge type {charge_type_id}: {str(e)}")
        return error_response('Failed to delete charge type', 500)
