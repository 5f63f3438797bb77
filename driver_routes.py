"""
Roster API: drivers
"""

from flask import Blueprint, jsonify
import logging

from models import DriverStatus
from serializers import serialize_driver
from services import DriverService
from utils.errors import ServiceError
from utils.request_helpers import error_response, get_json_body, query_arg, enum_parser

driver_bp = Blueprint('drivers', __name__, url_prefix='/api/drivers')

logger = logging.getLogger(__name__)

driver_service = DriverService()

@driver_bp.route('', methods=['GET'])
def list_drivers():
    try:
        status = query_arg('status', enum_parser(DriverStatus))
        return jsonify([serialize_driver(driver) for driver in driver_service.list_drivers(status=status)])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching drivers: {str(e)}")
        return error_response('Failed to fetch drivers', 500)

@driver_bp.route('', methods=['POST'])
def create_driver():
    try:
        driver = driver_service.create_driver(get_json_body())
        return jsonify(serialize_driver(driver)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating driver: {str(e)}")
        return error_response('Failed to create driver', 500)

@driver_bp.route('/<int:driver_id>', methods=['GET'])
def get_driver(driver_id):
    try:
        return jsonify(serialize_driver(driver_service.get_driver(driver_id)))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching driver {driver_id}: {str(e)}")
        return error_response('Failed to fetch driver', 500)

@driver_bp.route('/<int:driver_id>', methods=['PUT'])
def update_driver(driver_id):
    try:
        driver = driver_service.update_driver(driver_id, get_json_body())
        return jsonify(serialize_driver(driver))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating driver {driver_id}: {str(e)}")
        return error_response('Failed to update driver', 500)

@driver_bp.route('/<int:driver_id>', methods=['DELETE'])
def delete_driver(driver_id):
    try:
        driver_service.delete_driver(driver_id)
        return jsonify({'message': 'Driver deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting driver {driver_id}: {str(e)}")
        return error_response('Failed to delete driver', 500)
