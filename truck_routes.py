"""
Fleet API: trucks
"""

from flask import Blueprint, jsonify
import logging

from models import TruckStatus
from serializers import serialize_truck
from services import TruckService
from utils.errors import ServiceError
from utils.request_helpers import error_response, get_json_body, query_arg, enum_parser

truck_bp = Blueprint('trucks', __name__, url_prefix='/api/trucks')

logger = logging.getLogger(__name__)

truck_service = TruckService()

@truck_bp.route('', methods=['GET'])
def list_trucks():
    try:
        status = query_arg('status', enum_parser(TruckStatus))
        return jsonify([serialize_truck(truck) for truck in truck_service.list_trucks(status=status)])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching trucks: {str(e)}")
        return error_response('Failed to fetch trucks', 500)

@truck_bp.route('', methods=['POST'])
def create_truck():
    try:
        truck = truck_service.create_truck(get_json_body())
        return jsonify(serialize_truck(truck)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating truck: {str(e)}")
        return error_response('Failed to create truck', 500)

@truck_bp.route('/<int:truck_id>', methods=['GET'])
def get_truck(truck_id):
    try:
        return jsonify(serialize_truck(truck_service.get_truck(truck_id)))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching truck {truck_id}: {str(e)}")
        return error_response('Failed to fetch truck', 500)

@truck_bp.route('/<int:truck_id>', methods=['PUT'])
def update_truck(truck_id):
    try:
        truck = truck_service.update_truck(truck_id, get_json_body())
        return jsonify(serialize_truck(truck))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating truck {truck_id}: {str(e)}")
        return error_response('Failed to update truck', 500)

@truck_bp.route('/<int:truck_id>', methods=['DELETE'])
def delete_truck(truck_id):
    try:
        truck_service.delete_truck(truck_id)
        return jsonify({'message': 'Truck deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting truck {truck_id}: {str(e)}")
        return error_response('Failed to delete truck', 500)
