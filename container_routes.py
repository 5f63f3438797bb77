"""
Equipment API: containers and terminals
"""

from flask import Blueprint, jsonify
import logging

from serializers import serialize_container, serialize_terminal
from services import ContainerService
from utils.errors import ServiceError
from utils.request_helpers import error_response, get_json_body, query_arg, parse_bool, parse_int

container_bp = Blueprint('containers', __name__, url_prefix='/api/containers')
terminal_bp = Blueprint('terminals', __name__, url_prefix='/api/terminals')

logger = logging.getLogger(__name__)

container_service = ContainerService()

@container_bp.route('', methods=['GET'])
def list_containers():
    try:
        containers = container_service.list_containers(
            available=query_arg('available', parse_bool),
            terminal_id=query_arg('terminalId', parse_int)
        )
        return jsonify([serialize_container(container) for container in containers])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching containers: {str(e)}")
        return error_response('Failed to fetch containers', 500)

@container_bp.route('', methods=['POST'])
def create_container():
    try:
        container = container_service.create_container(get_json_body())
        return jsonify(serialize_container(container)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating container: {str(e)}")
        return error_response('Failed to create container', 500)

@container_bp.route('/<int:container_id>', methods=['GET'])
def get_container(container_id):
    try:
        return jsonify(serialize_container(container_service.get_container(container_id)))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching container {container_id}: {str(e)}")
        return error_response('Failed to fetch container', 500)

@container_bp.route('/<int:container_id>', methods=['PUT'])
def update_container(container_id):
    try:
        container = container_service.update_container(container_id, get_json_body())
        return jsonify(serialize_container(container))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating container {container_id}: {str(e)}")
        return error_response('Failed to update container', 500)

@container_bp.route('/<int:container_id>', methods=['DELETE'])
def delete_container(container_id):
    try:
        container_service.delete_container(container_id)
        return jsonify({'message': 'Container deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting container {container_id}: {str(e)}")
        return error_response('Failed to delete container', 500)

# Terminals

@terminal_bp.route('', methods=['GET'])
def list_terminals():
    try:
        return jsonify([serialize_terminal(terminal) for terminal in container_service.list_terminals()])
    except Exception as e:
        logger.error(f"Error fetching terminals: {str(e)}")
        return error_response('Failed to fetch terminals', 500)

@terminal_bp.route('', methods=['POST'])
def create_terminal():
    try:
        terminal = container_service.create_terminal(get_json_body())
        return jsonify(serialize_terminal(terminal)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating terminal: {str(e)}")
        return error_response('Failed to create terminal', 500)

@terminal_bp.route('/<int:terminal_id>', methods=['GET'])
def get_terminal(terminal_id):
    try:
        return jsonify(serialize_terminal(container_service.get_terminal(terminal_id)))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching terminal {terminal_id}: {str(e)}")
        return error_response('Failed to fetch terminal', 500)

@terminal_bp.route('/<int:terminal_id>', methods=['PUT'])
def update_terminal(terminal_id):
    try:
        terminal = container_service.update_terminal(terminal_id, get_json_body())
        return jsonify(serialize_terminal(terminal))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating terminal {terminal_id}: {str(e)}")
        return error_response('Failed to update terminal', 500)

@terminal_bp.route('/<int:terminal_id>', methods=['DELETE'])
def delete_terminal(terminal_id):
    try:
        container_service.delete_terminal(terminal_id)
        return jsonify({'message': 'Terminal deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting terminal {terminal_id}: {str(e)}")
        return error_response('Failed to delete terminal', 500)
