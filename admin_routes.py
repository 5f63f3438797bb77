"""
Administration API: maintenance operations
"""

from flask import Blueprint, jsonify
import logging

from services import ContainerService
from utils.errors import ServiceError
from utils.request_helpers import error_response

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

logger = logging.getLogger(__name__)

container_service = ContainerService()

@admin_bp.route('/create-missing-containers', methods=['POST'])
def create_missing_containers():
    """Backfill containers declared on delivery orders but never registered"""
    try:
        result = container_service.create_missing_containers()
        summary = result['summary']
        logger.info(f"Container backfill: {summary['created']} created, {summary['skipped']} skipped")
        return jsonify(result)
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating missing containers: {str(e)}")
        return error_response('Failed to create missing containers', 500)
