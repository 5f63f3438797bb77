"""
Intake API: delivery orders
"""

from flask import Blueprint, jsonify
import logging

from models import DeliveryOrderStatus
from serializers import serialize_delivery_order
from services import DeliveryOrderService
from utils.errors import ServiceError
from utils.request_helpers import error_response, get_json_body, query_arg, enum_parser, parse_int

delivery_order_bp = Blueprint('delivery_orders', __name__, url_prefix='/api/delivery-orders')

logger = logging.getLogger(__name__)

delivery_order_service = DeliveryOrderService()

@delivery_order_bp.route('', methods=['GET'])
def list_delivery_orders():
    try:
        orders = delivery_order_service.list_orders(
            status=query_arg('status', enum_parser(DeliveryOrderStatus)),
            customer_id=query_arg('customerId', parse_int)
        )
        return jsonify([serialize_delivery_order(order) for order in orders])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching delivery orders: {str(e)}")
        return error_response('Failed to fetch delivery orders', 500)

@delivery_order_bp.route('', methods=['POST'])
def create_delivery_order():
    try:
        order = delivery_order_service.create_order(get_json_body())
        return jsonify(serialize_delivery_order(order)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating delivery order: {str(e)}")
        return error_response('Failed to create delivery order', 500)

@delivery_order_bp.route('/<int:order_id>', methods=['GET'])
def get_delivery_order(order_id):
    try:
        return jsonify(serialize_delivery_order(delivery_order_service.get_order(order_id)))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching delivery order {order_id}: {str(e)}")
        return error_response('Failed to fetch delivery order', 500)

@delivery_order_bp.route('/<int:order_id>', methods=['PUT'])
def update_delivery_order(order_id):
    try:
        order = delivery_order_service.update_order(order_id, get_json_body())
        return jsonify(serialize_delivery_order(order))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating delivery order {order_id}: {str(e)}")
        return error_response('Failed to update delivery order', 500)

@delivery_order_bp.route('/<int:order_id>', methods=['DELETE'])
def delete_delivery_order(order_id):
    try:
        delivery_order_service.delete_order(order_id)
        return jsonify({'success': True})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting delivery order {order_id}: {str(e)}")
        return error_response('Failed to delete delivery order', 500)
