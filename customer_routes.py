"""
Customer API: accounts and their negotiated rates
"""

from flask import Blueprint, jsonify
import logging

from serializers import serialize_customer, serialize_customer_rate
from services import CustomerService
from utils.errors import ServiceError
from utils.request_helpers import error_response, get_json_body

customer_bp = Blueprint('customers', __name__, url_prefix='/api/customers')

logger = logging.getLogger(__name__)

customer_service = CustomerService()

@customer_bp.route('', methods=['GET'])
def list_customers():
    try:
        return jsonify([serialize_customer(customer) for customer in customer_service.list_customers()])
    except Exception as e:
        logger.error(f"Error fetching customers: {str(e)}")
        return error_response('Failed to fetch customers', 500)

@customer_bp.route('', methods=['POST'])
def create_customer():
    try:
        customer = customer_service.create_customer(get_json_body())
        return jsonify(serialize_customer(customer)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating customer: {str(e)}")
        return error_response('Failed to create customer', 500)

@customer_bp.route('/<int:customer_id>', methods=['GET'])
def get_customer(customer_id):
    try:
        return jsonify(serialize_customer(customer_service.get_customer(customer_id)))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching customer {customer_id}: {str(e)}")
        return error_response('Failed to fetch customer', 500)

@customer_bp.route('/<int:customer_id>', methods=['PUT'])
def update_customer(customer_id):
    try:
        customer = customer_service.update_customer(customer_id, get_json_body())
        return jsonify(serialize_customer(customer))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating customer {customer_id}: {str(e)}")
        return error_response('Failed to update customer', 500)

@customer_bp.route('/<int:customer_id>', methods=['DELETE'])
def delete_customer(customer_id):
    try:
        customer_service.delete_customer(customer_id)
        return jsonify({'message': 'Customer deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting customer {customer_id}: {str(e)}")
        return error_response('Failed to delete customer', 500)

# Rates

@customer_bp.route('/<int:customer_id>/rates', methods=['GET'])
def list_rates(customer_id):
    try:
        return jsonify([serialize_customer_rate(rate) for rate in customer_service.list_rates(customer_id)])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching rates for customer {customer_id}: {str(e)}")
        return error_response('Failed to fetch customer rates', 500)

@customer_bp.route('/<int:customer_id>/rates', methods=['POST'])
def create_rate(customer_id):
    try:
        rate = customer_service.create_rate(customer_id, get_json_body())
        return jsonify(serialize_customer_rate(rate)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating rate for customer {customer_id}: {str(e)}")
        return error_response('Failed to create customer rate', 500)

@customer_bp.route('/<int:customer_id>/rates/<int:rate_id>', methods=['PUT'])
def update_rate(customer_id, rate_id):
    try:
        rate = customer_service.update_rate(customer_id, rate_id, get_json_body())
        return jsonify(serialize_customer_rate(rate))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating rate {rate_id}: {str(e)}")
        return error_response('Failed to update customer rate', 500)

@customer_bp.route('/<int:customer_id>/rates/<int:rate_id>', methods=['DELETE'])
def delete_rate(customer_id, rate_id):
    try:
        customer_service.delete_rate(customer_id, rate_id)
        return jsonify({'message': 'Rate deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting rate {rate_id}: {str(e)}")
        return error_response('Failed to delete customer rate', 500)
