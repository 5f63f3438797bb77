"""
Billing API: invoices
"""

from flask import Blueprint, jsonify
import logging

from serializers import serialize_invoice
from services import InvoiceService
from utils.errors import ServiceError
from utils.request_helpers import error_response, get_json_body, query_arg, parse_bool, parse_int

invoice_bp = Blueprint('invoices', __name__, url_prefix='/api/invoices')

logger = logging.getLogger(__name__)

invoice_service = InvoiceService()

@invoice_bp.route('', methods=['GET'])
def list_invoices():
    try:
        invoices = invoice_service.list_invoices(
            paid=query_arg('paid', parse_bool),
            customer_id=query_arg('customerId', parse_int)
        )
        return jsonify([serialize_invoice(invoice) for invoice in invoices])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching invoices: {str(e)}")
        return error_response('Failed to fetch invoices', 500)

@invoice_bp.route('', methods=['POST'])
def create_invoice():
    try:
        invoice = invoice_service.create_invoice(get_json_body())
        return jsonify(serialize_invoice(invoice)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating invoice: {str(e)}")
        return error_response('Failed to create invoice', 500)

@invoice_bp.route('/<int:invoice_id>', methods=['GET'])
def get_invoice(invoice_id):
    try:
        return jsonify(serialize_invoice(invoice_service.get_invoice(invoice_id), detail=True))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching invoice {invoice_id}: {str(e)}")
        return error_response('Failed to fetch invoice', 500)

@invoice_bp.route('/<int:invoice_id>', methods=['PUT'])
def update_invoice(invoice_id):
    try:
        invoice = invoice_service.update_invoice(invoice_id, get_json_body())
        return jsonify(serialize_invoice(invoice))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating invoice {invoice_id}: {str(e)}")
        return error_response('Failed to update invoice', 500)

@invoice_bp.route('/<int:invoice_id>', methods=['DELETE'])
def delete_invoice(invoice_id):
    try:
        invoice_service.delete_invoice(invoice_id)
        return jsonify({'message': 'Invoice deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting invoice {invoice_id}: {str(e)}")
        return error_response('Failed to delete invoice', 500)
