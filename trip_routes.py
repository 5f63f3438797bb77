"""
Dispatch API: trips and their activity, documents, expenses and invoice drafts
"""

from flask import Blueprint, jsonify
import logging

from models import TripStatus
from serializers import (serialize_trip, serialize_activity, serialize_document,
                         serialize_expense, serialize_invoice_draft)
from services import TripService, ActivityService
from utils.errors import ServiceError
from utils.request_helpers import error_response, get_json_body, query_arg, enum_parser, parse_int

trip_bp = Blueprint('trips', __name__, url_prefix='/api/trips')

logger = logging.getLogger(__name__)

trip_service = TripService()
activity_service = ActivityService()

@trip_bp.route('', methods=['GET'])
def list_trips():
    try:
        trips = trip_service.list_trips(
            status=query_arg('status', enum_parser(TripStatus)),
            customer_id=query_arg('customerId', parse_int),
            driver_id=query_arg('driverId', parse_int),
            truck_id=query_arg('truckId', parse_int)
        )
        return jsonify([serialize_trip(trip) for trip in trips])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching trips: {str(e)}")
        return error_response('Failed to fetch trips', 500)

@trip_bp.route('', methods=['POST'])
def create_trip():
    try:
        trip = trip_service.create_trip(get_json_body())
        return jsonify(serialize_trip(trip)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating trip: {str(e)}")
        return error_response('Failed to create trip', 500)

@trip_bp.route('/<int:trip_id>', methods=['GET'])
def get_trip(trip_id):
    try:
        return jsonify(serialize_trip(trip_service.get_trip(trip_id), detail=True))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching trip {trip_id}: {str(e)}")
        return error_response('Failed to fetch trip', 500)

@trip_bp.route('/<int:trip_id>', methods=['PUT'])
def update_trip(trip_id):
    try:
        trip = trip_service.update_trip(trip_id, get_json_body())
        return jsonify(serialize_trip(trip))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating trip {trip_id}: {str(e)}")
        return error_response('Failed to update trip', 500)

@trip_bp.route('/<int:trip_id>', methods=['DELETE'])
def delete_trip(trip_id):
    try:
        trip_service.delete_trip(trip_id)
        return jsonify({'message': 'Trip deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting trip {trip_id}: {str(e)}")
        return error_response('Failed to delete trip', 500)

# Activity

@trip_bp.route('/<int:trip_id>/activity', methods=['GET'])
def list_activity(trip_id):
    try:
        return jsonify([serialize_activity(entry) for entry in activity_service.get_trip_activity(trip_id)])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching activity for trip {trip_id}: {str(e)}")
        return error_response('Failed to fetch trip activity', 500)

@trip_bp.route('/<int:trip_id>/activity', methods=['POST'])
def add_activity(trip_id):
    try:
        entry = activity_service.add_entry(trip_id, get_json_body())
        return jsonify(serialize_activity(entry)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error adding activity to trip {trip_id}: {str(e)}")
        return error_response('Failed to create activity log', 500)

# Documents

@trip_bp.route('/<int:trip_id>/documents', methods=['GET'])
def list_documents(trip_id):
    try:
        return jsonify([serialize_document(doc) for doc in trip_service.list_documents(trip_id)])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching documents for trip {trip_id}: {str(e)}")
        return error_response('Failed to fetch trip documents', 500)

@trip_bp.route('/<int:trip_id>/documents', methods=['POST'])
def add_document(trip_id):
    try:
        document = trip_service.add_document(trip_id, get_json_body())
        return jsonify(serialize_document(document)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error adding document to trip {trip_id}: {str(e)}")
        return error_response('Failed to create trip document', 500)

@trip_bp.route('/<int:trip_id>/documents/<int:document_id>', methods=['DELETE'])
def delete_document(trip_id, document_id):
    try:
        trip_service.delete_document(trip_id, document_id)
        return jsonify({'message': 'Document deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting document {document_id}: {str(e)}")
        return error_response('Failed to delete document', 500)

# Expenses

@trip_bp.route('/<int:trip_id>/expenses', methods=['GET'])
def list_expenses(trip_id):
    try:
        return jsonify([serialize_expense(expense) for expense in trip_service.list_expenses(trip_id)])
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching expenses for trip {trip_id}: {str(e)}")
        return error_response('Failed to fetch trip expenses', 500)

@trip_bp.route('/<int:trip_id>/expenses', methods=['POST'])
def add_expense(trip_id):
    try:
        expense = trip_service.add_expense(trip_id, get_json_body())
        return jsonify(serialize_expense(expense)), 201
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error adding expense to trip {trip_id}: {str(e)}")
        return error_response('Failed to create trip expense', 500)

@trip_bp.route('/<int:trip_id>/expenses/<int:expense_id>', methods=['DELETE'])
def delete_expense(trip_id, expense_id):
    try:
        trip_service.delete_expense(trip_id, expense_id)
        return jsonify({'message': 'Expense deleted successfully'})
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting expense {expense_id}: {str(e)}")
        return error_response('Failed to delete expense', 500)

# Invoice draft

@trip_bp.route('/<int:trip_id>/invoice-draft', methods=['GET'])
def invoice_draft(trip_id):
    try:
        return jsonify(serialize_invoice_draft(trip_service.build_invoice_draft(trip_id)))
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error drafting invoice for trip {trip_id}: {str(e)}")
        return error_response('Failed to build invoice draft', 500)
