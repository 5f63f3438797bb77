"""
Reporting API: dashboard and the revenue, trip, expense and driver reports
"""

from flask import Blueprint, jsonify, request
import logging

from models import TripStatus, ExpenseCategory
from services import ReportingService
from services.reporting_service import parse_date_range
from utils.errors import ServiceError
from utils.request_helpers import error_response, query_arg, enum_parser, parse_bool, parse_int

report_bp = Blueprint('reports', __name__, url_prefix='/api')

logger = logging.getLogger(__name__)

reporting_service = ReportingService()

def _date_range():
    return parse_date_range(request.args.get('startDate'), request.args.get('endDate'))

@report_bp.route('/dashboard', methods=['GET'])
def dashboard():
    try:
        return jsonify(reporting_service.get_dashboard_statistics())
    except Exception as e:
        logger.error(f"Error fetching dashboard data: {str(e)}")
        return error_response('Failed to fetch dashboard data', 500)

@report_bp.route('/reports/revenue', methods=['GET'])
def revenue_report():
    try:
        start_at, end_at = _date_range()
        report = reporting_service.revenue_report(
            start_at=start_at,
            end_at=end_at,
            customer_id=query_arg('customerId', parse_int),
            paid_only=bool(query_arg('paidOnly', parse_bool))
        )
        return jsonify(report)
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error generating revenue report: {str(e)}")
        return error_response('Failed to generate revenue report', 500)

@report_bp.route('/reports/trips', methods=['GET'])
def trip_report():
    try:
        start_at, end_at = _date_range()
        report = reporting_service.trip_report(
            start_at=start_at,
            end_at=end_at,
            status=query_arg('status', enum_parser(TripStatus)),
            customer_id=query_arg('customerId', parse_int),
            driver_id=query_arg('driverId', parse_int),
            truck_id=query_arg('truckId', parse_int)
        )
        return jsonify(report)
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error generating trip report: {str(e)}")
        return error_response('Failed to generate trip report', 500)

@report_bp.route('/reports/expenses', methods=['GET'])
def expense_report():
    try:
        start_at, end_at = _date_range()
        report = reporting_service.expense_report(
            start_at=start_at,
            end_at=end_at,
            category=query_arg('category', enum_parser(ExpenseCategory)),
            trip_id=query_arg('tripId', parse_int)
        )
        return jsonify(report)
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error generating expense report: {str(e)}")
        return error_response('Failed to generate expense report', 500)

@report_bp.route('/reports/drivers', methods=['GET'])
def driver_report():
    try:
        start_at, end_at = _date_range()
        report = reporting_service.driver_report(
            start_at=start_at,
            end_at=end_at,
            driver_id=query_arg('driverId', parse_int)
        )
        return jsonify(report)
    except ServiceError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error generating driver performance report: {str(e)}")
        return error_response('Failed to generate driver performance report', 500)
