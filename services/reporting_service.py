"""
Reporting Service

Handles dashboard statistics and the revenue, trip, expense and driver
performance reports. Reports are computed in memory from the filtered rows;
money is summed as Decimal and rendered as numbers.
"""

from collections import OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Dict, Any, List, Tuple
import logging
from models import (Invoice, Trip, TripExpense, Truck, Driver, Customer,
                    TripStatus, TruckStatus, DriverStatus, ExpenseCategory)
from utils.request_helpers import parse_datetime
from timezone_utils import get_local_time_naive

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
RECENT_LIMIT = 5
TOP_CUSTOMERS_LIMIT = 5

def _number(value) -> float:
    return float(value or 0)

def _route(trip: Trip) -> str:
    return f"{trip.pickup_location} → {trip.dropoff_location}"

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None

def _is_overdue(invoice: Invoice, now: datetime) -> bool:
    return not invoice.paid and invoice.due_date < now

def _trip_expenses(trip: Trip) -> Decimal:
    return sum((expense.amount for expense in trip.expenses), ZERO)

def _trip_revenue(trip: Trip) -> Decimal:
    return trip.invoice.total_amount if trip.invoice else ZERO

def _status_counts(trips: List[Trip]) -> Dict[str, int]:
    return {
        'scheduled': sum(1 for t in trips if t.status == TripStatus.SCHEDULED),
        'inProgress': sum(1 for t in trips if t.status == TripStatus.IN_PROGRESS),
        'completed': sum(1 for t in trips if t.status == TripStatus.COMPLETED),
        'cancelled': sum(1 for t in trips if t.status == TripStatus.CANCELLED),
    }

def parse_date_range(start: Any, end: Any) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Parse inclusive report bounds. A date-only end bound covers that whole day.

    Raises:
        ValidationError: when either bound is malformed
    """
    start_at = parse_datetime(start, 'startDate')
    end_at = parse_datetime(end, 'endDate')
    if end_at is not None and isinstance(end, str) and len(end.strip()) == 10:
        end_at = end_at + timedelta(days=1) - timedelta(microseconds=1)
    return start_at, end_at


class ReportingService:
    """Service class for reporting and analytics operations"""

    @staticmethod
    def _apply_range(query, column, start_at, end_at):
        if start_at is not None:
            query = query.filter(column >= start_at)
        if end_at is not None:
            query = query.filter(column <= end_at)
        return query

    def get_dashboard_statistics(self) -> Dict[str, Any]:
        """
        Get fleet, trip and revenue figures for the overview screen.

        Returns:
            dict: Dashboard statistics
        """
        invoices = Invoice.query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()
        trips = Trip.query.order_by(Trip.created_at.desc(), Trip.id.desc()).all()
        trucks = Truck.query.all()
        drivers = Driver.query.all()

        revenue_by_customer = OrderedDict()
        for invoice in invoices:
            name = invoice.customer.name
            entry = revenue_by_customer.setdefault(name, {'customerName': name, 'totalRevenue': ZERO,
                                                          'invoiceCount': 0})
            entry['totalRevenue'] += invoice.total_amount
            entry['invoiceCount'] += 1

        by_customer = sorted(revenue_by_customer.values(), key=lambda e: e['totalRevenue'], reverse=True)

        return {
            'totalRevenue': _number(sum((i.total_amount for i in invoices if i.paid), ZERO)),
            'pendingRevenue': _number(sum((i.total_amount for i in invoices if not i.paid), ZERO)),
            'totalTrips': len(trips),
            'activeTrips': sum(1 for t in trips if t.status == TripStatus.IN_PROGRESS),
            'completedTrips': sum(1 for t in trips if t.status == TripStatus.COMPLETED),
            'totalTrucks': len(trucks),
            'availableTrucks': sum(1 for t in trucks if t.status == TruckStatus.AVAILABLE),
            'totalDrivers': len(drivers),
            'activeDrivers': sum(1 for d in drivers if d.status == DriverStatus.ACTIVE),
            'totalCustomers': Customer.query.count(),
            'recentInvoices': [{
                'id': invoice.id,
                'invoiceNumber': invoice.invoice_number,
                'customerName': invoice.customer.name,
                'totalAmount': _number(invoice.total_amount),
                'paid': invoice.paid,
                'createdAt': _iso(invoice.created_at),
            } for invoice in invoices[:RECENT_LIMIT]],
            'recentTrips': [{
                'id': trip.id,
                'truckPlate': trip.truck.plate if trip.truck else 'N/A',
                'driverName': trip.driver.name if trip.driver else 'N/A',
                'customerName': trip.customer.name if trip.customer else 'N/A',
                'status': trip.status.name,
                'pickupLocation': trip.pickup_location,
                'dropoffLocation': trip.dropoff_location,
            } for trip in trips[:RECENT_LIMIT]],
            'revenueByCustomer': [dict(entry, totalRevenue=_number(entry['totalRevenue']))
                                  for entry in by_customer],
            'tripsByStatus': _status_counts(trips),
        }

    def revenue_report(self, start_at: Optional[datetime] = None, end_at: Optional[datetime] = None,
                       customer_id: Optional[int] = None, paid_only: bool = False) -> Dict[str, Any]:
        """
        Invoices in the period with per-customer revenue and a payment summary.
        """
        query = self._apply_range(Invoice.query, Invoice.created_at, start_at, end_at)
        if customer_id is not None:
            query = query.filter(Invoice.customer_id == customer_id)
        if paid_only:
            query = query.filter(Invoice.paid.is_(True))
        invoices = query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()

        now = get_local_time_naive()
        by_customer = OrderedDict()
        for invoice in invoices:
            customer = invoice.customer
            entry = by_customer.setdefault(customer.id, {
                'customerId': customer.id,
                'customerName': customer.name,
                'invoiceCount': 0,
                'totalRevenue': ZERO,
                'paidRevenue': ZERO,
                'pendingRevenue': ZERO,
            })
            entry['invoiceCount'] += 1
            entry['totalRevenue'] += invoice.total_amount
            if invoice.paid:
                entry['paidRevenue'] += invoice.total_amount
            else:
                entry['pendingRevenue'] += invoice.total_amount

        overdue = [i for i in invoices if _is_overdue(i, now)]
        total_revenue = sum((i.total_amount for i in invoices), ZERO)
        summary = {
            'totalInvoices': len(invoices),
            'paidInvoices': sum(1 for i in invoices if i.paid),
            'pendingInvoices': sum(1 for i in invoices if not i.paid and not _is_overdue(i, now)),
            'overdueInvoices': len(overdue),
            'totalRevenue': _number(total_revenue),
            'paidRevenue': _number(sum((i.total_amount for i in invoices if i.paid), ZERO)),
            'pendingRevenue': _number(sum((i.total_amount for i in invoices if not i.paid), ZERO)),
            'overdueRevenue': _number(sum((i.total_amount for i in overdue), ZERO)),
            'averageInvoiceAmount': _number(total_revenue / len(invoices)) if invoices else 0,
        }

        rows = [{
            'id': invoice.id,
            'invoiceNumber': invoice.invoice_number,
            'customer': invoice.customer.name,
            'pricingType': invoice.customer.pricing_type.name,
            'route': _route(invoice.trip),
            'subtotal': _number(invoice.subtotal),
            'taxAmount': _number(invoice.tax_amount),
            'totalAmount': _number(invoice.total_amount),
            'paid': invoice.paid,
            'paidAt': _iso(invoice.paid_at),
            'dueDate': _iso(invoice.due_date),
            'isOverdue': _is_overdue(invoice, now),
            'createdAt': _iso(invoice.created_at),
        } for invoice in invoices]

        customers = sorted(by_customer.values(), key=lambda e: e['totalRevenue'], reverse=True)
        money_keys = ('totalRevenue', 'paidRevenue', 'pendingRevenue')

        logger.debug(f"Revenue report: {len(invoices)} invoices")
        return {
            'invoices': rows,
            'revenueByCustomer': [dict(entry, **{key: _number(entry[key]) for key in money_keys})
                                  for entry in customers],
            'summary': summary,
        }

    def trip_report(self, start_at: Optional[datetime] = None, end_at: Optional[datetime] = None,
                    status: Optional[TripStatus] = None, customer_id: Optional[int] = None,
                    driver_id: Optional[int] = None, truck_id: Optional[int] = None) -> Dict[str, Any]:
        query = self._apply_range(Trip.query, Trip.created_at, start_at, end_at)
        if status:
            query = query.filter(Trip.status == status)
        if customer_id is not None:
            query = query.filter(Trip.customer_id == customer_id)
        if driver_id is not None:
            query = query.filter(Trip.driver_id == driver_id)
        if truck_id is not None:
            query = query.filter(Trip.truck_id == truck_id)
        trips = query.order_by(Trip.created_at.desc(), Trip.id.desc()).all()

        rows = []
        for trip in trips:
            invoice = trip.invoice
            rows.append({
                'id': trip.id,
                'customer': trip.customer.name,
                'truck': trip.truck.plate,
                'driver': trip.driver.name,
                'container': trip.container.number,
                'containerSize': trip.container.size.name,
                'pickupLocation': trip.pickup_location,
                'dropoffLocation': trip.dropoff_location,
                'pickupTime': _iso(trip.pickup_time),
                'dropoffTime': _iso(trip.dropoff_time),
                'status': trip.status.name,
                'distanceMiles': trip.distance_miles or 0,
                'expenses': _number(_trip_expenses(trip)),
                'revenue': _number(_trip_revenue(trip)),
                'invoiceNumber': invoice.invoice_number if invoice else None,
                'invoicePaid': bool(invoice and invoice.paid),
                'createdAt': _iso(trip.created_at),
            })

        summary = {
            'totalTrips': len(trips),
            'byStatus': _status_counts(trips),
            'totalDistance': sum((trip.distance_miles or 0) for trip in trips),
            'totalExpenses': _number(sum((_trip_expenses(trip) for trip in trips), ZERO)),
            'totalRevenue': _number(sum((_trip_revenue(trip) for trip in trips), ZERO)),
            'tripsWithInvoices': sum(1 for trip in trips if trip.invoice),
            'paidInvoices': sum(1 for trip in trips if trip.invoice and trip.invoice.paid),
        }
        return {'trips': rows, 'summary': summary}

    def expense_report(self, start_at: Optional[datetime] = None, end_at: Optional[datetime] = None,
                       category: Optional[ExpenseCategory] = None,
                       trip_id: Optional[int] = None) -> Dict[str, Any]:
        """Expenses paid in the period, grouped by category and by trip"""
        query = self._apply_range(TripExpense.query, TripExpense.paid_at, start_at, end_at)
        if category:
            query = query.filter(TripExpense.category == category)
        if trip_id is not None:
            query = query.filter(TripExpense.trip_id == trip_id)
        expenses = query.order_by(TripExpense.paid_at.desc(), TripExpense.id.desc()).all()

        by_category = OrderedDict()
        by_trip = OrderedDict()
        for expense in expenses:
            trip = expense.trip
            category_entry = by_category.setdefault(expense.category, {
                'category': expense.category.name, 'count': 0, 'totalAmount': ZERO,
            })
            category_entry['count'] += 1
            category_entry['totalAmount'] += expense.amount

            trip_entry = by_trip.setdefault(trip.id, {
                'tripId': trip.id,
                'route': _route(trip),
                'customer': trip.customer.name,
                'driver': trip.driver.name,
                'expenseCount': 0,
                'totalExpenses': ZERO,
            })
            trip_entry['expenseCount'] += 1
            trip_entry['totalExpenses'] += expense.amount

        total = sum((expense.amount for expense in expenses), ZERO)
        categories = sorted(by_category.values(), key=lambda e: e['totalAmount'], reverse=True)
        trips = sorted(by_trip.values(), key=lambda e: e['totalExpenses'], reverse=True)

        return {
            'expenses': [{
                'id': expense.id,
                'tripId': expense.trip_id,
                'category': expense.category.name,
                'description': expense.description,
                'amount': _number(expense.amount),
                'paidBy': expense.paid_by,
                'paidAt': _iso(expense.paid_at),
                'tripRoute': _route(expense.trip),
                'customer': expense.trip.customer.name,
                'driver': expense.trip.driver.name,
                'truck': expense.trip.truck.plate,
                'tripStatus': expense.trip.status.name,
                'notes': expense.notes,
            } for expense in expenses],
            'expensesByTrip': [dict(entry, totalExpenses=_number(entry['totalExpenses'])) for entry in trips],
            'summary': {
                'totalExpenses': len(expenses),
                'totalAmount': _number(total),
                'averageAmount': _number(total / len(expenses)) if expenses else 0,
                'byCategory': [dict(entry, totalAmount=_number(entry['totalAmount'])) for entry in categories],
            },
        }

    def driver_report(self, start_at: Optional[datetime] = None, end_at: Optional[datetime] = None,
                      driver_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Per-driver performance over trips created in the period.

        Rates and averages are rounded for display: completion rate and
        distances to one decimal, per-trip and per-mile revenue to cents.
        """
        driver_query = Driver.query
        if driver_id is not None:
            driver_query = driver_query.filter(Driver.id == driver_id)
        drivers = driver_query.order_by(Driver.name.asc(), Driver.id.asc()).all()

        performance = []
        revenue_sum, expense_sum, distance_sum = ZERO, ZERO, 0.0
        for driver in drivers:
            trip_query = self._apply_range(Trip.query.filter(Trip.driver_id == driver.id),
                                           Trip.created_at, start_at, end_at)
            trips = trip_query.order_by(Trip.created_at.asc(), Trip.id.asc()).all()

            total_trips = len(trips)
            completed = sum(1 for t in trips if t.status == TripStatus.COMPLETED)
            total_distance = sum((t.distance_miles or 0) for t in trips)
            total_revenue = sum((_trip_revenue(t) for t in trips), ZERO)
            total_expenses = sum((_trip_expenses(t) for t in trips), ZERO)
            revenue_sum += total_revenue
            expense_sum += total_expenses
            distance_sum += total_distance

            completion_rate = completed / total_trips * 100 if total_trips else 0
            revenue_per_trip = float(total_revenue) / total_trips if total_trips else 0
            revenue_per_mile = float(total_revenue) / total_distance if total_distance else 0

            customer_counts = OrderedDict()
            for trip in trips:
                name = trip.customer.name
                customer_counts[name] = customer_counts.get(name, 0) + 1
            top_customers = sorted(customer_counts.items(), key=lambda item: item[1], reverse=True)

            performance.append({
                'driverId': driver.id,
                'driverName': driver.name,
                'license': driver.license,
                'status': driver.status.name,
                'phone': driver.phone,
                'totalTrips': total_trips,
                'completedTrips': completed,
                'inProgressTrips': sum(1 for t in trips if t.status == TripStatus.IN_PROGRESS),
                'cancelledTrips': sum(1 for t in trips if t.status == TripStatus.CANCELLED),
                'completionRate': round(completion_rate, 1),
                'totalDistance': round(total_distance, 1),
                'averageDistancePerTrip': round(total_distance / total_trips, 1) if total_trips else 0,
                'totalRevenue': _number(total_revenue),
                'revenuePerTrip': round(revenue_per_trip, 2),
                'revenuePerMile': round(revenue_per_mile, 2),
                'totalExpenses': _number(total_expenses),
                'netProfit': _number(total_revenue - total_expenses),
                'topCustomers': [{'customerName': name, 'tripCount': count}
                                 for name, count in top_customers[:TOP_CUSTOMERS_LIMIT]],
            })

        summary = {
            'totalDrivers': len(drivers),
            'activeDrivers': sum(1 for d in drivers if d.status == DriverStatus.ACTIVE),
            'totalTrips': sum(d['totalTrips'] for d in performance),
            'totalDistance': round(distance_sum, 1),
            'totalRevenue': _number(revenue_sum),
            'totalExpenses': _number(expense_sum),
            'averageCompletionRate': sum(d['completionRate'] for d in performance) / len(performance)
            if performance else 0,
        }

        return {
            'drivers': sorted(performance, key=lambda d: d['totalRevenue'], reverse=True),
            'summary': summary,
        }
