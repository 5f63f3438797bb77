"""
Trip Service

Dispatch of trips and everything hanging off them: expenses, documents, the
activity trail and the proposed invoice for a finished move.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Dict, Any, List, Optional
import logging
from models import (db, Trip, TripStatus, TripExpense, ExpenseCategory, TripDocument, DocumentType,
                    Customer, Truck, Driver, Container, DeliveryOrder, DeliveryOrderStatus,
                    CustomerRate, ChargeType, PricingType, ActivityType)
from utils.errors import NotFoundError, ValidationError, ConflictError
from utils.request_helpers import (parse_text, parse_int, parse_enum, parse_decimal, parse_float,
                                   parse_datetime, merge_required, merge_optional, enum_parser, is_blank)
from timezone_utils import get_local_time_naive
from .activity_service import ActivityService
from .invoice_service import compute_totals, to_cents
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

INVALID_REFERENCES = 'Invalid customer, truck, driver, or container ID'

# Invoice draft fallbacks
DEFAULT_FLAT_RATE = Decimal('500.00')
DEFAULT_BASE_RATE = Decimal('400.00')
BASE_RATE_CODE = 'BASE_RATE'
DRAFT_TERMS = {PricingType.FLAT: 30, PricingType.ITEMIZED: 45}
STANDARD_PAYMENT_TERMS = 30

class TripService:
    """Service class for trip dispatch and trip records"""

    def __init__(self):
        self.activity_service = ActivityService()

    def list_trips(self, status: TripStatus = None, customer_id: int = None,
                   driver_id: int = None, truck_id: int = None) -> List[Trip]:
        query = Trip.query
        if status:
            query = query.filter(Trip.status == status)
        if customer_id is not None:
            query = query.filter(Trip.customer_id == customer_id)
        if driver_id is not None:
            query = query.filter(Trip.driver_id == driver_id)
        if truck_id is not None:
            query = query.filter(Trip.truck_id == truck_id)
        return query.order_by(Trip.created_at.desc(), Trip.id.desc()).all()

    def get_trip(self, trip_id: int) -> Trip:
        trip = db.session.get(Trip, trip_id)
        if trip is None:
            raise NotFoundError('Trip not found')
        return trip

    @staticmethod
    def _lookup(model, value, field):
        """Fetch a referenced row; unknown ids are a client error"""
        ref_id = parse_int(value, field)
        row = db.session.get(model, ref_id) if ref_id is not None else None
        if row is None:
            raise ValidationError(INVALID_REFERENCES)
        return row

    @TransactionHelper.with_transaction
    def create_trip(self, data: Dict[str, Any]) -> Trip:
        """
        Dispatch a trip, optionally fulfilling a delivery order.

        Args:
            data: camelCase payload; customerId, truckId, driverId,
                  containerId, pickupLocation and dropoffLocation are required

        Returns:
            Trip: the persisted trip
        """
        required = ('customerId', 'truckId', 'driverId', 'containerId', 'pickupLocation', 'dropoffLocation')
        if any(is_blank(data.get(key)) for key in required):
            raise ValidationError('Customer, truck, driver, container, pickup and dropoff locations are required')

        trip = Trip()
        trip.customer = self._lookup(Customer, data['customerId'], 'customerId')
        trip.truck = self._lookup(Truck, data['truckId'], 'truckId')
        trip.driver = self._lookup(Driver, data['driverId'], 'driverId')
        trip.container = self._lookup(Container, data['containerId'], 'containerId')
        trip.pickup_location = parse_text(data['pickupLocation'])
        trip.dropoff_location = parse_text(data['dropoffLocation'])
        trip.pickup_time = parse_datetime(data.get('pickupTime'), 'pickupTime')
        trip.dropoff_time = parse_datetime(data.get('dropoffTime'), 'dropoffTime')
        trip.status = parse_enum(TripStatus, data.get('status'), 'status') or TripStatus.SCHEDULED
        trip.distance_miles = parse_float(data.get('distanceMiles'), 'distanceMiles')
        trip.chassis_received_at = parse_datetime(data.get('chassisReceivedAt'), 'chassisReceivedAt')
        trip.chassis_returned_at = parse_datetime(data.get('chassisReturnedAt'), 'chassisReturnedAt')
        trip.notes = parse_text(data.get('notes'))
        if data.get('route') is not None:
            trip.set_route(data['route'])

        order = None
        if not is_blank(data.get('deliveryOrderId')):
            order = db.session.get(DeliveryOrder, parse_int(data['deliveryOrderId'], 'deliveryOrderId'))
            if order is None:
                raise ValidationError('Invalid delivery order ID')

        db.session.add(trip)
        db.session.flush()

        if order is not None:
            order.trip_id = trip.id
            order.status = DeliveryOrderStatus.ASSIGNED
            order.assigned_driver_id = trip.driver.id
            order.assigned_truck_id = trip.truck.id

        suffix = ' (linked to delivery order)' if order is not None else ''
        self.activity_service.log_trip_activity(
            trip_id=trip.id,
            activity_type=ActivityType.STATUS_CHANGE,
            description=f"Trip created with status {trip.status.name}{suffix}",
            new_value=trip.status.name
        )

        logger.info(f"Trip {trip.id} created: {trip.pickup_location} -> {trip.dropoff_location}")
        return trip

    @TransactionHelper.with_transaction
    def update_trip(self, trip_id: int, data: Dict[str, Any]) -> Trip:
        """
        Apply changes to a trip and record status and assignment changes in
        its activity trail.
        """
        trip = self.get_trip(trip_id)
        old_status = trip.status
        old_driver = trip.driver
        old_truck = trip.truck

        if not is_blank(data.get('customerId')):
            trip.customer = self._lookup(Customer, data['customerId'], 'customerId')
        if not is_blank(data.get('truckId')):
            trip.truck = self._lookup(Truck, data['truckId'], 'truckId')
        if not is_blank(data.get('driverId')):
            trip.driver = self._lookup(Driver, data['driverId'], 'driverId')
        if not is_blank(data.get('containerId')):
            trip.container = self._lookup(Container, data['containerId'], 'containerId')

        trip.pickup_location = merge_required(data, 'pickupLocation', trip.pickup_location)
        trip.dropoff_location = merge_required(data, 'dropoffLocation', trip.dropoff_location)
        trip.status = merge_required(data, 'status', trip.status, enum_parser(TripStatus))
        trip.pickup_time = merge_optional(data, 'pickupTime', trip.pickup_time, parse_datetime)
        trip.dropoff_time = merge_optional(data, 'dropoffTime', trip.dropoff_time, parse_datetime)
        trip.distance_miles = merge_optional(data, 'distanceMiles', trip.distance_miles, parse_float)
        trip.chassis_received_at = merge_optional(data, 'chassisReceivedAt', trip.chassis_received_at, parse_datetime)
        trip.chassis_returned_at = merge_optional(data, 'chassisReturnedAt', trip.chassis_returned_at, parse_datetime)
        trip.notes = merge_optional(data, 'notes', trip.notes)
        if 'route' in data:
            trip.set_route(data['route'])

        if trip.status != old_status:
            self.activity_service.log_trip_activity(
                trip_id=trip.id,
                activity_type=ActivityType.STATUS_CHANGE,
                description=f"Status changed from {old_status.name} to {trip.status.name}",
                old_value=old_status.name,
                new_value=trip.status.name
            )

        if trip.driver is not old_driver:
            self.activity_service.log_trip_activity(
                trip_id=trip.id,
                activity_type=ActivityType.ASSIGNMENT_CHANGE,
                description='Driver reassigned',
                old_value=old_driver.name,
                new_value=trip.driver.name
            )

        if trip.truck is not old_truck:
            self.activity_service.log_trip_activity(
                trip_id=trip.id,
                activity_type=ActivityType.ASSIGNMENT_CHANGE,
                description='Truck reassigned',
                old_value=old_truck.plate,
                new_value=trip.truck.plate
            )

        db.session.flush()
        return trip

    @TransactionHelper.with_transaction
    def delete_trip(self, trip_id: int) -> None:
        """Remove a trip with its expenses, documents and activity; delivery orders are unlinked"""
        trip = self.get_trip(trip_id)
        if trip.invoice is not None:
            raise ConflictError('Cannot delete trip with existing invoice')
        db.session.delete(trip)
        TransactionHelper.flush_or_conflict('Cannot delete trip with existing invoice')
        logger.info(f"Trip {trip_id} deleted")

    # Expenses

    def list_expenses(self, trip_id: int) -> List[TripExpense]:
        self.get_trip(trip_id)
        return TripExpense.query.filter_by(trip_id=trip_id) \
                                .order_by(TripExpense.paid_at.desc(), TripExpense.id.desc()) \
                                .all()

    @TransactionHelper.with_transaction
    def add_expense(self, trip_id: int, data: Dict[str, Any]) -> TripExpense:
        if is_blank(data.get('category')) or is_blank(data.get('description')) or is_blank(data.get('amount')):
            raise ValidationError('Category, description, and amount are required')

        trip = self.get_trip(trip_id)

        expense = TripExpense()
        expense.trip_id = trip.id
        expense.category = parse_enum(ExpenseCategory, data['category'], 'category')
        expense.description = parse_text(data['description'])
        expense.amount = to_cents(parse_decimal(data['amount'], 'amount'))
        expense.receipt_url = parse_text(data.get('receiptUrl'))
        expense.paid_by = parse_text(data.get('paidBy'))
        expense.paid_at = parse_datetime(data.get('paidAt'), 'paidAt') or get_local_time_naive()
        expense.notes = parse_text(data.get('notes'))

        db.session.add(expense)
        self.activity_service.log_trip_activity(
            trip_id=trip.id,
            activity_type=ActivityType.EXPENSE_ADDED,
            description=f"Added {expense.category.name} expense: {expense.description}",
            new_value=f"${expense.amount}",
            performed_by=expense.paid_by
        )
        db.session.flush()

        logger.info(f"Expense {expense.amount} ({expense.category.name}) added to trip {trip.id}")
        return expense

    @TransactionHelper.with_transaction
    def delete_expense(self, trip_id: int, expense_id: int) -> None:
        expense = db.session.get(TripExpense, expense_id)
        if expense is None or expense.trip_id != trip_id:
            raise NotFoundError('Expense not found')

        db.session.delete(expense)
        self.activity_service.log_trip_activity(
            trip_id=trip_id,
            activity_type=ActivityType.SYSTEM_EVENT,
            description=f"Deleted expense: {expense.description}",
            old_value=f"${expense.amount}"
        )

    # Documents

    def list_documents(self, trip_id: int) -> List[TripDocument]:
        self.get_trip(trip_id)
        return TripDocument.query.filter_by(trip_id=trip_id) \
                                 .order_by(TripDocument.uploaded_at.desc(), TripDocument.id.desc()) \
                                 .all()

    @TransactionHelper.with_transaction
    def add_document(self, trip_id: int, data: Dict[str, Any]) -> TripDocument:
        required = ('type', 'title', 'fileUrl', 'fileName')
        if any(is_blank(data.get(key)) for key in required):
            raise ValidationError('Type, title, file URL, and file name are required')

        trip = self.get_trip(trip_id)

        document = TripDocument()
        document.trip_id = trip.id
        document.type = parse_enum(DocumentType, data['type'], 'type')
        document.title = parse_text(data['title'])
        document.file_url = parse_text(data['fileUrl'])
        document.file_name = parse_text(data['fileName'])
        document.description = parse_text(data.get('description'))
        document.file_size = parse_int(data.get('fileSize'), 'fileSize')
        document.mime_type = parse_text(data.get('mimeType'))
        document.uploaded_by = parse_text(data.get('uploadedBy'))

        db.session.add(document)
        self.activity_service.log_trip_activity(
            trip_id=trip.id,
            activity_type=ActivityType.DOCUMENT_UPLOAD,
            description=f"Uploaded {document.type.name} document: {document.title}",
            new_value=document.file_name,
            performed_by=document.uploaded_by
        )
        db.session.flush()

        logger.info(f"Document '{document.title}' attached to trip {trip.id}")
        return document

    @TransactionHelper.with_transaction
    def delete_document(self, trip_id: int, document_id: int) -> None:
        document = db.session.get(TripDocument, document_id)
        if document is None or document.trip_id != trip_id:
            raise NotFoundError('Document not found')

        db.session.delete(document)
        self.activity_service.log_trip_activity(
            trip_id=trip_id,
            activity_type=ActivityType.SYSTEM_EVENT,
            description=f"Deleted document: {document.title}",
            old_value=document.file_name
        )

    # Invoice draft

    @staticmethod
    def _same_place(rate_value: Optional[str], location: str) -> bool:
        return rate_value.strip().lower() == (location or '').strip().lower()

    def find_matching_rate(self, trip: Trip) -> Optional[CustomerRate]:
        """
        Best active rate for the trip's route and container size.

        A rate restricting origin or destination must match it; among the
        candidates the most route-specific wins, then the latest effective.
        """
        now = get_local_time_naive()
        best = None
        best_key = None
        for rate in trip.customer.rates:
            if rate.container_type != trip.container.size or not rate.is_effective(now):
                continue
            specificity = 0
            if rate.route_from:
                if not self._same_place(rate.route_from, trip.pickup_location):
                    continue
                specificity += 1
            if rate.route_to:
                if not self._same_place(rate.route_to, trip.dropoff_location):
                    continue
                specificity += 1
            key = (specificity, rate.effective_date)
            if best_key is None or key > best_key:
                best, best_key = rate, key
        return best

    def build_invoice_draft(self, trip_id: int) -> Dict[str, Any]:
        """
        Propose line items, totals and a due date for invoicing a trip.
        Nothing is persisted.
        """
        trip = self.get_trip(trip_id)
        customer = trip.customer
        matched_rate = None

        if customer.pricing_type == PricingType.FLAT:
            matched_rate = self.find_matching_rate(trip)
            rate = matched_rate.flat_rate if matched_rate else DEFAULT_FLAT_RATE
            line_items = [{
                'description': f"Transport: {trip.pickup_location} to {trip.dropoff_location}",
                'quantity': '1',
                'rate': str(to_cents(rate)),
                'amount': str(to_cents(rate)),
            }]
        else:
            base_charge = ChargeType.query.filter_by(code=BASE_RATE_CODE).first()
            rate = base_charge.default_rate if base_charge and base_charge.default_rate is not None \
                else DEFAULT_BASE_RATE
            line_items = [{
                'description': 'Base Transport Rate',
                'quantity': '1',
                'rate': str(to_cents(rate)),
                'amount': str(to_cents(rate)),
                'chargeTypeCode': BASE_RATE_CODE,
            }]

        if customer.payment_terms and customer.payment_terms != STANDARD_PAYMENT_TERMS:
            terms = customer.payment_terms
        else:
            terms = DRAFT_TERMS[customer.pricing_type]

        tax_rate = Decimal('0')
        subtotal, tax_amount, total_amount = compute_totals(line_items, tax_rate)
        return {
            'trip': trip,
            'customer': customer,
            'pricing_type': customer.pricing_type,
            'line_items': line_items,
            'subtotal': subtotal,
            'tax_rate': tax_rate,
            'tax_amount': tax_amount,
            'total_amount': total_amount,
            'due_date': get_local_time_naive() + timedelta(days=terms),
            'matched_rate': matched_rate,
            'already_invoiced': trip.invoice is not None,
        }
