"""
Unit tests for service layer classes
"""

import re
import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from services import (TruckService, DriverService, CustomerService, ContainerService,
                      ChargeTypeService, DeliveryOrderService, ActivityService, InvoiceService,
                      TripService, ReportingService, UserService)
from services.invoice_service import compute_totals, normalize_line_items, parse_tax_rate
from services.reporting_service import parse_date_range
from models import (ActivityType, Container, ContainerSize, ContainerType, DeliveryOrderStatus,
                    DriverStatus, ExpenseCategory, PricingType, TripActivityLog, TripStatus, TruckStatus)
from timezone_utils import get_local_time_naive
from utils.errors import ValidationError, NotFoundError, ConflictError, AuthenticationError
from tests.factories import (
    UserFactory, CustomerFactory, CustomerRateFactory, TruckFactory, DriverFactory,
    ContainerFactory, ChargeTypeFactory, DeliveryOrderFactory, TripFactory,
    TripExpenseFactory, InvoiceFactory
)


def _activity(trip_id, activity_type=None):
    query = TripActivityLog.query.filter_by(trip_id=trip_id)
    if activity_type:
        query = query.filter_by(activity_type=activity_type)
    return query.order_by(TripActivityLog.id.asc()).all()


class TestInvoiceArithmetic:
    """Totals are computed in cents with half-up rounding"""

    def test_itemized_totals(self):
        items = normalize_line_items([
            {'description': 'Base Transport Rate', 'quantity': 1, 'rate': 400},
            {'description': 'Wait Time at Terminal (2 hours)', 'quantity': 2, 'rate': 75},
            {'description': 'Chassis Storage (3 days)', 'quantity': 3, 'rate': 50},
            {'description': 'Fuel Surcharge', 'rate': 45},
        ])

        subtotal, tax, total = compute_totals(items, Decimal('8.25'))

        assert subtotal == Decimal('745.00')
        assert tax == Decimal('61.46')
        assert total == Decimal('806.46')

    def test_flat_totals_round_half_up(self):
        items = normalize_line_items([{'description': 'Transport', 'quantity': 1, 'rate': 850}])

        assert compute_totals(items, Decimal('8.25')) == (Decimal('850.00'), Decimal('70.13'), Decimal('920.13'))

    def test_amount_recomputed_from_rate(self):
        items = normalize_line_items([{'description': 'Wait', 'quantity': 2, 'rate': '75', 'amount': 999}])

        assert items[0]['amount'] == '150.00'
        assert items[0]['quantity'] == '2'

    def test_amount_only_item_keeps_amount(self):
        items = normalize_line_items([{'description': 'Toll', 'amount': '12.5'}])

        assert items[0]['amount'] == '12.50'
        assert items[0]['rate'] == '12.50'

    def test_charge_type_code_is_uppercased(self):
        items = normalize_line_items([{'description': 'Toll', 'amount': 10, 'chargeTypeCode': 'toll'}])

        assert items[0]['chargeTypeCode'] == 'TOLL'

    @pytest.mark.parametrize('raw', [[], None, 'items', [{'quantity': 1, 'rate': 10}], [{'description': 'x'}]])
    def test_invalid_line_items(self, raw):
        with pytest.raises(ValidationError):
            normalize_line_items(raw)

    def test_tax_rate_bounds(self):
        assert parse_tax_rate('8.25') == Decimal('8.25')
        assert parse_tax_rate('8.255') == Decimal('8.26')
        assert parse_tax_rate(None) is None
        with pytest.raises(ValidationError):
            parse_tax_rate('101')
        with pytest.raises(ValidationError):
            parse_tax_rate('-1')


class TestInvoiceService:

    def test_next_invoice_number_starts_at_one(self, db_session):
        assert InvoiceService.next_invoice_number(2026) == 'INV-2026-00001'

    def test_next_invoice_number_follows_highest(self, db_session):
        InvoiceFactory(invoice_number='INV-2026-00002')
        InvoiceFactory(invoice_number='INV-2026-00007')
        InvoiceFactory(invoice_number='INV-2025-00042')

        assert InvoiceService.next_invoice_number(2026) == 'INV-2026-00008'

    def test_create_invoice(self, db_session):
        customer = CustomerFactory(pricing_type=PricingType.ITEMIZED, payment_terms=45)
        trip = TripFactory(customer=customer)

        invoice = InvoiceService().create_invoice({
            'tripId': trip.id,
            'customerId': customer.id,
            'lineItems': [
                {'description': 'Base Transport Rate', 'quantity': 1, 'rate': 400},
                {'description': 'Wait Time', 'quantity': 2, 'rate': 75},
            ],
            'taxRate': 10,
        })

        assert re.match(r'^INV-\d{4}-00001$', invoice.invoice_number)
        assert invoice.pricing_type == PricingType.ITEMIZED
        assert invoice.subtotal == Decimal('550.00')
        assert invoice.tax_amount == Decimal('55.00')
        assert invoice.total_amount == Decimal('605.00')
        assert invoice.paid is False
        assert invoice.paid_at is None
        expected_due = get_local_time_naive() + timedelta(days=45)
        assert abs(invoice.due_date - expected_due) < timedelta(minutes=1)

    def test_create_invoice_paid_stamps_paid_at(self, db_session):
        trip = TripFactory()

        invoice = InvoiceService().create_invoice({
            'tripId': trip.id, 'customerId': trip.customer_id,
            'lineItems': [{'description': 'Transport', 'rate': 500}], 'paid': True,
        })

        assert invoice.paid is True
        assert invoice.paid_at is not None

    def test_create_invoice_requires_fields(self, db_session):
        with pytest.raises(ValidationError, match='Trip, customer, and line items are required'):
            InvoiceService().create_invoice({'tripId': 1, 'customerId': 1, 'lineItems': []})

    def test_create_invoice_unknown_trip(self, db_session):
        customer = CustomerFactory()
        with pytest.raises(ValidationError, match='Invalid trip or customer ID'):
            InvoiceService().create_invoice({
                'tripId': 9999, 'customerId': customer.id,
                'lineItems': [{'description': 'Transport', 'rate': 500}],
            })

    def test_second_invoice_for_trip_conflicts(self, db_session):
        existing = InvoiceFactory()
        with pytest.raises(ConflictError):
            InvoiceService().create_invoice({
                'tripId': existing.trip_id, 'customerId': existing.customer_id,
                'lineItems': [{'description': 'Transport', 'rate': 500}],
            })

    def test_update_recomputes_totals(self, db_session):
        invoice = InvoiceFactory()

        updated = InvoiceService().update_invoice(invoice.id, {'taxRate': '8.25'})

        assert updated.subtotal == Decimal('500.00')
        assert updated.tax_amount == Decimal('41.25')
        assert updated.total_amount == Decimal('541.25')

    def test_tax_is_computed_from_stored_rate(self, db_session):
        trip = TripFactory()
        service = InvoiceService()

        invoice = service.create_invoice({
            'tripId': trip.id, 'customerId': trip.customer_id,
            'lineItems': [{'description': 'Transport', 'quantity': 1, 'rate': 1000}],
            'taxRate': '8.255',
        })
        db_session.expire_all()
        invoice = service.get_invoice(invoice.id)

        assert invoice.tax_rate == Decimal('8.26')
        assert invoice.tax_amount == invoice.subtotal * invoice.tax_rate / 100
        assert invoice.total_amount == Decimal('1082.60')

        unchanged = service.update_invoice(invoice.id, {'taxRate': None, 'lineItems': None})
        assert unchanged.total_amount == Decimal('1082.60')

    def test_mark_paid_and_unpaid(self, db_session):
        invoice = InvoiceFactory()
        service = InvoiceService()

        paid = service.update_invoice(invoice.id, {'paid': True, 'paymentMethod': 'ACH Transfer'})
        assert paid.paid is True
        assert paid.paid_at is not None
        assert paid.payment_method == 'ACH Transfer'

        unpaid = service.update_invoice(invoice.id, {'paid': False})
        assert unpaid.paid is False
        assert unpaid.paid_at is None

    def test_get_missing_invoice(self, db_session):
        with pytest.raises(NotFoundError, match='Invoice not found'):
            InvoiceService().get_invoice(12345)


class TestTripService:

    def _payload(self, **overrides):
        data = {
            'customerId': CustomerFactory().id,
            'truckId': TruckFactory().id,
            'driverId': DriverFactory().id,
            'containerId': ContainerFactory().id,
            'pickupLocation': 'Port of LA',
            'dropoffLocation': 'Warehouse District A',
        }
        data.update(overrides)
        return data

    def test_create_trip_logs_creation(self, db_session):
        trip = TripService().create_trip(self._payload(distanceMiles='25.5'))

        assert trip.status == TripStatus.SCHEDULED
        assert trip.distance_miles == 25.5
        entries = _activity(trip.id)
        assert len(entries) == 1
        assert entries[0].activity_type == ActivityType.STATUS_CHANGE
        assert entries[0].description == 'Trip created with status SCHEDULED'
        assert entries[0].performed_by == 'System'

    def test_create_trip_requires_fields(self, db_session):
        with pytest.raises(ValidationError):
            TripService().create_trip({'pickupLocation': 'Port of LA'})

    def test_create_trip_unknown_reference(self, db_session):
        with pytest.raises(ValidationError, match='Invalid customer, truck, driver, or container ID'):
            TripService().create_trip(self._payload(truckId=9999))

    def test_create_trip_fulfils_delivery_order(self, db_session):
        order = DeliveryOrderFactory()
        payload = self._payload(customerId=order.customer_id, deliveryOrderId=order.id)

        trip = TripService().create_trip(payload)

        assert order.trip_id == trip.id
        assert order.status == DeliveryOrderStatus.ASSIGNED
        assert order.assigned_driver_id == trip.driver_id
        assert order.assigned_truck_id == trip.truck_id
        assert _activity(trip.id)[0].description.endswith('(linked to delivery order)')

    def test_status_change_is_logged(self, db_session):
        trip = TripFactory()

        TripService().update_trip(trip.id, {'status': 'IN_PROGRESS'})

        entries = _activity(trip.id, ActivityType.STATUS_CHANGE)
        assert entries[-1].old_value == 'SCHEDULED'
        assert entries[-1].new_value == 'IN_PROGRESS'
        assert entries[-1].description == 'Status changed from SCHEDULED to IN_PROGRESS'

    def test_reassignment_is_logged(self, db_session):
        trip = TripFactory()
        old_driver_name = trip.driver.name
        new_driver = DriverFactory()
        new_truck = TruckFactory(plate='CA-TRK-999')

        TripService().update_trip(trip.id, {'driverId': new_driver.id, 'truckId': new_truck.id})

        entries = _activity(trip.id, ActivityType.ASSIGNMENT_CHANGE)
        descriptions = {entry.description: entry for entry in entries}
        assert descriptions['Driver reassigned'].old_value == old_driver_name
        assert descriptions['Driver reassigned'].new_value == new_driver.name
        assert descriptions['Truck reassigned'].new_value == 'CA-TRK-999'

    def test_update_without_changes_logs_nothing(self, db_session):
        trip = TripFactory()

        TripService().update_trip(trip.id, {'notes': 'Gate 4'})

        assert trip.notes == 'Gate 4'
        assert _activity(trip.id) == []

    def test_blank_required_field_keeps_value(self, db_session):
        trip = TripFactory(pickup_location='Port of LA')

        TripService().update_trip(trip.id, {'pickupLocation': ''})

        assert trip.pickup_location == 'Port of LA'

    def test_delete_trip_with_invoice_conflicts(self, db_session):
        invoice = InvoiceFactory()
        with pytest.raises(ConflictError, match='Cannot delete trip with existing invoice'):
            TripService().delete_trip(invoice.trip_id)

    def test_delete_trip_unlinks_delivery_order(self, db_session):
        trip = TripFactory()
        order = DeliveryOrderFactory(trip=trip)

        TripService().delete_trip(trip.id)

        db_session.refresh(order)
        assert order.trip_id is None

    def test_add_expense_logs_activity(self, db_session):
        trip = TripFactory()

        expense = TripService().add_expense(trip.id, {
            'category': 'fuel', 'description': 'Diesel fill-up', 'amount': '125.5', 'paidBy': 'John Martinez',
        })

        assert expense.amount == Decimal('125.50')
        entry = _activity(trip.id, ActivityType.EXPENSE_ADDED)[0]
        assert entry.description == 'Added FUEL expense: Diesel fill-up'
        assert entry.new_value == '$125.50'
        assert entry.performed_by == 'John Martinez'

    def test_add_expense_requires_fields(self, db_session):
        trip = TripFactory()
        with pytest.raises(ValidationError, match='Category, description, and amount are required'):
            TripService().add_expense(trip.id, {'category': 'FUEL'})

    def test_delete_expense_of_other_trip(self, db_session):
        expense = TripExpenseFactory()
        other = TripFactory()
        with pytest.raises(NotFoundError, match='Expense not found'):
            TripService().delete_expense(other.id, expense.id)

    def test_add_document_logs_upload(self, db_session):
        trip = TripFactory()

        document = TripService().add_document(trip.id, {
            'type': 'POD', 'title': 'Proof of delivery', 'fileUrl': 'https://files.example.com/pod.pdf',
            'fileName': 'pod.pdf',
        })

        entry = _activity(trip.id, ActivityType.DOCUMENT_UPLOAD)[0]
        assert document.id is not None
        assert entry.new_value == 'pod.pdf'

    def test_matching_rate_prefers_specific_route(self, db_session):
        customer = CustomerFactory()
        generic = CustomerRateFactory(customer=customer, route_from=None, route_to=None,
                                      flat_rate=Decimal('350.00'))
        specific = CustomerRateFactory(customer=customer, flat_rate=Decimal('600.00'))
        CustomerRateFactory(customer=customer, route_to='Warehouse District B', flat_rate=Decimal('700.00'))
        trip = TripFactory(customer=customer)

        assert TripService().find_matching_rate(trip) is specific
        assert generic.flat_rate == Decimal('350.00')

    def test_matching_rate_ignores_other_sizes(self, db_session):
        customer = CustomerFactory()
        CustomerRateFactory(customer=customer, container_type=ContainerSize.TWENTY_FT)
        trip = TripFactory(customer=customer)

        assert TripService().find_matching_rate(trip) is None

    def test_flat_invoice_draft(self, db_session):
        customer = CustomerFactory(pricing_type=PricingType.FLAT)
        rate = CustomerRateFactory(customer=customer, flat_rate=Decimal('600.00'))
        trip = TripFactory(customer=customer)

        draft = TripService().build_invoice_draft(trip.id)

        assert draft['matched_rate'] is rate
        assert draft['line_items'][0]['description'] == 'Transport: Port of LA to Warehouse District A'
        assert draft['total_amount'] == Decimal('600.00')
        assert draft['already_invoiced'] is False

    def test_flat_invoice_draft_without_rate(self, db_session):
        trip = TripFactory()

        draft = TripService().build_invoice_draft(trip.id)

        assert draft['matched_rate'] is None
        assert draft['subtotal'] == Decimal('500.00')

    def test_itemized_invoice_draft(self, db_session):
        ChargeTypeFactory(code='BASE_RATE', default_rate=Decimal('425.00'))
        customer = CustomerFactory(pricing_type=PricingType.ITEMIZED, payment_terms=30)
        trip = TripFactory(customer=customer)

        draft = TripService().build_invoice_draft(trip.id)

        assert draft['line_items'][0]['chargeTypeCode'] == 'BASE_RATE'
        assert draft['subtotal'] == Decimal('425.00')
        expected_due = get_local_time_naive() + timedelta(days=45)
        assert abs(draft['due_date'] - expected_due) < timedelta(minutes=1)


class TestActivityService:

    def test_add_manual_entry(self, db_session):
        trip = TripFactory()

        entry = ActivityService().add_entry(trip.id, {
            'activityType': 'NOTE_ADDED', 'description': 'Driver called ahead',
            'metadata': {'channel': 'phone'},
        })

        assert entry.activity_type == ActivityType.NOTE_ADDED
        assert entry.performed_by == 'System'
        assert entry.get_metadata() == {'channel': 'phone'}

    def test_entry_requires_type_and_description(self, db_session):
        trip = TripFactory()
        with pytest.raises(ValidationError, match='Activity type and description are required'):
            ActivityService().add_entry(trip.id, {'description': 'x'})

    def test_history_newest_first(self, db_session):
        trip = TripFactory()
        service = ActivityService()
        service.add_entry(trip.id, {'activityType': 'NOTE_ADDED', 'description': 'first'})
        service.add_entry(trip.id, {'activityType': 'NOTE_ADDED', 'description': 'second'})

        history = service.get_trip_activity(trip.id)

        assert [entry.description for entry in history] == ['second', 'first']

    def test_history_of_missing_trip(self, db_session):
        with pytest.raises(NotFoundError):
            ActivityService().get_trip_activity(4040)


class TestContainerService:

    def test_create_missing_containers(self, db_session):
        ContainerFactory(number='ABCU1234567')
        DeliveryOrderFactory(order_number='DO-1', container_number='ABCU1234567',
                             container_size='FORTY_FT', container_type='DRY')
        DeliveryOrderFactory(order_number='DO-2', container_number='MSCU2345678',
                             container_size='TWENTY_FT', container_type='REEFER')
        DeliveryOrderFactory(order_number='DO-3', container_number='MSCU2345678',
                             container_size='TWENTY_FT', container_type='REEFER')
        DeliveryOrderFactory(order_number='DO-4', container_number='HLCU3456789',
                             container_size='HUGE', container_type='DRY')
        DeliveryOrderFactory(order_number='DO-5', container_number=None)

        result = ContainerService().create_missing_containers()

        assert result['success'] is True
        assert result['summary'] == {'total': 4, 'created': 1, 'skipped': 3}
        reasons = {row['orderNumber']: row['reason'] for row in result['results']}
        assert reasons == {
            'DO-1': 'Already exists',
            'DO-2': 'New container created',
            'DO-3': 'Already exists',
            'DO-4': 'Invalid container size or type',
        }
        created = Container.query.filter_by(number='MSCU2345678').one()
        assert created.size == ContainerSize.TWENTY_FT
        assert created.type == ContainerType.REEFER
        assert created.available is True
        assert created.terminal_id is None

    def test_create_container_unknown_terminal(self, db_session):
        with pytest.raises(ValidationError, match='Invalid terminal ID'):
            ContainerService().create_container({'number': 'ABCU1', 'size': 'FORTY_FT', 'type': 'DRY',
                                                 'terminalId': 999})

    def test_duplicate_container_number(self, db_session):
        ContainerFactory(number='ABCU1234567')
        with pytest.raises(ConflictError):
            ContainerService().create_container({'number': 'ABCU1234567', 'size': 'FORTY_FT', 'type': 'DRY'})


class TestDeliveryOrderService:

    def test_create_order_registers_container(self, db_session):
        customer = CustomerFactory()

        order = DeliveryOrderService().create_order({
            'customerId': customer.id, 'containerNumber': 'OOLU4567890',
            'containerSize': 'forty_hc', 'containerType': 'dry', 'priority': 'URGENT',
        })

        assert re.match(r'^DO-\d+-\d{3}$', order.order_number)
        assert order.status == DeliveryOrderStatus.PENDING
        assert order.container_size == 'FORTY_HC'
        container = Container.query.filter_by(number='OOLU4567890').one()
        assert container.size == ContainerSize.FORTY_HC

    def test_create_order_invalid_size(self, db_session):
        customer = CustomerFactory()
        with pytest.raises(ValidationError):
            DeliveryOrderService().create_order({'customerId': customer.id, 'containerSize': 'HUGE'})

    def test_create_order_unknown_customer(self, db_session):
        with pytest.raises(ValidationError, match='Invalid customer ID'):
            DeliveryOrderService().create_order({'customerId': 777})

    def test_update_order_unknown_trip(self, db_session):
        order = DeliveryOrderFactory()
        with pytest.raises(ValidationError, match='Invalid trip, driver, or truck ID'):
            DeliveryOrderService().update_order(order.id, {'tripId': 555})


class TestFleetServices:

    def test_truck_defaults_to_available(self, db_session):
        truck = TruckService().create_truck({'plate': 'CA-TRK-100', 'make': 'Volvo'})

        assert truck.status == TruckStatus.AVAILABLE

    def test_truck_with_trips_cannot_be_deleted(self, db_session):
        trip = TripFactory()
        with pytest.raises(ConflictError, match='Cannot delete truck with existing trips'):
            TruckService().delete_truck(trip.truck_id)

    def test_driver_requires_name_and_license(self, db_session):
        with pytest.raises(ValidationError, match='Name and license are required'):
            DriverService().create_driver({'name': 'John Martinez'})

    def test_duplicate_driver_license(self, db_session):
        DriverFactory(license='CA-CDL-123456')
        with pytest.raises(ConflictError, match='A driver with this license already exists'):
            DriverService().create_driver({'name': 'Someone Else', 'license': 'CA-CDL-123456'})

    def test_driver_status_filter(self, db_session):
        DriverFactory(status=DriverStatus.ACTIVE)
        DriverFactory(status=DriverStatus.ON_LEAVE)

        drivers = DriverService().list_drivers(status=DriverStatus.ON_LEAVE)

        assert [driver.status for driver in drivers] == [DriverStatus.ON_LEAVE]


class TestCustomerService:

    def test_defaults(self, db_session):
        customer = CustomerService().create_customer({'name': 'ABC Logistics Corp',
                                                      'email': 'billing@abclogistics.com'})

        assert customer.pricing_type == PricingType.FLAT
        assert customer.payment_terms == 30
        assert customer.active is True

    def test_customer_with_trips_cannot_be_deleted(self, db_session):
        trip = TripFactory()
        with pytest.raises(ConflictError):
            CustomerService().delete_customer(trip.customer_id)

    def test_rate_of_other_customer_not_found(self, db_session):
        rate = CustomerRateFactory()
        other = CustomerFactory()
        with pytest.raises(NotFoundError, match='Rate not found'):
            CustomerService().update_rate(other.id, rate.id, {'flatRate': 1})

    def test_create_rate_requires_type_and_amount(self, db_session):
        customer = CustomerFactory()
        with pytest.raises(ValidationError, match='Container type and flat rate are required'):
            CustomerService().create_rate(customer.id, {'routeFrom': 'Port of LA'})


class TestChargeTypeService:

    def test_code_is_uppercased_and_ordered(self, db_session):
        service = ChargeTypeService()
        service.create_charge_type({'name': 'Tolls', 'code': 'toll', 'category': 'FEES', 'displayOrder': 2})
        service.create_charge_type({'name': 'Base', 'code': 'base_rate', 'category': 'TRANSPORTATION',
                                    'displayOrder': 1})

        codes = [charge.code for charge in service.list_charge_types()]

        assert codes == ['BASE_RATE', 'TOLL']


class TestUserService:

    def test_authenticate(self, db_session):
        user = UserFactory(email='dispatcher@danube.com')

        authenticated = UserService().authenticate('Dispatcher@Danube.com', 'password123')

        assert authenticated.id == user.id
        assert authenticated.last_login is not None

    def test_wrong_password(self, db_session):
        UserFactory(email='dispatcher@danube.com')
        with pytest.raises(AuthenticationError, match='Invalid email or password'):
            UserService().authenticate('dispatcher@danube.com', 'wrong')

    def test_inactive_user_cannot_log_in(self, db_session):
        UserFactory(email='former@danube.com', is_active=False)
        with pytest.raises(AuthenticationError):
            UserService().authenticate('former@danube.com', 'password123')

    def test_duplicate_email(self, db_session):
        UserFactory(email='admin@danube.com')
        with pytest.raises(ConflictError, match='A user with this email already exists'):
            UserService().create_user({'email': 'admin@danube.com', 'password': 'x', 'role': 'ADMIN'})

    def test_driver_already_linked_to_another_user(self, db_session):
        driver = DriverFactory()
        UserFactory(driver_id=driver.id)
        with pytest.raises(ConflictError, match='This driver is already linked to another user'):
            UserService().create_user({'email': 'second@danube.com', 'password': 'x', 'role': 'DRIVER',
                                       'driverId': driver.id})

    def test_relinking_own_driver_is_allowed(self, db_session):
        driver = DriverFactory()
        user = UserFactory(driver_id=driver.id)

        updated = UserService().update_user(user.id, {'driverId': driver.id, 'firstName': 'John'})

        assert updated.driver_id == driver.id
        assert updated.first_name == 'John'


class TestReportingService:

    def test_date_only_end_covers_whole_day(self):
        start_at, end_at = parse_date_range('2026-02-01', '2026-02-10')

        assert start_at == datetime(2026, 2, 1)
        assert end_at == datetime(2026, 2, 10, 23, 59, 59, 999999)

    def test_malformed_date(self):
        with pytest.raises(ValidationError):
            parse_date_range('yesterday', None)

    def test_dashboard_statistics(self, db_session):
        InvoiceFactory(total_amount=Decimal('920.13'), paid=True)
        InvoiceFactory(total_amount=Decimal('806.46'))
        TruckFactory(status=TruckStatus.MAINTENANCE)

        stats = ReportingService().get_dashboard_statistics()

        assert stats['totalRevenue'] == pytest.approx(920.13)
        assert stats['pendingRevenue'] == pytest.approx(806.46)
        assert stats['totalTrips'] == 2
        assert stats['totalTrucks'] == 3
        assert stats['availableTrucks'] == 2
        assert stats['tripsByStatus']['scheduled'] == 2
        assert len(stats['recentInvoices']) == 2

    def test_revenue_report(self, db_session):
        now = get_local_time_naive()
        customer = CustomerFactory(name='ABC Logistics Corp')
        InvoiceFactory(trip=TripFactory(customer=customer), total_amount=Decimal('920.13'), paid=True,
                       paid_at=now)
        InvoiceFactory(trip=TripFactory(customer=customer), total_amount=Decimal('500.00'),
                       due_date=now - timedelta(days=3))
        InvoiceFactory(total_amount=Decimal('806.46'))

        report = ReportingService().revenue_report()
        summary = report['summary']

        assert summary['totalInvoices'] == 3
        assert summary['paidInvoices'] == 1
        assert summary['overdueInvoices'] == 1
        assert summary['pendingInvoices'] == 1
        assert summary['totalRevenue'] == pytest.approx(2226.59)
        assert summary['overdueRevenue'] == pytest.approx(500.00)
        top = report['revenueByCustomer'][0]
        assert top['customerName'] == 'ABC Logistics Corp'
        assert top['invoiceCount'] == 2
        assert top['paidRevenue'] == pytest.approx(920.13)
        assert report['invoices'][0]['route'] == 'Port of LA → Warehouse District A'

    def test_revenue_report_date_range(self, db_session):
        InvoiceFactory(created_at=datetime(2026, 1, 15, 9, 0))
        InvoiceFactory(created_at=datetime(2026, 2, 10, 18, 30))
        InvoiceFactory(created_at=datetime(2026, 3, 1, 8, 0))

        start_at, end_at = parse_date_range('2026-02-01', '2026-02-10')
        report = ReportingService().revenue_report(start_at=start_at, end_at=end_at)

        assert report['summary']['totalInvoices'] == 1

    def test_expense_report(self, db_session):
        trip = TripFactory()
        TripExpenseFactory(trip=trip, amount=Decimal('100.00'))
        TripExpenseFactory(trip=trip, category=ExpenseCategory.TOLLS, amount=Decimal('20.00'))

        report = ReportingService().expense_report()

        assert report['summary']['totalExpenses'] == 2
        assert report['summary']['totalAmount'] == pytest.approx(120.00)
        assert report['summary']['averageAmount'] == pytest.approx(60.00)
        assert report['summary']['byCategory'][0]['category'] == 'FUEL'
        assert report['expensesByTrip'][0]['totalExpenses'] == pytest.approx(120.00)

    def test_driver_report(self, db_session):
        driver = DriverFactory(name='Sarah Johnson')
        completed = TripFactory(driver=driver, status=TripStatus.COMPLETED, distance_miles=18.3)
        TripFactory(driver=driver, status=TripStatus.SCHEDULED, distance_miles=25.0)
        InvoiceFactory(trip=completed, total_amount=Decimal('806.46'))
        TripExpenseFactory(trip=completed, amount=Decimal('100.00'))

        report = ReportingService().driver_report(driver_id=driver.id)
        row = report['drivers'][0]

        assert row['totalTrips'] == 2
        assert row['completedTrips'] == 1
        assert row['completionRate'] == 50.0
        assert row['totalDistance'] == pytest.approx(43.3)
        assert row['revenuePerTrip'] == pytest.approx(403.23)
        assert row['revenuePerMile'] == pytest.approx(18.62)
        assert row['netProfit'] == pytest.approx(706.46)
        assert row['topCustomers'][0]['tripCount'] == 1
        assert report['summary']['totalDrivers'] == 1
        assert report['summary']['averageCompletionRate'] == 50.0

    def test_driver_summary_totals_are_exact(self, db_session):
        for amount, miles in ((Decimal('0.10'), 0.1), (Decimal('0.20'), 0.2)):
            InvoiceFactory(trip=TripFactory(driver=DriverFactory(), distance_miles=miles), total_amount=amount)
            TripExpenseFactory(trip=TripFactory(driver=DriverFactory(), distance_miles=None), amount=amount)

        summary = ReportingService().driver_report()['summary']

        assert summary['totalDrivers'] == 4
        assert summary['totalRevenue'] == 0.3
        assert summary['totalExpenses'] == 0.3
        assert summary['totalDistance'] == 0.3
