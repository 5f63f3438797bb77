"""
Demo data for local development and demos.

All demo users share the password ``password123``.
"""

from datetime import date, datetime
from decimal import Decimal
import logging

from werkzeug.security import generate_password_hash

from app import db
from models import (User, UserRole, Customer, CustomerRate, PricingType, Truck, TruckStatus,
                    Driver, DriverStatus, Terminal, Container, ContainerSize, ContainerType,
                    ChargeType, CalculationUnit, Trip, TripStatus, Invoice, DeliveryOrder,
                    TripExpense, TripDocument, TripActivityLog)
from services.invoice_service import normalize_line_items, compute_totals
from timezone_utils import get_local_time_naive

logger = logging.getLogger(__name__)

DEMO_PASSWORD = 'password123'

CHARGE_TYPES = [
    ('BASE_RATE', 'Base Transportation Rate', 'Standard transportation fee for container delivery',
     CalculationUnit.FIXED, 'TRANSPORTATION', False, None),
    ('WAIT_TIME', 'Wait Time Charge', 'Charged when driver waits at pickup/dropoff location',
     CalculationUnit.PER_HOUR, 'FEES', True, '75.00'),
    ('CHASSIS_STORAGE', 'Chassis Storage Fee', 'Daily storage charge for chassis holding',
     CalculationUnit.PER_DAY, 'STORAGE', True, '50.00'),
    ('CONGESTION', 'Port Congestion Surcharge', 'Additional fee during high traffic periods',
     CalculationUnit.FIXED, 'SURCHARGES', False, '75.00'),
    ('TOLL', 'Highway Tolls', 'Toll road charges',
     CalculationUnit.FIXED, 'FEES', False, None),
    ('FUEL_SURCHARGE', 'Fuel Surcharge', 'Variable fuel cost adjustment',
     CalculationUnit.FIXED, 'SURCHARGES', False, None),
    ('OVERWEIGHT', 'Overweight Container Fee', 'Additional charge for overweight containers',
     CalculationUnit.FIXED, 'FEES', False, '150.00'),
]

TRUCKS = [
    ('CA-TRK-001', '1HGBH41JXMN109186', 'Freightliner', 'Cascadia', 2022, TruckStatus.AVAILABLE,
     (33.7701, -118.1937, 'Port of Long Beach'), None),
    ('CA-TRK-002', '1HGBH41JXMN109187', 'Kenworth', 'T680', 2023, TruckStatus.AVAILABLE,
     (33.7405, -118.2720, 'Port of Los Angeles'), None),
    ('CA-TRK-003', '1HGBH41JXMN109188', 'Peterbilt', '579', 2021, TruckStatus.MAINTENANCE,
     None, 'Scheduled maintenance - oil change and tire rotation'),
    ('CA-TRK-004', '1HGBH41JXMN109189', 'Volvo', 'VNL 760', 2023, TruckStatus.IN_USE,
     (34.0522, -118.2437, 'Downtown LA'), None),
    ('CA-TRK-005', '1HGBH41JXMN109190', 'Mack', 'Anthem', 2022, TruckStatus.AVAILABLE, None, None),
    ('CA-TRK-006', '1HGBH41JXMN109191', 'International', 'LT Series', 2021, TruckStatus.IN_USE, None, None),
    ('CA-TRK-007', '1HGBH41JXMN109192', 'Freightliner', 'Coronado', 2020, TruckStatus.AVAILABLE, None, None),
    ('CA-TRK-008', '1HGBH41JXMN109193', 'Kenworth', 'W900', 2024, TruckStatus.AVAILABLE,
     None, 'Brand new truck - just acquired'),
    ('CA-TRK-009', '1HGBH41JXMN109194', 'Peterbilt', '389', 2019, TruckStatus.MAINTENANCE,
     None, 'Brake system repair needed'),
    ('CA-TRK-010', '1HGBH41JXMN109195', 'Volvo', 'VNR Electric', 2023, TruckStatus.AVAILABLE,
     None, 'Electric truck - zero emissions'),
]


def clear_database():
    """Delete every row, children before parents"""
    for model in (TripActivityLog, TripDocument, TripExpense, Invoice, DeliveryOrder, Trip,
                  Container, Terminal, User, Driver, Truck, CustomerRate, Customer, ChargeType):
        model.query.delete()
    db.session.commit()
    logger.info("Cleared existing data")


def _address(street, city, state, zip_code):
    return {'street': street, 'city': city, 'state': state, 'zip': zip_code, 'country': 'USA'}


def _customer(name, pricing_type, email, phone, address, payment_terms):
    customer = Customer()
    customer.name = name
    customer.pricing_type = pricing_type
    customer.email = email
    customer.phone = phone
    customer.set_billing_address(address)
    customer.payment_terms = payment_terms
    customer.active = True
    db.session.add(customer)
    return customer


def _rate(customer, route_from, route_to, size, flat_rate):
    rate = CustomerRate()
    rate.customer = customer
    rate.route_from = route_from
    rate.route_to = route_to
    rate.container_type = size
    rate.flat_rate = Decimal(flat_rate)
    rate.effective_date = datetime(2024, 1, 1)
    rate.is_active = True
    db.session.add(rate)
    return rate


def _driver(name, license_number, expiry, phone, email, hire_date):
    driver = Driver()
    driver.name = name
    driver.license = license_number
    driver.license_expiry = expiry
    driver.phone = phone
    driver.email = email
    driver.status = DriverStatus.ACTIVE
    driver.hire_date = hire_date
    db.session.add(driver)
    return driver


def _user(email, role, first_name, last_name, phone, password_hash, driver=None, customer=None):
    user = User()
    user.email = email
    user.password_hash = password_hash
    user.role = role
    user.first_name = first_name
    user.last_name = last_name
    user.phone = phone
    user.is_active = True
    user.email_verified = True
    user.driver = driver
    user.customer = customer
    db.session.add(user)
    return user


def _terminal(name, code, address):
    terminal = Terminal()
    terminal.name = name
    terminal.code = code
    terminal.set_address(address)
    terminal.sync_enabled = False
    db.session.add(terminal)
    return terminal


def _container(number, size, container_type, terminal, available, condition, inspected):
    container = Container()
    container.number = number
    container.size = size
    container.type = container_type
    container.terminal = terminal
    container.available = available
    container.condition = condition
    container.last_inspection_date = inspected
    db.session.add(container)
    return container


def _trip(customer, truck, driver, container, pickup, pickup_time, dropoff, dropoff_time,
          status, distance, notes, chassis_received=None, chassis_returned=None):
    trip = Trip()
    trip.customer = customer
    trip.truck = truck
    trip.driver = driver
    trip.container = container
    trip.pickup_location = pickup
    trip.pickup_time = pickup_time
    trip.dropoff_location = dropoff
    trip.dropoff_time = dropoff_time
    trip.status = status
    trip.distance_miles = distance
    trip.chassis_received_at = chassis_received
    trip.chassis_returned_at = chassis_returned
    trip.notes = notes
    db.session.add(trip)
    return trip


def _invoice(number, trip, line_items, tax_rate, due_date, paid, notes,
             paid_at=None, payment_method=None):
    items = normalize_line_items(line_items)
    subtotal, tax_amount, total_amount = compute_totals(items, Decimal(tax_rate))

    invoice = Invoice()
    invoice.invoice_number = number
    invoice.trip = trip
    invoice.customer = trip.customer
    invoice.pricing_type = trip.customer.pricing_type
    invoice.set_line_items(items)
    invoice.subtotal = subtotal
    invoice.tax_rate = Decimal(tax_rate)
    invoice.tax_amount = tax_amount
    invoice.total_amount = total_amount
    invoice.due_date = due_date
    invoice.paid = paid
    invoice.paid_at = paid_at
    invoice.payment_method = payment_method
    invoice.notes = notes
    db.session.add(invoice)
    return invoice


def seed_database(reset=False):
    """
    Populate the database with a small drayage operation.

    Args:
        reset: delete existing rows first

    Returns:
        dict: number of rows created per entity
    """
    if reset:
        clear_database()

    try:
        for order, (code, name, description, unit, category, requires_quantity, default_rate) \
                in enumerate(CHARGE_TYPES, start=1):
            charge_type = ChargeType()
            charge_type.code = code
            charge_type.name = name
            charge_type.description = description
            charge_type.calculation_unit = unit
            charge_type.category = category
            charge_type.requires_quantity = requires_quantity
            charge_type.default_rate = Decimal(default_rate) if default_rate else None
            charge_type.display_order = order
            db.session.add(charge_type)

        abc = _customer('ABC Logistics Corp', PricingType.FLAT, 'billing@abclogistics.com', '555-0101',
                        _address('123 Harbor Blvd', 'Los Angeles', 'CA', '90001'), 30)
        pacific = _customer('Pacific Imports Inc', PricingType.ITEMIZED, 'accounting@pacificimports.com',
                            '555-0102', _address('456 Ocean Ave', 'Long Beach', 'CA', '90802'), 45)
        global_trade = _customer('Global Trade Solutions', PricingType.FLAT,
                                 'finance@globaltradesolutions.com', '555-0103',
                                 _address('789 Port Rd', 'San Pedro', 'CA', '90731'), 30)

        _rate(abc, 'Port of LA', 'Warehouse District A', ContainerSize.FORTY_FT, '500.00')
        _rate(abc, 'Port of LA', 'Warehouse District B', ContainerSize.FORTY_FT, '600.00')
        _rate(abc, None, None, ContainerSize.TWENTY_FT, '350.00')
        _rate(global_trade, 'Port of Long Beach', 'Commerce District', ContainerSize.FORTY_FT, '550.00')

        now = get_local_time_naive()
        trucks = []
        for plate, vin, make, model, year, status, location, notes in TRUCKS:
            truck = Truck()
            truck.plate = plate
            truck.vin = vin
            truck.make = make
            truck.model = model
            truck.year = year
            truck.status = status
            truck.notes = notes
            if location:
                lat, lng, address = location
                truck.set_current_location({'lat': lat, 'lng': lng, 'address': address,
                                            'updatedAt': now.isoformat()})
            db.session.add(truck)
            trucks.append(truck)
        available_trucks = [truck for truck in trucks if truck.status == TruckStatus.AVAILABLE]

        martinez = _driver('John Martinez', 'CA-CDL-123456', date(2026, 12, 31), '555-0201',
                           'jmartinez@company.com', date(2022, 3, 15))
        johnson = _driver('Sarah Johnson', 'CA-CDL-123457', date(2027, 6, 30), '555-0202',
                          'sjohnson@company.com', date(2021, 8, 20))
        chen = _driver('Michael Chen', 'CA-CDL-123458', date(2025, 9, 15), '555-0203',
                       'mchen@company.com', date(2023, 1, 10))

        password_hash = generate_password_hash(DEMO_PASSWORD)
        _user('admin@danube.com', UserRole.ADMIN, 'Admin', 'User', '555-0001', password_hash)
        _user('dispatcher@danube.com', UserRole.DISPATCHER, 'Jane', 'Dispatcher', '555-0002', password_hash)
        _user('jmartinez@company.com', UserRole.DRIVER, 'John', 'Martinez', '555-0201', password_hash,
              driver=martinez)
        _user('billing@danube.com', UserRole.BILLING_ADMIN, 'Tom', 'Accountant', '555-0003', password_hash)
        _user('billing@abclogistics.com', UserRole.CUSTOMER, 'Alice', 'Manager', '555-0101', password_hash,
              customer=abc)

        pola = _terminal('Port of Los Angeles Terminal', 'POLA',
                         _address('425 S Palos Verdes St', 'San Pedro', 'CA', '90731'))
        polb = _terminal('Port of Long Beach Terminal', 'POLB',
                         _address('415 W Ocean Blvd', 'Long Beach', 'CA', '90802'))

        containers = [
            _container('ABCU1234567', ContainerSize.FORTY_FT, ContainerType.DRY, pola, True, 'GOOD',
                       date(2026, 1, 15)),
            _container('MSCU2345678', ContainerSize.FORTY_FT, ContainerType.DRY, pola, True, 'GOOD',
                       date(2026, 1, 20)),
            _container('HLCU3456789', ContainerSize.TWENTY_FT, ContainerType.DRY, polb, True, 'GOOD',
                       date(2026, 1, 25)),
            _container('OOLU4567890', ContainerSize.FORTY_FT, ContainerType.REEFER, polb, True, 'GOOD',
                       date(2026, 2, 1)),
            _container('CMAU5678901', ContainerSize.FORTY_FT, ContainerType.DRY, pola, False, 'DAMAGED',
                       date(2026, 1, 10)),
        ]

        _trip(abc, available_trucks[0], martinez, containers[0],
              'Port of Los Angeles Terminal', datetime(2026, 2, 10, 8, 0),
              'ABC Logistics Warehouse - 123 Harbor Blvd', datetime(2026, 2, 10, 11, 30),
              TripStatus.SCHEDULED, 25.5, 'Priority delivery - time sensitive cargo',
              chassis_received=datetime(2026, 2, 10, 7, 30))
        itemized_trip = _trip(pacific, available_trucks[1], johnson, containers[1],
                              'Port of Long Beach Terminal', datetime(2026, 2, 9, 14, 0),
                              'Pacific Imports Facility - 456 Ocean Ave', datetime(2026, 2, 9, 16, 45),
                              TripStatus.COMPLETED, 18.3, 'Reefer container - maintain temperature - Completed',
                              chassis_received=datetime(2026, 2, 9, 13, 30),
                              chassis_returned=datetime(2026, 2, 9, 17, 30))
        flat_trip = _trip(global_trade, available_trucks[2], chen, containers[2],
                          'Port of Los Angeles Terminal', datetime(2026, 2, 8, 10, 0),
                          'Global Trade Depot - 789 Port Rd', datetime(2026, 2, 8, 13, 0),
                          TripStatus.COMPLETED, 32.7, 'Completed - no issues',
                          chassis_received=datetime(2026, 2, 8, 9, 15),
                          chassis_returned=datetime(2026, 2, 8, 14, 30))
        _trip(abc, available_trucks[3], martinez, containers[3],
              'Port of Long Beach Terminal', datetime(2026, 2, 11, 9, 0),
              'ABC Logistics Warehouse - 123 Harbor Blvd', None,
              TripStatus.SCHEDULED, 22.1, 'Regular delivery')

        _invoice('INV-2026-00001', flat_trip,
                 [{'description': 'Transport: Port of Los Angeles to Global Trade Depot',
                   'quantity': 1, 'rate': 850}],
                 '8.25', datetime(2026, 3, 10), True, 'Paid on time - thank you!',
                 paid_at=datetime(2026, 2, 15), payment_method='ACH Transfer')
        _invoice('INV-2026-00002', itemized_trip,
                 [{'description': 'Base Transport Rate', 'quantity': 1, 'rate': 400,
                   'chargeTypeCode': 'BASE_RATE'},
                  {'description': 'Wait Time at Terminal (2 hours)', 'quantity': 2, 'rate': 75,
                   'chargeTypeCode': 'WAIT_TIME'},
                  {'description': 'Chassis Storage (3 days)', 'quantity': 3, 'rate': 50,
                   'chargeTypeCode': 'CHASSIS_STORAGE'},
                  {'description': 'Fuel Surcharge', 'quantity': 1, 'rate': 45,
                   'chargeTypeCode': 'FUEL_SURCHARGE'}],
                 '8.25', datetime(2026, 3, 25), False, 'NET 45 payment terms')

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    counts = {
        'chargeTypes': ChargeType.query.count(),
        'customers': Customer.query.count(),
        'customerRates': CustomerRate.query.count(),
        'trucks': Truck.query.count(),
        'drivers': Driver.query.count(),
        'users': User.query.count(),
        'terminals': Terminal.query.count(),
        'containers': Container.query.count(),
        'trips': Trip.query.count(),
        'invoices': Invoice.query.count(),
    }
    logger.info(f"Seed completed: {counts}")
    return counts
