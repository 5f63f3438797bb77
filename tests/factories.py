"""
factory_boy model factories shared by the unit and integration suites
"""

import json
from datetime import timedelta
from decimal import Decimal

import factory
from factory import Faker
from werkzeug.security import generate_password_hash

from app import db
from models import (User, UserRole, Customer, CustomerRate, PricingType, Truck, TruckStatus,
                    Driver, DriverStatus, Terminal, Container, ContainerSize, ContainerType,
                    ChargeType, CalculationUnit, DeliveryOrder, Trip, TripStatus, TripExpense,
                    ExpenseCategory, Invoice)
from timezone_utils import get_local_time_naive


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session = db.session
        sqlalchemy_session_persistence = "commit"


class UserFactory(BaseFactory):
    class Meta:
        model = User

    email = factory.Sequence(lambda n: f"user{n}@test.com")
    password_hash = factory.LazyFunction(lambda: generate_password_hash('password123'))
    role = UserRole.DISPATCHER
    first_name = Faker('first_name')
    last_name = Faker('last_name')
    is_active = True


class AdminUserFactory(UserFactory):
    role = UserRole.ADMIN
    email = factory.Sequence(lambda n: f"admin{n}@test.com")


class CustomerFactory(BaseFactory):
    class Meta:
        model = Customer

    name = Faker('company')
    email = factory.Sequence(lambda n: f"billing{n}@customer.com")
    phone = factory.Sequence(lambda n: f"555-{n:04d}")
    pricing_type = PricingType.FLAT
    payment_terms = 30
    active = True


class CustomerRateFactory(BaseFactory):
    class Meta:
        model = CustomerRate

    customer = factory.SubFactory(CustomerFactory)
    route_from = 'Port of LA'
    route_to = 'Warehouse District A'
    container_type = ContainerSize.FORTY_FT
    flat_rate = Decimal('500.00')
    effective_date = factory.LazyFunction(lambda: get_local_time_naive() - timedelta(days=30))
    is_active = True


class TruckFactory(BaseFactory):
    class Meta:
        model = Truck

    plate = factory.Sequence(lambda n: f"TRK-{n:04d}")
    vin = factory.Sequence(lambda n: f"1HGBH41JXMN{n:06d}")
    make = 'Freightliner'
    model = 'Cascadia'
    year = 2022
    status = TruckStatus.AVAILABLE


class DriverFactory(BaseFactory):
    class Meta:
        model = Driver

    name = Faker('name')
    license = factory.Sequence(lambda n: f"CA-CDL-{n:06d}")
    phone = factory.Sequence(lambda n: f"555-{n:04d}")
    status = DriverStatus.ACTIVE


class TerminalFactory(BaseFactory):
    class Meta:
        model = Terminal

    name = factory.Sequence(lambda n: f"Terminal {n}")
    code = factory.Sequence(lambda n: f"T{n:03d}")


class ContainerFactory(BaseFactory):
    class Meta:
        model = Container

    number = factory.Sequence(lambda n: f"TSTU{n:07d}")
    size = ContainerSize.FORTY_FT
    type = ContainerType.DRY
    available = True


class ChargeTypeFactory(BaseFactory):
    class Meta:
        model = ChargeType

    code = factory.Sequence(lambda n: f"CHARGE_{n}")
    name = factory.Sequence(lambda n: f"Charge {n}")
    category = 'FEES'
    default_rate = Decimal('75.00')
    calculation_unit = CalculationUnit.FIXED
    display_order = 0


class TripFactory(BaseFactory):
    class Meta:
        model = Trip

    customer = factory.SubFactory(CustomerFactory)
    truck = factory.SubFactory(TruckFactory)
    driver = factory.SubFactory(DriverFactory)
    container = factory.SubFactory(ContainerFactory)
    pickup_location = 'Port of LA'
    dropoff_location = 'Warehouse District A'
    status = TripStatus.SCHEDULED
    distance_miles = 25.0


class TripExpenseFactory(BaseFactory):
    class Meta:
        model = TripExpense

    trip = factory.SubFactory(TripFactory)
    category = ExpenseCategory.FUEL
    description = 'Diesel'
    amount = Decimal('100.00')


class DeliveryOrderFactory(BaseFactory):
    class Meta:
        model = DeliveryOrder

    order_number = factory.Sequence(lambda n: f"DO-TEST-{n:04d}")
    customer = factory.SubFactory(CustomerFactory)


class InvoiceFactory(BaseFactory):
    class Meta:
        model = Invoice

    invoice_number = factory.Sequence(lambda n: f"INV-2020-{n + 1:05d}")
    trip = factory.SubFactory(TripFactory)
    customer = factory.SelfAttribute('trip.customer')
    pricing_type = PricingType.FLAT
    line_items = factory.LazyFunction(lambda: json.dumps([
        {'description': 'Transport', 'quantity': '1', 'rate': '500.00', 'amount': '500.00'}
    ]))
    subtotal = Decimal('500.00')
    tax_rate = Decimal('0')
    tax_amount = Decimal('0.00')
    total_amount = Decimal('500.00')
    due_date = factory.LazyFunction(lambda: get_local_time_naive() + timedelta(days=30))
    paid = False
