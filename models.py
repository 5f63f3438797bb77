
from decimal import Decimal
import json
from app import db
from sqlalchemy import Index, UniqueConstraint
from enum import Enum
from timezone_utils import get_local_time_naive

# Enums for better data integrity
class UserRole(Enum):
    ADMIN = 'admin'
    DISPATCHER = 'dispatcher'
    DRIVER = 'driver'
    BILLING_ADMIN = 'billing_admin'
    CUSTOMER = 'customer'

class TruckStatus(Enum):
    AVAILABLE = 'available'
    IN_USE = 'in_use'
    MAINTENANCE = 'maintenance'
    RETIRED = 'retired'

class DriverStatus(Enum):
    ACTIVE = 'active'
    ON_LEAVE = 'on_leave'
    INACTIVE = 'inactive'

class PricingType(Enum):
    FLAT = 'flat'
    ITEMIZED = 'itemized'

class ContainerSize(Enum):
    TWENTY_FT = 'twenty_ft'
    FORTY_FT = 'forty_ft'
    FORTY_HC = 'forty_hc'
    FORTY_FIVE_FT = 'forty_five_ft'

class ContainerType(Enum):
    DRY = 'dry'
    REEFER = 'reefer'
    OPEN_TOP = 'open_top'
    FLAT_RACK = 'flat_rack'
    TANK = 'tank'

class CalculationUnit(Enum):
    FIXED = 'fixed'
    PER_HOUR = 'per_hour'
    PER_DAY = 'per_day'
    PER_MILE = 'per_mile'

class DeliveryOrderStatus(Enum):
    PENDING = 'pending'
    ASSIGNED = 'assigned'
    IN_TRANSIT = 'in_transit'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'

class DeliveryPriority(Enum):
    STANDARD = 'standard'
    URGENT = 'urgent'
    EXPEDITED = 'expedited'

class TripStatus(Enum):
    SCHEDULED = 'scheduled'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

class ExpenseCategory(Enum):
    FUEL = 'fuel'
    TOLLS = 'tolls'
    REPAIRS = 'repairs'
    MAINTENANCE = 'maintenance'
    MEALS = 'meals'
    LODGING = 'lodging'
    PARKING = 'parking'
    OTHER = 'other'

class DocumentType(Enum):
    BOL = 'bol'
    POD = 'pod'
    INVOICE_COPY = 'invoice_copy'
    PHOTO = 'photo'
    RECEIPT = 'receipt'
    INSPECTION = 'inspection'
    OTHER = 'other'

class ActivityType(Enum):
    STATUS_CHANGE = 'status_change'
    ASSIGNMENT_CHANGE = 'assignment_change'
    LOCATION_UPDATE = 'location_update'
    DOCUMENT_UPLOAD = 'document_upload'
    EXPENSE_ADDED = 'expense_added'
    NOTE_ADDED = 'note_added'
    SYSTEM_EVENT = 'system_event'


def _load_json(raw, default=None):
    """Decode a JSON text column, returning default for empty or corrupt values"""
    if raw:
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return default
    return default


def _dump_json(value):
    if value is None:
        return None
    return json.dumps(value, default=str)


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.DISPATCHER, index=True)

    # Profile information
    first_name = db.Column(db.String(50))
    last_name = db.Column(db.String(50))
    phone = db.Column(db.String(20))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    last_login = db.Column(db.DateTime)

    # Portal links
    driver_id = db.Column(db.Integer, db.ForeignKey('drivers.id'), unique=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), index=True)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    driver = db.relationship('Driver', backref=db.backref('user', uselist=False))
    customer = db.relationship('Customer', backref='users')

    @property
    def full_name(self):
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name or self.email

    def __repr__(self):
        return f'<User {self.email}>'


class Customer(db.Model):
    __tablename__ = 'customers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    contact_name = db.Column(db.String(100))
    phone = db.Column(db.String(20))
    pricing_type = db.Column(db.Enum(PricingType), nullable=False, default=PricingType.FLAT)
    billing_address = db.Column(db.Text)  # JSON object
    payment_terms = db.Column(db.Integer, nullable=False, default=30)  # days
    active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    # Relationships
    rates = db.relationship('CustomerRate', backref='customer', lazy=True,
                            cascade='all, delete-orphan', order_by='CustomerRate.effective_date.desc()')
    trips = db.relationship('Trip', backref='customer', lazy=True)
    invoices = db.relationship('Invoice', backref='customer', lazy=True)
    delivery_orders = db.relationship('DeliveryOrder', backref='customer', lazy=True)

    def get_billing_address(self):
        return _load_json(self.billing_address)

    def set_billing_address(self, address):
        self.billing_address = _dump_json(address)

    def __repr__(self):
        return f'<Customer {self.name}>'


class CustomerRate(db.Model):
    """Negotiated flat rate for a customer, optionally restricted to a route"""
    __tablename__ = 'customer_rates'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)
    route_from = db.Column(db.String(200))  # NULL matches any origin
    route_to = db.Column(db.String(200))  # NULL matches any destination
    container_type = db.Column(db.Enum(ContainerSize), nullable=False)
    flat_rate = db.Column(db.Numeric(10, 2), nullable=False)
    effective_date = db.Column(db.DateTime, nullable=False, default=get_local_time_naive)
    expires_at = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    __table_args__ = (
        Index('idx_rate_customer_active', 'customer_id', 'is_active'),
    )

    def is_effective(self, on=None):
        on = on or get_local_time_naive()
        if not self.is_active or self.effective_date > on:
            return False
        return self.expires_at is None or self.expires_at > on

    def __repr__(self):
        return f'<CustomerRate {self.customer_id} {self.route_from}->{self.route_to}>'


class Truck(db.Model):
    __tablename__ = 'trucks'

    id = db.Column(db.Integer, primary_key=True)
    plate = db.Column(db.String(20), unique=True, nullable=False, index=True)
    vin = db.Column(db.String(17), unique=True)
    make = db.Column(db.String(50))
    model = db.Column(db.String(100))
    year = db.Column(db.Integer)
    status = db.Column(db.Enum(TruckStatus), nullable=False, default=TruckStatus.AVAILABLE, index=True)
    purchase_date = db.Column(db.Date)
    last_service_date = db.Column(db.Date)
    current_location = db.Column(db.Text)  # JSON: lat, lng, address, updatedAt
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    trips = db.relationship('Trip', backref='truck', lazy=True)

    def get_current_location(self):
        return _load_json(self.current_location)

    def set_current_location(self, location):
        self.current_location = _dump_json(location)

    def __repr__(self):
        return f'<Truck {self.plate}>'


class Driver(db.Model):
    __tablename__ = 'drivers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    license = db.Column(db.String(50), unique=True, nullable=False, index=True)
    license_expiry = db.Column(db.Date)
    phone = db.Column(db.String(20))
    email = db.Column(db.String(120))
    status = db.Column(db.Enum(DriverStatus), nullable=False, default=DriverStatus.ACTIVE, index=True)
    hire_date = db.Column(db.Date)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    trips = db.relationship('Trip', backref='driver', lazy=True)

    __table_args__ = (
        Index('idx_driver_created', 'created_at'),
    )

    def __repr__(self):
        return f'<Driver {self.name}>'


class Terminal(db.Model):
    __tablename__ = 'terminals'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    address = db.Column(db.Text)  # JSON object
    sync_enabled = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    containers = db.relationship('Container', backref='terminal', lazy=True)

    def get_address(self):
        return _load_json(self.address)

    def set_address(self, address):
        self.address = _dump_json(address)

    def __repr__(self):
        return f'<Terminal {self.code}>'


class Container(db.Model):
    __tablename__ = 'containers'

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    size = db.Column(db.Enum(ContainerSize), nullable=False)
    type = db.Column(db.Enum(ContainerType), nullable=False)
    available = db.Column(db.Boolean, nullable=False, default=True, index=True)
    terminal_id = db.Column(db.Integer, db.ForeignKey('terminals.id'), index=True)
    condition = db.Column(db.String(50))
    last_inspection_date = db.Column(db.Date)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    trips = db.relationship('Trip', backref='container', lazy=True)

    def __repr__(self):
        return f'<Container {self.number}>'


class ChargeType(db.Model):
    __tablename__ = 'charge_types'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    description = db.Column(db.Text)
    category = db.Column(db.String(50), nullable=False)
    default_rate = db.Column(db.Numeric(10, 2))
    calculation_unit = db.Column(db.Enum(CalculationUnit), nullable=False, default=CalculationUnit.FIXED)
    requires_quantity = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    def __repr__(self):
        return f'<ChargeType {self.code}>'


class DeliveryOrder(db.Model):
    __tablename__ = 'delivery_orders'

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(40), unique=True, nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)

    # Container as declared by the customer; may not exist as a Container row yet
    container_number = db.Column(db.String(20), index=True)
    container_size = db.Column(db.String(20))
    container_type = db.Column(db.String(20))

    status = db.Column(db.Enum(DeliveryOrderStatus), nullable=False, default=DeliveryOrderStatus.PENDING, index=True)
    priority = db.Column(db.Enum(DeliveryPriority), nullable=False, default=DeliveryPriority.STANDARD)

    # Delivery details
    port_of_loading = db.Column(db.String(200))
    delivery_address = db.Column(db.String(300))
    delivery_city = db.Column(db.String(100))
    delivery_state = db.Column(db.String(50))
    delivery_zip = db.Column(db.String(20))

    requested_pickup_date = db.Column(db.DateTime)
    requested_delivery_date = db.Column(db.DateTime)
    actual_pickup_date = db.Column(db.DateTime)
    actual_delivery_date = db.Column(db.DateTime)

    # References
    customer_reference = db.Column(db.String(100))
    booking_number = db.Column(db.String(100))
    bill_of_lading = db.Column(db.String(100))

    # Dispatch
    trip_id = db.Column(db.Integer, db.ForeignKey('trips.id'), index=True)
    assigned_driver_id = db.Column(db.Integer, db.ForeignKey('drivers.id'))
    assigned_truck_id = db.Column(db.Integer, db.ForeignKey('trucks.id'))

    cargo_description = db.Column(db.Text)
    weight = db.Column(db.Float)
    special_instructions = db.Column(db.Text)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    trip = db.relationship('Trip', backref='delivery_orders', foreign_keys=[trip_id])
    assigned_driver = db.relationship('Driver', foreign_keys=[assigned_driver_id], backref='assigned_delivery_orders')
    assigned_truck = db.relationship('Truck', foreign_keys=[assigned_truck_id], backref='assigned_delivery_orders')

    def __repr__(self):
        return f'<DeliveryOrder {self.order_number}>'


class Trip(db.Model):
    __tablename__ = 'trips'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)
    truck_id = db.Column(db.Integer, db.ForeignKey('trucks.id'), nullable=False, index=True)
    driver_id = db.Column(db.Integer, db.ForeignKey('drivers.id'), nullable=False, index=True)
    container_id = db.Column(db.Integer, db.ForeignKey('containers.id'), nullable=False, index=True)

    pickup_location = db.Column(db.String(300), nullable=False)
    pickup_time = db.Column(db.DateTime)
    dropoff_location = db.Column(db.String(300), nullable=False)
    dropoff_time = db.Column(db.DateTime)

    status = db.Column(db.Enum(TripStatus), nullable=False, default=TripStatus.SCHEDULED, index=True)
    distance_miles = db.Column(db.Float)
    chassis_received_at = db.Column(db.DateTime)
    chassis_returned_at = db.Column(db.DateTime)
    route = db.Column(db.Text)  # JSON: waypoints / polyline
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    expenses = db.relationship('TripExpense', backref='trip', lazy=True, cascade='all, delete-orphan')
    documents = db.relationship('TripDocument', backref='trip', lazy=True, cascade='all, delete-orphan')
    activity_logs = db.relationship('TripActivityLog', backref='trip', lazy=True, cascade='all, delete-orphan')
    invoice = db.relationship('Invoice', backref='trip', uselist=False)

    __table_args__ = (
        Index('idx_trip_status_created', 'status', 'created_at'),
    )

    def get_route(self):
        return _load_json(self.route)

    def set_route(self, route):
        self.route = _dump_json(route)

    @property
    def total_expenses(self):
        return sum((expense.amount for expense in self.expenses), Decimal('0'))

    def __repr__(self):
        return f'<Trip {self.id} {self.pickup_location}->{self.dropoff_location}>'


class TripExpense(db.Model):
    __tablename__ = 'trip_expenses'

    id = db.Column(db.Integer, primary_key=True)
    trip_id = db.Column(db.Integer, db.ForeignKey('trips.id'), nullable=False, index=True)
    category = db.Column(db.Enum(ExpenseCategory), nullable=False, index=True)
    description = db.Column(db.String(300), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    receipt_url = db.Column(db.String(500))
    paid_by = db.Column(db.String(100))
    paid_at = db.Column(db.DateTime, nullable=False, default=get_local_time_naive, index=True)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    def __repr__(self):
        return f'<TripExpense {self.category.name} {self.amount}>'


class TripDocument(db.Model):
    __tablename__ = 'trip_documents'

    id = db.Column(db.Integer, primary_key=True)
    trip_id = db.Column(db.Integer, db.ForeignKey('trips.id'), nullable=False, index=True)
    type = db.Column(db.Enum(DocumentType), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    file_url = db.Column(db.String(500), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    file_size = db.Column(db.Integer)
    mime_type = db.Column(db.String(100))
    uploaded_by = db.Column(db.String(100))
    uploaded_at = db.Column(db.DateTime, nullable=False, default=get_local_time_naive, index=True)

    def __repr__(self):
        return f'<TripDocument {self.title}>'


class TripActivityLog(db.Model):
    """Append-only history of what happened to a trip"""
    __tablename__ = 'trip_activity_logs'

    id = db.Column(db.Integer, primary_key=True)
    trip_id = db.Column(db.Integer, db.ForeignKey('trips.id'), nullable=False, index=True)
    activity_type = db.Column(db.Enum(ActivityType), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    old_value = db.Column(db.String(255))
    new_value = db.Column(db.String(255))
    performed_by = db.Column(db.String(100))
    activity_metadata = db.Column('metadata', db.Text)  # JSON

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False, index=True)

    __table_args__ = (
        Index('idx_activity_trip_created', 'trip_id', 'created_at'),
    )

    def get_metadata(self):
        return _load_json(self.activity_metadata)

    def set_metadata(self, metadata):
        self.activity_metadata = _dump_json(metadata)

    def __repr__(self):
        return f'<TripActivityLog {self.activity_type.name} trip={self.trip_id}>'


class Invoice(db.Model):
    __tablename__ = 'invoices'

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    trip_id = db.Column(db.Integer, db.ForeignKey('trips.id'), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)
    pricing_type = db.Column(db.Enum(PricingType), nullable=False)

    # Billing amounts
    line_items = db.Column(db.Text, nullable=False)  # JSON array of {description, quantity, rate, amount}
    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)  # percent
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Payment
    due_date = db.Column(db.DateTime, nullable=False)
    paid = db.Column(db.Boolean, nullable=False, default=False, index=True)
    paid_at = db.Column(db.DateTime)
    payment_method = db.Column(db.String(50))
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=get_local_time_naive, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    __table_args__ = (
        UniqueConstraint('trip_id', name='unique_invoice_trip'),
    )

    def get_line_items(self):
        return _load_json(self.line_items, default=[])

    def set_line_items(self, items):
        self.line_items = _dump_json(items or [])

    @property
    def is_overdue(self):
        return not self.paid and self.due_date < get_local_time_naive()

    def __repr__(self):
        return f'<Invoice {self.invoice_number}>'
