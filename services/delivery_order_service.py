"""
Delivery Order Service

Customer delivery requests. An order declares the container it concerns by
number, size and type; the container record is created on intake when it is
not yet known.
"""

from typing import Dict, Any, List
import logging
import random
import time
from models import (db, DeliveryOrder, DeliveryOrderStatus, DeliveryPriority, Customer,
                    Trip, Driver, Truck, ContainerSize, ContainerType)
from utils.errors import NotFoundError, ValidationError
from utils.request_helpers import (parse_text, parse_int, parse_enum, parse_float, parse_datetime,
                                   merge_required, merge_optional, enum_parser, is_blank)
from .container_service import ContainerService
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5

class DeliveryOrderService:
    """Service class for delivery order intake and dispatch"""

    def __init__(self):
        self.container_service = ContainerService()

    def list_orders(self, status: DeliveryOrderStatus = None,
                    customer_id: int = None) -> List[DeliveryOrder]:
        query = DeliveryOrder.query
        if status:
            query = query.filter(DeliveryOrder.status == status)
        if customer_id is not None:
            query = query.filter(DeliveryOrder.customer_id == customer_id)
        return query.order_by(DeliveryOrder.created_at.desc(), DeliveryOrder.id.desc()).all()

    def get_order(self, order_id: int) -> DeliveryOrder:
        order = db.session.get(DeliveryOrder, order_id)
        if order is None:
            raise NotFoundError('Delivery order not found')
        return order

    @staticmethod
    def generate_order_number() -> str:
        """DO-<epoch milliseconds>-<three random digits>, unique among stored orders"""
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            number = f"DO-{int(time.time() * 1000)}-{random.randint(0, 999):03d}"
            if DeliveryOrder.query.filter_by(order_number=number).first() is None:
                return number
        raise RuntimeError('Could not allocate a unique delivery order number')

    def _ensure_container(self, order: DeliveryOrder) -> None:
        """Create the declared container when number, size and type are all known"""
        if not (order.container_number and order.container_size and order.container_type):
            return
        if self.container_service.find_by_number(order.container_number) is not None:
            return
        self.container_service.build_container(
            order.container_number,
            ContainerSize[order.container_size],
            ContainerType[order.container_type]
        )
        logger.info(f"Container {order.container_number} registered from delivery order {order.order_number}")

    @staticmethod
    def _size_name(value, field='containerSize'):
        size = parse_enum(ContainerSize, value, field)
        return size.name if size else None

    @staticmethod
    def _type_name(value, field='containerType'):
        container_type = parse_enum(ContainerType, value, field)
        return container_type.name if container_type else None

    @staticmethod
    def _resolve_dispatch(order: DeliveryOrder, data: Dict[str, Any]) -> None:
        """Apply tripId / assignedDriverId / assignedTruckId, checking each reference exists"""
        for key, model, attr in (('tripId', Trip, 'trip_id'),
                                 ('assignedDriverId', Driver, 'assigned_driver_id'),
                                 ('assignedTruckId', Truck, 'assigned_truck_id')):
            if key not in data:
                continue
            ref_id = parse_int(data[key], key)
            if ref_id is not None and db.session.get(model, ref_id) is None:
                raise ValidationError('Invalid trip, driver, or truck ID')
            setattr(order, attr, ref_id)

    @TransactionHelper.with_transaction
    def create_order(self, data: Dict[str, Any]) -> DeliveryOrder:
        """
        Take in a delivery order.

        Raises:
            ValidationError: customer missing or unknown, malformed field
        """
        if is_blank(data.get('customerId')):
            raise ValidationError('Customer is required')
        customer_id = parse_int(data['customerId'], 'customerId')
        if db.session.get(Customer, customer_id) is None:
            raise ValidationError('Invalid customer ID')

        order = DeliveryOrder()
        order.order_number = self.generate_order_number()
        order.customer_id = customer_id
        order.container_number = parse_text(data.get('containerNumber'))
        order.container_size = self._size_name(data.get('containerSize'))
        order.container_type = self._type_name(data.get('containerType'))
        order.status = parse_enum(DeliveryOrderStatus, data.get('status'), 'status') or DeliveryOrderStatus.PENDING
        order.priority = parse_enum(DeliveryPriority, data.get('priority'), 'priority') or DeliveryPriority.STANDARD
        order.port_of_loading = parse_text(data.get('portOfLoading'))
        order.delivery_address = parse_text(data.get('deliveryAddress'))
        order.delivery_city = parse_text(data.get('deliveryCity'))
        order.delivery_state = parse_text(data.get('deliveryState'))
        order.delivery_zip = parse_text(data.get('deliveryZip'))
        order.requested_pickup_date = parse_datetime(data.get('requestedPickupDate'), 'requestedPickupDate')
        order.requested_delivery_date = parse_datetime(data.get('requestedDeliveryDate'), 'requestedDeliveryDate')
        order.customer_reference = parse_text(data.get('customerReference'))
        order.booking_number = parse_text(data.get('bookingNumber'))
        order.bill_of_lading = parse_text(data.get('billOfLading'))
        order.cargo_description = parse_text(data.get('cargoDescription'))
        order.weight = parse_float(data.get('weight'), 'weight')
        order.special_instructions = parse_text(data.get('specialInstructions'))
        order.notes = parse_text(data.get('notes'))
        self._resolve_dispatch(order, data)

        self._ensure_container(order)
        db.session.add(order)
        db.session.flush()

        logger.info(f"Delivery order created: {order.order_number} for customer {customer_id}")
        return order

    @TransactionHelper.with_transaction
    def update_order(self, order_id: int, data: Dict[str, Any]) -> DeliveryOrder:
        order = self.get_order(order_id)

        order.status = merge_required(data, 'status', order.status, enum_parser(DeliveryOrderStatus))
        order.priority = merge_required(data, 'priority', order.priority, enum_parser(DeliveryPriority))
        order.container_number = merge_optional(data, 'containerNumber', order.container_number)
        order.container_size = merge_optional(data, 'containerSize', order.container_size, self._size_name)
        order.container_type = merge_optional(data, 'containerType', order.container_type, self._type_name)
        order.port_of_loading = merge_optional(data, 'portOfLoading', order.port_of_loading)
        order.delivery_address = merge_optional(data, 'deliveryAddress', order.delivery_address)
        order.delivery_city = merge_optional(data, 'deliveryCity', order.delivery_city)
        order.delivery_state = merge_optional(data, 'deliveryState', order.delivery_state)
        order.delivery_zip = merge_optional(data, 'deliveryZip', order.delivery_zip)
        order.requested_pickup_date = merge_optional(data, 'requestedPickupDate',
                                                     order.requested_pickup_date, parse_datetime)
        order.requested_delivery_date = merge_optional(data, 'requestedDeliveryDate',
                                                       order.requested_delivery_date, parse_datetime)
        order.actual_pickup_date = merge_optional(data, 'actualPickupDate', order.actual_pickup_date, parse_datetime)
        order.actual_delivery_date = merge_optional(data, 'actualDeliveryDate',
                                                    order.actual_delivery_date, parse_datetime)
        order.customer_reference = merge_optional(data, 'customerReference', order.customer_reference)
        order.booking_number = merge_optional(data, 'bookingNumber', order.booking_number)
        order.bill_of_lading = merge_optional(data, 'billOfLading', order.bill_of_lading)
        order.cargo_description = merge_optional(data, 'cargoDescription', order.cargo_description)
        order.weight = merge_optional(data, 'weight', order.weight, parse_float)
        order.special_instructions = merge_optional(data, 'specialInstructions', order.special_instructions)
        order.notes = merge_optional(data, 'notes', order.notes)
        self._resolve_dispatch(order, data)

        self._ensure_container(order)
        db.session.flush()
        return order

    @TransactionHelper.with_transaction
    def delete_order(self, order_id: int) -> None:
        order = self.get_order(order_id)
        db.session.delete(order)
        logger.info(f"Delivery order deleted: {order.order_number}")
