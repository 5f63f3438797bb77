"""
Truck Service

Fleet records: creation, updates, retirement and removal of tractors.
"""

from typing import Dict, Any, List
import logging
from models import db, Truck, TruckStatus
from utils.errors import NotFoundError, ValidationError
from utils.request_helpers import (parse_text, parse_int, parse_enum, parse_date,
                                   merge_required, merge_optional, enum_parser, is_blank)
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

DUPLICATE_TRUCK = 'A truck with this plate or VIN already exists'

class TruckService:
    """Service class for truck management operations"""

    def list_trucks(self, status: TruckStatus = None) -> List[Truck]:
        query = Truck.query
        if status:
            query = query.filter(Truck.status == status)
        return query.order_by(Truck.created_at.desc(), Truck.id.desc()).all()

    def get_truck(self, truck_id: int) -> Truck:
        truck = db.session.get(Truck, truck_id)
        if truck is None:
            raise NotFoundError('Truck not found')
        return truck

    @staticmethod
    def _parse_location(value):
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValidationError('Invalid currentLocation: must be an object')
        return value

    @TransactionHelper.with_transaction
    def create_truck(self, data: Dict[str, Any]) -> Truck:
        """
        Register a truck.

        Raises:
            ValidationError: plate missing or a field malformed
            ConflictError: plate or VIN already registered
        """
        if is_blank(data.get('plate')):
            raise ValidationError('Plate number is required')

        truck = Truck()
        truck.plate = parse_text(data['plate'])
        truck.vin = parse_text(data.get('vin'))
        truck.make = parse_text(data.get('make'))
        truck.model = parse_text(data.get('model'))
        truck.year = parse_int(data.get('year'), 'year')
        truck.status = parse_enum(TruckStatus, data.get('status'), 'status') or TruckStatus.AVAILABLE
        truck.purchase_date = parse_date(data.get('purchaseDate'), 'purchaseDate')
        truck.last_service_date = parse_date(data.get('lastServiceDate'), 'lastServiceDate')
        truck.set_current_location(self._parse_location(data.get('currentLocation')))
        truck.notes = parse_text(data.get('notes'))

        db.session.add(truck)
        TransactionHelper.flush_or_conflict(DUPLICATE_TRUCK)

        logger.info(f"Truck created: {truck.plate}")
        return truck

    @TransactionHelper.with_transaction
    def update_truck(self, truck_id: int, data: Dict[str, Any]) -> Truck:
        truck = self.get_truck(truck_id)

        truck.plate = merge_required(data, 'plate', truck.plate)
        truck.status = merge_required(data, 'status', truck.status, enum_parser(TruckStatus))
        truck.vin = merge_optional(data, 'vin', truck.vin)
        truck.make = merge_optional(data, 'make', truck.make)
        truck.model = merge_optional(data, 'model', truck.model)
        truck.year = merge_optional(data, 'year', truck.year, parse_int)
        truck.purchase_date = merge_optional(data, 'purchaseDate', truck.purchase_date, parse_date)
        truck.last_service_date = merge_optional(data, 'lastServiceDate', truck.last_service_date, parse_date)
        truck.notes = merge_optional(data, 'notes', truck.notes)
        if 'currentLocation' in data:
            truck.set_current_location(self._parse_location(data['currentLocation']))

        TransactionHelper.flush_or_conflict(DUPLICATE_TRUCK)
        return truck

    @TransactionHelper.with_transaction
    def delete_truck(self, truck_id: int) -> None:
        truck = self.get_truck(truck_id)
        db.session.delete(truck)
        TransactionHelper.flush_or_conflict('Cannot delete truck with existing trips')
        logger.info(f"Truck deleted: {truck.plate}")
