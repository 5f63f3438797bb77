"""
Driver Service

Handles driver records: hiring, profile updates, status changes and removal.
"""

from typing import Dict, Any, List
import logging
from models import db, Driver, DriverStatus
from utils.errors import NotFoundError, ValidationError
from utils.request_helpers import (parse_text, parse_enum, parse_date,
                                   merge_required, merge_optional, enum_parser, is_blank)
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

DUPLICATE_DRIVER = 'A driver with this license already exists'

class DriverService:
    """Service class for driver management operations"""

    def list_drivers(self, status: DriverStatus = None) -> List[Driver]:
        query = Driver.query
        if status:
            query = query.filter(Driver.status == status)
        return query.order_by(Driver.created_at.desc(), Driver.id.desc()).all()

    def get_driver(self, driver_id: int) -> Driver:
        driver = db.session.get(Driver, driver_id)
        if driver is None:
            raise NotFoundError('Driver not found')
        return driver

    @TransactionHelper.with_transaction
    def create_driver(self, data: Dict[str, Any]) -> Driver:
        """
        Add a driver to the roster.

        Args:
            data: camelCase payload; name and license are required

        Returns:
            Driver: the persisted driver
        """
        if is_blank(data.get('name')) or is_blank(data.get('license')):
            raise ValidationError('Name and license are required')

        driver = Driver()
        driver.name = parse_text(data['name'])
        driver.license = parse_text(data['license'])
        driver.license_expiry = parse_date(data.get('licenseExpiry'), 'licenseExpiry')
        driver.phone = parse_text(data.get('phone'))
        driver.email = parse_text(data.get('email'))
        driver.status = parse_enum(DriverStatus, data.get('status'), 'status') or DriverStatus.ACTIVE
        driver.hire_date = parse_date(data.get('hireDate'), 'hireDate')
        driver.notes = parse_text(data.get('notes'))

        db.session.add(driver)
        TransactionHelper.flush_or_conflict(DUPLICATE_DRIVER)

        logger.info(f"Driver created: {driver.name} (license {driver.license})")
        return driver

    @TransactionHelper.with_transaction
    def update_driver(self, driver_id: int, data: Dict[str, Any]) -> Driver:
        driver = self.get_driver(driver_id)
        previous_status = driver.status

        driver.name = merge_required(data, 'name', driver.name)
        driver.license = merge_required(data, 'license', driver.license)
        driver.status = merge_required(data, 'status', driver.status, enum_parser(DriverStatus))
        driver.license_expiry = merge_optional(data, 'licenseExpiry', driver.license_expiry, parse_date)
        driver.phone = merge_optional(data, 'phone', driver.phone)
        driver.email = merge_optional(data, 'email', driver.email)
        driver.hire_date = merge_optional(data, 'hireDate', driver.hire_date, parse_date)
        driver.notes = merge_optional(data, 'notes', driver.notes)

        TransactionHelper.flush_or_conflict(DUPLICATE_DRIVER)

        if driver.status != previous_status:
            logger.info(f"Driver {driver.name} status changed from {previous_status.name} to {driver.status.name}")
        return driver

    @TransactionHelper.with_transaction
    def delete_driver(self, driver_id: int) -> None:
        driver = self.get_driver(driver_id)
        db.session.delete(driver)
        TransactionHelper.flush_or_conflict('Cannot delete driver with existing trips')
        logger.info(f"Driver deleted: {driver.name}")
