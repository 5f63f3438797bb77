"""
Customer Service

Customer accounts and their negotiated rate cards. Rates belong to a customer
and are removed with it; trips, invoices and delivery orders block removal.
"""

from typing import Dict, Any, List
import logging
from models import db, Customer, CustomerRate, PricingType, ContainerSize
from utils.errors import NotFoundError, ValidationError
from utils.request_helpers import (parse_text, parse_int, parse_enum, parse_decimal, parse_bool,
                                   parse_datetime, merge_required, merge_optional, enum_parser, is_blank)
from timezone_utils import get_local_time_naive
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

DUPLICATE_CUSTOMER = 'A customer with this email already exists'
DEFAULT_PAYMENT_TERMS = 30

class CustomerService:
    """Service class for customer and rate management"""

    def list_customers(self) -> List[Customer]:
        return Customer.query.order_by(Customer.created_at.desc(), Customer.id.desc()).all()

    def get_customer(self, customer_id: int) -> Customer:
        customer = db.session.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError('Customer not found')
        return customer

    @staticmethod
    def _parse_address(value):
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValidationError('Invalid billingAddress: must be an object')
        return value

    @staticmethod
    def _parse_terms(value, field='paymentTerms'):
        terms = parse_int(value, field)
        if terms is not None and terms < 0:
            raise ValidationError(f"Invalid {field}: {value}")
        return terms

    @TransactionHelper.with_transaction
    def create_customer(self, data: Dict[str, Any]) -> Customer:
        """
        Open a customer account.

        Raises:
            ValidationError: name or email missing
            ConflictError: email already registered
        """
        if is_blank(data.get('name')) or is_blank(data.get('email')):
            raise ValidationError('Name and email are required')

        customer = Customer()
        customer.name = parse_text(data['name'])
        customer.email = parse_text(data['email'])
        customer.contact_name = parse_text(data.get('contactName'))
        customer.phone = parse_text(data.get('phone'))
        customer.pricing_type = parse_enum(PricingType, data.get('pricingType'), 'pricingType') or PricingType.FLAT
        customer.set_billing_address(self._parse_address(data.get('billingAddress')))
        terms = self._parse_terms(data.get('paymentTerms'))
        customer.payment_terms = terms if terms is not None else DEFAULT_PAYMENT_TERMS
        active = parse_bool(data.get('active'), 'active')
        customer.active = True if active is None else active

        db.session.add(customer)
        TransactionHelper.flush_or_conflict(DUPLICATE_CUSTOMER)

        logger.info(f"Customer created: {customer.name} <{customer.email}>")
        return customer

    @TransactionHelper.with_transaction
    def update_customer(self, customer_id: int, data: Dict[str, Any]) -> Customer:
        customer = self.get_customer(customer_id)

        customer.name = merge_required(data, 'name', customer.name)
        customer.email = merge_required(data, 'email', customer.email)
        customer.pricing_type = merge_required(data, 'pricingType', customer.pricing_type,
                                               enum_parser(PricingType))
        customer.payment_terms = merge_required(data, 'paymentTerms', customer.payment_terms,
                                                self._parse_terms)
        customer.active = merge_required(data, 'active', customer.active, parse_bool)
        customer.contact_name = merge_optional(data, 'contactName', customer.contact_name)
        customer.phone = merge_optional(data, 'phone', customer.phone)
        if 'billingAddress' in data:
            customer.set_billing_address(self._parse_address(data['billingAddress']))

        TransactionHelper.flush_or_conflict(DUPLICATE_CUSTOMER)
        return customer

    @TransactionHelper.with_transaction
    def delete_customer(self, customer_id: int) -> None:
        customer = self.get_customer(customer_id)
        db.session.delete(customer)
        TransactionHelper.flush_or_conflict('Cannot delete customer with existing trips or invoices')
        logger.info(f"Customer deleted: {customer.name}")

    # Rate card

    def list_rates(self, customer_id: int) -> List[CustomerRate]:
        return self.get_customer(customer_id).rates

    def get_rate(self, customer_id: int, rate_id: int) -> CustomerRate:
        rate = db.session.get(CustomerRate, rate_id)
        if rate is None or rate.customer_id != customer_id:
            raise NotFoundError('Rate not found')
        return rate

    @staticmethod
    def _parse_rate_amount(value, field='flatRate'):
        amount = parse_decimal(value, field)
        if amount is not None and amount < 0:
            raise ValidationError(f"Invalid {field}: {value}")
        return amount

    @TransactionHelper.with_transaction
    def create_rate(self, customer_id: int, data: Dict[str, Any]) -> CustomerRate:
        """
        Add a negotiated rate. routeFrom/routeTo left empty match any route.
        """
        customer = self.get_customer(customer_id)

        if is_blank(data.get('containerType')) or is_blank(data.get('flatRate')):
            raise ValidationError('Container type and flat rate are required')

        rate = CustomerRate()
        rate.customer = customer
        rate.route_from = parse_text(data.get('routeFrom'))
        rate.route_to = parse_text(data.get('routeTo'))
        rate.container_type = parse_enum(ContainerSize, data['containerType'], 'containerType')
        rate.flat_rate = self._parse_rate_amount(data['flatRate'])
        rate.effective_date = parse_datetime(data.get('effectiveDate'), 'effectiveDate') or get_local_time_naive()
        rate.expires_at = parse_datetime(data.get('expiresAt'), 'expiresAt')
        is_active = parse_bool(data.get('isActive'), 'isActive')
        rate.is_active = True if is_active is None else is_active

        db.session.add(rate)
        db.session.flush()

        logger.info(f"Rate added for customer {customer.name}: {rate.container_type.name} {rate.flat_rate}")
        return rate

    @TransactionHelper.with_transaction
    def update_rate(self, customer_id: int, rate_id: int, data: Dict[str, Any]) -> CustomerRate:
        rate = self.get_rate(customer_id, rate_id)

        rate.container_type = merge_required(data, 'containerType', rate.container_type,
                                             enum_parser(ContainerSize))
        rate.flat_rate = merge_required(data, 'flatRate', rate.flat_rate, self._parse_rate_amount)
        rate.effective_date = merge_required(data, 'effectiveDate', rate.effective_date, parse_datetime)
        rate.is_active = merge_required(data, 'isActive', rate.is_active, parse_bool)
        rate.route_from = merge_optional(data, 'routeFrom', rate.route_from)
        rate.route_to = merge_optional(data, 'routeTo', rate.route_to)
        rate.expires_at = merge_optional(data, 'expiresAt', rate.expires_at, parse_datetime)

        db.session.flush()
        return rate

    @TransactionHelper.with_transaction
    def delete_rate(self, customer_id: int, rate_id: int) -> None:
        rate = self.get_rate(customer_id, rate_id)
        db.session.delete(rate)
        logger.info(f"Rate {rate_id} removed from customer {customer_id}")
