"""
Invoice Service

Billing for completed work. One invoice per trip; amounts are always derived
on the server from the line items and tax rate.
"""

from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, List, Optional, Tuple
import logging
from models import db, Invoice, Trip, Customer, PricingType
from utils.errors import NotFoundError, ValidationError, ConflictError
from utils.request_helpers import (parse_text, parse_int, parse_enum, parse_decimal, parse_bool,
                                   parse_datetime, merge_required, merge_optional, enum_parser, is_blank)
from timezone_utils import get_local_time_naive
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
ZERO = Decimal('0')
HUNDRED = Decimal('100')

DUPLICATE_INVOICE = 'An invoice already exists for this trip'

def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)

def compute_totals(line_items: List[Dict[str, Any]], tax_rate: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Compute (subtotal, tax_amount, total_amount) for normalized line items.

    Example:
        400 + 2x75 + 3x50 + 45 = 745.00 at 8.25% -> (745.00, 61.46, 806.46)
    """
    subtotal = to_cents(sum((Decimal(str(item['amount'])) for item in line_items), ZERO))
    tax_amount = to_cents(subtotal * Decimal(tax_rate) / HUNDRED)
    return subtotal, tax_amount, subtotal + tax_amount

def normalize_line_items(raw_items: Any) -> List[Dict[str, Any]]:
    """
    Validate line items and settle each amount.

    An item carrying a rate is billed as quantity x rate (quantity defaults
    to 1); an item carrying only an amount keeps it. Amounts are stored as
    strings with two decimals.
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError('Invalid lineItems: must be a non-empty list')

    items = []
    for index, raw in enumerate(raw_items):
        field = f"lineItems[{index}]"
        if not isinstance(raw, dict):
            raise ValidationError(f"Invalid {field}: must be an object")
        description = parse_text(raw.get('description'))
        if description is None:
            raise ValidationError(f"Invalid {field}: description is required")

        quantity = parse_decimal(raw.get('quantity'), f"{field}.quantity")
        rate = parse_decimal(raw.get('rate'), f"{field}.rate")
        amount = parse_decimal(raw.get('amount'), f"{field}.amount")

        if quantity is None:
            quantity = Decimal('1')
        if rate is not None:
            amount = quantity * rate
        elif amount is not None:
            rate = amount / quantity if quantity else amount
        else:
            raise ValidationError(f"Invalid {field}: rate or amount is required")

        item = {
            'description': description,
            'quantity': format(quantity.normalize(), 'f'),
            'rate': str(to_cents(rate)),
            'amount': str(to_cents(amount)),
        }
        code = parse_text(raw.get('chargeTypeCode'))
        if code:
            item['chargeTypeCode'] = code.upper()
        items.append(item)
    return items

def parse_tax_rate(value: Any, field: str = 'taxRate') -> Optional[Decimal]:
    rate = parse_decimal(value, field)
    if rate is not None and (rate < 0 or rate > HUNDRED):
        raise ValidationError(f"Invalid {field}: {value}")
    # stored as Numeric(5, 2); totals must be computed from the stored rate
    return to_cents(rate) if rate is not None else None


class InvoiceService:
    """Service class for invoicing and payment tracking"""

    def list_invoices(self, paid: Optional[bool] = None, customer_id: Optional[int] = None) -> List[Invoice]:
        query = Invoice.query
        if paid is not None:
            query = query.filter(Invoice.paid == paid)
        if customer_id is not None:
            query = query.filter(Invoice.customer_id == customer_id)
        return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = db.session.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError('Invoice not found')
        return invoice

    @staticmethod
    def next_invoice_number(year: Optional[int] = None) -> str:
        """INV-<year>-<sequence>, the sequence one past the highest issued that year"""
        year = year or get_local_time_naive().year
        prefix = f"INV-{year}-"
        numbers = db.session.query(Invoice.invoice_number) \
                            .filter(Invoice.invoice_number.like(f"{prefix}%")) \
                            .all()
        highest = 0
        for (number,) in numbers:
            suffix = number[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{prefix}{highest + 1:05d}"

    @staticmethod
    def _apply_totals(invoice: Invoice, items: List[Dict[str, Any]], tax_rate: Decimal) -> None:
        invoice.set_line_items(items)
        invoice.tax_rate = to_cents(Decimal(tax_rate))
        invoice.subtotal, invoice.tax_amount, invoice.total_amount = compute_totals(items, invoice.tax_rate)

    @TransactionHelper.with_transaction
    def create_invoice(self, data: Dict[str, Any]) -> Invoice:
        """
        Issue an invoice for a trip.

        Raises:
            ValidationError: required fields missing, unknown trip or customer
            ConflictError: the trip is already invoiced
        """
        if is_blank(data.get('tripId')) or is_blank(data.get('customerId')) or not data.get('lineItems'):
            raise ValidationError('Trip, customer, and line items are required')

        trip = db.session.get(Trip, parse_int(data['tripId'], 'tripId'))
        customer = db.session.get(Customer, parse_int(data['customerId'], 'customerId'))
        if trip is None or customer is None:
            raise ValidationError('Invalid trip or customer ID')
        if trip.invoice is not None:
            raise ConflictError(DUPLICATE_INVOICE)

        now = get_local_time_naive()
        invoice = Invoice()
        invoice.invoice_number = self.next_invoice_number(now.year)
        invoice.trip_id = trip.id
        invoice.customer_id = customer.id
        invoice.pricing_type = parse_enum(PricingType, data.get('pricingType'), 'pricingType') \
            or customer.pricing_type
        self._apply_totals(invoice, normalize_line_items(data['lineItems']),
                           parse_tax_rate(data.get('taxRate')) or ZERO)
        invoice.due_date = parse_datetime(data.get('dueDate'), 'dueDate') \
            or now + timedelta(days=customer.payment_terms)
        invoice.paid = bool(parse_bool(data.get('paid'), 'paid'))
        invoice.paid_at = parse_datetime(data.get('paidAt'), 'paidAt') or (now if invoice.paid else None)
        invoice.payment_method = parse_text(data.get('paymentMethod'))
        invoice.notes = parse_text(data.get('notes'))

        db.session.add(invoice)
        TransactionHelper.flush_or_conflict(DUPLICATE_INVOICE)

        logger.info(f"Invoice {invoice.invoice_number} issued for trip {trip.id}: {invoice.total_amount}")
        return invoice

    @TransactionHelper.with_transaction
    def update_invoice(self, invoice_id: int, data: Dict[str, Any]) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        was_paid = invoice.paid

        if 'lineItems' in data or 'taxRate' in data:
            items = normalize_line_items(data['lineItems']) if data.get('lineItems') \
                else invoice.get_line_items()
            tax_rate = merge_required(data, 'taxRate', invoice.tax_rate, parse_tax_rate)
            self._apply_totals(invoice, items, tax_rate)

        invoice.pricing_type = merge_required(data, 'pricingType', invoice.pricing_type, enum_parser(PricingType))
        invoice.due_date = merge_required(data, 'dueDate', invoice.due_date, parse_datetime)
        invoice.paid = merge_required(data, 'paid', invoice.paid, parse_bool)
        invoice.paid_at = merge_optional(data, 'paidAt', invoice.paid_at, parse_datetime)
        invoice.payment_method = merge_optional(data, 'paymentMethod', invoice.payment_method)
        invoice.notes = merge_optional(data, 'notes', invoice.notes)

        if invoice.paid and invoice.paid_at is None:
            invoice.paid_at = get_local_time_naive()
        elif not invoice.paid:
            invoice.paid_at = None

        db.session.flush()

        if invoice.paid != was_paid:
            logger.info(f"Invoice {invoice.invoice_number} marked {'paid' if invoice.paid else 'unpaid'}")
        return invoice

    @TransactionHelper.with_transaction
    def delete_invoice(self, invoice_id: int) -> None:
        invoice = self.get_invoice(invoice_id)
        db.session.delete(invoice)
        logger.info(f"Invoice deleted: {invoice.invoice_number}")
