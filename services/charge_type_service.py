"""
Charge Type Service

Catalog of billable charges used to build itemized invoices.
"""

from typing import Dict, Any, List, Optional
import logging
from models import db, ChargeType, CalculationUnit
from utils.errors import NotFoundError, ValidationError
from utils.request_helpers import (parse_text, parse_int, parse_enum, parse_decimal, parse_bool,
                                   merge_required, merge_optional, enum_parser, is_blank)
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

DUPLICATE_CHARGE_TYPE = 'A charge type with this code already exists'

def _parse_code(value, field='code'):
    code = parse_text(value, field)
    return code.upper() if code else None

class ChargeTypeService:
    """Service class for the charge type catalog"""

    def list_charge_types(self, active: Optional[bool] = None) -> List[ChargeType]:
        query = ChargeType.query
        if active is not None:
            query = query.filter(ChargeType.is_active == active)
        return query.order_by(ChargeType.display_order.asc(), ChargeType.name.asc()).all()

    def get_charge_type(self, charge_type_id: int) -> ChargeType:
        charge_type = db.session.get(ChargeType, charge_type_id)
        if charge_type is None:
            raise NotFoundError('Charge type not found')
        return charge_type

    def find_by_code(self, code: str) -> Optional[ChargeType]:
        return ChargeType.query.filter_by(code=code.upper()).first()

    @TransactionHelper.with_transaction
    def create_charge_type(self, data: Dict[str, Any]) -> ChargeType:
        if is_blank(data.get('name')) or is_blank(data.get('code')) or is_blank(data.get('category')):
            raise ValidationError('Name, code, and category are required')

        charge_type = ChargeType()
        charge_type.name = parse_text(data['name'])
        charge_type.code = _parse_code(data['code'])
        charge_type.category = parse_text(data['category'])
        charge_type.description = parse_text(data.get('description'))
        charge_type.default_rate = parse_decimal(data.get('defaultRate'), 'defaultRate')
        charge_type.calculation_unit = parse_enum(CalculationUnit, data.get('calculationUnit'),
                                                  'calculationUnit') or CalculationUnit.FIXED
        charge_type.requires_quantity = bool(parse_bool(data.get('requiresQuantity'), 'requiresQuantity'))
        is_active = parse_bool(data.get('isActive'), 'isActive')
        charge_type.is_active = True if is_active is None else is_active
        charge_type.display_order = parse_int(data.get('displayOrder'), 'displayOrder') or 0

        db.session.add(charge_type)
        TransactionHelper.flush_or_conflict(DUPLICATE_CHARGE_TYPE)

        logger.info(f"Charge type created: {charge_type.code}")
        return charge_type

    @TransactionHelper.with_transaction
    def update_charge_type(self, charge_type_id: int, data: Dict[str, Any]) -> ChargeType:
        charge_type = self.get_charge_type(charge_type_id)

        charge_type.name = merge_required(data, 'name', charge_type.name)
        charge_type.code = merge_required(data, 'code', charge_type.code, _parse_code)
        charge_type.category = merge_required(data, 'category', charge_type.category)
        charge_type.calculation_unit = merge_required(data, 'calculationUnit', charge_type.calculation_unit,
                                                      enum_parser(CalculationUnit))
        charge_type.requires_quantity = merge_required(data, 'requiresQuantity',
                                                       charge_type.requires_quantity, parse_bool)
        charge_type.is_active = merge_required(data, 'isActive', charge_type.is_active, parse_bool)
        charge_type.display_order = merge_required(data, 'displayOrder', charge_type.display_order, parse_int)
        charge_type.description = merge_optional(data, 'description', charge_type.description)
        charge_type.default_rate = merge_optional(data, 'defaultRate', charge_type.default_rate, parse_decimal)

        TransactionHelper.flush_or_conflict(DUPLICATE_CHARGE_TYPE)
        return charge_type

    @TransactionHelper.with_transaction
    def delete_charge_type(self, charge_type_id: int) -> None:
        charge_type = self.get_charge_type(charge_type_id)
        db.session.delete(charge_type)
        logger.info(f"Charge type deleted: {charge_type.code}")
