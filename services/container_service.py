"""
Container Service

Container inventory and the terminals containers sit at, plus the backfill
that materialises containers declared on delivery orders.
"""

from typing import Dict, Any, List, Optional
import logging
from models import db, Container, ContainerSize, ContainerType, Terminal, DeliveryOrder
from utils.errors import NotFoundError, ValidationError
from utils.request_helpers import (parse_text, parse_int, parse_enum, parse_date, parse_bool,
                                   merge_required, merge_optional, enum_parser, is_blank)
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

DUPLICATE_CONTAINER = 'A container with this number already exists'
DUPLICATE_TERMINAL = 'A terminal with this code already exists'

class ContainerService:
    """Service class for containers and terminals"""

    def list_containers(self, available: Optional[bool] = None,
                        terminal_id: Optional[int] = None) -> List[Container]:
        query = Container.query
        if available is not None:
            query = query.filter(Container.available == available)
        if terminal_id is not None:
            query = query.filter(Container.terminal_id == terminal_id)
        return query.order_by(Container.number.asc()).all()

    def get_container(self, container_id: int) -> Container:
        container = db.session.get(Container, container_id)
        if container is None:
            raise NotFoundError('Container not found')
        return container

    def find_by_number(self, number: str) -> Optional[Container]:
        return Container.query.filter_by(number=number).first()

    def _resolve_terminal(self, value, field='terminalId') -> Optional[Terminal]:
        terminal_id = parse_int(value, field)
        if terminal_id is None:
            return None
        terminal = db.session.get(Terminal, terminal_id)
        if terminal is None:
            raise ValidationError('Invalid terminal ID')
        return terminal

    @staticmethod
    def build_container(number: str, size: ContainerSize, container_type: ContainerType) -> Container:
        """New container staged in the session: available and not yet at a terminal"""
        container = Container()
        container.number = number
        container.size = size
        container.type = container_type
        container.available = True
        container.terminal_id = None
        db.session.add(container)
        return container

    @TransactionHelper.with_transaction
    def create_container(self, data: Dict[str, Any]) -> Container:
        if is_blank(data.get('number')) or is_blank(data.get('size')) or is_blank(data.get('type')):
            raise ValidationError('Number, size, and type are required')

        container = self.build_container(
            parse_text(data['number']),
            parse_enum(ContainerSize, data['size'], 'size'),
            parse_enum(ContainerType, data['type'], 'type')
        )
        available = parse_bool(data.get('available'), 'available')
        container.available = True if available is None else available
        terminal = self._resolve_terminal(data.get('terminalId'))
        container.terminal_id = terminal.id if terminal else None
        container.condition = parse_text(data.get('condition'))
        container.last_inspection_date = parse_date(data.get('lastInspectionDate'), 'lastInspectionDate')

        TransactionHelper.flush_or_conflict(DUPLICATE_CONTAINER)

        logger.info(f"Container created: {container.number}")
        return container

    @TransactionHelper.with_transaction
    def update_container(self, container_id: int, data: Dict[str, Any]) -> Container:
        container = self.get_container(container_id)

        container.number = merge_required(data, 'number', container.number)
        container.size = merge_required(data, 'size', container.size, enum_parser(ContainerSize))
        container.type = merge_required(data, 'type', container.type, enum_parser(ContainerType))
        container.available = merge_required(data, 'available', container.available, parse_bool)
        if 'terminalId' in data:
            terminal = self._resolve_terminal(data['terminalId'])
            container.terminal_id = terminal.id if terminal else None
        container.condition = merge_optional(data, 'condition', container.condition)
        container.last_inspection_date = merge_optional(data, 'lastInspectionDate',
                                                        container.last_inspection_date, parse_date)

        TransactionHelper.flush_or_conflict(DUPLICATE_CONTAINER)
        return container

    @TransactionHelper.with_transaction
    def delete_container(self, container_id: int) -> None:
        container = self.get_container(container_id)
        db.session.delete(container)
        TransactionHelper.flush_or_conflict('Cannot delete container with existing trips')
        logger.info(f"Container deleted: {container.number}")

    # Terminals

    def list_terminals(self) -> List[Terminal]:
        return Terminal.query.order_by(Terminal.name.asc()).all()

    def get_terminal(self, terminal_id: int) -> Terminal:
        terminal = db.session.get(Terminal, terminal_id)
        if terminal is None:
            raise NotFoundError('Terminal not found')
        return terminal

    @staticmethod
    def _parse_address(value):
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValidationError('Invalid address: must be an object')
        return value

    @TransactionHelper.with_transaction
    def create_terminal(self, data: Dict[str, Any]) -> Terminal:
        if is_blank(data.get('name')) or is_blank(data.get('code')):
            raise ValidationError('Name and code are required')

        terminal = Terminal()
        terminal.name = parse_text(data['name'])
        terminal.code = parse_text(data['code'])
        terminal.set_address(self._parse_address(data.get('address')))
        terminal.sync_enabled = bool(parse_bool(data.get('syncEnabled'), 'syncEnabled'))

        db.session.add(terminal)
        TransactionHelper.flush_or_conflict(DUPLICATE_TERMINAL)

        logger.info(f"Terminal created: {terminal.code}")
        return terminal

    @TransactionHelper.with_transaction
    def update_terminal(self, terminal_id: int, data: Dict[str, Any]) -> Terminal:
        terminal = self.get_terminal(terminal_id)

        terminal.name = merge_required(data, 'name', terminal.name)
        terminal.code = merge_required(data, 'code', terminal.code)
        terminal.sync_enabled = merge_required(data, 'syncEnabled', terminal.sync_enabled, parse_bool)
        if 'address' in data:
            terminal.set_address(self._parse_address(data['address']))

        TransactionHelper.flush_or_conflict(DUPLICATE_TERMINAL)
        return terminal

    @TransactionHelper.with_transaction
    def delete_terminal(self, terminal_id: int) -> None:
        """Remove a terminal; containers parked there lose their terminal link"""
        terminal = self.get_terminal(terminal_id)
        detached = len(terminal.containers)
        db.session.delete(terminal)
        db.session.flush()
        logger.info(f"Terminal deleted: {terminal.code} ({detached} containers detached)")

    # Backfill

    @TransactionHelper.with_transaction
    def create_missing_containers(self) -> Dict[str, Any]:
        """
        Create a container for every delivery order whose declared container
        does not exist yet.

        Returns:
            dict: {success, summary: {total, created, skipped}, results: [...]}
        """
        orders = DeliveryOrder.query.filter(
            DeliveryOrder.container_number.isnot(None),
            DeliveryOrder.container_size.isnot(None),
            DeliveryOrder.container_type.isnot(None)
        ).order_by(DeliveryOrder.created_at.asc(), DeliveryOrder.id.asc()).all()

        logger.info(f"Checking {len(orders)} delivery orders for missing containers")

        created = 0
        skipped = 0
        results = []
        seen = set()

        for order in orders:
            number = order.container_number
            outcome = {'containerNumber': number, 'orderNumber': order.order_number}

            if number in seen or self.find_by_number(number) is not None:
                skipped += 1
                outcome.update(status='skipped', reason='Already exists')
                results.append(outcome)
                continue

            try:
                size = parse_enum(ContainerSize, order.container_size, 'containerSize')
                container_type = parse_enum(ContainerType, order.container_type, 'containerType')
            except ValidationError:
                size = container_type = None

            if size is None or container_type is None:
                skipped += 1
                outcome.update(status='skipped', reason='Invalid container size or type')
                results.append(outcome)
                logger.warning(f"Container {number} on order {order.order_number} has invalid size or type")
                continue

            self.build_container(number, size, container_type)
            seen.add(number)
            created += 1
            outcome.update(status='created', reason='New container created')
            results.append(outcome)
            logger.info(f"Container {number} created for order {order.order_number}")

        db.session.flush()

        return {
            'success': True,
            'summary': {'total': len(orders), 'created': created, 'skipped': skipped},
            'results': results,
        }
