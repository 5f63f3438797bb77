"""
User Service

Back-office accounts and credential checks. Passwords are stored as salted
hashes and never leave this module.
"""

from typing import Dict, Any, List, Optional
import logging
from werkzeug.security import generate_password_hash, check_password_hash
from models import db, User, UserRole, Driver, Customer
from utils.errors import NotFoundError, ValidationError, ConflictError, AuthenticationError
from utils.request_helpers import (parse_text, parse_int, parse_enum, parse_bool,
                                   merge_required, merge_optional, enum_parser, is_blank)
from timezone_utils import get_local_time_naive
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

DUPLICATE_USER = 'A user with this email already exists'
DRIVER_ALREADY_LINKED = 'This driver is already linked to another user'
INVALID_CREDENTIALS = 'Invalid email or password'

def _normalize_email(value, field='email'):
    email = parse_text(value, field)
    return email.lower() if email else None

class UserService:
    """Service class for user accounts and authentication"""

    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        query = User.query
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc(), User.id.desc()).all()

    def get_user(self, user_id: int) -> User:
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError('User not found')
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return User.query.filter_by(email=_normalize_email(email)).first()

    @staticmethod
    def _link(model, value, field):
        ref_id = parse_int(value, field)
        if ref_id is None:
            return None
        if db.session.get(model, ref_id) is None:
            raise ValidationError('Invalid driver or customer ID')
        return ref_id

    def _link_driver(self, value, user_id=None):
        driver_id = self._link(Driver, value, 'driverId')
        if driver_id is None:
            return None
        with db.session.no_autoflush:
            owner = User.query.filter_by(driver_id=driver_id).first()
        if owner is not None and owner.id != user_id:
            raise ConflictError(DRIVER_ALREADY_LINKED)
        return driver_id

    @TransactionHelper.with_transaction
    def create_user(self, data: Dict[str, Any]) -> User:
        """
        Create an account.

        Raises:
            ValidationError: email, password or role missing
            ConflictError: email already registered or driver already linked
        """
        if is_blank(data.get('email')) or is_blank(data.get('password')) or is_blank(data.get('role')):
            raise ValidationError('Email, password, and role are required')

        user = User()
        user.email = _normalize_email(data['email'])
        user.password_hash = generate_password_hash(str(data['password']))
        user.role = parse_enum(UserRole, data['role'], 'role')
        user.first_name = parse_text(data.get('firstName'))
        user.last_name = parse_text(data.get('lastName'))
        user.phone = parse_text(data.get('phone'))
        is_active = parse_bool(data.get('isActive'), 'isActive')
        user.is_active = True if is_active is None else is_active
        user.driver_id = self._link_driver(data.get('driverId'))
        user.customer_id = self._link(Customer, data.get('customerId'), 'customerId')

        db.session.add(user)
        TransactionHelper.flush_or_conflict(DUPLICATE_USER)

        logger.info(f"User created: {user.email} ({user.role.name})")
        return user

    @TransactionHelper.with_transaction
    def update_user(self, user_id: int, data: Dict[str, Any]) -> User:
        user = self.get_user(user_id)

        user.email = merge_required(data, 'email', user.email, _normalize_email)
        user.role = merge_required(data, 'role', user.role, enum_parser(UserRole))
        user.is_active = merge_required(data, 'isActive', user.is_active, parse_bool)
        user.email_verified = merge_required(data, 'emailVerified', user.email_verified, parse_bool)
        user.first_name = merge_optional(data, 'firstName', user.first_name)
        user.last_name = merge_optional(data, 'lastName', user.last_name)
        user.phone = merge_optional(data, 'phone', user.phone)
        if 'driverId' in data:
            user.driver_id = self._link_driver(data['driverId'], user.id)
        if 'customerId' in data:
            user.customer_id = self._link(Customer, data['customerId'], 'customerId')
        if not is_blank(data.get('password')):
            user.password_hash = generate_password_hash(str(data['password']))
            logger.info(f"Password changed for user {user.email}")

        TransactionHelper.flush_or_conflict(DUPLICATE_USER)
        return user

    @TransactionHelper.with_transaction
    def delete_user(self, user_id: int) -> None:
        user = self.get_user(user_id)
        db.session.delete(user)
        logger.info(f"User deleted: {user.email}")

    @TransactionHelper.with_transaction
    def authenticate(self, email: Any, password: Any) -> User:
        """
        Check credentials and stamp the login time.

        Raises:
            ValidationError: email or password missing
            AuthenticationError: unknown email, wrong password or inactive account
        """
        if is_blank(email) or is_blank(password):
            raise ValidationError('Email and password are required')

        user = self.find_by_email(email)
        if user is None or not check_password_hash(user.password_hash, str(password)):
            logger.warning(f"Failed login attempt for {parse_text(email)}")
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not user.is_active:
            logger.warning(f"Login attempt for inactive user {user.email}")
            raise AuthenticationError(INVALID_CREDENTIALS)

        user.last_login = get_local_time_naive()
        logger.info(f"User logged in: {user.email}")
        return user
