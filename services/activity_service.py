"""
Activity Service

Append-only trip history: status changes, reassignments, document and
expense events, and manual notes. Entries are added to the caller's
transaction and never committed here.
"""

from typing import Optional, Dict, Any, List
import logging
from flask import has_request_context
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from models import db, Trip, TripActivityLog, ActivityType, User
from utils.errors import NotFoundError, ValidationError
from utils.request_helpers import parse_enum, parse_text, is_blank
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = 'System'

class ActivityService:
    """Service class for the trip activity log"""

    @staticmethod
    def current_actor() -> str:
        """
        Name recorded as performedBy: the authenticated user's name when a
        valid access token accompanies the request, otherwise 'System'.
        """
        if not has_request_context():
            return SYSTEM_ACTOR
        try:
            verify_jwt_in_request(optional=True)
            identity = get_jwt_identity()
        except (JWTExtendedException, PyJWTError):
            return SYSTEM_ACTOR
        if identity is None:
            return SYSTEM_ACTOR
        user = db.session.get(User, int(identity))
        return user.full_name if user else SYSTEM_ACTOR

    @staticmethod
    def log_trip_activity(trip_id: int,
                          activity_type: ActivityType,
                          description: str,
                          old_value: Optional[str] = None,
                          new_value: Optional[str] = None,
                          performed_by: Optional[str] = None,
                          metadata: Optional[Dict[str, Any]] = None) -> TripActivityLog:
        """
        Append an activity entry for a trip.

        Args:
            trip_id: Trip the entry belongs to
            activity_type: Kind of event
            description: Human-readable summary
            old_value: Value before the change, if any
            new_value: Value after the change, if any
            performed_by: Actor name (defaults to the current actor)
            metadata: Extra structured details

        Returns:
            TripActivityLog: the pending entry
        """
        entry = TripActivityLog()
        entry.trip_id = trip_id
        entry.activity_type = activity_type
        entry.description = description
        entry.old_value = old_value
        entry.new_value = new_value
        entry.performed_by = performed_by or ActivityService.current_actor()
        entry.set_metadata(metadata)

        db.session.add(entry)

        # Let outer transaction handle the commit
        logger.debug(f"Trip activity logged: trip={trip_id} type={activity_type.name}")
        return entry

    def get_trip_activity(self, trip_id: int) -> List[TripActivityLog]:
        """
        Activity entries for a trip, newest first.

        Raises:
            NotFoundError: when the trip does not exist
        """
        if db.session.get(Trip, trip_id) is None:
            raise NotFoundError('Trip not found')
        return TripActivityLog.query.filter_by(trip_id=trip_id) \
                                    .order_by(TripActivityLog.created_at.desc(), TripActivityLog.id.desc()) \
                                    .all()

    @TransactionHelper.with_transaction
    def add_entry(self, trip_id: int, data: Dict[str, Any]) -> TripActivityLog:
        """
        Record a manual activity entry (notes, location updates, ...).
        """
        if is_blank(data.get('activityType')) or is_blank(data.get('description')):
            raise ValidationError('Activity type and description are required')

        if db.session.get(Trip, trip_id) is None:
            raise NotFoundError('Trip not found')

        metadata = data.get('metadata')
        if metadata is not None and not isinstance(metadata, dict):
            raise ValidationError('Invalid metadata: must be an object')

        entry = self.log_trip_activity(
            trip_id=trip_id,
            activity_type=parse_enum(ActivityType, data['activityType'], 'activityType'),
            description=parse_text(data['description']),
            old_value=parse_text(data.get('oldValue')),
            new_value=parse_text(data.get('newValue')),
            performed_by=parse_text(data.get('performedBy')),
            metadata=metadata
        )
        db.session.flush()
        return entry
