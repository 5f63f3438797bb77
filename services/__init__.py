"""
Service Layer Architecture

Business logic for the dispatch back office, kept out of the route handlers.
Services provide:

1. **Transaction Management**: each mutating call commits or rolls back as a unit
2. **Business Logic Separation**: route handlers only parse requests and shape responses
3. **Testability**: services are exercised directly in the unit tests
4. **Error Handling**: typed errors carry the HTTP status the API returns

Services Architecture:
- **TruckService / DriverService**: fleet and roster records
- **CustomerService**: customer accounts and negotiated rates
- **ContainerService**: containers, terminals and the container backfill
- **ChargeTypeService**: billable charge catalog
- **DeliveryOrderService**: customer delivery requests
- **TripService**: dispatch, expenses, documents and invoice drafts
- **InvoiceService**: invoicing, numbering and payment tracking
- **ActivityService**: the per-trip activity trail
- **ReportingService**: dashboard statistics and reports
- **UserService**: accounts and credential checks
"""

from .truck_service import TruckService
from .driver_service import DriverService
from .customer_service import CustomerService
from .container_service import ContainerService
from .charge_type_service import ChargeTypeService
from .delivery_order_service import DeliveryOrderService
from .activity_service import ActivityService
from .invoice_service import InvoiceService
from .trip_service import TripService
from .reporting_service import ReportingService
from .user_service import UserService
from .transaction_helper import TransactionHelper

__all__ = [
    'TruckService',
    'DriverService',
    'CustomerService',
    'ContainerService',
    'ChargeTypeService',
    'DeliveryOrderService',
    'ActivityService',
    'InvoiceService',
    'TripService',
    'ReportingService',
    'UserService',
    'TransactionHelper'
]
