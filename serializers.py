"""
JSON representations of the models.

Keys are camelCase, enums are sent by name, money is sent as a number and
timestamps as ISO-8601 strings.
"""

from decimal import Decimal


def iso(value):
    return value.isoformat() if value is not None else None


def money(value):
    if value is None:
        return None
    return float(value)


def enum_name(value):
    return value.name if value is not None else None


def serialize_user(user, brief=False):
    if user is None:
        return None
    data = {
        'id': user.id,
        'email': user.email,
        'role': enum_name(user.role),
        'isActive': user.is_active,
    }
    if brief:
        return data
    data.update({
        'firstName': user.first_name,
        'lastName': user.last_name,
        'fullName': user.full_name,
        'phone': user.phone,
        'emailVerified': user.email_verified,
        'driverId': user.driver_id,
        'customerId': user.customer_id,
        'lastLogin': iso(user.last_login),
        'createdAt': iso(user.created_at),
        'updatedAt': iso(user.updated_at),
    })
    return data


def serialize_truck(truck):
    return {
        'id': truck.id,
        'plate': truck.plate,
        'vin': truck.vin,
        'make': truck.make,
        'model': truck.model,
        'year': truck.year,
        'status': enum_name(truck.status),
        'purchaseDate': iso(truck.purchase_date),
        'lastServiceDate': iso(truck.last_service_date),
        'currentLocation': truck.get_current_location(),
        'notes': truck.notes,
        'createdAt': iso(truck.created_at),
        'updatedAt': iso(truck.updated_at),
    }


def serialize_driver(driver):
    return {
        'id': driver.id,
        'name': driver.name,
        'license': driver.license,
        'licenseExpiry': iso(driver.license_expiry),
        'phone': driver.phone,
        'email': driver.email,
        'status': enum_name(driver.status),
        'hireDate': iso(driver.hire_date),
        'notes': driver.notes,
        'user': serialize_user(driver.user, brief=True),
        'createdAt': iso(driver.created_at),
        'updatedAt': iso(driver.updated_at),
    }


def serialize_customer_rate(rate):
    return {
        'id': rate.id,
        'customerId': rate.customer_id,
        'routeFrom': rate.route_from,
        'routeTo': rate.route_to,
        'containerType': enum_name(rate.container_type),
        'flatRate': money(rate.flat_rate),
        'effectiveDate': iso(rate.effective_date),
        'expiresAt': iso(rate.expires_at),
        'isActive': rate.is_active,
        'createdAt': iso(rate.created_at),
        'updatedAt': iso(rate.updated_at),
    }


def serialize_customer(customer, include_rates=True):
    data = {
        'id': customer.id,
        'name': customer.name,
        'email': customer.email,
        'contactName': customer.contact_name,
        'phone': customer.phone,
        'pricingType': enum_name(customer.pricing_type),
        'billingAddress': customer.get_billing_address(),
        'paymentTerms': customer.payment_terms,
        'active': customer.active,
        'createdAt': iso(customer.created_at),
        'updatedAt': iso(customer.updated_at),
    }
    if include_rates:
        data['rates'] = [serialize_customer_rate(rate) for rate in customer.rates]
        data['_count'] = {
            'trips': len(customer.trips),
            'invoices': len(customer.invoices),
        }
    return data


def serialize_terminal(terminal):
    return {
        'id': terminal.id,
        'name': terminal.name,
        'code': terminal.code,
        'address': terminal.get_address(),
        'syncEnabled': terminal.sync_enabled,
        'createdAt': iso(terminal.created_at),
        'updatedAt': iso(terminal.updated_at),
    }


def serialize_container(container):
    return {
        'id': container.id,
        'number': container.number,
        'size': enum_name(container.size),
        'type': enum_name(container.type),
        'available': container.available,
        'terminalId': container.terminal_id,
        'terminal': {'name': container.terminal.name, 'code': container.terminal.code}
        if container.terminal else None,
        'condition': container.condition,
        'lastInspectionDate': iso(container.last_inspection_date),
        'createdAt': iso(container.created_at),
        'updatedAt': iso(container.updated_at),
    }


def serialize_charge_type(charge_type):
    return {
        'id': charge_type.id,
        'name': charge_type.name,
        'code': charge_type.code,
        'description': charge_type.description,
        'category': charge_type.category,
        'defaultRate': money(charge_type.default_rate),
        'calculationUnit': enum_name(charge_type.calculation_unit),
        'requiresQuantity': charge_type.requires_quantity,
        'isActive': charge_type.is_active,
        'displayOrder': charge_type.display_order,
        'createdAt': iso(charge_type.created_at),
        'updatedAt': iso(charge_type.updated_at),
    }


def serialize_delivery_order(order):
    trip = order.trip
    return {
        'id': order.id,
        'orderNumber': order.order_number,
        'customerId': order.customer_id,
        'customer': {
            'name': order.customer.name,
            'email': order.customer.email,
            'phone': order.customer.phone,
        } if order.customer else None,
        'containerNumber': order.container_number,
        'containerSize': order.container_size,
        'containerType': order.container_type,
        'status': enum_name(order.status),
        'priority': enum_name(order.priority),
        'portOfLoading': order.port_of_loading,
        'deliveryAddress': order.delivery_address,
        'deliveryCity': order.delivery_city,
        'deliveryState': order.delivery_state,
        'deliveryZip': order.delivery_zip,
        'requestedPickupDate': iso(order.requested_pickup_date),
        'requestedDeliveryDate': iso(order.requested_delivery_date),
        'actualPickupDate': iso(order.actual_pickup_date),
        'actualDeliveryDate': iso(order.actual_delivery_date),
        'customerReference': order.customer_reference,
        'bookingNumber': order.booking_number,
        'billOfLading': order.bill_of_lading,
        'tripId': order.trip_id,
        'trip': {
            'id': trip.id,
            'status': enum_name(trip.status),
            'driver': {'name': trip.driver.name} if trip.driver else None,
            'truck': {'plate': trip.truck.plate} if trip.truck else None,
        } if trip else None,
        'assignedDriverId': order.assigned_driver_id,
        'assignedTruckId': order.assigned_truck_id,
        'cargoDescription': order.cargo_description,
        'weight': order.weight,
        'specialInstructions': order.special_instructions,
        'notes': order.notes,
        'createdAt': iso(order.created_at),
        'updatedAt': iso(order.updated_at),
    }


def serialize_trip(trip, detail=False):
    """List shape carries related summaries; detail shape carries full related records"""
    data = {
        'id': trip.id,
        'customerId': trip.customer_id,
        'truckId': trip.truck_id,
        'driverId': trip.driver_id,
        'containerId': trip.container_id,
        'pickupLocation': trip.pickup_location,
        'pickupTime': iso(trip.pickup_time),
        'dropoffLocation': trip.dropoff_location,
        'dropoffTime': iso(trip.dropoff_time),
        'status': enum_name(trip.status),
        'distanceMiles': trip.distance_miles,
        'chassisReceivedAt': iso(trip.chassis_received_at),
        'chassisReturnedAt': iso(trip.chassis_returned_at),
        'route': trip.get_route(),
        'notes': trip.notes,
        'createdAt': iso(trip.created_at),
        'updatedAt': iso(trip.updated_at),
    }
    order = trip.delivery_orders[0] if trip.delivery_orders else None
    if detail:
        data.update({
            'customer': serialize_customer(trip.customer, include_rates=False),
            'truck': serialize_truck(trip.truck),
            'driver': serialize_driver(trip.driver),
            'container': serialize_container(trip.container),
            'invoice': {
                'id': trip.invoice.id,
                'invoiceNumber': trip.invoice.invoice_number,
                'totalAmount': money(trip.invoice.total_amount),
                'paid': trip.invoice.paid,
            } if trip.invoice else None,
            'totalExpenses': money(trip.total_expenses),
        })
    else:
        data.update({
            'customer': {'id': trip.customer.id, 'name': trip.customer.name, 'email': trip.customer.email},
            'truck': {'id': trip.truck.id, 'plate': trip.truck.plate,
                      'make': trip.truck.make, 'model': trip.truck.model},
            'driver': {'id': trip.driver.id, 'name': trip.driver.name, 'phone': trip.driver.phone},
            'container': {'id': trip.container.id, 'number': trip.container.number,
                          'size': enum_name(trip.container.size), 'type': enum_name(trip.container.type)},
        })
    data['deliveryOrder'] = {
        'id': order.id,
        'orderNumber': order.order_number,
        'status': enum_name(order.status),
    } if order else None
    return data


def serialize_expense(expense):
    return {
        'id': expense.id,
        'tripId': expense.trip_id,
        'category': enum_name(expense.category),
        'description': expense.description,
        'amount': money(expense.amount),
        'receiptUrl': expense.receipt_url,
        'paidBy': expense.paid_by,
        'paidAt': iso(expense.paid_at),
        'notes': expense.notes,
        'createdAt': iso(expense.created_at),
        'updatedAt': iso(expense.updated_at),
    }


def serialize_document(document):
    return {
        'id': document.id,
        'tripId': document.trip_id,
        'type': enum_name(document.type),
        'title': document.title,
        'description': document.description,
        'fileUrl': document.file_url,
        'fileName': document.file_name,
        'fileSize': document.file_size,
        'mimeType': document.mime_type,
        'uploadedBy': document.uploaded_by,
        'uploadedAt': iso(document.uploaded_at),
    }


def serialize_activity(entry):
    return {
        'id': entry.id,
        'tripId': entry.trip_id,
        'activityType': enum_name(entry.activity_type),
        'description': entry.description,
        'oldValue': entry.old_value,
        'newValue': entry.new_value,
        'performedBy': entry.performed_by,
        'metadata': entry.get_metadata(),
        'createdAt': iso(entry.created_at),
    }


def serialize_line_items(items):
    """Line items are stored with string amounts; send them back as numbers"""
    serialized = []
    for item in items:
        serialized.append({
            'description': item.get('description'),
            'quantity': float(Decimal(str(item.get('quantity', 0)))),
            'rate': float(Decimal(str(item.get('rate', 0)))),
            'amount': float(Decimal(str(item.get('amount', 0)))),
            **({'chargeTypeCode': item['chargeTypeCode']} if item.get('chargeTypeCode') else {}),
        })
    return serialized


def serialize_invoice(invoice, detail=False):
    data = {
        'id': invoice.id,
        'invoiceNumber': invoice.invoice_number,
        'tripId': invoice.trip_id,
        'customerId': invoice.customer_id,
        'pricingType': enum_name(invoice.pricing_type),
        'lineItems': serialize_line_items(invoice.get_line_items()),
        'subtotal': money(invoice.subtotal),
        'taxRate': money(invoice.tax_rate),
        'taxAmount': money(invoice.tax_amount),
        'totalAmount': money(invoice.total_amount),
        'dueDate': iso(invoice.due_date),
        'paid': invoice.paid,
        'paidAt': iso(invoice.paid_at),
        'paymentMethod': invoice.payment_method,
        'isOverdue': invoice.is_overdue,
        'notes': invoice.notes,
        'createdAt': iso(invoice.created_at),
        'updatedAt': iso(invoice.updated_at),
    }
    if detail:
        data['customer'] = serialize_customer(invoice.customer, include_rates=False)
        data['trip'] = serialize_trip(invoice.trip, detail=False) if invoice.trip else None
    else:
        customer = invoice.customer
        trip = invoice.trip
        data['customer'] = {
            'id': customer.id,
            'name': customer.name,
            'email': customer.email,
            'pricingType': enum_name(customer.pricing_type),
        }
        data['trip'] = {
            'id': trip.id,
            'pickupLocation': trip.pickup_location,
            'dropoffLocation': trip.dropoff_location,
            'pickupTime': iso(trip.pickup_time),
            'dropoffTime': iso(trip.dropoff_time),
            'distanceMiles': trip.distance_miles,
            'container': {'number': trip.container.number} if trip.container else None,
        } if trip else None
    return data


def serialize_invoice_draft(draft):
    trip = draft['trip']
    customer = draft['customer']
    rate = draft['matched_rate']
    return {
        'tripId': trip.id,
        'customerId': customer.id,
        'customerName': customer.name,
        'pricingType': enum_name(draft['pricing_type']),
        'lineItems': serialize_line_items(draft['line_items']),
        'subtotal': money(draft['subtotal']),
        'taxRate': money(draft['tax_rate']),
        'taxAmount': money(draft['tax_amount']),
        'totalAmount': money(draft['total_amount']),
        'dueDate': iso(draft['due_date']),
        'matchedRateId': rate.id if rate else None,
        'alreadyInvoiced': draft['already_invoiced'],
    }
