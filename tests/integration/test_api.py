"""
Integration tests for the JSON API
"""

import pytest

from models import Container, TripActivityLog, TripStatus
from tests.factories import (
    UserFactory, CustomerFactory, TruckFactory, DriverFactory,
    TerminalFactory, ContainerFactory, ChargeTypeFactory, DeliveryOrderFactory, TripFactory, InvoiceFactory
)


class TestTruckEndpoints:
    """CRUD round trip over /api/trucks"""

    def test_create_list_update_delete(self, client, db_session):
        response = client.post('/api/trucks', json={'plate': 'CA-TRK-001', 'make': 'Freightliner',
                                                    'model': 'Cascadia', 'year': 2022})
        assert response.status_code == 201
        truck = response.get_json()
        assert truck['status'] == 'AVAILABLE'
        assert truck['plate'] == 'CA-TRK-001'

        listed = client.get('/api/trucks').get_json()
        assert [t['plate'] for t in listed] == ['CA-TRK-001']

        response = client.put(f"/api/trucks/{truck['id']}", json={'status': 'maintenance'})
        assert response.status_code == 200
        assert response.get_json()['status'] == 'MAINTENANCE'

        response = client.delete(f"/api/trucks/{truck['id']}")
        assert response.status_code == 200
        assert response.get_json() == {'message': 'Truck deleted successfully'}

        assert client.get(f"/api/trucks/{truck['id']}").status_code == 404

    def test_missing_plate(self, client, db_session):
        response = client.post('/api/trucks', json={'make': 'Volvo'})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Plate number is required'}

    def test_duplicate_plate(self, client, db_session):
        TruckFactory(plate='CA-TRK-001')

        response = client.post('/api/trucks', json={'plate': 'CA-TRK-001'})

        assert response.status_code == 409

    def test_invalid_status_filter(self, client, db_session):
        response = client.get('/api/trucks?status=flying')

        assert response.status_code == 400

    def test_body_must_be_json_object(self, client, db_session):
        response = client.post('/api/trucks', data='not json', content_type='application/json')

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Invalid JSON body'}

    def test_truck_in_use_cannot_be_deleted(self, client, db_session):
        trip = TripFactory()

        response = client.delete(f'/api/trucks/{trip.truck_id}')

        assert response.status_code == 409
        assert response.get_json()['error'] == 'Cannot delete truck with existing trips'


class TestTerminalEndpoints:
    """Terminal CRUD and the containers parked at a terminal"""

    def test_list_ordered_by_name(self, client, db_session):
        TerminalFactory(name='Port of Long Beach', code='LB')
        TerminalFactory(name='APM Terminals', code='APM')

        listed = client.get('/api/terminals').get_json()

        assert [t['name'] for t in listed] == ['APM Terminals', 'Port of Long Beach']

    def test_create_and_update(self, client, db_session):
        response = client.post('/api/terminals', json={'name': 'Port of Los Angeles', 'code': 'POLA',
                                                       'address': {'city': 'San Pedro'}})
        assert response.status_code == 201
        terminal = response.get_json()
        assert terminal['address'] == {'city': 'San Pedro'}
        assert terminal['syncEnabled'] is False

        response = client.put(f"/api/terminals/{terminal['id']}", json={'syncEnabled': True})
        assert response.status_code == 200
        assert response.get_json()['syncEnabled'] is True
        assert response.get_json()['code'] == 'POLA'

    def test_name_and_code_required(self, client, db_session):
        response = client.post('/api/terminals', json={'name': 'Port of Oakland'})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Name and code are required'}

    def test_duplicate_code(self, client, db_session):
        TerminalFactory(code='POLA')

        response = client.post('/api/terminals', json={'name': 'Another', 'code': 'POLA'})

        assert response.status_code == 409
        assert response.get_json() == {'error': 'A terminal with this code already exists'}

    def test_delete_detaches_containers(self, client, db_session):
        terminal = TerminalFactory()
        container = ContainerFactory(terminal_id=terminal.id)

        response = client.delete(f'/api/terminals/{terminal.id}')

        assert response.status_code == 200
        assert response.get_json() == {'message': 'Terminal deleted successfully'}
        assert client.get(f'/api/terminals/{terminal.id}').status_code == 404
        db_session.expire_all()
        survivor = db_session.get(Container, container.id)
        assert survivor is not None
        assert survivor.terminal_id is None


class TestContainerFilters:

    def test_available_and_terminal_filters(self, client, db_session):
        terminal = TerminalFactory()
        ContainerFactory(number='MSCU0000001', available=True, terminal_id=terminal.id)
        ContainerFactory(number='MSCU0000002', available=False, terminal_id=terminal.id)
        ContainerFactory(number='MSCU0000003', available=True)

        available = client.get('/api/containers?available=true').get_json()
        at_terminal = client.get(f'/api/containers?terminalId={terminal.id}').get_json()
        both = client.get(f'/api/containers?available=false&terminalId={terminal.id}').get_json()

        assert [c['number'] for c in available] == ['MSCU0000001', 'MSCU0000003']
        assert [c['number'] for c in at_terminal] == ['MSCU0000001', 'MSCU0000002']
        assert [c['number'] for c in both] == ['MSCU0000002']
        assert both[0]['terminal']['code'] == terminal.code

    def test_bad_available_flag(self, client, db_session):
        response = client.get('/api/containers?available=maybe')

        assert response.status_code == 400


class TestChargeTypeEndpoints:

    def test_update_and_delete(self, client, db_session):
        charge_type = ChargeTypeFactory(code='WAIT_TIME', name='Wait Time')

        response = client.put(f'/api/charge-types/{charge_type.id}',
                              json={'defaultRate': 85, 'code': 'wait_hourly', 'isActive': False})
        assert response.status_code == 200
        updated = response.get_json()
        assert updated['code'] == 'WAIT_HOURLY'
        assert updated['defaultRate'] == 85.0
        assert updated['isActive'] is False
        assert updated['name'] == 'Wait Time'

        response = client.delete(f'/api/charge-types/{charge_type.id}')
        assert response.status_code == 200
        assert response.get_json() == {'message': 'Charge type deleted successfully'}
        assert client.get(f'/api/charge-types/{charge_type.id}').status_code == 404

    def test_update_to_existing_code_conflicts(self, client, db_session):
        ChargeTypeFactory(code='TOLL')
        charge_type = ChargeTypeFactory(code='FUEL_SURCHARGE')

        response = client.put(f'/api/charge-types/{charge_type.id}', json={'code': 'toll'})

        assert response.status_code == 409
        assert response.get_json() == {'error': 'A charge type with this code already exists'}

    def test_delete_missing(self, client, db_session):
        assert client.delete('/api/charge-types/999').status_code == 404


class TestApiErrors:

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/does-not-exist')

        assert response.status_code == 404
        assert 'error' in response.get_json()

    def test_wrong_method_is_json(self, client):
        response = client.patch('/api/trucks')

        assert response.status_code == 405
        assert 'error' in response.get_json()


class TestDispatchToInvoiceFlow:
    """Customer, rate, trip, expense and invoice through the API"""

    def test_flat_rate_customer_flow(self, client, db_session):
        customer = client.post('/api/customers', json={
            'name': 'ABC Logistics Corp', 'email': 'billing@abclogistics.com',
            'pricingType': 'FLAT', 'paymentTerms': 30,
        }).get_json()
        rate = client.post(f"/api/customers/{customer['id']}/rates", json={
            'routeFrom': 'Port of LA', 'routeTo': 'Warehouse District A',
            'containerType': 'FORTY_FT', 'flatRate': 850,
        })
        assert rate.status_code == 201

        truck = TruckFactory()
        driver = DriverFactory(name='John Martinez')
        container = ContainerFactory()

        response = client.post('/api/trips', json={
            'customerId': customer['id'], 'truckId': truck.id, 'driverId': driver.id,
            'containerId': container.id, 'pickupLocation': 'Port of LA',
            'dropoffLocation': 'Warehouse District A', 'distanceMiles': 25.5,
        })
        assert response.status_code == 201
        trip = response.get_json()
        assert trip['status'] == 'SCHEDULED'
        assert trip['driver']['name'] == 'John Martinez'

        response = client.post(f"/api/trips/{trip['id']}/expenses", json={
            'category': 'FUEL', 'description': 'Diesel', 'amount': 125.5,
        })
        assert response.status_code == 201
        assert response.get_json()['amount'] == 125.5

        draft = client.get(f"/api/trips/{trip['id']}/invoice-draft").get_json()
        assert draft['lineItems'][0]['amount'] == 850.0
        assert draft['matchedRateId'] == rate.get_json()['id']
        assert draft['alreadyInvoiced'] is False

        response = client.post('/api/invoices', json={
            'tripId': trip['id'], 'customerId': customer['id'],
            'lineItems': draft['lineItems'], 'taxRate': 8.25,
        })
        assert response.status_code == 201
        invoice = response.get_json()
        assert invoice['subtotal'] == 850.0
        assert invoice['taxAmount'] == 70.13
        assert invoice['totalAmount'] == 920.13
        assert invoice['invoiceNumber'].endswith('-00001')

        duplicate = client.post('/api/invoices', json={
            'tripId': trip['id'], 'customerId': customer['id'], 'lineItems': draft['lineItems'],
        })
        assert duplicate.status_code == 409

        response = client.put(f"/api/invoices/{invoice['id']}", json={'paid': True, 'paymentMethod': 'ACH'})
        assert response.get_json()['paid'] is True
        assert response.get_json()['paidAt'] is not None

        detail = client.get(f"/api/trips/{trip['id']}").get_json()
        assert detail['invoice']['invoiceNumber'] == invoice['invoiceNumber']
        assert detail['totalExpenses'] == 125.5

        assert client.delete(f"/api/trips/{trip['id']}").status_code == 409
        assert client.delete(f"/api/customers/{customer['id']}").status_code == 409

    def test_invoice_requires_line_items(self, client, db_session):
        trip = TripFactory()

        response = client.post('/api/invoices', json={'tripId': trip.id, 'customerId': trip.customer_id})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Trip, customer, and line items are required'}


class TestTripActivity:

    def test_status_change_and_manual_note(self, client, db_session):
        trip = TripFactory()

        client.put(f'/api/trips/{trip.id}', json={'status': 'IN_PROGRESS'})
        response = client.post(f'/api/trips/{trip.id}/activity', json={
            'activityType': 'NOTE_ADDED', 'description': 'Gate appointment confirmed',
        })
        assert response.status_code == 201

        history = client.get(f'/api/trips/{trip.id}/activity').get_json()
        assert [entry['activityType'] for entry in history] == ['NOTE_ADDED', 'STATUS_CHANGE']
        assert history[1]['oldValue'] == 'SCHEDULED'
        assert history[1]['newValue'] == 'IN_PROGRESS'

    def test_actor_from_token(self, client, db_session, auth_headers):
        trip = TripFactory()

        client.put(f'/api/trips/{trip.id}', json={'status': 'COMPLETED'}, headers=auth_headers)

        entry = TripActivityLog.query.filter_by(trip_id=trip.id).one()
        assert entry.performed_by == 'Ada Admin'

    def test_activity_for_missing_trip(self, client, db_session):
        assert client.get('/api/trips/999/activity').status_code == 404

    def test_document_lifecycle(self, client, db_session):
        trip = TripFactory()

        response = client.post(f'/api/trips/{trip.id}/documents', json={
            'type': 'BOL', 'title': 'Bill of lading', 'fileUrl': 'https://files.example.com/bol.pdf',
            'fileName': 'bol.pdf',
        })
        assert response.status_code == 201
        document = response.get_json()

        response = client.delete(f"/api/trips/{trip.id}/documents/{document['id']}")
        assert response.status_code == 200
        assert client.get(f'/api/trips/{trip.id}/documents').get_json() == []


class TestDeliveryOrders:

    def test_create_and_delete(self, client, db_session):
        customer = CustomerFactory()

        response = client.post('/api/delivery-orders', json={
            'customerId': customer.id, 'containerNumber': 'MSCU2345678',
            'containerSize': 'TWENTY_FT', 'containerType': 'REEFER',
        })
        assert response.status_code == 201
        order = response.get_json()
        assert order['orderNumber'].startswith('DO-')
        assert order['status'] == 'PENDING'
        assert Container.query.filter_by(number='MSCU2345678').count() == 1

        response = client.delete(f"/api/delivery-orders/{order['id']}")
        assert response.status_code == 200
        assert response.get_json() == {'success': True}

    def test_missing_customer(self, client, db_session):
        response = client.post('/api/delivery-orders', json={'containerNumber': 'MSCU2345678'})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Customer is required'}

    def test_trip_links_order(self, client, db_session):
        order = DeliveryOrderFactory()
        trip = TripFactory(customer=order.customer)
        payload = {
            'customerId': order.customer_id, 'truckId': trip.truck_id, 'driverId': trip.driver_id,
            'containerId': trip.container_id, 'pickupLocation': 'Port of LA',
            'dropoffLocation': 'Warehouse District A', 'deliveryOrderId': order.id,
        }

        created = client.post('/api/trips', json=payload).get_json()

        assert created['deliveryOrder']['orderNumber'] == order.order_number
        assert created['deliveryOrder']['status'] == 'ASSIGNED'


class TestAdminBackfill:

    def test_create_missing_containers(self, client, db_session):
        DeliveryOrderFactory(container_number='HLCU3456789', container_size='FORTY_HC', container_type='DRY')

        response = client.post('/api/admin/create-missing-containers')

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['summary'] == {'total': 1, 'created': 1, 'skipped': 0}

        again = client.post('/api/admin/create-missing-containers').get_json()
        assert again['summary'] == {'total': 1, 'created': 0, 'skipped': 1}


class TestReports:

    def test_dashboard(self, client, db_session):
        InvoiceFactory(paid=True)

        stats = client.get('/api/dashboard').get_json()

        assert stats['totalRevenue'] == 500.0
        assert stats['totalTrips'] == 1
        assert stats['recentInvoices'][0]['paid'] is True

    def test_revenue_report_filters(self, client, db_session):
        paid = InvoiceFactory(paid=True)
        InvoiceFactory()

        body = client.get('/api/reports/revenue?paidOnly=true').get_json()

        assert body['summary']['totalInvoices'] == 1
        assert body['invoices'][0]['id'] == paid.id

    def test_revenue_report_bad_date(self, client, db_session):
        response = client.get('/api/reports/revenue?startDate=someday')

        assert response.status_code == 400

    def test_trip_and_driver_reports(self, client, db_session):
        trip = TripFactory(status=TripStatus.COMPLETED)

        trips = client.get('/api/reports/trips?status=completed').get_json()
        drivers = client.get(f'/api/reports/drivers?driverId={trip.driver_id}').get_json()
        expenses = client.get('/api/reports/expenses').get_json()

        assert trips['summary']['totalTrips'] == 1
        assert drivers['drivers'][0]['completionRate'] == 100.0
        assert expenses['summary']['totalExpenses'] == 0


class TestAuthentication:

    def test_login_me_logout(self, client, db_session):
        UserFactory(email='dispatcher@danube.com', first_name='Dana', last_name='Dispatch')

        response = client.post('/api/auth/login', json={'email': 'dispatcher@danube.com',
                                                        'password': 'password123'})
        assert response.status_code == 200
        body = response.get_json()
        assert body['user']['role'] == 'DISPATCHER'
        headers = {'Authorization': f"Bearer {body['accessToken']}"}

        me = client.get('/api/auth/me', headers=headers)
        assert me.status_code == 200
        assert me.get_json()['fullName'] == 'Dana Dispatch'

        assert client.post('/api/auth/logout', headers=headers).status_code == 200
        assert client.get('/api/auth/me', headers=headers).status_code == 401

    def test_refresh(self, client, db_session):
        UserFactory(email='billing@danube.com')
        tokens = client.post('/api/auth/login', json={'email': 'billing@danube.com',
                                                      'password': 'password123'}).get_json()

        response = client.post('/api/auth/refresh',
                               headers={'Authorization': f"Bearer {tokens['refreshToken']}"})

        assert response.status_code == 200
        assert 'accessToken' in response.get_json()

    def test_bad_password(self, client, db_session):
        UserFactory(email='dispatcher@danube.com')

        response = client.post('/api/auth/login', json={'email': 'dispatcher@danube.com', 'password': 'nope'})

        assert response.status_code == 401
        assert response.get_json() == {'error': 'Invalid email or password'}

    def test_me_requires_token(self, client, db_session):
        assert client.get('/api/auth/me').status_code == 401

    def test_api_token_enforcement(self, client, db_session, auth_headers, monkeypatch):
        monkeypatch.setenv('REQUIRE_API_AUTH', 'true')

        assert client.get('/api/trucks').status_code == 401
        assert client.get('/api/trucks', headers=auth_headers).status_code == 200
        assert client.get('/health').status_code == 200
        assert client.post('/api/auth/login', json={'email': 'x@y.z', 'password': 'x'}).status_code == 401


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        body = response.get_json()
        assert body['status'] == 'ok'
        assert body['database'] == 'ok'

    def test_request_id_is_echoed(self, client):
        response = client.get('/api/trucks', headers={'X-Request-ID': 'dispatch-42'})

        assert response.headers['X-Request-ID'] == 'dispatch-42'

    def test_request_id_is_generated(self, client):
        response = client.get('/health')

        assert len(response.headers['X-Request-ID']) == 32
