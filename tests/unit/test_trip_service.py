"""
Unit tests for trip and vehicle bookkeeping services
"""

from datetime import date
from decimal import Decimal

import pytest

from models import PaymentStatus, RecordNotFoundError, RecordValidationError
from services.storage_service import TripStore, VehicleStore
from services.trip_service import TripService
from services.vehicle_service import VehicleService


@pytest.fixture
def trip_service(app, now):
    return TripService(TripStore(), clock=lambda: now)


@pytest.fixture
def vehicle_service(app, now):
    return VehicleService(VehicleStore(), clock=lambda: now)


@pytest.mark.unit
class TestTripService:
    """Test trip recording and editing"""

    def test_create_derives_and_assigns_id(self, trip_service, scenario_trip_payload):
        trip = trip_service.create_trip(scenario_trip_payload)

        assert trip.id
        assert trip.total_distance == Decimal('120')
        assert trip.total_expense == Decimal('165')
        assert trip.net_profit == Decimal('335')
        assert trip.driver_payment.balance_payable == Decimal('0')
        assert trip.driver_payment.payment_status == PaymentStatus.PAID

    def test_client_supplied_id_and_derived_values_are_ignored(self, trip_service, scenario_trip_payload):
        payload = dict(scenario_trip_payload, id='forged', netProfit=99999, totalExpense=1)
        payload['driverPayment'] = dict(payload['driverPayment'], paymentStatus='Paid', advancePaid=60)

        trip = trip_service.create_trip(payload)

        assert trip.id != 'forged'
        assert trip.net_profit == Decimal('335')
        assert trip.driver_payment.payment_status == PaymentStatus.PENDING

    def test_new_trips_go_to_the_front(self, trip_service, scenario_trip_payload):
        first = trip_service.create_trip(scenario_trip_payload)
        second = trip_service.create_trip(dict(scenario_trip_payload, customerName='Later Customer'))

        assert [trip.id for trip in trip_service.list_trips()] == [second.id, first.id]

    def test_create_persists_collection(self, trip_service, scenario_trip_payload):
        trip = trip_service.create_trip(scenario_trip_payload)

        assert TripStore().load() == [trip]

    def test_update_rederives_and_keeps_position(self, trip_service, scenario_trip_payload):
        older = trip_service.create_trip(scenario_trip_payload)
        newer = trip_service.create_trip(scenario_trip_payload)

        payload = dict(scenario_trip_payload, totalAmount=800)
        payload['driverPayment'] = dict(payload['driverPayment'], advancePaid=60)
        updated = trip_service.update_trip(older.id, payload)

        assert updated.id == older.id
        assert updated.net_profit == Decimal('635')
        assert updated.driver_payment.balance_payable == Decimal('40')
        assert updated.driver_payment.payment_status == PaymentStatus.PENDING
        assert [trip.id for trip in trip_service.list_trips()] == [newer.id, older.id]

    def test_update_body_id_cannot_change_identity(self, trip_service, scenario_trip_payload):
        trip = trip_service.create_trip(scenario_trip_payload)

        updated = trip_service.update_trip(trip.id, dict(scenario_trip_payload, id='other'))

        assert updated.id == trip.id

    def test_update_unknown_trip(self, trip_service, scenario_trip_payload):
        with pytest.raises(RecordNotFoundError):
            trip_service.update_trip('missing', scenario_trip_payload)

    def test_get_trip(self, trip_service, scenario_trip_payload):
        trip = trip_service.create_trip(scenario_trip_payload)

        assert trip_service.get_trip(trip.id) == trip
        with pytest.raises(RecordNotFoundError):
            trip_service.get_trip('missing')

    def test_invalid_amount_is_rejected_without_saving(self, trip_service, scenario_trip_payload):
        with pytest.raises(RecordValidationError):
            trip_service.create_trip(dict(scenario_trip_payload, totalAmount='five hundred'))

        assert trip_service.list_trips() == []

    def test_negative_distance_is_stored_with_warning(self, trip_service, scenario_trip_payload, caplog):
        trip = trip_service.create_trip(dict(scenario_trip_payload, startOdometer=1120, endOdometer=1000))

        assert trip.total_distance == Decimal('-120')
        assert 'negative distance' in caplog.text

    def test_missing_date_defaults_to_today(self, trip_service, scenario_trip_payload):
        payload = dict(scenario_trip_payload)
        del payload['date']

        trip = trip_service.create_trip(payload)

        assert trip.trip_date == date(2024, 3, 15)

    def test_update_without_date_keeps_stored_date(self, trip_service, scenario_trip_payload):
        trip = trip_service.create_trip(scenario_trip_payload)

        updated = trip_service.update_trip(trip.id, dict(scenario_trip_payload, date=''))

        assert updated.trip_date == date(2024, 3, 12)

    def test_junk_in_derived_fields_is_ignored(self, trip_service, scenario_trip_payload):
        payload = dict(scenario_trip_payload, netProfit='lots')
        payload['driverPayment'] = dict(payload['driverPayment'], paymentStatus='Settled')

        trip = trip_service.create_trip(payload)

        assert trip.net_profit == Decimal('335')
        assert trip.driver_payment.payment_status == PaymentStatus.PAID

    def test_preview_does_not_save(self, trip_service, scenario_trip_payload):
        financials = trip_service.preview(dict(scenario_trip_payload, totalAmount=400))

        assert financials.net_profit == Decimal('235')
        assert trip_service.list_trips() == []


@pytest.mark.unit
class TestVehicleService:
    """Test vehicle management and alert listing"""

    def test_fleet_starts_with_seed_vehicle(self, vehicle_service):
        assert [vehicle.id for vehicle in vehicle_service.list_vehicles()] == ['v1']

    def test_add_vehicle_appends(self, vehicle_service):
        vehicle = vehicle_service.add_vehicle({
            'registrationNumber': 'KA-05-MN-1234',
            'makeModel': 'Maruti Ertiga',
            'nextServiceDueDate': '2024-03-18',
        })

        vehicles = vehicle_service.list_vehicles()
        assert [v.id for v in vehicles] == ['v1', vehicle.id]
        assert vehicle.oil_change_date == ''

    @pytest.mark.parametrize('missing', ['registrationNumber', 'makeModel'])
    def test_add_vehicle_requires_identity_fields(self, vehicle_service, missing):
        data = {'registrationNumber': 'KA-05-MN-1234', 'makeModel': 'Maruti Ertiga'}
        data[missing] = '  '

        with pytest.raises(RecordValidationError) as exc_info:
            vehicle_service.add_vehicle(data)

        assert exc_info.value.field_name == missing
        assert len(vehicle_service.list_vehicles()) == 1

    def test_delete_vehicle(self, vehicle_service):
        removed = vehicle_service.delete_vehicle('v1')

        assert removed.registration_number == 'AB-123-CD'
        assert vehicle_service.list_vehicles() == []
        # Deleting the last vehicle does not bring the seed back
        assert VehicleStore().load() == []

    def test_delete_unknown_vehicle(self, vehicle_service):
        with pytest.raises(RecordNotFoundError):
            vehicle_service.delete_vehicle('missing')

    def test_alerts_use_injected_clock(self, vehicle_service):
        urgent = vehicle_service.add_vehicle({
            'registrationNumber': 'KA-05-MN-1234',
            'makeModel': 'Maruti Ertiga',
            'pollutionExpiryDate': '2024-03-20',
        })

        assert [result.vehicle.id for result in vehicle_service.get_attention_needed()] == [urgent.id]
        assert len(vehicle_service.get_vehicle_alerts()) == 2


@pytest.mark.unit
class TestSharedCollection:
    """Services in separate workers share one stored collection"""

    def test_trips_from_both_services_are_kept(self, app, now, scenario_trip_payload):
        first = TripService(TripStore(), clock=lambda: now)
        second = TripService(TripStore(), clock=lambda: now)
        second.list_trips()

        a = first.create_trip(scenario_trip_payload)
        b = second.create_trip(scenario_trip_payload)

        assert [trip.id for trip in first.list_trips()] == [b.id, a.id]
