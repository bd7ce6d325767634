"""
Unit tests for record parsing and serialization
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from models import (
    Trip, Vehicle, PaymentStatus, PaymentMode, RecordValidationError,
    parse_amount, parse_calendar_date, amount_to_json, default_vehicles, MAX_DERIVED_AMOUNT,
)


@pytest.mark.unit
class TestParseAmount:
    """Test number parsing for submitted fields"""

    @pytest.mark.parametrize('value,expected', [
        (None, Decimal('0')),
        ('', Decimal('0')),
        ('   ', Decimal('0')),
        (12, Decimal('12')),
        (0.1, Decimal('0.1')),
        ('1500.75', Decimal('1500.75')),
        (' 42 ', Decimal('42')),
        (-3, Decimal('-3')),
        ('99999999999.999', Decimal('99999999999.999')),
        ('0.30000000000000004', Decimal('0.300')),
        ('1.0005', Decimal('1.001')),
        ('2E+3', Decimal('2000')),
    ])
    def test_accepted_values(self, value, expected):
        assert parse_amount(value, 'totalAmount') == expected

    @pytest.mark.parametrize('value', [
        'abc', True, 'NaN', 'Infinity', [1], {'a': 1},
        '9e999999', '1e5000', '-1e11', 1e11,
    ])
    def test_rejected_values(self, value):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_amount(value, 'fuelCost')

        assert exc_info.value.field_name == 'fuelCost'

    def test_derived_fields_allow_a_wider_range(self):
        assert parse_amount('499999999999.995', 'totalExpense', MAX_DERIVED_AMOUNT) == Decimal('499999999999.995')
        with pytest.raises(RecordValidationError):
            parse_amount('499999999999.995', 'totalAmount')

    def test_amount_to_json_keeps_integers_integral(self):
        assert amount_to_json(Decimal('120')) == 120
        assert isinstance(amount_to_json(Decimal('120.00')), int)
        assert amount_to_json(Decimal('60.5')) == 60.5


@pytest.mark.unit
class TestParseCalendarDate:
    """Test ISO date parsing"""

    def test_iso_date(self):
        assert parse_calendar_date('2024-03-12', 'date') == date(2024, 3, 12)

    def test_datetime_string_keeps_calendar_day(self):
        assert parse_calendar_date('2024-03-12T18:45:00', 'date') == date(2024, 3, 12)

    def test_date_objects_pass_through(self):
        assert parse_calendar_date(date(2024, 1, 2), 'date') == date(2024, 1, 2)
        assert parse_calendar_date(datetime(2024, 1, 2, 9, 0), 'date') == date(2024, 1, 2)

    def test_blank_is_unset(self):
        assert parse_calendar_date('', 'date') is None
        assert parse_calendar_date(None, 'date') is None

    @pytest.mark.parametrize('value', ['12/03/2024', '2024-13-01', 'soon'])
    def test_malformed_dates_are_rejected(self, value):
        with pytest.raises(RecordValidationError):
            parse_calendar_date(value, 'insuranceExpiryDate')


@pytest.mark.unit
class TestTripRecord:
    """Test Trip.from_dict / to_dict"""

    def test_nested_form_is_read(self, scenario_trip_payload):
        trip = Trip.from_dict(scenario_trip_payload)

        assert trip.trip_date == date(2024, 3, 12)
        assert trip.total_amount == Decimal('500')
        assert trip.expenses.fuel_qty == Decimal('4.5')
        assert trip.expenses.toll_charges == Decimal('10')
        assert trip.driver_payment.payment_mode == PaymentMode.UPI
        assert trip.pickup_location == 'Bengaluru Airport'

    def test_flat_form_falls_back_to_top_level_keys(self):
        trip = Trip.from_dict({
            'fuelCost': '25',
            'totalDriverPay': 80,
            'paymentMode': 'Bank Transfer',
        })

        assert trip.expenses.fuel_cost == Decimal('25')
        assert trip.driver_payment.total_driver_pay == Decimal('80')
        assert trip.driver_payment.payment_mode == PaymentMode.BANK_TRANSFER

    def test_defaults_for_missing_fields(self):
        trip = Trip.from_dict({})

        assert trip.trip_date is None
        assert trip.customer_name == ''
        assert trip.expenses.other_expenses == Decimal('0')
        assert trip.driver_payment.payment_status == PaymentStatus.PENDING
        assert trip.driver_payment.payment_mode == PaymentMode.CASH

    def test_enum_member_names_are_accepted(self):
        trip = Trip.from_dict({'driverPayment': {'paymentMode': 'bank_transfer', 'paymentStatus': 'PAID'}})

        assert trip.driver_payment.payment_mode == PaymentMode.BANK_TRANSFER
        assert trip.driver_payment.payment_status == PaymentStatus.PAID

    def test_unknown_payment_mode_is_rejected(self):
        with pytest.raises(RecordValidationError) as exc_info:
            Trip.from_dict({'driverPayment': {'paymentMode': 'Cheque'}})

        assert exc_info.value.field_name == 'paymentMode'

    def test_non_object_expenses_are_rejected(self):
        with pytest.raises(RecordValidationError) as exc_info:
            Trip.from_dict({'expenses': [50, 10]})

        assert exc_info.value.field_name == 'expenses'

    def test_to_dict_uses_stored_shape(self, scenario_trip_payload):
        data = Trip.from_dict(scenario_trip_payload).to_dict()

        assert data['date'] == '2024-03-12'
        assert data['totalAmount'] == 500
        assert data['expenses'] == {
            'fuelCost': 50,
            'fuelQty': 4.5,
            'tollCharges': 10,
            'parkingCharges': 5,
            'otherExpenses': 0,
        }
        assert data['driverPayment']['paymentMode'] == 'UPI'
        assert data['driverPayment']['paymentStatus'] == 'Pending'

    def test_stored_form_reads_back_unchanged(self, scenario_trip_payload):
        trip = Trip.from_dict(dict(scenario_trip_payload, id='t-1'))

        assert Trip.from_dict(trip.to_dict()) == trip

    def test_undated_trip_serializes_blank_date(self):
        assert Trip.from_dict({}).to_dict()['date'] == ''

    def test_submissions_skip_derived_fields(self):
        """Derived values sent by a client are never read, so junk in them is harmless"""
        data = {
            'totalAmount': 500,
            'netProfit': 'lots',
            'totalDistance': '9e999999',
            'driverPayment': {'totalDriverPay': 100, 'paymentStatus': 'Settled', 'balancePayable': 'x'},
        }

        trip = Trip.from_dict(data, derived=False)

        assert trip.total_amount == Decimal('500')
        assert trip.net_profit == 0
        assert trip.total_distance == 0
        assert trip.driver_payment.payment_status == PaymentStatus.PENDING
        assert trip.driver_payment.balance_payable == 0

    def test_stored_records_still_validate_derived_fields(self):
        with pytest.raises(RecordValidationError) as exc_info:
            Trip.from_dict({'driverPayment': {'paymentStatus': 'Settled'}})

        assert exc_info.value.field_name == 'paymentStatus'


@pytest.mark.unit
class TestVehicleRecord:
    """Test Vehicle.from_dict / to_dict"""

    def test_dates_are_normalized(self):
        vehicle = Vehicle.from_dict({
            'registrationNumber': ' KA-05-MN-1234 ',
            'makeModel': 'Maruti Ertiga',
            'insuranceExpiryDate': '2024-08-15T00:00:00',
        })

        assert vehicle.registration_number == 'KA-05-MN-1234'
        assert vehicle.insurance_expiry_date == '2024-08-15'
        assert vehicle.pollution_expiry_date == ''

    def test_maintenance_dates_cover_every_field(self):
        dates = Vehicle().maintenance_dates()

        assert set(dates) == {
            'lastServiceDate', 'nextServiceDueDate', 'oilChangeDate', 'tyreChangeDate',
            'brakeServiceDate', 'batteryReplacementDate', 'insuranceExpiryDate',
            'pollutionExpiryDate',
        }
        assert all(value == '' for value in dates.values())

    def test_malformed_date_is_rejected(self):
        with pytest.raises(RecordValidationError) as exc_info:
            Vehicle.from_dict({'nextServiceDueDate': 'next week'})

        assert exc_info.value.field_name == 'nextServiceDueDate'

    def test_default_fleet(self):
        vehicles = default_vehicles()

        assert len(vehicles) == 1
        assert vehicles[0].id == 'v1'
        assert vehicles[0].registration_number == 'AB-123-CD'
        assert vehicles[0].next_service_due_date == '2024-04-01'
        assert vehicles[0].pollution_expiry_date == ''
