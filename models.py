from datetime import datetime, date
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional
from enum import Enum
import uuid
from app import db
from timezone_utils import get_local_time_naive

ZERO = Decimal('0')

# Submitted amounts and odometer readings stay below MAX_AMOUNT with at most
# three decimal places; derived totals then stay below MAX_DERIVED_AMOUNT.
# Both fit in 15 significant digits, which a JSON number (double) keeps exactly.
MAX_AMOUNT = Decimal('1e11')
MAX_DERIVED_AMOUNT = Decimal('1e12')
AMOUNT_QUANTUM = Decimal('0.001')

# Enums for better data integrity; values match the stored representation
class PaymentStatus(Enum):
    PAID = 'Paid'
    PENDING = 'Pending'

class PaymentMode(Enum):
    CASH = 'Cash'
    UPI = 'UPI'
    BANK_TRANSFER = 'Bank Transfer'

# (attribute, stored key) pairs for every vehicle maintenance date
MAINTENANCE_DATE_FIELDS = (
    ('last_service_date', 'lastServiceDate'),
    ('next_service_due_date', 'nextServiceDueDate'),
    ('oil_change_date', 'oilChangeDate'),
    ('tyre_change_date', 'tyreChangeDate'),
    ('brake_service_date', 'brakeServiceDate'),
    ('battery_replacement_date', 'batteryReplacementDate'),
    ('insurance_expiry_date', 'insuranceExpiryDate'),
    ('pollution_expiry_date', 'pollutionExpiryDate'),
)

# Dates that describe something coming due; the rest record when work was last done
DUE_DATE_FIELDS = (
    ('next_service_due_date', 'nextServiceDueDate'),
    ('insurance_expiry_date', 'insuranceExpiryDate'),
    ('pollution_expiry_date', 'pollutionExpiryDate'),
)


class RecordValidationError(ValueError):
    """Raised when a submitted record carries a malformed value"""

    def __init__(self, field_name: str, message: str):
        super().__init__(f"{field_name}: {message}")
        self.field_name = field_name
        self.message = message


class RecordNotFoundError(LookupError):
    """Raised when a trip or vehicle id is not in its collection"""

    def __init__(self, entity_type: str, record_id: str):
        super().__init__(f"{entity_type} {record_id} not found")
        self.entity_type = entity_type
        self.record_id = record_id


def generate_record_id() -> str:
    """Opaque unique id for a new trip or vehicle"""
    return uuid.uuid4().hex


def parse_amount(value: Any, field_name: str, limit: Decimal = MAX_AMOUNT) -> Decimal:
    """
    Convert a submitted number to Decimal.

    Absent, None and blank values count as zero; anything else that is not a
    finite number below ``limit`` is rejected. Extra decimal places are
    rounded to AMOUNT_QUANTUM.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise RecordValidationError(field_name, "must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        # str() gives the shortest repr, so 0.1 stays 0.1
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return ZERO
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise RecordValidationError(field_name, f"'{value}' is not a number")
    else:
        raise RecordValidationError(field_name, "must be a number")

    if not amount.is_finite():
        raise RecordValidationError(field_name, "must be a finite number")
    if abs(amount) >= limit:
        raise RecordValidationError(field_name, f"must be less than {limit:,.0f} in magnitude")
    if amount.as_tuple().exponent < AMOUNT_QUANTUM.as_tuple().exponent:
        amount = amount.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)
    return amount


def amount_to_json(amount: Decimal):
    """Plain JSON number for a Decimal amount"""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def parse_calendar_date(value: Any, field_name: str) -> Optional[date]:
    """Parse an ISO calendar date; blank means unset"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise RecordValidationError(field_name, f"'{value}' is not a valid date (expected YYYY-MM-DD)")


def _text(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _enum_value(enum_cls, value: Any, default, field_name: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        # Accept both the stored value ('Bank Transfer') and the member name ('BANK_TRANSFER')
        if text == member.value or text.upper() == member.name:
            return member
    allowed = ', '.join(member.value for member in enum_cls)
    raise RecordValidationError(field_name, f"'{value}' is not one of: {allowed}")


@dataclass(frozen=True)
class TripExpenses:
    fuel_cost: Decimal = ZERO
    fuel_qty: Decimal = ZERO  # litres
    toll_charges: Decimal = ZERO
    parking_charges: Decimal = ZERO
    other_expenses: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fuelCost': amount_to_json(self.fuel_cost),
            'fuelQty': amount_to_json(self.fuel_qty),
            'tollCharges': amount_to_json(self.toll_charges),
            'parkingCharges': amount_to_json(self.parking_charges),
            'otherExpenses': amount_to_json(self.other_expenses),
        }


@dataclass(frozen=True)
class DriverPayment:
    total_driver_pay: Decimal = ZERO
    advance_paid: Decimal = ZERO
    balance_payable: Decimal = ZERO  # derived
    payment_status: PaymentStatus = PaymentStatus.PENDING  # derived
    payment_mode: PaymentMode = PaymentMode.CASH

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalDriverPay': amount_to_json(self.total_driver_pay),
            'advancePaid': amount_to_json(self.advance_paid),
            'balancePayable': amount_to_json(self.balance_payable),
            'paymentStatus': self.payment_status.value,
            'paymentMode': self.payment_mode.value,
        }


@dataclass(frozen=True)
class Trip:
    """
    One logged journey.

    The derived fields (total_distance, total_expense, net_profit and the
    driver balance/status) are only ever written by TripCalculator.
    """
    id: str = ''
    trip_date: Optional[date] = None
    vehicle_id: str = ''
    driver_name: str = ''
    driver_contact: str = ''
    customer_name: str = ''
    customer_contact: str = ''
    pickup_location: str = ''
    drop_location: str = ''
    start_time: str = ''
    end_time: str = ''

    total_amount: Decimal = ZERO
    expenses: TripExpenses = field(default_factory=TripExpenses)
    driver_payment: DriverPayment = field(default_factory=DriverPayment)

    start_odometer: Decimal = ZERO
    end_odometer: Decimal = ZERO
    total_distance: Decimal = ZERO

    total_expense: Decimal = ZERO
    net_profit: Decimal = ZERO

    notes: str = ''

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], derived: bool = True) -> 'Trip':
        """
        Build a fully populated Trip from its stored/submitted form.

        Expense and driver-pay fields are read from the nested ``expenses`` and
        ``driverPayment`` objects, falling back to the same key at the top
        level so flat form submissions work too.

        With ``derived=False`` the derived fields in ``data`` are not read at
        all and keep their defaults; use it for submissions that are about to
        go through TripCalculator.
        """
        expense_data = data.get('expenses') or {}
        payment_data = data.get('driverPayment') or {}
        if not isinstance(expense_data, Mapping):
            raise RecordValidationError('expenses', "must be an object")
        if not isinstance(payment_data, Mapping):
            raise RecordValidationError('driverPayment', "must be an object")

        def expense(key):
            return parse_amount(expense_data.get(key, data.get(key)), key)

        def payment(key):
            return parse_amount(payment_data.get(key, data.get(key)), key)

        payment_fields = {}
        trip_fields = {}
        if derived:
            payment_fields = {
                'balance_payable': parse_amount(
                    payment_data.get('balancePayable', data.get('balancePayable')),
                    'balancePayable', MAX_DERIVED_AMOUNT),
                'payment_status': _enum_value(
                    PaymentStatus, payment_data.get('paymentStatus', data.get('paymentStatus')),
                    PaymentStatus.PENDING, 'paymentStatus'),
            }
            trip_fields = {
                'total_distance': parse_amount(data.get('totalDistance'), 'totalDistance', MAX_DERIVED_AMOUNT),
                'total_expense': parse_amount(data.get('totalExpense'), 'totalExpense', MAX_DERIVED_AMOUNT),
                'net_profit': parse_amount(data.get('netProfit'), 'netProfit', MAX_DERIVED_AMOUNT),
            }

        expenses = TripExpenses(
            fuel_cost=expense('fuelCost'),
            fuel_qty=expense('fuelQty'),
            toll_charges=expense('tollCharges'),
            parking_charges=expense('parkingCharges'),
            other_expenses=expense('otherExpenses'),
        )
        driver_payment = DriverPayment(
            total_driver_pay=payment('totalDriverPay'),
            advance_paid=payment('advancePaid'),
            payment_mode=_enum_value(
                PaymentMode, payment_data.get('paymentMode', data.get('paymentMode')),
                PaymentMode.CASH, 'paymentMode'),
            **payment_fields,
        )

        return cls(
            id=_text(data.get('id')),
            trip_date=parse_calendar_date(data.get('date'), 'date'),
            vehicle_id=_text(data.get('vehicleId')),
            driver_name=_text(data.get('driverName')),
            driver_contact=_text(data.get('driverContact')),
            customer_name=_text(data.get('customerName')),
            customer_contact=_text(data.get('customerContact')),
            pickup_location=_text(data.get('pickupLocation')),
            drop_location=_text(data.get('dropLocation')),
            start_time=_text(data.get('startTime')),
            end_time=_text(data.get('endTime')),
            total_amount=parse_amount(data.get('totalAmount'), 'totalAmount'),
            expenses=expenses,
            driver_payment=driver_payment,
            start_odometer=parse_amount(data.get('startOdometer'), 'startOdometer'),
            end_odometer=parse_amount(data.get('endOdometer'), 'endOdometer'),
            notes=_text(data.get('notes')),
            **trip_fields,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.trip_date.isoformat() if self.trip_date else '',
            'vehicleId': self.vehicle_id,
            'driverName': self.driver_name,
            'driverContact': self.driver_contact,
            'customerName': self.customer_name,
            'customerContact': self.customer_contact,
            'pickupLocation': self.pickup_location,
            'dropLocation': self.drop_location,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'totalAmount': amount_to_json(self.total_amount),
            'expenses': self.expenses.to_dict(),
            'driverPayment': self.driver_payment.to_dict(),
            'startOdometer': amount_to_json(self.start_odometer),
            'endOdometer': amount_to_json(self.end_odometer),
            'totalDistance': amount_to_json(self.total_distance),
            'totalExpense': amount_to_json(self.total_expense),
            'netProfit': amount_to_json(self.net_profit),
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<Trip {self.id} {self.trip_date}>'


@dataclass(frozen=True)
class Vehicle:
    """Fleet asset; maintenance dates are ISO strings, '' when unset"""
    id: str = ''
    registration_number: str = ''
    make_model: str = ''

    last_service_date: str = ''
    next_service_due_date: str = ''
    oil_change_date: str = ''
    tyre_change_date: str = ''
    brake_service_date: str = ''
    battery_replacement_date: str = ''
    insurance_expiry_date: str = ''
    pollution_expiry_date: str = ''

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Vehicle':
        dates = {}
        for attr, key in MAINTENANCE_DATE_FIELDS:
            parsed = parse_calendar_date(data.get(key), key)
            dates[attr] = parsed.isoformat() if parsed else ''

        return cls(
            id=_text(data.get('id')),
            registration_number=_text(data.get('registrationNumber')),
            make_model=_text(data.get('makeModel')),
            **dates,
        )

    def maintenance_dates(self) -> Dict[str, str]:
        """Stored key -> date string for every maintenance field"""
        return {key: getattr(self, attr) for attr, key in MAINTENANCE_DATE_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'registrationNumber': self.registration_number,
            'makeModel': self.make_model,
        }
        data.update(self.maintenance_dates())
        return data

    def __repr__(self):
        return f'<Vehicle {self.registration_number}>'


def default_vehicles():
    """Seed fleet used when no vehicle collection has been stored yet"""
    return [Vehicle(
        id='v1',
        registration_number='AB-123-CD',
        make_model='Toyota Sienna 2022',
        last_service_date='2023-10-01',
        next_service_due_date='2024-04-01',
        oil_change_date='2023-10-01',
        insurance_expiry_date='2024-08-15',
    )]


class StoredCollection(db.Model):
    """Named blob holding one serialized collection, rewritten in full on every change"""
    __tablename__ = 'stored_collections'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), unique=True, nullable=False, index=True)
    payload = db.Column(db.Text, nullable=False, default='[]')

    created_at = db.Column(db.DateTime, default=get_local_time_naive)
    updated_at = db.Column(db.DateTime, default=get_local_time_naive, onupdate=get_local_time_naive)

    def __repr__(self):
        return f'<StoredCollection {self.key}>'
