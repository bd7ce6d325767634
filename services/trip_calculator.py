"""
Trip Calculator

Derives the financial and odometer fields of a trip from its raw inputs.
Pure functions only: no storage, no clock, no logging.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Mapping, Union

from models import Trip, PaymentStatus, ZERO, amount_to_json, parse_amount


@dataclass(frozen=True)
class TripFinancials:
    """Derived fields of one trip"""
    total_distance: Decimal
    total_expense: Decimal
    net_profit: Decimal
    balance_payable: Decimal
    payment_status: PaymentStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalDistance': amount_to_json(self.total_distance),
            'totalExpense': amount_to_json(self.total_expense),
            'netProfit': amount_to_json(self.net_profit),
            'balancePayable': amount_to_json(self.balance_payable),
            'paymentStatus': self.payment_status.value,
        }


def payment_status_for(balance_payable: Decimal) -> PaymentStatus:
    """Zero or negative balance (settled or overpaid) is PAID"""
    return PaymentStatus.PAID if balance_payable <= 0 else PaymentStatus.PENDING


def _raw_fields(raw: Union[Trip, Mapping[str, Any]]) -> Dict[str, Decimal]:
    # Handle both a Trip and a flat mapping of raw inputs
    if isinstance(raw, Trip):
        return {
            'fuelCost': raw.expenses.fuel_cost,
            'tollCharges': raw.expenses.toll_charges,
            'parkingCharges': raw.expenses.parking_charges,
            'otherExpenses': raw.expenses.other_expenses,
            'totalDriverPay': raw.driver_payment.total_driver_pay,
            'advancePaid': raw.driver_payment.advance_paid,
            'totalAmount': raw.total_amount,
            'startOdometer': raw.start_odometer,
            'endOdometer': raw.end_odometer,
        }

    keys = ('fuelCost', 'tollCharges', 'parkingCharges', 'otherExpenses',
            'totalDriverPay', 'advancePaid', 'totalAmount', 'startOdometer', 'endOdometer')
    return {key: parse_amount(raw.get(key, ZERO), key) for key in keys}


def derive_trip_financials(raw: Union[Trip, Mapping[str, Any]]) -> TripFinancials:
    """
    Compute the derived trip fields from raw inputs.

    Args:
        raw: a Trip, or a flat mapping of the raw fields. Absent numbers are 0.
            Previously derived values on the input are ignored.

    Returns:
        TripFinancials
    """
    data = _raw_fields(raw)

    # Total Expense = Fuel + Toll + Parking + Other + Driver Pay
    total_expense = (
        data['fuelCost']
        + data['tollCharges']
        + data['parkingCharges']
        + data['otherExpenses']
        + data['totalDriverPay']
    )

    net_profit = data['totalAmount'] - total_expense

    # Passed through unchanged when the end reading is below the start reading
    total_distance = data['endOdometer'] - data['startOdometer']

    balance_payable = data['totalDriverPay'] - data['advancePaid']

    return TripFinancials(
        total_distance=total_distance,
        total_expense=total_expense,
        net_profit=net_profit,
        balance_payable=balance_payable,
        payment_status=payment_status_for(balance_payable),
    )


class TripCalculator:
    """Applies derived financials to trip records before they are stored"""

    def calculate(self, trip: Trip) -> TripFinancials:
        return derive_trip_financials(trip)

    def apply(self, trip: Trip) -> Trip:
        """Return a copy of the trip carrying freshly derived fields"""
        financials = self.calculate(trip)
        return replace(
            trip,
            total_distance=financials.total_distance,
            total_expense=financials.total_expense,
            net_profit=financials.net_profit,
            driver_payment=replace(
                trip.driver_payment,
                balance_payable=financials.balance_payable,
                payment_status=financials.payment_status,
            ),
        )
