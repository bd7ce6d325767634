"""
Reporting Service

Handles dashboard statistics: current-month revenue and expense totals,
outstanding driver pay, the profit trend series and recent activity.

Ordering precondition: every method that windows the trip collection
("first N trips") expects it newest-first, which is how TripStore keeps it.
Nothing here sorts the collection.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
import logging

from models import Trip, Vehicle, PaymentStatus, ZERO, amount_to_json
from .maintenance_service import MaintenanceService

logger = logging.getLogger(__name__)

TREND_WINDOW = 7
RECENT_ACTIVITY_LIMIT = 5


def _iso(value: Optional[date]) -> str:
    return value.isoformat() if value else ''


@dataclass(frozen=True)
class TrendPoint:
    trip_date: Optional[date]
    income: Decimal
    expense: Decimal
    profit: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': _iso(self.trip_date),
            'income': amount_to_json(self.income),
            'expense': amount_to_json(self.expense),
            'profit': amount_to_json(self.profit),
        }


@dataclass(frozen=True)
class RecentTrip:
    trip_id: str
    customer_name: str
    trip_date: Optional[date]
    net_profit: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.trip_id,
            'customerName': self.customer_name,
            'date': _iso(self.trip_date),
            'netProfit': amount_to_json(self.net_profit),
        }


@dataclass(frozen=True)
class FleetSummary:
    monthly_income: Decimal
    monthly_expense: Decimal
    monthly_net_profit: Decimal
    pending_driver_pay: Decimal
    trend: List[TrendPoint]
    recent_activity: List[RecentTrip]
    trip_count: int
    monthly_trip_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'monthlyIncome': amount_to_json(self.monthly_income),
            'monthlyExpense': amount_to_json(self.monthly_expense),
            'monthlyNetProfit': amount_to_json(self.monthly_net_profit),
            'pendingDriverPay': amount_to_json(self.pending_driver_pay),
            'trend': [point.to_dict() for point in self.trend],
            'recentActivity': [entry.to_dict() for entry in self.recent_activity],
            'tripCount': self.trip_count,
            'monthlyTripCount': self.monthly_trip_count,
        }


def in_same_month(trip: Trip, now: datetime) -> bool:
    """Calendar month and year of the trip match now's wall clock; undated trips never match"""
    if trip.trip_date is None:
        return False
    return trip.trip_date.year == now.year and trip.trip_date.month == now.month


def summarize(trips: Sequence[Trip], now: datetime) -> FleetSummary:
    """
    Fold the trip collection into dashboard figures.

    Args:
        trips: newest-first trip collection with derived fields present
        now: reference time for the monthly window

    Returns:
        FleetSummary
    """
    monthly_trips = [trip for trip in trips if in_same_month(trip, now)]

    monthly_income = sum((trip.total_amount for trip in monthly_trips), ZERO)
    monthly_expense = sum((trip.total_expense for trip in monthly_trips), ZERO)

    # Outstanding pay is fleet-wide, not limited to the month
    pending_driver_pay = sum(
        (trip.driver_payment.balance_payable for trip in trips
         if trip.driver_payment.payment_status == PaymentStatus.PENDING),
        ZERO,
    )

    # Oldest-to-newest among the most recent trips, for charting
    trend = [
        TrendPoint(
            trip_date=trip.trip_date,
            income=trip.total_amount,
            expense=trip.total_expense,
            profit=trip.net_profit,
        )
        for trip in reversed(list(trips[:TREND_WINDOW]))
    ]

    recent_activity = [
        RecentTrip(
            trip_id=trip.id,
            customer_name=trip.customer_name,
            trip_date=trip.trip_date,
            net_profit=trip.net_profit,
        )
        for trip in trips[:RECENT_ACTIVITY_LIMIT]
    ]

    return FleetSummary(
        monthly_income=monthly_income,
        monthly_expense=monthly_expense,
        monthly_net_profit=monthly_income - monthly_expense,
        pending_driver_pay=pending_driver_pay,
        trend=trend,
        recent_activity=recent_activity,
        trip_count=len(trips),
        monthly_trip_count=len(monthly_trips),
    )


class ReportingService:
    """Service class for dashboard reporting"""

    def __init__(self, maintenance_service: Optional[MaintenanceService] = None):
        self.maintenance_service = maintenance_service or MaintenanceService()

    def summarize(self, trips: Sequence[Trip], now: datetime) -> FleetSummary:
        return summarize(trips, now)

    def get_dashboard_statistics(self, trips: Sequence[Trip], vehicles: Sequence[Vehicle],
                                 now: datetime) -> Dict[str, Any]:
        """
        Get dashboard statistics: financial summary plus maintenance alerts.

        Returns:
            dict: Dashboard statistics
        """
        summary = self.summarize(trips, now)
        alerts = self.maintenance_service.fleet_alerts(vehicles, now)

        logger.debug(f"Dashboard computed over {len(trips)} trips and {len(vehicles)} vehicles")

        return {
            'summary': summary.to_dict(),
            'maintenanceAlerts': [alert.to_dict() for alert in alerts],
            'totalVehicles': len(vehicles),
            'vehiclesNeedingAttention': len(alerts),
            'generatedAt': now.isoformat(),
        }
