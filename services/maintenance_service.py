"""
Maintenance Service

Classifies vehicle maintenance and insurance due dates as urgent or not,
per date and across the fleet.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence
import logging
import math

from models import Vehicle, DUE_DATE_FIELDS

logger = logging.getLogger(__name__)

# Due within this many days (or already overdue) counts as urgent
URGENCY_HORIZON_DAYS = 7

_ONE_DAY_SECONDS = timedelta(days=1).total_seconds()


def _parse_due_date(due_date: Optional[str]) -> Optional[date]:
    if due_date is None:
        return None
    text = str(due_date).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        logger.warning(f"Ignoring unparseable maintenance date: {due_date!r}")
        return None


def days_until(due_date: Optional[str], now: datetime) -> Optional[int]:
    """
    Whole days from now until the due date, rounded up.

    The due date is taken as midnight on the wall clock of ``now``, so today
    gives 0 and past dates give negative counts. Returns None for blank or
    unparseable input.
    """
    due = _parse_due_date(due_date)
    if due is None:
        return None
    due_midnight = datetime(due.year, due.month, due.day)
    wall_now = now.replace(tzinfo=None)
    delta = due_midnight - wall_now
    return math.ceil(delta.total_seconds() / _ONE_DAY_SECONDS)


def is_urgent(due_date: Optional[str], now: datetime) -> bool:
    """Blank dates are never urgent; overdue dates always are"""
    remaining = days_until(due_date, now)
    if remaining is None:
        return False
    return remaining < URGENCY_HORIZON_DAYS


@dataclass(frozen=True)
class MaintenanceAlert:
    field: str
    due_date: str
    days_remaining: Optional[int]
    urgent: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field': self.field,
            'dueDate': self.due_date,
            'daysRemaining': self.days_remaining,
            'urgent': self.urgent,
        }


@dataclass(frozen=True)
class VehicleAlerts:
    vehicle: Vehicle
    alerts: List[MaintenanceAlert]

    @property
    def urgent_fields(self) -> List[str]:
        return [alert.field for alert in self.alerts if alert.urgent]

    @property
    def is_attention_needed(self) -> bool:
        return any(alert.urgent for alert in self.alerts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'vehicleId': self.vehicle.id,
            'registrationNumber': self.vehicle.registration_number,
            'makeModel': self.vehicle.make_model,
            'attentionNeeded': self.is_attention_needed,
            'urgentFields': self.urgent_fields,
            'alerts': [alert.to_dict() for alert in self.alerts],
        }


class MaintenanceService:
    """Service class for maintenance alerting"""

    def evaluate_vehicle(self, vehicle: Vehicle, now: datetime) -> VehicleAlerts:
        """Evaluate the due and expiry dates of one vehicle"""
        alerts = []
        for attr, key in DUE_DATE_FIELDS:
            due = getattr(vehicle, attr)
            remaining = days_until(due, now)
            alerts.append(MaintenanceAlert(
                field=key,
                due_date=due,
                days_remaining=remaining,
                urgent=remaining is not None and remaining < URGENCY_HORIZON_DAYS,
            ))
        return VehicleAlerts(vehicle=vehicle, alerts=alerts)

    def fleet_alerts(self, vehicles: Sequence[Vehicle], now: datetime) -> List[VehicleAlerts]:
        """Alerts for the vehicles with at least one urgent date, in fleet order"""
        evaluated = (self.evaluate_vehicle(vehicle, now) for vehicle in vehicles)
        return [result for result in evaluated if result.is_attention_needed]
