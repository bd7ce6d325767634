"""
Service Layer Architecture

This package contains the bookkeeping logic behind the HTTP routes:

1. **Trip financials**: derived distance, expense, profit and driver balance
2. **Maintenance alerting**: urgency of service and insurance due dates
3. **Reporting**: monthly totals, pending driver pay, trend and recent activity
4. **Storage**: trip and vehicle collections mirrored to named blobs
5. **Insights**: best-effort AI summary of recent trips

Services Architecture:
- **TripCalculator**: pure derivation of trip financial fields
- **MaintenanceService**: maintenance/insurance urgency per vehicle and fleet
- **ReportingService**: dashboard statistics over the trip collection
- **TripStore / VehicleStore**: collection repositories (load, save, get_all)
- **TripService**: trip create/update with re-derivation on every save
- **VehicleService**: vehicle add/delete and alert listing
- **InsightService**: outbound Gemini call with fixed fallback messages
"""

from .trip_calculator import TripCalculator, TripFinancials, derive_trip_financials
from .maintenance_service import MaintenanceService, is_urgent, days_until
from .reporting_service import ReportingService, FleetSummary, summarize
from .storage_service import TripStore, VehicleStore
from .trip_service import TripService
from .vehicle_service import VehicleService
from .insight_service import InsightService
from .transaction_helper import TransactionHelper

__all__ = [
    'TripCalculator',
    'TripFinancials',
    'derive_trip_financials',
    'MaintenanceService',
    'is_urgent',
    'days_until',
    'ReportingService',
    'FleetSummary',
    'summarize',
    'TripStore',
    'VehicleStore',
    'TripService',
    'VehicleService',
    'InsightService',
    'TransactionHelper'
]
