"""
Trip Service

Handles trip creation and full-replacement updates. Every save re-derives the
financial fields from scratch before the collection is persisted.
"""

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional
import logging

from models import Trip, RecordNotFoundError, generate_record_id
from timezone_utils import get_local_now
from .storage_service import TripStore
from .trip_calculator import TripCalculator, TripFinancials

logger = logging.getLogger(__name__)


class TripService:
    """Service class for trip bookkeeping"""

    def __init__(self, store: TripStore, calculator: Optional[TripCalculator] = None,
                 clock: Callable[[], datetime] = get_local_now):
        self.store = store
        self.calculator = calculator or TripCalculator()
        self.clock = clock

    def list_trips(self) -> List[Trip]:
        """All trips, newest first"""
        return self.store.get_all()

    def get_trip(self, trip_id: str) -> Trip:
        for trip in self.store.get_all():
            if trip.id == trip_id:
                return trip
        raise RecordNotFoundError('Trip', trip_id)

    def preview(self, data: Mapping[str, Any]) -> TripFinancials:
        """Derived figures for a trip form that has not been saved yet"""
        return self.calculator.calculate(Trip.from_dict(data, derived=False))

    def create_trip(self, data: Mapping[str, Any]) -> Trip:
        """
        Record a new trip.

        Args:
            data: submitted trip fields; any client-supplied id or derived
                values are ignored, and a missing date means today

        Returns:
            Trip: the stored trip with a fresh id and derived fields
        """
        trip = replace(Trip.from_dict(data, derived=False), id=generate_record_id())
        if trip.trip_date is None:
            trip = replace(trip, trip_date=self.clock().date())
        trip = self._derive(trip)

        with self.store.lock:
            trips = self.store.get_all()
            # Newest first: the dashboard windows rely on this order
            trips.insert(0, trip)
            self.store.save(trips)

        logger.info(f"Trip {trip.id} recorded for {trip.trip_date} (net profit {trip.net_profit})")
        return trip

    def update_trip(self, trip_id: str, data: Mapping[str, Any]) -> Trip:
        """Replace an existing trip in place, keeping its id and position; a missing date keeps the stored one"""
        trip = replace(Trip.from_dict(data, derived=False), id=trip_id)

        with self.store.lock:
            trips = self.store.get_all()
            for index, existing in enumerate(trips):
                if existing.id == trip_id:
                    break
            else:
                raise RecordNotFoundError('Trip', trip_id)

            if trip.trip_date is None:
                trip = replace(trip, trip_date=existing.trip_date or self.clock().date())
            trip = self._derive(trip)

            trips[index] = trip
            self.store.save(trips)

        logger.info(f"Trip {trip_id} updated (net profit {trip.net_profit})")
        return trip

    def _derive(self, trip: Trip) -> Trip:
        trip = self.calculator.apply(trip)
        if trip.total_distance < 0:
            logger.warning(
                f"Trip {trip.id}: end odometer {trip.end_odometer} is below start "
                f"odometer {trip.start_odometer}; storing negative distance {trip.total_distance}"
            )
        return trip
