"""
Vehicle Service

Handles fleet asset bookkeeping: adding and removing vehicles and reporting
their maintenance alerts.
"""

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional
import logging

from models import Vehicle, RecordNotFoundError, RecordValidationError, generate_record_id
from timezone_utils import get_local_now
from .maintenance_service import MaintenanceService, VehicleAlerts
from .storage_service import VehicleStore

logger = logging.getLogger(__name__)

class VehicleService:
    """Service class for vehicle management operations"""

    def __init__(self, store: VehicleStore, maintenance_service: Optional[MaintenanceService] = None,
                 clock: Callable[[], datetime] = get_local_now):
        self.store = store
        self.maintenance_service = maintenance_service or MaintenanceService()
        self.clock = clock

    def list_vehicles(self) -> List[Vehicle]:
        return self.store.get_all()

    def add_vehicle(self, data: Mapping[str, Any]) -> Vehicle:
        """
        Add a vehicle to the fleet.

        Args:
            data: submitted vehicle fields; registrationNumber and makeModel
                are required, maintenance dates default to blank

        Returns:
            Vehicle: the stored vehicle with a fresh id
        """
        vehicle = replace(Vehicle.from_dict(data), id=generate_record_id())

        if not vehicle.registration_number:
            raise RecordValidationError('registrationNumber', "is required")
        if not vehicle.make_model:
            raise RecordValidationError('makeModel', "is required")

        with self.store.lock:
            vehicles = self.store.get_all()
            vehicles.append(vehicle)
            self.store.save(vehicles)

        logger.info(f"Vehicle {vehicle.registration_number} added (id {vehicle.id})")
        return vehicle

    def delete_vehicle(self, vehicle_id: str) -> Vehicle:
        with self.store.lock:
            vehicles = self.store.get_all()
            remaining = [vehicle for vehicle in vehicles if vehicle.id != vehicle_id]
            if len(remaining) == len(vehicles):
                raise RecordNotFoundError('Vehicle', vehicle_id)
            removed = next(vehicle for vehicle in vehicles if vehicle.id == vehicle_id)
            self.store.save(remaining)

        logger.info(f"Vehicle {removed.registration_number} deleted (id {vehicle_id})")
        return removed

    def get_vehicle_alerts(self, now: Optional[datetime] = None) -> List[VehicleAlerts]:
        """Maintenance alerts for every vehicle, in fleet order"""
        now = now or self.clock()
        return [self.maintenance_service.evaluate_vehicle(vehicle, now)
                for vehicle in self.store.get_all()]

    def get_attention_needed(self, now: Optional[datetime] = None) -> List[VehicleAlerts]:
        now = now or self.clock()
        return self.maintenance_service.fleet_alerts(self.store.get_all(), now)
