"""
Storage Service

Repository objects owning the trip and vehicle collections. Each collection
is mirrored to one named blob (a JSON array) that is rewritten in full on
every change.
"""

from typing import Callable, Generic, List, Optional, Sequence, TypeVar
import json
import logging
import threading

from app import db
from models import StoredCollection, Trip, Vehicle, default_vehicles
from .transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

TRIPS_KEY = 'navexa_trips'
VEHICLES_KEY = 'navexa_vehicles'

RecordT = TypeVar('RecordT', Trip, Vehicle)


class CollectionStore(Generic[RecordT]):
    """
    Collection backed by a single stored blob.

    The blob is the only copy: load() and get_all() read it on every call,
    falling back to the default collection when it is absent or unreadable,
    so several worker processes see each other's writes. save() replaces the
    collection and rewrites the blob. Hold ``lock`` across a get_all/save
    pair to keep a read-modify-write from interleaving within a process.
    """

    def __init__(self, key: str, record_type, default_factory: Callable[[], List[RecordT]] = list):
        self.key = key
        self.record_type = record_type
        self.default_factory = default_factory
        self.lock = threading.RLock()

    def _fetch_row(self) -> Optional[StoredCollection]:
        return db.session.execute(
            db.select(StoredCollection).filter_by(key=self.key)
        ).scalar_one_or_none()

    def _decode(self, payload: str) -> List[RecordT]:
        data = json.loads(payload)
        if not isinstance(data, list):
            raise ValueError(f"expected a JSON array, got {type(data).__name__}")
        return [self.record_type.from_dict(item) for item in data]

    def load(self) -> List[RecordT]:
        """Read the stored collection"""
        with self.lock:
            # Pick up rows committed by other processes since the last read
            db.session.expire_all()
            row = self._fetch_row()
            if row is None:
                logger.debug(f"No stored collection '{self.key}', using defaults")
                return self.default_factory()
            try:
                return self._decode(row.payload)
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Stored collection '{self.key}' is unreadable, using defaults: {str(e)}")
                return self.default_factory()

    def get_all(self) -> List[RecordT]:
        return self.load()

    @TransactionHelper.with_transaction
    def _write(self, payload: str):
        row = self._fetch_row()
        if row is None:
            row = StoredCollection(key=self.key, payload=payload)
            db.session.add(row)
        else:
            row.payload = payload

    def save(self, records: Sequence[RecordT]) -> None:
        """Replace the collection and rewrite its blob in full"""
        with self.lock:
            records = list(records)
            payload = json.dumps([record.to_dict() for record in records], ensure_ascii=False)
            self._write(payload)
            logger.debug(f"Saved {len(records)} records to '{self.key}'")


class TripStore(CollectionStore[Trip]):
    """Trip collection, kept newest-first"""

    def __init__(self, key: str = TRIPS_KEY):
        super().__init__(key, Trip, default_factory=list)


class VehicleStore(CollectionStore[Vehicle]):
    """Vehicle collection, seeded with a default vehicle when nothing is stored"""

    def __init__(self, key: str = VEHICLES_KEY):
        super().__init__(key, Vehicle, default_factory=default_vehicles)
