"""
File-backed booking repository.
"""

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import List

from pendulum import DateTime

from ..domain.exceptions import BookingStoreError
from ..domain.models import Booking

logger = logging.getLogger(__name__)


class JsonBookingStore:
    """
    Stores bookings as a JSON list in a single file.

    A missing file is treated as an empty store and created on first write.
    """

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()

    def list_bookings(self, start_time: DateTime, end_time: DateTime) -> List[Booking]:
        """
        Return non-cancelled bookings overlapping ``[start_time, end_time)``.

        Raises:
            BookingStoreError: If the file cannot be read or parsed
        """
        with self._lock:
            bookings = self._read_all()

        return [
            booking
            for booking in bookings
            if not booking.is_cancelled
            and booking.start_time < end_time
            and booking.end_time > start_time
        ]

    def add_booking(self, booking: Booking) -> Booking:
        """
        Persist a new booking, assigning it an id if it has none.

        Raises:
            BookingStoreError: If the file cannot be read or written
        """
        if not booking.id:
            booking.id = uuid.uuid4().hex

        with self._lock:
            bookings = self._read_all()
            bookings.append(booking)
            self._write_all(bookings)

        logger.info("Stored booking %s at %s", booking.id, booking.start_time.to_iso8601_string())
        return booking

    def _read_all(self) -> List[Booking]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise BookingStoreError(f"Could not read bookings from {self.path}: {exc}") from exc

        if not isinstance(raw, list):
            raise BookingStoreError(f"Bookings file {self.path} must contain a JSON list.")

        try:
            return [Booking.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            raise BookingStoreError(f"Invalid booking record in {self.path}: {exc}") from exc

    def _write_all(self, bookings: List[Booking]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump([booking.to_dict() for booking in bookings], f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as exc:
            raise BookingStoreError(f"Could not write bookings to {self.path}: {exc}") from exc
