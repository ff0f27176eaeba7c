import logging
from datetime import date, time
from typing import Any, Callable, List, Optional, Union

from pydantic import ValidationError

from transit_booking.auth.service import PersonRef, UserService, email_of
from transit_booking.bookings.fare_service import PriceTable
from transit_booking.exceptions import BusinessRuleError, EntityNotFoundError, ErrorCode, InputValidationError
from transit_booking.locations.service import LocationService
from transit_booking.locking import KeyedLock, person_key
from transit_booking.storage.interfaces import Repository
from transit_booking.storage.sequences import TRANSPORTS_SEQUENCE, SequenceAllocator
from transit_booking.storage.unit_of_work import UnitOfWork
from transit_booking.transports.schemas import Bus, Train
from transit_booking.transports.sorting import (
    ANY_LOCATION, filter_by_location, filter_by_max_price, sort_by_date, sort_by_duration,
)

logger = logging.getLogger(__name__)

TransportItem = Union[Bus, Train]

class TransportService:
    """Transport scheduling and listing"""

    def __init__(
        self,
        transports: Repository,
        locations: LocationService,
        users: UserService,
        allocator: SequenceAllocator,
        prices: Optional[PriceTable] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.transports = transports
        self.locations = locations
        self.users = users
        self.allocator = allocator
        self.prices = prices or PriceTable.from_settings()
        self.locks = locks or KeyedLock()

    # ================================
    # Queries
    # ================================
    def get_all_transports(self) -> List[TransportItem]:
        """Get all transports ordered by id"""
        return sorted(self.transports.get_all(), key=lambda transport: transport.id)

    def get_transport(self, transport_id: int) -> Optional[TransportItem]:
        return self.transports.get(transport_id)

    def get_transports_filtered_by_location(
        self, origin_id: int = ANY_LOCATION, destination_id: int = ANY_LOCATION
    ) -> List[TransportItem]:
        return filter_by_location(self.get_all_transports(), origin_id, destination_id)

    def get_transports_filtered_by_max_price(self, max_price: int) -> List[TransportItem]:
        return filter_by_max_price(self.get_all_transports(), max_price, self.prices)

    def get_transports_sorted_by_date(self) -> List[TransportItem]:
        return sort_by_date(self.get_all_transports())

    def get_transports_sorted_by_duration(self, descending: bool = True) -> List[TransportItem]:
        return sort_by_duration(self.get_all_transports(), descending=descending)

    # ================================
    # Scheduling
    # ================================
    def create_bus_transport(
        self,
        admin: PersonRef,
        origin_id: int,
        destination_id: int,
        date: date,
        departure_time: time,
        arrival_time: time,
        capacity: int,
    ) -> Bus:
        """Schedule a bus owned by the administrator"""
        problem = None if capacity > 0 else "A bus needs a positive number of seats!"
        return self._create(admin, origin_id, destination_id, problem, lambda transport_id, owner: Bus(
            id=transport_id,
            origin_location_id=origin_id,
            destination_location_id=destination_id,
            date=date,
            departure_time=departure_time,
            arrival_time=arrival_time,
            owner_email=owner,
            total_capacity=capacity,
            remaining_capacity=capacity,
        ))

    def create_train_transport(
        self,
        admin: PersonRef,
        origin_id: int,
        destination_id: int,
        date: date,
        departure_time: time,
        arrival_time: time,
        first_class_capacity: int,
        second_class_capacity: int,
    ) -> Train:
        """Schedule a train owned by the administrator"""
        problem = None
        if first_class_capacity < 0 or second_class_capacity < 0:
            problem = "Seat counts cannot be negative!"
        elif first_class_capacity + second_class_capacity == 0:
            problem = "A train needs at least one seat!"
        return self._create(admin, origin_id, destination_id, problem, lambda transport_id, owner: Train(
            id=transport_id,
            origin_location_id=origin_id,
            destination_location_id=destination_id,
            date=date,
            departure_time=departure_time,
            arrival_time=arrival_time,
            owner_email=owner,
            first_class_capacity=first_class_capacity,
            second_class_capacity=second_class_capacity,
            remaining_first_class_capacity=first_class_capacity,
            remaining_second_class_capacity=second_class_capacity,
        ))

    def _create(
        self,
        admin: PersonRef,
        origin_id: int,
        destination_id: int,
        capacity_problem: Optional[str],
        build: Callable[[int, str], Any],
    ) -> Any:
        email = email_of(admin)
        self.users.require_admin(email)
        if origin_id == destination_id:
            raise BusinessRuleError("Origin and destination cannot be the same location!", ErrorCode.SAME_LOCATION)
        self._require_locations(origin_id, destination_id)
        if capacity_problem:
            raise InputValidationError(capacity_problem)

        with self.locks.hold(person_key(email)):
            administrator = self.users.require_admin(email)
            transport_id = self.allocator.next_id(TRANSPORTS_SEQUENCE, self.transports)
            try:
                transport = build(transport_id, email)
            except ValidationError as e:
                raise InputValidationError(f"Invalid transport data: {e.errors()[0]['msg']}") from e

            with UnitOfWork() as uow:
                uow.create(self.transports, transport)
                administrator.administered_transport_ids.append(transport.id)
                uow.update(self.users.persons, administrator)

        logger.info("Created %s transport", transport.kind, extra={"admin_email": email, "transport_id": transport.id})
        return transport

    def _require_locations(self, origin_id: int, destination_id: int) -> None:
        origin_missing = self.locations.get_location(origin_id) is None
        destination_missing = self.locations.get_location(destination_id) is None
        if origin_missing and destination_missing:
            raise EntityNotFoundError("No locations with the entered origin and destination IDs found!")
        if origin_missing:
            raise EntityNotFoundError("No location with the entered origin ID found!")
        if destination_missing:
            raise EntityNotFoundError("No location with the entered destination ID found!")
