import logging
from collections import Counter
from typing import List, Optional

from transit_booking.exceptions import BusinessRuleError, ErrorCode, InputValidationError
from transit_booking.locations.schemas import Location, LocationTicketCount
from transit_booking.locking import LOCATIONS_KEY, KeyedLock
from transit_booking.storage.interfaces import Repository
from transit_booking.storage.sequences import LOCATIONS_SEQUENCE, SequenceAllocator

logger = logging.getLogger(__name__)

class LocationService:
    def __init__(self, locations: Repository, allocator: SequenceAllocator, locks: Optional[KeyedLock] = None):
        self.locations = locations
        self.allocator = allocator
        self.locks = locks or KeyedLock()

    def get_locations(self) -> List[Location]:
        """Get all locations ordered by id"""
        return sorted(self.locations.get_all(), key=lambda location: location.id)

    def get_location(self, location_id: int) -> Optional[Location]:
        return self.locations.get(location_id)

    def create_location(self, street: str, city: str) -> Location:
        """Create a new location; (street, city) must be unique"""
        if not street or not street.strip() or not city or not city.strip():
            raise InputValidationError("Street and city cannot be empty!")

        with self.locks.hold(LOCATIONS_KEY):
            if any(location.same_place(street, city) for location in self.locations.get_all()):
                raise BusinessRuleError("Location already exists.", ErrorCode.DUPLICATE_LOCATION)
            location = Location(
                id=self.allocator.next_id(LOCATIONS_SEQUENCE, self.locations),
                street=street,
                city=city,
            )
            self.locations.create(location)

        logger.info("Created location", extra={"location_id": location.id})
        return location

    def sort_by_ticket_count(self, transports: list, tickets: list) -> List[LocationTicketCount]:
        """Every location with the number of tickets on transports starting or ending there

        Ordered by ticket count descending, ties by location id.
        """
        tickets_per_transport = Counter(ticket.transport_id for ticket in tickets)
        counts: Counter = Counter()
        for transport in transports:
            sold = tickets_per_transport.get(transport.id, 0)
            counts[transport.origin_location_id] += sold
            counts[transport.destination_location_id] += sold

        ranked = [
            LocationTicketCount(location=location, ticket_count=counts.get(location.id, 0))
            for location in self.locations.get_all()
        ]
        ranked.sort(key=lambda entry: (-entry.ticket_count, entry.location.id))
        return ranked
