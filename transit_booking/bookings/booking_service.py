import logging
from typing import List, Optional, Union

from transit_booking.auth.service import PersonRef, UserService, email_of
from transit_booking.bookings.fare_service import PriceTable
from transit_booking.bookings.schemas import BusTicket, TicketAuditView, TrainTicket
from transit_booking.exceptions import (
    EntityNotFoundError, ErrorCode, InputValidationError, InsufficientBalanceError,
    LockTimeoutError, NotAuthorizedError, SoldOutError,
)
from transit_booking.locations.schemas import Location, LocationTicketCount
from transit_booking.locations.service import LocationService
from transit_booking.locking import KeyedLock, person_key, transport_key
from transit_booking.storage.interfaces import Repository
from transit_booking.storage.sequences import TICKETS_SEQUENCE, SequenceAllocator
from transit_booking.storage.unit_of_work import UnitOfWork
from transit_booking.transports.schemas import BUS_KIND, TRAIN_KIND, Bus, TicketClass, Train
from transit_booking.transports.service import TransportService
from transit_booking.transports.sorting import ANY_LOCATION

logger = logging.getLogger(__name__)

TicketItem = Union[BusTicket, TrainTicket]
TransportItem = Union[Bus, Train]

TRANSPORT_NOT_FOUND = "There does not exist any transport with the entered ID!"
TICKET_NOT_FOUND = "No ticket with this TicketNr exists!"

# Re-tries of the lock set in remove_transport when bookings change underneath
MAX_CASCADE_ATTEMPTS = 5

class BookingService:
    """Entry point for every booking operation

    Composes the user, location and transport services over the four entity
    repositories and the id sequences stored beside them, and owns the ticket
    lifecycle. Any customer or administrator argument may be the account
    itself or its e-mail; the stored record is always re-read.
    """

    def __init__(
        self,
        persons: Repository,
        transports: Repository,
        tickets: Repository,
        locations: Repository,
        sequences: Repository,
        prices: Optional[PriceTable] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.persons = persons
        self.transports = transports
        self.tickets = tickets
        self.prices = prices or PriceTable.from_settings()
        self.locks = locks or KeyedLock()
        self.allocator = SequenceAllocator(sequences)

        self.users = UserService(persons, self.locks)
        self.location_service = LocationService(locations, self.allocator, self.locks)
        self.transport_service = TransportService(
            transports, self.location_service, self.users, self.allocator, self.prices, self.locks
        )

    @classmethod
    def from_repositories(cls, repositories, **kwargs) -> "BookingService":
        """Build a service from ``storage.factory.build_repositories`` output"""
        return cls(
            repositories.persons,
            repositories.transports,
            repositories.tickets,
            repositories.locations,
            sequences=repositories.sequences,
            **kwargs,
        )

    # ================================
    # Accounts
    # ================================
    def register_user(self, username: str, email: str, password: str, is_admin: bool):
        return self.users.register_user(username, email, password, is_admin)

    def check_login_credentials(self, email: str, password: str):
        return self.users.check_login_credentials(email, password)

    def get_balance(self, customer: PersonRef) -> int:
        return self.users.get_balance(customer)

    def add_balance(self, customer: PersonRef, amount: int) -> int:
        return self.users.add_balance(customer, amount)

    def reduce_balance(self, customer: PersonRef, amount: int) -> int:
        return self.users.reduce_balance(customer, amount)

    def get_all_tickets(self, customer: PersonRef) -> List[TicketItem]:
        """Tickets currently held by a customer, ordered by ticket number"""
        found = self.users.require_customer(customer)
        tickets = [self.tickets.get(ticket_id) for ticket_id in found.ticket_ids]
        return sorted((ticket for ticket in tickets if ticket is not None), key=lambda ticket: ticket.id)

    # ================================
    # Locations
    # ================================
    def get_locations(self) -> List[Location]:
        return self.location_service.get_locations()

    def create_location(self, admin: PersonRef, street: str, city: str) -> Location:
        self.users.require_admin(admin)
        return self.location_service.create_location(street, city)

    def get_locations_sorted_by_ticket_count(self) -> List[LocationTicketCount]:
        return self.location_service.sort_by_ticket_count(self.transports.get_all(), self.tickets.get_all())

    # ================================
    # Transports
    # ================================
    def get_all_transports(self) -> List[TransportItem]:
        return self.transport_service.get_all_transports()

    def get_transports_filtered_by_location(
        self, origin_id: int = ANY_LOCATION, destination_id: int = ANY_LOCATION
    ) -> List[TransportItem]:
        return self.transport_service.get_transports_filtered_by_location(origin_id, destination_id)

    def get_transports_filtered_by_max_price(self, max_price: int) -> List[TransportItem]:
        return self.transport_service.get_transports_filtered_by_max_price(max_price)

    def get_transports_sorted_by_date(self) -> List[TransportItem]:
        return self.transport_service.get_transports_sorted_by_date()

    def get_transports_sorted_by_duration(self, descending: bool = True) -> List[TransportItem]:
        return self.transport_service.get_transports_sorted_by_duration(descending)

    def create_bus_transport(self, admin: PersonRef, origin_id: int, destination_id: int,
                             date, departure_time, arrival_time, capacity: int) -> Bus:
        return self.transport_service.create_bus_transport(
            admin, origin_id, destination_id, date, departure_time, arrival_time, capacity
        )

    def create_train_transport(self, admin: PersonRef, origin_id: int, destination_id: int,
                               date, departure_time, arrival_time,
                               first_class_capacity: int, second_class_capacity: int) -> Train:
        return self.transport_service.create_train_transport(
            admin, origin_id, destination_id, date, departure_time, arrival_time,
            first_class_capacity, second_class_capacity,
        )

    def remove_transport(self, admin: PersonRef, transport_id: int) -> List[TicketItem]:
        """Delete a transport and cancel its tickets with a full refund

        Returns the cancelled tickets.
        """
        email = email_of(admin)
        if self.transports.get(transport_id) is None:
            raise EntityNotFoundError("No transport with this ID exists in the repository!")
        self._require_owner(email, transport_id)

        for _ in range(MAX_CASCADE_ATTEMPTS):
            peeked = self._tickets_on(transport_id)
            owners = {ticket.customer_email for ticket in peeked}
            keys = [person_key(email), transport_key(transport_id)] + [person_key(owner) for owner in owners]

            with self.locks.hold(*keys):
                if self.transports.get(transport_id) is None:
                    raise EntityNotFoundError("No transport with this ID exists in the repository!")
                administrator = self._require_owner(email, transport_id)
                cancelled = self._tickets_on(transport_id)
                if {ticket.customer_email for ticket in cancelled} != owners:
                    # A booking by another customer slipped in, retry with their lock
                    continue

                with UnitOfWork() as uow:
                    for ticket in cancelled:
                        customer = self.persons.get(ticket.customer_email)
                        if customer is not None and customer.owns(ticket.id):
                            customer.ticket_ids.remove(ticket.id)
                            customer.balance += ticket.price
                            uow.update(self.persons, customer)
                        uow.delete(self.tickets, ticket.id)
                    uow.delete(self.transports, transport_id)
                    if administrator.manages(transport_id):
                        administrator.administered_transport_ids.remove(transport_id)
                        uow.update(self.persons, administrator)

            logger.info(
                "Removed transport, cancelled %d tickets", len(cancelled),
                extra={"admin_email": email, "transport_id": transport_id},
            )
            return cancelled

        raise LockTimeoutError("The transport is being booked right now, please try again later!")

    def get_all_transport_tickets(self, admin: PersonRef, transport_id: int) -> List[TicketAuditView]:
        """Reduced view of every ticket on a transport, ordered by seat"""
        self.users.require_admin(admin)
        if self.transports.get(transport_id) is None:
            raise EntityNotFoundError("No transport with this ID exists!")

        views = []
        for ticket in self._tickets_on(transport_id):
            customer = self.persons.get(ticket.customer_email)
            username = customer.username if customer is not None else ""
            views.append(TicketAuditView.from_ticket(ticket, username))
        return sorted(views, key=lambda view: view.seat)

    # ================================
    # Tickets
    # ================================
    def create_ticket(self, customer: PersonRef, transport_id: int, ticket_class: Optional[int] = None) -> TicketItem:
        """Buy the lowest free seat in the requested class"""
        email = email_of(customer)
        if self.transports.get(transport_id) is None:
            raise EntityNotFoundError(TRANSPORT_NOT_FOUND)

        with self.locks.hold(person_key(email), transport_key(transport_id)):
            transport = self.transports.get(transport_id)
            if transport is None:
                raise EntityNotFoundError(TRANSPORT_NOT_FOUND)
            buyer = self.users.require_customer(email)

            travel_class = self._check_seat_available(transport, ticket_class)
            price = self.prices.price_for(transport, travel_class)
            if buyer.balance < price:
                raise InsufficientBalanceError(price, buyer.balance)

            with UnitOfWork() as uow:
                ticket_id = self.allocator.next_id(TICKETS_SEQUENCE, self.tickets)
                seat = transport.book_seat(ticket_id, travel_class)
                ticket = self._build_ticket(transport, ticket_id, email, price, seat, travel_class)
                uow.create(self.tickets, ticket)
                uow.update(self.transports, transport)
                buyer.balance -= price
                buyer.ticket_ids.append(ticket.id)
                uow.update(self.persons, buyer)

        logger.info(
            "Ticket purchased",
            extra={"customer_email": email, "transport_id": transport_id, "ticket_id": ticket.id},
        )
        return ticket

    def remove_ticket(self, customer: PersonRef, ticket_id: int) -> int:
        """Cancel a ticket and return the refunded amount (price minus service fee)"""
        email = email_of(customer)
        peeked = self.tickets.get(ticket_id)
        if peeked is None:
            raise EntityNotFoundError(TICKET_NOT_FOUND)

        with self.locks.hold(person_key(email), transport_key(peeked.transport_id)):
            ticket = self.tickets.get(ticket_id)
            if ticket is None:
                raise EntityNotFoundError(TICKET_NOT_FOUND)
            holder = self.users.require_customer(email)
            if not holder.owns(ticket.id) or ticket.customer_email != holder.email:
                raise NotAuthorizedError("You do not own a ticket with this TicketNr!", ErrorCode.NOT_OWNER)

            refund = self.prices.refund_for(ticket.price)
            with UnitOfWork() as uow:
                transport = self.transports.get(ticket.transport_id)
                if transport is not None:
                    transport.release_seat(ticket.seat, ticket.travel_class)
                    uow.update(self.transports, transport)
                holder.ticket_ids.remove(ticket.id)
                holder.balance += refund
                uow.update(self.persons, holder)
                uow.delete(self.tickets, ticket.id)

        logger.info(
            "Ticket cancelled",
            extra={"customer_email": email, "transport_id": ticket.transport_id, "ticket_id": ticket.id},
        )
        return refund

    # ================================
    # Helpers
    # ================================
    def _tickets_on(self, transport_id: int) -> List[TicketItem]:
        tickets = [ticket for ticket in self.tickets.get_all() if ticket.transport_id == transport_id]
        return sorted(tickets, key=lambda ticket: ticket.id)

    def _require_owner(self, email: str, transport_id: int):
        administrator = self.users.require_admin(email)
        transport = self.transports.get(transport_id)
        if not administrator.manages(transport_id) and (transport is None or transport.owner_email != email):
            raise NotAuthorizedError(
                "You are not authorized to remove this transport since you do not manage it!",
                ErrorCode.NOT_OWNER,
            )
        return administrator

    @staticmethod
    def _check_seat_available(transport: TransportItem, ticket_class: Optional[int]) -> Optional[TicketClass]:
        """Resolve the travel class and make sure it still has a seat"""
        if transport.kind == BUS_KIND:
            if transport.remaining_capacity == 0:
                raise SoldOutError("We are sorry, this bus is sold out. Please try another transport!")
            return None

        if transport.kind == TRAIN_KIND:
            try:
                travel_class = TicketClass(ticket_class)
            except ValueError as e:
                raise InputValidationError("Invalid ticket class! Please choose 1 or 2.") from e
            if transport.remaining_for(travel_class) > 0:
                return travel_class
            if transport.remaining_for(travel_class.other) > 0:
                raise SoldOutError(
                    f"The train transport is sold out in {travel_class.label}, "
                    f"but {travel_class.other.label} still has seats left!",
                    alternative_class=int(travel_class.other),
                )
            raise SoldOutError("The train transport is sold out. Please try another transport!")

        raise ValueError(f"Unknown transport kind: {transport.kind}")

    @staticmethod
    def _build_ticket(transport: TransportItem, ticket_id: int, email: str, price: int,
                      seat: int, travel_class: Optional[TicketClass]) -> TicketItem:
        if transport.kind == BUS_KIND:
            return BusTicket(id=ticket_id, customer_email=email, transport_id=transport.id, price=price, seat=seat)
        if transport.kind == TRAIN_KIND:
            return TrainTicket(
                id=ticket_id, customer_email=email, transport_id=transport.id,
                price=price, seat=seat, ticket_class=travel_class,
            )
        raise ValueError(f"Unknown transport kind: {transport.kind}")
