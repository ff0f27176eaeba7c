from datetime import date, time

import pytest

from transit_booking.bookings.schemas import TicketAuditView
from transit_booking.exceptions import (
    BusinessRuleError, EntityNotFoundError, ErrorCode, InputValidationError, NotAuthorizedError,
)
from transit_booking.transports.schemas import Bus, Train

from conftest import BUS_OPEN, BUS_SOLD_OUT, DANIEL, MIHAEL, MOS, PHILIPP, TRAIN

TRIP = (date(2024, 10, 13), time(12, 0), time(15, 0))


# ================================
# Locations
# ================================
def test_create_location(seeded_service):
    """Test a new (street, city) pair gets the next id"""
    location = seeded_service.create_location(PHILIPP, "Piata 1 Mai", "Cluj-Napoca")

    assert location.id == 3
    assert len(seeded_service.get_locations()) == 4


def test_create_existing_location(seeded_service):
    """Test a (street, city) pair can only exist once"""
    with pytest.raises(BusinessRuleError) as exc_info:
        seeded_service.create_location(PHILIPP, "Strada Mihail Kogălniceanu", "Cluj-Napoca")

    assert exc_info.value.message == "Location already exists."
    assert exc_info.value.code == ErrorCode.DUPLICATE_LOCATION
    assert len(seeded_service.get_locations()) == 3


def test_location_scenario(service):
    """Test the same pair twice, starting from an empty system"""
    service.register_user("Admin", "admin@test.de", "pw", True)
    service.create_location("admin@test.de", "A", "B")

    with pytest.raises(BusinessRuleError) as exc_info:
        service.create_location("admin@test.de", "A", "B")

    assert exc_info.value.message == "Location already exists."


def test_create_location_requires_administrator(seeded_service):
    """Test customers cannot create locations"""
    with pytest.raises(NotAuthorizedError):
        seeded_service.create_location(DANIEL, "Piata 1 Mai", "Cluj-Napoca")


def test_create_location_with_blank_fields(seeded_service):
    """Test street and city are required"""
    with pytest.raises(InputValidationError):
        seeded_service.create_location(PHILIPP, " ", "Cluj-Napoca")


def test_locations_sorted_by_ticket_count(seeded_service):
    """Test locations are ranked by tickets on transports touching them"""
    ranked = seeded_service.get_locations_sorted_by_ticket_count()

    assert [(entry.location.id, entry.ticket_count) for entry in ranked] == [(0, 3), (2, 3), (1, 0)]


# ================================
# Creation
# ================================
def test_create_bus_transport(seeded_service):
    """Test a bus is stored and recorded on its administrator"""
    bus = seeded_service.create_bus_transport(PHILIPP, 1, 2, *TRIP, 20)

    assert isinstance(bus, Bus)
    assert bus.id == 3
    assert bus.remaining_capacity == 20
    assert bus.owner_email == PHILIPP
    assert len(seeded_service.get_all_transports()) == 4
    admin = seeded_service.check_login_credentials(PHILIPP, "test")
    assert admin.administered_transport_ids == [0, 1, 3]


def test_create_train_transport(seeded_service):
    """Test a train is stored with both class capacities"""
    train = seeded_service.create_train_transport(PHILIPP, 1, 2, *TRIP, 2, 10)

    assert isinstance(train, Train)
    assert (train.remaining_first_class_capacity, train.remaining_second_class_capacity) == (2, 10)
    assert len(seeded_service.get_all_transports()) == 4


@pytest.mark.parametrize("create", ["bus", "train"])
def test_create_transport_with_same_locations(seeded_service, create):
    """Test origin and destination must differ"""
    with pytest.raises(BusinessRuleError) as exc_info:
        if create == "bus":
            seeded_service.create_bus_transport(PHILIPP, 2, 2, *TRIP, 20)
        else:
            seeded_service.create_train_transport(PHILIPP, 2, 2, *TRIP, 2, 10)

    assert exc_info.value.message == "Origin and destination cannot be the same location!"
    assert exc_info.value.code == ErrorCode.SAME_LOCATION


@pytest.mark.parametrize("origin,destination,message", [
    (6, 2, "No location with the entered origin ID found!"),
    (2, 6, "No location with the entered destination ID found!"),
    (5, 6, "No locations with the entered origin and destination IDs found!"),
])
def test_create_transport_with_missing_locations(seeded_service, origin, destination, message):
    """Test the error names which location is missing"""
    with pytest.raises(EntityNotFoundError) as exc_info:
        seeded_service.create_bus_transport(PHILIPP, origin, destination, *TRIP, 20)
    assert exc_info.value.message == message

    with pytest.raises(EntityNotFoundError) as exc_info:
        seeded_service.create_train_transport(PHILIPP, origin, destination, *TRIP, 2, 10)
    assert exc_info.value.message == message


def test_create_transport_requires_administrator(seeded_service):
    """Test customers cannot schedule transports"""
    with pytest.raises(NotAuthorizedError) as exc_info:
        seeded_service.create_bus_transport(DANIEL, 1, 2, *TRIP, 20)

    assert exc_info.value.message == "You are not authorized to perform this operation!"


@pytest.mark.parametrize("first,second", [(0, 0), (-1, 5)])
def test_create_train_with_invalid_capacity(seeded_service, first, second):
    """Test a train needs non-negative class sizes and at least one seat"""
    with pytest.raises(InputValidationError):
        seeded_service.create_train_transport(PHILIPP, 1, 2, *TRIP, first, second)

    assert len(seeded_service.get_all_transports()) == 3


def test_create_bus_with_invalid_capacity(seeded_service):
    """Test a bus needs at least one seat"""
    with pytest.raises(InputValidationError):
        seeded_service.create_bus_transport(PHILIPP, 1, 2, *TRIP, 0)


# ================================
# Filtering
# ================================
@pytest.mark.parametrize("origin,destination,expected", [
    (0, 2, [TRAIN]),
    (1, 2, []),
    (0, -1, [BUS_OPEN, TRAIN]),
    (-1, 2, [TRAIN]),
    (5, 7, []),
])
def test_filter_by_location(seeded_service, origin, destination, expected):
    """Test route filtering skips the sold out bus"""
    transports = seeded_service.get_transports_filtered_by_location(origin, destination)

    assert [transport.id for transport in transports] == expected


@pytest.mark.parametrize("max_price,expected", [
    (100, [BUS_OPEN, TRAIN]),
    (15, [TRAIN]),
    (5, []),
])
def test_filter_by_max_price(seeded_service, max_price, expected):
    """Test price filtering over classes that still have seats"""
    transports = seeded_service.get_transports_filtered_by_max_price(max_price)

    assert [transport.id for transport in transports] == expected


def test_sorted_by_date(seeded_service):
    """Test listing by departure date"""
    seeded_service.create_bus_transport(PHILIPP, 1, 2, date(2024, 12, 12), time(8, 0), time(9, 0), 5)

    transports = seeded_service.get_transports_sorted_by_date()

    assert [transport.id for transport in transports] == [3, BUS_OPEN, BUS_SOLD_OUT, TRAIN]


def test_sorted_by_duration(seeded_service):
    """Test listing by travel time"""
    longest_first = seeded_service.get_transports_sorted_by_duration()
    shortest_first = seeded_service.get_transports_sorted_by_duration(descending=False)

    assert [transport.id for transport in longest_first] == [BUS_SOLD_OUT, TRAIN, BUS_OPEN]
    assert [transport.id for transport in shortest_first] == [BUS_OPEN, BUS_SOLD_OUT, TRAIN]


# ================================
# Removal and audits
# ================================
def test_remove_transport(seeded_service):
    """Test removing an unbooked transport"""
    cancelled = seeded_service.remove_transport(PHILIPP, BUS_OPEN)

    assert cancelled == []
    admin = seeded_service.check_login_credentials(PHILIPP, "test")
    assert admin.administered_transport_ids == [BUS_SOLD_OUT]
    assert len(seeded_service.get_all_transports()) == 2


def test_remove_transport_refunds_tickets_in_full(seeded_service):
    """Test outstanding tickets are cancelled with the full price refunded"""
    cancelled = seeded_service.remove_transport(PHILIPP, BUS_SOLD_OUT)

    assert [ticket.id for ticket in cancelled] == [0, 1]
    assert seeded_service.get_balance(DANIEL) == 80
    assert seeded_service.get_all_tickets(DANIEL) == []
    assert not seeded_service.tickets.contains_key(0)
    assert seeded_service.get_balance(MOS) == 20


def test_remove_unknown_transport(seeded_service):
    """Test removing a transport id that does not exist"""
    with pytest.raises(EntityNotFoundError) as exc_info:
        seeded_service.remove_transport(PHILIPP, 5)

    assert exc_info.value.message == "No transport with this ID exists in the repository!"


def test_remove_transport_not_managed(seeded_service):
    """Test only the owning administrator may remove a transport"""
    with pytest.raises(BusinessRuleError) as exc_info:
        seeded_service.remove_transport(PHILIPP, TRAIN)

    assert exc_info.value.message == "You are not authorized to remove this transport since you do not manage it!"
    assert exc_info.value.code == ErrorCode.NOT_OWNER
    assert len(seeded_service.get_all_transports()) == 3


def test_ownership_scenario(seeded_service):
    """Test administrator B is refused, administrator A succeeds"""
    bus = seeded_service.create_bus_transport(MIHAEL, 1, 2, *TRIP, 3)

    with pytest.raises(BusinessRuleError):
        seeded_service.remove_transport(PHILIPP, bus.id)
    seeded_service.remove_transport(MIHAEL, bus.id)

    assert seeded_service.transport_service.get_transport(bus.id) is None


def test_transport_ids_are_not_reused(seeded_service):
    """Test a removed transport's id is never handed out again"""
    seeded_service.remove_transport(MIHAEL, TRAIN)

    bus = seeded_service.create_bus_transport(MIHAEL, 1, 2, *TRIP, 3)

    assert bus.id == 3


def test_get_all_transport_tickets(seeded_service):
    """Test the audit returns reduced views ordered by seat"""
    views = seeded_service.get_all_transport_tickets(PHILIPP, BUS_SOLD_OUT)

    assert len(views) == 2
    assert all(isinstance(view, TicketAuditView) for view in views)
    assert [view.seat for view in views] == [1, 2]
    assert {view.customer_username for view in views} == {"Daniel"}
    assert "Calea Clujului" not in views[0].rendered


def test_get_all_transport_tickets_unknown_transport(seeded_service):
    """Test auditing a transport that does not exist"""
    with pytest.raises(EntityNotFoundError) as exc_info:
        seeded_service.get_all_transport_tickets(PHILIPP, 5)

    assert exc_info.value.message == "No transport with this ID exists!"


def test_get_all_transport_tickets_requires_administrator(seeded_service):
    """Test customers cannot audit transports"""
    with pytest.raises(NotAuthorizedError):
        seeded_service.get_all_transport_tickets(DANIEL, BUS_SOLD_OUT)
