from datetime import date, time, timedelta

import pytest
from pydantic import TypeAdapter, ValidationError

from transit_booking.auth.schemas import Administrator, Customer, Person
from transit_booking.auth.utils import get_password_hash, verify_password
from transit_booking.bookings.fare_service import PriceTable
from transit_booking.bookings.schemas import BusTicket, Ticket, TicketAuditView, TrainTicket
from transit_booking.locations.schemas import Location
from transit_booking.transports.schemas import Bus, TicketClass, Train, Transport


def make_bus(**overrides):
    data = dict(
        id=0, origin_location_id=0, destination_location_id=1, date=date(2024, 12, 12),
        departure_time=time(12, 0), arrival_time=time(14, 0), owner_email="philipp@test.de",
        total_capacity=2, remaining_capacity=2,
    )
    data.update(overrides)
    return Bus(**data)


def make_train(**overrides):
    data = dict(
        id=2, origin_location_id=0, destination_location_id=2, date=date(2025, 1, 1),
        departure_time=time(13, 0), arrival_time=time(16, 45), owner_email="mihael@test.de",
        first_class_capacity=1, second_class_capacity=10,
        remaining_first_class_capacity=1, remaining_second_class_capacity=10,
    )
    data.update(overrides)
    return Train(**data)


def test_password_is_stored_hashed():
    """Test credentials are hashed and verified against the hash"""
    hashed = get_password_hash("geheim")

    assert hashed != "geheim"
    assert verify_password("geheim", hashed)
    assert not verify_password("falsch", hashed)
    assert not verify_password("geheim", "not-a-hash")


def test_person_is_authentic():
    """Test a person checks a candidate password"""
    customer = Customer(username="Daniel", email="daniel@test.de", password_hash=get_password_hash("test"))

    assert customer.is_authentic("test")
    assert not customer.is_authentic("tes")
    assert customer.key == "daniel@test.de"
    assert not customer.is_admin


def test_person_union_uses_role_tag():
    """Test stored persons are restored as the right variant"""
    adapter = TypeAdapter(Person)

    admin = adapter.validate_python({"username": "A", "email": "a@test.de", "password_hash": "x", "role": "admin"})
    customer = adapter.validate_python({"username": "C", "email": "c@test.de", "password_hash": "x", "role": "customer"})

    assert isinstance(admin, Administrator) and admin.is_admin
    assert isinstance(customer, Customer) and customer.balance == 0
    with pytest.raises(ValidationError):
        adapter.validate_python({"username": "X", "email": "x@test.de", "password_hash": "x", "role": "guest"})


def test_customer_balance_cannot_go_negative():
    """Test the non-negative balance invariant on assignment"""
    customer = Customer(username="Daniel", email="daniel@test.de", password_hash="x", balance=10)

    with pytest.raises(ValidationError):
        customer.balance = -1
    assert customer.balance == 10


def test_transport_needs_distinct_locations():
    """Test origin and destination must differ"""
    with pytest.raises(ValidationError):
        make_bus(destination_location_id=0)


def test_duration_handles_overnight_arrival():
    """Test an arrival before the departure lands on the next day"""
    assert make_bus().duration == timedelta(hours=2)
    assert make_bus(departure_time=time(23, 30), arrival_time=time(1, 0)).duration == timedelta(hours=1, minutes=30)


def test_bus_seats_are_booked_lowest_first():
    """Test bus seat allocation and release"""
    bus = make_bus()

    assert bus.book_seat(10) == 1
    assert bus.book_seat(11) == 2
    assert bus.is_sold_out
    with pytest.raises(ValueError):
        bus.book_seat(12)

    bus.release_seat(1)
    assert bus.remaining_capacity == 1
    assert bus.book_seat(13) == 1
    assert bus.booked_seats == {1: 13, 2: 11}


def test_train_classes_have_separate_seat_ranges():
    """Test first class seats come before second class seats"""
    train = make_train()

    assert train.book_seat(0, TicketClass.FIRST) == 1
    assert train.book_seat(1, TicketClass.SECOND) == 2
    assert train.book_seat(2, TicketClass.SECOND) == 3
    assert train.remaining_first_class_capacity == 0
    assert train.remaining_second_class_capacity == 8
    assert train.remaining_seats == 8

    train.release_seat(1, TicketClass.FIRST)
    assert train.remaining_for(TicketClass.FIRST) == 1
    assert 1 not in train.booked_seats


def test_train_rejects_remaining_above_total():
    """Test remaining seats can never exceed the total"""
    with pytest.raises(ValidationError):
        make_train(remaining_first_class_capacity=2)


def test_transport_union_uses_kind_tag():
    """Test stored transports are restored as the right variant"""
    adapter = TypeAdapter(Transport)

    restored = adapter.validate_json(make_train().model_dump_json())

    assert isinstance(restored, Train)
    assert restored == make_train()


def test_rendering():
    """Test the full and reduced text views"""
    origin = Location(id=0, street="Calea Clujului", city="Oradea")
    destination = Location(id=1, street="Piata 1 Mai", city="Cluj-Napoca")
    bus = make_bus()
    ticket = TrainTicket(id=7, customer_email="mos@craicun.ro", transport_id=2, price=15, seat=2,
                         ticket_class=TicketClass.SECOND)

    assert origin.render() == "0 : Calea Clujului, Oradea"
    transport_text = bus.render(origin, destination)
    assert "From Calea Clujului, Oradea --> To Piata 1 Mai, Cluj-Napoca" in transport_text
    assert "Free seats: 2/2" in transport_text

    full = ticket.render(transport_text)
    assert "TicketNr: 7" in full and "Class: 2" in full and "Piata 1 Mai" in full

    reduced = ticket.render_reduced("Mos Craicun")
    assert "Name: Mos Craicun" in reduced
    assert "Piata 1 Mai" not in reduced


def test_audit_view_from_ticket():
    """Test the administrator audit view carries the customer name"""
    ticket = BusTicket(id=3, customer_email="daniel@test.de", transport_id=1, price=20, seat=2)

    view = TicketAuditView.from_ticket(ticket, "Daniel")

    assert view.ticket_id == 3
    assert view.ticket_class is None
    assert view.customer_username == "Daniel"
    assert "Name: Daniel" in view.rendered


def test_ticket_union_uses_kind_tag():
    """Test stored tickets are restored as the right variant"""
    adapter = TypeAdapter(Ticket)

    restored = adapter.validate_python({
        "kind": "train", "id": 1, "customer_email": "a@test.de", "transport_id": 2,
        "price": 50, "seat": 1, "ticket_class": 1,
    })

    assert isinstance(restored, TrainTicket)
    assert restored.travel_class == TicketClass.FIRST


def test_price_table():
    """Test fares, cheapest available class and refunds"""
    prices = PriceTable(bus=20, first_class=50, second_class=15)
    train = make_train()

    assert prices.price_for(make_bus()) == 20
    assert prices.price_for(train, TicketClass.FIRST) == 50
    assert prices.price_for(train, 2) == 15
    assert prices.cheapest_available_price(train) == 15
    assert prices.cheapest_available_price(make_train(remaining_second_class_capacity=0)) == 50
    assert prices.cheapest_available_price(make_bus(remaining_capacity=0)) is None
    assert prices.refund_for(20) == 18
    assert prices.refund_for(15) == 13
    assert prices.refund_for(0) == 0
