from pydantic import BaseModel, Field, model_validator
from typing import Annotated, Dict, Literal, Optional, Union
from datetime import date, datetime, time, timedelta
from enum import IntEnum

from transit_booking.locations.schemas import Location

BUS_KIND = "bus"
TRAIN_KIND = "train"

class TicketClass(IntEnum):
    """Train travel classes"""
    FIRST = 1
    SECOND = 2

    @property
    def other(self) -> "TicketClass":
        return TicketClass.SECOND if self == TicketClass.FIRST else TicketClass.FIRST

    @property
    def label(self) -> str:
        return "first class" if self == TicketClass.FIRST else "second class"

class TransportBase(BaseModel):
    id: int = Field(..., ge=0)
    origin_location_id: int
    destination_location_id: int
    date: date
    departure_time: time
    arrival_time: time
    owner_email: str
    # Seat number -> issued ticket id
    booked_seats: Dict[int, int] = {}

    @model_validator(mode="after")
    def check_route(self):
        if self.origin_location_id == self.destination_location_id:
            raise ValueError("Origin and destination cannot be the same location!")
        return self

    @property
    def key(self) -> int:
        return self.id

    @property
    def departure(self) -> datetime:
        return datetime.combine(self.date, self.departure_time)

    @property
    def duration(self) -> timedelta:
        """Travel time; an arrival earlier than the departure lands on the next day"""
        arrival = datetime.combine(self.date, self.arrival_time)
        if arrival < self.departure:
            arrival += timedelta(days=1)
        return arrival - self.departure

    @property
    def is_sold_out(self) -> bool:
        return self.remaining_seats == 0

    def serves(self, origin_id: int, destination_id: int) -> bool:
        """Match a route; -1 on either side matches any location"""
        return (origin_id == -1 or self.origin_location_id == origin_id) and \
            (destination_id == -1 or self.destination_location_id == destination_id)

    def next_free_seat(self, ticket_class: Optional[int] = None) -> Optional[int]:
        """Lowest seat number in the class that has no ticket on it"""
        for seat in self.seat_range(ticket_class):
            if seat not in self.booked_seats:
                return seat
        return None

    def render(self, origin: Location, destination: Location) -> str:
        return (
            f"{self.kind.title()} {{\n id = {self.id}"
            f"\n From {origin.street}, {origin.city} --> To {destination.street}, {destination.city}"
            f"\n Date: {self.date.isoformat()}"
            f"\n Departure: {self.departure_time.strftime('%H:%M')}, "
            f"Arrival: {self.arrival_time.strftime('%H:%M')}"
            f"\n {self.describe_capacity()}}}"
        )

class Bus(TransportBase):
    kind: Literal["bus"] = BUS_KIND
    total_capacity: int = Field(..., gt=0)
    remaining_capacity: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_capacity(self):
        if self.remaining_capacity > self.total_capacity:
            raise ValueError("Remaining capacity cannot exceed the total capacity")
        return self

    @property
    def remaining_seats(self) -> int:
        return self.remaining_capacity

    def remaining_for(self, ticket_class: Optional[int] = None) -> int:
        return self.remaining_capacity

    def seat_range(self, ticket_class: Optional[int] = None) -> range:
        return range(1, self.total_capacity + 1)

    def book_seat(self, ticket_id: int, ticket_class: Optional[int] = None) -> int:
        seat = self.next_free_seat()
        if seat is None or self.remaining_capacity == 0:
            raise ValueError("No seat left on this bus")
        self.remaining_capacity -= 1
        self.booked_seats[seat] = ticket_id
        return seat

    def release_seat(self, seat: int, ticket_class: Optional[int] = None) -> None:
        if self.booked_seats.pop(seat, None) is not None:
            self.remaining_capacity += 1

    def describe_capacity(self) -> str:
        return f"Free seats: {self.remaining_capacity}/{self.total_capacity}"

class Train(TransportBase):
    kind: Literal["train"] = TRAIN_KIND
    first_class_capacity: int = Field(..., ge=0)
    second_class_capacity: int = Field(..., ge=0)
    remaining_first_class_capacity: int = Field(..., ge=0)
    remaining_second_class_capacity: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_capacity(self):
        if self.first_class_capacity + self.second_class_capacity == 0:
            raise ValueError("A train needs at least one seat")
        if self.remaining_first_class_capacity > self.first_class_capacity or \
                self.remaining_second_class_capacity > self.second_class_capacity:
            raise ValueError("Remaining capacity cannot exceed the total capacity")
        return self

    @property
    def remaining_seats(self) -> int:
        return self.remaining_first_class_capacity + self.remaining_second_class_capacity

    def remaining_for(self, ticket_class: Optional[int] = None) -> int:
        if ticket_class == TicketClass.FIRST:
            return self.remaining_first_class_capacity
        if ticket_class == TicketClass.SECOND:
            return self.remaining_second_class_capacity
        raise ValueError(f"Unknown ticket class: {ticket_class}")

    def seat_range(self, ticket_class: Optional[int] = None) -> range:
        # First class seats come first, second class numbering continues after them
        if ticket_class == TicketClass.FIRST:
            return range(1, self.first_class_capacity + 1)
        if ticket_class == TicketClass.SECOND:
            start = self.first_class_capacity + 1
            return range(start, start + self.second_class_capacity)
        raise ValueError(f"Unknown ticket class: {ticket_class}")

    def book_seat(self, ticket_id: int, ticket_class: Optional[int] = None) -> int:
        seat = self.next_free_seat(ticket_class)
        if seat is None or self.remaining_for(ticket_class) == 0:
            raise ValueError(f"No seat left in class {ticket_class}")
        self._adjust(ticket_class, -1)
        self.booked_seats[seat] = ticket_id
        return seat

    def release_seat(self, seat: int, ticket_class: Optional[int] = None) -> None:
        if self.booked_seats.pop(seat, None) is not None:
            self._adjust(ticket_class, 1)

    def _adjust(self, ticket_class: Optional[int], delta: int) -> None:
        if ticket_class == TicketClass.FIRST:
            self.remaining_first_class_capacity += delta
        elif ticket_class == TicketClass.SECOND:
            self.remaining_second_class_capacity += delta
        else:
            raise ValueError(f"Unknown ticket class: {ticket_class}")

    def describe_capacity(self) -> str:
        return (
            f"Free seats: 1st class {self.remaining_first_class_capacity}/{self.first_class_capacity}, "
            f"2nd class {self.remaining_second_class_capacity}/{self.second_class_capacity}"
        )

# Tagged union stored in the transports collection
Transport = Annotated[Union[Bus, Train], Field(discriminator="kind")]

