from pydantic import BaseModel, Field
from typing import Annotated, Literal, Optional, Union

from transit_booking.transports.schemas import BUS_KIND, TRAIN_KIND, TicketClass

SEPARATOR = "+" * 41

class TicketBase(BaseModel):
    id: int = Field(..., ge=0)
    customer_email: str
    transport_id: int
    # Price paid at purchase time
    price: int = Field(..., ge=0)
    seat: int = Field(..., gt=0)

    @property
    def key(self) -> int:
        return self.id

    @property
    def class_label(self) -> str:
        return ""

    def render(self, transport_text: str) -> str:
        """Full view including the transport details"""
        return (
            f"{SEPARATOR}\n TicketNr: {self.id}\n Price: {self.price}\n Seat: {self.seat}{self.class_label}"
            f"\n{SEPARATOR}\n{transport_text}\n{SEPARATOR}\n"
        )

    def render_reduced(self, customer_username: str) -> str:
        """Administrator view: hides the transport, shows the owning customer"""
        return (
            f"{SEPARATOR}\n TicketNr: {self.id}\n Price: {self.price}\n Seat: {self.seat}{self.class_label}"
            f"\n Name: {customer_username}\n{SEPARATOR}\n"
        )

class BusTicket(TicketBase):
    kind: Literal["bus"] = BUS_KIND

    @property
    def travel_class(self) -> Optional[int]:
        return None

class TrainTicket(TicketBase):
    kind: Literal["train"] = TRAIN_KIND
    ticket_class: TicketClass

    @property
    def travel_class(self) -> Optional[int]:
        return self.ticket_class

    @property
    def class_label(self) -> str:
        return f"\n Class: {int(self.ticket_class)}"

# Tagged union stored in the tickets collection
Ticket = Annotated[Union[BusTicket, TrainTicket], Field(discriminator="kind")]

class TicketAuditView(BaseModel):
    """Reduced ticket representation for administrator audits"""
    ticket_id: int
    transport_id: int
    seat: int
    price: int
    ticket_class: Optional[TicketClass] = None
    customer_email: str
    customer_username: str
    rendered: str

    @classmethod
    def from_ticket(cls, ticket: Union[BusTicket, TrainTicket], customer_username: str) -> "TicketAuditView":
        return cls(
            ticket_id=ticket.id,
            transport_id=ticket.transport_id,
            seat=ticket.seat,
            price=ticket.price,
            ticket_class=ticket.travel_class,
            customer_email=ticket.customer_email,
            customer_username=customer_username,
            rendered=ticket.render_reduced(customer_username),
        )
