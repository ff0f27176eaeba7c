from pydantic import BaseModel, Field
from typing import Optional, Union

from transit_booking.config import settings
from transit_booking.transports.schemas import BUS_KIND, TRAIN_KIND, Bus, TicketClass, Train

class PriceTable(BaseModel):
    """Fixed fares per transport kind and class, plus the cancellation fee"""
    bus: int = Field(..., ge=0)
    first_class: int = Field(..., ge=0)
    second_class: int = Field(..., ge=0)
    service_fee_percentage: int = Field(10, ge=0, le=100)

    @classmethod
    def from_settings(cls) -> "PriceTable":
        return cls(
            bus=settings.PRICE_BUS,
            first_class=settings.PRICE_FIRST_CLASS,
            second_class=settings.PRICE_SECOND_CLASS,
            service_fee_percentage=settings.SERVICE_FEE_PERCENTAGE,
        )

    def price_for(self, transport: Union[Bus, Train], ticket_class: Optional[int] = None) -> int:
        """Fare for one seat; buses have a single class"""
        if transport.kind == BUS_KIND:
            return self.bus
        if transport.kind == TRAIN_KIND:
            if ticket_class == TicketClass.FIRST:
                return self.first_class
            if ticket_class == TicketClass.SECOND:
                return self.second_class
            raise ValueError(f"Unknown ticket class: {ticket_class}")
        raise ValueError(f"Unknown transport kind: {transport.kind}")

    def cheapest_available_price(self, transport: Union[Bus, Train]) -> Optional[int]:
        """Lowest fare among classes that still have seats, None when sold out"""
        if transport.kind == BUS_KIND:
            return self.bus if transport.remaining_capacity > 0 else None
        if transport.kind == TRAIN_KIND:
            prices = []
            if transport.remaining_first_class_capacity > 0:
                prices.append(self.first_class)
            if transport.remaining_second_class_capacity > 0:
                prices.append(self.second_class)
            return min(prices) if prices else None
        raise ValueError(f"Unknown transport kind: {transport.kind}")

    def refund_for(self, price: int) -> int:
        """Amount credited back on cancellation, the service fee is kept"""
        # Integer arithmetic truncates exactly like floor(price * 0.9)
        return price * (100 - self.service_fee_percentage) // 100
