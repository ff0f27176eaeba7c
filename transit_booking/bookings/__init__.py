"""
Booking & Ticketing Module

Ticket purchase and cancellation against transport capacity and customer balance.

Key Components:
- schemas.py: BusTicket and TrainTicket models plus the administrator audit view
- fare_service.py: Fixed fares and the cancellation service fee
- booking_service.py: BookingService, the entry point for every operation

BookingService is not re-exported here since it depends on the transports
package, which itself needs the fares defined in this package.
"""

from .schemas import BusTicket, Ticket, TicketAuditView, TrainTicket
from .fare_service import PriceTable

__all__ = [
    "BusTicket",
    "TrainTicket",
    "Ticket",
    "TicketAuditView",
    "PriceTable",
]
