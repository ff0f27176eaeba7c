"""
Locations Module

Stops that transports start from and travel to. A (street, city) pair is unique.
"""

from .schemas import Location, LocationTicketCount
from .service import LocationService

__all__ = [
    "Location",
    "LocationTicketCount",
    "LocationService",
]
