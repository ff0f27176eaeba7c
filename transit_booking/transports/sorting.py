"""
Sorting and filtering helpers for transport listings

All helpers return new lists and never mutate the transports they are given.
"""
from typing import List, Sequence, Union

from transit_booking.bookings.fare_service import PriceTable
from transit_booking.transports.schemas import Bus, Train

TransportItem = Union[Bus, Train]

ANY_LOCATION = -1

def sort_by_date(transports: Sequence[TransportItem]) -> List[TransportItem]:
    """Earliest departure first; stable for equal departures"""
    return sorted(transports, key=lambda transport: (transport.date, transport.departure_time))

def sort_by_duration(transports: Sequence[TransportItem], descending: bool = True) -> List[TransportItem]:
    """Longest trip first unless descending is False; stable for equal durations"""
    return sorted(transports, key=lambda transport: transport.duration, reverse=descending)

def filter_by_location(
    transports: Sequence[TransportItem],
    origin_id: int = ANY_LOCATION,
    destination_id: int = ANY_LOCATION,
    available_only: bool = True,
) -> List[TransportItem]:
    """Transports on the route; -1 matches any location, sold out ones are skipped"""
    return [
        transport for transport in transports
        if transport.serves(origin_id, destination_id)
        and not (available_only and transport.is_sold_out)
    ]

def filter_by_max_price(transports: Sequence[TransportItem], max_price: int, prices: PriceTable) -> List[TransportItem]:
    """Transports with a class that still has seats at or below max_price"""
    matching = []
    for transport in transports:
        cheapest = prices.cheapest_available_price(transport)
        if cheapest is not None and cheapest <= max_price:
            matching.append(transport)
    return matching
