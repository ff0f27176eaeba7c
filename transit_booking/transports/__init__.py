"""
Transports Module

Scheduled bus and train trips owned by the administrator who created them.

Key Components:
- schemas.py: Bus and Train models (tagged by ``kind``) with seat bookkeeping
- sorting.py: Sorting and filtering helpers for transport listings
- service.py: Transport creation and listing
"""

from .schemas import BUS_KIND, TRAIN_KIND, Bus, TicketClass, Train, Transport
from .sorting import filter_by_location, filter_by_max_price, sort_by_date, sort_by_duration
from .service import TransportService

__all__ = [
    "BUS_KIND",
    "TRAIN_KIND",
    "Bus",
    "Train",
    "Transport",
    "TicketClass",
    "TransportService",
    "filter_by_location",
    "filter_by_max_price",
    "sort_by_date",
    "sort_by_duration",
]
