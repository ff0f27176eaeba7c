"""
Transit Booking System

Reservation core for scheduled bus and train transports: accounts, locations,
transport scheduling, ticket purchase and cancellation.

Start from ``transit_booking.bookings.booking_service.BookingService`` and a
repository set from ``transit_booking.storage.factory.build_repositories``.
"""

__version__ = "1.0.0"
