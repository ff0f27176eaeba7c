#!/usr/bin/env python3

from datetime import date, time

from transit_booking.bookings.booking_service import BookingService
from transit_booking.config import settings
from transit_booking.exceptions import DomainError
from transit_booking.logging_config import setup_logging
from transit_booking.storage.factory import build_repositories

def create_seed_data(service: BookingService = None) -> BookingService:
    """Populate the configured storage with demo accounts, locations and transports"""
    if service is None:
        service = BookingService.from_repositories(build_repositories(settings))

    try:
        print(f"🚀 Creating seed data for {settings.PROJECT_NAME} ({settings.STORAGE_BACKEND} storage)...")

        # 1. Accounts
        print("Creating accounts...")
        admins = [
            service.register_user("Philipp", "philipp@test.de", "test", True),
            service.register_user("Mihael", "mihael@test.de", "test", True),
        ]
        customers = [
            service.register_user("Daniel", "daniel@test.de", "test", False),
            service.register_user("Mos Craicun", "mos@craicun.ro", "hoho", False),
        ]
        service.add_balance(customers[0], 80)
        service.add_balance(customers[1], 35)

        # 2. Locations
        print("Creating locations...")
        locations = [
            service.create_location(admins[0], "Strada Mihail Kogălniceanu", "Cluj-Napoca"),
            service.create_location(admins[0], "Strada Mihail Kogălniceanu", "Brasov"),
            service.create_location(admins[0], "Calea Clujului", "Oradea"),
        ]

        # 3. Transports
        print("Creating transports...")
        transports = [
            service.create_bus_transport(
                admins[0], locations[0].id, locations[1].id,
                date(2024, 12, 12), time(12, 0), time(14, 0), 2,
            ),
            service.create_bus_transport(
                admins[0], locations[0].id, locations[2].id,
                date(2024, 12, 25), time(13, 0), time(16, 45), 2,
            ),
            service.create_train_transport(
                admins[1], locations[0].id, locations[2].id,
                date(2025, 1, 1), time(13, 0), time(16, 45), 1, 10,
            ),
        ]

        # 4. Tickets
        print("Creating tickets...")
        tickets = [
            service.create_ticket(customers[0], transports[1].id),
            service.create_ticket(customers[0], transports[1].id),
            service.create_ticket(customers[1], transports[2].id, 2),
        ]

        print("✅ Successfully created seed data!")
        print(f"Created:")
        print(f"  - {len(admins)} administrators")
        print(f"  - {len(customers)} customers")
        print(f"  - {len(locations)} locations")
        print(f"  - {len(transports)} transports")
        print(f"  - {len(tickets)} tickets")
        return service

    except DomainError as e:
        print(f"❌ Error creating seed data: {e} ({e.code.value})")
        raise

if __name__ == "__main__":
    setup_logging()
    create_seed_data()
