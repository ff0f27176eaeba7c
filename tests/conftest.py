import pytest
from sqlalchemy.pool import StaticPool

from seed_data import create_seed_data
from transit_booking.bookings.booking_service import BookingService
from transit_booking.bookings.fare_service import PriceTable
from transit_booking.database import build_engine, build_session_factory, init_db
from transit_booking.locking import KeyedLock
from transit_booking.storage.memory import InMemoryRepository

# Seeded ids (see seed_data.py)
PHILIPP = "philipp@test.de"
MIHAEL = "mihael@test.de"
DANIEL = "daniel@test.de"
MOS = "mos@craicun.ro"
BUS_OPEN = 0
BUS_SOLD_OUT = 1
TRAIN = 2


def make_service(prices=None, **repositories):
    """Booking service on fresh in-memory repositories unless some are given"""
    for name in ("persons", "transports", "tickets", "locations", "sequences"):
        if repositories.get(name) is None:
            repositories[name] = InMemoryRepository()
    return BookingService(
        repositories["persons"],
        repositories["transports"],
        repositories["tickets"],
        repositories["locations"],
        sequences=repositories["sequences"],
        prices=prices,
        locks=KeyedLock(timeout=5),
    )


@pytest.fixture
def service():
    """Empty booking service on in-memory repositories"""
    return make_service()


@pytest.fixture
def seeded_service(service):
    """Two administrators, two customers, three locations, two buses and a train.

    Daniel holds both seats of bus 1 (balance 40); Mos holds a second class
    seat on train 2 (balance 20).
    """
    return create_seed_data(service)


@pytest.fixture
def scenario_prices():
    """Fares used by the bus and train purchase scenarios"""
    return PriceTable(bus=120, first_class=180, second_class=80, service_fee_percentage=10)


@pytest.fixture
def session_factory():
    """SQLite in-memory database shared by every session"""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()
