# backend/tests/conftest.py
"""
Pytest configuration for the reservation engine.

Every test runs against a fresh in-memory SQLite store. Services get a
fixed "today" (a Monday) and an in-memory payment provider so no test
ever reaches Stripe or depends on the wall clock.
"""

import os

# Set testing mode BEFORE any chefhome imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["ENVIRONMENT"] = "test"

from datetime import date, time, timedelta
from typing import Callable, Dict, Iterator

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chefhome import models  # noqa: F401  registers every table
from chefhome.api.dependencies.database import get_db
from chefhome.api.dependencies.services import get_payment_provider
from chefhome.auth import create_access_token
from chefhome.core.enums import RoleName
from chefhome.database import Base
from chefhome.main import app
from chefhome.models.chef import Chef
from chefhome.models.user import User
from chefhome.principal import Actor
from chefhome.services.booking_service import BookingService
from chefhome.services.chef_home_service import ChefHomeService
from chefhome.services.dispute_service import DisputeService
from chefhome.services.notification_service import NotificationService
from chefhome.services.payment_service import PaymentService
from chefhome.services.reservation_service import ReservationService
from tests.factories.builders import actor_for, create_chef, create_user
from tests.factories.payments import FakePaymentProvider

# Monday
TODAY = date(2030, 1, 7)


def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def today_provider() -> Callable[[], date]:
    return lambda: TODAY


# Users and actors


@pytest.fixture
def client_user(db: Session) -> User:
    return create_user(db, RoleName.CLIENT, name="Camille Client")


@pytest.fixture
def other_client_user(db: Session) -> User:
    return create_user(db, RoleName.CLIENT, name="Olivier Other")


@pytest.fixture
def admin_user(db: Session) -> User:
    return create_user(db, RoleName.ADMIN, name="Alex Admin")


@pytest.fixture
def chef(db: Session) -> Chef:
    return create_chef(db, lead_time_days=1, advance_booking_limit_days=180)


@pytest.fixture
def chef_user(db: Session, chef: Chef) -> User:
    return db.get(User, chef.user_id)


@pytest.fixture
def client_actor(client_user: User) -> Actor:
    return actor_for(client_user)


@pytest.fixture
def chef_actor(chef_user: User) -> Actor:
    return actor_for(chef_user)


@pytest.fixture
def admin_actor(admin_user: User) -> Actor:
    return actor_for(admin_user)


# Services


@pytest.fixture
def payment_provider() -> FakePaymentProvider:
    return FakePaymentProvider()


@pytest.fixture
def notification_service(db: Session) -> NotificationService:
    return NotificationService(db)


@pytest.fixture
def payment_service(db: Session, payment_provider: FakePaymentProvider) -> PaymentService:
    return PaymentService(db, payment_provider, sleep=no_sleep)


@pytest.fixture
def reservation_service(db: Session, today_provider, notification_service) -> ReservationService:
    return ReservationService(
        db,
        today_provider=today_provider,
        notification_service=notification_service,
        sleep=no_sleep,
    )


@pytest.fixture
def booking_service(
    db: Session, payment_service, notification_service, today_provider
) -> BookingService:
    return BookingService(
        db,
        payment_service=payment_service,
        notification_service=notification_service,
        today_provider=today_provider,
    )


@pytest.fixture
def dispute_service(db: Session, payment_service, notification_service) -> DisputeService:
    return DisputeService(db, payment_service, notification_service)


@pytest.fixture
def chef_home_service(db: Session, notification_service) -> ChefHomeService:
    return ChefHomeService(db, notification_service)


# HTTP


@pytest.fixture
def client(db: Session, payment_provider: FakePaymentProvider) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_provider] = lambda: payment_provider
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers_for(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def auth_headers_client(client_user: User) -> Dict[str, str]:
    return auth_headers_for(client_user)


@pytest.fixture
def auth_headers_chef(chef_user: User) -> Dict[str, str]:
    return auth_headers_for(chef_user)


@pytest.fixture
def auth_headers_admin(admin_user: User) -> Dict[str, str]:
    return auth_headers_for(admin_user)


def days_from(base: date, days: int) -> date:
    return base + timedelta(days=days)


EVENING = (time(19, 0), time(22, 0))
