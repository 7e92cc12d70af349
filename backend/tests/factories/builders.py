"""Builders for persisted test data."""

from datetime import date, time
from decimal import Decimal
from typing import Any, Optional

import ulid
from sqlalchemy.orm import Session

from chefhome.core.enums import RoleName
from chefhome.models.booking import Booking, BookingStatus, PaymentStatus
from chefhome.models.chef import Chef, ChefAvailabilityWindow, Menu, MenuType, ServiceType
from chefhome.models.chef_home import ChefHomeLocation
from chefhome.models.user import User
from chefhome.principal import Actor


def actor_for(user: User) -> Actor:
    return Actor(user_id=user.id, role=RoleName(user.role))


def create_user(db: Session, role: RoleName = RoleName.CLIENT, name: str = "Test User") -> User:
    user = User(
        id=str(ulid.ULID()),
        email=f"{role.value}-{ulid.ULID()}@example.com".lower(),
        name=name,
        role=role.value,
    )
    db.add(user)
    db.commit()
    return user


def create_chef(db: Session, user: Optional[User] = None, **overrides: Any) -> Chef:
    user = user or create_user(db, RoleName.CHEF, name="Chef Test")
    values = {
        "user_id": user.id,
        "display_name": "Chef Test",
        "specialty": "Bistronomie",
        "hourly_rate": Decimal("50.00"),
        "service_types": [s.value for s in ServiceType],
        "cuisine_types": ["french"],
        "max_guests": 12,
    }
    values.update(overrides)
    chef = Chef(**values)
    db.add(chef)
    db.commit()
    return chef


def add_weekly_window(db: Session, chef: Chef, day_of_week: int, start: time, end: time) -> None:
    db.add(ChefAvailabilityWindow(chef_id=chef.id, day_of_week=day_of_week, start_time=start, end_time=end))
    db.commit()
    db.refresh(chef)


def create_menu(db: Session, chef: Chef, **overrides: Any) -> Menu:
    values = {
        "chef_id": chef.id,
        "name": "Menu dégustation",
        "type": MenuType.FORFAIT.value,
        "price": Decimal("400.00"),
        "min_guests": 2,
        "max_guests": 8,
        "courses": ["entrée", "plat", "dessert"],
    }
    values.update(overrides)
    menu = Menu(**values)
    db.add(menu)
    db.commit()
    return menu


def create_location(db: Session, chef: Chef, **overrides: Any) -> ChefHomeLocation:
    values = {
        "chef_id": chef.id,
        "title": "Table du chef",
        "description": "Dîner dans la cuisine du chef",
        "street": "1 rue de la Paix",
        "city": "Paris",
        "zip_code": "75002",
        "min_guests": 2,
        "max_guests": 6,
        "base_price": Decimal("80.00"),
        "price_per_guest": Decimal("25.00"),
        "days_of_week": ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"],
        "time_slots": [{"start": "10:00", "end": "14:00"}, {"start": "18:00", "end": "23:00"}],
        "lead_time_days": 3,
        "advance_booking_limit_days": 90,
        "blackout_dates": [],
    }
    values.update(overrides)
    location = ChefHomeLocation(**values)
    db.add(location)
    db.commit()
    return location


def create_booking(
    db: Session,
    *,
    client: User,
    chef: Chef,
    event_date: date,
    start: time = time(19, 0),
    end: time = time(22, 0),
    status: BookingStatus = BookingStatus.PENDING,
    captured: Decimal = Decimal("0.00"),
    total: Decimal = Decimal("165.00"),
) -> Booking:
    booking = Booking(
        client_id=client.id,
        chef_id=chef.id,
        service_type=ServiceType.HOME_DINING.value,
        event_date=event_date,
        start_time=start,
        end_time=end,
        duration_hours=max(1, end.hour - start.hour),
        guests=4,
        address="10 avenue Victor Hugo",
        city="Lyon",
        zip_code="69002",
        base_price=Decimal("150.00"),
        service_fee=Decimal("15.00"),
        total_amount=total,
        deposit_amount=Decimal("33.00"),
        captured_amount=captured,
        refunded_amount=Decimal("0.00"),
        payment_status=(PaymentStatus.DEPOSIT_PAID.value if captured > 0 else PaymentStatus.PENDING.value),
        status=status.value,
    )
    db.add(booking)
    db.commit()
    return booking
