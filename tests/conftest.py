import os
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from salon.database import Base  # noqa: E402
from salon.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from salon.models.category import Category  # noqa: E402
from salon.models.service import Service  # noqa: E402
from salon.models.user import User, UserRole  # noqa: E402
from salon.record_store import RecordStore  # noqa: E402

BOOKING_DATE = date(2024, 6, 1)


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db_session):
    return RecordStore(db_session)


def _user(db, email, role, name=None, specialty=None, is_active=True):
    user = User(
        email=email,
        name=name or email.split('@')[0].title(),
        role=role.value,
        is_active=is_active,
        specialty_category=specialty,
        hashed_password='',
    )
    db.add(user)
    return user


@pytest.fixture
def salon(db_session):
    """Two categories, two customers, an admin, three staff and three services."""
    db = db_session
    db.add_all([Category(name='Manicure'), Category(name='Pedicure')])
    db.flush()

    data = SimpleNamespace(
        alice=_user(db, 'alice@example.com', UserRole.CUSTOMER),
        bob=_user(db, 'bob@example.com', UserRole.CUSTOMER),
        admin=_user(db, 'admin@nailsalon.com', UserRole.ADMIN),
        mia=_user(db, 'mia@nailsalon.com', UserRole.STAFF, specialty='Manicure'),
        noah=_user(db, 'noah@nailsalon.com', UserRole.STAFF, specialty='Manicure'),
        pia=_user(db, 'pia@nailsalon.com', UserRole.STAFF, specialty='Pedicure'),
        retired=_user(db, 'retired@nailsalon.com', UserRole.STAFF, specialty='Manicure', is_active=False),
        manicure=Service(name='Classic Manicure', duration=30, price=Decimal('25'), category='Manicure'),
        gel=Service(name='Gel Manicure', duration=45, price=Decimal('40'), category='Manicure'),
        pedicure=Service(name='Spa Pedicure', duration=60, price=Decimal('50'), category='Pedicure'),
        retired_service=Service(
            name='Paraffin Dip', duration=20, price=Decimal('15'), category='Manicure', is_active=False
        ),
    )
    db.add_all([data.manicure, data.gel, data.pedicure, data.retired_service])
    db.commit()
    return data


@pytest.fixture
def add_appointment(db_session):
    def _add(customer, service, start_time, end_time, staff=None, status=AppointmentStatus.PENDING,
             on_date=BOOKING_DATE):
        appointment = Appointment(
            user_id=customer.id,
            staff_id=staff.id if staff is not None else None,
            service_id=service.id,
            date=on_date,
            start_time=start_time,
            end_time=end_time,
            status=status.value,
        )
        db_session.add(appointment)
        db_session.commit()
        db_session.refresh(appointment)
        return appointment

    return _add
