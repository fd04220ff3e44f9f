"""Populate an empty database with the salon's categories, services and demo users.

Run with ``python -m salon.seed``. Existing rows (matched by email or name) are
left untouched, so the script can be re-run safely.
"""

import logging
from decimal import Decimal

from salon.auth.passwords import hash_password
from salon.database import Base, SessionLocal, engine
from salon.models import appointment  # noqa: F401
from salon.models.category import Category
from salon.models.service import Service
from salon.models.user import User, UserRole

logger = logging.getLogger(__name__)

CATEGORIES = ['Manicure', 'Pedicure', 'Artificial Nails', 'Nail Art', 'Repair']

SERVICES = [
    ('Classic Manicure', 'Traditional nail care with polish', 30, '25', 'Manicure'),
    ('Gel Manicure', 'Long-lasting gel polish application', 45, '40', 'Manicure'),
    ('French Manicure', 'Classic French tips', 40, '35', 'Manicure'),
    ('Classic Pedicure', 'Foot care with polish', 45, '35', 'Pedicure'),
    ('Spa Pedicure', 'Luxurious pedicure with massage', 60, '50', 'Pedicure'),
    ('Gel Pedicure', 'Long-lasting gel polish for toes', 50, '45', 'Pedicure'),
    ('Acrylic Full Set', 'Complete acrylic nail application', 90, '65', 'Artificial Nails'),
    ('Acrylic Fill', 'Maintenance for acrylic nails', 60, '45', 'Artificial Nails'),
    ('Dip Powder', 'Durable powder manicure', 60, '50', 'Artificial Nails'),
    ('Nail Art Design', 'Custom nail art per nail', 15, '5', 'Nail Art'),
    ('Nail Art Full Set', 'Detailed designs on all nails', 30, '20', 'Nail Art'),
    ('Nail Repair', 'Fix broken or damaged nails', 15, '10', 'Repair'),
]

USERS = [
    ('admin@nailsalon.com', 'admin123', 'Admin User', UserRole.ADMIN, None),
    ('customer@example.com', 'customer123', 'Jane Doe', UserRole.CUSTOMER, None),
]


def _staff_users() -> list[tuple]:
    return [
        (
            f"{name.lower().replace(' ', '.')}@nailsalon.com",
            'staff123',
            f'{name} Specialist',
            UserRole.STAFF,
            name,
        )
        for name in CATEGORIES
    ]


def seed(db) -> None:
    for name in CATEGORIES:
        if db.get(Category, name) is None:
            db.add(Category(name=name))
            logger.info('Created category %s', name)
    db.flush()

    for name, description, duration, price, category_name in SERVICES:
        exists = db.query(Service).filter(Service.name == name).first()
        if exists is None:
            db.add(Service(
                name=name,
                description=description,
                duration=duration,
                price=Decimal(price),
                category=category_name,
                is_active=True,
            ))
            logger.info('Created service %s', name)

    for email, password, name, role, specialty in USERS + _staff_users():
        exists = db.query(User).filter(User.email == email).first()
        if exists is None:
            db.add(User(
                email=email,
                name=name,
                hashed_password=hash_password(password),
                role=role.value,
                is_active=True,
                specialty_category=specialty,
            ))
            logger.info('Created %s user %s', role.value.lower(), email)

    db.commit()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(message)s')
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()
    logger.info('Database seed completed')


if __name__ == '__main__':
    main()
