"""
Record store

SQLAlchemy-backed persistence used by the scheduling core. Keeps the queries
and the referential rules for categories, services and appointments in one
place so route handlers never touch the session directly.
"""

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from salon.models.appointment import Appointment, AppointmentStatus, TERMINAL_STATUSES
from salon.models.category import Category
from salon.models.service import Service
from salon.models.user import User, UserRole
from salon.scheduling.errors import DuplicateName, NotFound, ReferenceInUse, StorageConflict

logger = logging.getLogger(__name__)


def _status_values(statuses: Iterable) -> list[str]:
    return [getattr(status, 'value', status) for status in statuses]


class RecordStore:
    """Thin repository over one SQLAlchemy session (one unit of work)."""

    def __init__(self, db: Session):
        self.db = db

    def rollback(self) -> None:
        self.db.rollback()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise StorageConflict(str(exc.orig)) from exc

    # Users

    def get_user(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def find_active_staff_by_category(self, category: str) -> list[User]:
        return self.db.query(User).filter(
            User.role == UserRole.STAFF.value,
            User.specialty_category == category,
            User.is_active.is_(True),
        ).order_by(User.name.asc(), User.id.asc()).all()

    def lock_schedules(self, *user_ids: int | None) -> None:
        """Serialize validate-then-commit per customer/staff member.

        Row locks are taken on PostgreSQL; SQLite already serializes writers
        and silently drops FOR UPDATE.
        """
        ids = sorted({user_id for user_id in user_ids if user_id is not None})
        if not ids:
            return
        self.db.query(User.id).filter(User.id.in_(ids)).order_by(User.id).with_for_update().all()

    # Staff and customers (admin management)

    def _get_user_with_role(self, user_id: int, role: UserRole, label: str) -> User:
        user = self.get_user(user_id)
        if user is None or user.role != role.value:
            raise NotFound(f'{label} not found.')
        return user

    def list_staff(self, category: str | None = None) -> list[User]:
        query = self.db.query(User).filter(User.role == UserRole.STAFF.value)
        if category is not None:
            query = query.filter(User.specialty_category == category)
        return query.order_by(User.name.asc(), User.id.asc()).all()

    def get_staff(self, staff_id: int) -> User:
        return self._get_user_with_role(staff_id, UserRole.STAFF, 'Staff member')

    def create_staff(
        self,
        *,
        email: str,
        name: str,
        hashed_password: str,
        specialty_category: str,
        phone: str | None = None,
    ) -> User:
        email = email.strip().lower()
        if self.get_user_by_email(email) is not None:
            raise DuplicateName('Email already in use.')
        if not self.category_exists(specialty_category):
            raise NotFound('Category not found.')

        staff = User(
            email=email,
            name=name,
            phone=phone,
            hashed_password=hashed_password,
            role=UserRole.STAFF.value,
            is_active=True,
            specialty_category=specialty_category,
        )
        self.db.add(staff)
        try:
            self._commit()
        except StorageConflict as exc:
            raise DuplicateName('Email already in use.') from exc
        self.db.refresh(staff)
        logger.info('Created staff member %s (%s)', staff.id, specialty_category)
        return staff

    def update_staff(self, staff_id: int, **changes) -> User:
        staff = self.get_staff(staff_id)
        if 'specialty_category' in changes and not self.category_exists(changes['specialty_category']):
            raise NotFound('Category not found.')
        for field, value in changes.items():
            setattr(staff, field, value)
        self._commit()
        self.db.refresh(staff)
        return staff

    def delete_staff(self, staff_id: int) -> None:
        staff = self.get_staff(staff_id)

        active_count = self.db.query(func.count(Appointment.id)).filter(
            Appointment.staff_id == staff_id,
            Appointment.status.not_in(_status_values(TERMINAL_STATUSES)),
        ).scalar()
        if active_count:
            raise ReferenceInUse(
                f'Cannot delete staff member with {active_count} active appointment(s).'
            )

        # Finished and cancelled bookings stay in the customer's history, unassigned.
        self.db.execute(
            update(Appointment).where(Appointment.staff_id == staff_id).values(staff_id=None),
            execution_options={'synchronize_session': False},
        )
        self.db.delete(staff)
        self._commit()
        logger.info('Deleted staff member %s', staff_id)

    def list_customers(self) -> list[User]:
        return self.db.query(User).filter(
            User.role == UserRole.CUSTOMER.value,
        ).order_by(User.id.desc()).all()

    def get_customer(self, customer_id: int) -> User:
        return self._get_user_with_role(customer_id, UserRole.CUSTOMER, 'Customer')

    def set_customer_active(self, customer_id: int, is_active: bool) -> User:
        customer = self.get_customer(customer_id)
        customer.is_active = is_active
        self._commit()
        self.db.refresh(customer)
        logger.info('Customer %s %s', customer_id, 'reinstated' if is_active else 'banned')
        return customer

    # Appointments

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.db.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFound('Appointment not found.')
        return appointment

    def _appointments_on_date(
        self,
        column,
        owner_id: int,
        on_date: date,
        exclude_statuses: Iterable,
        exclude_appointment_id: int | None,
    ) -> list[Appointment]:
        query = self.db.query(Appointment).filter(
            column == owner_id,
            Appointment.date == on_date,
        )
        excluded = _status_values(exclude_statuses)
        if excluded:
            query = query.filter(Appointment.status.not_in(excluded))
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.order_by(Appointment.start_time.asc()).all()

    def find_appointments_by_customer_and_date(
        self,
        user_id: int,
        on_date: date,
        exclude_statuses: Iterable = TERMINAL_STATUSES,
        exclude_appointment_id: int | None = None,
    ) -> list[Appointment]:
        return self._appointments_on_date(
            Appointment.user_id, user_id, on_date, exclude_statuses, exclude_appointment_id
        )

    def find_appointments_by_staff_and_date(
        self,
        staff_id: int,
        on_date: date,
        exclude_statuses: Iterable = TERMINAL_STATUSES,
        exclude_appointment_id: int | None = None,
    ) -> list[Appointment]:
        return self._appointments_on_date(
            Appointment.staff_id, staff_id, on_date, exclude_statuses, exclude_appointment_id
        )

    def create_appointment(
        self,
        *,
        user_id: int,
        service_id: int,
        staff_id: int | None,
        on_date: date,
        start_time: str,
        end_time: str,
        notes: str | None = None,
    ) -> Appointment:
        appointment = Appointment(
            user_id=user_id,
            staff_id=staff_id,
            service_id=service_id,
            date=on_date,
            start_time=start_time,
            end_time=end_time,
            status=AppointmentStatus.PENDING.value,
            notes=notes,
        )
        self.db.add(appointment)
        self._commit()
        self.db.refresh(appointment)
        return appointment

    def update_appointment_status(self, appointment_id: int, new_status: AppointmentStatus) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        appointment.status = getattr(new_status, 'value', new_status)
        return self.save_appointment(appointment)

    def save_appointment(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        self._commit()
        self.db.refresh(appointment)
        return appointment

    def delete_appointment(self, appointment: Appointment) -> None:
        self.db.delete(appointment)
        self._commit()

    def list_appointments(
        self,
        user_id: int | None = None,
        staff_id: int | None = None,
        on_date: date | None = None,
        status: AppointmentStatus | None = None,
    ) -> list[Appointment]:
        query = self.db.query(Appointment)
        if user_id is not None:
            query = query.filter(Appointment.user_id == user_id)
        if staff_id is not None:
            query = query.filter(Appointment.staff_id == staff_id)
        if on_date is not None:
            query = query.filter(Appointment.date == on_date)
        if status is not None:
            query = query.filter(Appointment.status == getattr(status, 'value', status))
        return query.order_by(Appointment.date.desc(), Appointment.start_time.asc()).all()

    # Categories

    def list_categories(self) -> list[Category]:
        return self.db.query(Category).order_by(Category.name.asc()).all()

    def category_exists(self, name: str) -> bool:
        return self.db.get(Category, name) is not None

    def create_category(self, name: str) -> Category:
        if self.category_exists(name):
            raise DuplicateName('Category already exists.')
        category = Category(name=name)
        self.db.add(category)
        try:
            self._commit()
        except StorageConflict as exc:
            raise DuplicateName('Category already exists.') from exc
        return category

    def rename_category(self, old_name: str, new_name: str) -> Category:
        category = self.db.get(Category, old_name)
        if category is None:
            raise NotFound('Category not found.')
        if new_name == old_name:
            return category
        if self.category_exists(new_name):
            raise DuplicateName('Category already exists.')

        # The foreign keys cascade on update; the explicit statements keep
        # services and staff consistent on databases that do not enforce them.
        self.db.execute(
            update(Category).where(Category.name == old_name).values(name=new_name),
            execution_options={'synchronize_session': False},
        )
        services_updated = self.db.execute(
            update(Service).where(Service.category == old_name).values(category=new_name),
            execution_options={'synchronize_session': False},
        ).rowcount
        self.db.execute(
            update(User).where(User.specialty_category == old_name).values(specialty_category=new_name),
            execution_options={'synchronize_session': False},
        )
        self._commit()
        self.db.expire_all()
        logger.info('Renamed category %r to %r (%s service rows touched)', old_name, new_name, services_updated)
        return self.db.get(Category, new_name)

    def delete_category(self, name: str) -> None:
        category = self.db.get(Category, name)
        if category is None:
            raise NotFound('Category not found.')

        service_count = self.db.query(func.count(Service.id)).filter(Service.category == name).scalar()
        if service_count:
            raise ReferenceInUse(
                f'Cannot delete category. {service_count} service(s) are using this category.'
            )
        staff_count = self.db.query(func.count(User.id)).filter(User.specialty_category == name).scalar()
        if staff_count:
            raise ReferenceInUse(
                f'Cannot delete category. {staff_count} staff member(s) specialize in this category.'
            )

        self.db.delete(category)
        self._commit()

    # Services

    def get_service(self, service_id: int) -> Service | None:
        return self.db.get(Service, service_id)

    def list_services(self, category: str | None = None, include_inactive: bool = False) -> list[Service]:
        query = self.db.query(Service)
        if category is not None:
            query = query.filter(Service.category == category)
        if not include_inactive:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.category.asc(), Service.name.asc()).all()

    def create_service(
        self,
        *,
        name: str,
        duration: int,
        price: Decimal,
        category: str,
        description: str | None = None,
        is_active: bool = True,
    ) -> Service:
        if not self.category_exists(category):
            raise NotFound('Category not found.')
        service = Service(
            name=name,
            description=description,
            duration=duration,
            price=price,
            category=category,
            is_active=is_active,
        )
        self.db.add(service)
        self._commit()
        self.db.refresh(service)
        return service

    def update_service(self, service_id: int, **changes) -> Service:
        service = self.get_service(service_id)
        if service is None:
            raise NotFound('Service not found.')
        if 'category' in changes and not self.category_exists(changes['category']):
            raise NotFound('Category not found.')
        for field, value in changes.items():
            setattr(service, field, value)
        self._commit()
        self.db.refresh(service)
        return service

    def delete_service(self, service_id: int) -> None:
        service = self.get_service(service_id)
        if service is None:
            raise NotFound('Service not found.')

        active_count = self.db.query(func.count(Appointment.id)).filter(
            Appointment.service_id == service_id,
            Appointment.status.not_in(_status_values(TERMINAL_STATUSES)),
        ).scalar()
        if active_count:
            raise ReferenceInUse(
                'Cannot delete service with active appointments. Please complete or cancel them first.'
            )

        # Finished and cancelled bookings go with the service.
        self.db.execute(
            delete(Appointment).where(Appointment.service_id == service_id),
            execution_options={'synchronize_session': False},
        )
        self.db.delete(service)
        self._commit()
