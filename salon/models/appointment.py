"""Appointment model definitions."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, text
from salon.database import Base, NON_TERMINAL_STATUS_SQL


class AppointmentStatus(str, Enum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    CANCELLED = 'CANCELLED'
    COMPLETED = 'COMPLETED'


TERMINAL_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED})
NON_TERMINAL_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


class Appointment(Base):
    """Represents a booked service in a [start_time, end_time) window on one date."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index('idx_appointments_customer_date', 'user_id', 'date'),
        Index('idx_appointments_staff_date', 'staff_id', 'date'),
        # Storage backstop for two bookings that both passed validation.
        Index(
            'uq_appointments_staff_slot',
            'staff_id',
            'date',
            'start_time',
            unique=True,
            sqlite_where=text(NON_TERMINAL_STATUS_SQL),
            postgresql_where=text(NON_TERMINAL_STATUS_SQL),
        ),
        Index(
            'uq_appointments_customer_slot',
            'user_id',
            'date',
            'start_time',
            unique=True,
            sqlite_where=text(NON_TERMINAL_STATUS_SQL),
            postgresql_where=text(NON_TERMINAL_STATUS_SQL),
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    staff_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
