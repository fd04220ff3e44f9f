"""User model definitions."""

from enum import Enum

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from salon.database import Base


class UserRole(str, Enum):
    CUSTOMER = 'CUSTOMER'
    STAFF = 'STAFF'
    ADMIN = 'ADMIN'


class User(Base):
    """Represents a customer, staff member or admin."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    phone = Column(String)
    hashed_password = Column(String)
    role = Column(String, nullable=False, default=UserRole.CUSTOMER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    # Only set for STAFF: the single category they can serve.
    specialty_category = Column(
        String,
        ForeignKey("categories.name", onupdate="CASCADE", ondelete="RESTRICT"),
        index=True,
    )
