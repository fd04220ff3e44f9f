"""Service model definitions."""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric, String
from salon.database import Base


class Service(Base):
    """A bookable salon service."""
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint('duration > 0', name='ck_services_duration_positive'),
        CheckConstraint('price >= 0', name='ck_services_price_non_negative'),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String)
    duration = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(
        String,
        ForeignKey("categories.name", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    is_active = Column(Boolean, nullable=False, default=True)
