"""Category model definitions."""

from sqlalchemy import Column, String
from salon.database import Base


class Category(Base):
    """A named grouping of services and staff specialties."""
    __tablename__ = "categories"

    name = Column(String, primary_key=True)
