"""School database model.

A school maps an email domain to an institution; guru and murid accounts can
only be registered with an email on an active school's domain.
"""

from sqlalchemy import Boolean, Column, String

from .base import Base


class SchoolModel(Base):
    """School database model."""

    __tablename__ = "schools"

    school_id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    domain = Column(String, unique=True, index=True, nullable=False)
    address = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    principal_name = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    registered_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
