"""School management utilities."""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from models.school import SchoolModel

logger = logging.getLogger(__name__)


class SchoolManager:
    """Manages schools, the domain-to-institution mapping used at registration."""

    def __init__(self, db: Session):
        self.db = db

    def create_school(
        self,
        name: str,
        domain: str,
        address: str,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        principal_name: Optional[str] = None,
    ) -> SchoolModel:
        """Create a school.

        Raises:
            ValidationError: If another school already uses the domain.
        """
        domain = domain.strip().lower()
        existing = self.db.query(SchoolModel).filter(SchoolModel.domain == domain).first()
        if existing:
            raise ValidationError(f"A school with domain '{domain}' already exists")

        now = datetime.now(pytz.utc).isoformat()
        model = SchoolModel(
            school_id=str(uuid.uuid4()),
            name=name.strip(),
            domain=domain,
            address=address.strip(),
            phone=phone,
            email=email.lower() if email else None,
            principal_name=principal_name,
            is_active=True,
            registered_at=now,
            updated_at=now,
        )
        try:
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError(f"A school with domain '{domain}' already exists") from e
        logger.info("Created school: %s (%s)", model.name, domain)
        return model

    def get_school(self, school_id: str) -> SchoolModel:
        model = (
            self.db.query(SchoolModel)
            .filter(SchoolModel.school_id == school_id)
            .first()
        )
        if not model:
            raise NotFoundError("School", school_id)
        return model

    def list_schools(self, include_inactive: bool = False) -> List[SchoolModel]:
        query = self.db.query(SchoolModel)
        if not include_inactive:
            query = query.filter(SchoolModel.is_active.is_(True))
        return query.order_by(SchoolModel.name.asc()).all()

    def update_school(self, school_id: str, **updates) -> SchoolModel:
        """Apply the non-None updates to a school."""
        model = self.get_school(school_id)
        for key, value in updates.items():
            if value is not None:
                setattr(model, key, value)
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated school: %s", school_id)
        return model
