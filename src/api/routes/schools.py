"""School routes.

Schools map email domains to institutions. Anyone may list them so the
registration screen can show which domains are accepted; only superadmins
maintain them.
"""

import logging

from fastapi import APIRouter, Depends, status

from api.routes.auth import require_roles
from config import ROLE_SUPERADMIN
from core.dependencies import SchoolManagerDep
from core.error_handlers import to_http_exception
from core.exceptions import EcoterraError
from schemas.common import envelope
from schemas.school import CreateSchoolRequest, UpdateSchoolRequest
from schemas.user import User
from utils.converters import model_to_school_info

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/schools", tags=["Schools"])

require_superadmin = require_roles(ROLE_SUPERADMIN)


@router.get("", summary="List schools")
def list_schools(school_manager: SchoolManagerDep = None) -> dict:
    """List active schools by name."""
    models = school_manager.list_schools()
    return envelope(
        "Schools retrieved successfully",
        data=[model_to_school_info(m).model_dump() for m in models],
    )


@router.get("/{school_id}", summary="Get school")
def get_school(school_id: str, school_manager: SchoolManagerDep = None) -> dict:
    try:
        model = school_manager.get_school(school_id)
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope("School retrieved successfully", data=model_to_school_info(model).model_dump())


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create school")
def create_school(
    req: CreateSchoolRequest,
    current_user: User = Depends(require_superadmin),
    school_manager: SchoolManagerDep = None,
) -> dict:
    try:
        model = school_manager.create_school(
            name=req.name,
            domain=req.domain,
            address=req.address,
            phone=req.phone,
            email=req.email,
            principal_name=req.principal_name,
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope("School created successfully", data=model_to_school_info(model).model_dump())


@router.put("/{school_id}", summary="Update school")
def update_school(
    school_id: str,
    req: UpdateSchoolRequest,
    current_user: User = Depends(require_superadmin),
    school_manager: SchoolManagerDep = None,
) -> dict:
    """Update a school. Setting is_active to false closes registration for its domain."""
    try:
        model = school_manager.update_school(school_id, **req.model_dump(exclude_unset=True))
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope("School updated successfully", data=model_to_school_info(model).model_dump())
