from typing import Optional

from pydantic import BaseModel, EmailStr, Field

DOMAIN_PATTERN = r"^[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
PHONE_PATTERN = r"^[+]?[0-9\s\-()]{10,20}$"


class CreateSchoolRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    domain: str = Field(pattern=DOMAIN_PATTERN)
    address: str = Field(min_length=1, max_length=500)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    principal_name: Optional[str] = Field(default=None, max_length=100)


class UpdateSchoolRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    address: Optional[str] = Field(default=None, min_length=1, max_length=500)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    principal_name: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None


class SchoolInfo(BaseModel):
    school_id: str
    name: str
    domain: str
    address: str
    phone: Optional[str] = None
    email: Optional[str] = None
    principal_name: Optional[str] = None
    is_active: bool
    registered_at: str
