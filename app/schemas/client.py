"""Client account payloads."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _ClientFields(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=200)
    nif: Optional[str] = Field(default=None, max_length=20)
    notes: Optional[str] = Field(default=None, max_length=2000)
    company_name: Optional[str] = Field(default=None, max_length=200)


class ClientCreateRequest(_ClientFields):
    """
    People need first and last name; enterprise clients are named by
    company_name. The account starts with the configured temporary
    password and must change it on first login.
    """

    phone: str = Field(min_length=1, max_length=50)
    is_enterprise: bool = False

    @field_validator("phone")
    @classmethod
    def strip_phone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("phone must not be blank")
        return v

    @model_validator(mode="after")
    def check_name(self) -> "ClientCreateRequest":
        if not self.is_enterprise and not (self.first_name and self.last_name):
            raise ValueError("first_name and last_name are required for individual clients")
        return self


class ClientUpdateRequest(_ClientFields):
    """Partial update: only fields present in the body change."""

    phone: Optional[str] = Field(default=None, min_length=1, max_length=50)
    is_enterprise: Optional[bool] = None
    is_active: Optional[bool] = None


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    phone: str
    full_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    nif: Optional[str] = None
    notes: Optional[str] = None
    is_enterprise: bool = False
    company_name: Optional[str] = None
    is_active: bool = True
    must_change_password: bool = False
    created_at: Optional[datetime] = None
