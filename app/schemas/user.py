"""Staff user payloads."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.schemas.auth import PASSWORD_MAX_LENGTH, Password


class UserCreateRequest(BaseModel):
    """The phone number doubles as the login username."""

    password: Password = Field(min_length=6, max_length=PASSWORD_MAX_LENGTH)
    role: Literal["master", "admin", "worker"]
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=1, max_length=50)
    email: Optional[str] = Field(default=None, max_length=200)


class UserUpdateRequest(BaseModel):
    """
    Partial update: only fields present in the body change.

    A new phone number also becomes the new username. An empty or missing
    password leaves the current one in place. The role cannot be changed.
    """

    password: Optional[Password] = Field(default=None, max_length=PASSWORD_MAX_LENGTH)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[str] = Field(default=None, max_length=200)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_fields(self) -> "UserUpdateRequest":
        if (self.first_name is None) != (self.last_name is None):
            raise ValueError("first_name and last_name must be changed together")
        if self.password is not None and self.password.strip() and len(self.password) < 6:
            raise ValueError("password must be at least 6 characters")
        return self


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
