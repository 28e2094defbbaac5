"""Login, session check and password change payloads."""

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

# bcrypt only hashes the first 72 bytes and rejects longer input
PASSWORD_MAX_LENGTH = 72


def fits_bcrypt(value: str) -> str:
    """Reject passwords over 72 bytes once UTF-8 encoded (a 40-char 'é' password is 80)."""
    if len(value.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"password must be at most {PASSWORD_MAX_LENGTH} bytes")
    return value


Password = Annotated[str, AfterValidator(fits_bcrypt)]


class _Credentials(BaseModel):
    password: Password = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class UserLoginRequest(_Credentials):
    username: str = Field(min_length=1, max_length=100)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class ClientLoginRequest(_Credentials):
    phone: str = Field(min_length=1, max_length=50)

    @field_validator("phone")
    @classmethod
    def strip_phone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("phone must not be blank")
        return v


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: Password = Field(alias="currentPassword", min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: Password = Field(alias="newPassword", min_length=6, max_length=PASSWORD_MAX_LENGTH)


class SessionUser(BaseModel):
    id: int
    username: str
    role: str
    name: str


class SessionClient(BaseModel):
    id: int
    phone: str
    name: str
    mustChangePassword: bool


class SessionStatus(BaseModel):
    authenticated: bool
    userType: Optional[str] = None
    userName: Optional[str] = None
    userId: Optional[int] = None
    mustChangePassword: Optional[bool] = None
