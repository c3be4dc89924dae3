from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from typing import Optional


def _password_max_bytes(v: str) -> str:
    """Ensure password does not exceed bcrypt's 72-byte limit when UTF-8 encoded.

    Raise a validation error so API returns a 422 with a clear message.
    """
    if isinstance(v, str):
        b = v.encode("utf-8")
        if len(b) > 72:
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return v


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str
    image: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        if not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()

    @field_validator("password")
    @classmethod
    def password_max_bytes(cls, v: str) -> str:
        return _password_max_bytes(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    id: str
    name: str
    email: EmailStr
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Identity(BaseModel):
    """The caller on whose behalf a request runs."""

    id: str
    name: str
    email: str
