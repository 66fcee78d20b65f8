"""Pydantic models for the seller auth domain."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, ValidationError, computed_field


_EMAIL_ADAPTER = TypeAdapter(EmailStr)


def is_valid_email(email: str) -> bool:
    """True if email passes the same check Seller.email applies."""
    try:
        _EMAIL_ADAPTER.validate_python(email)
    except ValidationError:
        return False
    return True


class SellerRole(str, Enum):
    """Roles a seller account can hold."""

    SELLER = "seller"
    ADMIN = "admin"


class Avatar(BaseModel):
    """Reference to an uploaded avatar image."""

    public_id: str | None = None
    url: str | None = None


class Seller(BaseModel):
    """
    A registered seller.

    Deliberately has no password field: this model is what gets cached,
    serialized into responses, and logged.
    """

    id: UUID
    email: EmailStr
    fname: str
    lname: str
    role: SellerRole = SellerRole.SELLER
    is_verified: bool = False
    is_social: bool = False
    avatar: Avatar = Field(default_factory=Avatar)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def full_name(self) -> str:
        return f"{self.fname} {self.lname}"


class SellerCredentials(BaseModel):
    """Seller plus password hash. Only produced on the signin path."""

    seller: Seller
    password_hash: str = Field(..., repr=False)


class EncryptedPayload(BaseModel):
    """AES-256-CBC output. Both fields are hex strings."""

    iv: str
    encrypted_data: str = Field(..., alias="encryptedData")

    model_config = ConfigDict(populate_by_name=True)


class OtpResult(BaseModel):
    """Activation token plus the cleartext OTP it protects."""

    token: str
    otp: int


class IssuedSession(BaseModel):
    """Tokens minted for a seller on signin or refresh."""

    seller: Seller
    access_token: str
    refresh_token: str


# Request bodies. Fields are optional so the service, not the schema layer,
# decides what a missing value means (400 with a specific message).


class SignupRequest(BaseModel):
    fname: str | None = None
    lname: str | None = None
    email: str | None = None
    password: str | None = None


class ActivationRequest(BaseModel):
    activation_token: str | None = Field(default=None, alias="activationToken")
    otp: str | int | None = None

    model_config = ConfigDict(populate_by_name=True)


class SigninRequest(BaseModel):
    email: str | None = None
    password: str | None = None
