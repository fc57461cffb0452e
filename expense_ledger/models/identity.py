"""
Identity and Session Models

An Identity is who is using the ledger; a SessionRecord is the durable
proof that they logged in and until when that proof is valid.

DESIGN DECISION: As with records, inbound identity payloads are folded
through one mapping function (``identity_from_wire``). The income field in
particular has arrived as ``monthlyIncome``, ``rendaMensal`` and
``renda_mensal``; internal code only ever sees ``monthly_income``.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class Role(str, Enum):
    """Identity roles."""
    STANDARD = "standard"
    ADMIN = "admin"


# Canonical wire name -> accepted inbound spellings, in priority order
IDENTITY_FIELD_SPELLINGS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "name": ("name", "displayName", "nome"),
    "email": ("email",),
    "role": ("role",),
    "monthlyIncome": ("monthlyIncome", "rendaMensal", "renda_mensal"),
}

# Role values seen on the wire that mean the same as ours
ROLE_SPELLINGS: dict[str, Role] = {
    "standard": Role.STANDARD,
    "user": Role.STANDARD,
    "admin": Role.ADMIN,
}


class Identity(BaseModel):
    """An authenticated user or administrator."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(..., min_length=1)
    display_name: str = ""
    email: str = ""
    role: Role = Role.STANDARD
    monthly_income: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Standard users only; 0 means unknown"
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return v
        if isinstance(v, int):
            return str(v)
        if isinstance(v, float):
            # 3.0 is the id 3; 1.9 stays distinct from 1
            return str(int(v)) if v.is_integer() else str(v)
        return v

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class Credentials(BaseModel):
    """Login form payload."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    email: str
    password: str


class RegistrationProfile(BaseModel):
    """A validated registration request."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    display_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    monthly_income: Decimal = Field(default=Decimal("0"), ge=0)


class SessionRecord(BaseModel):
    """
    The durable session record.

    The short-lived token mirror is a projection of ``token`` and is
    always re-derived from this record, never trusted on its own.
    """
    identity: Identity
    token: str = Field(..., min_length=1)
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps cannot be compared against the clock safely."""
        if v.tzinfo is None:
            raise ValueError("expires_at must carry a timezone")
        return v


def _pick(payload: dict[str, Any], spellings: tuple[str, ...]) -> Any:
    for name in spellings:
        if name in payload and payload[name] is not None:
            return payload[name]
    return None


def _income(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        income = Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
    return income if income.is_finite() and income >= 0 else Decimal("0")


def identity_from_wire(payload: Any) -> Identity:
    """
    Normalize a remote identity payload into an Identity.

    Unknown or missing roles default to standard. An unusable income value
    is treated as unknown (0) rather than rejecting the whole identity.

    Raises:
        ValueError: If the payload is not a mapping or has no usable id
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected an identity object, got {type(payload).__name__}")

    raw_role = _pick(payload, IDENTITY_FIELD_SPELLINGS["role"])
    data = {
        "id": _pick(payload, IDENTITY_FIELD_SPELLINGS["id"]),
        "display_name": _pick(payload, IDENTITY_FIELD_SPELLINGS["name"]) or "",
        "email": _pick(payload, IDENTITY_FIELD_SPELLINGS["email"]) or "",
        "role": ROLE_SPELLINGS.get(str(raw_role).lower(), Role.STANDARD),
        "monthly_income": _income(_pick(payload, IDENTITY_FIELD_SPELLINGS["monthlyIncome"])),
    }
    try:
        return Identity.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Malformed identity payload: {e}") from e


def identity_to_wire(identity: Identity) -> dict[str, Any]:
    """Serialize an identity to the canonical wire shape (no password)."""
    return {
        "id": identity.id,
        "name": identity.display_name,
        "email": identity.email,
        "role": identity.role.value,
        "monthlyIncome": float(identity.monthly_income),
    }


def profile_to_wire(profile: RegistrationProfile, role: Role = Role.STANDARD) -> dict[str, Any]:
    """Serialize a registration profile for ``POST /identities``."""
    return {
        "name": profile.display_name,
        "email": profile.email,
        "password": profile.password,
        "role": role.value,
        "monthlyIncome": float(profile.monthly_income),
    }
