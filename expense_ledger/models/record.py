"""
Ledger Record Models

An ExpenseRecord is one dated financial line item owned by an identity.
The remote Ledger API is authoritative: ids are assigned there, never here.

DESIGN DECISION: The remote data store has used more than one spelling
for the same field over time (``valor`` vs ``amount``, ``userId`` vs
``ownerId``...). All spellings are folded into the canonical model by
``record_from_wire`` and nothing past this module ever sees the raw
payload. Outbound payloads always use the canonical spelling.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


# Canonical wire name -> accepted inbound spellings, in priority order
RECORD_FIELD_SPELLINGS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "description": ("description", "descricao"),
    "category": ("category", "categoria"),
    "amount": ("amount", "valor"),
    "date": ("date", "data"),
    "month": ("month", "mes"),
    "ownerId": ("ownerId", "owner_id", "userId"),
}


class ExpenseInput(BaseModel):
    """
    The user-editable part of a new record.

    No id (server-assigned) and no month (always derived from the date).
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    description: str = ""
    category: str = ""
    amount: Decimal = Field(
        default=Decimal("0"),
        description="Amount; semantically positive but not enforced"
    )
    date: str = Field(
        default="",
        description="Calendar date text (YYYY-MM-DD); may be blank"
    )


class ExpenseRecord(BaseModel):
    """
    A stored ledger record.

    CRITICAL: ``month`` is a derived tag. It is recomputed by the month
    resolver on every mutation and is never edited directly.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(..., min_length=1, description="Server-assigned id")
    description: str = ""
    category: str = ""
    amount: Decimal = Decimal("0")
    date: str = ""
    month: str = Field(default="", description="Canonical 1-12 tag")
    owner_id: str = Field(..., description="Id of the owning identity")

    @field_validator("id", "owner_id", "month", mode="before")
    @classmethod
    def coerce_to_text(cls, v: Any) -> Any:
        """json-server hands out numeric ids; keep every reference as text."""
        if isinstance(v, bool):
            return v
        if isinstance(v, int):
            return str(v)
        if isinstance(v, float):
            # 3.0 is the id 3; 1.9 stays distinct from 1
            return str(int(v)) if v.is_integer() else str(v)
        return v

    def with_changes(self, **changes: Any) -> "ExpenseRecord":
        """Return an edited copy (validated) of this record."""
        data = self.model_dump()
        data.update(changes)
        return ExpenseRecord.model_validate(data)


def _pick(payload: dict[str, Any], spellings: tuple[str, ...]) -> Any:
    for name in spellings:
        if name in payload and payload[name] is not None:
            return payload[name]
    return None


def record_from_wire(payload: Any) -> ExpenseRecord:
    """
    Normalize a remote record payload into an ExpenseRecord.

    Raises:
        ValueError: If the payload is not a mapping or fails validation
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a record object, got {type(payload).__name__}")

    fields = {
        wire_name: _pick(payload, spellings)
        for wire_name, spellings in RECORD_FIELD_SPELLINGS.items()
    }
    data = {
        "id": fields["id"],
        "description": fields["description"] or "",
        "category": fields["category"] or "",
        "amount": fields["amount"] if fields["amount"] is not None else Decimal("0"),
        "date": fields["date"] or "",
        "month": fields["month"] or "",
        "owner_id": fields["ownerId"],
    }
    try:
        return ExpenseRecord.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Malformed record payload: {e}") from e


def record_to_wire(
    record: ExpenseRecord | ExpenseInput,
    month: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> dict[str, Any]:
    """
    Serialize a record (or a new record draft) to the canonical wire shape.

    For an ExpenseInput the caller supplies ``month`` and ``owner_id`` and
    no ``id`` is emitted; for an ExpenseRecord they override the stored ones.
    """
    payload: dict[str, Any] = {}
    if isinstance(record, ExpenseRecord):
        payload["id"] = record.id
        month = month if month is not None else record.month
        owner_id = owner_id if owner_id is not None else record.owner_id

    payload.update({
        "description": record.description,
        "category": record.category,
        # JSON has no decimal type; the remote stores plain numbers
        "amount": float(record.amount),
        "date": record.date,
        "month": month or "",
        "ownerId": owner_id,
    })
    return payload
