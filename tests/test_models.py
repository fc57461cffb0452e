"""
Tests for Expense Ledger

Test strategy:
1. Unit tests for individual components (models, validators, views)
2. Integration tests for flows (with in-memory remotes)
3. No real API calls in tests (use in-memory remotes or a local test server)
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from expense_ledger.models.record import (
    ExpenseInput,
    ExpenseRecord,
    record_from_wire,
    record_to_wire,
)
from expense_ledger.models.identity import (
    Identity,
    RegistrationProfile,
    Role,
    SessionRecord,
    identity_from_wire,
    identity_to_wire,
    profile_to_wire,
)
from expense_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestRecordModels:
    """Tests for ledger record models."""

    def test_record_creation(self):
        """Test ExpenseRecord model creation."""
        record = ExpenseRecord(
            id="7",
            description="Lunch",
            category="Food",
            amount=Decimal("45.50"),
            date="2024-06-10",
            month="6",
            owner_id="2",
        )
        assert record.description == "Lunch"
        assert record.amount == Decimal("45.50")

    def test_record_strips_whitespace(self):
        """Test that whitespace is stripped from text fields."""
        record = ExpenseRecord(id="1", description="  Lunch  ", owner_id="2")
        assert record.description == "Lunch"

    def test_record_requires_id(self):
        """Test that an empty id is rejected."""
        with pytest.raises(ValueError):
            ExpenseRecord(id="", owner_id="2")

    def test_numeric_ids_become_text(self):
        """Test that numeric ids from the API are kept as text."""
        record = ExpenseRecord(id=12, owner_id=2, month=6)
        assert record.id == "12"
        assert record.owner_id == "2"
        assert record.month == "6"

    def test_fractional_ids_are_not_truncated(self):
        """Test that distinct float ids stay distinct."""
        assert ExpenseRecord(id=1.9, owner_id=2.0).id == "1.9"
        assert ExpenseRecord(id=3.0, owner_id=2).id == "3"

    def test_record_is_immutable(self):
        """Test that records cannot be mutated in place."""
        record = ExpenseRecord(id="1", owner_id="2")
        with pytest.raises(ValueError):
            record.description = "Changed"

    def test_with_changes_returns_copy(self):
        """Test with_changes leaves the original untouched."""
        record = ExpenseRecord(id="1", description="Old", owner_id="2")
        changed = record.with_changes(description="New")
        assert changed.description == "New"
        assert record.description == "Old"

    def test_input_has_no_id_or_month(self):
        """Test that a new-record draft carries no id and no month."""
        fields = set(ExpenseInput.model_fields)
        assert "id" not in fields
        assert "month" not in fields


class TestRecordWireMapping:
    """Tests for record payload normalization."""

    def test_canonical_payload(self):
        """Test a payload using canonical names."""
        record = record_from_wire({
            "id": 5, "description": "Bus", "category": "Transport",
            "amount": 4.5, "date": "2024-03-02", "month": "3", "ownerId": "2",
        })
        assert record.id == "5"
        assert record.amount == Decimal("4.5")
        assert record.owner_id == "2"

    def test_legacy_spellings(self):
        """Test that legacy field spellings map to the same fields."""
        record = record_from_wire({
            "id": "9", "descricao": "Mercado", "categoria": "Food",
            "valor": 120, "data": "2024-01-20", "mes": "1", "userId": "4",
        })
        assert record.description == "Mercado"
        assert record.category == "Food"
        assert record.amount == Decimal("120")
        assert record.date == "2024-01-20"
        assert record.month == "1"
        assert record.owner_id == "4"

    def test_canonical_name_wins_over_legacy(self):
        """Test priority when both spellings are present."""
        record = record_from_wire({
            "id": "1", "amount": 10, "valor": 99, "ownerId": "2",
        })
        assert record.amount == Decimal("10")

    def test_missing_owner_is_rejected(self):
        """Test that a record without any owner field is malformed."""
        with pytest.raises(ValueError, match="Malformed record payload"):
            record_from_wire({"id": "1", "amount": 10})

    def test_non_mapping_is_rejected(self):
        """Test that a list payload is not a record."""
        with pytest.raises(ValueError):
            record_from_wire([1, 2, 3])

    def test_outbound_uses_canonical_names(self):
        """Test that serialization emits only canonical names."""
        draft = ExpenseInput(description="Lunch", category="Food", amount=Decimal("45.5"), date="2024-06-10")
        payload = record_to_wire(draft, month="6", owner_id="2")
        assert payload == {
            "description": "Lunch",
            "category": "Food",
            "amount": 45.5,
            "date": "2024-06-10",
            "month": "6",
            "ownerId": "2",
        }

    def test_outbound_record_keeps_id(self):
        """Test that a stored record serializes with its id."""
        record = ExpenseRecord(id="3", month="2", owner_id="2")
        payload = record_to_wire(record, month="4")
        assert payload["id"] == "3"
        assert payload["month"] == "4"
        assert payload["ownerId"] == "2"


class TestIdentityModels:
    """Tests for identity models and their normalization."""

    @pytest.mark.parametrize("field", ["monthlyIncome", "rendaMensal", "renda_mensal"])
    def test_income_spellings(self, field):
        """Test that every income spelling lands in monthly_income."""
        identity = identity_from_wire({"id": 2, "name": "Alice", field: 2500})
        assert identity.monthly_income == Decimal("2500")

    def test_legacy_name_and_role(self):
        """Test 'nome' and role 'user' normalization."""
        identity = identity_from_wire({"id": "4", "nome": "Bia", "role": "user"})
        assert identity.display_name == "Bia"
        assert identity.role is Role.STANDARD

    def test_unknown_role_defaults_to_standard(self):
        """Test that unknown roles are treated as standard."""
        identity = identity_from_wire({"id": "4", "role": "superuser"})
        assert identity.role is Role.STANDARD
        assert identity.is_admin is False

    def test_unusable_income_is_unknown(self):
        """Test that garbage or negative income becomes 0."""
        assert identity_from_wire({"id": "1", "monthlyIncome": "abc"}).monthly_income == 0
        assert identity_from_wire({"id": "1", "monthlyIncome": -5}).monthly_income == 0

    def test_identity_without_id_is_rejected(self):
        """Test that an identity needs an id."""
        with pytest.raises(ValueError):
            identity_from_wire({"name": "Nobody"})

    def test_fractional_identity_id(self):
        """Test that a float id keeps its fraction."""
        assert identity_from_wire({"id": 4.5}).id == "4.5"

    def test_identity_to_wire_has_no_password(self):
        """Test that serialized identities never carry a password."""
        payload = identity_to_wire(Identity(id="2", display_name="Alice"))
        assert "password" not in payload
        assert payload["name"] == "Alice"

    def test_profile_to_wire(self):
        """Test the registration payload shape."""
        profile = RegistrationProfile(
            display_name="Alice", email="a@x.com", password="secret1",
            monthly_income=Decimal("1000"),
        )
        payload = profile_to_wire(profile)
        assert payload["role"] == "standard"
        assert payload["monthlyIncome"] == 1000.0
        assert payload["password"] == "secret1"

    def test_session_record_requires_timezone(self):
        """Test that naive expiry timestamps are rejected."""
        with pytest.raises(ValueError):
            SessionRecord(
                identity=Identity(id="2"),
                token="t",
                expires_at=datetime(2024, 1, 1, 12, 0),
            )

    def test_session_record_json_roundtrip(self):
        """Test the durable record survives serialization."""
        record = SessionRecord(
            identity=Identity(id="2", monthly_income=Decimal("10")),
            token="abc",
            expires_at=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        )
        restored = SessionRecord.model_validate_json(record.model_dump_json())
        assert restored == record


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            description="Record created",
        )
        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            description="Loaded",
            details={"record_count": 3},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "ledger_loaded"
        assert log_dict["details"]["record_count"] == 3

    def test_audit_event_builder_record_created(self):
        """Test AuditEventBuilder.record_created."""
        event = AuditEventBuilder.record_created("7", "2", "45.50", "6")
        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.entity_id == "7"
        assert event.details["month"] == "6"

    def test_audit_event_builder_remote_failure(self):
        """Test AuditEventBuilder.remote_failure severity."""
        event = AuditEventBuilder.remote_failure("load", "boom", 500)
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "boom"
        assert event.details["status"] == 500


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
