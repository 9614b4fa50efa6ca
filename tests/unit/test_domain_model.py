"""Unit tests for the domain records and entity types."""

from pydantic import ValidationError
import pytest

from zen_search.domain.model import DocType, EntityType, Organization, Ticket, User
from zen_search.exceptions import SchemaError, UnsupportedTypeError


class TestEntityType:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Users", EntityType.USERS),
            ("users", EntityType.USERS),
            ("user", EntityType.USERS),
            (" Organizations ", EntityType.ORGANIZATIONS),
            ("TICKET", EntityType.TICKETS),
            (EntityType.TICKETS, EntityType.TICKETS),
        ],
    )
    def test_parse_accepts_display_and_doc_type_names(self, raw, expected):
        assert EntityType.parse(raw) is expected

    @pytest.mark.parametrize("raw", ["Groups", "", None, 3])
    def test_parse_rejects_unknown_values(self, raw):
        with pytest.raises(UnsupportedTypeError):
            EntityType.parse(raw)

    def test_unsupported_type_is_a_schema_error(self):
        assert issubclass(UnsupportedTypeError, SchemaError)

    def test_doc_type_mapping(self):
        assert EntityType.USERS.doc_type is DocType.USER
        assert EntityType.ORGANIZATIONS.doc_type is DocType.ORGANIZATION
        assert EntityType.TICKETS.doc_type is DocType.TICKET


class TestRecords:
    def test_numeric_and_string_ids_normalize_to_text(self):
        assert User.model_validate({"_id": 71, "organization_id": "119"}).id == "71"
        assert User.model_validate({"_id": "71", "organization_id": 119}).organization_id == "119"

    def test_integral_float_ids_match_integer_ids(self):
        assert User.model_validate({"_id": 100.0}).id == "100"
        assert Ticket.model_validate({"_id": "t", "organization_id": 101.0}).organization_id == "101"
        assert Ticket.model_validate({"_id": 1.5}).id == "1.5"

    def test_null_list_fields_default_to_empty(self):
        organization = Organization.model_validate({"_id": 1, "domain_names": None, "tags": None})

        assert organization.domain_names == ()
        assert organization.tags == ()
        assert Ticket.model_validate({"_id": "t", "tags": None}).tags == ()

    def test_boolean_identifier_is_rejected(self):
        with pytest.raises(ValidationError, match="not a boolean"):
            Ticket.model_validate({"_id": "abc", "submitter_id": True})

    def test_missing_fields_default_to_absent(self):
        user = User.model_validate({"_id": 4})

        assert user.organization_id is None
        assert user.tags == ()
        assert user.organization is None
        assert user.doc_type is None

    def test_unknown_source_keys_are_ignored(self):
        organization = Organization.model_validate({"_id": 1, "name": "Acme", "employees": 12})

        assert organization.name == "Acme"
        assert not hasattr(organization, "employees")

    def test_records_are_frozen(self):
        organization = Organization.model_validate({"_id": 1, "name": "Acme"})

        with pytest.raises(ValidationError):
            organization.name = "Other"

    def test_serialization_uses_source_keys(self):
        organization = Organization.model_validate({"_id": 101, "tags": ["West"], "shared_tickets": False})

        dumped = organization.model_dump(mode="json", by_alias=True, exclude_none=True)

        assert dumped == {"_id": "101", "domain_names": [], "shared_tickets": False, "tags": ["West"]}
