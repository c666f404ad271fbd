"""Tests for option decoding.

Tests cover:
- Name rules (empty, punctuation, leading digit) and whitespace stripping
- Sub-module and entity names checked with the same rules
- Comma-separated list fields (tags, sub_modules, entities, operations)
- Unknown library types and unknown option keys
- Cross-field rules (sub_modules required with include_sub_modules)
- Per-type defaults (feature RPC on, domain scope shared)
"""

from __future__ import annotations

import pytest

from libgen.errors import ValidationError
from libgen.validation import (
    ContractInput,
    DomainInput,
    FeatureInput,
    ProviderInput,
    validate_domain_options,
    validate_options,
)

pytestmark = pytest.mark.unit


class TestName:
    def test_empty_name(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("contract", {"name": ""})
        assert str(exc_info.value) == "Invalid contract options: name: must not be empty"
        assert exc_info.value.fields == ["name"]

    def test_blank_name_is_stripped_then_rejected(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            validate_options("infra", {"name": "   "})

    def test_missing_name(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("contract", {})
        assert exc_info.value.fields == ["name"]

    def test_punctuation_rejected(self):
        with pytest.raises(ValidationError, match="may only contain letters"):
            validate_options("feature", {"name": "order!"})

    @pytest.mark.parametrize("name", ["123", "2fa-setup", "_order"])
    def test_must_start_with_a_letter(self, name):
        with pytest.raises(ValidationError, match="must start with a letter") as exc_info:
            validate_options("feature", {"name": name})
        assert exc_info.value.fields == ["name"]

    @pytest.mark.parametrize("name", ["order", "user-profile", "User Profile", "order_items", "setup 2fa"])
    def test_accepted_names(self, name):
        assert validate_options("contract", {"name": name}).name == name

    def test_whitespace_stripped(self):
        options = validate_options("contract", {"name": "  order  ", "description": "  Orders.  "})
        assert options.name == "order"
        assert options.description == "Orders."

    def test_blank_description_becomes_none(self):
        assert validate_options("contract", {"name": "order", "description": "  "}).description is None


class TestListFields:
    def test_tags_from_csv(self):
        options = validate_options("contract", {"name": "order", "tags": "team:core, domain:sales,"})
        assert options.tags == ["team:core", "domain:sales"]

    def test_entities_and_sub_modules_from_csv(self):
        options = validate_options(
            "contract",
            {"name": "order", "entities": "Order,OrderItem", "include_sub_modules": True, "sub_modules": "items, payments"},
        )
        assert isinstance(options, ContractInput)
        assert options.entities == ["Order", "OrderItem"]
        assert options.sub_modules == ["items", "payments"]

    @pytest.mark.parametrize("sub_modules", ["auth,--", "items, 2nd", ["items", "pay!"]])
    def test_bad_sub_module_name_rejected(self, sub_modules):
        with pytest.raises(ValidationError) as exc_info:
            validate_options(
                "data-access", {"name": "order", "include_sub_modules": True, "sub_modules": sub_modules}
            )
        assert exc_info.value.fields == ["sub_modules"]

    def test_bad_sub_module_name_rejected_for_domain(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_domain_options({"name": "order", "include_sub_modules": True, "sub_modules": "--"})
        assert exc_info.value.fields == ["sub_modules"]
        assert "'--' must start with a letter" in str(exc_info.value)

    @pytest.mark.parametrize("entities", ["--", "Order, 1Item", "Order Item!"])
    def test_bad_entity_name_rejected(self, entities):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("contract", {"name": "order", "entities": entities})
        assert exc_info.value.fields == ["entities"]

    def test_provider_operations(self):
        options = validate_options(
            "provider", {"name": "stripe", "external_service": "Stripe", "operations": "create, read"}
        )
        assert isinstance(options, ProviderInput)
        assert options.operations == ["create", "read"]

    def test_empty_operations_become_none(self):
        options = validate_options("provider", {"name": "stripe", "external_service": "Stripe", "operations": ""})
        assert options.operations is None

    def test_unknown_operation_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("provider", {"name": "stripe", "external_service": "Stripe", "operations": "launch"})
        assert exc_info.value.fields == ["operations.0"]


class TestRequestShape:
    def test_unknown_library_type(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("widget", {"name": "order"})
        assert exc_info.value.subject == "request"
        assert exc_info.value.fields == ["library_type"]
        assert "unknown library type 'widget'" in str(exc_info.value)

    def test_unknown_option_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("contract", {"name": "order", "include_everything": True})
        assert exc_info.value.fields == ["include_everything"]

    def test_option_of_another_type_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("contract", {"name": "order", "include_cache": True})
        assert exc_info.value.fields == ["include_cache"]

    def test_sub_modules_required(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("data-access", {"name": "order", "include_sub_modules": True})
        assert exc_info.value.fields == ["options"]
        assert "sub_modules is required" in str(exc_info.value)

    def test_provider_requires_external_service(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("provider", {"name": "stripe"})
        assert exc_info.value.fields == ["external_service"]

    def test_bad_feature_scope(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("feature", {"name": "order", "scope": "global"})
        assert exc_info.value.fields == ["scope"]

    def test_several_failures_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options("provider", {"name": "", "platform": "mainframe"})
        assert set(exc_info.value.fields) == {"name", "external_service", "platform"}


class TestDefaults:
    def test_feature_defaults(self):
        options = validate_options("feature", {"name": "order"})
        assert isinstance(options, FeatureInput)
        assert options.include_rpc is True
        assert options.scope == "shared"
        assert options.platform is None
        assert options.include_client_server is None
        assert options.dry_run is False

    def test_domain_defaults(self):
        options = validate_domain_options({"name": "order"})
        assert isinstance(options, DomainInput)
        assert options.scope == "shared"
        assert options.include_cqrs is False
        assert options.include_cache is False
        assert options.sub_modules == []

    def test_domain_subject(self):
        with pytest.raises(ValidationError, match="^Invalid domain options: name"):
            validate_domain_options({"name": ""})
