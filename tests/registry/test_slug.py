"""Tests for identifier rules."""

import pytest

from capgate.registry.slug import (
    is_valid_capability_id,
    is_valid_slug,
    pascal_case,
    slugify,
    snake_case,
    table_token,
)


class TestSlugify:
    """Test slugify."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("HelloWorld", "hello-world"),
            ("HTTPServer", "http-server"),
            ("order_desk", "order-desk"),
            ("checkout", "checkout"),
            ("  Mixed Case  ", "mixed-case"),
            ("__init__", "init"),
        ],
    )
    def test_examples(self, name, expected):
        """Acronyms, case changes and separators become single dashes."""
        assert slugify(name) == expected

    def test_idempotent(self):
        """A slug slugifies to itself."""
        for name in ("HelloWorld", "HTTPServer", "a__b--c"):
            assert slugify(slugify(name)) == slugify(name)

    def test_result_is_valid(self):
        """Slugs of ordinary folder names pass validation."""
        assert is_valid_slug(slugify("BridgeInventory"))


class TestValidation:
    """Test slug and capability id validation."""

    def test_valid_slugs(self):
        assert is_valid_slug("billing")
        assert is_valid_slug("order-desk")

    def test_invalid_slugs(self):
        """Uppercase, underscores and dangling dashes are rejected."""
        assert not is_valid_slug("Billing")
        assert not is_valid_slug("order_desk")
        assert not is_valid_slug("-billing")
        assert not is_valid_slug("")

    def test_capability_ids_must_be_namespaced(self):
        assert is_valid_capability_id("bridge.inventory.stock-service")
        assert is_valid_capability_id("mail.sender")
        assert not is_valid_capability_id("mailer")
        assert not is_valid_capability_id("Mail.Sender")
        assert not is_valid_capability_id("mail..sender")


class TestCaseHelpers:
    """Test snake, pascal and table forms."""

    def test_snake_case(self):
        assert snake_case("StockServiceInterface") == "stock_service_interface"

    def test_pascal_case(self):
        assert pascal_case("order_desk") == "OrderDesk"

    def test_table_token(self):
        """Dashes become underscores inside table names."""
        assert table_token("order-desk") == "order_desk"
