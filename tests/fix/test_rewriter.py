"""Tests for consumer rewrites."""

import ast

import pytest

from capgate.exceptions import FixBlocked
from capgate.fix.crossing.rewriter import ConsumerRewrite

OLD = "app.apps.inventory.stock.service.StockService"
NEW = "app.components.bridge_inventory.contract.stock_service_interface.StockServiceInterface"
IMPORT = "from app.apps.inventory.stock.service import StockService\n"
NEW_IMPORT = "from app.components.bridge_inventory.contract.stock_service_interface import StockServiceInterface\n"


def _rewrite(builder, text, inject_as="stock_service", old=OLD, new=NEW, name="StockServiceInterface", **kwargs):
    path = builder.source("apps/billing/checkout/consumer.py", text)
    return ConsumerRewrite(builder.project(), path, old, new, name).run(inject_as=inject_as, **kwargs)


class TestConsumerRewrite:
    """Test ConsumerRewrite.run."""

    def test_assignment_in_init_becomes_parameter(self, crossing_project):
        path = crossing_project.root / "src/app/apps/billing/checkout/service.py"
        result = ConsumerRewrite(crossing_project.project(), path, OLD, NEW, "StockServiceInterface").run(
            inject_as="stock_service"
        )
        assert result == (
            NEW_IMPORT + "\n"
            "\n"
            "class Checkout:\n"
            "    def __init__(self, stock_service: StockServiceInterface):\n"
            "        self.stock_service = stock_service\n"
            "\n"
            "    def total(self, sku: str) -> int:\n"
            "        return self.stock_service.level(sku)\n"
        )

    def test_constructor_is_created(self, builder):
        result = _rewrite(
            builder,
            IMPORT + "\n\nclass Checkout:\n    def total(self):\n        return StockService().level('a')\n",
        )
        assert result == (
            NEW_IMPORT + "\n"
            "\n"
            "class Checkout:\n"
            "    def __init__(self, stock_service: StockServiceInterface):\n"
            "        self.stock_service = stock_service\n"
            "\n"
            "    def total(self):\n"
            "        return self.stock_service.level('a')\n"
        )

    def test_constructor_goes_above_decorated_first_method(self, builder):
        result = _rewrite(
            builder,
            IMPORT
            + "\n\nclass Checkout:\n    @property\n    def total(self):\n        return StockService().level('a')\n",
        )
        assert result == (
            NEW_IMPORT + "\n"
            "\n"
            "class Checkout:\n"
            "    def __init__(self, stock_service: StockServiceInterface):\n"
            "        self.stock_service = stock_service\n"
            "\n"
            "    @property\n"
            "    def total(self):\n"
            "        return self.stock_service.level('a')\n"
        )
        tree = ast.parse(result)
        init, total = tree.body[1].body
        assert init.name == "__init__"
        assert init.decorator_list == []
        assert [d.id for d in total.decorator_list] == ["property"]

    def test_parameter_after_defaults_is_keyword_only(self, builder):
        result = _rewrite(
            builder,
            IMPORT
            + "\n\nclass Checkout:\n"
            '    def __init__(self, currency="EUR"):\n'
            "        self.currency = currency\n"
            "\n"
            "    def total(self, sku):\n"
            "        return StockService().level(sku)\n",
        )
        assert '    def __init__(self, currency="EUR", *, stock_service: StockServiceInterface):\n' in result
        assert "        self.stock_service = stock_service\n        self.currency = currency\n" in result
        assert "        return self.stock_service.level(sku)\n" in result

    def test_type_hints_and_alias(self, builder):
        result = _rewrite(
            builder,
            "from app.apps.inventory.stock.service import StockService as Stock\n"
            "\n\n"
            "def run(stock: Stock, other: 'Stock | None' = None) -> None:\n"
            "    stock.level('a')\n",
            inject_as=None,
        )
        assert result == (
            "from app.components.bridge_inventory.contract.stock_service_interface "
            "import StockServiceInterface as Stock\n"
            "\n\n"
            "def run(stock: Stock, other: 'Stock | None' = None) -> None:\n"
            "    stock.level('a')\n"
        )

    def test_string_annotation(self, builder):
        result = _rewrite(
            builder,
            IMPORT + "\n\ndef run(stock: 'StockService') -> None:\n    pass\n",
            inject_as=None,
        )
        assert "def run(stock: 'StockServiceInterface') -> None:\n" in result
        assert result.startswith(NEW_IMPORT)

    def test_other_names_in_import_are_kept(self, builder):
        builder.source("apps/inventory/stock/service.py", "class StockService:\n    pass\n\n\nSKU_LENGTH = 8\n")
        result = _rewrite(
            builder,
            "from app.apps.inventory.stock.service import SKU_LENGTH, StockService\n"
            "\n\n"
            "def run(stock: StockService) -> int:\n"
            "    return SKU_LENGTH\n",
            inject_as=None,
        )
        assert result.startswith(
            "from app.apps.inventory.stock.service import SKU_LENGTH\n" + NEW_IMPORT
        )

    def test_side_effect_imports_survive(self, builder):
        result = _rewrite(
            builder,
            "import app.apps.billing.signals  # noqa: F401  registers handlers\n"
            + IMPORT
            + "\n\ndef run(stock: StockService) -> None:\n    pass\n",
            inject_as=None,
        )
        assert result == (
            "import app.apps.billing.signals  # noqa: F401  registers handlers\n"
            + NEW_IMPORT
            + "\n\ndef run(stock: StockServiceInterface) -> None:\n    pass\n"
        )

    def test_unrelated_module_is_unchanged(self, builder):
        source = "import json\n\n\ndef run():\n    return json.dumps(1)\n"
        assert _rewrite(builder, source) == source

    def test_docstring_fields(self, entity_project):
        path = entity_project.root / "src/app/apps/billing/checkout/pricing.py"
        result = ConsumerRewrite(
            entity_project.project(),
            path,
            "app.apps.inventory.stock.entity.item.Item",
            "app.apps.inventory.stock.contracts.item_interface.ItemInterface",
            "ItemInterface",
        ).run(docstrings=True)
        assert result == (
            "from app.apps.inventory.stock.contracts.item_interface import ItemInterface\n"
            "\n"
            "\n"
            "def price_of(item: ItemInterface) -> int:\n"
            '    """Price of one item.\n'
            "\n"
            "    :type item: ItemInterface\n"
            "    :rtype: int\n"
            '    """\n'
            "    return 0\n"
        )

    @pytest.mark.parametrize(
        "body, reason",
        [
            ("stock = StockService()\n", "outside an instance method"),
            (
                "class Checkout:\n    @staticmethod\n    def make():\n        return StockService()\n",
                "outside an instance method",
            ),
            (
                "from dataclasses import dataclass\n\n\n@dataclass\nclass Checkout:\n"
                "    def total(self):\n        return StockService().level('a')\n",
                "Dataclass consumers",
            ),
            (
                "class Checkout(Base):\n    def total(self):\n        return StockService().level('a')\n",
                "has base classes and no constructor",
            ),
            ("StockServiceInterface = None\n\n\ndef run(s: StockService):\n    pass\n", "already bound"),
        ],
    )
    def test_blocked(self, builder, body, reason):
        with pytest.raises(FixBlocked, match=reason):
            _rewrite(builder, IMPORT + "\n\n" + body)

    def test_instantiation_without_injection_blocks(self, builder):
        with pytest.raises(FixBlocked, match="cannot be rewritten"):
            _rewrite(builder, IMPORT + "\n\nclass C:\n    def f(self):\n        StockService()\n", inject_as=None)
