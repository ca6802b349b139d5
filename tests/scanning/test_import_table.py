"""Tests for import resolution."""

import ast

from capgate.scanning.names import ImportTable, dotted_name, resolve_relative


def _table(code, module="app.apps.billing.checkout.service", is_package=False):
    return ImportTable.from_tree(ast.parse(code), module, is_package)


class TestResolveRelative:
    """Test resolve_relative."""

    def test_absolute(self):
        assert resolve_relative("a.b", 0, "x.y", False) == "x.y"

    def test_sibling_module(self):
        assert resolve_relative("a.b.c", 1, "d", False) == "a.b.d"

    def test_parent_package(self):
        assert resolve_relative("a.b.c", 2, "d", False) == "a.d"

    def test_from_package_init(self):
        """In a package __init__ one dot is the package itself."""
        assert resolve_relative("a.b", 1, "c", True) == "a.b.c"

    def test_too_many_dots(self):
        assert resolve_relative("a.b", 4, "c", False) is None

    def test_unknown_module(self):
        assert resolve_relative(None, 1, "c", False) is None


class TestImportTable:
    """Test ImportTable bindings."""

    def test_from_import(self):
        table = _table("from app.apps.inventory.stock.service import StockService as Stock\n")
        assert table.get("Stock") == "app.apps.inventory.stock.service.StockService"

    def test_dotted_import_binds_head(self):
        table = _table("import app.apps.inventory\n")
        assert table.resolve_dotted("app.apps.inventory.stock.Thing") == "app.apps.inventory.stock.Thing"

    def test_relative_import(self):
        table = _table("from ..stock import service\n", module="app.apps.inventory.checkout.api")
        assert table.get("service") == "app.apps.inventory.stock.service"

    def test_resolve_attribute_chain(self):
        table = _table("from app.apps.inventory import stock\n")
        node = ast.parse("stock.service.StockService", mode="eval").body
        assert table.resolve(node) == "app.apps.inventory.stock.service.StockService"

    def test_unknown_name(self):
        node = ast.parse("self.thing", mode="eval").body
        assert _table("import os\n").resolve(node) is None

    def test_local_names_for(self):
        table = _table("from app.apps.inventory.stock import service\nfrom app.apps.inventory.stock.service import StockService\n")
        assert table.local_names_for("app.apps.inventory.stock.service.StockService") == [
            "service.StockService",
            "StockService",
        ]

    def test_dotted_name(self):
        assert dotted_name(ast.parse("a.b.c", mode="eval").body) == "a.b.c"
        assert dotted_name(ast.parse("a().b", mode="eval").body) is None
