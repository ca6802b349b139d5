"""Tests for pruning imports after a rewrite."""

import ast

from capgate.fix.imports import ImportPruner, exported_names, used_names


def _prune(builder, source, prune_unresolvable=False, name="service.py"):
    path = builder.source(f"apps/billing/checkout/{name}", source)
    return ImportPruner(builder.project(), prune_unresolvable).prune(path.read_text(), path)


class TestImportPruner:
    """Test ImportPruner.prune."""

    def test_unused_import_removed(self, builder):
        result = _prune(builder, "import os\nimport sys\n\nprint(sys.argv)\n")
        assert result == "import sys\n\nprint(sys.argv)\n"

    def test_partial_from_import(self, builder):
        result = _prune(builder, "from os import path, sep\n\nprint(sep)\n")
        assert result == "from os import sep\n\nprint(sep)\n"

    def test_string_annotations_count_as_use(self, builder):
        source = "from decimal import Decimal\n\n\ndef f(x: 'Decimal') -> None:\n    pass\n"
        assert _prune(builder, source) == source

    def test_future_and_all_are_kept(self, builder):
        source = "from __future__ import annotations\n\nfrom os import sep\n\n__all__ = ['sep']\n"
        assert _prune(builder, source) == source

    def test_package_init_untouched(self, builder):
        source = "from os import sep\n"
        assert _prune(builder, source, name="__init__.py") == source

    def test_shared_line_becomes_pass(self, builder):
        result = _prune(builder, "x = 1; import os\n")
        assert result == "x = 1; pass\n"

    def test_only_imports_used_before_are_pruned(self, builder):
        source = "import signals  # noqa: F401\nimport os\nimport sys\n\nprint(sys.argv)\n"
        path = builder.source("apps/billing/checkout/service.py", source)
        result = ImportPruner(builder.project()).prune(source, path, previously_used={"os", "sys", "print"})
        assert result == "import signals  # noqa: F401\nimport sys\n\nprint(sys.argv)\n"

    def test_unresolvable_import_kept_by_default(self, builder):
        source = "from app.apps.billing.gone import Thing\n\nThing()\n"
        assert _prune(builder, source) == source

    def test_unresolvable_import_pruned_on_request(self, builder):
        source = "from app.apps.billing.gone import Thing\nimport json\n\nThing()\njson.dumps(1)\n"
        assert _prune(builder, source, prune_unresolvable=True) == "import json\n\nThing()\njson.dumps(1)\n"

    def test_project_module_definition_is_checked(self, builder):
        builder.source("apps/billing/checkout/model.py", "class Cart:\n    pass\n")
        source = "from app.apps.billing.checkout.model import Cart, Gone\n\nCart()\nGone()\n"
        result = _prune(builder, source, prune_unresolvable=True)
        assert result == "from app.apps.billing.checkout.model import Cart\n\nCart()\nGone()\n"


class TestHelpers:
    """Test used_names and exported_names."""

    def test_used_names(self):
        tree = ast.parse("x = 1\nprint(y)\n")
        assert used_names(tree) >= {"print", "y"}
        assert "x" not in used_names(tree)

    def test_exported_names(self):
        assert exported_names(ast.parse("__all__ = ('a', 'b')\n")) == {"a", "b"}
        assert exported_names(ast.parse("__all__ = make()\n")) == set()
