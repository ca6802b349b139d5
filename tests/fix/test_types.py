"""Tests for bridge type parsing."""

import ast
import textwrap

import pytest

from capgate.fix.crossing.types import BUILTIN, CLASS, DATETIME, NONE, TypeResolver
from capgate.scanning.names import ImportTable

HEADER = """
import datetime
from typing import Any, Dict, List, Optional, Union

from app.apps.inventory.stock.entity.item import Item


class Local:
    pass

"""


def _parse(annotation: str):
    source = textwrap.dedent(HEADER) + f"\ndef f(x: {annotation}):\n    pass\n"
    tree = ast.parse(source)
    resolver = TypeResolver(ImportTable.from_tree(tree, "app.apps.inventory.stock.service"), "app.apps.inventory.stock.service", tree)
    function = tree.body[-1]
    return resolver.parse(function.args.args[0].annotation)


class TestParseType:
    """Test parse_type."""

    @pytest.mark.parametrize(
        "annotation, rendered",
        [
            ("str", "str"),
            ("int", "int"),
            ("list[int]", "list[int]"),
            ("dict[str, float]", "dict[str, float]"),
            ("tuple[int, ...]", "tuple[int, ...]"),
            ("List[str]", "list[str]"),
            ("Any", "Any"),
        ],
    )
    def test_builtin(self, annotation, rendered):
        ref = _parse(annotation)
        assert ref.kind == BUILTIN
        assert ref.render() == rendered

    @pytest.mark.parametrize("annotation", ["Optional[str]", "Union[str, None]", "str | None", "'str | None'"])
    def test_nullable_forms_normalize(self, annotation):
        ref = _parse(annotation)
        assert ref.nullable
        assert ref.render() == "str | None"

    def test_none(self):
        assert _parse("None").kind == NONE

    def test_datetime(self):
        ref = _parse("datetime.datetime")
        assert ref.kind == DATETIME
        assert ref.render() == "datetime"
        assert ref.imports == (("datetime", "datetime"),)

    def test_imported_class(self):
        ref = _parse("Item")
        assert ref.kind == CLASS
        assert ref.fqn == "app.apps.inventory.stock.entity.item.Item"
        assert not ref.is_plain

    def test_local_class(self):
        ref = _parse("Optional[Local]")
        assert ref.fqn == "app.apps.inventory.stock.service.Local"
        assert ref.nullable

    @pytest.mark.parametrize(
        "annotation",
        ["Union[int, str]", "int | str", "list[Item]", "Dict[str, Item]", "Unknown", "Callable[[], int]"],
    )
    def test_unsupported(self, annotation):
        assert _parse(annotation) is None

    def test_missing_annotation(self):
        tree = ast.parse("def f(x):\n    pass\n")
        resolver = TypeResolver(ImportTable.from_tree(tree, "m"), "m", tree)
        assert resolver.parse(tree.body[0].args.args[0].annotation) is None
