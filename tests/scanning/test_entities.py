"""Tests for entity recognition and the base-class scanner."""

import ast

from capgate.report.models import Severity
from capgate.scanning.base_class import RULE_KEY, BaseClassScanner
from capgate.scanning.entities import entity_classes, join_tables
from capgate.scanning.names import ImportTable
from capgate.scanning.source import SourceIndex


def _entities(code):
    tree = ast.parse(code)
    return entity_classes(tree, ImportTable.from_tree(tree, "m"))


class TestEntityRecognition:
    """Test which classes count as entities."""

    def test_tablename(self):
        (entity,) = _entities("class A:\n    __tablename__ = 'a'\n")
        assert entity.table_name == "a"

    def test_decorator(self):
        (entity,) = _entities("from capgate.runtime import entity\n\n@entity\nclass A:\n    pass\n")
        assert entity.table_name is None
        assert not entity.declares_table

    def test_base_entity(self):
        (entity,) = _entities("from capgate.runtime import BaseEntity\n\nclass A(BaseEntity):\n    pass\n")
        assert entity.bases == ("capgate.runtime.BaseEntity",)

    def test_abstract_is_skipped(self):
        assert _entities("class A:\n    __abstract__ = True\n    __tablename__ = 'a'\n") == []

    def test_plain_class(self):
        assert _entities("class A:\n    x = 1\n") == []

    def test_non_literal_tablename(self):
        (entity,) = _entities("class A:\n    __tablename__ = PREFIX + 'a'\n")
        assert entity.declares_table
        assert entity.table_name is None

    def test_join_tables(self):
        tree = ast.parse("from sqlalchemy import Table\nt = Table('x', meta)\nu = Table(name, meta)\n")
        assert [name for _, name in join_tables(tree, ImportTable.from_tree(tree, "m"))] == ["x", None]


class TestBaseClassScanner:
    """Test BaseClassScanner."""

    def test_missing_base(self, builder):
        builder.source("apps/billing/checkout/entity/order.py", "class Order:\n    __tablename__ = 'x'\n")
        (finding,) = BaseClassScanner().scan(SourceIndex(builder.project()))
        assert finding.rule_key == RULE_KEY
        assert finding.severity == Severity.BLOCKER
        assert finding.location.symbol == "app.apps.billing.checkout.entity.order.Order"

    def test_base_entity_passes(self, builder):
        builder.source(
            "apps/billing/checkout/entity/order.py",
            "from capgate.runtime import BaseEntity\n\n\nclass Order(BaseEntity):\n    __tablename__ = 'x'\n",
        )
        assert BaseClassScanner().scan(SourceIndex(builder.project())) == []

    def test_mixin_escape_hatch_is_warning(self, builder):
        builder.source(
            "apps/billing/checkout/entity/order.py",
            """
            from capgate.runtime import EntityInterface, EntityMixin


            class Order(EntityMixin, EntityInterface):
                __tablename__ = "x"
            """,
        )
        (finding,) = BaseClassScanner().scan(SourceIndex(builder.project()))
        assert finding.severity == Severity.WARNING
        assert finding.primary.endswith("|mixin-exception")
