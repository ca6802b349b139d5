"""Tests for generated bridge sources."""

import ast
from dataclasses import replace

import pytest

from capgate.fix.crossing import CrossingFixer
from capgate.fix.crossing.codegen import (
    default_value,
    render_adapter,
    render_contract,
    render_dto,
    render_entity_interface,
    render_noop,
)
from capgate.fix.crossing.models import DtoSpec, Param, Signature
from capgate.fix.crossing.types import BUILTIN, CLASS, DATETIME, NONE_TYPE, TypeRef
from capgate.fix.selection import FixSelection

STR = TypeRef(BUILTIN, "str", "str")
BOOL = TypeRef(BUILTIN, "bool", "bool")
DATETIME_REF = TypeRef(DATETIME, "datetime", "datetime", fqn="datetime.datetime", imports=(("datetime", "datetime"),))


@pytest.fixture
def service_target(crossing_project):
    items = CrossingFixer(crossing_project.project()).plan(FixSelection())
    return items[0].target


class TestRenderContract:
    """Test render_contract."""

    def test_called_methods_only(self, service_target):
        text = render_contract(service_target.names, service_target.signatures)
        assert text == (
            '"""Contract of the bridge.inventory.stock-service capability."""\n'
            "\n"
            "from abc import ABC, abstractmethod\n"
            "\n"
            "\n"
            "class StockServiceInterface(ABC):\n"
            "    @abstractmethod\n"
            "    def level(self, sku: str) -> int: ...\n"
        )

    def test_empty_contract(self, service_target):
        text = render_contract(service_target.names, ())
        assert "from abc import ABC\n" in text
        assert text.endswith("class StockServiceInterface(ABC):\n    pass\n")


class TestRenderNoop:
    """Test render_noop."""

    def test_noop(self, service_target):
        text = render_noop(service_target.names, service_target.signatures)
        ast.parse(text)
        assert "from capgate.runtime import NOOP_PRIORITY, provider\n" in text
        assert (
            "from app.components.bridge_inventory.contract.stock_service_interface import StockServiceInterface\n"
            in text
        )
        assert (
            '@provider(capability="bridge.inventory.stock-service", contract=StockServiceInterface, '
            "priority=NOOP_PRIORITY)\n"
            "class StockServiceInterfaceNoOp(StockServiceInterface):\n" in text
        )
        assert "    def level(self, sku: str) -> int:\n        return 0\n" in text

    def test_datetime_default_imports(self, service_target):
        signature = Signature("since", (), DATETIME_REF)
        text = render_noop(service_target.names, (signature,))
        assert "from datetime import datetime, timezone\n" in text
        assert "return datetime.fromtimestamp(0, tz=timezone.utc)" in text


class TestRenderAdapter:
    """Test render_adapter."""

    def test_adapter(self, service_target):
        text = render_adapter(service_target)
        ast.parse(text)
        assert "from app.apps.inventory.stock.service import StockService\n" in text
        assert "priority=0)\nclass StockServiceInterfaceAdapter(StockServiceInterface):\n" in text
        assert "    def __init__(self, delegate: StockService):\n        self._delegate = delegate\n" in text
        assert "    def level(self, sku: str) -> int:\n        return self._delegate.level(sku)\n" in text

    def test_keyword_only_and_async(self, service_target):
        signature = Signature(
            "sync",
            (Param("sku", STR), Param("force", BOOL, "False", keyword_only=True)),
            NONE_TYPE,
            is_async=True,
        )
        text = render_adapter(replace(service_target, signatures=(signature,)))
        ast.parse(text)
        assert "    async def sync(self, sku: str, *, force: bool = False) -> None:\n" in text
        assert "        return await self._delegate.sync(sku, force=force)\n" in text

    def test_dto_mapper(self, service_target):
        dto = DtoSpec(
            source_fqn="app.apps.inventory.stock.service.Stock",
            class_name="StockDto",
            module="app.components.bridge_inventory.dto.stock_dto",
            fields=(("sku", STR),),
        )
        returns = TypeRef(CLASS, "StockDto", "StockDto", nullable=True, fqn=dto.fqn, imports=((dto.module, "StockDto"),))
        signature = Signature("find", (Param("sku", STR),), returns, dto=dto)
        text = render_adapter(replace(service_target, signatures=(signature,), dtos=(dto,)))
        ast.parse(text)
        assert "from app.components.bridge_inventory.dto.stock_dto import StockDto\n" in text
        assert "from app.apps.inventory.stock.service import Stock, StockService\n" in text
        assert "        return self._to_stock_dto(self._delegate.find(sku))\n" in text
        assert "    def _to_stock_dto(value: Stock | None) -> StockDto | None:\n" in text
        assert "            sku=value.sku,\n" in text


class TestRenderDto:
    """Test render_dto."""

    def test_dto(self):
        dto = DtoSpec(
            source_fqn="app.apps.inventory.stock.service.Stock",
            class_name="StockDto",
            module="app.components.bridge_inventory.dto.stock_dto",
            fields=(("sku", STR), ("at", DATETIME_REF)),
        )
        assert render_dto(dto) == (
            '"""Boundary copy of Stock."""\n'
            "\n"
            "from dataclasses import dataclass\n"
            "from datetime import datetime\n"
            "\n"
            "\n"
            "@dataclass(frozen=True)\n"
            "class StockDto:\n"
            "    sku: str\n"
            "    at: datetime\n"
        )


class TestRenderEntityInterface:
    """Test render_entity_interface."""

    def test_protocol(self, entity_project):
        items = CrossingFixer(entity_project.project()).plan(FixSelection())
        text = render_entity_interface(items[0].target)
        ast.parse(text)
        assert "from typing import Protocol\n" in text
        assert "class ItemInterface(Protocol):\n" in text
        assert "    def get_id(self) -> str: ...\n" in text


class TestDefaultValue:
    """Test default_value."""

    @pytest.mark.parametrize(
        "type_ref, expected",
        [
            (None, "None"),
            (STR, '""'),
            (TypeRef(BUILTIN, "list", "list[int]"), "[]"),
            (TypeRef(BUILTIN, "str", "str", nullable=True), "None"),
            (TypeRef(BUILTIN, "Any", "Any"), "None"),
            (TypeRef(DATETIME, "date", "date"), "date(1970, 1, 1)"),
            (NONE_TYPE, "None"),
        ],
    )
    def test_values(self, type_ref, expected):
        assert default_value(type_ref) == expected
