"""Shared test fixtures: small analyzed projects written to tmp_path."""

import textwrap
from pathlib import Path
from typing import Optional

import pytest

from capgate.config import CapgateConfig
from capgate.project import Project
from capgate.registry.manifest import render_literal


class ProjectBuilder:
    """Writes an analyzed project below one root directory."""

    def __init__(self, root: Path):
        self.root = root
        (root / "src" / "app" / "apps").mkdir(parents=True)
        (root / "src" / "app" / "components").mkdir(parents=True)

    def write(self, rel: str, text: str = "") -> Path:
        path = self.root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
        return path

    def source(self, rel: str, text: str = "") -> Path:
        """Write a module below ``src/app``."""
        return self.write(f"src/app/{rel}", text)

    def app(
        self,
        folder: str,
        app_id: Optional[str] = None,
        consumes: tuple = (),
        provides: tuple = (),
        mountpoint: Optional[str] = "default",
        **extra,
    ) -> Path:
        app_id = app_id or folder
        data = {
            "appId": app_id,
            "name": app_id.title(),
            "mountpoint": f"/{app_id}" if mountpoint == "default" else mountpoint,
            "consumes": list(consumes),
            "provides": list(provides),
        }
        data.update(extra)
        return self.write(f"src/app/apps/{folder}/manifest.py", f"MANIFEST = {render_literal(data)}\n")

    def read(self, rel: str) -> str:
        return (self.root / rel).read_text(encoding="utf-8")

    def exists(self, rel: str) -> bool:
        return (self.root / rel).exists()

    def project(self, **config) -> Project:
        return Project.at(self.root, CapgateConfig(**config))


@pytest.fixture
def builder(tmp_path):
    """Empty analyzed project with apps/ and components/ packages."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def crossing_project(builder):
    """Billing instantiates an Inventory service directly."""
    builder.app("inventory")
    builder.app("billing")
    builder.source(
        "apps/inventory/stock/service.py",
        """
        class StockService:
            def level(self, sku: str) -> int:
                return 0

            def reserve(self, sku: str, quantity: int = 1) -> bool:
                return True
        """,
    )
    builder.source(
        "apps/billing/checkout/service.py",
        """
        from app.apps.inventory.stock.service import StockService


        class Checkout:
            def __init__(self):
                self.stock_service = StockService()

            def total(self, sku: str) -> int:
                return self.stock_service.level(sku)
        """,
    )
    return builder


@pytest.fixture
def entity_project(builder):
    """Billing type-hints an Inventory entity."""
    builder.app("inventory")
    builder.app("billing")
    builder.source(
        "apps/inventory/stock/entity/item.py",
        """
        from capgate.runtime import BaseEntity


        class Item(BaseEntity):
            __tablename__ = "app_inventory__stock__item"
        """,
    )
    builder.source(
        "apps/billing/checkout/pricing.py",
        '''
        from app.apps.inventory.stock.entity.item import Item


        def price_of(item: Item) -> int:
            """Price of one item.

            :type item: Item
            :rtype: int
            """
            return 0
        ''',
    )
    return builder
