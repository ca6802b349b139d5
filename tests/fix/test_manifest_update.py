"""Tests for idempotent manifest edits."""

import pytest

from capgate.exceptions import FixBlocked
from capgate.fix.crossing.manifest_update import upsert_consumes, upsert_provides
from capgate.registry.manifest import read_manifest_data

CAPABILITY = "bridge.inventory.stock-service"
CONTRACT = "app.components.bridge_inventory.contract.stock_service_interface.StockServiceInterface"


def _data(path, source):
    path.write_text(source, encoding="utf-8")
    return read_manifest_data(path)[0]


class TestUpsertProvides:
    """Test upsert_provides."""

    def test_adds_entry_once(self, builder):
        path = builder.app("inventory")
        source = upsert_provides(path, CAPABILITY, CONTRACT)
        assert _data(path, source)["provides"] == [{"capabilityId": CAPABILITY, "contract": CONTRACT}]
        assert upsert_provides(path, CAPABILITY, CONTRACT) is None

    def test_incompatible_contract(self, builder):
        path = builder.app("inventory", provides=({"capabilityId": CAPABILITY, "contract": "x.Other"},))
        with pytest.raises(FixBlocked, match="incompatible contract"):
            upsert_provides(path, CAPABILITY, CONTRACT)

    def test_invalid_manifest(self, builder):
        path = builder.write("src/app/apps/inventory/manifest.py", "MANIFEST = make()\n")
        with pytest.raises(FixBlocked, match="Provider manifest invalid"):
            upsert_provides(path, CAPABILITY, CONTRACT)

    def test_rest_of_file_is_kept(self, builder):
        path = builder.write(
            "src/app/apps/inventory/manifest.py",
            '# inventory app\nMANIFEST = {"appId": "inventory", "name": "I", "mountpoint": None, "consumes": []}\n',
        )
        source = upsert_provides(path, CAPABILITY, CONTRACT)
        assert source.startswith("# inventory app\nMANIFEST = {\n")


class TestUpsertConsumes:
    """Test upsert_consumes."""

    def test_adds_required_entry(self, builder):
        path = builder.app("billing")
        source = upsert_consumes(path, CAPABILITY, CONTRACT)
        assert _data(path, source)["consumes"] == [
            {"capabilityId": CAPABILITY, "required": True, "contract": CONTRACT}
        ]
        assert upsert_consumes(path, CAPABILITY, CONTRACT) is None

    def test_bare_string_is_expanded(self, builder):
        path = builder.app("billing", consumes=("mail.sender", CAPABILITY))
        data = _data(path, upsert_consumes(path, CAPABILITY, CONTRACT))
        assert data["consumes"] == [
            "mail.sender",
            {"capabilityId": CAPABILITY, "required": True, "contract": CONTRACT},
        ]

    def test_contract_added_to_existing_entry(self, builder):
        path = builder.app("billing", consumes=({"capabilityId": CAPABILITY, "required": False},))
        data = _data(path, upsert_consumes(path, CAPABILITY, CONTRACT))
        assert data["consumes"] == [{"capabilityId": CAPABILITY, "required": False, "contract": CONTRACT}]

    def test_incompatible_contract(self, builder):
        path = builder.app("billing", consumes=({"capabilityId": CAPABILITY, "contract": "x.Other"},))
        with pytest.raises(FixBlocked, match="incompatible contract"):
            upsert_consumes(path, CAPABILITY, CONTRACT)
