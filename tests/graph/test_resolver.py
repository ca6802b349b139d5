"""Tests for capability resolution."""

from pathlib import Path

from capgate.graph.resolver import (
    STATUS_DEGRADED,
    STATUS_OK,
    STATUS_SAFE_MODE,
    rank_providers,
    resolve,
)
from capgate.registry.models import (
    App,
    AppRegistry,
    CapabilityProvider,
    Consumes,
    Manifest,
    ProviderRegistry,
    Provides,
)
from capgate.runtime import NOOP_PRIORITY


def _app(app_id, consumes=(), provides=()):
    path = Path("/project/src/app/apps") / app_id
    manifest = Manifest(app_id=app_id, name=app_id, mountpoint=None, consumes=consumes, provides=provides)
    return App(folder=app_id, path=path, manifest_path=path / "manifest.py", manifest=manifest)


def _provider(name, priority=0, capability="mail.sender"):
    return CapabilityProvider(capability_id=capability, contract="x.MailerInterface", class_name=name, priority=priority)


def _status(consume, providers):
    graph = resolve(AppRegistry(apps=(_app("billing", consumes=(consume,)),)), ProviderRegistry(tuple(providers)))
    return graph.app("billing")


class TestRanking:
    """Test provider ranking."""

    def test_priority_then_class_name(self):
        ranked = rank_providers([_provider("b.B", 0), _provider("a.A", 0), _provider("c.C", 5)])
        assert [p.class_name for p in ranked] == ["c.C", "a.A", "b.B"]


class TestResolve:
    """Test per-app status."""

    def test_required_without_provider_is_safe_mode(self):
        resolved = _status(Consumes("mail.sender"), [])
        assert resolved.status == STATUS_SAFE_MODE
        assert resolved.missing_required == ["mail.sender"]

    def test_optional_without_provider_is_degraded(self):
        resolved = _status(Consumes("mail.sender", required=False), [])
        assert resolved.status == STATUS_DEGRADED
        assert resolved.missing_optional == ["mail.sender"]

    def test_only_noop_is_degraded(self):
        resolved = _status(Consumes("mail.sender"), [_provider("x.Null", NOOP_PRIORITY)])
        assert resolved.status == STATUS_DEGRADED
        assert resolved.degraded == ["mail.sender"]

    def test_real_provider_beats_noop(self):
        resolved = _status(Consumes("mail.sender"), [_provider("x.Null", NOOP_PRIORITY), _provider("x.Smtp")])
        assert resolved.status == STATUS_OK
        assert resolved.consumes[0].winner.class_name == "x.Smtp"
        assert [p.class_name for p in resolved.consumes[0].providers] == ["x.Smtp", "x.Null"]

    def test_no_consumes_is_ok(self):
        graph = resolve(AppRegistry(apps=(_app("billing"),)), ProviderRegistry())
        assert graph.app("billing").status == STATUS_OK
        assert graph.app("missing") is None

    def test_contract_falls_back_to_winner(self):
        resolved = _status(Consumes("mail.sender"), [_provider("x.Smtp")])
        assert resolved.consumes[0].contract == "x.MailerInterface"
        resolved = _status(Consumes("mail.sender", contract="y.Other"), [_provider("x.Smtp")])
        assert resolved.consumes[0].contract == "y.Other"

    def test_provides_name_real_provider(self):
        app = _app("mail", provides=(Provides("mail.sender", "x.MailerInterface"),))
        graph = resolve(
            AppRegistry(apps=(app,)),
            ProviderRegistry((_provider("x.Null", NOOP_PRIORITY), _provider("x.Smtp"))),
        )
        assert graph.app("mail").provides == (
            {"capabilityId": "mail.sender", "contract": "x.MailerInterface", "provider": "x.Smtp"},
        )
