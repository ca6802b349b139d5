"""Tests for the doctor."""

from capgate.graph.doctor import Doctor, render_apps_markdown
from capgate.registry.discovery import discover_apps
from capgate.registry.providers import discover_providers
from capgate.scanning.source import SourceIndex

PROVIDER = """
from capgate.runtime import provider


class MailerInterface:
    pass


@provider(capability="mail.sender", contract=MailerInterface, priority={priority})
class Mailer(MailerInterface):
    pass
"""


def _run(builder):
    project = builder.project()
    apps = discover_apps(project)
    providers = discover_providers(SourceIndex(project))
    return Doctor(project, apps, providers).run()


class TestDoctor:
    """Test Doctor.run."""

    def test_consumer_with_provider_is_ok(self, builder):
        builder.app("billing", consumes=[{"capabilityId": "mail.sender", "required": True}])
        builder.app("mail", provides=[{"capabilityId": "mail.sender", "contract": "app.apps.mail.smtp.MailerInterface"}])
        builder.source("apps/mail/smtp.py", PROVIDER.format(priority=0))
        result = _run(builder)
        assert result.status_of("billing") == "OK"
        assert result.status_of("mail") == "OK"
        assert result.findings == []

    def test_missing_required_provider(self, builder):
        builder.app("billing", consumes=["mail.sender"])
        result = _run(builder)
        assert result.status_of("billing") == "SAFE_MODE"
        assert result.apps["billing"]["missingRequired"] == ["mail.sender"]
        (finding,) = result.findings
        assert finding.rule_key == "CAPGATE.CONSUME.REQUIRED.MISSING_PROVIDER"
        assert finding.location.file == "src/app/apps/billing/manifest.py"

    def test_missing_optional_provider_is_warning(self, builder):
        builder.app("billing", consumes=[{"capabilityId": "mail.sender", "required": False}])
        result = _run(builder)
        assert result.status_of("billing") == "DEGRADED"
        (finding,) = result.findings
        assert finding.severity == "WARNING"

    def test_noop_only(self, builder):
        builder.app("billing", consumes=["mail.sender"])
        builder.source(
            "components/mail/null.py",
            PROVIDER.format(priority="NOOP_PRIORITY").replace("import provider", "import NOOP_PRIORITY, provider"),
        )
        result = _run(builder)
        assert result.status_of("billing") == "DEGRADED"
        assert result.apps["billing"]["degraded"] == ["mail.sender"]

    def test_apps_markdown(self, builder):
        builder.app("billing", consumes=["mail.sender"])
        text = render_apps_markdown(_run(builder))
        assert "| billing | SAFE_MODE | mail.sender | - | - |" in text
