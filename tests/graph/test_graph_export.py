"""Tests for the graph export."""

import json

from capgate.graph.export import graph_payload, render_markdown, render_mermaid, write_graph
from capgate.verifier import Verifier

PROVIDER = """
from capgate.runtime import provider


class MailerInterface:
    pass


@provider(capability="mail.sender", contract=MailerInterface)
class Mailer(MailerInterface):
    pass
"""


def _project(builder):
    builder.app("billing", consumes=["mail.sender", {"capabilityId": "sms.sender", "required": False}])
    builder.app("mail", provides=[{"capabilityId": "mail.sender", "contract": "app.apps.mail.smtp.MailerInterface"}])
    builder.source("apps/mail/smtp.py", PROVIDER)
    return builder.project()


class TestGraphExport:
    """Test payload, markdown and mermaid rendering."""

    def test_payload(self, builder):
        payload = graph_payload(Verifier(_project(builder)).graph(), generated_at="2026-01-01T00:00:00+00:00")
        consumes = payload["apps"]["billing"]["consumes"]
        assert consumes[0]["winner"] == {
            "className": "app.apps.mail.smtp.Mailer",
            "contract": "app.apps.mail.smtp.MailerInterface",
            "priority": 0,
        }
        assert consumes[1]["winner"] is None
        assert payload["apps"]["mail"]["provides"][0]["provider"] == "app.apps.mail.smtp.Mailer"

    def test_markdown(self, builder):
        payload = graph_payload(Verifier(_project(builder)).graph(), generated_at="now")
        text = render_markdown(payload)
        assert "- mail.sender (required) -> app.apps.mail.smtp.Mailer" in text
        assert "- sms.sender (optional) -> MISSING" in text
        assert "```mermaid" not in text

    def test_mermaid(self, builder):
        payload = graph_payload(Verifier(_project(builder)).graph(), generated_at="now")
        chart = render_mermaid(payload)
        assert chart.startswith("flowchart LR")
        assert "app_billing --> cap_mail_sender" in chart
        assert "app_billing -.-> cap_sms_sender" in chart
        assert "cap_mail_sender -- winner --> prov_app_apps_mail_smtp_Mailer" in chart

    def test_write_graph(self, builder):
        project = _project(builder)
        json_path, md_path = write_graph(project, Verifier(project).graph(), mermaid=True)
        assert json_path == project.state_dir / "graph" / "latest.json"
        data = json.loads(json_path.read_text())
        assert set(data["apps"]) == {"billing", "mail"}
        assert data["mermaid"].startswith("flowchart LR")
        assert "```mermaid" in md_path.read_text()

    def test_empty_project(self, builder):
        payload = graph_payload(Verifier(builder.project()).graph(), generated_at="now")
        assert "No apps discovered." in render_markdown(payload)
