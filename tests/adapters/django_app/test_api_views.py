"""
Testes da API JSON do help desk.

Usa o Django test client com os headers injetados pelo gateway
de autenticação (X-Principal-Id, X-Principal-Email, X-Principal-Name).

Coverage:
- Sessão e perfil
- Ciclo do ticket (abrir, atribuir, responder, resolver)
- Mapeamento de erros: 400, 401, 403, 404, 409
- Notificações e relatórios
"""

import json

import pytest

from campusdesk.adapters.django_app.helpdesk.repositories import DjangoTicketRepository
from campusdesk.core.shared.exceptions import ConflictError


TICKET = {
    "type": "IT Support",
    "subject": "Printer jam",
    "description": "Printer in room 12 keeps jamming",
}


@pytest.fixture
def api(client, container):
    """
    Executa uma chamada na API como `principal`.

    Example:
        response = api("post", "/api/tickets/", data=TICKET)
    """

    def call(method, path, principal="alice", data=None):
        kwargs = {}
        if principal:
            kwargs.update(
                HTTP_X_PRINCIPAL_ID=principal,
                HTTP_X_PRINCIPAL_EMAIL=f"{principal}@school.edu",
                HTTP_X_PRINCIPAL_NAME=principal.title(),
            )
        if data is not None:
            kwargs.update(data=json.dumps(data), content_type="application/json")
        return getattr(client, method)(path, **kwargs)

    return call


@pytest.fixture
def promote(api, container):
    """Altera o papel de um principal pelo endpoint administrativo."""
    container.bootstrap_admin_service().execute("admin", "admin@school.edu")

    def run(principal_id, role):
        api("get", "/api/session/", principal=principal_id)
        response = api(
            "post", f"/api/principals/{principal_id}/role/", principal="admin", data={"role": role}
        )
        assert response.status_code == 200, response.json()

    return run


@pytest.fixture
def filed(api):
    response = api("post", "/api/tickets/", data=TICKET)
    assert response.status_code == 201
    return response.json()["data"]


class TestSessionAPI:

    def test_missing_identity_is_unauthenticated(self, api):
        response = api("get", "/api/session/", principal=None)

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_first_login_registers_staff(self, api):
        response = api("get", "/api/session/")

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["principal"]["id"] == "alice"
        assert data["principal"]["role"] == "staff"

    def test_update_profile(self, api):
        response = api("patch", "/api/me/", data={"display_name": "Alice Doe", "department": "Math"})

        assert response.status_code == 200
        profile = api("get", "/api/me/").json()["data"]
        assert profile["display_name"] == "Alice Doe"
        assert profile["department"] == "Math"

    def test_health(self, client):
        assert client.get("/health/").json() == {"status": "ok"}


class TestTicketAPI:

    def test_file_ticket(self, api, filed):
        assert filed["number"].startswith("ECPS-")
        assert filed["status"] == "Open"
        assert filed["category"] == "Hardware"

        listing = api("get", "/api/tickets/").json()
        assert listing["meta"]["total"] == 1
        assert [item["id"] for item in listing["data"]] == [filed["id"]]

    def test_invalid_payload(self, api):
        response = api("post", "/api/tickets/", data={**TICKET, "subject": "   "})

        body = response.json()
        assert response.status_code == 400
        assert body["meta"]["field"] == "subject"

    def test_malformed_json(self, api, client):
        response = client.post(
            "/api/tickets/",
            data="{not json",
            content_type="application/json",
            HTTP_X_PRINCIPAL_ID="alice",
        )

        assert response.status_code == 400

    def test_invalid_page_param(self, api):
        response = api("get", "/api/tickets/?page=abc")

        assert response.status_code == 400
        assert response.json()["meta"]["field"] == "page"

    @pytest.mark.parametrize("field, value", [
        ("type", 5),
        ("subject", 123),
        ("description", ["text"]),
        ("priority", {"level": "High"}),
        ("attachments", "abc"),
        ("attachments", ["https://files.school.edu/a.png", 7]),
    ])
    def test_wrong_json_types_rejected(self, api, field, value):
        """Deve responder 400 para tipos JSON inválidos, sem criar ticket."""
        response = api("post", "/api/tickets/", data={**TICKET, field: value})

        assert response.status_code == 400
        assert response.json()["meta"]["field"] == field
        assert api("get", "/api/tickets/").json()["meta"]["total"] == 0

    def test_message_body_must_be_text(self, api, filed):
        url = f"/api/tickets/{filed['id']}/messages/"

        response = api("post", url, data={"body": 42})
        flag = api("post", url, data={"body": "ok", "internal": "false"})

        assert response.status_code == 400
        assert response.json()["meta"]["field"] == "body"
        assert flag.status_code == 400
        assert api("get", url).json()["meta"]["total"] == 0

    def test_foreign_ticket_forbidden(self, api, filed):
        response = api("get", f"/api/tickets/{filed['id']}/", principal="carol")

        assert response.status_code == 403

    def test_unknown_ticket_not_found(self, api):
        response = api("get", "/api/tickets/missing/")

        assert response.status_code == 404

    def test_staff_cannot_transition(self, api, filed):
        response = api(
            "post", f"/api/tickets/{filed['id']}/transition/", data={"status": "Resolved"}
        )

        assert response.status_code == 403

    def test_invalid_status(self, api, promote, filed):
        promote("bob", "agent")

        response = api(
            "post", f"/api/tickets/{filed['id']}/transition/",
            principal="bob", data={"status": "Escalated"},
        )

        assert response.status_code == 400
        assert api("get", f"/api/tickets/{filed['id']}/").json()["data"]["status"] == "Open"

    def test_agent_lifecycle(self, api, promote, filed):
        """Deve atribuir, responder e resolver com trilha de auditoria."""
        promote("bob", "agent")
        ticket_url = f"/api/tickets/{filed['id']}"

        assigned = api("post", f"{ticket_url}/assign-to-me/", principal="bob").json()["data"]
        reply = api("post", f"{ticket_url}/messages/", principal="bob", data={"body": "On our way"})
        api("post", f"{ticket_url}/messages/", principal="bob", data={"body": "check cable", "internal": True})
        resolved = api(
            "post", f"{ticket_url}/transition/", principal="bob", data={"status": "Resolved"}
        ).json()["data"]

        assert assigned["assigned_to"] == "bob"
        assert assigned["status"] == "In Progress"
        assert reply.status_code == 201
        assert resolved["status"] == "Resolved"

        staff_view = api("get", f"{ticket_url}/messages/").json()["data"]
        agent_view = api("get", f"{ticket_url}/messages/", principal="bob").json()["data"]
        assert [m["body"] for m in staff_view] == ["On our way"]
        assert [m["body"] for m in agent_view] == [
            "Ticket assigned to Bob",
            "Status changed to In Progress",
            "On our way",
            "check cable",
            "Status changed to Resolved",
        ]

    def test_concurrent_update_conflict(self, api, promote, filed, monkeypatch):
        promote("bob", "agent")

        def stale_save(self, ticket):
            raise ConflictError("Ticket foi modificado por outro processo", entity_id=ticket.id)

        monkeypatch.setattr(DjangoTicketRepository, "save", stale_save)

        response = api(
            "post", f"/api/tickets/{filed['id']}/transition/",
            principal="bob", data={"status": "Pending"},
        )

        assert response.status_code == 409
        assert response.json()["meta"]["retryable"] is True

    def test_agent_directory(self, api, promote):
        promote("ivan", "it-agent")
        promote("fiona", "facility-agent")

        response = api("get", "/api/agents/?type=Facility", principal="admin")

        assert {a["id"] for a in response.json()["data"]} == {"admin", "fiona"}

    def test_staff_cannot_list_agents(self, api):
        response = api("get", "/api/agents/")

        assert response.status_code == 403


class TestPrincipalAPI:

    def test_staff_cannot_change_roles(self, api, container):
        container.bootstrap_admin_service().execute("admin", "admin@school.edu")

        response = api("post", "/api/principals/admin/role/", data={"role": "staff"})

        assert response.status_code == 403

    def test_role_is_required(self, api, promote):
        promote("bob", "agent")

        response = api("post", "/api/principals/bob/role/", principal="admin", data={})

        assert response.status_code == 400

    def test_directory_for_admin(self, api, promote):
        promote("bob", "agent")

        response = api("get", "/api/principals/", principal="admin")

        body = response.json()
        assert response.status_code == 200
        assert body["meta"]["role_counts"]["agent"] == 1
        assert {p["id"] for p in body["data"]} == {"admin", "bob"}


class TestNotificationAPI:

    def test_feed_and_read_all(self, api, promote, filed):
        promote("bob", "agent")
        api("post", f"/api/tickets/{filed['id']}/transition/", principal="bob", data={"status": "Pending"})

        feed = api("get", "/api/notifications/").json()
        assert feed["meta"]["unread_count"] == 1
        assert feed["data"][0]["message"] == f"Ticket {filed['number']} status changed to Pending"

        marked = api("post", "/api/notifications/read-all/").json()["data"]
        assert marked == {"marked": 1}
        assert api("get", "/api/notifications/?unread=1").json()["data"] == []

    def test_cannot_read_foreign_notification(self, api, promote, filed):
        promote("bob", "agent")
        api("post", f"/api/tickets/{filed['id']}/transition/", principal="bob", data={"status": "Pending"})
        (item,) = api("get", "/api/notifications/").json()["data"]

        response = api("post", f"/api/notifications/{item['id']}/read/", principal="carol")

        assert response.status_code == 403


class TestReportAPI:

    def test_dashboard(self, api, promote, filed):
        promote("bob", "agent")

        stats = api("get", "/api/reports/dashboard/?period=all", principal="bob").json()["data"]

        assert stats["total"] == 1
        assert stats["by_type"]["IT Support"] == 1

    def test_invalid_period(self, api):
        response = api("get", "/api/reports/dashboard/?period=decade")

        assert response.status_code == 400

    def test_agent_performance_forbidden_for_staff(self, api):
        response = api("get", "/api/reports/agents/")

        assert response.status_code == 403
