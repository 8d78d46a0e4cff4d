"""
Testes do feed de notificações.

O TestingContainer despacha notificações de forma síncrona após o
commit de cada intenção.
"""

import pytest

from campusdesk.core.shared.exceptions import EntityNotFoundError, ForbiddenError
from campusdesk.core.tickets.events import StatusChangedEvent


def feed(container, session, **kwargs):
    return container.list_notifications_service().execute(session, **kwargs)


def kinds(container, session):
    return [item.kind for item in feed(container, session).items]


class TestNotificationRecipients:

    def test_ticket_created_notifies_agents_of_type(
        self, container, engine, alice, bob, it_agent, facility_agent, admin, ticket_input
    ):
        """Deve notificar agentes que atendem IT Support, nunca facility-agent."""
        engine.file_ticket(alice, ticket_input())

        assert kinds(container, bob) == ["ticket_created"]
        assert kinds(container, it_agent) == ["ticket_created"]
        assert kinds(container, admin) == ["ticket_created"]
        assert kinds(container, facility_agent) == []
        assert kinds(container, alice) == []

    def test_assignment_notifies_new_assignee_not_actor(
        self, container, engine, bob, it_agent, printer_ticket
    ):
        engine.transition(bob, printer_ticket.id, assign_to="ivan")

        assert "ticket_assigned" in kinds(container, it_agent)
        assert "ticket_assigned" not in kinds(container, bob)

    def test_self_assignment_does_not_notify_self(self, container, engine, bob, printer_ticket):
        engine.assign_to_me(bob, printer_ticket.id)

        assert "ticket_assigned" not in kinds(container, bob)

    def test_status_change_notifies_creator(self, container, engine, alice, bob, printer_ticket):
        engine.transition(bob, printer_ticket.id, status="Resolved")

        (item,) = feed(container, alice).items
        assert item.kind == "status_changed"
        assert item.message == f"Ticket {printer_ticket.number} status changed to Resolved"

    def test_public_reply_notifies_creator_and_assignee(
        self, container, engine, alice, bob, it_agent, printer_ticket
    ):
        engine.transition(bob, printer_ticket.id, assign_to="ivan")

        engine.respond(bob, printer_ticket.id, "On our way")

        assert "new_message" in kinds(container, alice)
        assert "new_message" in kinds(container, it_agent)
        assert "new_message" not in kinds(container, bob)

    def test_internal_note_never_reaches_staff(
        self, container, engine, alice, bob, it_agent, admin, printer_ticket
    ):
        """Deve notificar responsável e admins, nunca a dona staff."""
        engine.transition(bob, printer_ticket.id, assign_to="ivan")

        engine.respond(bob, printer_ticket.id, "check cable", internal=True)

        assert "internal_note" in kinds(container, it_agent)
        assert "internal_note" in kinds(container, admin)
        assert "internal_note" not in kinds(container, alice)

    def test_system_messages_do_not_notify(self, container, engine, alice, bob, printer_ticket):
        engine.assign_to_me(bob, printer_ticket.id)

        assert kinds(container, alice) == ["status_changed"]


class TestNotificationDispatcher:

    def test_redelivery_is_idempotent(self, container, engine, alice, bob, printer_ticket):
        """Deve ignorar reprocessamento do mesmo evento."""
        engine.transition(bob, printer_ticket.id, status="Pending")
        (event,) = container.recorded_events().get_events_by_type("StatusChanged")

        created = container.notification_dispatcher().dispatch(event)

        assert created == []
        assert len(feed(container, alice).items) == 1

    def test_missing_ticket_is_skipped(self, container):
        event = StatusChangedEvent(aggregate_id="missing", new_status="Closed", created_by="alice")

        assert container.notification_dispatcher().dispatch(event) == []


class TestNotificationFeed:

    def test_mark_as_read(self, container, engine, alice, bob, printer_ticket):
        engine.transition(bob, printer_ticket.id, status="Pending")
        (item,) = feed(container, alice).items

        output = container.mark_as_read_service().execute(alice, item.id)

        assert output.read
        assert feed(container, alice).unread_count == 0

    def test_cannot_mark_foreign_notification(self, container, engine, alice, bob, printer_ticket):
        engine.transition(bob, printer_ticket.id, status="Pending")
        (item,) = feed(container, alice).items

        with pytest.raises(ForbiddenError):
            container.mark_as_read_service().execute(bob, item.id)

    def test_mark_unknown_notification(self, container, alice):
        with pytest.raises(EntityNotFoundError):
            container.mark_as_read_service().execute(alice, "missing")

    def test_mark_all_as_read(self, container, engine, alice, bob, printer_ticket):
        engine.transition(bob, printer_ticket.id, status="Pending")
        engine.transition(bob, printer_ticket.id, status="Resolved")

        changed = container.mark_all_as_read_service().execute(alice)

        assert changed == 2
        result = feed(container, alice)
        assert result.unread_count == 0
        assert feed(container, alice, unread_only=True).items == []
