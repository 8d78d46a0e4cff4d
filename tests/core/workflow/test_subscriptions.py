"""
Testes das assinaturas em tempo real (SubscriptionHub).
"""

import pytest

from campusdesk.core.shared.exceptions import ForbiddenError


class TestSubscriptions:

    def test_owner_receives_ticket_changes(self, container, engine, alice, bob, printer_ticket):
        received = []
        engine.subscribe(alice, received.append, ticket_id=printer_ticket.id)

        engine.transition(bob, printer_ticket.id, status="Pending")

        assert [e.event_type for e in received] == ["StatusChanged"]
        assert container.subscription_hub().active_count == 1

    def test_internal_messages_filtered_for_staff(self, engine, alice, bob, printer_ticket):
        """Deve entregar nota interna ao agente e nunca à staff."""
        staff_events, agent_events = [], []
        engine.subscribe(alice, staff_events.append, ticket_id=printer_ticket.id)
        engine.subscribe(bob, agent_events.append, ticket_id=printer_ticket.id)

        engine.respond(bob, printer_ticket.id, "check cable", internal=True)
        engine.respond(bob, printer_ticket.id, "On our way")

        assert [e.is_internal for e in staff_events] == [False]
        assert [e.is_internal for e in agent_events] == [True, False]

    def test_feed_subscription_respects_visibility(
        self, engine, alice, carol, ticket_input
    ):
        carol_events = []
        engine.subscribe(carol, carol_events.append)

        engine.file_ticket(alice, ticket_input())
        own = engine.file_ticket(carol, ticket_input(subject="Broken chair"))

        assert [e.aggregate_id for e in carol_events] == [own.id]

    def test_cannot_subscribe_to_foreign_ticket(self, engine, carol, printer_ticket):
        with pytest.raises(ForbiddenError):
            engine.subscribe(carol, lambda event: None, ticket_id=printer_ticket.id)

    def test_cancel_stops_delivery(self, container, engine, alice, bob, printer_ticket):
        received = []
        subscription = engine.subscribe(alice, received.append, ticket_id=printer_ticket.id)

        subscription.cancel()
        subscription.cancel()
        engine.transition(bob, printer_ticket.id, status="Pending")

        assert received == []
        assert container.subscription_hub().active_count == 0

    def test_context_manager_cancels(self, container, engine, alice, printer_ticket):
        with engine.subscribe(alice, lambda event: None):
            assert container.subscription_hub().active_count == 1

        assert container.subscription_hub().active_count == 0

    def test_closed_session_drops_subscription(self, container, engine, alice, bob, printer_ticket):
        received = []
        engine.subscribe(alice, received.append, ticket_id=printer_ticket.id)
        alice.close()

        engine.transition(bob, printer_ticket.id, status="Pending")

        assert received == []
        assert container.subscription_hub().active_count == 0

    def test_failing_callback_does_not_break_intent(self, engine, alice, bob, printer_ticket):
        """Deve registrar o erro do assinante e concluir a intenção."""

        def explode(event):
            raise RuntimeError("callback quebrado")

        engine.subscribe(alice, explode, ticket_id=printer_ticket.id)

        ticket = engine.transition(bob, printer_ticket.id, status="Pending")

        assert ticket.status == "Pending"

    def test_demoted_agent_stops_receiving_internal_notes(
        self, container, engine, bob, it_agent, admin, printer_ticket
    ):
        """Deve aplicar o papel atual do assinante a cada entrega."""
        received = []
        engine.subscribe(bob, received.append, ticket_id=printer_ticket.id)

        container.change_role_service().execute(admin, "bob", "staff")
        engine.respond(it_agent, printer_ticket.id, "check cable", internal=True)

        assert received == []
