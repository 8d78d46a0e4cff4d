"""
Testes dos repositórios Django.

Coverage:
- DjangoTicketRepository (compare-and-set, touch, número único, busca)
- DjangoMessageRepository (ordem estritamente crescente, notas internas)
- DjangoNotificationRepository (entrega única por evento/destinatário)
- DjangoPrincipalRepository
- DjangoEventStore
"""

from datetime import timedelta

import pytest

from campusdesk.adapters.django_app.helpdesk.repositories import (
    DjangoEventStore,
    DjangoMessageRepository,
    DjangoNotificationRepository,
    DjangoPrincipalRepository,
    DjangoTicketRepository,
)
from campusdesk.core.authorization.policy import visibility_for
from campusdesk.core.identity.entities import Principal, Role
from campusdesk.core.messages.entities import Message
from campusdesk.core.messages.ports import TICK
from campusdesk.core.notifications.entities import Notification, NotificationKind
from campusdesk.core.shared.events import utcnow
from campusdesk.core.shared.exceptions import ConflictError, EntityNotFoundError
from campusdesk.core.tickets.dtos import TicketQueryDTO
from campusdesk.core.tickets.entities import TicketStatus, TicketType
from campusdesk.core.tickets.events import StatusChangedEvent, TicketCreatedEvent


@pytest.fixture
def ticket_repo():
    return DjangoTicketRepository()


@pytest.fixture
def message_repo():
    return DjangoMessageRepository()


@pytest.fixture
def notification_repo():
    return DjangoNotificationRepository()


@pytest.fixture
def stored_ticket(ticket_repo, make_ticket, staff_principal):
    ticket = make_ticket(staff_principal)
    ticket_repo.add(ticket)
    return ticket


def notification(recipient_id="alice", event_id="event-1", ticket_id="ticket-1"):
    return Notification(
        recipient_id=recipient_id,
        ticket_id=ticket_id,
        ticket_number="ECPS-000001",
        kind=NotificationKind.STATUS_CHANGED,
        message="Ticket ECPS-000001 status changed to Pending",
        event_id=event_id,
    )


class TestDjangoTicketRepository:

    def test_add_and_get(self, ticket_repo, stored_ticket):
        loaded = ticket_repo.get_by_id(stored_ticket.id)

        assert loaded.number == stored_ticket.number
        assert loaded.version == 1
        assert loaded.type == TicketType.IT_SUPPORT
        assert loaded.status == TicketStatus.OPEN
        assert ticket_repo.get_by_number(stored_ticket.number).id == stored_ticket.id

    def test_save_increments_version(self, ticket_repo, stored_ticket):
        stored_ticket.change_status(TicketStatus.PENDING)

        ticket_repo.save(stored_ticket)

        assert stored_ticket.version == 2
        assert ticket_repo.get_by_id(stored_ticket.id).status == TicketStatus.PENDING

    def test_stale_save_conflicts(self, ticket_repo, stored_ticket):
        """Deve recusar gravação baseada em versão desatualizada."""
        first = ticket_repo.get_by_id(stored_ticket.id)
        second = ticket_repo.get_by_id(stored_ticket.id)
        first.change_status(TicketStatus.PENDING)
        ticket_repo.save(first)

        second.change_status(TicketStatus.RESOLVED)
        with pytest.raises(ConflictError):
            ticket_repo.save(second)

        assert ticket_repo.get_by_id(stored_ticket.id).status == TicketStatus.PENDING

    def test_save_missing_ticket(self, ticket_repo, make_ticket, staff_principal):
        ticket = make_ticket(staff_principal)
        ticket.version = 1

        with pytest.raises(EntityNotFoundError):
            ticket_repo.save(ticket)

    def test_duplicate_number_conflicts(self, ticket_repo, make_ticket, staff_principal, stored_ticket):
        duplicate = make_ticket(staff_principal, number=stored_ticket.number)

        with pytest.raises(ConflictError):
            ticket_repo.add(duplicate)

        assert ticket_repo.count() == 1

    def test_touch_never_moves_backwards(self, ticket_repo, stored_ticket):
        later = stored_ticket.updated_at + timedelta(minutes=5)

        ticket_repo.touch(stored_ticket.id, later)
        ticket_repo.touch(stored_ticket.id, stored_ticket.updated_at)

        loaded = ticket_repo.get_by_id(stored_ticket.id)
        assert loaded.updated_at == later
        assert loaded.version == 1

    def test_save_keeps_newer_touch(self, ticket_repo, stored_ticket):
        """Deve preservar updated_at avançado por um touch concorrente."""
        later = stored_ticket.updated_at + timedelta(minutes=5)
        ticket_repo.touch(stored_ticket.id, later)

        stored_ticket.change_status(TicketStatus.PENDING)
        ticket_repo.save(stored_ticket)

        assert stored_ticket.updated_at == later

    def test_touch_missing_ticket(self, ticket_repo):
        with pytest.raises(EntityNotFoundError):
            ticket_repo.touch("missing", utcnow())


class TestDjangoTicketSearch:

    @pytest.fixture
    def tickets(self, ticket_repo, make_ticket, staff_principal):
        carol = Principal.register("carol", "carol@school.edu", "Carol")
        specs = [
            (staff_principal, TicketType.IT_SUPPORT, "Projector"),
            (staff_principal, TicketType.FACILITY, "Leaking tap"),
            (carol, TicketType.IT_SUPPORT, "Wi-Fi down"),
        ]
        created = []
        for offset, (creator, ticket_type, subject) in enumerate(specs):
            ticket = make_ticket(creator, ticket_type, subject)
            ticket.created_at = ticket.created_at + timedelta(seconds=offset)
            ticket_repo.add(ticket)
            created.append(ticket)
        return created

    def test_staff_sees_only_own(self, ticket_repo, tickets, staff_principal):
        page = ticket_repo.search(TicketQueryDTO(), visibility_for(staff_principal))

        assert page.total == 2
        assert [t.subject for t in page.items] == ["Leaking tap", "Projector"]

    def test_filter_cannot_widen_visibility(self, ticket_repo, tickets):
        carol = Principal.register("carol", "carol@school.edu", "Carol")

        page = ticket_repo.search(TicketQueryDTO(created_by="alice"), visibility_for(carol))

        assert page.total == 0

    def test_it_agent_sees_it_tickets(self, ticket_repo, tickets):
        ivan = Principal.register("ivan", "ivan@school.edu", "Ivan")
        ivan.change_role(Role.IT_AGENT)

        page = ticket_repo.search(TicketQueryDTO(), visibility_for(ivan))

        assert {t.subject for t in page.items} == {"Projector", "Wi-Fi down"}

    def test_search_text_and_pagination(self, ticket_repo, tickets, agent_principal):
        visibility = visibility_for(agent_principal)

        found = ticket_repo.search(TicketQueryDTO(search="wi-fi"), visibility)
        first_page = ticket_repo.search(TicketQueryDTO(page=1, page_size=2), visibility)
        second_page = ticket_repo.search(TicketQueryDTO(page=2, page_size=2), visibility)

        assert [t.subject for t in found.items] == ["Wi-Fi down"]
        assert first_page.total == 3
        assert [t.subject for t in first_page.items] == ["Wi-Fi down", "Leaking tap"]
        assert [t.subject for t in second_page.items] == ["Projector"]

    def test_search_text_does_not_span_fields(self, ticket_repo, tickets, agent_principal):
        visibility = visibility_for(agent_principal)

        spanning = ticket_repo.search(TicketQueryDTO(search="projector printer"), visibility)
        inside = ticket_repo.search(TicketQueryDTO(search="room 12"), visibility)

        assert spanning.total == 0
        assert inside.total == 3

    def test_status_filter(self, ticket_repo, tickets, agent_principal):
        tickets[0].change_status(TicketStatus.RESOLVED)
        ticket_repo.save(tickets[0])

        page = ticket_repo.search(
            TicketQueryDTO(status="Resolved"), visibility_for(agent_principal)
        )

        assert [t.id for t in page.items] == [tickets[0].id]


class TestDjangoMessageRepository:

    def test_created_at_strictly_increasing(self, message_repo, stored_ticket, staff_principal):
        first = Message.compose(stored_ticket.id, staff_principal, "first")
        message_repo.add(first)
        second = Message.compose(stored_ticket.id, staff_principal, "second")
        second.created_at = first.created_at - timedelta(seconds=1)

        message_repo.add(second)

        assert second.created_at == first.created_at + TICK
        bodies = [m.body for m in message_repo.list_for_ticket(stored_ticket.id)]
        assert bodies == ["first", "second"]

    def test_exclude_internal(self, message_repo, stored_ticket, agent_principal):
        message_repo.add(Message.compose(stored_ticket.id, agent_principal, "note", is_internal=True))
        message_repo.add(Message.compose(stored_ticket.id, agent_principal, "public"))

        visible = message_repo.list_for_ticket(stored_ticket.id, include_internal=False)

        assert [m.body for m in visible] == ["public"]

    def test_message_for_missing_ticket(self, message_repo, staff_principal):
        with pytest.raises(EntityNotFoundError):
            message_repo.add(Message.compose("missing", staff_principal, "hello"))


class TestDjangoNotificationRepository:

    def test_same_event_delivered_once(self, notification_repo):
        """Deve ignorar segunda entrega do mesmo (evento, destinatário)."""
        assert notification_repo.add(notification()) is True
        assert notification_repo.add(notification()) is False
        assert notification_repo.add(notification(recipient_id="bob")) is True

        assert notification_repo.unread_count("alice") == 1

    def test_mark_all_as_read(self, notification_repo):
        notification_repo.add(notification(event_id="event-1"))
        notification_repo.add(notification(event_id="event-2"))

        assert notification_repo.mark_all_as_read("alice") == 2
        assert notification_repo.mark_all_as_read("alice") == 0
        assert notification_repo.list_for_recipient("alice", unread_only=True) == []

    def test_save_read_flag(self, notification_repo):
        item = notification()
        notification_repo.add(item)
        item.mark_as_read()

        notification_repo.save(item)

        (loaded,) = notification_repo.list_for_recipient("alice")
        assert loaded.read
        assert loaded.read_at is not None


class TestDjangoPrincipalRepository:

    def test_list_by_roles(self):
        repo = DjangoPrincipalRepository()
        for principal_id, role in (("zoe", Role.AGENT), ("adam", Role.IT_AGENT), ("sam", Role.STAFF)):
            principal = Principal.register(principal_id, f"{principal_id}@school.edu", principal_id.title())
            principal.change_role(role)
            repo.add(principal)

        agents = repo.list_by_roles([Role.AGENT, Role.IT_AGENT])

        assert [p.id for p in agents] == ["adam", "zoe"]
        assert len(repo.list_all()) == 3

    def test_duplicate_principal_conflicts(self, staff_principal):
        repo = DjangoPrincipalRepository()
        repo.add(staff_principal)

        with pytest.raises(ConflictError):
            repo.add(Principal.register("alice", "other@school.edu"))

    def test_save_missing_principal(self, staff_principal):
        with pytest.raises(EntityNotFoundError):
            DjangoPrincipalRepository().save(staff_principal)


class TestDjangoEventStore:

    def test_events_ordered_by_sequence(self):
        store = DjangoEventStore()
        created = TicketCreatedEvent(aggregate_id="ticket-1", number="ECPS-000001")
        changed = StatusChangedEvent(aggregate_id="ticket-1", new_status="Pending", created_by="alice")

        store.append(created)
        store.append(changed)

        events = store.get_events_for_aggregate("ticket-1")
        assert [(e["event_type"], e["sequence"]) for e in events] == [
            ("TicketCreated", 1),
            ("StatusChanged", 2),
        ]
        assert events[0]["event_id"] == created.event_id

    def test_sequence_is_unique_per_aggregate(self, monkeypatch):
        """Deve recusar duas gravações com a mesma sequência no agregado."""
        store = DjangoEventStore()
        created = TicketCreatedEvent(aggregate_id="ticket-1", number="ECPS-000001")
        changed = StatusChangedEvent(aggregate_id="ticket-1", new_status="Pending", created_by="alice")
        monkeypatch.setattr(DjangoEventStore, "_next_sequence", lambda self, aggregate_id: 1)

        store.append(created)
        with pytest.raises(ConflictError):
            store.append(changed)

        events = store.get_events_for_aggregate("ticket-1")
        assert [(e["event_type"], e["sequence"]) for e in events] == [("TicketCreated", 1)]

    def test_sequence_recomputed_after_collision(self, monkeypatch):
        store = DjangoEventStore()
        store.append(TicketCreatedEvent(aggregate_id="ticket-1", number="ECPS-000001"))
        stale = iter([1])
        real_next = DjangoEventStore._next_sequence
        monkeypatch.setattr(
            DjangoEventStore,
            "_next_sequence",
            lambda self, aggregate_id: next(stale, None) or real_next(self, aggregate_id),
        )

        store.append(StatusChangedEvent(aggregate_id="ticket-1", new_status="Pending", created_by="alice"))

        events = store.get_events_for_aggregate("ticket-1")
        assert [e["sequence"] for e in events] == [1, 2]
