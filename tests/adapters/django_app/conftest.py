"""
Configuração pytest para os adapters Django.

As settings vêm de campusdesk.config.settings_test (pyproject):
SQLite em memória, Celery eager e EVENT_PUBLISHER_MODE=sync.

Os testes rodam com `transactional_db`: cada intenção faz commit de
verdade e os callbacks de `transaction.on_commit` disparam na hora,
como em produção.
"""

import pytest

from campusdesk.config.container import get_container, reset_container
from campusdesk.core.identity.entities import Principal, Role
from campusdesk.core.tickets.entities import TicketEntity, TicketType


@pytest.fixture(autouse=True)
def database(transactional_db):
    """Banco limpo e commits reais em todos os testes de adapter."""


@pytest.fixture
def container(database):
    """Container de produção (repositórios Django), recriado a cada teste."""
    reset_container()
    yield get_container()
    reset_container()


@pytest.fixture
def make_ticket():
    """Factory de TicketEntity ainda não gravado."""
    counter = iter(range(1, 10000))

    def build(creator: Principal, ticket_type: TicketType = TicketType.IT_SUPPORT,
              subject: str = "Printer jam", number: str = None) -> TicketEntity:
        return TicketEntity.create(
            number=number or f"ECPS-{next(counter):06d}",
            ticket_type=ticket_type,
            subject=subject,
            description="Printer in room 12 keeps jamming",
            creator=creator,
        )

    return build


@pytest.fixture
def staff_principal():
    return Principal.register("alice", "alice@school.edu", "Alice")


@pytest.fixture
def agent_principal():
    principal = Principal.register("bob", "bob@school.edu", "Bob")
    principal.change_role(Role.AGENT)
    return principal
