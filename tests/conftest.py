"""
Configurações globais do Pytest para CampusDesk.

Este arquivo é carregado automaticamente pelo pytest e
fornece fixtures e configurações compartilhadas.

Os testes do Core usam o TestingContainer (repositórios e UoW em
memória); os testes de adapters usam pytest-django.
"""

from pathlib import Path

import pytest
from dependency_injector import providers

from campusdesk.config.container import TestingContainer
from campusdesk.core.identity.entities import Role
from campusdesk.core.tickets.dtos import CreateTicketInputDTO
from campusdesk.core.workflow import WorkflowSettings


@pytest.fixture(scope="session")
def project_root():
    """Retorna o caminho raiz do projeto."""
    return Path(__file__).parent.parent


@pytest.fixture
def container():
    """Container com implementações em memória, limpo a cada teste."""
    return TestingContainer()


@pytest.fixture
def configure(container):
    """
    Redefine as flags do engine.

    Example:
        configure(reopen_on_reply=True)
        engine = container.workflow_engine()
    """

    def apply(**flags) -> WorkflowSettings:
        settings = WorkflowSettings(**flags)
        container.workflow_settings.override(providers.Object(settings))
        return settings

    yield apply
    container.workflow_settings.reset_override()


@pytest.fixture
def engine(container):
    return container.workflow_engine()


@pytest.fixture
def login(container):
    """
    Abre sessão para um principal, com o papel desejado.

    Papéis são gravados direto no repositório: os testes do
    ChangeRoleService cobrem o caminho pela política.
    """
    resolver = container.identity_resolver()
    principal_repo = container.principal_repository()

    def open_session(principal_id: str, role: Role = Role.STAFF, name: str = None):
        resolver.resolve(principal_id, f"{principal_id}@school.edu", name or principal_id.title())
        if role != Role.STAFF:
            principal = principal_repo.get_by_id(principal_id)
            principal.change_role(role)
            principal_repo.save(principal)
        return resolver.start_session(principal_id, f"{principal_id}@school.edu")

    return open_session


@pytest.fixture
def alice(login):
    """Staff, dona dos tickets nos cenários."""
    return login("alice")


@pytest.fixture
def bob(login):
    """Agente geral."""
    return login("bob", Role.AGENT)


@pytest.fixture
def carol(login):
    """Staff que não é dona do ticket."""
    return login("carol")


@pytest.fixture
def admin(login):
    return login("admin", Role.ADMIN, name="Administrator")


@pytest.fixture
def it_agent(login):
    return login("ivan", Role.IT_AGENT)


@pytest.fixture
def facility_agent(login):
    return login("fiona", Role.FACILITY_AGENT)


@pytest.fixture
def ticket_input():
    """Fábrica de CreateTicketInputDTO."""

    def build(ticket_type: str = "IT Support", subject: str = "Printer jam", **kwargs):
        kwargs.setdefault("description", "Printer in room 12 keeps jamming")
        return CreateTicketInputDTO(ticket_type=ticket_type, subject=subject, **kwargs)

    return build


@pytest.fixture
def printer_ticket(engine, alice, ticket_input):
    """Ticket de IT Support aberto pela alice."""
    return engine.file_ticket(alice, ticket_input())


def pytest_configure(config):
    """Configuração do pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
