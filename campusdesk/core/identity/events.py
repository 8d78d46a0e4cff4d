"""
Domain Events do Domínio de Identidade.

Eventos:
- PrincipalRegisteredEvent: Primeiro login de uma identidade
- RoleChangedEvent: Admin alterou o papel de um usuário
"""

from dataclasses import dataclass

from campusdesk.core.shared.events import DomainEvent, EventRegistry


@EventRegistry.register
@dataclass
class PrincipalRegisteredEvent(DomainEvent):
    """
    Evento: Principal criado no primeiro login.

    Attributes:
        email: E-mail da conta
        display_name: Nome de exibição inicial
    """

    email: str = ""
    display_name: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Principal"


@EventRegistry.register
@dataclass
class RoleChangedEvent(DomainEvent):
    """
    Evento: Papel de um principal foi alterado.

    Attributes:
        previous_role: Papel anterior
        new_role: Papel novo
    """

    previous_role: str = ""
    new_role: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Principal"
