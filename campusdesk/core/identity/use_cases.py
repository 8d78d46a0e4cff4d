"""
Use Cases do Domínio de Identidade.

Use Cases implementados:
- IdentityResolver: Resolve/cria principal e abre/encerra sessões
- ChangeRoleService: Admin altera papel de um usuário
- UpdateProfileService: Usuário edita o próprio perfil
- ListPrincipalsService: Listagem administrativa de usuários
- ListAgentsService: Diretório de agentes para atribuição
- BootstrapAdminService: Garante o administrador padrão na instalação
"""

import logging
from typing import List, Optional

from campusdesk.core.authorization.policy import (
    Action,
    authorize,
    can_handle_type,
)
from campusdesk.core.shared.exceptions import (
    BusinessRuleViolationError,
    ConflictError,
    EntityNotFoundError,
)
from campusdesk.core.shared.interfaces import UnitOfWork
from campusdesk.core.tickets.entities import TicketType

from .dtos import PrincipalDirectoryDTO, PrincipalOutputDTO, UpdateProfileInputDTO
from .entities import Principal, Role
from .events import PrincipalRegisteredEvent, RoleChangedEvent
from .ports import PrincipalRepository
from .session import Session


logger = logging.getLogger(__name__)


def current_principal(principal_repo: PrincipalRepository, session: Session) -> Principal:
    """
    Principal da sessão ativa, relido do repositório.

    Mudanças de papel valem a partir da próxima intenção.

    Raises:
        ForbiddenError: Se a sessão foi encerrada
    """
    principal = session.ensure_active()
    current = principal_repo.get_by_id(principal.id)
    if current is None:
        return principal
    session.principal = current
    return current


class IdentityResolver:
    """
    Resolve a identidade vinda do provedor de autenticação.

    No primeiro login cria o Principal com papel `staff`. Dois
    primeiros logins concorrentes da mesma identidade resultam em um
    único registro: quem perde a corrida relê o principal gravado.

    Example:
        resolver = IdentityResolver(principal_repo, uow)
        session = resolver.start_session("uid-1", "alice@school.edu")
        ...
        resolver.end_session(session)
    """

    def __init__(self, principal_repo: PrincipalRepository, uow: UnitOfWork):
        self.principal_repo = principal_repo
        self.uow = uow

    def resolve(
        self,
        principal_id: str,
        email: str,
        display_name: Optional[str] = None,
    ) -> Principal:
        """
        Busca o principal ou cria no primeiro login.

        Args:
            principal_id: uid do provedor de autenticação
            email: E-mail da conta
            display_name: Nome informado pelo provedor (opcional)

        Returns:
            Principal persistido
        """
        existing = self.principal_repo.get_by_id(principal_id)
        if existing is not None:
            return existing

        principal = Principal.register(principal_id, email, display_name)
        try:
            with self.uow:
                self.principal_repo.add(principal)
                self.uow.publish_event(
                    PrincipalRegisteredEvent(
                        aggregate_id=principal.id,
                        actor_id=principal.id,
                        email=principal.email,
                        display_name=principal.display_name,
                    )
                )
        except ConflictError:
            stored = self.principal_repo.get_by_id(principal_id)
            if stored is None:
                raise
            return stored

        logger.info(f"Principal registrado: {principal.id} ({principal.email})")
        return principal

    def start_session(
        self,
        principal_id: str,
        email: str,
        display_name: Optional[str] = None,
    ) -> Session:
        """Resolve o principal e abre uma sessão."""
        return Session.open(self.resolve(principal_id, email, display_name))

    def end_session(self, session: Session) -> None:
        """Encerra a sessão (logout). Idempotente."""
        session.close()
        logger.debug(f"Sessão encerrada: {session.session_id}")

    def refresh(self, session: Session) -> Principal:
        """Principal atual da sessão (ver `current_principal`)."""
        return current_principal(self.principal_repo, session)


class ChangeRoleService:
    """
    Use Case: Admin altera o papel de um usuário.

    Um admin não pode alterar o próprio papel (evita sistema sem admin).
    """

    def __init__(self, principal_repo: PrincipalRepository, uow: UnitOfWork):
        self.principal_repo = principal_repo
        self.uow = uow

    def execute(self, session: Session, principal_id: str, new_role: str) -> PrincipalOutputDTO:
        """
        Raises:
            ForbiddenError: Se quem age não é admin
            EntityNotFoundError: Se o usuário não existe
            ValidationError: Se papel inválido
            BusinessRuleViolationError: Se admin tenta alterar o próprio papel
        """
        actor = current_principal(self.principal_repo, session)
        authorize(actor, Action.CHANGE_ROLE)
        role = Role.from_string(new_role)

        if principal_id == actor.id:
            raise BusinessRuleViolationError(
                "Admin não pode alterar o próprio papel",
                rule="self_role_change",
            )

        with self.uow:
            principal = self.principal_repo.get_by_id(principal_id)
            if principal is None:
                raise EntityNotFoundError(
                    f"Usuário {principal_id} não encontrado",
                    entity_type="Principal",
                    entity_id=principal_id,
                )

            previous = principal.role
            if principal.change_role(role):
                self.principal_repo.save(principal)
                self.uow.publish_event(
                    RoleChangedEvent(
                        aggregate_id=principal.id,
                        actor_id=actor.id,
                        previous_role=previous.value,
                        new_role=role.value,
                    )
                )
                logger.info(
                    f"Papel alterado: {principal.id} {previous.value} -> {role.value} "
                    f"por {actor.id}"
                )

        return PrincipalOutputDTO.from_entity(principal)


class UpdateProfileService:
    """Use Case: Usuário edita nome de exibição e departamento."""

    def __init__(self, principal_repo: PrincipalRepository, uow: UnitOfWork):
        self.principal_repo = principal_repo
        self.uow = uow

    def execute(self, session: Session, input_dto: UpdateProfileInputDTO) -> PrincipalOutputDTO:
        actor = current_principal(self.principal_repo, session)

        with self.uow:
            principal = self.principal_repo.get_by_id(actor.id)
            if principal is None:
                raise EntityNotFoundError(
                    f"Usuário {actor.id} não encontrado",
                    entity_type="Principal",
                    entity_id=actor.id,
                )
            principal.update_profile(
                display_name=input_dto.display_name,
                department=input_dto.department,
            )
            self.principal_repo.save(principal)

        session.principal = principal
        return PrincipalOutputDTO.from_entity(principal)


class ListPrincipalsService:
    """Use Case: Listagem administrativa de usuários (admin)."""

    def __init__(self, principal_repo: PrincipalRepository):
        self.principal_repo = principal_repo

    def execute(self, session: Session, role: Optional[str] = None) -> PrincipalDirectoryDTO:
        actor = current_principal(self.principal_repo, session)
        authorize(actor, Action.MANAGE_USERS)

        principals = self.principal_repo.list_all()
        counts = {r.value: 0 for r in Role}
        for principal in principals:
            counts[principal.role.value] += 1

        if role:
            wanted = Role.from_string(role)
            principals = [p for p in principals if p.role == wanted]

        return PrincipalDirectoryDTO(
            items=[PrincipalOutputDTO.from_entity(p) for p in principals],
            role_counts=counts,
        )


class ListAgentsService:
    """
    Use Case: Diretório de agentes (diálogo de atribuição).

    Lista principals com papel de atendimento; com `ticket_type`,
    apenas quem atende aquele tipo.
    """

    def __init__(self, principal_repo: PrincipalRepository):
        self.principal_repo = principal_repo

    def execute(self, session: Session, ticket_type: Optional[str] = None) -> List[PrincipalOutputDTO]:
        actor = current_principal(self.principal_repo, session)
        authorize(actor, Action.ASSIGN_TICKET)

        agents = self.principal_repo.list_by_roles(r for r in Role if r.is_agent)
        if ticket_type:
            wanted = TicketType.from_string(ticket_type)
            agents = [a for a in agents if can_handle_type(a, wanted)]

        return [PrincipalOutputDTO.from_entity(a) for a in agents]


class BootstrapAdminService:
    """
    Use Case: Garante a existência do administrador padrão.

    Usado na instalação (scripts/quick_setup.py). Não passa pela
    política de autorização: ainda não existe admin que possa promover
    alguém. Idempotente.
    """

    def __init__(self, principal_repo: PrincipalRepository, uow: UnitOfWork):
        self.principal_repo = principal_repo
        self.uow = uow

    def execute(
        self,
        admin_id: str,
        email: str,
        display_name: str = "Administrator",
        department: str = "IT Administration",
    ) -> PrincipalOutputDTO:
        principal = IdentityResolver(self.principal_repo, self.uow).resolve(
            admin_id, email, display_name
        )
        if principal.role == Role.ADMIN:
            return PrincipalOutputDTO.from_entity(principal)

        with self.uow:
            previous = principal.role
            principal.change_role(Role.ADMIN)
            if not principal.department:
                principal.update_profile(department=department)
            self.principal_repo.save(principal)
            self.uow.publish_event(
                RoleChangedEvent(
                    aggregate_id=principal.id,
                    actor_id=principal.id,
                    previous_role=previous.value,
                    new_role=Role.ADMIN.value,
                )
            )

        logger.info(f"Administrador padrão garantido: {principal.id}")
        return PrincipalOutputDTO.from_entity(principal)
