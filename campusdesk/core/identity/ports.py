"""
Ports (Interfaces) do Domínio de Identidade.

Define o contrato de persistência de principals e uma
implementação em memória para testes.
"""

from typing import Iterable, List, Optional, Protocol, runtime_checkable

from campusdesk.core.shared.exceptions import ConflictError, EntityNotFoundError
from campusdesk.core.shared.memory import InMemoryCollection

from .entities import Principal, Role


@runtime_checkable
class PrincipalRepository(Protocol):
    """
    Interface para persistência de Principals.

    Implementações:
    - DjangoPrincipalRepository (ORM)
    - InMemoryPrincipalRepository (testes)
    """

    def get_by_id(self, principal_id: str) -> Optional[Principal]:
        """Busca principal por ID; None se não existir."""
        ...

    def add(self, principal: Principal) -> None:
        """
        Cria principal.

        Raises:
            ConflictError: Se o ID já existe (primeiro login concorrente)
        """
        ...

    def save(self, principal: Principal) -> None:
        """
        Atualiza principal existente.

        Raises:
            EntityNotFoundError: Se não existir
        """
        ...

    def list_all(self) -> List[Principal]:
        """Lista todos os principals ordenados por nome."""
        ...

    def list_by_roles(self, roles: Iterable[Role]) -> List[Principal]:
        """Lista principals com algum dos papéis informados."""
        ...


class InMemoryPrincipalRepository(InMemoryCollection):
    """
    Implementação em memória do PrincipalRepository.

    Example:
        repo = InMemoryPrincipalRepository()
        repo.add(Principal.register("uid-1", "alice@school.edu"))
    """

    def __init__(self):
        super().__init__()
        self._principals: dict = {}

    def get_by_id(self, principal_id: str) -> Optional[Principal]:
        with self._lock:
            principal = self._principals.get(principal_id)
            return self._copy(principal) if principal else None

    def add(self, principal: Principal) -> None:
        with self._lock:
            if principal.id in self._principals:
                raise ConflictError(
                    f"Principal {principal.id} já existe",
                    entity_id=principal.id,
                )
            self._principals[principal.id] = self._copy(principal)
        self._record_undo(self._restore(self._principals, principal.id, None))

    def save(self, principal: Principal) -> None:
        with self._lock:
            previous = self._principals.get(principal.id)
            if previous is None:
                raise EntityNotFoundError(
                    f"Principal {principal.id} não encontrado",
                    entity_type="Principal",
                    entity_id=principal.id,
                )
            self._principals[principal.id] = self._copy(principal)
        self._record_undo(self._restore(self._principals, principal.id, previous))

    def list_all(self) -> List[Principal]:
        with self._lock:
            principals = [self._copy(p) for p in self._principals.values()]
        return sorted(principals, key=lambda p: (p.display_name.lower(), p.id))

    def list_by_roles(self, roles: Iterable[Role]) -> List[Principal]:
        wanted = set(roles)
        return [p for p in self.list_all() if p.role in wanted]

    def clear(self) -> None:
        """Limpa todos os dados (útil para testes)."""
        with self._lock:
            self._principals.clear()
